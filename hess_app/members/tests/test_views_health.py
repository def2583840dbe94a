from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase, override_settings
from post_office.models import EmailTemplate


class HealthViewsTests(TestCase):
    def test_healthz_returns_ok(self) -> None:
        resp = self.client.get("/healthz")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_readyz_reports_database_and_seeded_templates(self) -> None:
        resp = self.client.get("/readyz")

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ready", "database": "ok", "email_templates": "ok"})

    def test_readyz_returns_503_when_db_unavailable(self) -> None:
        with patch("django.db.connection.ensure_connection", side_effect=DatabaseError("db down")):
            with self.assertLogs("members.views_health", level="ERROR"):
                resp = self.client.get("/readyz")

        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json(), {"status": "not ready", "database": "error", "error": "db down"})

    def test_readyz_returns_503_when_a_notification_template_is_missing(self) -> None:
        EmailTemplate.objects.filter(name="registration-update-approved").delete()

        with self.assertLogs("members.views_health", level="WARNING"):
            resp = self.client.get("/readyz")

        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["missing"], ["registration-update-approved"])

    @override_settings(TEST_EMAIL_TEMPLATE_NAME="")
    def test_blank_template_setting_is_left_to_the_system_check(self) -> None:
        resp = self.client.get("/readyz")

        self.assertEqual(resp.status_code, 200)
