import json
from unittest.mock import patch

from django.test import TestCase
from django.urls import reverse
from post_office.models import Email

from members.tests.utils_test_data import create_admin


class SendTestEmailViewTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.url = reverse("notification-send-test")

    def _post(self, payload: dict[str, object]):
        return self.client.post(self.url, data=json.dumps(payload), content_type="application/json")

    def test_requires_permission(self) -> None:
        self.client.force_login(create_admin("viewer"))

        self.assertEqual(self._post({"to": "ops@example.edu"}).status_code, 403)

    def test_sends_test_email(self) -> None:
        self.client.force_login(create_admin("ops", "send_test_email"))

        resp = self._post({"to": "ops@example.edu", "message": "ping"})

        self.assertEqual(resp.status_code, 200)
        email = Email.objects.get(pk=resp.json()["emailId"])
        self.assertEqual(email.context["user_name"], "ops")
        self.assertIn("ping", email.message)

    def test_invalid_recipient_is_a_hard_error(self) -> None:
        self.client.force_login(create_admin("ops", "send_test_email"))

        resp = self._post({"to": "not an email"})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "invalid_recipient")

    def test_queue_failure_is_a_hard_error(self) -> None:
        self.client.force_login(create_admin("ops", "send_test_email"))

        with patch("members.templated_email.post_office.mail.send", side_effect=RuntimeError("down")):
            with self.assertLogs("members.notifications", level="ERROR"):
                resp = self._post({"to": "ops@example.edu"})

        self.assertEqual(resp.status_code, 502)
        self.assertEqual(resp.json()["code"], "notification")
        self.assertTrue(resp.json()["retryable"])
