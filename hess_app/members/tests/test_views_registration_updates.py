import json
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from django.urls import reverse

from members.models import RegistrationUpdateRequest
from members.tests.utils_test_data import create_admin, create_organization, create_profile, create_update_request


class RegistrationUpdateViewsTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.organization = create_organization(contact_person=create_profile())
        self.request = create_update_request(organization=self.organization, organization_data={"city": "Dayton"})
        self.reviewer = create_admin("reviewer", "review_registrationupdaterequest")

    def _post_json(self, url: str, payload: dict[str, object]):
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def test_anonymous_user_gets_json_401(self) -> None:
        resp = self._post_json(reverse("registration-update-approve", args=[self.request.pk]), {})

        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"error": "Authentication required."})

    def test_user_without_permission_gets_json_403(self) -> None:
        self.client.force_login(create_admin("viewer"))

        resp = self._post_json(reverse("registration-update-approve", args=[self.request.pk]), {})

        self.assertEqual(resp.status_code, 403)
        self.request.refresh_from_db()
        self.assertEqual(self.request.status, RegistrationUpdateRequest.Status.pending)

    def test_get_on_approve_is_404(self) -> None:
        self.client.force_login(self.reviewer)

        resp = self.client.get(reverse("registration-update-approve", args=[self.request.pk]))

        self.assertEqual(resp.status_code, 404)

    def test_approve_then_conflict(self) -> None:
        self.client.force_login(self.reviewer)
        url = reverse("registration-update-approve", args=[self.request.pk])

        resp = self._post_json(url, {"admin_notes": "looks good"})

        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["status"], "approved")
        self.assertEqual(body["reviewed_by"], "reviewer")
        self.assertEqual(body["admin_notes"], "looks good")
        self.assertEqual(body["changed_fields"]["organization"], ["city"])
        self.assertTrue(body["notification_sent"])

        resp = self._post_json(url, {})

        self.assertEqual(resp.status_code, 409)
        self.assertEqual(resp.json()["code"], "conflict")
        self.assertFalse(resp.json()["retryable"])

    def test_reject_with_form_post(self) -> None:
        self.client.force_login(self.reviewer)

        resp = self.client.post(
            reverse("registration-update-reject", args=[self.request.pk]),
            data={"admin_notes": "duplicate"},
        )

        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["status"], "rejected")
        self.organization.refresh_from_db()
        self.assertEqual(self.organization.city, "Columbus")

    def test_missing_request_is_json_404(self) -> None:
        self.client.force_login(self.reviewer)

        resp = self._post_json(reverse("registration-update-approve", args=[self.request.pk + 50]), {})

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["code"], "not_found")

    def test_malformed_json_is_validation_error(self) -> None:
        self.client.force_login(self.reviewer)

        resp = self.client.post(
            reverse("registration-update-approve", args=[self.request.pk]),
            data="{not json",
            content_type="application/json",
        )

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "validation")

    def test_invalid_new_member_value_is_json_400(self) -> None:
        self.client.force_login(self.reviewer)
        request = create_update_request(organization=None, organization_data={"student_fte": "lots"})

        resp = self._post_json(reverse("registration-update-approve", args=[request.pk]), {})

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["code"], "validation")
        self.assertFalse(resp.json()["retryable"])

    def test_persistence_error_is_retryable_500(self) -> None:
        self.client.force_login(self.reviewer)

        with patch("members.approval.AuditLogEntry.record", side_effect=DatabaseError("db down")):
            with self.assertLogs("members.approval", level="ERROR"):
                resp = self._post_json(reverse("registration-update-approve", args=[self.request.pk]), {})

        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["code"], "persistence")
        self.assertTrue(resp.json()["retryable"])

    def test_pending_list_and_comparison(self) -> None:
        self.client.force_login(self.reviewer)

        resp = self.client.get(reverse("registration-updates-pending"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([row["id"] for row in resp.json()["results"]], [self.request.pk])
        self.assertEqual(resp.json()["results"][0]["organization_name"], "Buckeye College")

        resp = self.client.get(reverse("registration-update-comparison", args=[self.request.pk]))
        self.assertEqual(resp.status_code, 200)
        sections = resp.json()["sections"]
        self.assertEqual(len(sections), 1)
        self.assertEqual(sections[0]["title"], "Organization Details")
        self.assertEqual(sections[0]["changes"][0]["new_display"], "Dayton")

    def test_comparison_html(self) -> None:
        self.client.force_login(self.reviewer)

        resp = self.client.get(reverse("registration-update-comparison", args=[self.request.pk]), {"format": "html"})

        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "Organization Details (1 change)")
        self.assertContains(resp, "Dayton")


class SubmitUpdateViewTests(TestCase):
    def test_public_submission_creates_pending_request(self) -> None:
        resp = self.client.post(
            reverse("registration-update-submit"),
            data=json.dumps(
                {
                    "submitted_email": "new@college.example.edu",
                    "organization_data": {"name": "New College"},
                }
            ),
            content_type="application/json",
        )

        self.assertEqual(resp.status_code, 201)
        created = RegistrationUpdateRequest.objects.get(pk=resp.json()["id"])
        self.assertEqual(created.submission_type, RegistrationUpdateRequest.SubmissionType.new_member)

    def test_public_submission_rejects_bad_email(self) -> None:
        resp = self.client.post(
            reverse("registration-update-submit"),
            data=json.dumps({"submitted_email": "nope", "registration_data": {"city": "Dayton"}}),
            content_type="application/json",
        )

        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Invalid email format: nope", "code": "invalid_recipient", "retryable": False})

    def test_non_integer_organization_id(self) -> None:
        resp = self.client.post(
            reverse("registration-update-submit"),
            data=json.dumps(
                {
                    "submitted_email": "a@example.edu",
                    "registration_data": {"city": "Dayton"},
                    "existing_organization_id": "abc",
                }
            ),
            content_type="application/json",
        )

        self.assertEqual(resp.status_code, 400)
