from unittest.mock import patch

from django.contrib.admin.helpers import ACTION_CHECKBOX_NAME
from django.contrib.auth.models import User
from django.test import TestCase
from django.urls import reverse

from members.models import AuditLogEntry, Organization, RegistrationUpdateRequest
from members.tests.utils_test_data import create_organization, create_profile, create_update_request


class MembersAdminTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.superuser = User.objects.create_superuser("root", "root@example.edu", "pw")
        self.client.force_login(self.superuser)

    def test_approve_action_resolves_selected_requests(self) -> None:
        organization = create_organization(contact_person=create_profile())
        request = create_update_request(organization=organization, organization_data={"city": "Dayton"})

        resp = self.client.post(
            reverse("admin:members_registrationupdaterequest_changelist"),
            {"action": "approve_selected", ACTION_CHECKBOX_NAME: [request.pk]},
            follow=True,
        )

        self.assertEqual(resp.status_code, 200)
        self.assertContains(resp, "1 request(s) approved.")
        request.refresh_from_db()
        self.assertEqual(request.status, RegistrationUpdateRequest.Status.approved)
        self.assertEqual(request.reviewed_by, "root")

    def test_unapprove_action(self) -> None:
        organization = create_organization(contact_person=create_profile())

        with patch("members.unapprove.IdentityUser.delete", return_value=True):
            self.client.post(
                reverse("admin:members_organization_changelist"),
                {"action": "unapprove_selected", ACTION_CHECKBOX_NAME: [organization.pk]},
            )

        self.assertFalse(Organization.objects.filter(pk=organization.pk).exists())

    def test_audit_log_is_read_only(self) -> None:
        entry = AuditLogEntry.record(
            action="organization_unapproved",
            entity_type="organization",
            entity_id=1,
            user_id="root",
            details={},
        )

        self.assertEqual(self.client.get(reverse("admin:members_auditlogentry_changelist")).status_code, 200)
        resp = self.client.post(reverse("admin:members_auditlogentry_change", args=[entry.pk]), {"action": "x"})
        self.assertEqual(resp.status_code, 403)
        self.assertEqual(self.client.get(reverse("admin:members_auditlogentry_add")).status_code, 403)

    def test_audit_log_rows_cannot_be_changed_or_deleted(self) -> None:
        entry = AuditLogEntry.record(action="x", entity_type="y", entity_id=1, user_id="root", details={})

        entry.action = "changed"
        with self.assertRaises(RuntimeError):
            entry.save()
        with self.assertRaises(RuntimeError):
            entry.delete()
