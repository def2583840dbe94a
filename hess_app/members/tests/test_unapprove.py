import datetime
from decimal import Decimal
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from django.utils import timezone

from members import unapprove
from members.errors import MissingAdminIdentity, NoProfileFound, NotFoundError, PersistenceError, SnapshotInsertFailed
from members.models import (
    AuditLogEntry,
    Invoice,
    Organization,
    OrganizationInvitation,
    OrganizationReassignmentRequest,
    OrganizationTransferRequest,
    PendingRegistration,
    Profile,
    UserRole,
)
from members.tests.utils_test_data import create_organization, create_profile
from members.unapprove import UnapproveStatus, UnapproveStep, unapprove_organization


class UnapproveOrganizationTests(TestCase):
    def setUp(self) -> None:
        super().setUp()
        self.profile = create_profile(address="9 Contact Rd", primary_contact_title="CIO")
        self.organization = create_organization(
            contact_person=self.profile,
            secondary_first_name="Pat",
            primary_office_dell=True,
        )
        today = datetime.date(2026, 1, 15)
        for number in range(3):
            Invoice.objects.create(
                organization=self.organization,
                invoice_number=f"INV-{number}",
                amount=Decimal("1000.00"),
                invoice_date=today,
                due_date=today + datetime.timedelta(days=30),
            )
        OrganizationInvitation.objects.create(
            organization=self.organization,
            email="colleague@example.edu",
            invitation_token="tok-1",
            expires_at=timezone.now() + datetime.timedelta(days=7),
        )
        UserRole.objects.create(user_id="jdoe", role=UserRole.Role.member)

    def test_unapprove_moves_organization_to_pending_registrations(self) -> None:
        with patch("members.unapprove.IdentityUser.delete", return_value=True) as delete_identity:
            outcome = unapprove_organization(organization_id=self.organization.pk, actor_username="admin")

        delete_identity.assert_called_once_with("jdoe")
        self.assertEqual(outcome.status, UnapproveStatus.success)
        self.assertIn("3 invoices", outcome.deleted_items)
        self.assertIn("1 invitations", outcome.deleted_items)
        self.assertIn("1 user roles", outcome.deleted_items)
        self.assertIn("auth user", outcome.deleted_items)
        self.assertEqual(outcome.completed_steps, list(UnapproveStep))

        pending = PendingRegistration.objects.get(email="jane.doe@example.edu")
        self.assertEqual(outcome.pending_registration_id, pending.pk)
        self.assertEqual(pending.approval_status, PendingRegistration.ApprovalStatus.pending)
        self.assertEqual(pending.organization_name, "Buckeye College")
        self.assertEqual(pending.address, "9 Contact Rd")
        self.assertEqual(pending.primary_contact_title, "CIO")
        self.assertEqual(pending.secondary_first_name, "Pat")
        self.assertEqual(pending.student_fte, 500)
        self.assertTrue(pending.primary_office_dell)
        self.assertTrue(pending.password_hash.startswith("unapproved_"))

        entry = AuditLogEntry.objects.get(action="organization_unapproved")
        self.assertEqual(entry.entity_id, str(self.organization.pk))
        self.assertEqual(entry.details["organizationName"], "Buckeye College")
        self.assertEqual(entry.details["contactEmail"], "jane.doe@example.edu")
        self.assertEqual(entry.details["pendingRegistrationId"], pending.pk)
        self.assertEqual(entry.details["deletedItems"], outcome.deleted_items)

    def test_no_rows_remain_for_the_organization(self) -> None:
        OrganizationTransferRequest.objects.create(
            organization=self.organization,
            new_contact_email="next@example.edu",
            transfer_token="transfer-1",
            expires_at=timezone.now() + datetime.timedelta(days=7),
        )
        OrganizationReassignmentRequest.objects.create(
            organization=self.organization,
            new_contact_email="next@example.edu",
        )
        PendingRegistration.objects.create(email="jane.doe@example.edu", organization_name="Stale")
        organization_id = self.organization.pk

        with patch("members.unapprove.IdentityUser.delete", return_value=True):
            unapprove_organization(organization_id=organization_id, actor_username="admin")

        self.assertFalse(Organization.objects.filter(pk=organization_id).exists())
        for model in (Invoice, OrganizationInvitation, OrganizationTransferRequest, OrganizationReassignmentRequest):
            with self.subTest(model=model.__name__):
                self.assertFalse(model.objects.filter(organization_id=organization_id).exists())
        self.assertFalse(Profile.objects.filter(pk=self.profile.pk).exists())
        self.assertEqual(PendingRegistration.objects.filter(email="jane.doe@example.edu").count(), 1)
        self.assertEqual(PendingRegistration.objects.get(email="jane.doe@example.edu").organization_name, "Buckeye College")

    def test_earlier_resolved_registrations_for_the_email_are_replaced(self) -> None:
        PendingRegistration.objects.create(
            email="jane.doe@example.edu",
            organization_name="Rejected draft",
            approval_status=PendingRegistration.ApprovalStatus.rejected,
        )
        PendingRegistration.objects.create(
            email="jane.doe@example.edu",
            organization_name="Approved long ago",
            approval_status=PendingRegistration.ApprovalStatus.approved,
        )

        with patch("members.unapprove.IdentityUser.delete", return_value=True):
            outcome = unapprove_organization(organization_id=self.organization.pk, actor_username="admin")

        rows = PendingRegistration.objects.filter(email="jane.doe@example.edu")
        self.assertEqual([row.pk for row in rows], [outcome.pending_registration_id])
        self.assertEqual(rows.get().approval_status, PendingRegistration.ApprovalStatus.pending)

    def test_profile_is_found_by_organization_name_without_contact_person(self) -> None:
        Organization.objects.filter(pk=self.organization.pk).update(contact_person=None)

        with patch("members.unapprove.IdentityUser.delete", return_value=True):
            outcome = unapprove_organization(organization_id=self.organization.pk, actor_username="admin")

        self.assertTrue(outcome.succeeded)
        self.assertFalse(Profile.objects.filter(pk=self.profile.pk).exists())

    def test_missing_profile(self) -> None:
        Organization.objects.filter(pk=self.organization.pk).update(contact_person=None, name="Unlinked College")

        with self.assertRaises(NoProfileFound) as ctx:
            unapprove_organization(organization_id=self.organization.pk, actor_username="admin")

        self.assertEqual(str(ctx.exception), "No profile found for this organization")
        self.assertTrue(Organization.objects.filter(pk=self.organization.pk).exists())

    def test_missing_organization_and_actor(self) -> None:
        with self.assertRaises(NotFoundError):
            unapprove_organization(organization_id=self.organization.pk + 100, actor_username="admin")
        with self.assertRaises(MissingAdminIdentity):
            unapprove_organization(organization_id=self.organization.pk, actor_username="")

    def test_snapshot_failure_aborts_before_any_delete(self) -> None:
        PendingRegistration.objects.create(email="jane.doe@example.edu", organization_name="Earlier")

        with patch("members.unapprove.insert_pending_registration", side_effect=DatabaseError("constraint")):
            with self.assertLogs("members.unapprove", level="ERROR"):
                with self.assertRaises(SnapshotInsertFailed) as ctx:
                    unapprove_organization(organization_id=self.organization.pk, actor_username="admin")

        self.assertEqual(ctx.exception.step, UnapproveStep.insert_snapshot)
        self.assertTrue(Organization.objects.filter(pk=self.organization.pk).exists())
        self.assertEqual(Invoice.objects.filter(organization=self.organization).count(), 3)
        self.assertEqual(PendingRegistration.objects.get(email="jane.doe@example.edu").organization_name, "Earlier")
        self.assertFalse(AuditLogEntry.objects.exists())

    def test_delete_failure_rolls_back_every_step(self) -> None:
        original_delete_rows = unapprove._delete_rows

        def _fail_on_invitations(outcome, step, queryset, label):
            if label == "invitations":
                raise DatabaseError("lock timeout")
            return original_delete_rows(outcome, step, queryset, label)

        with patch("members.unapprove._delete_rows", side_effect=_fail_on_invitations):
            with self.assertLogs("members.unapprove", level="ERROR"):
                with self.assertRaises(PersistenceError) as ctx:
                    unapprove_organization(organization_id=self.organization.pk, actor_username="admin")

        self.assertEqual(ctx.exception.step, UnapproveStep.delete_invitations)
        self.assertEqual(ctx.exception.as_payload()["step"], "delete_invitations")
        self.assertEqual(Invoice.objects.filter(organization=self.organization).count(), 3)
        self.assertFalse(PendingRegistration.objects.exists())

    def test_identity_failure_reports_partial_failure(self) -> None:
        with patch("members.unapprove.IdentityUser.delete", side_effect=RuntimeError("ipa unavailable")):
            with self.assertLogs("members.unapprove", level="ERROR"):
                outcome = unapprove_organization(organization_id=self.organization.pk, actor_username="admin")

        self.assertEqual(outcome.status, UnapproveStatus.partial_failure)
        self.assertEqual(outcome.failed_step, UnapproveStep.delete_identity)
        self.assertNotIn(UnapproveStep.delete_identity, outcome.completed_steps)
        self.assertIn(UnapproveStep.write_audit_log, outcome.completed_steps)
        self.assertFalse(Organization.objects.filter(pk=self.organization.pk).exists())

        payload = outcome.as_dict()
        self.assertFalse(payload["success"])
        self.assertEqual(payload["failedStep"], "delete_identity")
        self.assertEqual(payload["error"], "ipa unavailable")
        entry = AuditLogEntry.objects.get(action="organization_unapproved")
        self.assertEqual(entry.details["failedStep"], "delete_identity")

    def test_profile_without_login_identity_skips_identity_provider(self) -> None:
        Profile.objects.filter(pk=self.profile.pk).update(user_id="")

        with patch("members.unapprove.IdentityUser.delete") as delete_identity:
            outcome = unapprove_organization(organization_id=self.organization.pk, actor_username="admin")

        delete_identity.assert_not_called()
        self.assertTrue(outcome.succeeded)
        self.assertIn("0 user roles", outcome.deleted_items)
        self.assertTrue(UserRole.objects.filter(user_id="jdoe").exists())
