"""Return an approved organization to the new-registration queue.

The snapshot insert and every row deletion share one database transaction, so
a store failure leaves nothing half-deleted. The FreeIPA identity lives outside
the database and is removed after commit; if that fails the outcome is a
partial failure that names the step and what already succeeded.
"""

import dataclasses
import enum
import logging
from typing import Any

from django.db import DatabaseError, transaction

from members.errors import (
    MissingAdminIdentity,
    NoProfileFound,
    NotFoundError,
    PersistenceError,
    SnapshotInsertFailed,
    ValidationError,
)
from members.identity import IdentityUser
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
from members.registration_queue import (
    clear_pending_registrations,
    insert_pending_registration,
    placeholder_password_hash,
)

logger = logging.getLogger(__name__)


class UnapproveStep(enum.StrEnum):
    fetch_organization = "fetch_organization"
    fetch_profile = "fetch_profile"
    clear_pending_registration = "clear_pending_registration"
    insert_snapshot = "insert_snapshot"
    delete_invoices = "delete_invoices"
    delete_invitations = "delete_invitations"
    delete_transfer_requests = "delete_transfer_requests"
    delete_reassignment_requests = "delete_reassignment_requests"
    delete_user_roles = "delete_user_roles"
    delete_organization = "delete_organization"
    delete_profile = "delete_profile"
    delete_identity = "delete_identity"
    write_audit_log = "write_audit_log"


class UnapproveStatus(enum.StrEnum):
    success = "success"
    partial_failure = "partial_failure"


@dataclasses.dataclass(slots=True)
class UnapproveOutcome:
    organization_id: int
    organization_name: str
    contact_email: str
    status: UnapproveStatus = UnapproveStatus.success
    pending_registration_id: int | None = None
    deleted_items: list[str] = dataclasses.field(default_factory=list)
    completed_steps: list[UnapproveStep] = dataclasses.field(default_factory=list)
    failed_step: UnapproveStep | None = None
    error: str = ""
    audit_log_id: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == UnapproveStatus.success

    def fail(self, step: UnapproveStep, exc: Exception) -> None:
        self.status = UnapproveStatus.partial_failure
        self.failed_step = step
        self.error = str(exc)

    def as_dict(self) -> dict[str, object]:
        if self.succeeded:
            message = f"Organization {self.organization_name!r} unapproved and moved to pending registrations"
        else:
            message = (
                f"Organization {self.organization_name!r} was unapproved but step "
                f"{self.failed_step} failed; manual cleanup is required"
            )
        return {
            "success": self.succeeded,
            "status": str(self.status),
            "message": message,
            "organizationId": self.organization_id,
            "pendingRegistrationId": self.pending_registration_id,
            "deletedItems": list(self.deleted_items),
            "completedSteps": [str(step) for step in self.completed_steps],
            "failedStep": str(self.failed_step) if self.failed_step else None,
            "error": self.error or None,
        }


def resolve_contact_profile(organization: Organization) -> Profile:
    """The organization's contact person, else a profile naming the organization."""

    if organization.contact_person_id is not None:
        profile = Profile.objects.filter(pk=organization.contact_person_id).first()
        if profile is not None:
            return profile

    profile = Profile.objects.filter(organization=organization.name).order_by("id").first()
    if profile is None:
        raise NoProfileFound()
    return profile


def snapshot_values(*, organization: Organization, profile: Profile) -> dict[str, Any]:
    """Profile wins for contact-shaped columns, the organization for the rest."""

    def contact(profile_value: str, organization_value: str) -> str:
        return profile_value or organization_value

    return {
        "first_name": profile.first_name,
        "last_name": profile.last_name,
        "state_association": profile.state_association,
        "address": contact(profile.address, organization.address_line_1),
        "city": contact(profile.city, organization.city),
        "state": contact(profile.state, organization.state),
        "zip": contact(profile.zip, organization.zip_code),
        "primary_contact_title": contact(profile.primary_contact_title, organization.primary_contact_title),
        "is_private_nonprofit": profile.is_private_nonprofit,
        "organization_name": organization.name,
        "student_fte": organization.student_fte,
        "secondary_first_name": organization.secondary_first_name,
        "secondary_last_name": organization.secondary_last_name,
        "secondary_contact_title": organization.secondary_contact_title,
        "secondary_contact_email": organization.secondary_contact_email,
        "student_information_system": organization.student_information_system,
        "financial_system": organization.financial_system,
        "financial_aid": organization.financial_aid,
        "hcm_hr": organization.hcm_hr,
        "payroll_system": organization.payroll_system,
        "purchasing_system": organization.purchasing_system,
        "housing_management": organization.housing_management,
        "learning_management": organization.learning_management,
        "admissions_crm": organization.admissions_crm,
        "alumni_advancement_crm": organization.alumni_advancement_crm,
        "primary_office_apple": organization.primary_office_apple,
        "primary_office_asus": organization.primary_office_asus,
        "primary_office_dell": organization.primary_office_dell,
        "primary_office_hp": organization.primary_office_hp,
        "primary_office_microsoft": organization.primary_office_microsoft,
        "primary_office_other": organization.primary_office_other,
        "primary_office_other_details": organization.primary_office_other_details,
        "other_software_comments": organization.other_software_comments,
    }


def _delete_rows(
    outcome: UnapproveOutcome,
    step: UnapproveStep,
    queryset,
    label: str,
) -> None:
    count, _ = queryset.delete()
    outcome.deleted_items.append(f"{count} {label}")
    outcome.completed_steps.append(step)


def _run_database_steps(
    outcome: UnapproveOutcome,
    *,
    organization: Organization,
    profile: Profile,
    actor_username: str,
) -> PendingRegistration:
    step = UnapproveStep.clear_pending_registration
    try:
        with transaction.atomic():
            clear_pending_registrations(email=profile.email)
            outcome.completed_steps.append(step)

            step = UnapproveStep.insert_snapshot
            try:
                with transaction.atomic():
                    pending = insert_pending_registration(
                        email=profile.email,
                        values={
                            **snapshot_values(organization=organization, profile=profile),
                            "password_hash": placeholder_password_hash("unapproved"),
                            "admin_notes": f"Unapproved by {actor_username}",
                        },
                    )
            except DatabaseError as exc:
                raise SnapshotInsertFailed(f"Failed to create pending registration: {exc}", step=step) from exc
            outcome.pending_registration_id = pending.pk
            outcome.completed_steps.append(step)

            organization_rows = {"organization_id": organization.pk}
            for step, model, label in (
                (UnapproveStep.delete_invoices, Invoice, "invoices"),
                (UnapproveStep.delete_invitations, OrganizationInvitation, "invitations"),
                (UnapproveStep.delete_transfer_requests, OrganizationTransferRequest, "transfer requests"),
                (UnapproveStep.delete_reassignment_requests, OrganizationReassignmentRequest, "reassignment requests"),
            ):
                _delete_rows(outcome, step, model.objects.filter(**organization_rows), label)

            step = UnapproveStep.delete_user_roles
            if profile.user_id:
                _delete_rows(outcome, step, UserRole.objects.filter(user_id=profile.user_id), "user roles")
            else:
                outcome.deleted_items.append("0 user roles")
                outcome.completed_steps.append(step)

            step = UnapproveStep.delete_organization
            Organization.objects.filter(pk=organization.pk).delete()
            outcome.deleted_items.append("organization record")
            outcome.completed_steps.append(step)

            step = UnapproveStep.delete_profile
            _delete_rows(outcome, step, Profile.objects.filter(pk=profile.pk), "profiles")
    except SnapshotInsertFailed:
        _reset_to_lookup_steps(outcome)
        logger.exception("unapprove_organization: snapshot insert failed org_id=%s", organization.pk)
        raise
    except DatabaseError as exc:
        _reset_to_lookup_steps(outcome)
        logger.exception("unapprove_organization: %s failed, rolled back org_id=%s", step, organization.pk)
        raise PersistenceError(f"Unapprove failed at {step}; no changes were saved: {exc}", step=step) from exc
    return pending


def _reset_to_lookup_steps(outcome: UnapproveOutcome) -> None:
    outcome.completed_steps[:] = [UnapproveStep.fetch_organization, UnapproveStep.fetch_profile]
    outcome.deleted_items.clear()
    outcome.pending_registration_id = None


def _delete_identity(outcome: UnapproveOutcome, *, profile: Profile) -> None:
    step = UnapproveStep.delete_identity
    if not profile.user_id:
        outcome.completed_steps.append(step)
        return
    try:
        IdentityUser.delete(profile.user_id)
    except Exception as exc:
        logger.exception(
            "unapprove_organization: identity deletion failed org_id=%s user_id=%s",
            outcome.organization_id,
            profile.user_id,
        )
        outcome.fail(step, exc)
        return
    outcome.deleted_items.append("auth user")
    outcome.completed_steps.append(step)


def _write_audit_entry(outcome: UnapproveOutcome, *, actor_username: str) -> None:
    step = UnapproveStep.write_audit_log
    details = {
        "organizationName": outcome.organization_name,
        "contactEmail": outcome.contact_email,
        "pendingRegistrationId": outcome.pending_registration_id,
        "deletedItems": list(outcome.deleted_items),
        "unapprovedBy": actor_username,
        "completedSteps": [str(s) for s in outcome.completed_steps],
        "failedStep": str(outcome.failed_step) if outcome.failed_step else None,
    }
    try:
        entry = AuditLogEntry.record(
            action="organization_unapproved",
            entity_type="organization",
            entity_id=outcome.organization_id,
            user_id=actor_username,
            details=details,
        )
    except DatabaseError as exc:
        logger.exception("unapprove_organization: audit log write failed org_id=%s", outcome.organization_id)
        if outcome.failed_step is None:
            outcome.fail(step, exc)
        return
    outcome.audit_log_id = entry.pk
    outcome.completed_steps.append(step)


def unapprove_organization(*, organization_id: int, actor_username: str) -> UnapproveOutcome:
    """Snapshot the organization into the registration queue and remove it.

    Raises NotFoundError, NoProfileFound, SnapshotInsertFailed or
    PersistenceError before anything is changed. Returns an outcome whose
    status is ``partial_failure`` when a post-commit step failed.
    """

    actor = str(actor_username or "").strip()
    if not actor:
        raise MissingAdminIdentity()

    organization = Organization.objects.filter(pk=organization_id).first()
    if organization is None:
        raise NotFoundError("Organization not found")

    profile = resolve_contact_profile(organization)
    if not str(profile.email or "").strip():
        raise ValidationError("The organization's contact profile has no email address")

    outcome = UnapproveOutcome(
        organization_id=organization.pk,
        organization_name=organization.name,
        contact_email=profile.email,
        completed_steps=[UnapproveStep.fetch_organization, UnapproveStep.fetch_profile],
    )
    logger.info(
        "unapprove_organization: starting org_id=%s profile_id=%s actor=%s",
        organization.pk,
        profile.pk,
        actor,
    )

    _run_database_steps(outcome, organization=organization, profile=profile, actor_username=actor)
    _delete_identity(outcome, profile=profile)
    _write_audit_entry(outcome, actor_username=actor)

    if outcome.succeeded:
        logger.info(
            "unapprove_organization: done org_id=%s pending_registration_id=%s deleted=%s",
            outcome.organization_id,
            outcome.pending_registration_id,
            outcome.deleted_items,
        )
    else:
        logger.error(
            "unapprove_organization: partial failure org_id=%s failed_step=%s completed=%s",
            outcome.organization_id,
            outcome.failed_step,
            [str(s) for s in outcome.completed_steps],
        )
    return outcome
