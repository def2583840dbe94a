"""Admin review of registration update requests.

Resolution is at-most-once: the request row is locked and re-checked inside
the transaction, and the status change itself is conditional on the row still
being pending. Notifications and identity sync run only after commit and never
undo a resolution.
"""

import dataclasses
import enum
import logging
from typing import Any

from django.core.exceptions import FieldDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError, models, transaction
from django.utils import timezone

from members.diff import is_unset, normalize_value
from members.errors import (
    ConflictError,
    MissingAdminIdentity,
    NotFoundError,
    PersistenceError,
    PipelineError,
    ValidationError,
)
from members.field_specs import FieldSpec, FieldTarget, ValueType, field_specs_for_target, merge_submitted_fields
from members.identity import IdentityUser
from members.models import AuditLogEntry, Organization, Profile, RegistrationUpdateRequest
from members.notifications import try_send_notification
from members.registration_queue import placeholder_password_hash, replace_pending_registration

logger = logging.getLogger(__name__)


class ReviewAction(enum.StrEnum):
    approve = "approve"
    reject = "reject"


class ReviewState(enum.StrEnum):
    pending = "pending"
    approving = "approving"
    approved = "approved"
    rejecting = "rejecting"
    rejected = "rejected"
    error = "error"


_ALLOWED_TRANSITIONS: dict[ReviewState, frozenset[ReviewState]] = {
    ReviewState.pending: frozenset({ReviewState.approving, ReviewState.rejecting}),
    ReviewState.approving: frozenset({ReviewState.approved, ReviewState.error}),
    ReviewState.rejecting: frozenset({ReviewState.rejected, ReviewState.error}),
    ReviewState.approved: frozenset(),
    ReviewState.rejected: frozenset(),
    ReviewState.error: frozenset(),
}

_STATE_FOR_STATUS: dict[str, ReviewState] = {
    RegistrationUpdateRequest.Status.pending: ReviewState.pending,
    RegistrationUpdateRequest.Status.approved: ReviewState.approved,
    RegistrationUpdateRequest.Status.rejected: ReviewState.rejected,
}


@dataclasses.dataclass(frozen=True, slots=True)
class ResolutionResult:
    request: RegistrationUpdateRequest
    state: ReviewState
    changed_fields: dict[str, list[str]]
    pending_registration_id: int | None = None
    notification_error: Exception | None = None


def _already_resolved(request: RegistrationUpdateRequest) -> ConflictError:
    return ConflictError(f"Registration update request {request.pk} is already {request.status}")


def _coerce_field_value(record: models.Model, spec: FieldSpec, raw: Any) -> Any:
    """Convert a submitted value into what the model column stores."""

    try:
        model_field = record._meta.get_field(spec.key)
    except FieldDoesNotExist as exc:
        raise ValidationError(f"{spec.label} cannot be stored on {record._meta.verbose_name}") from exc

    if is_unset(raw):
        if not model_field.blank:
            raise ValidationError(f"{spec.label} cannot be blank")
        return None if model_field.null else model_field.get_default()

    value = raw
    if spec.value_type == ValueType.boolean:
        value = normalize_value(raw, ValueType.boolean)
        if not isinstance(value, bool):
            raise ValidationError(f"Invalid value for {spec.label}: {raw!r}")

    try:
        return model_field.clean(value, record)
    except DjangoValidationError as exc:
        raise ValidationError(f"Invalid value for {spec.label}: {'; '.join(exc.messages)}") from exc


def apply_submitted_fields(record: models.Model, target: FieldTarget, effective: dict[str, Any]) -> list[str]:
    """Partial update: only keys present in ``effective`` are written."""

    changed: list[str] = []
    for spec in field_specs_for_target(target):
        if spec.key not in effective:
            continue
        value = _coerce_field_value(record, spec, effective[spec.key])
        if getattr(record, spec.key) != value:
            setattr(record, spec.key, value)
            changed.append(spec.key)

    if changed:
        record.save(update_fields=[*changed, "updated_at"])
    return changed


def _primary_contact_name(effective: dict[str, Any], profile: Profile | None) -> str:
    first = str(effective.get("first_name") or (profile.first_name if profile else "") or "").strip()
    last = str(effective.get("last_name") or (profile.last_name if profile else "") or "").strip()
    return f"{first} {last}".strip()


def _try_sync_identity_email(*, profile: Profile, log_prefix: str) -> None:
    """Keep the FreeIPA login email in step with the contact email."""

    if not profile.user_id or not profile.email:
        return
    try:
        identity = IdentityUser.get(profile.user_id)
        if identity is not None and identity.email.lower() != profile.email.lower():
            identity.update_email(profile.email)
    except Exception:
        logger.exception(
            "%s: failed to sync identity email profile_id=%s user_id=%s",
            log_prefix,
            profile.pk,
            profile.user_id,
        )


class RegistrationUpdateReview:
    """Drives one request through pending → approving/rejecting → resolved.

    The object tracks its own progress; the persisted status stays one of
    pending/approved/rejected.
    """

    def __init__(self, registration_update_request: RegistrationUpdateRequest) -> None:
        self.request = registration_update_request
        self.state = _STATE_FOR_STATUS[registration_update_request.status]

    def _transition(self, to_state: ReviewState) -> None:
        if to_state not in _ALLOWED_TRANSITIONS[self.state]:
            if self.state in {ReviewState.approved, ReviewState.rejected}:
                raise _already_resolved(self.request)
            raise ConflictError(f"Cannot move request {self.request.pk} from {self.state} to {to_state}")
        logger.debug("review request_id=%s state %s -> %s", self.request.pk, self.state, to_state)
        self.state = to_state

    def _lock_pending_request(self) -> RegistrationUpdateRequest:
        locked = (
            RegistrationUpdateRequest.objects.select_for_update()
            .filter(pk=self.request.pk)
            .first()
        )
        if locked is None:
            raise NotFoundError("Registration update request not found")
        if locked.status != RegistrationUpdateRequest.Status.pending:
            raise _already_resolved(locked)
        return locked

    def _mark_resolved(
        self,
        *,
        status: RegistrationUpdateRequest.Status,
        actor_username: str,
        admin_notes: str,
    ) -> None:
        reviewed_at = timezone.now()
        updated = RegistrationUpdateRequest.objects.filter(
            pk=self.request.pk,
            status=RegistrationUpdateRequest.Status.pending,
        ).update(
            status=status,
            reviewed_by=actor_username,
            reviewed_at=reviewed_at,
            admin_notes=admin_notes,
        )
        if updated != 1:
            raise ConflictError(f"Registration update request {self.request.pk} was resolved concurrently")

        self.request.status = status
        self.request.reviewed_by = actor_username
        self.request.reviewed_at = reviewed_at
        self.request.admin_notes = admin_notes

    def _run(self, *, in_progress: ReviewState, done: ReviewState, log_prefix: str, work) -> Any:
        self._transition(in_progress)
        try:
            with transaction.atomic():
                self.request = self._lock_pending_request()
                outcome = work()
        except PipelineError:
            self._transition(ReviewState.error)
            raise
        except DatabaseError as exc:
            self._transition(ReviewState.error)
            logger.exception("%s: store write failed request_id=%s", log_prefix, self.request.pk)
            raise PersistenceError(f"Failed to save registration update request {self.request.pk}: {exc}") from exc
        except Exception:
            self._transition(ReviewState.error)
            raise
        self._transition(done)
        return outcome

    def approve(self, *, actor_username: str, admin_notes: str = "") -> ResolutionResult:
        log_prefix = "approve_registration_update"

        def work() -> tuple[dict[str, list[str]], int | None, Profile | None, dict[str, Any]]:
            effective, extra = merge_submitted_fields(
                organization_data=self.request.organization_data,
                registration_data=self.request.registration_data,
            )
            changed_fields: dict[str, list[str]] = {}
            pending_registration_id: int | None = None
            profile: Profile | None = None

            if self.request.existing_organization_id is not None:
                organization = Organization.objects.select_for_update().get(pk=self.request.existing_organization_id)
                changed_fields[FieldTarget.organization] = apply_submitted_fields(
                    organization, FieldTarget.organization, effective
                )
                profile = organization.contact_person
                if profile is not None:
                    profile_changes = apply_submitted_fields(profile, FieldTarget.profile, effective)
                    if profile.organization != organization.name:
                        profile.organization = organization.name
                        profile.save(update_fields=["organization", "updated_at"])
                        profile_changes.append("organization")
                    changed_fields[FieldTarget.profile] = profile_changes
                else:
                    logger.warning(
                        "%s: organization has no contact person; contact fields skipped request_id=%s org_id=%s",
                        log_prefix,
                        self.request.pk,
                        organization.pk,
                    )
            elif self.request.existing_organization_name:
                raise NotFoundError(f"Organization {self.request.existing_organization_name!r} no longer exists")
            else:
                # New member: hand off to the new-registration approval queue.
                pending = replace_pending_registration(
                    email=self.request.submitted_email,
                    values={
                        **effective,
                        "password_hash": placeholder_password_hash("update_request"),
                        "admin_notes": admin_notes,
                    },
                )
                pending_registration_id = pending.pk

            self._mark_resolved(
                status=RegistrationUpdateRequest.Status.approved,
                actor_username=actor_username,
                admin_notes=admin_notes,
            )
            AuditLogEntry.record(
                action="member_registration_approved",
                entity_type="member_registration_update",
                entity_id=self.request.pk,
                user_id=actor_username,
                details={
                    "submitted_email": self.request.submitted_email,
                    "organization_name": self.request.organization_display_name,
                    "submission_type": self.request.submission_type,
                    "admin_notes": admin_notes,
                    "changed_fields": changed_fields,
                    "ignored_fields": sorted(extra),
                    "pending_registration_id": pending_registration_id,
                },
            )
            return changed_fields, pending_registration_id, profile, effective

        changed_fields, pending_registration_id, profile, effective = self._run(
            in_progress=ReviewState.approving,
            done=ReviewState.approved,
            log_prefix=log_prefix,
            work=work,
        )
        logger.info(
            "%s: approved request_id=%s actor=%s changed=%s",
            log_prefix,
            self.request.pk,
            actor_username,
            changed_fields,
        )

        if profile is not None and "email" in changed_fields.get(FieldTarget.profile, []):
            _try_sync_identity_email(profile=profile, log_prefix=log_prefix)

        _sent, notification_error = try_send_notification(
            log_prefix=log_prefix,
            email_type="registration_update_approved",
            recipients=[self.request.submitted_email],
            template_data={
                "organization_name": self.request.organization_display_name,
                "primary_contact_name": _primary_contact_name(effective, profile),
                "custom_message": admin_notes,
            },
        )
        return ResolutionResult(
            request=self.request,
            state=self.state,
            changed_fields=changed_fields,
            pending_registration_id=pending_registration_id,
            notification_error=notification_error,
        )

    def reject(self, *, actor_username: str, admin_notes: str = "") -> ResolutionResult:
        log_prefix = "reject_registration_update"

        def work() -> None:
            self._mark_resolved(
                status=RegistrationUpdateRequest.Status.rejected,
                actor_username=actor_username,
                admin_notes=admin_notes,
            )
            AuditLogEntry.record(
                action="member_registration_rejected",
                entity_type="member_registration_update",
                entity_id=self.request.pk,
                user_id=actor_username,
                details={
                    "submitted_email": self.request.submitted_email,
                    "organization_name": self.request.organization_display_name,
                    "submission_type": self.request.submission_type,
                    "rejection_reason": admin_notes,
                },
            )

        self._run(
            in_progress=ReviewState.rejecting,
            done=ReviewState.rejected,
            log_prefix=log_prefix,
            work=work,
        )
        logger.info("%s: rejected request_id=%s actor=%s", log_prefix, self.request.pk, actor_username)

        effective, _extra = merge_submitted_fields(
            organization_data=self.request.organization_data,
            registration_data=self.request.registration_data,
        )
        _sent, notification_error = try_send_notification(
            log_prefix=log_prefix,
            email_type="registration_update_rejected",
            recipients=[self.request.submitted_email],
            template_data={
                "organization_name": self.request.organization_display_name,
                "primary_contact_name": _primary_contact_name(effective, None),
                "rejection_reason": admin_notes,
            },
        )
        return ResolutionResult(
            request=self.request,
            state=self.state,
            changed_fields={},
            notification_error=notification_error,
        )


def resolve_registration_update(
    *,
    request_id: int,
    action: str,
    actor_username: str,
    admin_notes: str = "",
) -> ResolutionResult:
    """Approve or reject a pending registration update request.

    Raises MissingAdminIdentity, ValidationError (unknown action or bad field
    value), NotFoundError, ConflictError (already resolved) or PersistenceError.
    """

    actor = str(actor_username or "").strip()
    if not actor:
        raise MissingAdminIdentity()

    try:
        review_action = ReviewAction(str(action or "").strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Invalid action: {action!r}. Must be 'approve' or 'reject'") from exc

    registration_update_request = (
        RegistrationUpdateRequest.objects.select_related("existing_organization").filter(pk=request_id).first()
    )
    if registration_update_request is None:
        raise NotFoundError("Registration update request not found")

    review = RegistrationUpdateReview(registration_update_request)
    notes = str(admin_notes or "").strip()
    match review_action:
        case ReviewAction.approve:
            return review.approve(actor_username=actor, admin_notes=notes)
        case ReviewAction.reject:
            return review.reject(actor_username=actor, admin_notes=notes)
