import logging
from collections.abc import Mapping
from typing import Any

from django.conf import settings
from django.urls import reverse

from members.errors import NotFoundError, ValidationError
from members.models import Organization, RegistrationUpdateRequest
from members.notifications import normalize_recipients, try_send_notification

logger = logging.getLogger(__name__)


def _review_url(registration_update_request: RegistrationUpdateRequest) -> str:
    path = reverse("registration-update-comparison", args=[registration_update_request.pk])
    base = str(settings.PUBLIC_BASE_URL or "").strip().rstrip("/")
    return f"{base}{path}" if base else path


def submit_registration_update(
    *,
    submitted_email: str,
    registration_data: Mapping[str, Any] | None,
    organization_data: Mapping[str, Any] | None,
    existing_organization_id: int | None = None,
    submission_type: str | None = None,
) -> RegistrationUpdateRequest:
    """Create a pending registration update from a public (unauthenticated) form."""

    log_prefix = "submit_registration_update"

    email = normalize_recipients([submitted_email])[0]

    if registration_data is not None and not isinstance(registration_data, Mapping):
        raise ValidationError("registration_data must be an object")
    if organization_data is not None and not isinstance(organization_data, Mapping):
        raise ValidationError("organization_data must be an object")
    if not registration_data and not organization_data:
        raise ValidationError("Nothing was submitted")

    organization: Organization | None = None
    if existing_organization_id is not None:
        organization = Organization.objects.filter(pk=existing_organization_id).first()
        if organization is None:
            raise NotFoundError("Organization not found")

    raw_type = str(submission_type or "").strip()
    if not raw_type:
        raw_type = (
            RegistrationUpdateRequest.SubmissionType.member_update
            if organization is not None
            else RegistrationUpdateRequest.SubmissionType.new_member
        )
    if raw_type not in RegistrationUpdateRequest.SubmissionType.values:
        raise ValidationError(f"Invalid submission type: {raw_type!r}")
    if organization is None and raw_type != RegistrationUpdateRequest.SubmissionType.new_member:
        raise ValidationError("An existing organization is required for this submission type")

    registration_update_request = RegistrationUpdateRequest.objects.create(
        submitted_email=email,
        submission_type=raw_type,
        registration_data=dict(registration_data or {}),
        organization_data=dict(organization_data or {}),
        existing_organization=organization,
    )
    logger.info(
        "%s: created request_id=%s type=%s org_id=%s",
        log_prefix,
        registration_update_request.pk,
        raw_type,
        organization.pk if organization is not None else None,
    )

    try_send_notification(
        log_prefix=log_prefix,
        email_type="registration_update_submitted",
        recipients=[settings.HESS_ADMIN_EMAIL],
        template_data={
            "submitted_email": email,
            "organization_name": registration_update_request.organization_display_name,
            "submission_type_label": registration_update_request.get_submission_type_display(),
            "review_url": _review_url(registration_update_request),
        },
        reply_to=[email],
    )
    return registration_update_request
