import logging

from django.http import HttpRequest, JsonResponse
from django.shortcuts import get_object_or_404, render
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET

from members.approval import resolve_registration_update
from members.comparison import build_request_comparison
from members.errors import PipelineError, ValidationError
from members.models import RegistrationUpdateRequest
from members.permissions import HESS_REVIEW_REGISTRATION_UPDATES, json_permission_required
from members.submissions import submit_registration_update
from members.views_utils import get_username, pipeline_error_response, post_only_404, read_json_body

logger = logging.getLogger(__name__)


def _optional_int(value: object, *, field: str) -> int | None:
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer") from exc


@csrf_exempt
@post_only_404
def submit_update(request: HttpRequest) -> JsonResponse:
    """Public endpoint used by the member portal's registration forms."""

    try:
        payload = read_json_body(request)
        registration_update_request = submit_registration_update(
            submitted_email=str(payload.get("submitted_email") or ""),
            registration_data=payload.get("registration_data"),
            organization_data=payload.get("organization_data"),
            existing_organization_id=_optional_int(
                payload.get("existing_organization_id"), field="existing_organization_id"
            ),
            submission_type=payload.get("submission_type"),
        )
    except PipelineError as exc:
        return pipeline_error_response(exc)

    return JsonResponse(
        {"id": registration_update_request.pk, "status": registration_update_request.status},
        status=201,
    )


@require_GET
@json_permission_required(HESS_REVIEW_REGISTRATION_UPDATES)
def pending_updates(request: HttpRequest) -> JsonResponse:
    rows = (
        RegistrationUpdateRequest.objects.filter(status=RegistrationUpdateRequest.Status.pending)
        .select_related("existing_organization")
        .order_by("submitted_at")
    )
    return JsonResponse(
        {
            "results": [
                {
                    "id": row.pk,
                    "submitted_email": row.submitted_email,
                    "submission_type": row.submission_type,
                    "organization_name": row.organization_display_name,
                    "existing_organization_id": row.existing_organization_id,
                    "submitted_at": row.submitted_at.isoformat(),
                }
                for row in rows
            ]
        }
    )


@require_GET
@json_permission_required(HESS_REVIEW_REGISTRATION_UPDATES)
def update_comparison(request: HttpRequest, request_id: int) -> JsonResponse:
    registration_update_request = get_object_or_404(
        RegistrationUpdateRequest.objects.select_related("existing_organization__contact_person"),
        pk=request_id,
    )
    comparison = build_request_comparison(registration_update_request)
    if request.GET.get("format") == "html":
        return render(request, "members/registration_update_comparison.html", {"comparison": comparison})
    return JsonResponse(comparison.as_dict())


def _resolve(request: HttpRequest, request_id: int, action: str) -> JsonResponse:
    try:
        payload = read_json_body(request)
        result = resolve_registration_update(
            request_id=request_id,
            action=action,
            actor_username=get_username(request),
            admin_notes=str(payload.get("admin_notes") or ""),
        )
    except PipelineError as exc:
        logger.info("%s registration update failed request_id=%s code=%s", action, request_id, exc.code)
        return pipeline_error_response(exc)

    resolved = result.request
    return JsonResponse(
        {
            "success": True,
            "id": resolved.pk,
            "status": resolved.status,
            "reviewed_by": resolved.reviewed_by,
            "reviewed_at": resolved.reviewed_at.isoformat() if resolved.reviewed_at else None,
            "admin_notes": resolved.admin_notes,
            "changed_fields": result.changed_fields,
            "pending_registration_id": result.pending_registration_id,
            "notification_sent": result.notification_error is None,
        }
    )


@post_only_404
@json_permission_required(HESS_REVIEW_REGISTRATION_UPDATES)
def approve_update(request: HttpRequest, request_id: int) -> JsonResponse:
    return _resolve(request, request_id, "approve")


@post_only_404
@json_permission_required(HESS_REVIEW_REGISTRATION_UPDATES)
def reject_update(request: HttpRequest, request_id: int) -> JsonResponse:
    return _resolve(request, request_id, "reject")
