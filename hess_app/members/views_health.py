import logging

from django.db import DatabaseError, connection
from django.http import HttpRequest, JsonResponse
from django.views.decorators.http import require_GET
from post_office.models import EmailTemplate

from members.templated_email import configured_email_template_names

logger = logging.getLogger(__name__)


def missing_notification_templates() -> list[str]:
    """Configured notification template names with no EmailTemplate row."""

    wanted = {name for name in configured_email_template_names().values() if str(name or "").strip()}
    present = set(EmailTemplate.objects.filter(name__in=wanted).values_list("name", flat=True))
    return sorted(wanted - present)


@require_GET
def healthz(_request: HttpRequest) -> JsonResponse:
    return JsonResponse({"status": "ok"})


@require_GET
def readyz(_request: HttpRequest) -> JsonResponse:
    """Ready once the database answers and every notification template is seeded."""

    try:
        connection.ensure_connection()
        missing = missing_notification_templates()
    except (DatabaseError, OSError) as exc:
        logger.exception("readyz: database unavailable")
        return JsonResponse({"status": "not ready", "database": "error", "error": str(exc)}, status=503)

    if missing:
        logger.warning("readyz: notification templates missing names=%s", missing)
        return JsonResponse(
            {"status": "not ready", "database": "ok", "email_templates": "missing", "missing": missing},
            status=503,
        )
    return JsonResponse({"status": "ready", "database": "ok", "email_templates": "ok"})
