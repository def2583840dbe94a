"""Notification dispatcher: templated email plus a per-recipient delivery log."""

import dataclasses
import logging
import re
from collections.abc import Mapping, Sequence

from django.conf import settings
from django.utils import timezone
from post_office.models import EmailTemplate

from members.errors import InvalidRecipient, NotificationError, ValidationError
from members.models import EmailDeliveryLog
from members.templated_email import configured_email_template_names, queue_templated_email

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_TEMPLATE_DATA: dict[str, object] = {
    "user_name": "Member",
    "organization_name": "Your Organization",
    "message": "",
}


@dataclasses.dataclass(frozen=True, slots=True)
class DeliveryResult:
    email_type: str
    recipients: tuple[str, ...]
    email_id: int | None


def normalize_recipients(recipients: str | Sequence[str]) -> list[str]:
    """Strip, de-duplicate and validate recipient addresses.

    Raises ``InvalidRecipient`` on the first malformed address.
    """

    raw = [recipients] if isinstance(recipients, str) else list(recipients)
    normalized: list[str] = []
    seen: set[str] = set()
    for item in raw:
        address = str(item or "").strip()
        if not _EMAIL_PATTERN.match(address):
            raise InvalidRecipient(address)
        key = address.lower()
        if key in seen:
            continue
        seen.add(key)
        normalized.append(address)
    if not normalized:
        raise ValidationError("At least one recipient is required")
    return normalized


def _log_delivery(
    *,
    email_type: str,
    recipients: Sequence[str],
    subject: str,
    success: bool,
    result_data: dict[str, object],
) -> None:
    for recipient in recipients:
        try:
            EmailDeliveryLog.objects.create(
                email_type=email_type,
                recipient=recipient,
                subject=subject or "No Subject",
                success=success,
                result_data=result_data,
            )
        except Exception:
            logger.exception("send_notification: failed to write delivery log type=%s recipient=%s", email_type, recipient)


def send_notification(
    *,
    email_type: str,
    recipients: str | Sequence[str],
    template_data: Mapping[str, object] | None = None,
    subject: str | None = None,
    reply_to: list[str] | None = None,
) -> DeliveryResult:
    """Render the template configured for ``email_type`` and queue it.

    Every attempt is written to the delivery log, one row per recipient.
    Raises ``InvalidRecipient`` before anything is queued, and
    ``NotificationError`` when the template is missing or queueing fails.
    """

    template_name = configured_email_template_names().get(email_type, "")
    if not template_name:
        raise ValidationError(f"Unknown notification type: {email_type}")

    try:
        addresses = normalize_recipients(recipients)
    except InvalidRecipient as exc:
        _log_delivery(
            email_type=email_type,
            recipients=[exc.address or "(blank)"],
            subject=str(subject or ""),
            success=False,
            result_data={"error": exc.message, "code": exc.code},
        )
        raise

    context: dict[str, object] = {
        **DEFAULT_TEMPLATE_DATA,
        "timestamp": timezone.now().isoformat(),
        **dict(template_data or {}),
    }

    try:
        email = queue_templated_email(
            recipients=addresses,
            sender=settings.DEFAULT_FROM_EMAIL,
            template_name=template_name,
            context=context,
            subject=subject,
            reply_to=reply_to,
        )
    except EmailTemplate.DoesNotExist as exc:
        logger.exception("send_notification: template missing type=%s template=%s", email_type, template_name)
        _log_delivery(
            email_type=email_type,
            recipients=addresses,
            subject=str(subject or ""),
            success=False,
            result_data={"error": f"Email template {template_name!r} was not found"},
        )
        raise NotificationError(f"Email template {template_name!r} was not found") from exc
    except Exception as exc:
        logger.exception("send_notification: queueing failed type=%s recipients=%s", email_type, addresses)
        _log_delivery(
            email_type=email_type,
            recipients=addresses,
            subject=str(subject or ""),
            success=False,
            result_data={"error": str(exc)},
        )
        raise NotificationError(f"Failed to send {email_type} email: {exc}") from exc

    email_id = email.pk if isinstance(email.pk, int) else None
    queued_subject = email.subject if isinstance(getattr(email, "subject", None), str) else str(subject or "")
    _log_delivery(
        email_type=email_type,
        recipients=addresses,
        subject=queued_subject,
        success=True,
        result_data={"email_id": email_id},
    )
    logger.info("send_notification: queued type=%s email_id=%s recipients=%d", email_type, email_id, len(addresses))
    return DeliveryResult(email_type=email_type, recipients=tuple(addresses), email_id=email_id)


def try_send_notification(*, log_prefix: str, **kwargs: object) -> tuple[DeliveryResult | None, Exception | None]:
    """Best-effort ``send_notification`` for workflow side effects.

    Failures are logged and returned, never raised.
    """

    try:
        return send_notification(**kwargs), None
    except Exception as exc:
        logger.exception("%s: notification failed type=%s", log_prefix, kwargs.get("email_type"))
        return None, exc
