import logging
from collections.abc import Mapping

import post_office.mail
from django.conf import settings
from django.template import engines
from post_office.models import Email, EmailTemplate

logger = logging.getLogger(__name__)


def configured_email_template_names() -> dict[str, str]:
    """Return notification type → EmailTemplate name, as configured in settings.

    Kept explicit (no reflection over settings) so the list is easy to audit.
    """

    return {
        "registration_update_submitted": settings.REGISTRATION_UPDATE_SUBMITTED_EMAIL_TEMPLATE_NAME,
        "registration_update_approved": settings.REGISTRATION_UPDATE_APPROVED_EMAIL_TEMPLATE_NAME,
        "registration_update_rejected": settings.REGISTRATION_UPDATE_REJECTED_EMAIL_TEMPLATE_NAME,
        "registration_updates_pending": settings.REGISTRATION_UPDATES_PENDING_EMAIL_TEMPLATE_NAME,
        "test": settings.TEST_EMAIL_TEMPLATE_NAME,
    }


def render_templated_email(
    *,
    template: EmailTemplate,
    context: Mapping[str, object],
) -> tuple[str, str, str]:
    """Render (subject, text, html) with the post_office template engine.

    Django's engine autoescapes interpolated values in the HTML part, so
    member-supplied text cannot inject markup into the outgoing email.
    """

    template_engine = engines["post_office"]
    rendered_subject = template_engine.from_string(template.subject or "").render(dict(context))
    rendered_text = template_engine.from_string(template.content or "").render(dict(context))
    rendered_html = template_engine.from_string(template.html_content or "").render(dict(context))
    return rendered_subject.strip(), rendered_text, rendered_html


def queue_templated_email(
    *,
    recipients: list[str],
    sender: str,
    template_name: str,
    context: Mapping[str, object],
    subject: str | None = None,
    cc: list[str] | None = None,
    bcc: list[str] | None = None,
    reply_to: list[str] | None = None,
) -> Email:
    """Render an EmailTemplate now and queue the result with post_office.

    Rendering up front keeps delivery-time template failures from blocking the
    queue. ``subject`` overrides the template subject; when both are blank the
    configured default notification subject is used.
    """

    template = EmailTemplate.objects.get(name=template_name)
    rendered_subject, rendered_text, rendered_html = render_templated_email(template=template, context=context)
    effective_subject = str(subject or "").strip() or rendered_subject or settings.DEFAULT_NOTIFICATION_SUBJECT

    headers: dict[str, str] | None = None
    if reply_to:
        headers = {"Reply-To": ", ".join(reply_to)}

    email = post_office.mail.send(
        recipients=recipients,
        sender=sender,
        subject=effective_subject,
        message=rendered_text,
        html_message=rendered_html,
        render_on_delivery=False,
        cc=cc,
        bcc=bcc,
        headers=headers,
    )

    # Keep the link to the EmailTemplate and its context for the admin UI.
    try:
        email.template = template
        email.context = dict(context)
        email.save(update_fields=["template", "context"])
    except Exception:
        logger.exception("Failed to persist post_office template/context metadata template=%s", template_name)

    return email
