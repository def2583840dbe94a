from django.conf import settings
from django.core.checks import Warning, register

from members.templated_email import configured_email_template_names


@register()
def check_notification_template_names(_app_configs=None, **_kwargs) -> list[Warning]:
    issues: list[Warning] = []
    for email_type, template_name in configured_email_template_names().items():
        if not str(template_name or "").strip():
            issues.append(
                Warning(
                    f"No email template is configured for notification type {email_type!r}.",
                    hint="Set the matching *_EMAIL_TEMPLATE_NAME setting.",
                    obj=email_type,
                    id="members.W001",
                )
            )
    if not str(settings.HESS_ADMIN_EMAIL or "").strip():
        issues.append(
            Warning(
                "HESS_ADMIN_EMAIL is empty; new registration updates will not notify anyone.",
                id="members.W002",
            )
        )
    return issues
