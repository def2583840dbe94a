from django.db import migrations

_TEMPLATES: dict[str, dict[str, str]] = {
    "registration-update-submitted": {
        "description": "Tell the membership team a registration update is waiting for review",
        "subject": "Registration update submitted: {{ organization_name }}",
        "html_content": (
            "<p>Hello HESS membership team,</p>\n"
            "<p>{{ submitted_email }} submitted a {{ submission_type_label|lower }} for "
            "<strong>{{ organization_name }}</strong>.</p>\n"
            "{% if review_url %}<p><a href=\"{{ review_url }}\">Review the request</a></p>\n{% endif %}"
            "<p><em>HESS Consortium</em></p>"
        ),
        "content": (
            "Hello HESS membership team,\n\n"
            "{{ submitted_email }} submitted a {{ submission_type_label|lower }} for {{ organization_name }}.\n"
            "{% if review_url %}\nReview the request: {{ review_url }}\n{% endif %}\n"
            "-- HESS Consortium\n"
        ),
    },
    "registration-update-approved": {
        "description": "Tell the submitter their registration update was approved",
        "subject": "Your HESS Consortium registration update was approved",
        "html_content": (
            "<p>Hello {{ primary_contact_name|default:user_name }},</p>\n"
            "<p>The registration update for <strong>{{ organization_name }}</strong> has been approved "
            "and is now reflected in the member portal.</p>\n"
            "{% if custom_message %}<p>{{ custom_message }}</p>\n{% endif %}"
            "<p><em>HESS Consortium</em></p>"
        ),
        "content": (
            "Hello {{ primary_contact_name|default:user_name }},\n\n"
            "The registration update for {{ organization_name }} has been approved "
            "and is now reflected in the member portal.\n"
            "{% if custom_message %}\n{{ custom_message }}\n{% endif %}\n"
            "-- HESS Consortium\n"
        ),
    },
    "registration-update-rejected": {
        "description": "Tell the submitter their registration update was not accepted",
        "subject": "Your HESS Consortium registration update",
        "html_content": (
            "<p>Hello {{ primary_contact_name|default:user_name }},</p>\n"
            "<p>The registration update for <strong>{{ organization_name }}</strong> was not accepted.</p>\n"
            "{% if rejection_reason %}<p>Reason: {{ rejection_reason }}</p>\n{% endif %}"
            "<p>Reply to this email if you have questions.</p>\n"
            "<p><em>HESS Consortium</em></p>"
        ),
        "content": (
            "Hello {{ primary_contact_name|default:user_name }},\n\n"
            "The registration update for {{ organization_name }} was not accepted.\n"
            "{% if rejection_reason %}\nReason: {{ rejection_reason }}\n{% endif %}\n"
            "Reply to this email if you have questions.\n\n"
            "-- HESS Consortium\n"
        ),
    },
    "registration-updates-pending": {
        "description": "Daily digest of registration updates waiting for review",
        "subject": "{{ pending_count }} registration update{{ pending_count|pluralize }} awaiting review",
        "html_content": (
            "<p>Hello HESS membership team,</p>\n"
            "<p>There {{ pending_count|pluralize:'is,are' }} <strong>{{ pending_count }}</strong> "
            "registration update{{ pending_count|pluralize }} waiting for review:</p>\n"
            "<ul>\n"
            "{% for item in pending_requests %}"
            "<li>{{ item.organization_name }} ({{ item.submitted_email }}, {{ item.submission_type_label }})</li>"
            "{% endfor %}"
            "</ul>\n"
            "<p><em>HESS Consortium</em></p>"
        ),
        "content": (
            "Hello HESS membership team,\n\n"
            "There {{ pending_count|pluralize:'is,are' }} {{ pending_count }} registration "
            "update{{ pending_count|pluralize }} waiting for review:\n"
            "{% for item in pending_requests %}"
            "- {{ item.organization_name }} ({{ item.submitted_email }}, {{ item.submission_type_label }})\n"
            "{% endfor %}\n"
            "-- HESS Consortium\n"
        ),
    },
    "test-email": {
        "description": "Operator test message for checking mail delivery",
        "subject": "",
        "html_content": (
            "<p>Hello {{ user_name }},</p>\n"
            "<p>This is a test message from the HESS Consortium portal sent at {{ timestamp }}.</p>\n"
            "{% if message %}<p>{{ message }}</p>\n{% endif %}"
        ),
        "content": (
            "Hello {{ user_name }},\n\n"
            "This is a test message from the HESS Consortium portal sent at {{ timestamp }}.\n"
            "{% if message %}\n{{ message }}\n{% endif %}"
        ),
    },
}


def create_notification_email_templates(apps, schema_editor) -> None:
    EmailTemplate = apps.get_model("post_office", "EmailTemplate")

    for name, fields in _TEMPLATES.items():
        EmailTemplate.objects.update_or_create(name=name, defaults=fields)


def delete_notification_email_templates(apps, schema_editor) -> None:
    EmailTemplate = apps.get_model("post_office", "EmailTemplate")
    EmailTemplate.objects.filter(name__in=list(_TEMPLATES)).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("members", "0001_initial"),
        ("post_office", "0013_email_recipient_delivery_status_alter_log_status"),
    ]

    operations = [
        migrations.RunPython(
            create_notification_email_templates,
            delete_notification_email_templates,
        ),
    ]
