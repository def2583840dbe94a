from unittest.mock import patch

from django.test import TestCase, override_settings
from post_office.models import Email, EmailTemplate

from members.errors import InvalidRecipient, NotificationError, ValidationError
from members.models import EmailDeliveryLog
from members.notifications import normalize_recipients, send_notification, try_send_notification


class NormalizeRecipientsTests(TestCase):
    def test_deduplicates_case_insensitively(self) -> None:
        self.assertEqual(
            normalize_recipients([" a@example.edu", "A@example.edu", "b@example.edu"]),
            ["a@example.edu", "b@example.edu"],
        )

    def test_rejects_malformed_address(self) -> None:
        with self.assertRaises(InvalidRecipient) as ctx:
            normalize_recipients("not-an-email")

        self.assertEqual(str(ctx.exception), "Invalid email format: not-an-email")
        self.assertEqual(ctx.exception.code, "invalid_recipient")

    def test_empty_list_is_a_validation_error(self) -> None:
        with self.assertRaises(ValidationError):
            normalize_recipients([])


class SendNotificationTests(TestCase):
    def test_queues_email_and_logs_each_recipient(self) -> None:
        result = send_notification(
            email_type="test",
            recipients=["one@example.edu", "two@example.edu"],
            template_data={"user_name": "Alex", "message": "Checking delivery"},
        )

        email = Email.objects.get(pk=result.email_id)
        self.assertEqual(email.to, ["one@example.edu", "two@example.edu"])
        self.assertEqual(email.subject, "HESS Consortium Notification")
        self.assertIn("Checking delivery", email.message)
        self.assertEqual(email.template.name, "test-email")

        logs = EmailDeliveryLog.objects.filter(email_type="test").order_by("recipient")
        self.assertEqual([log.recipient for log in logs], ["one@example.edu", "two@example.edu"])
        self.assertTrue(all(log.success for log in logs))
        self.assertEqual(logs[0].result_data, {"email_id": result.email_id})

    def test_explicit_subject_overrides_template(self) -> None:
        result = send_notification(email_type="test", recipients="one@example.edu", subject="Custom subject")

        self.assertEqual(Email.objects.get(pk=result.email_id).subject, "Custom subject")
        self.assertEqual(EmailDeliveryLog.objects.get().subject, "Custom subject")

    def test_template_values_are_html_escaped(self) -> None:
        result = send_notification(
            email_type="test",
            recipients="one@example.edu",
            template_data={"message": '<img src=x onerror="alert(1)">'},
        )

        html = Email.objects.get(pk=result.email_id).html_message
        self.assertIn("&lt;img src=x onerror=&quot;alert(1)&quot;&gt;", html)
        self.assertNotIn("<img", html)

    def test_default_template_data(self) -> None:
        result = send_notification(email_type="test", recipients="one@example.edu")

        email = Email.objects.get(pk=result.email_id)
        self.assertEqual(email.context["user_name"], "Member")
        self.assertEqual(email.context["organization_name"], "Your Organization")
        self.assertIn("timestamp", email.context)

    def test_invalid_recipient_is_logged_and_raised(self) -> None:
        with self.assertRaises(InvalidRecipient):
            send_notification(email_type="test", recipients="bad address")

        log = EmailDeliveryLog.objects.get()
        self.assertFalse(log.success)
        self.assertEqual(log.recipient, "bad address")
        self.assertEqual(log.subject, "No Subject")
        self.assertEqual(log.result_data["code"], "invalid_recipient")
        self.assertFalse(Email.objects.exists())

    def test_unknown_type(self) -> None:
        with self.assertRaises(ValidationError):
            send_notification(email_type="newsletter", recipients="one@example.edu")

    @override_settings(TEST_EMAIL_TEMPLATE_NAME="does-not-exist")
    def test_missing_template_raises_notification_error(self) -> None:
        with self.assertLogs("members.notifications", level="ERROR"):
            with self.assertRaises(NotificationError) as ctx:
                send_notification(email_type="test", recipients="one@example.edu")

        self.assertTrue(ctx.exception.retryable)
        log = EmailDeliveryLog.objects.get()
        self.assertFalse(log.success)
        self.assertIn("does-not-exist", log.result_data["error"])

    def test_queue_failure_raises_notification_error(self) -> None:
        with patch("members.templated_email.post_office.mail.send", side_effect=RuntimeError("queue down")):
            with self.assertLogs("members.notifications", level="ERROR"):
                with self.assertRaises(NotificationError):
                    send_notification(email_type="test", recipients="one@example.edu")

        self.assertFalse(EmailDeliveryLog.objects.get().success)

    def test_try_send_notification_returns_error_instead_of_raising(self) -> None:
        EmailTemplate.objects.filter(name="registration-update-approved").delete()

        with self.assertLogs("members.notifications", level="ERROR"):
            result, error = try_send_notification(
                log_prefix="test",
                email_type="registration_update_approved",
                recipients=["one@example.edu"],
            )

        self.assertIsNone(result)
        self.assertIsInstance(error, NotificationError)
