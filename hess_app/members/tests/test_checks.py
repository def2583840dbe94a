from django.test import SimpleTestCase, override_settings

from members.checks import check_notification_template_names


class NotificationTemplateCheckTests(SimpleTestCase):
    def test_configured_settings_pass(self) -> None:
        self.assertEqual(check_notification_template_names(), [])

    @override_settings(REGISTRATION_UPDATE_APPROVED_EMAIL_TEMPLATE_NAME="", HESS_ADMIN_EMAIL="")
    def test_blank_settings_warn(self) -> None:
        issues = check_notification_template_names()

        self.assertEqual([issue.id for issue in issues], ["members.W001", "members.W002"])
        self.assertEqual(issues[0].obj, "registration_update_approved")
