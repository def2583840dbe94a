from django.test import TestCase, override_settings
from post_office.models import Email

from members.errors import InvalidRecipient, NotFoundError, ValidationError
from members.models import RegistrationUpdateRequest
from members.submissions import submit_registration_update
from members.tests.utils_test_data import create_organization


class SubmitRegistrationUpdateTests(TestCase):
    @override_settings(PUBLIC_BASE_URL="https://portal.example.org/")
    def test_member_update_is_stored_and_admins_notified(self) -> None:
        organization = create_organization()

        request = submit_registration_update(
            submitted_email=" Jane.Doe@Example.edu ",
            registration_data={"first_name": "Jane"},
            organization_data={"city": "Dayton"},
            existing_organization_id=organization.pk,
        )

        self.assertEqual(request.status, RegistrationUpdateRequest.Status.pending)
        self.assertEqual(request.submitted_email, "jane.doe@example.edu")
        self.assertEqual(request.submission_type, RegistrationUpdateRequest.SubmissionType.member_update)
        self.assertEqual(request.existing_organization_name, "Buckeye College")

        email = Email.objects.get(template__name="registration-update-submitted")
        self.assertEqual(email.to, ["membership@hessconsortium.org"])
        self.assertEqual(email.headers, {"Reply-To": "jane.doe@example.edu"})
        self.assertIn(f"https://portal.example.org/registration-updates/{request.pk}/comparison/", email.message)

    def test_new_member_type_is_inferred(self) -> None:
        request = submit_registration_update(
            submitted_email="new@college.example.edu",
            registration_data=None,
            organization_data={"name": "New College"},
        )

        self.assertEqual(request.submission_type, RegistrationUpdateRequest.SubmissionType.new_member)
        self.assertTrue(request.is_new_member)
        self.assertEqual(request.organization_display_name, "New College")

    def test_invalid_submissions(self) -> None:
        with self.assertRaises(InvalidRecipient):
            submit_registration_update(submitted_email="nope", registration_data={"a": 1}, organization_data=None)
        with self.assertRaises(ValidationError):
            submit_registration_update(submitted_email="a@example.edu", registration_data={}, organization_data={})
        with self.assertRaises(ValidationError):
            submit_registration_update(
                submitted_email="a@example.edu",
                registration_data={"city": "Dayton"},
                organization_data=None,
                submission_type="member_update",
            )
        with self.assertRaises(NotFoundError):
            submit_registration_update(
                submitted_email="a@example.edu",
                registration_data={"city": "Dayton"},
                organization_data=None,
                existing_organization_id=999,
            )

        self.assertFalse(RegistrationUpdateRequest.objects.exists())
