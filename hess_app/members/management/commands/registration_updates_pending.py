from typing import override

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.urls import reverse
from django.utils import timezone
from post_office.models import Email

from members.errors import PipelineError
from members.models import RegistrationUpdateRequest
from members.notifications import send_notification


def _review_url(*, base_url: str, request_id: int) -> str:
    path = reverse("registration-update-comparison", args=[request_id])
    base = str(base_url or "").strip().rstrip("/")
    if not base:
        return path
    return f"{base}{path}"


class Command(BaseCommand):
    help = "Email the HESS admins a digest when registration update requests are waiting for review."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument(
            "--force",
            action="store_true",
            help="Send even if a digest was already queued today.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would be done without sending email.",
        )

    @override
    def handle(self, *args, **options) -> None:
        force: bool = bool(options.get("force"))
        dry_run: bool = bool(options.get("dry_run"))

        pending = list(
            RegistrationUpdateRequest.objects.filter(status=RegistrationUpdateRequest.Status.pending)
            .select_related("existing_organization")
            .order_by("submitted_at")
        )
        if not pending:
            self.stdout.write("No pending registration update requests.")
            return

        recipient = str(settings.HESS_ADMIN_EMAIL or "").strip()
        if not recipient:
            raise CommandError("HESS_ADMIN_EMAIL is not configured")

        if not force:
            already_sent = Email.objects.filter(
                template__name=settings.REGISTRATION_UPDATES_PENDING_EMAIL_TEMPLATE_NAME,
                created__date=timezone.localdate(),
            ).exists()
            if already_sent:
                if dry_run:
                    self.stdout.write("[dry-run] Would skip; digest already queued today.")
                else:
                    self.stdout.write("Skipped; digest already queued today.")
                return

        if dry_run:
            self.stdout.write(f"[dry-run] Would queue 1 digest for {len(pending)} pending request(s) to {recipient}.")
            return

        try:
            send_notification(
                email_type="registration_updates_pending",
                recipients=[recipient],
                template_data={
                    "pending_count": len(pending),
                    "pending_requests": [
                        {
                            "id": row.pk,
                            "organization_name": row.organization_display_name,
                            "submitted_email": row.submitted_email,
                            "submission_type_label": row.get_submission_type_display(),
                            "submitted_at": row.submitted_at.isoformat(),
                            "review_url": _review_url(base_url=settings.PUBLIC_BASE_URL, request_id=row.pk),
                        }
                        for row in pending
                    ],
                },
            )
        except PipelineError as exc:
            raise CommandError(f"Failed to queue pending digest: {exc}") from exc

        self.stdout.write(f"Queued 1 digest for {len(pending)} pending request(s) to {recipient}.")
