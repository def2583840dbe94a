import json
from typing import override

from django.core.management.base import BaseCommand, CommandError

from members.errors import PipelineError
from members.identity import reset_identity_client
from members.unapprove import unapprove_organization


class Command(BaseCommand):
    help = "Move an approved organization back to the pending registration queue."

    @override
    def add_arguments(self, parser) -> None:
        parser.add_argument("organization_id", type=int)
        parser.add_argument(
            "--actor",
            required=True,
            help="Username recorded as the admin who unapproved the organization.",
        )

    @override
    def handle(self, *args, **options) -> None:
        reset_identity_client()
        try:
            outcome = unapprove_organization(
                organization_id=options["organization_id"],
                actor_username=options["actor"],
            )
        except PipelineError as exc:
            raise CommandError(f"{exc.code}: {exc}") from exc

        self.stdout.write(json.dumps(outcome.as_dict(), indent=2))
        if not outcome.succeeded:
            raise CommandError(f"Unapprove finished with a partial failure at {outcome.failed_step}: {outcome.error}")
