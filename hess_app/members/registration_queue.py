"""Entry point into the new-registration approval queue."""

import logging
import secrets
from collections.abc import Mapping
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from django.utils import timezone

from members.diff import is_unset, normalize_value
from members.errors import ValidationError
from members.field_specs import ValueType
from members.models import PendingRegistration

logger = logging.getLogger(__name__)

# Submitted/organization keys whose PendingRegistration column has another name.
_COLUMN_ALIASES: dict[str, str] = {
    "name": "organization_name",
    "address_line_1": "address",
    "zip_code": "zip",
}

# Set by insert_pending_registration or the database, never copied from a submission.
_ROW_MANAGED_COLUMNS = frozenset({"email", "approval_status", "created_at"})


def placeholder_password_hash(prefix: str) -> str:
    """Unusable password marker; the member resets it after approval."""

    return f"{prefix}_{int(timezone.now().timestamp())}_{secrets.token_hex(6)}"


def _clean_column_value(field, value: Any) -> Any:
    if isinstance(field, models.BooleanField):
        value = normalize_value(value, ValueType.boolean)
    try:
        return field.clean(value, None)
    except DjangoValidationError as exc:
        raise ValidationError(f"Invalid value for {field.verbose_name}: {'; '.join(exc.messages)}") from exc
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid value for {field.verbose_name}: {value!r}") from exc


def pending_registration_values(values: Mapping[str, Any]) -> dict[str, Any]:
    """Map organization/registration keys onto PendingRegistration columns.

    Unknown keys are dropped; unset values fall back to the column default.
    Raises ValidationError when a value does not fit its column.
    """

    columns = {
        field.name: field
        for field in PendingRegistration._meta.concrete_fields
        if not field.primary_key and field.name not in _ROW_MANAGED_COLUMNS
    }
    mapped: dict[str, Any] = {}
    # Aliased keys first so an explicit same-named column wins.
    for key, value in sorted(values.items(), key=lambda item: item[0] not in _COLUMN_ALIASES):
        column = _COLUMN_ALIASES.get(key, key)
        field = columns.get(column)
        if field is None:
            continue
        if is_unset(value):
            mapped[column] = None if field.null else field.get_default()
        else:
            mapped[column] = _clean_column_value(field, value)
    return mapped


def clear_pending_registrations(*, email: str, pending_only: bool = False) -> int:
    """Delete queued registrations for ``email``; returns the row count."""

    normalized_email = str(email or "").strip().lower()
    rows = PendingRegistration.objects.filter(email=normalized_email)
    if pending_only:
        rows = rows.filter(approval_status=PendingRegistration.ApprovalStatus.pending)
    deleted, _ = rows.delete()
    if deleted:
        logger.info("clear_pending_registrations: removed %d row(s) email=%s", deleted, normalized_email)
    return deleted


def insert_pending_registration(*, email: str, values: Mapping[str, Any]) -> PendingRegistration:
    row_values = pending_registration_values(values)
    row_values.update(
        {
            "email": str(email or "").strip().lower(),
            "approval_status": PendingRegistration.ApprovalStatus.pending,
        }
    )
    return PendingRegistration.objects.create(**row_values)


def replace_pending_registration(*, email: str, values: Mapping[str, Any]) -> PendingRegistration:
    """Queue ``values`` as the only pending registration for ``email``.

    Callers own the surrounding transaction.
    """

    clear_pending_registrations(email=email, pending_only=True)
    return insert_pending_registration(email=email, values=values)
