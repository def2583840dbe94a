"""Field-by-field comparison of a stored record against a submitted update."""

import dataclasses
import datetime
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from django.utils.dateparse import parse_date

from members.field_specs import FieldCategory, FieldSpec, ValueType

_TRUE_STRINGS = frozenset({"true", "yes", "y", "1", "on"})
_FALSE_STRINGS = frozenset({"false", "no", "n", "0", "off"})


def is_unset(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    if isinstance(value, (list, tuple)) and not value:
        return True
    return False


def as_decimal(value: object) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, Decimal)):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = value.strip().replace(",", "").removeprefix("$")
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return None
    return None


def normalize_value(value: object, value_type: ValueType) -> object:
    """Canonical form used only for equality; display keeps the raw value."""

    if is_unset(value):
        return None

    match value_type:
        case ValueType.boolean:
            if isinstance(value, bool):
                return value
            lowered = str(value).strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            return lowered
        case ValueType.array:
            items = value if isinstance(value, (list, tuple)) else str(value).split(",")
            return tuple(str(item).strip() for item in items if not is_unset(item))
        case ValueType.currency | ValueType.number:
            number = as_decimal(value)
            return number.normalize() if number is not None else str(value).strip()
        case ValueType.date:
            if isinstance(value, datetime.datetime):
                return value.date()
            if isinstance(value, datetime.date):
                return value
            text = str(value).strip()
            try:
                return parse_date(text) or text
            except ValueError:
                return text
        case ValueType.email:
            return str(value).strip().lower()
        case ValueType.phone:
            digits = "".join(ch for ch in str(value) if ch.isdigit())
            return digits or str(value).strip()
        case ValueType.text | ValueType.badge:
            # Identifiers like ZIP codes keep their leading zeros.
            return str(value).strip()


@dataclasses.dataclass(frozen=True, slots=True)
class ChangeEntry:
    field: str
    label: str
    old_value: Any
    new_value: Any
    value_type: ValueType
    category: FieldCategory

    @property
    def changed(self) -> bool:
        return normalize_value(self.old_value, self.value_type) != normalize_value(self.new_value, self.value_type)


def compute_changes(
    original: Mapping[str, Any],
    updated: Mapping[str, Any],
    field_specs: Iterable[FieldSpec],
) -> list[ChangeEntry]:
    """Return exactly one ``ChangeEntry`` per spec, in spec order.

    Filtering down to changed entries is the presenter's job.
    """

    return [
        ChangeEntry(
            field=spec.key,
            label=spec.label,
            old_value=original.get(spec.key),
            new_value=updated.get(spec.key),
            value_type=spec.value_type,
            category=spec.category,
        )
        for spec in field_specs
    ]


def changed_entries(entries: Sequence[ChangeEntry]) -> list[ChangeEntry]:
    return [entry for entry in entries if entry.changed]


def group_by_category(entries: Iterable[ChangeEntry]) -> dict[FieldCategory, list[ChangeEntry]]:
    groups: dict[FieldCategory, list[ChangeEntry]] = {category: [] for category in FieldCategory}
    for entry in entries:
        groups[entry.category].append(entry)
    return groups
