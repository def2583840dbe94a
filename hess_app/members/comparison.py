from __future__ import annotations

import dataclasses
import datetime
from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from members.diff import (
    ChangeEntry,
    as_decimal,
    changed_entries,
    compute_changes,
    group_by_category,
    is_unset,
    normalize_value,
)
from members.field_specs import (
    CATEGORY_TITLES,
    FieldCategory,
    FieldTarget,
    ValueType,
    field_specs_for_target,
    merge_submitted_fields,
)
from members.models import Organization, Profile, RegistrationUpdateRequest

NOT_SET = "Not set"


def _format_currency(value: object) -> str:
    number = as_decimal(value)
    if number is None:
        return str(value)
    if number == number.to_integral_value():
        return f"${int(number):,}"
    return f"${number:,.2f}"


def format_display_value(value: Any, value_type: ValueType) -> str:
    if is_unset(value):
        return NOT_SET
    if value_type == ValueType.boolean:
        value = normalize_value(value, ValueType.boolean)
    if isinstance(value, bool):
        return "Yes" if value else "No"
    match value_type:
        case ValueType.array if isinstance(value, (list, tuple)):
            return ", ".join(str(item) for item in value)
        case ValueType.currency:
            return _format_currency(value)
        case ValueType.date if isinstance(value, datetime.date):
            return value.isoformat()
        case _:
            if isinstance(value, Decimal):
                return f"{value:f}"
            return str(value)


@dataclasses.dataclass(frozen=True, slots=True)
class PresentedChange:
    field: str
    label: str
    value_type: ValueType
    old_display: str
    new_display: str
    old_is_unset: bool
    new_is_unset: bool

    @classmethod
    def from_entry(cls, entry: ChangeEntry) -> PresentedChange:
        return cls(
            field=entry.field,
            label=entry.label,
            value_type=entry.value_type,
            old_display=format_display_value(entry.old_value, entry.value_type),
            new_display=format_display_value(entry.new_value, entry.value_type),
            old_is_unset=is_unset(entry.old_value),
            new_is_unset=is_unset(entry.new_value),
        )

    def as_dict(self) -> dict[str, object]:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True, slots=True)
class ComparisonSection:
    category: FieldCategory
    title: str
    changes: tuple[PresentedChange, ...]

    @property
    def change_count(self) -> int:
        return len(self.changes)

    @property
    def header(self) -> str:
        noun = "change" if self.change_count == 1 else "changes"
        return f"{self.title} ({self.change_count} {noun})"

    def as_dict(self) -> dict[str, object]:
        return {
            "category": str(self.category),
            "title": self.title,
            "change_count": self.change_count,
            "changes": [change.as_dict() for change in self.changes],
        }


def present_changes(groups: Mapping[FieldCategory, Sequence[ChangeEntry]]) -> list[ComparisonSection]:
    """Sections for groups with at least one changed entry, in category order."""

    sections: list[ComparisonSection] = []
    for category in FieldCategory:
        changed = changed_entries(groups.get(category, ()))
        if not changed:
            continue
        sections.append(
            ComparisonSection(
                category=category,
                title=CATEGORY_TITLES[category],
                changes=tuple(PresentedChange.from_entry(entry) for entry in changed),
            )
        )
    return sections


@dataclasses.dataclass(frozen=True, slots=True)
class RequestComparison:
    request: RegistrationUpdateRequest
    entries: tuple[ChangeEntry, ...]
    sections: tuple[ComparisonSection, ...]
    extra_fields: dict[str, Any]

    def as_dict(self) -> dict[str, object]:
        return {
            "request_id": self.request.pk,
            "status": self.request.status,
            "submission_type": self.request.submission_type,
            "submitted_email": self.request.submitted_email,
            "organization_name": self.request.organization_display_name,
            "sections": [section.as_dict() for section in self.sections],
            "extra_fields": sorted(self.extra_fields),
        }


def record_values(record: Organization | Profile | None, target: FieldTarget) -> dict[str, Any]:
    if record is None:
        return {}
    return {spec.key: getattr(record, spec.key) for spec in field_specs_for_target(target)}


def build_request_comparison(request: RegistrationUpdateRequest) -> RequestComparison:
    """Compare the live organization/profile against what approval would write."""

    effective, extra = merge_submitted_fields(
        organization_data=request.organization_data,
        registration_data=request.registration_data,
    )

    organization = request.existing_organization
    profile = organization.contact_person if organization is not None else None

    entries: list[ChangeEntry] = []
    for target, record in ((FieldTarget.organization, organization), (FieldTarget.profile, profile)):
        # Approval skips contact fields when the organization has no contact person.
        if target == FieldTarget.profile and organization is not None and profile is None:
            continue
        original = record_values(record, target)
        updated = {**original, **effective}
        entries.extend(compute_changes(original, updated, field_specs_for_target(target)))

    sections = present_changes(group_by_category(entries))
    return RequestComparison(
        request=request,
        entries=tuple(entries),
        sections=tuple(sections),
        extra_fields=extra,
    )
