"""Known organization/profile field keys and how they are labelled and compared.

Submitted registration payloads are free-form JSON maps. The keys below are the
ones the member portal writes; anything else lands in ``SubmittedFields.extra``
and is shown to reviewers but never applied.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterable, Mapping
from typing import Any


class ValueType(enum.StrEnum):
    text = "text"
    boolean = "boolean"
    array = "array"
    badge = "badge"
    email = "email"
    phone = "phone"
    currency = "currency"
    number = "number"
    date = "date"


class FieldCategory(enum.StrEnum):
    organization = "organization"
    contact = "contact"
    software_systems = "software_systems"
    hardware = "hardware"


class FieldTarget(enum.StrEnum):
    organization = "organization"
    profile = "profile"


CATEGORY_TITLES: dict[FieldCategory, str] = {
    FieldCategory.organization: "Organization Details",
    FieldCategory.contact: "Contact Information",
    FieldCategory.software_systems: "Software Systems",
    FieldCategory.hardware: "Hardware",
}


@dataclasses.dataclass(frozen=True, slots=True)
class FieldSpec:
    key: str
    label: str
    value_type: ValueType = ValueType.text
    category: FieldCategory = FieldCategory.organization
    target: FieldTarget = FieldTarget.organization


def _specs(
    category: FieldCategory,
    rows: Iterable[tuple[str, str] | tuple[str, str, ValueType]],
    *,
    target: FieldTarget = FieldTarget.organization,
) -> tuple[FieldSpec, ...]:
    specs: list[FieldSpec] = []
    for row in rows:
        key, label, *rest = row
        value_type = rest[0] if rest else ValueType.text
        specs.append(FieldSpec(key=key, label=label, value_type=value_type, category=category, target=target))
    return tuple(specs)


ORGANIZATION_FIELD_SPECS: tuple[FieldSpec, ...] = _specs(
    FieldCategory.organization,
    [
        ("name", "Organization Name"),
        ("address_line_1", "Address Line 1"),
        ("address_line_2", "Address Line 2"),
        ("city", "City"),
        ("state", "State"),
        ("zip_code", "ZIP Code"),
        ("country", "Country"),
        ("phone", "Phone", ValueType.phone),
        ("email", "Email", ValueType.email),
        ("website", "Website"),
        ("student_fte", "Student FTE", ValueType.number),
        ("annual_fee_amount", "Annual Fee", ValueType.currency),
        ("organization_type", "Organization Type", ValueType.badge),
        ("membership_status", "Membership Status", ValueType.badge),
        ("membership_start_date", "Membership Start Date", ValueType.date),
        ("membership_end_date", "Membership End Date", ValueType.date),
        ("notes", "Notes"),
    ],
)

ORGANIZATION_CONTACT_FIELD_SPECS: tuple[FieldSpec, ...] = _specs(
    FieldCategory.contact,
    [
        ("primary_contact_title", "Primary Contact Title"),
        ("secondary_first_name", "Secondary First Name"),
        ("secondary_last_name", "Secondary Last Name"),
        ("secondary_contact_title", "Secondary Contact Title"),
        ("secondary_contact_email", "Secondary Contact Email", ValueType.email),
        ("secondary_contact_phone", "Secondary Contact Phone", ValueType.phone),
    ],
)

PROFILE_FIELD_SPECS: tuple[FieldSpec, ...] = _specs(
    FieldCategory.contact,
    [
        ("first_name", "Primary Contact First Name"),
        ("last_name", "Primary Contact Last Name"),
        ("email", "Primary Contact Email", ValueType.email),
        ("phone", "Primary Contact Phone", ValueType.phone),
        ("is_private_nonprofit", "Private Non-Profit", ValueType.boolean),
    ],
    target=FieldTarget.profile,
)

SOFTWARE_SYSTEM_FIELD_SPECS: tuple[FieldSpec, ...] = _specs(
    FieldCategory.software_systems,
    [
        ("student_information_system", "Student Information System"),
        ("financial_system", "Financial System"),
        ("financial_aid", "Financial Aid System"),
        ("hcm_hr", "HCM/HR System"),
        ("payroll_system", "Payroll System"),
        ("purchasing_system", "Purchasing System"),
        ("housing_management", "Housing Management System"),
        ("learning_management", "Learning Management System"),
        ("admissions_crm", "Admissions CRM"),
        ("alumni_advancement_crm", "Alumni/Advancement CRM"),
        ("payment_platform", "Payment Platform"),
        ("meal_plan_management", "Meal Plan Management"),
        ("identity_management", "Identity Management"),
        ("door_access", "Door Access"),
        ("document_management", "Document Management"),
        ("voip", "VoIP"),
        ("network_infrastructure", "Network Infrastructure"),
        ("other_software_comments", "Software Comments"),
    ],
)

HARDWARE_FIELD_SPECS: tuple[FieldSpec, ...] = _specs(
    FieldCategory.hardware,
    [
        ("primary_office_apple", "Apple Products", ValueType.boolean),
        ("primary_office_asus", "ASUS Products", ValueType.boolean),
        ("primary_office_dell", "Dell Products", ValueType.boolean),
        ("primary_office_hp", "HP Products", ValueType.boolean),
        ("primary_office_microsoft", "Microsoft Products", ValueType.boolean),
        ("primary_office_other", "Other Hardware", ValueType.boolean),
        ("primary_office_other_details", "Other Hardware Details"),
    ],
)

ALL_FIELD_SPECS: tuple[FieldSpec, ...] = (
    *ORGANIZATION_FIELD_SPECS,
    *ORGANIZATION_CONTACT_FIELD_SPECS,
    *PROFILE_FIELD_SPECS,
    *SOFTWARE_SYSTEM_FIELD_SPECS,
    *HARDWARE_FIELD_SPECS,
)

KNOWN_FIELD_KEYS: frozenset[str] = frozenset(spec.key for spec in ALL_FIELD_SPECS)

def field_specs_for_target(target: FieldTarget) -> tuple[FieldSpec, ...]:
    return tuple(spec for spec in ALL_FIELD_SPECS if spec.target == target)


@dataclasses.dataclass(frozen=True, slots=True)
class SubmittedFields:
    """A submitted payload split into registry-known keys and unknown extras."""

    known: dict[str, Any]
    extra: dict[str, Any]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> SubmittedFields:
        known: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for raw_key, value in (data or {}).items():
            key = str(raw_key)
            if key in KNOWN_FIELD_KEYS:
                known[key] = value
            else:
                extra[key] = value
        return cls(known=known, extra=extra)


def merge_submitted_fields(
    *,
    organization_data: Mapping[str, Any] | None,
    registration_data: Mapping[str, Any] | None,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return ``(effective, extra)`` for a registration update submission.

    ``effective`` holds, for each known key, the organization-shaped value when
    one was submitted, otherwise the same-named registration value. Keys absent
    from both maps are absent from the result.
    """

    from_registration = SubmittedFields.from_mapping(registration_data)
    from_organization = SubmittedFields.from_mapping(organization_data)

    effective = {**from_registration.known, **from_organization.known}
    extra = {**from_registration.extra, **from_organization.extra}
    return effective, extra
