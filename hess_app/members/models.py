from __future__ import annotations

import logging
from typing import override

from django.db import models
from django.db.models import Q

logger = logging.getLogger(__name__)


def _text(max_length: int = 255) -> models.CharField:
    return models.CharField(max_length=max_length, blank=True, default="")


class Profile(models.Model):
    # Username of the member's FreeIPA login identity.
    user_id = models.CharField(max_length=255, blank=True, default="", db_index=True)
    first_name = _text()
    last_name = _text()
    email = models.EmailField(blank=True, default="", db_index=True)
    phone = _text(64)
    organization = models.CharField(max_length=255, blank=True, default="", db_index=True)
    state_association = _text()
    address = _text()
    city = _text()
    state = _text(64)
    zip = _text(32)
    primary_contact_title = _text()
    is_private_nonprofit = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("last_name", "first_name", "id")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return self.full_name or self.email or f"profile:{self.pk}"


class Organization(models.Model):
    class MembershipStatus(models.TextChoices):
        active = "active", "Active"
        pending = "pending", "Pending"
        expired = "expired", "Expired"
        cancelled = "cancelled", "Cancelled"

    name = models.CharField(max_length=255, db_index=True)
    address_line_1 = _text()
    address_line_2 = _text()
    city = _text()
    state = _text(64)
    zip_code = _text(32)
    country = models.CharField(max_length=64, blank=True, default="United States")
    phone = _text(64)
    email = models.EmailField(blank=True, default="")
    website = _text(2048)
    notes = models.TextField(blank=True, default="")
    organization_type = _text(64)

    student_fte = models.PositiveIntegerField(blank=True, null=True)
    annual_fee_amount = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    membership_status = models.CharField(
        max_length=16,
        choices=MembershipStatus.choices,
        default=MembershipStatus.pending,
        db_index=True,
    )
    membership_start_date = models.DateField(blank=True, null=True)
    membership_end_date = models.DateField(blank=True, null=True)

    contact_person = models.ForeignKey(
        Profile,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="organizations",
    )
    primary_contact_title = _text()
    secondary_first_name = _text()
    secondary_last_name = _text()
    secondary_contact_title = _text()
    secondary_contact_email = models.EmailField(blank=True, default="")
    secondary_contact_phone = _text(64)

    student_information_system = _text()
    financial_system = _text()
    financial_aid = _text()
    hcm_hr = _text()
    payroll_system = _text()
    purchasing_system = _text()
    housing_management = _text()
    learning_management = _text()
    admissions_crm = _text()
    alumni_advancement_crm = _text()
    payment_platform = _text()
    meal_plan_management = _text()
    identity_management = _text()
    door_access = _text()
    document_management = _text()
    voip = _text()
    network_infrastructure = _text()
    other_software_comments = models.TextField(blank=True, default="")

    primary_office_apple = models.BooleanField(default=False)
    primary_office_asus = models.BooleanField(default=False)
    primary_office_dell = models.BooleanField(default=False)
    primary_office_hp = models.BooleanField(default=False)
    primary_office_microsoft = models.BooleanField(default=False)
    primary_office_other = models.BooleanField(default=False)
    primary_office_other_details = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("name", "id")
        constraints = [
            models.CheckConstraint(
                condition=Q(membership_status__in=["active", "pending", "expired", "cancelled"]),
                name="members_organization_membership_status_valid",
            ),
        ]
        permissions = [
            ("unapprove_organization", "Can return an approved organization to the registration queue"),
        ]

    def __str__(self) -> str:
        return self.name


class RegistrationUpdateRequest(models.Model):
    class Status(models.TextChoices):
        pending = "pending", "Pending"
        approved = "approved", "Approved"
        rejected = "rejected", "Rejected"

    class SubmissionType(models.TextChoices):
        new_member = "new_member", "New member"
        member_update = "member_update", "Member update"
        primary_contact_change = "primary_contact_change", "Primary contact change"

    submitted_email = models.EmailField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.pending, db_index=True)
    submission_type = models.CharField(
        max_length=32,
        choices=SubmissionType.choices,
        default=SubmissionType.member_update,
    )
    registration_data = models.JSONField(blank=True, default=dict)
    organization_data = models.JSONField(blank=True, default=dict)
    existing_organization = models.ForeignKey(
        Organization,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name="registration_updates",
    )
    # Survives deletion of the organization so history stays readable.
    existing_organization_name = models.CharField(max_length=255, blank=True, default="")
    admin_notes = models.TextField(blank=True, default="")
    reviewed_by = models.CharField(max_length=255, blank=True, default="")
    reviewed_at = models.DateTimeField(blank=True, null=True)
    submitted_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-submitted_at",)
        indexes = [
            models.Index(fields=["status", "submitted_at"], name="rur_status_at"),
            models.Index(fields=["submitted_email", "status"], name="rur_email_status"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(Q(status="pending") & Q(reviewed_at__isnull=True))
                | (Q(status__in=["approved", "rejected"]) & Q(reviewed_at__isnull=False) & ~Q(reviewed_by="")),
                name="members_rur_reviewed_matches_status",
            ),
        ]
        permissions = [
            ("review_registrationupdaterequest", "Can approve or reject registration update requests"),
        ]

    @override
    def save(self, *args, **kwargs) -> None:
        self.submitted_email = str(self.submitted_email or "").strip().lower()
        if self.existing_organization_id is not None and not self.existing_organization_name:
            self.existing_organization_name = self.existing_organization.name
        super().save(*args, **kwargs)

    @property
    def is_new_member(self) -> bool:
        return self.existing_organization_id is None and not self.existing_organization_name

    @property
    def organization_display_name(self) -> str:
        if self.existing_organization is not None:
            return self.existing_organization.name
        if self.existing_organization_name:
            return self.existing_organization_name
        for source in (self.organization_data, self.registration_data):
            if isinstance(source, dict):
                name = str(source.get("name") or source.get("organization_name") or "").strip()
                if name:
                    return name
        return ""

    def __str__(self) -> str:
        return f"{self.submitted_email} ({self.get_submission_type_display()}, {self.status})"


class PendingRegistration(models.Model):
    class ApprovalStatus(models.TextChoices):
        pending = "pending", "Pending"
        approved = "approved", "Approved"
        rejected = "rejected", "Rejected"

    email = models.EmailField()
    # Placeholder; the member sets a password through the recovery flow once re-approved.
    password_hash = models.CharField(max_length=255, blank=True, default="")
    first_name = _text()
    last_name = _text()
    organization_name = _text()
    state_association = _text()
    student_fte = models.PositiveIntegerField(blank=True, null=True)
    address = _text()
    city = _text()
    state = _text(64)
    zip = _text(32)
    primary_contact_title = _text()
    secondary_first_name = _text()
    secondary_last_name = _text()
    secondary_contact_title = _text()
    secondary_contact_email = models.EmailField(blank=True, default="")

    student_information_system = _text()
    financial_system = _text()
    financial_aid = _text()
    hcm_hr = _text()
    payroll_system = _text()
    purchasing_system = _text()
    housing_management = _text()
    learning_management = _text()
    admissions_crm = _text()
    alumni_advancement_crm = _text()

    primary_office_apple = models.BooleanField(default=False)
    primary_office_asus = models.BooleanField(default=False)
    primary_office_dell = models.BooleanField(default=False)
    primary_office_hp = models.BooleanField(default=False)
    primary_office_microsoft = models.BooleanField(default=False)
    primary_office_other = models.BooleanField(default=False)
    primary_office_other_details = models.TextField(blank=True, default="")
    other_software_comments = models.TextField(blank=True, default="")
    is_private_nonprofit = models.BooleanField(default=False)

    approval_status = models.CharField(
        max_length=16,
        choices=ApprovalStatus.choices,
        default=ApprovalStatus.pending,
        db_index=True,
    )
    admin_notes = models.TextField(blank=True, default="")
    approved_by = models.CharField(max_length=255, blank=True, default="")
    approved_at = models.DateTimeField(blank=True, null=True)
    rejection_reason = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)
        constraints = [
            models.UniqueConstraint(
                fields=["email"],
                condition=Q(approval_status="pending"),
                name="members_pendingregistration_one_pending_per_email",
            ),
        ]

    @override
    def save(self, *args, **kwargs) -> None:
        self.email = str(self.email or "").strip().lower()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.organization_name or '-'} <{self.email}>"


class Invoice(models.Model):
    class Status(models.TextChoices):
        draft = "draft", "Draft"
        sent = "sent", "Sent"
        paid = "paid", "Paid"
        overdue = "overdue", "Overdue"
        cancelled = "cancelled", "Cancelled"

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="invoices")
    invoice_number = models.CharField(max_length=64, unique=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.draft)
    invoice_date = models.DateField()
    due_date = models.DateField()
    paid_date = models.DateField(blank=True, null=True)

    class Meta:
        ordering = ("-invoice_date", "id")

    def __str__(self) -> str:
        return self.invoice_number


class OrganizationInvitation(models.Model):
    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="invitations")
    email = models.EmailField()
    invitation_token = models.CharField(max_length=255, unique=True)
    invited_by = models.CharField(max_length=255, blank=True, default="")
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.email} → {self.organization_id}"


class OrganizationTransferRequest(models.Model):
    class Status(models.TextChoices):
        pending = "pending", "Pending"
        approved = "approved", "Approved"
        rejected = "rejected", "Rejected"
        expired = "expired", "Expired"
        cancelled = "cancelled", "Cancelled"

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="transfer_requests")
    current_contact_email = models.EmailField(blank=True, default="")
    new_contact_email = models.EmailField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.pending)
    transfer_token = models.CharField(max_length=255, unique=True)
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.organization_id}: {self.current_contact_email} → {self.new_contact_email}"


class OrganizationReassignmentRequest(models.Model):
    class Status(models.TextChoices):
        pending = "pending", "Pending"
        approved = "approved", "Approved"
        rejected = "rejected", "Rejected"

    organization = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="reassignment_requests")
    new_contact_email = models.EmailField()
    new_organization_data = models.JSONField(blank=True, default=dict)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.pending)
    admin_notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.organization_id} → {self.new_contact_email}"


class UserRole(models.Model):
    class Role(models.TextChoices):
        admin = "admin", "Admin"
        member = "member", "Member"
        cohort_leader = "cohort_leader", "Cohort leader"

    user_id = models.CharField(max_length=255, db_index=True)
    role = models.CharField(max_length=32, choices=Role.choices, default=Role.member)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["user_id", "role"], name="members_userrole_unique"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}: {self.role}"


class AuditLogEntry(models.Model):
    """Append-only record of administrative actions."""

    action = models.CharField(max_length=64, db_index=True)
    entity_type = models.CharField(max_length=64)
    entity_id = models.CharField(max_length=64, blank=True, default="")
    user_id = models.CharField(max_length=255, blank=True, default="")
    details = models.JSONField(blank=True, default=dict)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ("-created_at", "-id")
        verbose_name_plural = "audit log entries"

    @override
    def save(self, *args, **kwargs) -> None:
        if not self._state.adding:
            raise RuntimeError("Audit log entries are append-only")
        super().save(*args, **kwargs)

    @override
    def delete(self, *args, **kwargs):
        raise RuntimeError("Audit log entries are append-only")

    @classmethod
    def record(
        cls,
        *,
        action: str,
        entity_type: str,
        entity_id: object,
        user_id: str,
        details: dict[str, object],
    ) -> AuditLogEntry:
        return cls.objects.create(
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id or ""),
            user_id=user_id,
            details=details,
        )

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id}"


class EmailDeliveryLog(models.Model):
    email_type = models.CharField(max_length=64, db_index=True)
    recipient = models.CharField(max_length=320)
    subject = models.CharField(max_length=998, blank=True, default="")
    success = models.BooleanField(default=False)
    result_data = models.JSONField(blank=True, default=dict)
    sent_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ("-sent_at", "-id")
        permissions = [
            ("send_test_email", "Can send a test notification email"),
        ]

    def __str__(self) -> str:
        outcome = "ok" if self.success else "failed"
        return f"{self.email_type} → {self.recipient} ({outcome})"
