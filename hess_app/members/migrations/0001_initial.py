import django.db.models.deletion
from django.db import migrations, models


def _text(max_length: int = 255) -> models.CharField:
    return models.CharField(blank=True, default="", max_length=max_length)


_SOFTWARE_SYSTEM_COLUMNS = [
    "student_information_system",
    "financial_system",
    "financial_aid",
    "hcm_hr",
    "payroll_system",
    "purchasing_system",
    "housing_management",
    "learning_management",
    "admissions_crm",
    "alumni_advancement_crm",
]

_EXTENDED_SOFTWARE_SYSTEM_COLUMNS = [
    "payment_platform",
    "meal_plan_management",
    "identity_management",
    "door_access",
    "document_management",
    "voip",
    "network_infrastructure",
]

_HARDWARE_FLAG_COLUMNS = [
    "primary_office_apple",
    "primary_office_asus",
    "primary_office_dell",
    "primary_office_hp",
    "primary_office_microsoft",
    "primary_office_other",
]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Profile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(blank=True, db_index=True, default="", max_length=255)),
                ("first_name", _text()),
                ("last_name", _text()),
                ("email", models.EmailField(blank=True, db_index=True, default="", max_length=254)),
                ("phone", _text(64)),
                ("organization", models.CharField(blank=True, db_index=True, default="", max_length=255)),
                ("state_association", _text()),
                ("address", _text()),
                ("city", _text()),
                ("state", _text(64)),
                ("zip", _text(32)),
                ("primary_contact_title", _text()),
                ("is_private_nonprofit", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("last_name", "first_name", "id"),
            },
        ),
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("address_line_1", _text()),
                ("address_line_2", _text()),
                ("city", _text()),
                ("state", _text(64)),
                ("zip_code", _text(32)),
                ("country", models.CharField(blank=True, default="United States", max_length=64)),
                ("phone", _text(64)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("website", _text(2048)),
                ("notes", models.TextField(blank=True, default="")),
                ("organization_type", _text(64)),
                ("student_fte", models.PositiveIntegerField(blank=True, null=True)),
                ("annual_fee_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                (
                    "membership_status",
                    models.CharField(
                        choices=[
                            ("active", "Active"),
                            ("pending", "Pending"),
                            ("expired", "Expired"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("membership_start_date", models.DateField(blank=True, null=True)),
                ("membership_end_date", models.DateField(blank=True, null=True)),
                (
                    "contact_person",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="organizations",
                        to="members.profile",
                    ),
                ),
                ("primary_contact_title", _text()),
                ("secondary_first_name", _text()),
                ("secondary_last_name", _text()),
                ("secondary_contact_title", _text()),
                ("secondary_contact_email", models.EmailField(blank=True, default="", max_length=254)),
                ("secondary_contact_phone", _text(64)),
                *[(column, _text()) for column in _SOFTWARE_SYSTEM_COLUMNS],
                *[(column, _text()) for column in _EXTENDED_SOFTWARE_SYSTEM_COLUMNS],
                ("other_software_comments", models.TextField(blank=True, default="")),
                *[(column, models.BooleanField(default=False)) for column in _HARDWARE_FLAG_COLUMNS],
                ("primary_office_other_details", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ("name", "id"),
                "permissions": [
                    ("unapprove_organization", "Can return an approved organization to the registration queue"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(membership_status__in=["active", "pending", "expired", "cancelled"]),
                        name="members_organization_membership_status_valid",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RegistrationUpdateRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("submitted_email", models.EmailField(max_length=254)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                (
                    "submission_type",
                    models.CharField(
                        choices=[
                            ("new_member", "New member"),
                            ("member_update", "Member update"),
                            ("primary_contact_change", "Primary contact change"),
                        ],
                        default="member_update",
                        max_length=32,
                    ),
                ),
                ("registration_data", models.JSONField(blank=True, default=dict)),
                ("organization_data", models.JSONField(blank=True, default=dict)),
                (
                    "existing_organization",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="registration_updates",
                        to="members.organization",
                    ),
                ),
                ("existing_organization_name", _text()),
                ("admin_notes", models.TextField(blank=True, default="")),
                ("reviewed_by", _text()),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("submitted_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ("-submitted_at",),
                "permissions": [
                    ("review_registrationupdaterequest", "Can approve or reject registration update requests"),
                ],
                "indexes": [
                    models.Index(fields=["status", "submitted_at"], name="rur_status_at"),
                    models.Index(fields=["submitted_email", "status"], name="rur_email_status"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=(
                            (models.Q(status="pending") & models.Q(reviewed_at__isnull=True))
                            | (
                                models.Q(status__in=["approved", "rejected"])
                                & models.Q(reviewed_at__isnull=False)
                                & ~models.Q(reviewed_by="")
                            )
                        ),
                        name="members_rur_reviewed_matches_status",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PendingRegistration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("email", models.EmailField(max_length=254)),
                ("password_hash", _text()),
                ("first_name", _text()),
                ("last_name", _text()),
                ("organization_name", _text()),
                ("state_association", _text()),
                ("student_fte", models.PositiveIntegerField(blank=True, null=True)),
                ("address", _text()),
                ("city", _text()),
                ("state", _text(64)),
                ("zip", _text(32)),
                ("primary_contact_title", _text()),
                ("secondary_first_name", _text()),
                ("secondary_last_name", _text()),
                ("secondary_contact_title", _text()),
                ("secondary_contact_email", models.EmailField(blank=True, default="", max_length=254)),
                *[(column, _text()) for column in _SOFTWARE_SYSTEM_COLUMNS],
                *[(column, models.BooleanField(default=False)) for column in _HARDWARE_FLAG_COLUMNS],
                ("primary_office_other_details", models.TextField(blank=True, default="")),
                ("other_software_comments", models.TextField(blank=True, default="")),
                ("is_private_nonprofit", models.BooleanField(default=False)),
                (
                    "approval_status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")],
                        db_index=True,
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("admin_notes", models.TextField(blank=True, default="")),
                ("approved_by", _text()),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ("-created_at",),
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(approval_status="pending"),
                        fields=("email",),
                        name="members_pendingregistration_one_pending_per_email",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("invoice_number", models.CharField(max_length=64, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("sent", "Sent"),
                            ("paid", "Paid"),
                            ("overdue", "Overdue"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("invoice_date", models.DateField()),
                ("due_date", models.DateField()),
                ("paid_date", models.DateField(blank=True, null=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invoices",
                        to="members.organization",
                    ),
                ),
            ],
            options={
                "ordering": ("-invoice_date", "id"),
            },
        ),
        migrations.CreateModel(
            name="OrganizationInvitation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("email", models.EmailField(max_length=254)),
                ("invitation_token", models.CharField(max_length=255, unique=True)),
                ("invited_by", _text()),
                ("expires_at", models.DateTimeField()),
                ("used_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="invitations",
                        to="members.organization",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="OrganizationTransferRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("current_contact_email", models.EmailField(blank=True, default="", max_length=254)),
                ("new_contact_email", models.EmailField(max_length=254)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("expired", "Expired"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("transfer_token", models.CharField(max_length=255, unique=True)),
                ("expires_at", models.DateTimeField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="transfer_requests",
                        to="members.organization",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="OrganizationReassignmentRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("new_contact_email", models.EmailField(max_length=254)),
                ("new_organization_data", models.JSONField(blank=True, default=dict)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("approved", "Approved"), ("rejected", "Rejected")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("admin_notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "organization",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reassignment_requests",
                        to="members.organization",
                    ),
                ),
            ],
        ),
        migrations.CreateModel(
            name="UserRole",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(db_index=True, max_length=255)),
                (
                    "role",
                    models.CharField(
                        choices=[("admin", "Admin"), ("member", "Member"), ("cohort_leader", "Cohort leader")],
                        default="member",
                        max_length=32,
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("user_id", "role"), name="members_userrole_unique"),
                ],
            },
        ),
        migrations.CreateModel(
            name="AuditLogEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("action", models.CharField(db_index=True, max_length=64)),
                ("entity_type", models.CharField(max_length=64)),
                ("entity_id", _text(64)),
                ("user_id", _text()),
                ("details", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                "ordering": ("-created_at", "-id"),
                "verbose_name_plural": "audit log entries",
            },
        ),
        migrations.CreateModel(
            name="EmailDeliveryLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("email_type", models.CharField(db_index=True, max_length=64)),
                ("recipient", models.CharField(max_length=320)),
                ("subject", models.CharField(blank=True, default="", max_length=998)),
                ("success", models.BooleanField(default=False)),
                ("result_data", models.JSONField(blank=True, default=dict)),
                ("sent_at", models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                "ordering": ("-sent_at", "-id"),
                "permissions": [("send_test_email", "Can send a test notification email")],
            },
        ),
    ]
