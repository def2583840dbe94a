
from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest

from members.approval import resolve_registration_update
from members.errors import PipelineError
from members.models import (
    AuditLogEntry,
    EmailDeliveryLog,
    Invoice,
    Organization,
    OrganizationInvitation,
    OrganizationReassignmentRequest,
    OrganizationTransferRequest,
    PendingRegistration,
    Profile,
    RegistrationUpdateRequest,
    UserRole,
)
from members.unapprove import unapprove_organization



class _ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    def has_change_permission(self, request: HttpRequest, obj=None) -> bool:
        return False

    def has_delete_permission(self, request: HttpRequest, obj=None) -> bool:
        return False


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("email", "first_name", "last_name", "organization", "user_id")
    search_fields = ("email", "first_name", "last_name", "organization", "user_id")


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "state", "membership_status", "contact_person", "updated_at")
    list_filter = ("membership_status", "organization_type")
    search_fields = ("name", "email", "city")
    raw_id_fields = ("contact_person",)
    actions = ("unapprove_selected",)

    @admin.action(description="Unapprove and move to pending registrations")
    def unapprove_selected(self, request: HttpRequest, queryset: QuerySet[Organization]) -> None:
        if not request.user.has_perm("members.unapprove_organization"):
            self.message_user(request, "You do not have permission to unapprove organizations.", messages.ERROR)
            return
        for organization_id in queryset.values_list("pk", flat=True):
            try:
                outcome = unapprove_organization(
                    organization_id=organization_id,
                    actor_username=request.user.get_username(),
                )
            except PipelineError as exc:
                self.message_user(request, f"Organization {organization_id}: {exc}", messages.ERROR)
                continue
            payload = outcome.as_dict()
            level = messages.SUCCESS if outcome.succeeded else messages.WARNING
            self.message_user(request, str(payload["message"]), level)


@admin.register(RegistrationUpdateRequest)
class RegistrationUpdateRequestAdmin(admin.ModelAdmin):
    list_display = ("id", "submitted_email", "submission_type", "status", "existing_organization", "submitted_at")
    list_filter = ("status", "submission_type")
    search_fields = ("submitted_email", "existing_organization_name")
    readonly_fields = ("status", "reviewed_by", "reviewed_at", "submitted_at", "existing_organization_name")
    actions = ("approve_selected", "reject_selected")

    def _resolve_selected(self, request: HttpRequest, queryset: QuerySet[RegistrationUpdateRequest], action: str) -> None:
        if not request.user.has_perm("members.review_registrationupdaterequest"):
            self.message_user(request, "You do not have permission to review registration updates.", messages.ERROR)
            return
        resolved = 0
        for request_id in queryset.values_list("pk", flat=True):
            try:
                resolve_registration_update(
                    request_id=request_id,
                    action=action,
                    actor_username=request.user.get_username(),
                )
            except PipelineError as exc:
                self.message_user(request, f"Request {request_id}: {exc}", messages.ERROR)
                continue
            resolved += 1
        if resolved:
            verb = "approved" if action == "approve" else "rejected"
            self.message_user(request, f"{resolved} request(s) {verb}.", messages.SUCCESS)

    @admin.action(description="Approve selected registration updates")
    def approve_selected(self, request: HttpRequest, queryset: QuerySet[RegistrationUpdateRequest]) -> None:
        self._resolve_selected(request, queryset, "approve")

    @admin.action(description="Reject selected registration updates")
    def reject_selected(self, request: HttpRequest, queryset: QuerySet[RegistrationUpdateRequest]) -> None:
        self._resolve_selected(request, queryset, "reject")


@admin.register(PendingRegistration)
class PendingRegistrationAdmin(admin.ModelAdmin):
    list_display = ("email", "organization_name", "approval_status", "created_at")
    list_filter = ("approval_status",)
    search_fields = ("email", "organization_name")
    exclude = ("password_hash",)


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "organization", "amount", "status", "due_date")
    list_filter = ("status",)


admin.site.register(OrganizationInvitation)
admin.site.register(OrganizationTransferRequest)
admin.site.register(OrganizationReassignmentRequest)
admin.site.register(UserRole)


@admin.register(AuditLogEntry)
class AuditLogEntryAdmin(_ReadOnlyAdmin):
    list_display = ("created_at", "action", "entity_type", "entity_id", "user_id")
    list_filter = ("action", "entity_type")
    search_fields = ("entity_id", "user_id")


@admin.register(EmailDeliveryLog)
class EmailDeliveryLogAdmin(_ReadOnlyAdmin):
    list_display = ("sent_at", "email_type", "recipient", "subject", "success")
    list_filter = ("email_type", "success")
    search_fields = ("recipient",)
