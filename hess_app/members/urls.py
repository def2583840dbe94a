from django.urls import path

from members import views_health, views_notifications, views_organizations, views_registration_updates

urlpatterns = [
    path("healthz", views_health.healthz, name="healthz"),
    path("readyz", views_health.readyz, name="readyz"),
    path(
        "registration-updates/",
        views_registration_updates.pending_updates,
        name="registration-updates-pending",
    ),
    path(
        "registration-updates/submit/",
        views_registration_updates.submit_update,
        name="registration-update-submit",
    ),
    path(
        "registration-updates/<int:request_id>/comparison/",
        views_registration_updates.update_comparison,
        name="registration-update-comparison",
    ),
    path(
        "registration-updates/<int:request_id>/approve/",
        views_registration_updates.approve_update,
        name="registration-update-approve",
    ),
    path(
        "registration-updates/<int:request_id>/reject/",
        views_registration_updates.reject_update,
        name="registration-update-reject",
    ),
    path(
        "organizations/<int:organization_id>/unapprove/",
        views_organizations.unapprove,
        name="organization-unapprove",
    ),
    path(
        "notifications/test/",
        views_notifications.send_test_email,
        name="notification-send-test",
    ),
]
