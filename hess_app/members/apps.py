from django.apps import AppConfig


class MembersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "members"
    verbose_name = "HESS members"

    def ready(self) -> None:
        # System checks register on import.
        from members import checks  # noqa: F401
