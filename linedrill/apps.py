from django.apps import AppConfig


class LinedrillConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "linedrill"

    def ready(self):
        import linedrill.signals  # Ensure signals are loaded  # noqa: F401
