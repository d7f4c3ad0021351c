from django.apps import AppConfig


class EngagementConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "engagement"

    def ready(self):
        # Connect the ledger to the reaction events
        from . import ledger  # noqa: F401
