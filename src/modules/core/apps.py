from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.core"
    label = "core"

    def ready(self) -> None:
        from modules.core.handlers import audit_trail_handler
        from shared.domain.events import EntityChanged
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(EntityChanged, audit_trail_handler)
