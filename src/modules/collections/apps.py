from django.apps import AppConfig


class CollectionsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.collections"
    label = "collections"

    def ready(self) -> None:
        from modules.collections.handlers import collection_status_refresher
        from modules.orders.events import OrderPositionChanged
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(OrderPositionChanged, collection_status_refresher)
