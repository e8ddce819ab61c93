from django.apps import AppConfig


class ShippingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.shipping"
    label = "shipping"

    def ready(self) -> None:
        from modules.shipping.events import ShipmentCreated
        from modules.shipping.handlers import shipment_created_handler
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(ShipmentCreated, shipment_created_handler)
