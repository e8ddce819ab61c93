from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.payments"
    label = "payments"

    def ready(self) -> None:
        from modules.payments.events import PaymentConfirmed, PaymentFailed
        from modules.payments.handlers import (
            payment_confirmed_handler,
            payment_failed_handler,
        )
        from shared.infrastructure.bus import event_bus

        event_bus.subscribe(PaymentConfirmed, payment_confirmed_handler)
        event_bus.subscribe(PaymentFailed, payment_failed_handler)
