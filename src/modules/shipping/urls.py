from django.urls import path

from modules.shipping.views import delhivery_webhook

urlpatterns = [
    path("delhivery/", delhivery_webhook, name="delhivery-webhook"),
]
