from django.urls import path

from modules.payments.views import razorpay_webhook

urlpatterns = [
    path("razorpay/", razorpay_webhook, name="razorpay-webhook"),
]
