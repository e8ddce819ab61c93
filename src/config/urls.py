from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

# Operator login for the operations API
auth_patterns = [
    path("token/", TokenObtainPairView.as_view(), name="token_obtain"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
]

# Provider callbacks: Meta/Twilio, Razorpay and Delhivery. Unauthenticated.
webhook_patterns = [
    path("", include("modules.messaging.urls")),
    path("", include("modules.payments.urls")),
    path("", include("modules.shipping.urls")),
]

urlpatterns = [
    path("admin/", admin.site.urls),
    path("", include("modules.core.urls")),
    path("webhooks/", include(webhook_patterns)),
    path("api/v1/", include("modules.orders.urls")),
    path("api/v1/auth/", include(auth_patterns)),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
]
