import time
from typing import Any, Callable, Dict

import structlog
from django.conf import settings
from django.core.cache import cache
from django.db import connections
from django.http import HttpRequest, JsonResponse
from django.utils import timezone

logger = structlog.get_logger()


def _check_database() -> None:
    conn = connections["default"]
    conn.ensure_connection()
    with conn.cursor() as cursor:
        cursor.execute("SELECT 1")
        cursor.fetchone()


def _check_cache() -> None:
    cache.set("_health_check", "ok", 10)
    if cache.get("_health_check") != "ok":
        raise ConnectionError("Cache read failed")


def _timed(name: str, check: Callable[[], None]) -> Dict[str, Any]:
    start = time.monotonic()
    try:
        check()
    except Exception:
        logger.error("health_check.dependency_down", dependency=name)
        return {"status": "down"}
    return {
        "status": "up",
        "response_time_ms": round((time.monotonic() - start) * 1000, 2),
    }


def provider_modes() -> Dict[str, str]:
    """Report which providers run live and which run in degraded mode.

    Degraded modes are explicit: WhatsApp replies are only logged, payment
    links are not issued, webhook signatures are not verified and shipments
    get placeholder tracking ids.
    """
    whatsapp_live = bool(
        settings.WHATSAPP_ACCESS_TOKEN and settings.WHATSAPP_PHONE_NUMBER_ID
    )
    return {
        "whatsapp": "live" if whatsapp_live else "log_only",
        "razorpay_links": (
            "live"
            if settings.RAZORPAY_KEY_ID and settings.RAZORPAY_KEY_SECRET
            else "disabled"
        ),
        "razorpay_webhook": (
            "verified" if settings.RAZORPAY_WEBHOOK_SECRET else "unverified"
        ),
        "delhivery": "live" if settings.DELHIVERY_API_KEY else "placeholder",
    }


def health_check(request: HttpRequest) -> JsonResponse:
    services = {
        "database": _timed("database", _check_database),
        "cache": _timed("cache", _check_cache),
    }
    overall_healthy = all(s["status"] == "up" for s in services.values())
    status_code = 200 if overall_healthy else 503

    logger.info(
        "health_check_completed", status="healthy" if overall_healthy else "unhealthy"
    )

    return JsonResponse(
        {
            "status": "healthy" if overall_healthy else "unhealthy",
            "timestamp": timezone.now().isoformat(),
            "services": services,
            "providers": provider_modes(),
        },
        status=status_code,
    )
