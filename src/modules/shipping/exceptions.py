"""Shipping exceptions."""

from __future__ import annotations


class CourierProviderError(Exception):
    """Delhivery could not be reached, rejected the request or sent no waybill."""


class MissingTrackingId(Exception):
    """A courier webhook arrived without any tracking id."""
