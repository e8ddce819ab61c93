"""Payment exceptions.

Raised by the payment services; webhook and API views translate them
into HTTP responses.
"""

from __future__ import annotations


class PaymentProviderError(Exception):
    """Razorpay could not be reached or rejected the request."""


class InvalidSignature(Exception):
    """The webhook signature does not match the raw body."""


class MalformedPayload(Exception):
    """The webhook body is not a JSON object."""
