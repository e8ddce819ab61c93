"""Razorpay webhook signature verification."""

from __future__ import annotations

import hashlib
import hmac


def compute_signature(raw_body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), raw_body, hashlib.sha256).hexdigest()


def verify_signature(raw_body: bytes, signature: str, secret: str) -> bool:
    """HMAC-SHA256 hex digest of the raw body, compared in constant time."""
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected, (signature or "").strip().lower())
