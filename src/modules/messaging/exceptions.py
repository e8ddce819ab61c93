"""Messaging exceptions."""

from __future__ import annotations


class MessagingProviderError(Exception):
    """The WhatsApp Cloud API could not be reached or rejected the message."""
