"""Shipping DTOs."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class DispatchResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    order_id: UUID
    tracking_id: str
    courier_service: str
    placeholder: bool
    created: bool


class CourierUpdateDTO(BaseModel):
    """Normalised courier webhook payload."""

    model_config = ConfigDict(frozen=True)

    tracking_id: str
    status_text: str = ""


class CourierUpdateResultDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    tracking_id: str
    order_id: Optional[UUID] = None
    status: Optional[str] = None
    applied: bool = False
