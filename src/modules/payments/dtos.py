"""Payment DTOs."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ReconcileResultDTO(BaseModel):
    """Outcome of reconciling one webhook delivery."""

    model_config = ConfigDict(frozen=True)

    event_type: str
    outcome: str
    order_id: Optional[UUID] = None
