"""Notification entity model."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Notification(BaseModel):
    """Persisted notification; only ``read`` may ever change."""

    notification_id: int = Field(..., description="Notification ID")
    user_id: int = Field(..., description="Recipient")
    type: str = Field(..., description="new_offer, offer_accepted or offer_rejected")
    title: str = Field(..., description="Short title")
    message: str = Field(..., description="Human-readable message")
    shipment_id: Optional[int] = Field(None, description="Triggering shipment")
    offer_id: Optional[int] = Field(None, description="Triggering offer")
    read: bool = Field(False, description="Read flag")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    class Config:
        """Pydantic config."""

        from_attributes = True

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")

    @classmethod
    def from_db_row(cls, row: dict) -> Notification:
        return cls(**dict(row))
