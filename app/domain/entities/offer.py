"""Offer entity model."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.domain.shipment import OfferStatus


class Offer(BaseModel):
    """Offer entity with type-safe fields."""

    offer_id: int = Field(..., description="Offer ID")
    shipment_id: int = Field(..., description="Target shipment")
    agent_id: int = Field(..., description="Bidding agent")
    price: float = Field(..., ge=0, description="Quoted price")
    notes: Optional[str] = Field(None, description="Agent notes")
    status: OfferStatus = Field(OfferStatus.PENDING, description="pending, accepted or rejected")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    # Joined from users on shipment detail reads
    agent_name: Optional[str] = Field(None, description="Agent display name")
    agent_email: Optional[str] = Field(None, description="Agent email")

    class Config:
        """Pydantic config."""

        from_attributes = True
        use_enum_values = True

    @property
    def is_pending(self) -> bool:
        return self.status == OfferStatus.PENDING.value

    def to_dict(self) -> dict:
        """Convert to a JSON-ready dictionary."""
        data = self.model_dump(mode="json")
        for key in ("agent_name", "agent_email"):
            if data[key] is None:
                data.pop(key)
        return data

    @classmethod
    def from_db_row(cls, row: dict) -> Offer:
        return cls(**dict(row))
