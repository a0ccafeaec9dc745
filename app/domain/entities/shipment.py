"""Shipment entity model."""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from app.domain.shipment import ShipmentStatus
from app.domain.value_objects import (
    Dimensions,
    ServiceType,
    decode_dimensions,
    decode_documents,
    parse_timestamp,
)

REQUIRED_SHIPMENT_FIELDS = (
    "service_type",
    "description",
    "weight",
    "dimensions",
    "pickup_address",
    "pickup_date",
    "delivery_address",
    "delivery_date",
)


class ShipmentDraft(BaseModel):
    """Validated input for creating a shipment.

    ``dimensions`` and ``required_documents`` accept structured values or
    their JSON text. Unlike stored rows, malformed input here is an error.
    """

    service_type: ServiceType = Field(..., description="Requested service")
    description: str = Field(..., min_length=1, max_length=5000, description="Cargo description")
    weight: float = Field(..., gt=0, description="Weight, must be positive")
    dimensions: Dimensions = Field(..., description="Parcel dimensions")
    pickup_address: str = Field(..., min_length=1, description="Pickup address")
    pickup_date: datetime = Field(..., description="Pickup date")
    delivery_address: str = Field(..., min_length=1, description="Delivery address")
    delivery_date: datetime = Field(..., description="Delivery date")
    required_documents: list[str] = Field(default_factory=list, description="Document names")
    notes: Optional[str] = Field(None, max_length=5000, description="Free-form notes")

    @field_validator("description", "pickup_address", "delivery_address")
    @classmethod
    def strip_text(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("dimensions", mode="before")
    @classmethod
    def parse_dimensions(cls, v: Any) -> Any:
        if isinstance(v, (str, bytes)):
            return json.loads(v)
        return v

    @field_validator("required_documents", mode="before")
    @classmethod
    def parse_documents(cls, v: Any) -> Any:
        if v is None or v == "":
            return []
        if isinstance(v, str):
            return json.loads(v)
        return v

    @field_validator("pickup_date", "delivery_date", mode="before")
    @classmethod
    def parse_dates(cls, v: Any) -> datetime:
        return parse_timestamp(v)


class Shipment(BaseModel):
    """Shipment entity with type-safe fields."""

    shipment_id: int = Field(..., description="Shipment ID")
    client_id: int = Field(..., description="Owning client")
    service_type: str = Field(..., description="transport, customs, storage or shipping")
    description: str = Field(..., description="Cargo description")
    weight: float = Field(..., description="Weight")
    dimensions: Dimensions = Field(default_factory=Dimensions.zero, description="Dimensions")
    pickup_address: str = Field(..., description="Pickup address")
    pickup_date: datetime = Field(..., description="Pickup date")
    delivery_address: str = Field(..., description="Delivery address")
    delivery_date: datetime = Field(..., description="Delivery date")
    required_documents: list[str] = Field(default_factory=list, description="Document names")
    notes: Optional[str] = Field(None, description="Notes")
    status: ShipmentStatus = Field(ShipmentStatus.PENDING, description="Lifecycle status")
    accepted_offer_id: Optional[int] = Field(None, description="Winning offer, set once")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")
    client_name: Optional[str] = Field(None, description="Owner name (agent listings)")

    class Config:
        """Pydantic config."""

        from_attributes = True
        use_enum_values = True

    @property
    def is_open(self) -> bool:
        return self.status in (ShipmentStatus.PENDING.value, ShipmentStatus.OFFERS_RECEIVED.value)

    def to_dict(self) -> dict:
        """Convert to a JSON-ready dictionary."""
        data = self.model_dump(mode="json")
        if self.client_name is None:
            data.pop("client_name")
        return data

    @classmethod
    def from_db_row(cls, row: dict) -> Shipment:
        """Create Shipment from a database row, decoding JSON text columns leniently."""
        data = dict(row)
        data["dimensions"] = decode_dimensions(data.get("dimensions"))
        data["required_documents"] = decode_documents(data.get("required_documents"))
        return cls(**data)
