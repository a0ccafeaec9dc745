"""Value Objects for domain model."""
from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class UserRole(str, Enum):
    """User roles. Exactly one per account, fixed at creation."""

    CLIENT = "client"
    AGENT = "agent"


class ServiceType(str, Enum):
    """Logistics service requested by a shipment."""

    TRANSPORT = "transport"
    CUSTOMS = "customs"
    STORAGE = "storage"
    SHIPPING = "shipping"


class Dimensions(BaseModel):
    """Parcel dimensions, unit-agnostic."""

    length: float = Field(0, ge=0, description="Length")
    width: float = Field(0, ge=0, description="Width")
    height: float = Field(0, ge=0, description="Height")

    @classmethod
    def zero(cls) -> Dimensions:
        return cls(length=0, width=0, height=0)


def encode_dimensions(dimensions: Dimensions) -> str:
    """Serialize dimensions for the text column."""
    return json.dumps(dimensions.model_dump())


def decode_dimensions(raw: Any) -> Dimensions:
    """Decode a stored dimensions value.

    Accepts JSON text, an already-decoded mapping (legacy rows) or a
    ``Dimensions`` instance. Malformed values decode to zero dimensions so a
    single bad row never fails a whole listing.
    """
    if isinstance(raw, Dimensions):
        return raw
    if raw is None or raw == "":
        return Dimensions.zero()
    try:
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
        return Dimensions.model_validate(data)
    except (ValueError, TypeError, ValidationError) as e:
        logger.warning(f"⚠️ Unreadable dimensions value {raw!r}: {e}")
        return Dimensions.zero()


def encode_documents(documents: list[str] | None) -> str:
    """Serialize a required-documents list for the text column."""
    return json.dumps(list(documents or []))


def decode_documents(raw: Any) -> list[str]:
    """Decode a stored required-documents value, falling back to an empty list."""
    if raw is None or raw == "":
        return []
    if isinstance(raw, list):
        return [str(item) for item in raw]
    try:
        data = json.loads(raw)
    except (ValueError, TypeError) as e:
        logger.warning(f"⚠️ Unreadable required_documents value {raw!r}: {e}")
        return []
    if not isinstance(data, list):
        return []
    return [str(item) for item in data]


def parse_timestamp(value: Any) -> datetime:
    """Parse a pickup/delivery date.

    Accepts ``datetime``, ``date`` and ISO-8601 text (date-only or full,
    trailing ``Z`` allowed). Naive values are taken as UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Invalid date: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
