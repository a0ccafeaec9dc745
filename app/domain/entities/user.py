"""User entity model."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.domain.value_objects import UserRole


class User(BaseModel):
    """User entity with type-safe fields."""

    user_id: int = Field(..., description="User ID")
    email: str = Field(..., min_length=3, max_length=320, description="Login email, unique")
    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    role: UserRole = Field(..., description="client or agent")
    created_at: datetime | None = Field(None, description="Registration timestamp")

    class Config:
        """Pydantic config."""

        from_attributes = True
        use_enum_values = True

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Minimal shape check; delivery is the email collaborator's concern."""
        v = v.strip().lower()
        if "@" not in v or v.startswith("@") or v.endswith("@"):
            raise ValueError("Invalid email address")
        return v

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT

    @property
    def is_agent(self) -> bool:
        return self.role == UserRole.AGENT

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_db_row(cls, row: dict) -> User:
        return cls(**dict(row))


@dataclass(frozen=True, slots=True)
class AuthUser:
    """Resolved caller identity for one request."""

    user_id: int
    role: str

    @property
    def is_client(self) -> bool:
        return self.role == UserRole.CLIENT.value

    @property
    def is_agent(self) -> bool:
        return self.role == UserRole.AGENT.value
