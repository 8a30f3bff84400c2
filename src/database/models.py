"""
Duet - Database Models

Pydantic models that mirror the Supabase table schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.session.models import Session


class SessionRecord(BaseModel):
    """Mirrors the `sessions` table."""

    id: str
    invite_code: str = Field(max_length=12)
    host_id: str
    guest_id: str | None = None
    host_name: str | None = None
    guest_name: str | None = None
    is_active: bool = True
    created_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_session(cls, session: Session) -> "SessionRecord":
        return cls(
            id=session.id,
            invite_code=session.invite_code,
            host_id=session.host_id,
            guest_id=session.guest_id,
            host_name=session.host_name,
            guest_name=session.guest_name,
            is_active=session.active,
            created_at=session.created_at,
        )

    def to_session(self) -> Session:
        return Session(
            id=self.id,
            invite_code=self.invite_code,
            host_id=self.host_id,
            guest_id=self.guest_id,
            host_name=self.host_name,
            guest_name=self.guest_name,
            active=self.is_active,
            created_at=self.created_at,
        )


class ActivityEntry(BaseModel):
    """Mirrors the `activity_logs` table."""

    id: str
    participant_id: str
    zone: str = Field(max_length=50)
    activity: str = Field(max_length=500)
    created_at: datetime

    model_config = {"from_attributes": True}
