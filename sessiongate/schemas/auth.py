"""Pydantic schemas for session API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Body of every gate rejection."""

    error: str = Field(description="Human-readable reason the request was rejected")


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


class SubjectResponse(BaseModel):
    """Public profile of the authenticated subject."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    display_name: str
    role: str
    organization_id: str | None


class SessionResponse(BaseModel):
    """The current session as seen by the gate."""

    subject: SubjectResponse
    issued_at: datetime
    expires_at: datetime
