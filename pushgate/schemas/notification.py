"""Pydantic models for notification payloads."""
from __future__ import annotations

from pydantic import BaseModel, Field


class NotificationData(BaseModel):
    """Content delivered to devices or topics."""

    title: str = Field(..., description="Notification title shown to the user")
    body: str = Field(..., description="Notification body text")
    image_url: str | None = Field(None, description="Optional image shown with the notification")
    data: dict[str, str] | None = Field(
        default=None, description="Custom key/value payload delivered alongside the notification"
    )
