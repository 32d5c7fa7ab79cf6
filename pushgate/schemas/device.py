"""Pydantic models for device registration."""
from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from pushgate.db.models.device_token import ProviderType, PushDeviceType


class CreateUserDevice(BaseModel):
    """Payload for registering a device token for a profile."""

    token: str = Field("", description="Provider-issued device token")
    name: str = Field("", description="Display name of the device")
    user_agent: str | None = Field(None, max_length=512)
    device_type: PushDeviceType = PushDeviceType.WEB
    provider_type: ProviderType = ProviderType.FCM


class DeviceTokenRead(BaseModel):
    """Device token returned to the API layer."""

    id: UUID
    profile_id: str
    token: str
    name: str
    user_agent: str | None = None
    device_type: str
    provider_type: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
