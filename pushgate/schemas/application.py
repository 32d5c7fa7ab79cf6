"""Pydantic models for tenant applications."""
from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field


class ApplicationIdentity(BaseModel):
    """Validated identity of the calling application."""

    id: UUID
    name: str
    is_admin: bool = False


class ApplicationCreate(BaseModel):
    """Payload for registering a tenant application."""

    name: str = Field("", max_length=255)
    owner_ids: list[str] = Field(default_factory=list)


class ApplicationCreated(BaseModel):
    """Identifier and one-time secret of a freshly created application."""

    id: UUID
    key: str
