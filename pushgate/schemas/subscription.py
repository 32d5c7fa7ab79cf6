"""Pydantic models describing a profile's subscriptions."""
from __future__ import annotations

from pydantic import BaseModel, Field


class UserSubscriptions(BaseModel):
    """Topics a profile follows directly and the groups it is subscribed to."""

    topics: list[str] = Field(default_factory=list)
    groups: list[str] = Field(default_factory=list)
