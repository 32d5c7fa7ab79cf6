"""Tri-state operation results returned by every gateway operation."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, computed_field


class ResultTags:
    """Stable reason tags clients can branch on."""

    OK = "ok"
    OK_NO_CONTENT = "ok-no-content"
    UNKNOWN_ERROR = "unknown-error-occurred"
    RESOURCE_NOT_FOUND = "resource-not-found"
    NOT_AUTHORIZED = "application-not-authorized"
    USER_INPUT_INVALID = "user-input-invalid"
    USER_HAS_NO_DEVICES = "user-has-no-devices"
    TOPIC_NOT_FOUND = "topic-not-found"
    USER_NOT_SUBSCRIBED = "user-not-subed"
    GROUP_HAS_NO_TOPICS = "group-has-no-topics"
    GROUP_NOT_SUBSCRIBED = "group-not-subscribed"
    USER_HAS_NO_TOPICS = "user-has-no-topics"
    TOPIC_NAME_INVALID = "topic-name-invalid"
    GROUP_HAS_NO_SUBSCRIBERS = "group-has-no-subscribers"
    GROUP_MAP_NOT_FOUND = "group-map-not-found"
    TOPIC_HAS_NO_SUBSCRIBERS = "topic-has-no-subscribers"


class RequestResult(BaseModel):
    """Status code, reason tag and optional payload of one operation."""

    code: int
    message: str
    data: Any = None

    @computed_field  # type: ignore[misc]
    @property
    def success(self) -> bool:
        return 200 <= self.code < 300

    @classmethod
    def was_ok(cls, data: Any = None, message: str = ResultTags.OK) -> "RequestResult":
        return cls(code=200, message=message, data=data)

    @classmethod
    def was_no_content(cls, message: str = ResultTags.OK_NO_CONTENT) -> "RequestResult":
        return cls(code=204, message=message)

    @classmethod
    def was_bad_request(
        cls, message: str = ResultTags.USER_INPUT_INVALID, data: Any = None
    ) -> "RequestResult":
        return cls(code=400, message=message, data=data)

    @classmethod
    def was_unauthorized(cls, message: str = ResultTags.NOT_AUTHORIZED) -> "RequestResult":
        return cls(code=401, message=message)

    @classmethod
    def was_not_found(cls, resource: str | None = None) -> "RequestResult":
        return cls(code=404, message=ResultTags.RESOURCE_NOT_FOUND, data=resource)

    @classmethod
    def was_exception(
        cls, message: str = ResultTags.UNKNOWN_ERROR, data: Any = None
    ) -> "RequestResult":
        return cls(code=500, message=message, data=data)
