"""Aggregated outcomes of provider send and topic management calls."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional


class NotificationType(IntEnum):
    SINGLE = 1
    MULTICAST = 2
    BATCH = 3


@dataclass
class NotificationResult:
    """Outcome for one target: a token, a topic or a condition string."""

    target: str
    message_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def describe(self) -> str:
        if self.success:
            return f"{self.target}: sent ({self.message_id})"
        return f"{self.target}: failed ({self.error})"


@dataclass
class NotificationResponse:
    """Every per-target result of one dispatch, in send order."""

    type: NotificationType
    results: List[NotificationResult] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return sum(1 for result in self.results if not result.success)

    @property
    def failed(self) -> bool:
        return self.failures > 0

    @property
    def failed_results(self) -> List[NotificationResult]:
        return [result for result in self.results if not result.success]


@dataclass
class TopicSubResponse:
    """Result of subscribing or unsubscribing tokens to one topic.

    ``errors`` maps each failing token to the provider's reason. An empty map
    without ``global_error`` means every token succeeded.
    """

    topic: str
    is_subscribe: bool
    errors: Dict[str, str] = field(default_factory=dict)
    global_error: Optional[str] = None

    @property
    def failures(self) -> int:
        return len(self.errors)

    @property
    def failed(self) -> bool:
        return bool(self.errors) or self.global_error is not None


@dataclass
class TopicSubResponses:
    """Merged per-topic results of a many-topics call."""

    tokens: List[str]
    is_subscribe: bool
    responses: List[TopicSubResponse] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return sum(response.failures for response in self.responses)

    @property
    def failed(self) -> bool:
        return any(response.failed for response in self.responses)

    @property
    def failed_responses(self) -> List[TopicSubResponse]:
        return [response for response in self.responses if response.failed]
