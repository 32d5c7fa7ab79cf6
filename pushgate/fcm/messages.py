"""Provider-neutral message variants and the notifications builder."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from pushgate.fcm.topics import build_condition, chunk_topics
from pushgate.schemas.notification import NotificationData

MAX_DEVICES_PER_MULTICAST = 500


class NotificationKind(str, Enum):
    """Closed set of addressing variants a builder entry can take."""

    DIRECT = "direct"
    MULTICAST = "multicast"
    TOPIC = "topic"
    TOPICS = "topics"


@dataclass(frozen=True)
class Message:
    """A message addressed to exactly one token, topic or condition."""

    payload: NotificationData
    token: Optional[str] = None
    topic: Optional[str] = None
    condition: Optional[str] = None

    @property
    def target(self) -> str:
        return self.token or self.topic or self.condition or ""


@dataclass(frozen=True)
class MulticastMessage:
    """One payload addressed to at most 500 device tokens."""

    payload: NotificationData
    tokens: Tuple[str, ...]


@dataclass(frozen=True)
class _Entry:
    kind: NotificationKind
    payload: NotificationData
    targets: Tuple[str, ...]


@dataclass
class GeneratedMessages:
    """Output of :meth:`NotificationsBuilder.generate`."""

    singles: List[Message] = field(default_factory=list)
    multicasts: List[MulticastMessage] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.singles and not self.multicasts


class NotificationsBuilder:
    """Accumulate direct and topic notifications, then expand them into messages.

    ``direct`` with one token yields a single message and with more yields
    multicasts of at most 500 tokens. ``topic`` with one topic yields a topic
    message and with more yields OR-conditions of at most 5 topics each.
    """

    def __init__(self) -> None:
        self._entries: List[_Entry] = []

    def direct(self, payload: NotificationData, *tokens: str) -> "NotificationsBuilder":
        targets = tuple(token for token in tokens if token)
        if targets:
            kind = NotificationKind.DIRECT if len(targets) == 1 else NotificationKind.MULTICAST
            self._entries.append(_Entry(kind, payload, targets))
        return self

    def topic(self, payload: NotificationData, *topics: str) -> "NotificationsBuilder":
        targets = tuple(topic for topic in topics if topic)
        if targets:
            kind = NotificationKind.TOPIC if len(targets) == 1 else NotificationKind.TOPICS
            self._entries.append(_Entry(kind, payload, targets))
        return self

    def generate(self) -> GeneratedMessages:
        generated = GeneratedMessages()
        for entry in self._entries:
            if entry.kind is NotificationKind.DIRECT:
                generated.singles.append(Message(entry.payload, token=entry.targets[0]))
            elif entry.kind is NotificationKind.MULTICAST:
                generated.multicasts.extend(_chunk_multicast(entry.payload, entry.targets))
            elif entry.kind is NotificationKind.TOPIC:
                generated.singles.append(Message(entry.payload, topic=entry.targets[0]))
            elif entry.kind is NotificationKind.TOPICS:
                for chunk in chunk_topics(entry.targets):
                    if len(chunk) == 1:
                        generated.singles.append(Message(entry.payload, topic=chunk[0]))
                    else:
                        generated.singles.append(
                            Message(entry.payload, condition=build_condition(chunk))
                        )
            else:  # pragma: no cover - exhaustive over NotificationKind
                raise ValueError(f"Unsupported notification kind: {entry.kind}")
        return generated


def _chunk_multicast(payload: NotificationData, tokens: Sequence[str]) -> List[MulticastMessage]:
    return [
        MulticastMessage(payload, tuple(tokens[start:start + MAX_DEVICES_PER_MULTICAST]))
        for start in range(0, len(tokens), MAX_DEVICES_PER_MULTICAST)
    ]
