"""Topic name validation and OR-condition construction."""
from __future__ import annotations

import re
from typing import Iterable, List, Sequence

TOPIC_PATTERN = re.compile(r"^[a-zA-Z0-9\-_.~%]{1,900}$")
MAX_TOPICS_PER_CONDITION = 5


def valid(topic: str | None) -> bool:
    """Return True when ``topic`` is 1-900 characters from ``[A-Za-z0-9-_.~%]``."""
    if not isinstance(topic, str):
        return False
    return TOPIC_PATTERN.fullmatch(topic) is not None


def chunk_topics(topics: Sequence[str], size: int = MAX_TOPICS_PER_CONDITION) -> List[List[str]]:
    """Split topics into consecutive chunks the provider accepts in one condition."""
    return [list(topics[start:start + size]) for start in range(0, len(topics), size)]


def build_condition(topics: Iterable[str]) -> str:
    """Join topics into an OR condition, e.g. ``'a' in topics || 'b' in topics``."""
    return " || ".join(f"'{topic}' in topics" for topic in topics)
