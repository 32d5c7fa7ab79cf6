"""Normalise provider topic subscribe/unsubscribe calls into one response shape."""
from __future__ import annotations

import asyncio
from typing import Iterable, List

from loguru import logger

from pushgate.fcm import topics as topic_names
from pushgate.fcm.provider import PushProvider
from pushgate.fcm.responses import TopicSubResponse, TopicSubResponses

NO_VALID_TOKENS = "No valid tokens provided"
INVALID_TOPIC_NAME = "invalid topic name"


def distinct(values: Iterable[str | None]) -> List[str]:
    """Drop blanks and exact duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        if value and value.strip() and value not in seen:
            seen[value] = None
    return list(seen)


class TopicSubscriptionGateway:
    """Thin async wrapper around the provider's topic management calls."""

    def __init__(self, provider: PushProvider):
        self.provider = provider

    async def manage_topic(
        self, topic: str, tokens: Iterable[str | None], subscribe: bool
    ) -> TopicSubResponse:
        unique_tokens = distinct(tokens)
        response = TopicSubResponse(topic=topic, is_subscribe=subscribe)
        if not unique_tokens:
            response.global_error = NO_VALID_TOKENS
            return response
        if not topic_names.valid(topic):
            response.global_error = INVALID_TOPIC_NAME
            response.errors = {token: INVALID_TOPIC_NAME for token in unique_tokens}
            return response

        try:
            failures = await asyncio.to_thread(
                self.provider.manage_topic_subscription, unique_tokens, topic, subscribe
            )
        except Exception as exc:
            logger.error(
                "Topic subscription call failed",
                topic=topic,
                subscribe=subscribe,
                tokens=len(unique_tokens),
                error=str(exc),
            )
            response.global_error = str(exc)
            response.errors = {token: str(exc) for token in unique_tokens}
            return response

        for failure in failures:
            if 0 <= failure.index < len(unique_tokens):
                response.errors[unique_tokens[failure.index]] = failure.reason
        return response

    async def manage_topics(
        self, tokens: Iterable[str | None], topics: Iterable[str], subscribe: bool
    ) -> TopicSubResponses:
        unique_tokens = distinct(tokens)
        unique_topics = distinct(topics)
        responses = await asyncio.gather(
            *(self.manage_topic(topic, unique_tokens, subscribe) for topic in unique_topics)
        )
        return TopicSubResponses(
            tokens=unique_tokens, is_subscribe=subscribe, responses=list(responses)
        )
