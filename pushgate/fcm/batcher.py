"""Split generated messages into provider-compliant calls and aggregate outcomes."""
from __future__ import annotations

import asyncio
from typing import List, Sequence

from loguru import logger

from pushgate.fcm.messages import Message, MulticastMessage, NotificationsBuilder
from pushgate.fcm.provider import MAX_BATCH_SIZE, PushProvider, SendOutcome
from pushgate.fcm.responses import NotificationResponse, NotificationResult, NotificationType


class NotificationBatcher:
    """Issue the minimal set of provider calls for a builder's messages.

    Singles go first: one direct send when there is exactly one, otherwise
    batches of at most 500 where a trailing chunk of one falls back to a
    direct send. Each multicast message is then sent with its own call.
    Provider exceptions never escape; every target of the failed call is
    recorded as failed instead.
    """

    def __init__(self, provider: PushProvider, max_batch_size: int = MAX_BATCH_SIZE):
        self.provider = provider
        self.max_batch_size = max_batch_size

    async def send(self, builder: NotificationsBuilder) -> NotificationResponse:
        generated = builder.generate()
        results: List[NotificationResult] = []
        single_calls = batch_calls = multicast_calls = 0

        singles = generated.singles
        if len(singles) == 1:
            results.extend(await self._send_single(singles[0]))
            single_calls += 1
        elif singles:
            for start in range(0, len(singles), self.max_batch_size):
                chunk = singles[start:start + self.max_batch_size]
                if len(chunk) == 1:
                    results.extend(await self._send_single(chunk[0]))
                    single_calls += 1
                else:
                    results.extend(await self._send_batch(chunk))
                    batch_calls += 1

        for multicast in generated.multicasts:
            results.extend(await self._send_multicast(multicast))
            multicast_calls += 1

        if batch_calls or single_calls + multicast_calls > 1:
            kind = NotificationType.BATCH
        elif multicast_calls:
            kind = NotificationType.MULTICAST
        else:
            kind = NotificationType.SINGLE

        response = NotificationResponse(type=kind, results=results)
        if response.failed:
            logger.error(
                "Notification dispatch had failures",
                failures=response.failures,
                total=len(results),
                type=kind.name,
            )
        return response

    async def _send_single(self, message: Message) -> List[NotificationResult]:
        try:
            message_id = await asyncio.to_thread(self.provider.send, message)
        except Exception as exc:
            logger.error("Provider send failed", target=message.target, error=str(exc))
            return [NotificationResult(target=message.target, error=str(exc))]
        return [NotificationResult(target=message.target, message_id=message_id)]

    async def _send_batch(self, messages: Sequence[Message]) -> List[NotificationResult]:
        targets = [message.target for message in messages]
        try:
            outcomes = await asyncio.to_thread(self.provider.send_batch, list(messages))
        except Exception as exc:
            logger.error("Provider batch send failed", size=len(messages), error=str(exc))
            return [NotificationResult(target=target, error=str(exc)) for target in targets]
        return _merge(targets, outcomes)

    async def _send_multicast(self, message: MulticastMessage) -> List[NotificationResult]:
        targets = list(message.tokens)
        try:
            outcomes = await asyncio.to_thread(self.provider.send_multicast, message)
        except Exception as exc:
            logger.error("Provider multicast send failed", size=len(targets), error=str(exc))
            return [NotificationResult(target=target, error=str(exc)) for target in targets]
        return _merge(targets, outcomes)


def _merge(targets: Sequence[str], outcomes: Sequence[SendOutcome]) -> List[NotificationResult]:
    results = []
    for index, target in enumerate(targets):
        if index >= len(outcomes):
            results.append(NotificationResult(target=target, error="missing provider response"))
            continue
        outcome = outcomes[index]
        results.append(
            NotificationResult(target=target, message_id=outcome.message_id, error=outcome.error)
        )
    return results
