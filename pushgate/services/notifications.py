"""Send notifications to a profile's devices or to a topic and audit the outcome."""
from __future__ import annotations

from uuid import UUID

from loguru import logger

from pushgate.fcm import topics as topic_names
from pushgate.fcm.batcher import NotificationBatcher
from pushgate.fcm.messages import NotificationsBuilder
from pushgate.fcm.responses import NotificationResponse
from pushgate.schemas.notification import NotificationData
from pushgate.schemas.results import RequestResult, ResultTags
from pushgate.services.store import SubscriptionStore
from pushgate.utils.exceptions import result_from_exception
from pushgate.utils.validation import RequestValidator


def _validate_payload(data: NotificationData) -> RequestValidator:
    return RequestValidator().not_blank("title", data.title).not_blank("body", data.body)


class NotificationDispatchService:
    """Dispatch notifications through the batcher and write one History row per send."""

    def __init__(self, store: SubscriptionStore, batcher: NotificationBatcher):
        self.store = store
        self.batcher = batcher

    async def send_to_user(self, app_id: UUID, profile_id: str, data: NotificationData) -> RequestResult:
        validator = _validate_payload(data).not_blank("profile_id", profile_id)
        if not validator.valid:
            return RequestResult.was_bad_request(data=validator.issues)

        context = {"app_id": str(app_id), "profile_id": profile_id}
        try:
            devices = self.store.devices(app_id, profile_id)
            if not devices:
                return RequestResult.was_no_content(ResultTags.USER_HAS_NO_DEVICES)

            builder = NotificationsBuilder().direct(data, *(device.token for device in devices))
            response = await self.batcher.send(builder)
            history_id = self._record(app_id, data, response, profile_id=profile_id)
            return self._result(response, history_id, **context)
        except Exception as exc:
            return result_from_exception(exc, "send_to_user", **context)

    async def send_to_topic(self, app_id: UUID, topic: str, data: NotificationData) -> RequestResult:
        if not topic_names.valid(topic):
            return RequestResult.was_bad_request(ResultTags.TOPIC_NAME_INVALID)
        validator = _validate_payload(data)
        if not validator.valid:
            return RequestResult.was_bad_request(data=validator.issues)

        context = {"app_id": str(app_id), "topic": topic}
        try:
            topic_row = self.store.topic(app_id, topic)
            if topic_row is None:
                return RequestResult.was_no_content(ResultTags.TOPIC_NOT_FOUND)
            if self.store.count_subscriptions(topic_row.id) == 0:
                return RequestResult.was_no_content(ResultTags.TOPIC_HAS_NO_SUBSCRIBERS)

            response = await self.batcher.send(NotificationsBuilder().topic(data, topic))
            history_id = self._record(app_id, data, response, topic_id=topic_row.id)
            return self._result(response, history_id, **context)
        except Exception as exc:
            return result_from_exception(exc, "send_to_topic", **context)

    def _record(self, app_id: UUID, data: NotificationData, response: NotificationResponse, **audience) -> UUID:
        history = self.store.add_history(
            app_id,
            title=data.title,
            body=data.body,
            image_url=data.image_url,
            data=data.model_dump_json(),
            results=[result.describe() for result in response.results],
            **audience,
        )
        return history.id

    @staticmethod
    def _result(response: NotificationResponse, history_id: UUID, **context) -> RequestResult:
        if response.failed:
            failed = [result.describe() for result in response.failed_results]
            logger.error(
                "Notification delivery failed",
                failures=response.failures,
                history_id=str(history_id),
                failed=failed,
                **context,
            )
            return RequestResult.was_exception(data=failed)
        return RequestResult.was_ok(data=str(history_id))
