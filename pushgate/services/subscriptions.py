"""Keep the relational subscription graph in step with provider topic subscriptions."""
from __future__ import annotations

from typing import Any, Dict, List
from uuid import UUID

from loguru import logger

from pushgate.db.models import DeviceToken, TopicGroupSubscription, TopicSubscription
from pushgate.fcm import topics as topic_names
from pushgate.fcm.gateway import TopicSubscriptionGateway
from pushgate.fcm.responses import TopicSubResponse, TopicSubResponses
from pushgate.schemas.device import CreateUserDevice, DeviceTokenRead
from pushgate.schemas.results import RequestResult, ResultTags
from pushgate.schemas.subscription import UserSubscriptions
from pushgate.services.store import SubscriptionStore
from pushgate.utils.exceptions import result_from_exception
from pushgate.utils.validation import RequestValidator


def _failure_details(response: TopicSubResponse | TopicSubResponses) -> List[Dict[str, Any]]:
    responses = [response] if isinstance(response, TopicSubResponse) else response.failed_responses
    return [
        {"topic": item.topic, "errors": dict(item.errors), "global_error": item.global_error}
        for item in responses
        if item.failed
    ]


def _tokens(devices: List[DeviceToken]) -> List[str]:
    return [device.token for device in devices]


class SubscriptionCoordinator:
    """Run each subscription change as a short saga over the store and the provider.

    Local rows are written before the provider call that makes them
    effective. Subscribes compensate by deleting what they wrote when the
    provider rejects any token. Unsubscribes, map changes and device changes
    keep their local state and only log provider failures.
    """

    def __init__(self, store: SubscriptionStore, gateway: TopicSubscriptionGateway):
        self.store = store
        self.gateway = gateway

    @staticmethod
    def _log_failures(message: str, response: TopicSubResponse | TopicSubResponses, **context: Any) -> None:
        for detail in _failure_details(response):
            logger.error(message, **{**context, **detail})

    # ------------------------------------------------------------------
    # Topics
    # ------------------------------------------------------------------
    async def subscribe(self, app_id: UUID, topic: str, profile_id: str) -> RequestResult:
        """Subscribe every device of a profile to a topic, undoing the row on provider failure."""
        if not topic_names.valid(topic):
            return RequestResult.was_bad_request(ResultTags.TOPIC_NAME_INVALID)
        validator = RequestValidator().not_blank("profile_id", profile_id)
        if not validator.valid:
            return RequestResult.was_bad_request(data=validator.issues)

        context = {"app_id": str(app_id), "topic": topic, "profile_id": profile_id}
        try:
            topic_id = self.store.upsert_topic(app_id, topic)
            subscription_id = self.store.upsert_topic_subscription(profile_id, topic_id)

            devices = self.store.devices(app_id, profile_id)
            if not devices:
                return RequestResult.was_no_content(ResultTags.USER_HAS_NO_DEVICES)

            response = await self.gateway.manage_topic(topic, _tokens(devices), subscribe=True)
            if response.failed:
                self._log_failures("Topic subscribe rejected by provider", response, **context)
                # Removes the row even when it predates this call
                self.store.delete_by_id(TopicSubscription, subscription_id)
                return RequestResult.was_exception(data=_failure_details(response))
            return RequestResult.was_ok()
        except Exception as exc:
            return result_from_exception(exc, "subscribe", **context)

    async def unsubscribe(self, app_id: UUID, topic: str, profile_id: str) -> RequestResult:
        """Delete the subscription row, then unsubscribe the profile's devices upstream."""
        if not topic_names.valid(topic):
            return RequestResult.was_bad_request(ResultTags.TOPIC_NAME_INVALID)

        context = {"app_id": str(app_id), "topic": topic, "profile_id": profile_id}
        try:
            subscription = self.store.topic_subscription(app_id, topic, profile_id)
            if subscription is None:
                return RequestResult.was_no_content(ResultTags.USER_NOT_SUBSCRIBED)
            self.store.delete(subscription)

            devices = self.store.devices(app_id, profile_id)
            if not devices:
                return RequestResult.was_no_content(ResultTags.USER_HAS_NO_DEVICES)

            response = await self.gateway.manage_topic(topic, _tokens(devices), subscribe=False)
            if response.failed:
                self._log_failures("Topic unsubscribe rejected by provider", response, **context)
                return RequestResult.was_exception(data=_failure_details(response))
            return RequestResult.was_ok()
        except Exception as exc:
            return result_from_exception(exc, "unsubscribe", **context)

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------
    async def subscribe_group(self, app_id: UUID, resource_id: str, profile_id: str) -> RequestResult:
        """Subscribe a profile to every topic currently mapped into a group."""
        validator = (
            RequestValidator()
            .not_blank("resource_id", resource_id)
            .not_blank("profile_id", profile_id)
        )
        if not validator.valid:
            return RequestResult.was_bad_request(data=validator.issues)

        context = {"app_id": str(app_id), "resource_id": resource_id, "profile_id": profile_id}
        try:
            group_id = self.store.upsert_group(app_id, resource_id)
            group_subscription_id = self.store.upsert_group_subscription(profile_id, group_id)

            group_topics = self.store.topics_by_group(group_id)
            if not group_topics:
                return RequestResult.was_no_content(ResultTags.GROUP_HAS_NO_TOPICS)

            # Sequential: one Session must not be shared across concurrent tasks
            for topic in group_topics:
                self.store.upsert_topic_subscription(profile_id, topic.id, group_id)

            devices = self.store.devices(app_id, profile_id)
            if not devices:
                return RequestResult.was_no_content(ResultTags.USER_HAS_NO_DEVICES)

            response = await self.gateway.manage_topics(
                _tokens(devices), [topic.topic_hash for topic in group_topics], subscribe=True
            )
            if response.failed:
                self._log_failures("Group subscribe rejected by provider", response, **context)
                self.store.delete_by_id(TopicGroupSubscription, group_subscription_id)
                self.store.delete_subscriptions_by_group(group_id, profile_id)
                return RequestResult.was_exception(data=_failure_details(response))
            return RequestResult.was_ok()
        except Exception as exc:
            return result_from_exception(exc, "subscribe_group", **context)

    async def unsubscribe_group(self, app_id: UUID, resource_id: str, profile_id: str) -> RequestResult:
        """Remove the group subscription and its tagged topic subscriptions, then sync upstream."""
        context = {"app_id": str(app_id), "resource_id": resource_id, "profile_id": profile_id}
        try:
            group_subscription = self.store.group_subscription(app_id, profile_id, resource_id)
            if group_subscription is None:
                return RequestResult.was_no_content(ResultTags.GROUP_NOT_SUBSCRIBED)
            group_id = group_subscription.group_id
            self.store.delete(group_subscription)

            tagged = self.store.subscriptions_by_group(group_id, profile_id)
            if not tagged:
                return RequestResult.was_no_content(ResultTags.GROUP_NOT_SUBSCRIBED)
            topic_hashes = [topic.topic_hash for _, topic in tagged]
            self.store.delete_subscriptions_by_group(group_id, profile_id)

            devices = self.store.devices(app_id, profile_id)
            if not devices:
                return RequestResult.was_no_content(ResultTags.USER_HAS_NO_DEVICES)

            response = await self.gateway.manage_topics(_tokens(devices), topic_hashes, subscribe=False)
            if response.failed:
                self._log_failures("Group unsubscribe rejected by provider", response, **context)
                return RequestResult.was_exception(data=_failure_details(response))
            return RequestResult.was_ok()
        except Exception as exc:
            return result_from_exception(exc, "unsubscribe_group", **context)

    async def map_topic(self, app_id: UUID, resource_id: str, topic: str) -> RequestResult:
        """Map a topic into a group and push it to the group's current subscribers."""
        if not topic_names.valid(topic):
            return RequestResult.was_bad_request(ResultTags.TOPIC_NAME_INVALID)
        validator = RequestValidator().not_blank("resource_id", resource_id)
        if not validator.valid:
            return RequestResult.was_bad_request(data=validator.issues)

        context = {"app_id": str(app_id), "resource_id": resource_id, "topic": topic}
        try:
            topic_id = self.store.upsert_topic(app_id, topic)
            group_id = self.store.upsert_group(app_id, resource_id)
            self.store.upsert_group_map(topic_id, group_id)

            devices = self.store.devices_by_group(app_id, group_id)
            if not devices:
                return RequestResult.was_no_content(ResultTags.GROUP_HAS_NO_SUBSCRIBERS)

            response = await self.gateway.manage_topic(topic, _tokens(devices), subscribe=True)
            if response.failed:
                self._log_failures("Group map sync rejected by provider", response, **context)
                return RequestResult.was_exception(data=_failure_details(response))
            return RequestResult.was_ok()
        except Exception as exc:
            return result_from_exception(exc, "map_topic", **context)

    async def unmap_topic(self, app_id: UUID, resource_id: str, topic: str) -> RequestResult:
        """Unsubscribe devices that received a topic through a group map.

        The map row itself is left in place.
        """
        if not topic_names.valid(topic):
            return RequestResult.was_bad_request(ResultTags.TOPIC_NAME_INVALID)

        context = {"app_id": str(app_id), "resource_id": resource_id, "topic": topic}
        try:
            group_map = self.store.group_map(app_id, resource_id, topic)
            if group_map is None:
                return RequestResult.was_no_content(ResultTags.GROUP_MAP_NOT_FOUND)

            devices = self.store.devices_by_map(app_id, group_map)
            if not devices:
                return RequestResult.was_no_content(ResultTags.GROUP_HAS_NO_SUBSCRIBERS)

            response = await self.gateway.manage_topic(topic, _tokens(devices), subscribe=False)
            if response.failed:
                self._log_failures("Group unmap sync rejected by provider", response, **context)
                return RequestResult.was_exception(data=_failure_details(response))
            return RequestResult.was_ok()
        except Exception as exc:
            return result_from_exception(exc, "unmap_topic", **context)

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------
    async def add_device(self, app_id: UUID, profile_id: str, request: CreateUserDevice) -> RequestResult:
        """Register a device and subscribe it to every topic the profile already follows."""
        validator = (
            RequestValidator()
            .not_blank("profile_id", profile_id)
            .not_blank("name", request.name)
            .not_blank("token", request.token)
        )
        if not validator.valid:
            return RequestResult.was_bad_request(data=validator.issues)

        context = {"app_id": str(app_id), "profile_id": profile_id}
        try:
            device_id = self.store.upsert_device(app_id, profile_id, request)

            profile_topics = self.store.topics_by_user(app_id, profile_id)
            if not profile_topics:
                return RequestResult.was_no_content(ResultTags.USER_HAS_NO_TOPICS)

            response = await self.gateway.manage_topics(
                [request.token], [topic.topic_hash for topic in profile_topics], subscribe=True
            )
            if response.failed:
                self._log_failures(
                    "Device topic sync rejected by provider", response, device_id=str(device_id), **context
                )
            return RequestResult.was_ok(data=str(device_id))
        except Exception as exc:
            return result_from_exception(exc, "add_device", **context)

    async def remove_device(self, app_id: UUID, device_id: UUID) -> RequestResult:
        """Delete a device owned by the application and unsubscribe its token upstream."""
        context = {"app_id": str(app_id), "device_id": str(device_id)}
        try:
            device = self.store.get(DeviceToken, device_id)
            if device is None:
                return RequestResult.was_not_found("Device")
            if device.application_id != app_id:
                return RequestResult.was_unauthorized()

            token, profile_id = device.token, device.profile_id
            self.store.delete(device)

            profile_topics = self.store.topics_by_user(app_id, profile_id)
            if not profile_topics:
                return RequestResult.was_no_content(ResultTags.USER_HAS_NO_TOPICS)

            response = await self.gateway.manage_topics(
                [token], [topic.topic_hash for topic in profile_topics], subscribe=False
            )
            if response.failed:
                self._log_failures(
                    "Device topic cleanup rejected by provider", response, profile_id=profile_id, **context
                )
            return RequestResult.was_ok()
        except Exception as exc:
            return result_from_exception(exc, "remove_device", **context)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def subscriptions(self, app_id: UUID, profile_id: str) -> RequestResult:
        try:
            topics = self.store.non_group_topics_by_user(app_id, profile_id)
            groups = self.store.groups_by_user(app_id, profile_id)
            return RequestResult.was_ok(
                data=UserSubscriptions(
                    topics=[topic.topic_hash for topic in topics],
                    groups=[group.resource_id for group in groups],
                )
            )
        except Exception as exc:
            return result_from_exception(exc, "subscriptions", app_id=str(app_id), profile_id=profile_id)

    async def devices(self, app_id: UUID, profile_id: str) -> RequestResult:
        try:
            devices = self.store.devices(app_id, profile_id)
            return RequestResult.was_ok(data=[DeviceTokenRead.model_validate(device) for device in devices])
        except Exception as exc:
            return result_from_exception(exc, "devices", app_id=str(app_id), profile_id=profile_id)
