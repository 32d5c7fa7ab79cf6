"""Push provider contract and its Firebase Cloud Messaging implementation."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence

import firebase_admin
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError
from loguru import logger
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from pushgate.config import Settings, settings
from pushgate.fcm.messages import Message, MulticastMessage
from pushgate.utils.exceptions import ProviderConfigurationError, ProviderError, ProviderRequestError

MAX_BATCH_SIZE = 500


@dataclass
class SendOutcome:
    """Per-item outcome reported by a batch or multicast call."""

    message_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class TopicManagementError:
    """A token the provider refused, by position in the submitted list."""

    index: int
    reason: str


class PushProvider(Protocol):
    """Calls the gateway needs from an upstream push service."""

    def send(self, message: Message) -> str:  # pragma: no cover - interface definition
        """Send one message and return the provider message id."""

    def send_batch(self, messages: Sequence[Message]) -> List[SendOutcome]:  # pragma: no cover
        """Send up to 500 messages, one outcome per message in order."""

    def send_multicast(self, message: MulticastMessage) -> List[SendOutcome]:  # pragma: no cover
        """Send one payload to up to 500 tokens, one outcome per token in order."""

    def manage_topic_subscription(
        self, tokens: Sequence[str], topic: str, subscribe: bool
    ) -> List[TopicManagementError]:  # pragma: no cover
        """Subscribe or unsubscribe tokens and return the failing ones."""


def initialize_firebase_app(config: Settings = settings) -> firebase_admin.App:
    """Return the named firebase_admin app, initialising it from credentials on first use."""
    try:
        return firebase_admin.get_app(config.FCM_APP_NAME)
    except ValueError:
        pass

    if config.FCM_CREDENTIALS_PATH:
        cred = credentials.Certificate(config.FCM_CREDENTIALS_PATH)
    elif config.FCM_SERVICE_ACCOUNT_JSON:
        try:
            cred = credentials.Certificate(json.loads(config.FCM_SERVICE_ACCOUNT_JSON))
        except ValueError as exc:
            raise ProviderConfigurationError("Invalid FCM service account JSON") from exc
    else:
        raise ProviderConfigurationError(
            "FCM credentials missing",
            {"settings": ["FCM_CREDENTIALS_PATH", "FCM_SERVICE_ACCOUNT_JSON"]},
        )

    options = {"projectId": config.FCM_PROJECT_ID} if config.FCM_PROJECT_ID else None
    app = firebase_admin.initialize_app(cred, options, name=config.FCM_APP_NAME)
    logger.info("Firebase app initialised", app_name=config.FCM_APP_NAME)
    return app


def _provider_error(exc: Exception, operation: str) -> ProviderError:
    details: dict[str, Any] = {"operation": operation}
    code = getattr(exc, "code", None)
    if code:
        details["code"] = code
    message = str(exc) or exc.__class__.__name__
    if isinstance(exc, FirebaseError):
        return ProviderError(message, details)
    return ProviderRequestError(message, details)


def _outcome(response: Any) -> SendOutcome:
    if response.success:
        return SendOutcome(message_id=response.message_id)
    return SendOutcome(error=str(response.exception) if response.exception else "unknown error")


class FcmProvider:
    """:class:`PushProvider` backed by ``firebase_admin.messaging``."""

    name = "fcm"

    def __init__(self, app: Optional[firebase_admin.App] = None, dry_run: Optional[bool] = None):
        self.app = app
        self.dry_run = settings.FCM_DRY_RUN if dry_run is None else dry_run

    @staticmethod
    def _notification(message: Message | MulticastMessage) -> messaging.Notification:
        payload = message.payload
        return messaging.Notification(title=payload.title, body=payload.body, image=payload.image_url)

    def to_firebase_message(self, message: Message) -> messaging.Message:
        return messaging.Message(
            notification=self._notification(message),
            data=message.payload.data,
            token=message.token,
            topic=message.topic,
            condition=message.condition,
        )

    def to_firebase_multicast(self, message: MulticastMessage) -> messaging.MulticastMessage:
        return messaging.MulticastMessage(
            tokens=list(message.tokens),
            notification=self._notification(message),
            data=message.payload.data,
        )

    def send(self, message: Message) -> str:
        try:
            return messaging.send(self.to_firebase_message(message), dry_run=self.dry_run, app=self.app)
        except (FirebaseError, ValueError) as exc:
            raise _provider_error(exc, "send") from exc

    def send_batch(self, messages: Sequence[Message]) -> List[SendOutcome]:
        if len(messages) > MAX_BATCH_SIZE:
            raise ValueError(f"At most {MAX_BATCH_SIZE} messages can be sent in one batch")
        try:
            batch = messaging.send_each(
                [self.to_firebase_message(message) for message in messages],
                dry_run=self.dry_run,
                app=self.app,
            )
        except (FirebaseError, ValueError) as exc:
            raise _provider_error(exc, "send_batch") from exc
        return [_outcome(response) for response in batch.responses]

    def send_multicast(self, message: MulticastMessage) -> List[SendOutcome]:
        try:
            batch = messaging.send_each_for_multicast(
                self.to_firebase_multicast(message), dry_run=self.dry_run, app=self.app
            )
        except (FirebaseError, ValueError) as exc:
            raise _provider_error(exc, "send_multicast") from exc
        return [_outcome(response) for response in batch.responses]

    @retry(
        retry=retry_if_exception_type(ProviderError) & retry_if_not_exception_type(ProviderRequestError),
        stop=stop_after_attempt(settings.FCM_TOPIC_MAX_RETRIES),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        before_sleep=before_sleep_log(logger, "WARNING"),
        reraise=True,
    )
    def manage_topic_subscription(
        self, tokens: Sequence[str], topic: str, subscribe: bool
    ) -> List[TopicManagementError]:
        call = messaging.subscribe_to_topic if subscribe else messaging.unsubscribe_from_topic
        try:
            response = call(list(tokens), topic, app=self.app)
        except (FirebaseError, ValueError) as exc:
            raise _provider_error(exc, "subscribe_to_topic" if subscribe else "unsubscribe_from_topic") from exc
        return [TopicManagementError(index=error.index, reason=error.reason) for error in response.errors]


_provider: Optional[PushProvider] = None


def get_push_provider() -> PushProvider:
    """Return the process-wide FCM provider, creating it on first use."""
    global _provider
    if _provider is None:
        _provider = FcmProvider(app=initialize_firebase_app())
    return _provider
