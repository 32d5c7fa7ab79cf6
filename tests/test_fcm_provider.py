from types import SimpleNamespace

import pytest
from firebase_admin import messaging
from firebase_admin.exceptions import FirebaseError

from pushgate.config import Settings
from pushgate.fcm.messages import Message, MulticastMessage
from pushgate.fcm.provider import FcmProvider, initialize_firebase_app
from pushgate.schemas.notification import NotificationData
from pushgate.utils.exceptions import ProviderConfigurationError, ProviderError, ProviderRequestError

PAYLOAD = NotificationData(title="Hello", body="World", image_url="https://img.example/a.png", data={"k": "v"})


def _response(success, message_id=None, error=None):
    return SimpleNamespace(success=success, message_id=message_id, exception=error)


def test_to_firebase_message_carries_payload_and_target():
    provider = FcmProvider(dry_run=False)

    converted = provider.to_firebase_message(Message(PAYLOAD, condition="'a' in topics || 'b' in topics"))

    assert converted.condition == "'a' in topics || 'b' in topics"
    assert converted.token is None
    assert converted.notification.title == "Hello"
    assert converted.notification.image == "https://img.example/a.png"
    assert converted.data == {"k": "v"}


def test_send_returns_message_id(monkeypatch):
    calls = []

    def fake_send(message, dry_run=False, app=None):
        calls.append((message, dry_run))
        return "projects/p/messages/1"

    monkeypatch.setattr(messaging, "send", fake_send)

    message_id = FcmProvider(dry_run=True).send(Message(PAYLOAD, token="tok-1"))

    assert message_id == "projects/p/messages/1"
    assert calls[0][0].token == "tok-1"
    assert calls[0][1] is True


def test_send_wraps_firebase_errors(monkeypatch):
    def fake_send(message, dry_run=False, app=None):
        raise FirebaseError("INVALID_ARGUMENT", "bad token")

    monkeypatch.setattr(messaging, "send", fake_send)

    with pytest.raises(ProviderError) as exc_info:
        FcmProvider(dry_run=False).send(Message(PAYLOAD, token="tok-1"))

    assert exc_info.value.details["code"] == "INVALID_ARGUMENT"


def test_send_batch_converts_each_response(monkeypatch):
    def fake_send_each(messages, dry_run=False, app=None):
        return SimpleNamespace(
            responses=[_response(True, "m-1"), _response(False, error=Exception("unregistered"))]
        )

    monkeypatch.setattr(messaging, "send_each", fake_send_each)

    outcomes = FcmProvider(dry_run=False).send_batch(
        [Message(PAYLOAD, token="tok-1"), Message(PAYLOAD, topic="news")]
    )

    assert outcomes[0].message_id == "m-1"
    assert outcomes[1].error == "unregistered"


def test_send_multicast_passes_tokens(monkeypatch):
    seen = {}

    def fake_multicast(message, dry_run=False, app=None):
        seen["tokens"] = message.tokens
        return SimpleNamespace(responses=[_response(True, "m-1"), _response(True, "m-2")])

    monkeypatch.setattr(messaging, "send_each_for_multicast", fake_multicast)

    outcomes = FcmProvider(dry_run=False).send_multicast(MulticastMessage(PAYLOAD, ("a", "b")))

    assert seen["tokens"] == ["a", "b"]
    assert [outcome.message_id for outcome in outcomes] == ["m-1", "m-2"]


def test_manage_topic_subscription_reports_failed_indexes(monkeypatch):
    calls = []

    def fake_unsubscribe(tokens, topic, app=None):
        calls.append((tokens, topic))
        return SimpleNamespace(errors=[SimpleNamespace(index=1, reason="INVALID_ARGUMENT")])

    monkeypatch.setattr(messaging, "unsubscribe_from_topic", fake_unsubscribe)

    errors = FcmProvider(dry_run=False).manage_topic_subscription(["a", "b"], "news", subscribe=False)

    assert calls == [(["a", "b"], "news")]
    assert [(error.index, error.reason) for error in errors] == [(1, "INVALID_ARGUMENT")]


def test_initialize_without_credentials_fails():
    config = Settings(
        FCM_CREDENTIALS_PATH=None,
        FCM_SERVICE_ACCOUNT_JSON=None,
        FCM_APP_NAME="pushgate-missing-credentials",
    )

    with pytest.raises(ProviderConfigurationError):
        initialize_firebase_app(config)


def test_initialize_rejects_malformed_inline_json():
    config = Settings(
        FCM_CREDENTIALS_PATH=None,
        FCM_SERVICE_ACCOUNT_JSON="{not json",
        FCM_APP_NAME="pushgate-bad-json",
    )

    with pytest.raises(ProviderConfigurationError):
        initialize_firebase_app(config)


def test_rejected_topic_arguments_are_not_retried(monkeypatch):
    calls = []

    def fake_subscribe(tokens, topic, app=None):
        calls.append(topic)
        raise ValueError("Invalid topic name")

    monkeypatch.setattr(messaging, "subscribe_to_topic", fake_subscribe)

    with pytest.raises(ProviderRequestError):
        FcmProvider(dry_run=False).manage_topic_subscription(["a"], "bad topic", subscribe=True)

    assert calls == ["bad topic"]


def test_firebase_errors_remain_retryable_provider_errors(monkeypatch):
    def fake_send(message, dry_run=False, app=None):
        raise FirebaseError("UNAVAILABLE", "try later")

    monkeypatch.setattr(messaging, "send", fake_send)

    with pytest.raises(ProviderError) as exc_info:
        FcmProvider(dry_run=False).send(Message(PAYLOAD, token="tok-1"))

    assert not isinstance(exc_info.value, ProviderRequestError)
