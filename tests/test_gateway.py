import pytest

from pushgate.fcm.gateway import INVALID_TOPIC_NAME, NO_VALID_TOKENS, TopicSubscriptionGateway, distinct
from tests.stubs import StubProvider


def test_distinct_drops_blanks_and_exact_duplicates():
    assert distinct(["a", "", "A", "a", "  ", None, "b"]) == ["a", "A", "b"]


@pytest.mark.asyncio
async def test_manage_topic_dedupes_tokens_and_calls_provider_once():
    provider = StubProvider()
    response = await TopicSubscriptionGateway(provider).manage_topic("news", ["a", "a", "b"], subscribe=True)

    assert provider.topic_calls == [(["a", "b"], "news", True)]
    assert not response.failed
    assert response.is_subscribe


@pytest.mark.asyncio
async def test_manage_topic_without_tokens_short_circuits():
    provider = StubProvider()
    response = await TopicSubscriptionGateway(provider).manage_topic("news", ["", None], subscribe=True)

    assert provider.topic_calls == []
    assert response.global_error == NO_VALID_TOKENS
    assert response.failed


@pytest.mark.asyncio
async def test_manage_topic_maps_failure_indexes_to_tokens():
    provider = StubProvider(failing_tokens={"b"})
    response = await TopicSubscriptionGateway(provider).manage_topic("news", ["a", "b", "c"], subscribe=False)

    assert response.errors == {"b": "registration-token-not-registered"}
    assert response.failures == 1


@pytest.mark.asyncio
async def test_manage_topic_provider_exception_fails_every_token():
    provider = StubProvider(fail_topic_calls=True)
    response = await TopicSubscriptionGateway(provider).manage_topic("news", ["a", "b"], subscribe=True)

    assert response.errors == {"a": "topic call rejected", "b": "topic call rejected"}
    assert response.global_error == "topic call rejected"


@pytest.mark.asyncio
async def test_manage_topics_invalid_topic_only_fails_that_topic():
    provider = StubProvider()
    response = await TopicSubscriptionGateway(provider).manage_topics(
        ["a", "b", "a"], ["news", "bad topic!", "sports"], subscribe=True
    )

    assert sorted(call[1] for call in provider.topic_calls) == ["news", "sports"]
    assert response.tokens == ["a", "b"]
    assert response.failures == 2
    failed = response.failed_responses
    assert [item.topic for item in failed] == ["bad topic!"]
    assert failed[0].errors == {"a": INVALID_TOPIC_NAME, "b": INVALID_TOPIC_NAME}


@pytest.mark.asyncio
async def test_manage_topics_sums_failures_across_topics():
    provider = StubProvider(failing_tokens={"a"})
    response = await TopicSubscriptionGateway(provider).manage_topics(["a", "b"], ["t1", "t2", "t3"], subscribe=True)

    assert len(response.responses) == 3
    assert response.failures == 3
