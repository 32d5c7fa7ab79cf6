import pytest

from pushgate.fcm.batcher import NotificationBatcher
from pushgate.fcm.messages import NotificationsBuilder
from pushgate.fcm.responses import NotificationType
from pushgate.schemas.notification import NotificationData
from tests.stubs import StubProvider

PAYLOAD = NotificationData(title="Hello", body="World")


@pytest.mark.asyncio
async def test_single_message_uses_direct_send():
    provider = StubProvider()
    response = await NotificationBatcher(provider).send(NotificationsBuilder().direct(PAYLOAD, "tok-1"))

    assert response.type is NotificationType.SINGLE
    assert len(provider.sent) == 1
    assert provider.batches == []
    assert response.results[0].message_id == "msg-1"
    assert response.failures == 0


@pytest.mark.asyncio
async def test_1001_singles_use_two_batches_and_one_direct_send():
    provider = StubProvider()
    builder = NotificationsBuilder()
    for index in range(1001):
        builder.direct(PAYLOAD, f"tok-{index}")

    response = await NotificationBatcher(provider).send(builder)

    assert [len(batch) for batch in provider.batches] == [500, 500]
    assert [message.token for message in provider.sent] == ["tok-1000"]
    assert response.type is NotificationType.BATCH
    assert len(response.results) == 1001
    assert response.failures == 0


@pytest.mark.asyncio
async def test_multicast_partial_failure_is_aggregated():
    tokens = [f"tok-{index}" for index in range(10)]
    provider = StubProvider(failing_tokens={"tok-3", "tok-7"})

    response = await NotificationBatcher(provider).send(NotificationsBuilder().direct(PAYLOAD, *tokens))

    assert response.type is NotificationType.MULTICAST
    assert response.failures == 2
    assert len([result for result in response.results if result.error is not None]) == 2
    assert len([result for result in response.results if result.message_id is not None]) == 8
    assert {result.target for result in response.failed_results} == {"tok-3", "tok-7"}


@pytest.mark.asyncio
async def test_provider_exception_marks_every_target_failed():
    tokens = [f"tok-{index}" for index in range(4)]
    provider = StubProvider(fail_sends=True)

    response = await NotificationBatcher(provider).send(NotificationsBuilder().direct(PAYLOAD, *tokens))

    assert response.failures == 4
    assert all(result.error == "multicast rejected" for result in response.results)


@pytest.mark.asyncio
async def test_batch_exception_marks_every_message_failed():
    provider = StubProvider(fail_sends=True)
    builder = NotificationsBuilder().direct(PAYLOAD, "tok-1").topic(PAYLOAD, "news")

    response = await NotificationBatcher(provider).send(builder)

    assert response.failures == 2
    assert [result.target for result in response.results] == ["tok-1", "news"]


@pytest.mark.asyncio
async def test_singles_are_sent_before_multicasts():
    provider = StubProvider()
    builder = NotificationsBuilder().direct(PAYLOAD, "a", "b").topic(PAYLOAD, "news")

    response = await NotificationBatcher(provider).send(builder)

    assert [result.target for result in response.results] == ["news", "a", "b"]
    assert response.type is NotificationType.BATCH


@pytest.mark.asyncio
async def test_small_batch_size_falls_back_to_single_for_trailing_chunk():
    provider = StubProvider()
    builder = NotificationsBuilder()
    for index in range(5):
        builder.direct(PAYLOAD, f"tok-{index}")

    await NotificationBatcher(provider, max_batch_size=2).send(builder)

    assert [len(batch) for batch in provider.batches] == [2, 2]
    assert [message.token for message in provider.sent] == ["tok-4"]
