import pytest

from pushgate.db.models import Application, DeviceToken, Topic, TopicGroup, TopicSubscription
from pushgate.schemas.device import CreateUserDevice
from pushgate.utils.exceptions import StoreError


def test_upsert_topic_is_idempotent(store, application):
    first = store.upsert_topic(application.id, "news")
    second = store.upsert_topic(application.id, "news")

    assert first == second
    assert store.count(Topic, application_id=application.id) == 1


def test_upsert_topic_subscription_keeps_existing_provenance(store, application):
    topic_id = store.upsert_topic(application.id, "news")
    group_id = store.upsert_group(application.id, "daily")

    direct_id = store.upsert_topic_subscription("u1", topic_id)
    again_id = store.upsert_topic_subscription("u1", topic_id, group_id)

    assert direct_id == again_id
    assert store.get(TopicSubscription, direct_id).group_id is None


def test_upsert_device_updates_existing_row(store, application):
    request = CreateUserDevice(token="tok-1", name="Old name", user_agent="ua/1")
    first = store.upsert_device(application.id, "u1", request)
    second = store.upsert_device(
        application.id, "u1", CreateUserDevice(token="tok-1", name="New name", device_type="android")
    )

    assert first == second
    device = store.get(DeviceToken, first)
    assert device.name == "New name"
    assert device.device_type == "android"
    assert device.provider_type == "fcm"
    assert store.count(DeviceToken) == 1


def test_devices_are_scoped_by_application_and_profile(store, application, register_device):
    register_device("u1", "tok-1")
    register_device("u1", "tok-2")
    register_device("u2", "tok-3")

    assert [device.token for device in store.devices(application.id, "u1")] == ["tok-1", "tok-2"]


def test_group_queries_follow_maps_and_subscriptions(store, application, register_device):
    group_id = store.upsert_group(application.id, "daily")
    news_id = store.upsert_topic(application.id, "news")
    store.upsert_group_map(news_id, group_id)
    store.upsert_group_subscription("u1", group_id)
    store.upsert_topic_subscription("u1", news_id, group_id)
    register_device("u1", "tok-1")
    register_device("u2", "tok-2")

    assert [topic.topic_hash for topic in store.topics_by_group(group_id)] == ["news"]
    assert [device.token for device in store.devices_by_group(application.id, group_id)] == ["tok-1"]
    group_map = store.group_map(application.id, "daily", "news")
    assert group_map is not None
    assert [device.token for device in store.devices_by_map(application.id, group_map)] == ["tok-1"]
    assert [group.resource_id for group in store.groups_by_user(application.id, "u1")] == ["daily"]


def test_delete_subscriptions_by_group_leaves_direct_rows(store, application):
    group_id = store.upsert_group(application.id, "daily")
    news_id = store.upsert_topic(application.id, "news")
    sports_id = store.upsert_topic(application.id, "sports")
    store.upsert_topic_subscription("u1", news_id)
    store.upsert_topic_subscription("u1", sports_id, group_id)

    assert store.delete_subscriptions_by_group(group_id, "u1") == 1
    assert [topic.topic_hash for topic in store.non_group_topics_by_user(application.id, "u1")] == ["news"]
    assert store.subscriptions_by_group(group_id, "u1") == []


def test_paginate_groups_and_group_topics(store, application):
    for index in range(5):
        store.upsert_group(application.id, f"group-{index}")
    group_id = store.upsert_group(application.id, "group-0")
    for name in ("a", "b", "c"):
        store.upsert_group_map(store.upsert_topic(application.id, name), group_id)

    page = store.paginate_groups(application.id, page=2, page_size=2)
    assert page.total == 5
    assert page.pages == 3
    assert len(page.items) == 2
    assert all(isinstance(group, TopicGroup) for group in page.items)

    topics_page = store.paginate_group_topics(group_id, page=2, page_size=2)
    assert topics_page.total == 3
    assert [topic.topic_hash for topic in topics_page.items] == ["c"]


def test_history_requires_exactly_one_audience(store, application):
    with pytest.raises(ValueError):
        store.add_history(application.id, title="t", body="b", results=[])

    history = store.add_history(application.id, title="t", body="b", results=["tok: sent"], profile_id="u1")
    assert history.results == ["tok: sent"]


def test_insert_duplicate_application_name_raises_store_error(store, application):
    with pytest.raises(StoreError):
        store.insert(Application(name=application.name, secret="another-secret", owner_ids=[]))
