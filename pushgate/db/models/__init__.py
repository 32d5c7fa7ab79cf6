"""Database models package."""
from pushgate.db.models.application import Application
from pushgate.db.models.device_token import DeviceToken, ProviderType, PushDeviceType
from pushgate.db.models.history import History
from pushgate.db.models.subscription import TopicGroupSubscription, TopicSubscription
from pushgate.db.models.topic import Topic, TopicGroup, TopicGroupMap

__all__ = [
    "Application",
    "DeviceToken",
    "ProviderType",
    "PushDeviceType",
    "History",
    "TopicGroupSubscription",
    "TopicSubscription",
    "Topic",
    "TopicGroup",
    "TopicGroupMap",
]
