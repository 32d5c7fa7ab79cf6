"""Push provider integration package."""

from pushgate.fcm.batcher import NotificationBatcher
from pushgate.fcm.gateway import TopicSubscriptionGateway
from pushgate.fcm.messages import Message, MulticastMessage, NotificationKind, NotificationsBuilder
from pushgate.fcm.provider import (
    FcmProvider,
    PushProvider,
    SendOutcome,
    TopicManagementError,
    get_push_provider,
)
from pushgate.fcm.responses import (
    NotificationResponse,
    NotificationResult,
    NotificationType,
    TopicSubResponse,
    TopicSubResponses,
)

__all__ = [
    "NotificationBatcher",
    "TopicSubscriptionGateway",
    "Message",
    "MulticastMessage",
    "NotificationKind",
    "NotificationsBuilder",
    "FcmProvider",
    "PushProvider",
    "SendOutcome",
    "TopicManagementError",
    "get_push_provider",
    "NotificationResponse",
    "NotificationResult",
    "NotificationType",
    "TopicSubResponse",
    "TopicSubResponses",
]
