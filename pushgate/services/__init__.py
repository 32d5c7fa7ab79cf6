"""Service layer package."""

from pushgate.services.applications import ApplicationService, generate_key
from pushgate.services.notifications import NotificationDispatchService
from pushgate.services.rollup import PushRollupService, build_push_services
from pushgate.services.store import PaginatedResult, SubscriptionStore
from pushgate.services.subscriptions import SubscriptionCoordinator

__all__ = [
    "ApplicationService",
    "generate_key",
    "NotificationDispatchService",
    "PushRollupService",
    "build_push_services",
    "PaginatedResult",
    "SubscriptionStore",
    "SubscriptionCoordinator",
]
