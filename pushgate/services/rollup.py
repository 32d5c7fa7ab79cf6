"""Wire the gateway services together for one database session."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from pushgate.fcm.batcher import NotificationBatcher
from pushgate.fcm.gateway import TopicSubscriptionGateway
from pushgate.fcm.provider import PushProvider, get_push_provider
from pushgate.services.applications import ApplicationService
from pushgate.services.notifications import NotificationDispatchService
from pushgate.services.store import SubscriptionStore
from pushgate.services.subscriptions import SubscriptionCoordinator


@dataclass
class PushRollupService:
    """Every gateway operation reachable from one object."""

    store: SubscriptionStore
    subscriptions: SubscriptionCoordinator
    notifications: NotificationDispatchService
    applications: ApplicationService


def build_push_services(db: Session, provider: Optional[PushProvider] = None) -> PushRollupService:
    """Build the services for ``db``, using the configured FCM provider unless one is given."""
    provider = provider or get_push_provider()
    store = SubscriptionStore(db)
    return PushRollupService(
        store=store,
        subscriptions=SubscriptionCoordinator(store, TopicSubscriptionGateway(provider)),
        notifications=NotificationDispatchService(store, NotificationBatcher(provider)),
        applications=ApplicationService(store),
    )
