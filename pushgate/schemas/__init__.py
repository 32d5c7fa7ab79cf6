"""Pydantic schemas package."""

from pushgate.schemas.application import ApplicationCreate, ApplicationCreated, ApplicationIdentity
from pushgate.schemas.device import CreateUserDevice, DeviceTokenRead
from pushgate.schemas.notification import NotificationData
from pushgate.schemas.results import RequestResult, ResultTags
from pushgate.schemas.subscription import UserSubscriptions

__all__ = [
    "ApplicationCreate",
    "ApplicationCreated",
    "ApplicationIdentity",
    "CreateUserDevice",
    "DeviceTokenRead",
    "NotificationData",
    "RequestResult",
    "ResultTags",
    "UserSubscriptions",
]
