"""Registered device token model."""
from enum import Enum

from sqlalchemy import Column, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from pushgate.db.base import Base, DbObjectMixin


class PushDeviceType(str, Enum):
    """Kind of client a device token was issued to."""

    UNKNOWN = "unknown"
    ANDROID = "android"
    IOS = "ios"
    WEB = "web"


class ProviderType(str, Enum):
    """Upstream provider that issued a device token."""

    UNKNOWN = "unknown"
    FCM = "fcm"
    APNS = "apns"


class DeviceToken(DbObjectMixin, Base):
    """One installed client instance belonging to a profile of an application."""

    __tablename__ = "noti_device_tokens"

    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("noti_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    profile_id = Column(String(255), nullable=False, index=True)
    token = Column(Text, nullable=False)
    name = Column(String(255), nullable=False)
    user_agent = Column(String(512))
    device_type = Column(String(20), nullable=False, default=PushDeviceType.WEB.value)
    provider_type = Column(String(20), nullable=False, default=ProviderType.FCM.value)

    __table_args__ = (
        UniqueConstraint("application_id", "profile_id", "token", name="uq_device_tokens_app_profile_token"),
    )
