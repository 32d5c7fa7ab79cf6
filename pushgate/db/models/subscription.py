"""Profile subscription models."""
from sqlalchemy import Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from pushgate.db.base import Base, DbObjectMixin


class TopicGroupSubscription(DbObjectMixin, Base):
    """A profile's subscription to a whole topic group."""

    __tablename__ = "noti_topic_group_subscription"

    profile_id = Column(String(255), nullable=False, index=True)
    group_id = Column(
        UUID(as_uuid=True), ForeignKey("noti_topic_groups.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("profile_id", "group_id", name="uq_group_subscription_profile_group"),
    )


class TopicSubscription(DbObjectMixin, Base):
    """A profile's subscription to one topic.

    ``group_id`` is set when the row was created by a group subscription and
    is used to remove every row of that group in one statement.
    """

    __tablename__ = "noti_topic_subscriptions"

    profile_id = Column(String(255), nullable=False, index=True)
    topic_id = Column(
        UUID(as_uuid=True), ForeignKey("noti_topics.id", ondelete="CASCADE"), nullable=False
    )
    group_id = Column(
        UUID(as_uuid=True),
        ForeignKey("noti_topic_groups.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("profile_id", "topic_id", name="uq_topic_subscription_profile_topic"),
    )
