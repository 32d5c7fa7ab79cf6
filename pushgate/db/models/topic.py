"""Topic, topic group and group map models."""
from sqlalchemy import Column, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from pushgate.db.base import Base, DbObjectMixin


class Topic(DbObjectMixin, Base):
    """A provider-facing broadcast channel scoped to one application."""

    __tablename__ = "noti_topics"

    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("noti_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    topic_hash = Column(String(900), nullable=False)

    __table_args__ = (
        UniqueConstraint("application_id", "topic_hash", name="uq_topics_app_hash"),
    )


class TopicGroup(DbObjectMixin, Base):
    """An application-defined bundle of topics addressed by ``resource_id``."""

    __tablename__ = "noti_topic_groups"

    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("noti_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    resource_id = Column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("application_id", "resource_id", name="uq_topic_groups_app_resource"),
    )


class TopicGroupMap(DbObjectMixin, Base):
    """Membership of a topic in a group."""

    __tablename__ = "noti_topic_group_map"

    topic_id = Column(
        UUID(as_uuid=True), ForeignKey("noti_topics.id", ondelete="CASCADE"), nullable=False
    )
    group_id = Column(
        UUID(as_uuid=True), ForeignKey("noti_topic_groups.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("topic_id", "group_id", name="uq_topic_group_map_topic_group"),
    )
