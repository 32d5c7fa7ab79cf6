"""Notification audit log model."""
from sqlalchemy import CheckConstraint, Column, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID

from pushgate.db.base import Base, DbObjectMixin
from pushgate.db.types import StringArray


class History(DbObjectMixin, Base):
    """Append-only record of one send attempt and its per-target outcomes."""

    __tablename__ = "noti_history"

    application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("noti_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    profile_id = Column(String(255), index=True)
    topic_id = Column(UUID(as_uuid=True), ForeignKey("noti_topics.id", ondelete="SET NULL"))
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    image_url = Column(Text)
    data = Column(Text)
    results = Column(StringArray(), nullable=False, default=list)

    # Exactly one of profile_id / topic_id identifies the audience
    __table_args__ = (
        CheckConstraint(
            "(profile_id IS NULL) <> (topic_id IS NULL)",
            name="ck_history_single_audience",
        ),
    )
