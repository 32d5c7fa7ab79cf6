"""Tenant application model."""
from sqlalchemy import Boolean, Column, String

from pushgate.db.base import Base, DbObjectMixin
from pushgate.db.types import StringArray


class Application(DbObjectMixin, Base):
    """A tenant of the gateway, identified by an opaque bearer secret."""

    __tablename__ = "noti_applications"

    name = Column(String(255), unique=True, nullable=False)
    secret = Column(String(255), unique=True, nullable=False)
    owner_ids = Column(StringArray(), nullable=False, default=list)
    is_admin = Column(Boolean, nullable=False, default=False)
