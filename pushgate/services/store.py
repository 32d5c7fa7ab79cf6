"""Relational data access for applications, devices, topics, groups and history."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar
from uuid import UUID

from loguru import logger
from sqlalchemy import and_, delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pushgate.db.base import Base
from pushgate.db.models import (
    Application,
    DeviceToken,
    History,
    Topic,
    TopicGroup,
    TopicGroupMap,
    TopicGroupSubscription,
    TopicSubscription,
)
from pushgate.schemas.device import CreateUserDevice
from pushgate.utils.exceptions import StoreError

ModelT = TypeVar("ModelT", bound=Base)


@dataclass
class PaginatedResult(Generic[ModelT]):
    """One page of rows plus the total row count."""

    items: List[ModelT] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 50

    @property
    def pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size


class SubscriptionStore:
    """Single-statement reads and writes over the gateway tables.

    Every write commits immediately. Upserts are one ``INSERT ... ON CONFLICT``
    keyed on the table's natural unique constraint followed by a key lookup,
    so repeated calls return the same identifier.
    """

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Generic helpers
    # ------------------------------------------------------------------
    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Store commit failed", operation=operation, error=str(exc))
            raise StoreError(f"{operation} failed", {"error": str(exc)}) from exc

    def _insert(self, model: Type[ModelT]):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return pg_insert(model)
        if dialect == "sqlite":
            return sqlite_insert(model)
        return None

    def _upsert(self, model: Type[ModelT], keys: Dict[str, Any], values: Optional[Dict[str, Any]] = None) -> UUID:
        """Insert ``keys + values`` unless a row with ``keys`` exists; return its id."""
        columns = {**keys, **(values or {})}
        stmt = self._insert(model)
        try:
            if stmt is not None:
                self.db.execute(
                    stmt.values(**columns).on_conflict_do_nothing(index_elements=list(keys))
                )
                self.db.commit()
            else:
                if self._find_id(model, keys) is None:
                    self.db.add(model(**columns))
                    self.db.commit()
        except IntegrityError:
            # Lost an insert race on a dialect without ON CONFLICT support
            self.db.rollback()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Store upsert failed", table=model.__tablename__, keys=str(keys), error=str(exc))
            raise StoreError(f"upsert into {model.__tablename__} failed", {"error": str(exc)}) from exc

        row_id = self._find_id(model, keys)
        if row_id is None:
            raise StoreError(f"upsert into {model.__tablename__} returned no row", {"keys": keys})
        return row_id

    def _find_id(self, model: Type[ModelT], keys: Dict[str, Any]) -> Optional[UUID]:
        stmt = select(model.id).where(*(getattr(model, name) == value for name, value in keys.items()))
        return self.db.scalar(stmt)

    def get(self, model: Type[ModelT], row_id: UUID) -> Optional[ModelT]:
        return self.db.get(model, row_id)

    def insert(self, row: ModelT) -> ModelT:
        self.db.add(row)
        self._commit(f"insert into {row.__tablename__}")
        self.db.refresh(row)
        return row

    def delete(self, row: ModelT) -> None:
        self.db.delete(row)
        self._commit(f"delete from {row.__tablename__}")

    def count(self, model: Type[ModelT], **filters: Any) -> int:
        stmt = select(func.count()).select_from(model)
        for name, value in filters.items():
            stmt = stmt.where(getattr(model, name) == value)
        return int(self.db.scalar(stmt) or 0)

    def paginate(
        self, model: Type[ModelT], page: int = 1, page_size: int = 50, **filters: Any
    ) -> PaginatedResult[ModelT]:
        page = max(page, 1)
        stmt = select(model)
        for name, value in filters.items():
            stmt = stmt.where(getattr(model, name) == value)
        stmt = stmt.order_by(model.created_at, model.id).offset((page - 1) * page_size).limit(page_size)
        return PaginatedResult(
            items=list(self.db.scalars(stmt)),
            total=self.count(model, **filters),
            page=page,
            page_size=page_size,
        )

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------
    def application_by_key(self, secret: str) -> Optional[Application]:
        return self.db.scalars(select(Application).where(Application.secret == secret)).first()

    def application_by_name(self, name: str) -> Optional[Application]:
        return self.db.scalars(select(Application).where(Application.name == name)).first()

    # ------------------------------------------------------------------
    # Device tokens
    # ------------------------------------------------------------------
    def devices(self, app_id: UUID, profile_id: str) -> List[DeviceToken]:
        stmt = (
            select(DeviceToken)
            .where(DeviceToken.application_id == app_id, DeviceToken.profile_id == profile_id)
            .order_by(DeviceToken.created_at, DeviceToken.id)
        )
        return list(self.db.scalars(stmt))

    def devices_by_group(self, app_id: UUID, group_id: UUID) -> List[DeviceToken]:
        """Devices of every profile holding a subscription to the group."""
        stmt = (
            select(DeviceToken)
            .join(
                TopicGroupSubscription,
                TopicGroupSubscription.profile_id == DeviceToken.profile_id,
            )
            .where(
                DeviceToken.application_id == app_id,
                TopicGroupSubscription.group_id == group_id,
            )
        )
        return list(self.db.scalars(stmt))

    def devices_by_map(self, app_id: UUID, group_map: TopicGroupMap) -> List[DeviceToken]:
        """Devices of profiles whose topic subscription came through this group map."""
        stmt = (
            select(DeviceToken)
            .join(TopicSubscription, TopicSubscription.profile_id == DeviceToken.profile_id)
            .where(
                DeviceToken.application_id == app_id,
                and_(
                    TopicSubscription.topic_id == group_map.topic_id,
                    TopicSubscription.group_id == group_map.group_id,
                ),
            )
        )
        return list(self.db.scalars(stmt))

    def upsert_device(self, app_id: UUID, profile_id: str, request: CreateUserDevice) -> UUID:
        keys = {"application_id": app_id, "profile_id": profile_id, "token": request.token}
        values = {
            "name": request.name,
            "user_agent": request.user_agent,
            "device_type": request.device_type.value,
            "provider_type": request.provider_type.value,
        }
        stmt = self._insert(DeviceToken)
        if stmt is None:
            existing = self._find_id(DeviceToken, keys)
            if existing is None:
                return self._upsert(DeviceToken, keys, values)
            device = self.db.get(DeviceToken, existing)
            for name, value in values.items():
                setattr(device, name, value)
            self._commit("device update")
            return existing

        stmt = stmt.values(**keys, **values)
        stmt = stmt.on_conflict_do_update(
            index_elements=list(keys),
            set_={**{name: stmt.excluded[name] for name in values}, "updated_at": func.now()},
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Device upsert failed", profile_id=profile_id, error=str(exc))
            raise StoreError("device upsert failed", {"error": str(exc)}) from exc
        # Bulk upserts bypass the identity map
        self.db.expire_all()
        return self._find_id(DeviceToken, keys)

    # ------------------------------------------------------------------
    # Topics
    # ------------------------------------------------------------------
    def topic(self, app_id: UUID, topic_hash: str) -> Optional[Topic]:
        stmt = select(Topic).where(Topic.application_id == app_id, Topic.topic_hash == topic_hash)
        return self.db.scalars(stmt).first()

    def upsert_topic(self, app_id: UUID, topic_hash: str) -> UUID:
        return self._upsert(Topic, {"application_id": app_id, "topic_hash": topic_hash})

    def topics_by_user(self, app_id: UUID, profile_id: str) -> List[Topic]:
        """Every topic the profile is subscribed to, directly or through a group."""
        stmt = (
            select(Topic)
            .join(TopicSubscription, TopicSubscription.topic_id == Topic.id)
            .where(Topic.application_id == app_id, TopicSubscription.profile_id == profile_id)
            .order_by(Topic.topic_hash)
        )
        return list(self.db.scalars(stmt))

    def non_group_topics_by_user(self, app_id: UUID, profile_id: str) -> List[Topic]:
        stmt = (
            select(Topic)
            .join(TopicSubscription, TopicSubscription.topic_id == Topic.id)
            .where(
                Topic.application_id == app_id,
                TopicSubscription.profile_id == profile_id,
                TopicSubscription.group_id.is_(None),
            )
            .order_by(Topic.topic_hash)
        )
        return list(self.db.scalars(stmt))

    def topics_by_group(self, group_id: UUID) -> List[Topic]:
        stmt = (
            select(Topic)
            .join(TopicGroupMap, TopicGroupMap.topic_id == Topic.id)
            .where(TopicGroupMap.group_id == group_id)
            .order_by(Topic.topic_hash)
        )
        return list(self.db.scalars(stmt))

    def paginate_group_topics(self, group_id: UUID, page: int = 1, page_size: int = 50) -> PaginatedResult[Topic]:
        page = max(page, 1)
        base = (
            select(Topic)
            .join(TopicGroupMap, TopicGroupMap.topic_id == Topic.id)
            .where(TopicGroupMap.group_id == group_id)
        )
        total = self.db.scalar(select(func.count()).select_from(base.subquery())) or 0
        items = self.db.scalars(
            base.order_by(Topic.topic_hash).offset((page - 1) * page_size).limit(page_size)
        )
        return PaginatedResult(items=list(items), total=int(total), page=page, page_size=page_size)

    # ------------------------------------------------------------------
    # Groups and group maps
    # ------------------------------------------------------------------
    def group(self, app_id: UUID, resource_id: str) -> Optional[TopicGroup]:
        stmt = select(TopicGroup).where(
            TopicGroup.application_id == app_id, TopicGroup.resource_id == resource_id
        )
        return self.db.scalars(stmt).first()

    def upsert_group(self, app_id: UUID, resource_id: str) -> UUID:
        return self._upsert(TopicGroup, {"application_id": app_id, "resource_id": resource_id})

    def groups_by_user(self, app_id: UUID, profile_id: str) -> List[TopicGroup]:
        stmt = (
            select(TopicGroup)
            .join(TopicGroupSubscription, TopicGroupSubscription.group_id == TopicGroup.id)
            .where(
                TopicGroup.application_id == app_id,
                TopicGroupSubscription.profile_id == profile_id,
            )
            .order_by(TopicGroup.resource_id)
        )
        return list(self.db.scalars(stmt))

    def paginate_groups(self, app_id: UUID, page: int = 1, page_size: int = 50) -> PaginatedResult[TopicGroup]:
        return self.paginate(TopicGroup, page=page, page_size=page_size, application_id=app_id)

    def group_map(self, app_id: UUID, resource_id: str, topic_hash: str) -> Optional[TopicGroupMap]:
        stmt = (
            select(TopicGroupMap)
            .join(TopicGroup, TopicGroup.id == TopicGroupMap.group_id)
            .join(Topic, Topic.id == TopicGroupMap.topic_id)
            .where(
                TopicGroup.application_id == app_id,
                TopicGroup.resource_id == resource_id,
                Topic.topic_hash == topic_hash,
            )
        )
        return self.db.scalars(stmt).first()

    def upsert_group_map(self, topic_id: UUID, group_id: UUID) -> UUID:
        return self._upsert(TopicGroupMap, {"topic_id": topic_id, "group_id": group_id})

    # ------------------------------------------------------------------
    # Group subscriptions
    # ------------------------------------------------------------------
    def group_subscription(self, app_id: UUID, profile_id: str, resource_id: str) -> Optional[TopicGroupSubscription]:
        stmt = (
            select(TopicGroupSubscription)
            .join(TopicGroup, TopicGroup.id == TopicGroupSubscription.group_id)
            .where(
                TopicGroup.application_id == app_id,
                TopicGroup.resource_id == resource_id,
                TopicGroupSubscription.profile_id == profile_id,
            )
        )
        return self.db.scalars(stmt).first()

    def upsert_group_subscription(self, profile_id: str, group_id: UUID) -> UUID:
        return self._upsert(TopicGroupSubscription, {"profile_id": profile_id, "group_id": group_id})

    # ------------------------------------------------------------------
    # Topic subscriptions
    # ------------------------------------------------------------------
    def topic_subscription(self, app_id: UUID, topic_hash: str, profile_id: str) -> Optional[TopicSubscription]:
        stmt = (
            select(TopicSubscription)
            .join(Topic, Topic.id == TopicSubscription.topic_id)
            .where(
                Topic.application_id == app_id,
                Topic.topic_hash == topic_hash,
                TopicSubscription.profile_id == profile_id,
            )
        )
        return self.db.scalars(stmt).first()

    def upsert_topic_subscription(self, profile_id: str, topic_id: UUID, group_id: Optional[UUID] = None) -> UUID:
        return self._upsert(
            TopicSubscription,
            {"profile_id": profile_id, "topic_id": topic_id},
            {"group_id": group_id},
        )

    def count_subscriptions(self, topic_id: UUID) -> int:
        return self.count(TopicSubscription, topic_id=topic_id)

    def subscriptions_by_group(self, group_id: UUID, profile_id: str) -> List[Tuple[TopicSubscription, Topic]]:
        stmt = (
            select(TopicSubscription, Topic)
            .join(Topic, Topic.id == TopicSubscription.topic_id)
            .where(
                TopicSubscription.group_id == group_id,
                TopicSubscription.profile_id == profile_id,
            )
            .order_by(Topic.topic_hash)
        )
        return [(subscription, topic) for subscription, topic in self.db.execute(stmt).all()]

    def delete_by_id(self, model: Type[ModelT], row_id: UUID) -> int:
        result = self.db.execute(delete(model).where(model.id == row_id))
        self._commit(f"delete from {model.__tablename__}")
        return result.rowcount or 0

    def delete_subscriptions_by_group(self, group_id: UUID, profile_id: str) -> int:
        """Remove every topic subscription a group subscription created for the profile."""
        result = self.db.execute(
            delete(TopicSubscription).where(
                TopicSubscription.group_id.is_not(None),
                TopicSubscription.group_id == group_id,
                TopicSubscription.profile_id == profile_id,
            )
        )
        self._commit("group subscription cleanup")
        self.db.expire_all()
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def add_history(
        self,
        app_id: UUID,
        *,
        title: str,
        body: str,
        results: Sequence[str],
        profile_id: Optional[str] = None,
        topic_id: Optional[UUID] = None,
        image_url: Optional[str] = None,
        data: Optional[str] = None,
    ) -> History:
        if (profile_id is None) == (topic_id is None):
            raise ValueError("History needs exactly one of profile_id or topic_id")
        return self.insert(
            History(
                application_id=app_id,
                profile_id=profile_id,
                topic_id=topic_id,
                title=title,
                body=body,
                image_url=image_url,
                data=data,
                results=list(results),
            )
        )
