"""Portable column types shared by the gateway tables."""
from __future__ import annotations

import json
from typing import Any

from sqlalchemy.dialects.postgresql import ARRAY as PG_ARRAY
from sqlalchemy.types import Text, TypeDecorator


class StringArray(TypeDecorator):
    """A list of strings: native ``text[]`` on PostgreSQL, JSON text elsewhere.

    Owner ids and notification audit results are stored with this type so the
    same models run against PostgreSQL in production and SQLite in tests.
    """

    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect):  # type: ignore[override]
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_ARRAY(Text))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value: Any, dialect):  # type: ignore[override]
        items = [str(item) for item in (value or [])]
        if dialect.name == "postgresql":
            return items
        return json.dumps(items)

    def process_result_value(self, value: Any, dialect):  # type: ignore[override]
        if value is None:
            return []
        if dialect.name == "postgresql":
            return list(value)
        return json.loads(value)
