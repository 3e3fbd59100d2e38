"""
Declarative base for records bound to Kompo forms and queries.

Records may declare attribute casts the way the host ORM would:

    class Post(Record):
        __tablename__ = "posts"
        __casts__ = {"tags": "array", "published": "boolean"}

An "array" cast on a plain text column stores JSON text; JSON and ARRAY
columns count as already cast.
"""

from __future__ import annotations

import json
from typing import Any, ClassVar

from sqlalchemy import ARRAY, JSON
from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import DeclarativeBase

from kompo.core import arr


class Record(DeclarativeBase):
    """Base class of every mapped model used by komposers."""

    __casts__: ClassVar[dict[str, str]] = {}

    # -----------------------------------------------------------------------
    # Casts
    # -----------------------------------------------------------------------

    def get_casts(self) -> dict[str, str]:
        casts = self.__dict__.get("_kompo_casts")
        if casts is None:
            casts = dict(type(self).__casts__)
            self.__dict__["_kompo_casts"] = casts
        return casts

    def merge_casts(self, casts: dict[str, str]) -> None:
        """Add casts for this instance only."""
        self.get_casts().update(casts)

    def has_cast(self, name: str) -> bool:
        return name in self.get_casts() or self._is_native_array(name)

    def _is_native_array(self, name: str) -> bool:
        column = sa_inspect(type(self)).columns.get(name)
        return column is not None and isinstance(column.type, (JSON, ARRAY))

    def get_attribute(self, name: str) -> Any:
        value = getattr(self, name, None)
        cast = self.get_casts().get(name)
        if value is None or cast is None:
            return value
        if cast in ("array", "json"):
            return arr.decode(value)
        if cast in ("bool", "boolean"):
            return bool(value)
        if cast in ("int", "integer"):
            return int(value)
        if cast == "float":
            return float(value)
        return value

    def set_attribute(self, name: str, value: Any) -> None:
        cast = self.get_casts().get(name)
        if value is not None and cast in ("array", "json") and not self._is_native_array(name):
            if not isinstance(value, str):
                value = json.dumps(value)
        elif value is not None and cast in ("bool", "boolean"):
            value = bool(value) if not isinstance(value, str) else value.lower() in ("1", "true", "on", "yes")
        elif value not in (None, "") and cast in ("int", "integer"):
            value = int(value)
        elif value not in (None, "") and cast == "float":
            value = float(value)
        setattr(self, name, value)

    # -----------------------------------------------------------------------
    # Keys and serialization
    # -----------------------------------------------------------------------

    @classmethod
    def key_name(cls) -> str:
        mapper = sa_inspect(cls)
        return mapper.get_property_by_column(mapper.primary_key[0]).key

    def get_key(self) -> Any:
        return getattr(self, self.key_name(), None)

    def to_dict(self) -> dict[str, Any]:
        return {attr.key: self.get_attribute(attr.key) for attr in sa_inspect(type(self)).column_attrs}
