"""
Query: a paginated, filterable list of cards.

``query()`` returns either a SQLAlchemy ``select`` or a plain list. The
komponents of a query are its filters: each field filters the column of the
same name with its ``filter_operator``. Browsing reads the page from
X-Kompo-Page and the sort from X-Kompo-Sort ("title:desc|id").
"""

from __future__ import annotations

import logging
import math
import operator
from typing import Any, ClassVar

from sqlalchemy import Select, func, select
from sqlalchemy import inspect as sa_inspect

from kompo.config import settings
from kompo.core import arr
from kompo.core.request import PAGE_HEADER, SORT_HEADER, KompoRequest
from kompo.core.types import KomposerType
from kompo.exceptions import KomposerMisconfigured, RecordNotFound
from kompo.komponents.komponent import serialize
from kompo.komposers.komposer import Booter, Komposer
from kompo.records.base import Record
from kompo.records.model_manager import ModelManager

logger = logging.getLogger(__name__)

_COMPARISONS = {
    "=": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


def parse_page(value: Any) -> int:
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


def parse_sort(value: Any) -> list[tuple[str, bool]]:
    """"title:desc|id" -> [("title", True), ("id", False)]"""
    if not value:
        return []
    sorts = []
    for part in str(value).split("|"):
        column, _, direction = part.strip().partition(":")
        if column:
            sorts.append((column, direction.lower() == "desc"))
    return sorts


def _blank(value: Any) -> bool:
    return value is None or value == "" or value == []


def _item_value(item: Any, name: str) -> Any:
    if isinstance(item, dict):
        return arr.data_get(item, name)
    if isinstance(item, Record):
        return item.get_attribute(name)
    return getattr(item, name, None)


def _sort_key(name: str, cast=None):
    def key(item: Any) -> tuple:
        value = _item_value(item, name)
        return value is None, cast(value) if cast and value is not None else value

    return key


class Query(Komposer):
    komposer_type = KomposerType.QUERY

    model_class: ClassVar[type[Record] | None] = None
    per_page: ClassVar[int | None] = None

    def __init__(
        self,
        request: KompoRequest,
        store: dict[str, Any] | None = None,
        parameters: dict[str, Any] | None = None,
    ):
        super().__init__(request, store, parameters)
        self.results: dict[str, Any] | None = None

    def query(self) -> Select | list[Any]:
        if self.model_class is None:
            raise KomposerMisconfigured(f"{type(self).__name__} must define query() or model_class.")
        return select(self.model_class)

    def card(self, item: Any) -> Any:
        return serialize(item)

    def prepare_for_display(self) -> Query:
        super().prepare_for_display()
        self.results = self.browse(self.request)
        return self

    # -----------------------------------------------------------------------
    # Actions
    # -----------------------------------------------------------------------

    def browse(self, request: KompoRequest) -> dict[str, Any]:
        """One page of cards, filtered by the request and sorted by the sort header."""
        page = parse_page(request.header(PAGE_HEADER))
        sorts = parse_sort(request.header(SORT_HEADER))
        filters = self.filters(request)
        per_page = self.per_page or settings.QUERY_PER_PAGE

        source = self.query()
        if isinstance(source, Select):
            items, total = self._browse_select(request, source, filters, sorts, page, per_page)
        else:
            items, total = self._browse_list(list(source), filters, sorts, page, per_page)

        return {
            "kompoid": self.kompoid,
            "items": [self.card(item) for item in items],
            "page": page,
            "per_page": per_page,
            "total": total,
            "last_page": max(math.ceil(total / per_page), 1),
        }

    def delete_item(self, request: KompoRequest) -> dict[str, Any]:
        """Delete the record whose key is in the "id" field."""
        key = request.input("id")
        session = request.session or self.session
        if self.model_class is None or session is None:
            raise KomposerMisconfigured(f"{type(self).__name__} cannot delete without a model_class and a session.")

        model = ModelManager.find(session, self.model_class, key)
        if model is None:
            raise RecordNotFound(self.model_class, key)

        session.delete(model)
        session.commit()
        logger.info("query: deleted %s %s", self.model_class.__name__, key)
        return {"deleted": key}

    def filters(self, request: KompoRequest) -> list[tuple[str, str, Any]]:
        filters = []
        for field in self.fields():
            for name in arr.collect(field.name):
                value = request.input(name)
                if not _blank(value):
                    filters.append((name, field.filter_operator, value))
        return filters

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    def _browse_select(self, request, statement, filters, sorts, page, per_page):
        session = request.session or self.session
        if session is None:
            raise KomposerMisconfigured(f"{type(self).__name__} needs a database session to browse.")

        entity = statement.column_descriptions[0]["entity"]
        columns = sa_inspect(entity).column_attrs if entity is not None else {}

        for name, op, value in filters:
            if name not in columns:
                logger.debug("query: %s is not a column of %s, filter skipped", name, entity)
                continue
            statement = statement.where(self._condition(getattr(entity, name), op, value))

        total = session.scalar(select(func.count()).select_from(statement.order_by(None).subquery())) or 0

        for name, descending in sorts:
            if name not in columns:
                logger.warning("query: unknown sort column %s ignored", name)
                continue
            column = getattr(entity, name)
            statement = statement.order_by(column.desc() if descending else column.asc())

        items = session.scalars(statement.limit(per_page).offset((page - 1) * per_page)).all()
        return list(items), total

    @staticmethod
    def _condition(column: Any, op: str, value: Any) -> Any:
        if isinstance(value, list):
            return column.in_(value)
        if op == "like":
            return column.ilike(f"%{value}%")
        return _COMPARISONS.get(op, operator.eq)(column, value)

    @staticmethod
    def _browse_list(items, filters, sorts, page, per_page):
        for name, op, value in filters:
            items = [item for item in items if Query._matches(_item_value(item, name), op, value)]

        for name, descending in reversed(sorts):
            try:
                items = sorted(items, key=_sort_key(name), reverse=descending)
            except TypeError:
                logger.warning("query: mixed types in sort column %s, sorting as text", name)
                items = sorted(items, key=_sort_key(name, str), reverse=descending)

        start = (page - 1) * per_page
        return items[start : start + per_page], len(items)

    @staticmethod
    def _matches(item_value: Any, op: str, value: Any) -> bool:
        if isinstance(value, list):
            return item_value in value or str(item_value) in [str(v) for v in value]
        if op == "like":
            return str(value).lower() in str(item_value or "").lower()
        if item_value is None:
            return False
        try:
            if not isinstance(item_value, str) and not isinstance(value, type(item_value)):
                value = type(item_value)(value)
            return _COMPARISONS.get(op, operator.eq)(item_value, value)
        except (TypeError, ValueError):
            return False

    def to_payload(self) -> dict[str, Any]:
        return {**super().to_payload(), "results": self.results}


class QueryBooter(Booter):
    pass
