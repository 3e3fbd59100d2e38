"""
ModelManager: reads and writes field values against a record graph.

Field names may traverse many-to-one / one-to-one relations with dots
("author.name"). Plain attributes and many-to-one relations are filled
before the parent is saved; collections and one-to-one children need the
parent's key and are filled after the save.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import inspect as sa_inspect
from sqlalchemy import select, update
from sqlalchemy.orm import RelationshipDirection, RelationshipProperty, Session, object_session

from kompo.core import arr
from kompo.core.request import current_request
from kompo.records.base import Record

logger = logging.getLogger(__name__)


class ModelManager:
    """Record access used by fields while displaying and saving."""

    @staticmethod
    def relation(model: Any, name: str) -> RelationshipProperty | None:
        if not isinstance(model, Record):
            return None
        return sa_inspect(type(model)).relationships.get(name)

    @classmethod
    def parse_from_field_name(cls, model: Any, name: str, attach: bool = False) -> tuple[Any, str]:
        """
        Resolve a dotted field name to (target record, leaf attribute).

        Missing related records are replaced by a fresh instance, which is
        only attached to the parent when ``attach`` is set (save path).
        Traversal stops at the first segment that is not a scalar relation.
        """
        if "." not in name:
            return model, name

        segments = name.split(".")
        for index, segment in enumerate(segments[:-1]):
            relation = cls.relation(model, segment)
            if relation is None or relation.uselist:
                return model, ".".join(segments[index:])

            related = getattr(model, segment)
            if related is None:
                related = relation.mapper.class_()
                if attach:
                    setattr(model, segment, related)
            model = related

        return model, segments[-1]

    @staticmethod
    def find(session: Session, model_class: type[Record], key: Any) -> Record | None:
        """Load a record by primary key, coercing the key from request text."""
        pk = sa_inspect(model_class).primary_key[0]
        return session.get(model_class, _coerce_key(pk, key))

    @classmethod
    def get_value_from_db(cls, model: Any, name: str) -> Any:
        if cls.relation(model, name) is not None:
            return getattr(model, name)
        if isinstance(model, Record):
            return model.get_attribute(name)
        return getattr(model, name, None)

    @classmethod
    def fills_before_save(cls, model: Any, name: str) -> bool:
        relation = cls.relation(model, name)
        return relation is None or relation.direction is RelationshipDirection.MANYTOONE

    @classmethod
    def fills_after_save(cls, model: Any, name: str) -> bool:
        relation = cls.relation(model, name)
        return relation is not None and relation.direction is not RelationshipDirection.MANYTOONE

    @classmethod
    def fill_attribute(cls, model: Any, name: str, value: Any, extra_attributes: dict[str, Any] | None = None) -> None:
        """Assign a request value to the in-memory record (nothing is flushed)."""
        relation = cls.relation(model, name)
        if relation is not None:
            cls._fill_foreign_key(model, relation, value)
        else:
            _set(model, name, value)

        for attribute, constant in (extra_attributes or {}).items():
            _set(model, attribute, constant)

    @classmethod
    def save_and_load_relation(
        cls,
        model: Record,
        name: str,
        value: Any,
        extra_attributes: dict[str, Any] | None = None,
    ) -> None:
        """
        Persist a relation of an already saved record and reload it.

        Many-to-many: value is a list of related keys; extra attributes are
        written on the association rows. One-to-many: value is a list of
        mappings (or keys) for the children. One-to-one: a single mapping.
        """
        relation = cls.relation(model, name)
        session = object_session(model)
        if relation is None or session is None:
            raise ValueError(f"Cannot save relation {name!r} on a detached {type(model).__name__}")

        target = relation.mapper.class_
        extra = extra_attributes or {}

        if relation.direction is RelationshipDirection.MANYTOMANY:
            setattr(model, name, cls._find_many(session, target, arr.collect(value)))
            session.flush()
            if extra and relation.secondary is not None:
                cls._update_association(session, model, relation, extra)
        elif relation.uselist:
            children = [cls._make_related(session, target, item, extra) for item in arr.collect(value)]
            setattr(model, name, [child for child in children if child is not None])
        else:
            current = getattr(model, name)
            setattr(model, name, cls._make_related(session, target, value, extra, current))

        session.flush()
        session.refresh(model, attribute_names=[name])

    @classmethod
    def get_related_candidates(cls, model: Any, name: str, session: Session | None = None) -> list[Any]:
        """All records that can be picked for a relation (Select options)."""
        relation = cls.relation(model, name)
        if relation is None:
            return []
        session = session or object_session(model) or _request_session()
        if session is None:
            logger.warning("model_manager: no session to load %s candidates", name)
            return []
        return list(session.scalars(select(relation.mapper.class_)).all())

    # -----------------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------------

    @staticmethod
    def _fill_foreign_key(model: Record, relation: RelationshipProperty, value: Any) -> None:
        if isinstance(value, Record):
            setattr(model, relation.key, value)
            return
        mapper = sa_inspect(type(model))
        for local, _remote in relation.local_remote_pairs:
            setattr(model, mapper.get_property_by_column(local).key, _coerce_key(local, value))

    @staticmethod
    def _find_many(session: Session, target: type[Record], keys: list[Any]) -> list[Record]:
        pk = sa_inspect(target).primary_key[0]
        wanted = [_coerce_key(pk, _key_of(target, key)) for key in keys]
        wanted = [key for key in wanted if key is not None]
        if not wanted:
            return []
        found = {r.get_key(): r for r in session.scalars(select(target).where(pk.in_(wanted))).all()}
        missing = [key for key in wanted if key not in found]
        if missing:
            logger.warning("model_manager: %s keys not found: %s", target.__name__, missing)
        return [found[key] for key in wanted if key in found]

    @staticmethod
    def _make_related(
        session: Session,
        target: type[Record],
        item: Any,
        extra: dict[str, Any],
        current: Record | None = None,
    ) -> Record | None:
        if item is None:
            return None

        if isinstance(item, Record):
            instance = item
        elif isinstance(item, dict):
            key_name = target.key_name()
            key = item.get(key_name)
            instance = current or (session.get(target, key) if key is not None else None) or target()
            for attribute, val in item.items():
                if attribute != key_name:
                    instance.set_attribute(attribute, val)
        else:
            instance = session.get(target, item)
            if instance is None:
                logger.warning("model_manager: %s key %r not found", target.__name__, item)
                return None

        for attribute, constant in extra.items():
            instance.set_attribute(attribute, constant)
        return instance

    @staticmethod
    def _update_association(
        session: Session,
        model: Record,
        relation: RelationshipProperty,
        extra: dict[str, Any],
    ) -> None:
        secondary = relation.secondary
        values = {k: v for k, v in extra.items() if k in secondary.c}
        if not values:
            return
        mapper = sa_inspect(type(model))
        conditions = [
            secondary_column == getattr(model, mapper.get_property_by_column(parent_column).key)
            for parent_column, secondary_column in relation.synchronize_pairs
        ]
        session.execute(update(secondary).where(*conditions).values(**values))


def _set(model: Any, name: str, value: Any) -> None:
    if isinstance(model, Record):
        model.set_attribute(name, value)
    else:
        setattr(model, name, value)


def _key_of(target: type[Record], key: Any) -> Any:
    if isinstance(key, Record):
        return key.get_key()
    if isinstance(key, dict):
        return key.get(target.key_name())
    return key


def _coerce_key(column: Any, value: Any) -> Any:
    if value in (None, ""):
        return None
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if isinstance(value, python_type):
        return value
    try:
        return python_type(value)
    except (TypeError, ValueError):
        return value


def _request_session() -> Session | None:
    request = current_request()
    return request.session if request is not None else None
