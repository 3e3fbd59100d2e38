"""
Komposer class registry.

Every komposer subclass registers itself under its dotted path
("app.forms.PostForm") and, when it declares one, under its
``kompo_alias``. BootInfo stores that name; routes resolve it here.
"""

from __future__ import annotations

from typing import Any

from kompo.exceptions import KomposerNotFound

_registry: dict[str, type] = {}


def class_name(komposer_class: type) -> str:
    return f"{komposer_class.__module__}.{komposer_class.__qualname__}"


def register(komposer_class: type, alias: str | None = None) -> type:
    _registry[class_name(komposer_class)] = komposer_class
    if alias:
        _registry[alias] = komposer_class
    return komposer_class


def resolve(name: str) -> type:
    try:
        return _registry[name]
    except KeyError:
        raise KomposerNotFound(name) from None


def registered() -> dict[str, Any]:
    return dict(_registry)
