"""Get/set helpers for the free-form data and config bags of komponents and komposers."""

from __future__ import annotations

from typing import Any


class HasData:
    """
    ``el.data({"key": value})`` merges and returns the element,
    ``el.data("key")`` reads one entry, ``el.data()`` returns the whole bag.
    Same for ``config``.
    """

    def data(self, key: str | dict[str, Any] | None = None) -> Any:
        return self._bag("_data", key)

    def config(self, key: str | dict[str, Any] | None = None) -> Any:
        return self._bag("_config", key)

    def _bag(self, attr: str, key: str | dict[str, Any] | None) -> Any:
        bag = self.__dict__.setdefault(attr, {})
        if key is None:
            return bag
        if isinstance(key, dict):
            bag.update(key)
            return self
        return bag.get(key)
