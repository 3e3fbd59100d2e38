"""
Request context threaded through every dispatch call.

A KompoRequest holds the request fields, the X-Kompo-* headers and the
database session of one (sub-)request. The task-local binding below lets
field hooks read the request being dispatched without a global swap.
"""

from __future__ import annotations

import copy
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from kompo.core.arr import data_get, data_has

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

ACTION_HEADER = "X-Kompo-Action"
INFO_HEADER = "X-Kompo-Info"
PAGE_HEADER = "X-Kompo-Page"
SORT_HEADER = "X-Kompo-Sort"
METHOD_HEADER = "X-Kompo-Method"


class Actions:
    """Values of the X-Kompo-Action header."""

    REFRESH_MANY = "refresh-many"
    BROWSE_MANY = "browse-many"
    REFRESH_SELF = "refresh-self"
    BROWSE_ITEMS = "browse-items"
    SUBMIT_FORM = "submit-form"
    DELETE_ITEM = "delete-item"
    SELF_METHOD = "self-method"


@dataclass
class KompoRequest:
    """Fields, headers and session of one request."""

    data: Any = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    session: Session | None = None

    def __post_init__(self) -> None:
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def action(self) -> str | None:
        return self.header(ACTION_HEADER)

    def header(self, name: str, default: Any = None) -> Any:
        return self.headers.get(name.lower(), default)

    def set_header(self, name: str, value: Any) -> None:
        self.headers[name.lower()] = value

    def all(self) -> Any:
        return self.data

    def has(self, name: str) -> bool:
        return isinstance(self.data, dict) and data_has(self.data, name)

    def input(self, name: str, default: Any = None) -> Any:
        if not isinstance(self.data, dict):
            return default
        return data_get(self.data, name, default)

    def except_(self, *keys: str) -> dict[str, Any]:
        if not isinstance(self.data, dict):
            return {}
        return {k: v for k, v in self.data.items() if k not in keys}

    def replace(self, data: Any) -> None:
        self.data = data

    def clone(self) -> KompoRequest:
        """Copy fields and headers; the session is shared."""
        return KompoRequest(
            data=copy.deepcopy(self.data),
            headers=dict(self.headers),
            session=self.session,
        )


_current_request: ContextVar[KompoRequest | None] = ContextVar("kompo_current_request", default=None)


def current_request() -> KompoRequest | None:
    """The request currently being dispatched in this task, if any."""
    return _current_request.get()


@contextmanager
def bind_request(request: KompoRequest) -> Iterator[KompoRequest]:
    """Bind a request for the duration of a dispatch and restore the previous one."""
    token = _current_request.set(request)
    try:
        yield request
    finally:
        _current_request.reset(token)
