"""
Dispatcher: routes a Kompo request to the right booter.

Priority on X-Kompo-Action:

    refresh-many  -> replay every item as refresh-self
    browse-many   -> replay every item as browse-items (page/sort headers)
    refresh-self  -> rebuild the komposer from its BootInfo and display it
    anything else -> boot for action and hand over to KomposerHandler

Batch items are replayed one after the other on a clone of the request.
The clone is bound as the current request while it is dispatched and the
previous binding is restored afterwards.
"""

from __future__ import annotations

import functools
import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from kompo.config import settings
from kompo.core import arr
from kompo.core.boot_info import BootInfo, get_kompo
from kompo.core.request import (
    ACTION_HEADER,
    INFO_HEADER,
    PAGE_HEADER,
    SORT_HEADER,
    Actions,
    KompoRequest,
    bind_request,
)
from kompo.core.types import KomposerType
from kompo.exceptions import InvalidKompoInfo, KompoException, NotBootableFromRouteException
from kompo.komposers.form import Form, FormBooter
from kompo.komposers.handler import KomposerHandler
from kompo.komposers.komposer import Booter, Komposer
from kompo.komposers.menu import Menu, MenuBooter
from kompo.komposers.query import Query, QueryBooter
from kompo.komposers.registry import resolve

logger = logging.getLogger(__name__)

BOOTERS: dict[KomposerType, type[Booter]] = {
    KomposerType.FORM: FormBooter,
    KomposerType.QUERY: QueryBooter,
    KomposerType.MENU: MenuBooter,
}


class BatchItem(BaseModel):
    """One entry of a refresh-many / browse-many payload."""

    kompoid: str
    kompoinfo: str
    data: dict[str, Any] = {}
    page: Any = None
    sort: Any = None


@functools.cache
def get_komposer_type(komposer_class: type) -> KomposerType:
    """Form, Query or Menu, checked in that order."""
    if isinstance(komposer_class, type):
        if issubclass(komposer_class, Form):
            return KomposerType.FORM
        if issubclass(komposer_class, Query):
            return KomposerType.QUERY
        if issubclass(komposer_class, Menu):
            return KomposerType.MENU
    raise NotBootableFromRouteException(komposer_class)


class Dispatcher:
    def __init__(self, request: KompoRequest, komposer_class: type | None = None):
        self.request = request
        self.boot_info: BootInfo | None = None

        if komposer_class is None:
            self.boot_info = get_kompo(request)
            komposer_class = resolve(self.boot_info.kompo_class)

        self.komposer_class = komposer_class
        self.type = get_komposer_type(komposer_class)
        self.booter = BOOTERS[self.type]

    # -----------------------------------------------------------------------
    # Entry points
    # -----------------------------------------------------------------------

    @classmethod
    def dispatch_connection(cls, request: KompoRequest) -> Any:
        """Answer one Kompo action request."""
        with bind_request(request):
            action = request.action

            if action == Actions.REFRESH_MANY:
                return cls.refresh_many_komposers(request)

            if action == Actions.BROWSE_MANY:
                return cls.browse_many_queries(request)

            if action == Actions.REFRESH_SELF:
                return cls.reboot_komposer_for_display(request).to_payload()

            return KomposerHandler.perform_action(cls.boot_komposer_for_action(request), request)

    @classmethod
    def boot_for_display(cls, request: KompoRequest, komposer_class: type) -> Komposer:
        """Display-boot a komposer from a route (GET /_kompo/display/...)."""
        with bind_request(request):
            return cls(request, komposer_class).boot_komposer_for_display()

    # -----------------------------------------------------------------------
    # Booting
    # -----------------------------------------------------------------------

    @classmethod
    def boot_komposer_for_action(cls, request: KompoRequest) -> Komposer:
        dispatcher = cls(request)
        return dispatcher.booter.boot_for_action(dispatcher.komposer_class, dispatcher.boot_info, request)

    def boot_komposer_for_display(self) -> Komposer:
        if self.type is KomposerType.FORM:
            return self.booter.boot_for_display(
                self.komposer_class,
                self.request,
                self.request.input("id"),
                self.request.except_("id"),
            )
        return self.booter.boot_for_display(self.komposer_class, self.request, None, self.request.all())

    @classmethod
    def reboot_komposer_for_display(cls, request: KompoRequest) -> Komposer:
        dispatcher = cls(request)
        info = dispatcher.boot_info
        model_key = info.model_key if dispatcher.type is KomposerType.FORM else None
        return dispatcher.booter.boot_for_display(
            dispatcher.komposer_class, request, model_key, info.store, info.parameters, kompoid=info.kompoid
        )

    # -----------------------------------------------------------------------
    # Batches
    # -----------------------------------------------------------------------

    @classmethod
    def refresh_many_komposers(cls, request: KompoRequest) -> dict[str, Any]:
        return cls.run_many_requests(request, Actions.REFRESH_SELF)

    @classmethod
    def browse_many_queries(cls, request: KompoRequest) -> dict[str, Any]:
        return cls.run_many_requests(
            request,
            Actions.BROWSE_ITEMS,
            {PAGE_HEADER: "page", SORT_HEADER: "sort"},
        )

    @classmethod
    def run_many_requests(
        cls,
        request: KompoRequest,
        base_action: str,
        additional_headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Replay each batch item as its own request, in order.

        Returns:
            Responses keyed by the item's kompoid, in input order
        """
        items = cls._batch_items(request)
        responses: dict[str, Any] = {}

        for item in items:
            sub_request = request.clone()
            sub_request.replace(arr.parse_array_parameters(item.data))
            sub_request.set_header(INFO_HEADER, item.kompoinfo)
            sub_request.set_header(ACTION_HEADER, base_action)

            for header, key in (additional_headers or {}).items():
                value = getattr(item, key)
                if value is not None:
                    sub_request.set_header(header, value)

            responses[item.kompoid] = cls._dispatch_sub_request(sub_request, item.kompoid)

        return responses

    @classmethod
    def _dispatch_sub_request(cls, sub_request: KompoRequest, kompoid: str) -> Any:
        if not settings.ISOLATE_BATCH_FAILURES:
            return cls.dispatch_connection(sub_request)

        try:
            return cls.dispatch_connection(sub_request)
        except KompoException as e:
            logger.warning("dispatcher: batch item %s failed with %s: %s", kompoid, e.status_code, e.message)
            return {"error": {"status": e.status_code, "message": e.message}}
        except Exception as e:
            logger.exception("dispatcher: batch item %s failed", kompoid)
            if sub_request.session is not None:
                sub_request.session.rollback()
            return {"error": {"status": 500, "message": str(e)}}

    @staticmethod
    def _batch_items(request: KompoRequest) -> list[BatchItem]:
        data = request.all()
        if not isinstance(data, list):
            raise InvalidKompoInfo("A batch request must send a list of komposers.")
        try:
            return [BatchItem.model_validate(item) for item in data]
        except ValidationError as e:
            raise InvalidKompoInfo("Malformed batch request item.") from e
