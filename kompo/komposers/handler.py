"""Maps the X-Kompo-Action of a booted komposer to the method performing it."""

from __future__ import annotations

import logging
from typing import Any

from kompo.core.request import METHOD_HEADER, Actions, KompoRequest
from kompo.core.types import KomposerType
from kompo.exceptions import UnknownKompoAction
from kompo.komponents.komponent import serialize
from kompo.komposers.form import Form
from kompo.komposers.komposer import Komposer
from kompo.komposers.menu import Menu
from kompo.komposers.query import Query

logger = logging.getLogger(__name__)

_ACTIONS: dict[KomposerType, dict[str, str]] = {
    KomposerType.FORM: {Actions.SUBMIT_FORM: "submit"},
    KomposerType.QUERY: {Actions.BROWSE_ITEMS: "browse", Actions.DELETE_ITEM: "delete_item"},
    KomposerType.MENU: {},
}

# Methods defined by the framework itself can never be called as self-methods.
_FRAMEWORK_METHODS = frozenset(dir(Form)) | frozenset(dir(Query)) | frozenset(dir(Menu)) | Komposer.reserved_methods


class KomposerHandler:
    @classmethod
    def perform_action(cls, komposer: Komposer, request: KompoRequest) -> Any:
        action = request.action

        if action == Actions.SELF_METHOD:
            return cls.run_self_method(komposer, request)

        method = _ACTIONS.get(komposer.komposer_type, {}).get(action)
        if method is None:
            raise UnknownKompoAction(action, komposer)

        logger.debug("handler: %s -> %s.%s", action, type(komposer).__name__, method)
        return getattr(komposer, method)(request)

    @staticmethod
    def run_self_method(komposer: Komposer, request: KompoRequest) -> Any:
        """Call a public method declared on the komposer subclass with the request."""
        name = request.header(METHOD_HEADER) or ""
        method = getattr(komposer, name, None) if name else None

        reserved = name in _FRAMEWORK_METHODS or name in komposer.reserved_methods
        if name.startswith("_") or reserved or not callable(method):
            raise UnknownKompoAction(f"{Actions.SELF_METHOD}:{name}", komposer)

        return serialize(method(request))
