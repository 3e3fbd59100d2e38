"""
Komposer: the root displayable/actionable unit (Form, Query or Menu).

A komposer is rebuilt on every request from its store and parameters,
prepared for display or for an action, then discarded. Persistent state
lives in the records only.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from typing import Any, ClassVar

from kompo.core.boot_info import BootInfo, encode_boot_info
from kompo.core.data import HasData
from kompo.core.request import KompoRequest
from kompo.core.types import KomposerType
from kompo.core.validation import ValidationManager
from kompo.exceptions import UnauthorizedKompoAction
from kompo.komponents.field import Field
from kompo.komponents.komponent import Komponent, serialize
from kompo.komposers import registry

_UNSET = object()


def flatten(komponents: Iterable[Komponent]) -> Iterator[Komponent]:
    """Walk nested layouts depth-first."""
    for komponent in komponents:
        yield komponent
        yield from flatten(getattr(komponent, "komponents", []))


class Komposer(HasData):
    """
    Base komposer. Subclasses override ``komponents()`` and may define:

        created()        called once the komposer is built
        rules()          extra validation rules, merged with field rules
        authorize()      True/False, or the list of field names the user may edit
    """

    komposer_type: ClassVar[KomposerType | None] = None
    kompo_alias: ClassVar[str | None] = None
    kompo_id: ClassVar[str | None] = None  # Fixed kompoid, targetable by refresh/browse actions.

    # Looked up by name by the framework; never callable as self-methods.
    reserved_methods: ClassVar[frozenset[str]] = frozenset(
        {"komponents", "rules", "authorize", "created", "handle", "query", "card"}
    )

    def __init_subclass__(cls, **kwargs: Any):
        super().__init_subclass__(**kwargs)
        registry.register(cls, cls.__dict__.get("kompo_alias"))

    def __init__(
        self,
        request: KompoRequest,
        store: dict[str, Any] | None = None,
        parameters: dict[str, Any] | None = None,
    ):
        self.request = request
        self.session = request.session
        self.store = dict(store or {})
        self.parameters = dict(parameters or {})
        self.kompoid = self.kompo_id or uuid.uuid4().hex[:12]
        self.components: list[Field] = []
        self.prepared: list[Komponent] = []
        self._authorization: Any = _UNSET
        self.created()

    # -----------------------------------------------------------------------
    # Overridable
    # -----------------------------------------------------------------------

    def created(self) -> None:
        pass

    def komponents(self) -> list[Komponent | None]:
        return []

    def rules(self) -> dict[str, Any]:
        return {}

    # -----------------------------------------------------------------------
    # Authorization
    # -----------------------------------------------------------------------

    def can_authorize(self) -> bool:
        return callable(getattr(self, "authorize", None))

    def authorization(self) -> Any:
        """Result of ``authorize()``, computed once per request. True when not defined."""
        if self._authorization is _UNSET:
            self._authorization = self.authorize() if self.can_authorize() else True
        return self._authorization

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def prepare_for_display(self) -> Komposer:
        ValidationManager.add_rules_to_komposer(self.rules(), self)
        self.prepared = [k for k in self.komponents() if k is not None]
        for komponent in self.prepared:
            komponent.prepare_for_display(self)
        return self

    def prepare_for_save(self) -> Komposer:
        """Collect the fields (through layouts) and their rules before an action."""
        ValidationManager.add_rules_to_komposer(self.rules(), self)
        self.components = []
        for komponent in self.komponents():
            if komponent is not None:
                komponent.prepare_for_save(self)
        return self

    @property
    def merged_rules(self) -> dict[str, list[str]]:
        return self.data("rules") or {}

    def fields(self) -> list[Field]:
        if self.components:
            return list(self.components)
        return [k for k in flatten(self.prepared) if isinstance(k, Field)]

    # -----------------------------------------------------------------------
    # Serialization
    # -----------------------------------------------------------------------

    @classmethod
    def kompo_class(cls) -> str:
        return cls.__dict__.get("kompo_alias") or registry.class_name(cls)

    def model_key(self) -> Any:
        return None

    def boot_info(self) -> BootInfo:
        return BootInfo(
            kompo_class=self.kompo_class(),
            model_key=self.model_key(),
            store=self.store,
            parameters=self.parameters,
            kompoid=self.kompoid,
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "component": self.komposer_type.value if self.komposer_type else type(self).__name__,
            "kompoid": self.kompoid,
            "kompoinfo": encode_boot_info(self.boot_info()),
            "data": serialize(self.data()),
            "config": serialize(self.config()),
            "komponents": [k.to_payload() for k in self.prepared],
        }


class Booter:
    """Builds a komposer for display or for an action."""

    @classmethod
    def make(
        cls,
        komposer_class: type[Komposer],
        request: KompoRequest,
        model_key: Any = None,
        store: dict[str, Any] | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> Komposer:
        return komposer_class(request, store=store, parameters=parameters)

    @classmethod
    def boot_for_display(
        cls,
        komposer_class: type[Komposer],
        request: KompoRequest,
        model_key: Any = None,
        store: dict[str, Any] | None = None,
        parameters: dict[str, Any] | None = None,
        kompoid: str | None = None,
    ) -> Komposer:
        komposer = cls.make(komposer_class, request, model_key, store, parameters)
        if kompoid:
            komposer.kompoid = kompoid
        return komposer.prepare_for_display()

    @classmethod
    def boot_for_action(cls, komposer_class: type[Komposer], boot_info: BootInfo, request: KompoRequest) -> Komposer:
        komposer = cls.make(komposer_class, request, boot_info.model_key, boot_info.store, boot_info.parameters)
        if boot_info.kompoid:
            komposer.kompoid = boot_info.kompoid
        if komposer.can_authorize() and not komposer.authorization():
            raise UnauthorizedKompoAction(komposer)
        return komposer.prepare_for_save()
