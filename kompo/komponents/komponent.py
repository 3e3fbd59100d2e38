"""Base komponent: label, data/config bags, interaction declarations, payload."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel

from kompo.core.data import HasData
from kompo.komponents import interaction as actions
from kompo.komponents.interaction import ActionSpec, Interaction
from kompo.records.base import Record

if TYPE_CHECKING:
    from kompo.komposers.komposer import Komposer


def serialize(value: Any) -> Any:
    """Turn records, komponents and models into JSON-ready values."""
    if isinstance(value, Record):
        return value.to_dict()
    if isinstance(value, Komponent):
        return value.to_payload()
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True, mode="json")
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [serialize(v) for v in value]
    return value


class Komponent(HasData):
    """Anything that can be placed in a komposer."""

    component: ClassVar[str] = "Komponent"
    default_trigger: ClassVar[str] = "click"

    def __init__(self, label: str = ""):
        self.label = label
        self.id: str | None = None
        self.class_name = ""
        self.interactions: list[Interaction] = []

    def with_id(self, id: str) -> Komponent:
        self.id = id
        return self

    def with_class(self, class_name: str) -> Komponent:
        self.class_name = f"{self.class_name} {class_name}".strip()
        return self

    # -----------------------------------------------------------------------
    # Interactions
    # -----------------------------------------------------------------------

    def on(self, interaction_type: str, action: ActionSpec, debounce: int | None = None) -> Komponent:
        """Attach an interaction. Declaration order is the run order."""
        self.interactions.append(Interaction(interaction_type=interaction_type, action=action, debounce=debounce))
        return self

    def submit(self) -> Komponent:
        return self.on(self.default_trigger, actions.submit())

    def refresh(self, *kompoids: str) -> Komponent:
        return self.on(self.default_trigger, actions.refresh(*kompoids))

    def browse(self, *kompoids: str, page: int | None = None, sort: str | None = None) -> Komponent:
        return self.on(self.default_trigger, actions.browse(*kompoids, page=page, sort=sort))

    def self_method(self, method: str, **params: Any) -> Komponent:
        return self.on(self.default_trigger, actions.self_method(method, **params))

    def submits_on_input(self, debounce: int = 500) -> Komponent:
        return self.on("input", actions.submit(), debounce=debounce)

    def refreshes_on_input(self, *kompoids: str, debounce: int = 500) -> Komponent:
        return self.on("input", actions.refresh(*kompoids), debounce=debounce)

    def on_load(self, action: ActionSpec) -> Komponent:
        return self.on("load", action)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    def prepare_for_display(self, komposer: Komposer) -> None:
        pass

    def prepare_for_save(self, komposer: Komposer) -> None:
        pass

    def to_payload(self) -> dict[str, Any]:
        return {
            "component": self.component,
            "label": self.label,
            "id": self.id,
            "class": self.class_name,
            "data": serialize(self.data()),
            "config": serialize(self.config()),
            "interactions": [i.to_payload() for i in self.interactions],
        }


class Rows(Komponent):
    """Layout stacking its komponents vertically."""

    component = "Rows"

    def __init__(self, *komponents: Komponent | None):
        super().__init__()
        self.komponents = [k for k in komponents if k is not None]

    def prepare_for_display(self, komposer: Komposer) -> None:
        for komponent in self.komponents:
            komponent.prepare_for_display(komposer)

    def prepare_for_save(self, komposer: Komposer) -> None:
        for komponent in self.komponents:
            komponent.prepare_for_save(komposer)

    def to_payload(self) -> dict[str, Any]:
        return {**super().to_payload(), "komponents": [k.to_payload() for k in self.komponents]}


class Columns(Rows):
    component = "Columns"


class Button(Komponent):
    component = "Button"


class Link(Komponent):
    """Menu item pointing to a URL."""

    component = "Link"

    def __init__(self, label: str = "", href: str | None = None):
        super().__init__(label)
        self.href = href

    def to_payload(self) -> dict[str, Any]:
        return {**super().to_payload(), "href": self.href}


class Dropdown(Rows):
    """Menu item revealing nested komponents."""

    component = "Dropdown"

    def __init__(self, label: str = "", *komponents: Komponent | None):
        super().__init__(*komponents)
        self.label = label

    def no_caret(self) -> Dropdown:
        return self.config({"noCaret": True})
