"""
Interaction declarations.

An Interaction binds a trigger type ("input", "change", "click", "load",
"success", "error") to an ActionSpec. Both are frozen: once attached to a
komponent they are only read, by the client trigger engine.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ActionSpec(BaseModel):
    """What to run when an interaction fires. Nested interactions see this action's response."""

    model_config = {"populate_by_name": True, "frozen": True}

    action_type: str = Field(alias="actionType")
    data: dict[str, Any] = Field(default_factory=dict)
    interactions: tuple[Interaction, ...] = ()

    def on_success(self, action: ActionSpec) -> ActionSpec:
        return self._with(Interaction(interaction_type="success", action=action))

    def on_error(self, action: ActionSpec) -> ActionSpec:
        return self._with(Interaction(interaction_type="error", action=action))

    def _with(self, interaction: Interaction) -> ActionSpec:
        return self.model_copy(update={"interactions": (*self.interactions, interaction)})


class Interaction(BaseModel):
    model_config = {"populate_by_name": True, "frozen": True}

    interaction_type: str = Field(alias="interactionType")
    action: ActionSpec
    debounce: int | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


ActionSpec.model_rebuild()


# ---------------------------------------------------------------------------
# Action factories
# ---------------------------------------------------------------------------


def submit() -> ActionSpec:
    return ActionSpec(action_type="submit")


def refresh(*kompoids: str) -> ActionSpec:
    return ActionSpec(action_type="refresh", data={"kompoids": list(kompoids)} if kompoids else {})


def browse(*kompoids: str, page: int | None = None, sort: str | None = None) -> ActionSpec:
    data: dict[str, Any] = {"kompoids": list(kompoids)} if kompoids else {}
    if page is not None:
        data["page"] = page
    if sort is not None:
        data["sort"] = sort
    return ActionSpec(action_type="browse", data=data)


def self_method(method: str, **params: Any) -> ActionSpec:
    return ActionSpec(action_type="self-method", data={"method": method, "params": params})
