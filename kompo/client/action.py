"""
Action: one run of an ActionSpec on behalf of a live element.

A new Action is built every time an interaction fires. It sends the request
for its kind, then runs the "success" follow-ups with the response,
or its "error" follow-ups with the error payload.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from kompo.client.transport import KompoRequestError
from kompo.komponents.interaction import ActionSpec, Interaction

if TYPE_CHECKING:
    from kompo.client.interactions import InteractionRunner

logger = logging.getLogger(__name__)


class Action:
    def __init__(self, specs: ActionSpec, element: InteractionRunner):
        self.specs = specs
        self.element = element
        self.parent_response: Any = None
        self.parent_action: Action | None = None
        self.response: Any = None

    @property
    def action_type(self) -> str:
        return self.specs.action_type

    @property
    def interactions(self) -> tuple[Interaction, ...]:
        return self.specs.interactions

    def run(self, response: Any = None, parent_action: Action | None = None) -> None:
        self.parent_response = response
        self.parent_action = parent_action

        handler = _HANDLERS.get(self.action_type)
        if handler is None:
            logger.warning("action: unknown action type %s ignored", self.action_type)
            return

        try:
            self.response = handler(self)
        except KompoRequestError as e:
            logger.warning("action: %s failed with %s", self.action_type, e.status_code)
            self.element.run_interactions_of_type(self, "error", e.payload)
            return

        self.element.run_interactions_of_type(self, "success", self.response)

    # -----------------------------------------------------------------------
    # Kinds
    # -----------------------------------------------------------------------

    def _targets(self) -> list[str]:
        return list(self.specs.data.get("kompoids") or [self.element.komposer.kompoid])

    def submit(self) -> Any:
        komposer = self.element.komposer
        return self.element.page.client.submit(komposer.kompoinfo, komposer.form_data())

    def refresh(self) -> Any:
        return self.element.page.refresh(self._targets())

    def browse(self) -> Any:
        return self.element.page.browse(
            self._targets(),
            page=self.specs.data.get("page"),
            sort=self.specs.data.get("sort"),
        )

    def self_method(self) -> Any:
        komposer = self.element.komposer
        data = {**komposer.form_data(), **(self.specs.data.get("params") or {})}
        return self.element.page.client.self_method(komposer.kompoinfo, self.specs.data["method"], data)


_HANDLERS = {
    "submit": Action.submit,
    "refresh": Action.refresh,
    "browse": Action.browse,
    "self-method": Action.self_method,
}
