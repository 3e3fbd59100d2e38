"""
Interaction trigger engine.

A live element holds the interactions declared on its komponent. When a
trigger fires (input, change, click, load) the matching interactions run in
declaration order. Input triggers debounce submit and refresh separately so
typing in a field sends one request after the user pauses; any other input
interaction runs right away.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from kompo.client.action import Action
from kompo.client.debounce import Debounced, Scheduler
from kompo.komponents.interaction import ActionSpec, Interaction

SUBMIT = "submit"
REFRESH = "refresh"


class InteractionRunner:
    """
    Mixin for live elements. The host provides ``interaction_payloads``
    (the "interactions" list of its komponent payload) and ``scheduler``.
    """

    interaction_payloads: list[dict[str, Any]]
    scheduler: Scheduler | None = None

    @property
    def interactions(self) -> list[Interaction]:
        cached = self.__dict__.get("_interactions")
        if cached is None:
            cached = [Interaction.model_validate(i) for i in (self.interaction_payloads or [])]
            self.__dict__["_interactions"] = cached
        return cached

    def interactions_of_type(self, interaction_type: str) -> list[Interaction]:
        return [i for i in self.interactions if i.interaction_type == interaction_type]

    def run_own_interactions(self, interaction_type: str) -> None:
        for interaction in self.interactions_of_type(interaction_type):
            self.run_action(interaction.action)

    def run_own_interactions_with_action(self, interaction_type: str, action_type: str) -> None:
        for interaction in self.interactions_of_type(interaction_type):
            if interaction.action.action_type == action_type:
                self.run_action(interaction.action)

    def run_own_interactions_without_actions(self, interaction_type: str, action_types: Iterable[str]) -> None:
        excluded = set(action_types)
        for interaction in self.interactions_of_type(interaction_type):
            if interaction.action.action_type not in excluded:
                self.run_action(interaction.action)

    def run_interactions_of_type(self, parent_action: Action, interaction_type: str, response: Any) -> None:
        """Run the follow-ups of ``parent_action`` with its response."""
        for interaction in parent_action.interactions:
            if interaction.interaction_type == interaction_type:
                self.run_action(interaction.action, response, parent_action)

    def run_action(self, specs: ActionSpec, response: Any = None, parent_action: Action | None = None) -> None:
        Action(specs, self).run(response, parent_action)

    # -----------------------------------------------------------------------
    # Input debounce
    # -----------------------------------------------------------------------

    def submit_on_input(self) -> None:
        self.run_own_interactions_with_action("input", SUBMIT)

    def filter_on_input(self) -> None:
        self.run_own_interactions_with_action("input", REFRESH)

    def input_debounce(self, action_type: str) -> int:
        """Debounce of the first input interaction running ``action_type`` (0 when none)."""
        for interaction in self.interactions_of_type("input"):
            if interaction.action.action_type == action_type:
                return interaction.debounce or 0
        return 0

    @property
    def debounced_submit_on_input(self) -> Debounced:
        if "_debounced_submit" not in self.__dict__:
            self.__dict__["_debounced_submit"] = Debounced(
                self.submit_on_input, self.input_debounce(SUBMIT), self.scheduler
            )
        return self.__dict__["_debounced_submit"]

    @property
    def debounced_filter_on_input(self) -> Debounced:
        if "_debounced_filter" not in self.__dict__:
            self.__dict__["_debounced_filter"] = Debounced(
                self.filter_on_input, self.input_debounce(REFRESH), self.scheduler
            )
        return self.__dict__["_debounced_filter"]

    def trigger(self, interaction_type: str) -> None:
        if interaction_type != "input":
            self.run_own_interactions(interaction_type)
            return

        inputs = self.interactions_of_type("input")
        if any(i.action.action_type == SUBMIT for i in inputs):
            self.debounced_submit_on_input()
        if any(i.action.action_type == REFRESH for i in inputs):
            self.debounced_filter_on_input()
        self.run_own_interactions_without_actions("input", [SUBMIT, REFRESH])
