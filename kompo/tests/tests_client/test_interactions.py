"""
Interaction trigger engine -- which interactions run, in which order, and
how input triggers are debounced.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from kompo.client.action import Action
from kompo.client.element import KompoPage, LiveKomposer
from kompo.client.interactions import InteractionRunner
from kompo.client.transport import KompoRequestError
from kompo.komponents import Button, Input
from kompo.komponents.interaction import refresh, self_method, submit
from kompo.tests.tests_client.test_debounce import FakeScheduler


class RecordingRunner(InteractionRunner):
    """Records the actions it would run instead of sending requests."""

    def __init__(self, komponent, scheduler=None):
        self.interaction_payloads = komponent.to_payload()["interactions"]
        self.scheduler = scheduler or FakeScheduler()
        self.ran: list[tuple[str, dict]] = []

    def run_action(self, specs, response=None, parent_action=None):
        self.ran.append((specs.action_type, specs.data))


# ============================================================================
# Trigger selection
# ============================================================================


class TestTrigger:
    def test_click_runs_in_declaration_order(self):
        runner = RecordingRunner(Button("Save").submit().refresh("list").self_method("log"))

        runner.trigger("click")

        assert [a for a, _ in runner.ran] == ["submit", "refresh", "self-method"]

    def test_only_matching_trigger_runs(self):
        runner = RecordingRunner(Input("Title").submit().on("load", refresh("preview")))

        runner.trigger("load")
        assert runner.ran == [("refresh", {"kompoids": ["preview"]})]

        runner.trigger("click")
        assert len(runner.ran) == 1

    def test_unknown_trigger_runs_nothing(self):
        runner = RecordingRunner(Input("Title"))
        runner.trigger("input")
        runner.trigger("change")
        assert runner.ran == []
        assert runner.scheduler.timers == []


# ============================================================================
# Input debounce
# ============================================================================


class TestInputDebounce:
    def test_submit_and_refresh_are_debounced_separately(self):
        field = (
            Input("Search")
            .refreshes_on_input("results", debounce=300)
            .submits_on_input(debounce=800)
            .on("input", self_method("track"))
        )
        runner = RecordingRunner(field)

        for _ in range(3):
            runner.trigger("input")

        assert runner.ran == [("self-method", {"method": "track", "params": {}})] * 3
        live = [t for t in runner.scheduler.timers if not t.cancelled]
        assert sorted(t.delay for t in live) == [0.3, 0.8]

        runner.scheduler.run_pending()

        assert [a for a, _ in runner.ran[3:]] == ["submit", "refresh"]

    def test_only_declared_debouncers_are_armed(self):
        runner = RecordingRunner(Input("Search").refreshes_on_input("results", debounce=250))

        runner.trigger("input")

        assert len(runner.scheduler.timers) == 1
        assert runner.scheduler.timers[0].delay == 0.25

    def test_first_matching_debounce_is_used(self):
        field = Input("Search").refreshes_on_input("a", debounce=100).refreshes_on_input("b", debounce=900)
        runner = RecordingRunner(field)

        assert runner.input_debounce("refresh") == 100
        assert runner.input_debounce("submit") == 0

    def test_debounced_refresh_runs_every_refresh_interaction_once(self):
        field = Input("Search").refreshes_on_input("a").refreshes_on_input("b")
        runner = RecordingRunner(field)

        runner.trigger("input")
        runner.trigger("input")
        runner.scheduler.run_pending()

        assert runner.ran == [("refresh", {"kompoids": ["a"]}), ("refresh", {"kompoids": ["b"]})]


# ============================================================================
# Actions and follow-ups
# ============================================================================


class FakeClient:
    def __init__(self, fail_with: int | None = None):
        self.fail_with = fail_with
        self.calls: list[tuple] = []

    def submit(self, kompoinfo, data):
        self.calls.append(("submit", kompoinfo, data))
        if self.fail_with:
            raise KompoRequestError(self.fail_with, {"message": "nope"})
        return {"model": {"id": 1}}

    def self_method(self, kompoinfo, method, data):
        self.calls.append(("self-method", method, data))
        return {"ok": method}

    def refresh_many(self, items):
        self.calls.append(("refresh-many", [i["kompoid"] for i in items]))
        return {i["kompoid"]: {"kompoid": i["kompoid"], "kompoinfo": "fresh", "komponents": []} for i in items}


def mount(client, *komponents):
    page = KompoPage(client, FakeScheduler())
    payload = {
        "kompoid": "form",
        "kompoinfo": "info",
        "komponents": [k.to_payload() for k in komponents],
    }
    return page, page.mount(payload)


class TestActions:
    def test_success_follow_ups_get_the_response(self):
        client = FakeClient()
        page, form = mount(
            client,
            Input("Title").with_value("Hi"),
            Button("Save").on("click", submit().on_success(self_method("saved")).on_error(self_method("failed"))),
        )

        form.button("Save").click()

        assert client.calls == [
            ("submit", "info", {"title": "Hi"}),
            ("self-method", "saved", {"title": "Hi"}),
        ]

    def test_error_follow_ups_get_the_error_payload(self):
        client = FakeClient(fail_with=422)

        page, form = mount(
            client,
            Button("Save").on("click", submit().on_success(self_method("saved")).on_error(self_method("failed"))),
        )
        button = form.button("Save")

        with patch.object(button, "run_interactions_of_type") as follow_ups:
            button.click()

        (action, kind, response), _ = follow_ups.call_args
        assert (action.action_type, kind, response) == ("submit", "error", {"message": "nope"})
        assert client.calls == [("submit", "info", {})]

    def test_refresh_defaults_to_own_komposer(self):
        client = FakeClient()
        page, form = mount(client, Button("Reload").on("click", refresh()))

        form.button("Reload").click()

        assert client.calls == [("refresh-many", ["form"])]
        assert form.kompoinfo == "fresh"

    def test_unknown_action_type_is_ignored(self, caplog):
        client = FakeClient()
        page, form = mount(client, Button("Go"))

        Action(submit().model_copy(update={"action_type": "teleport"}), form.button("Go")).run()

        assert client.calls == []
        assert "unknown action type teleport" in caplog.text

    def test_self_method_params_override_field_values(self):
        client = FakeClient()
        page, form = mount(
            client, Input("Source").with_value("field"), Button("Ping").self_method("ping", source="btn")
        )

        form.button("Ping").click()

        assert client.calls == [("self-method", "ping", {"source": "btn"})]


class TestLiveKomposer:
    def test_refresh_keeps_dirty_values(self):
        client = FakeClient()
        page, form = mount(client, Input("Title").with_value("server"), Input("Body").with_value("b"))
        form.field("title").change("typed")

        form.replace(
            {
                "kompoid": "form",
                "kompoinfo": "next",
                "komponents": [
                    Input("Title").with_value("new").to_payload(),
                    Input("Body").with_value("new").to_payload(),
                ],
            }
        )

        assert form.field("title").value == "typed"
        assert form.field("body").value == "new"
        assert form.kompoinfo == "next"

    def test_lookup_errors(self):
        page, form = mount(FakeClient(), Input("Title"))
        with pytest.raises(KeyError):
            form.field("missing")
        with pytest.raises(KeyError):
            form.button("Title")

    def test_batch_item(self):
        page, form = mount(FakeClient(), Input("Title").with_value("x"))
        assert form.batch_item(page=2) == {"kompoid": "form", "kompoinfo": "info", "data": {"title": "x"}, "page": 2}
        assert isinstance(page.komposers["form"], LiveKomposer)
