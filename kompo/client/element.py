"""
Live elements: the client-side state of displayed komposers.

KompoPage mounts komposer payloads, LiveKomposer keeps the values the user
typed and LiveKomponent fires the interactions of one komponent.

    page = KompoPage(KompoClient("http://localhost:8000"))
    form = page.display("post-form", {"id": 3})
    form.field("title").input("Hello")      # debounced submit / refresh
    form.button("Save").click()
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from kompo.client.debounce import Scheduler
from kompo.client.interactions import InteractionRunner
from kompo.client.transport import KompoClient

logger = logging.getLogger(__name__)


def _walk(payloads: list[dict[str, Any]]) -> Iterator[dict[str, Any]]:
    for payload in payloads:
        yield payload
        yield from _walk(payload.get("komponents") or [])


class KompoPage:
    """Registry of the komposers mounted on one page."""

    def __init__(self, client: KompoClient, scheduler: Scheduler | None = None):
        self.client = client
        self.scheduler = scheduler
        self.komposers: dict[str, LiveKomposer] = {}

    def display(self, kompo_class: str, params: dict | None = None) -> LiveKomposer:
        return self.mount(self.client.display(kompo_class, params))

    def mount(self, payload: dict[str, Any]) -> LiveKomposer:
        komposer = LiveKomposer(payload, self)
        self.komposers[komposer.kompoid] = komposer
        for komponent in komposer.komponents:
            komponent.trigger("load")
        return komposer

    def refresh(self, kompoids: list[str]) -> dict[str, Any]:
        """Reload several komposers in one request and swap in their new payloads."""
        targets = self._targets(kompoids)
        if not targets:
            return {}
        responses = self.client.refresh_many([k.batch_item() for k in targets])
        for komposer in targets:
            response = responses.get(komposer.kompoid)
            if self._failed(komposer, response):
                continue
            komposer.replace(response)
        return responses

    def browse(self, kompoids: list[str], page: int | None = None, sort: str | None = None) -> dict[str, Any]:
        """Load another page (or sort) of several queries in one request."""
        targets = self._targets(kompoids)
        if not targets:
            return {}
        responses = self.client.browse_many([k.batch_item(page=page, sort=sort) for k in targets])
        for komposer in targets:
            response = responses.get(komposer.kompoid)
            if self._failed(komposer, response):
                continue
            komposer.results = response
        return responses

    def _targets(self, kompoids: list[str]) -> list[LiveKomposer]:
        targets = []
        for kompoid in kompoids:
            komposer = self.komposers.get(kompoid)
            if komposer is None:
                logger.warning("page: no mounted komposer %s", kompoid)
                continue
            targets.append(komposer)
        return targets

    @staticmethod
    def _failed(komposer: LiveKomposer, response: Any) -> bool:
        if isinstance(response, dict) and "error" in response and "kompoinfo" not in response:
            logger.warning("page: %s failed: %s", komposer.kompoid, response["error"])
            return True
        return response is None


class LiveKomposer:
    """A displayed komposer: its payload, its kompoinfo and the live values of its fields."""

    def __init__(self, payload: dict[str, Any], page: KompoPage):
        self.page = page
        self.kompoid: str = payload["kompoid"]
        self.komponents: list[LiveKomponent] = []
        self.results: Any = None
        self.replace(payload)

    def replace(self, payload: dict[str, Any]) -> None:
        """Swap in a fresh payload. Values the user changed are kept."""
        dirty = {k.name: k.value for k in self.komponents if k.dirty and k.name}

        self.payload = payload
        self.kompoinfo: str = payload["kompoinfo"]
        self.results = payload.get("results", self.results)
        self.komponents = [LiveKomponent(p, self) for p in _walk(payload.get("komponents") or [])]

        for komponent in self.komponents:
            if komponent.name in dirty:
                komponent.value = dirty[komponent.name]
                komponent.dirty = True

    @property
    def fields(self) -> list[LiveKomponent]:
        return [k for k in self.komponents if isinstance(k.name, str) and k.name]

    def field(self, name: str) -> LiveKomponent:
        for komponent in self.fields:
            if komponent.name == name:
                return komponent
        raise KeyError(name)

    def button(self, label: str) -> LiveKomponent:
        for komponent in self.komponents:
            if komponent.label == label and not komponent.name:
                return komponent
        raise KeyError(label)

    def form_data(self) -> dict[str, Any]:
        return {k.name: k.value for k in self.fields}

    def batch_item(self, page: int | None = None, sort: str | None = None) -> dict[str, Any]:
        item: dict[str, Any] = {"kompoid": self.kompoid, "kompoinfo": self.kompoinfo, "data": self.form_data()}
        if page is not None:
            item["page"] = page
        if sort is not None:
            item["sort"] = sort
        return item

    def submit(self) -> Any:
        return self.page.client.submit(self.kompoinfo, self.form_data())


class LiveKomponent(InteractionRunner):
    def __init__(self, payload: dict[str, Any], komposer: LiveKomposer):
        self.payload = payload
        self.komposer = komposer
        self.page = komposer.page
        self.scheduler = komposer.page.scheduler
        self.interaction_payloads = payload.get("interactions") or []
        self.label = payload.get("label")
        self.name = payload.get("name")
        self.value = payload.get("value")
        self.dirty = False

    def input(self, value: Any) -> None:
        self.value = value
        self.dirty = True
        self.trigger("input")

    def change(self, value: Any) -> None:
        self.value = value
        self.dirty = True
        self.trigger("change")

    def click(self) -> None:
        self.trigger("click")
