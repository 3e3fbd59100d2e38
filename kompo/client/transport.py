"""HTTP client for the Kompo routes."""

from __future__ import annotations

from typing import Any

import httpx

from kompo.core.request import (
    ACTION_HEADER,
    INFO_HEADER,
    METHOD_HEADER,
    Actions,
)


class KompoRequestError(Exception):
    """The server answered a Kompo action with an error status."""

    def __init__(self, status_code: int, payload: Any):
        super().__init__(f"Kompo request failed with {status_code}")
        self.status_code = status_code
        self.payload = payload


class KompoClient:
    """HTTP client for the Kompo routes."""

    def __init__(self, base_url: str = "", http: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self.http = http or httpx.Client(timeout=30.0)

    def _headers(self, action: str, kompoinfo: str | None = None, extra: dict[str, Any] | None = None) -> dict:
        """Build request headers."""
        headers = {"Content-Type": "application/json", "Accept": "application/json", ACTION_HEADER: action}
        if kompoinfo:
            headers[INFO_HEADER] = kompoinfo
        for key, value in (extra or {}).items():
            if value is not None:
                headers[key] = str(value)
        return headers

    @staticmethod
    def _json(res: httpx.Response) -> Any:
        try:
            payload = res.json()
        except ValueError:
            payload = res.text
        if res.is_error:
            raise KompoRequestError(res.status_code, payload)
        return payload

    def display(self, kompo_class: str, params: dict | None = None) -> dict:
        """Display payload of a registered komposer."""
        res = self.http.get(f"{self.base_url}/_kompo/display/{kompo_class}", params=params or {})
        return self._json(res)

    def post(
        self,
        action: str,
        data: Any = None,
        kompoinfo: str | None = None,
        headers: dict[str, Any] | None = None,
    ) -> Any:
        """Make a Kompo action request."""
        res = self.http.post(
            f"{self.base_url}/_kompo",
            json=data if data is not None else {},
            headers=self._headers(action, kompoinfo, headers),
        )
        return self._json(res)

    def submit(self, kompoinfo: str, data: dict) -> Any:
        return self.post(Actions.SUBMIT_FORM, data, kompoinfo)

    def refresh_many(self, items: list[dict]) -> dict:
        """
        Refresh several komposers in one request.

        Items are {"kompoid", "kompoinfo", "data"}; returns fresh payloads keyed by kompoid.
        """
        return self.post(Actions.REFRESH_MANY, items)

    def browse_many(self, items: list[dict]) -> dict:
        """Items are {"kompoid", "kompoinfo", "data", "page", "sort"}; returns results keyed by kompoid."""
        return self.post(Actions.BROWSE_MANY, items)

    def self_method(self, kompoinfo: str, method: str, data: dict | None = None) -> Any:
        return self.post(Actions.SELF_METHOD, data, kompoinfo, {METHOD_HEADER: method})

    def close(self):
        """Close client."""
        self.http.close()
