"""
Kompo exceptions.

Every error raised by the dispatch core derives from KompoException and
carries the HTTP status the server route answers with.
"""

from __future__ import annotations

from typing import Any


class KompoException(Exception):
    """Base class for errors surfaced to the client."""

    status_code: int = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    def detail(self) -> Any:
        return {"message": self.message}


class NotBootableFromRouteException(KompoException):
    """The class is neither a Form, a Query nor a Menu."""

    def __init__(self, komposer_class: Any):
        name = getattr(komposer_class, "__qualname__", str(komposer_class))
        super().__init__(f"{name} is not bootable from a Kompo route. Extend Form, Query or Menu.")
        self.komposer_class = komposer_class


class KomposerNotFound(KompoException):
    status_code = 404

    def __init__(self, kompo_class: str):
        super().__init__(f"Komposer {kompo_class} is not registered.")


class InvalidKompoInfo(KompoException):
    """Missing or tampered X-Kompo-Info header."""

    status_code = 400


class UnknownKompoAction(KompoException):
    status_code = 400

    def __init__(self, action: str | None, komposer: Any):
        super().__init__(f"Action {action!r} is not handled by {type(komposer).__name__}.")
        self.action = action


class RecordNotFound(KompoException):
    status_code = 404

    def __init__(self, model_class: type, key: Any):
        super().__init__(f"{model_class.__name__} with key {key!r} not found.")


class UnauthorizedKompoAction(KompoException):
    status_code = 403

    def __init__(self, komposer: Any):
        super().__init__(f"This action is unauthorized on {type(komposer).__name__}.")


class KomposerMisconfigured(KompoException):
    pass


class KompoValidationError(KompoException):
    """Raised when the request does not pass the komposer's rules."""

    status_code = 422

    def __init__(self, errors: dict[str, list[str]]):
        super().__init__("The given data was invalid.")
        self.errors = errors

    def detail(self) -> Any:
        return {"message": self.message, "errors": self.errors}
