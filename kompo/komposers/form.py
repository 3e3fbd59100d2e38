"""
Form: a komposer bound to one record (or to a ``handle`` method).

Submit lifecycle:

    validate -> fill_before_save -> before_save() -> flush
    -> fill_after_save -> after_save() -> commit -> completed() -> response()

Forms without a ``model_class`` must define ``handle(request)``; the
validated request is passed to it and its return value is the response.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from kompo.core.request import KompoRequest
from kompo.core.types import KomposerType
from kompo.core.validation import RuleValidator
from kompo.exceptions import KomposerMisconfigured, RecordNotFound
from kompo.komponents.komponent import serialize
from kompo.komposers.komposer import Booter, Komposer
from kompo.records.base import Record
from kompo.records.model_manager import ModelManager

logger = logging.getLogger(__name__)


class Form(Komposer):
    komposer_type = KomposerType.FORM

    model_class: ClassVar[type[Record] | None] = None

    def __init__(
        self,
        request: KompoRequest,
        model_key: Any = None,
        store: dict[str, Any] | None = None,
        parameters: dict[str, Any] | None = None,
    ):
        self.model = self.load_model(request, model_key)
        super().__init__(request, store, parameters)

    def load_model(self, request: KompoRequest, model_key: Any) -> Record | None:
        if self.model_class is None:
            return None
        if model_key in (None, ""):
            return self.model_class()
        if request.session is None:
            raise KomposerMisconfigured(f"{type(self).__name__} needs a database session to load its record.")
        model = ModelManager.find(request.session, self.model_class, model_key)
        if model is None:
            raise RecordNotFound(self.model_class, model_key)
        return model

    def model_key(self) -> Any:
        return self.model.get_key() if self.model is not None else None

    # -----------------------------------------------------------------------
    # Hooks
    # -----------------------------------------------------------------------

    def before_save(self) -> None:
        pass

    def after_save(self) -> None:
        pass

    def completed(self) -> None:
        pass

    def response(self) -> Any:
        return {"model": self.model.to_dict()} if self.model is not None else None

    # -----------------------------------------------------------------------
    # Submit
    # -----------------------------------------------------------------------

    def submit(self, request: KompoRequest) -> Any:
        """Validate the request and save it into the record (or hand it to ``handle``)."""
        RuleValidator.validate(request, self.merged_rules)

        if self.model is None:
            handle = getattr(self, "handle", None)
            if not callable(handle):
                raise KomposerMisconfigured(f"{type(self).__name__} has neither a model_class nor a handle method.")
            return serialize(handle(request))

        session = request.session or self.session
        if session is None:
            raise KomposerMisconfigured(f"{type(self).__name__} needs a database session to save its record.")

        fields = self.fields()
        try:
            for field in fields:
                field.fill_before_save(request, self.model)

            self.before_save()

            session.add(self.model)
            session.flush()

            for field in fields:
                field.fill_after_save(request, self.model)

            self.after_save()

            session.commit()
        except Exception:
            session.rollback()
            raise

        logger.info("form: saved %s %s", type(self.model).__name__, self.model.get_key())

        self.completed()

        return serialize(self.response())


class FormBooter(Booter):
    @classmethod
    def make(
        cls,
        komposer_class: type[Komposer],
        request: KompoRequest,
        model_key: Any = None,
        store: dict[str, Any] | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> Komposer:
        return komposer_class(request, model_key, store=store, parameters=parameters)
