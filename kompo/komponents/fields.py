"""Concrete fields."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from kompo.komponents.field import Field
from kompo.records.base import Record
from kompo.records.model_manager import ModelManager


class Input(Field):
    component = "Input"

    def input_type(self, input_type: str) -> Input:
        return self.config({"type": input_type})


class Textarea(Field):
    component = "Textarea"


class Hidden(Field):
    component = "Hidden"


class Checkbox(Field):
    component = "Checkbox"

    def prepare_value_for_front(self, name: str, value: Any, model: Any) -> None:
        # A stored False must win over any default.
        self.set_value(bool(value) if value is not None else bool(self.value))


class Select(Field):
    """
    Select among options. Options are either given directly:

        Select("Status").options({"draft": "Draft", "live": "Live"})

    or loaded from the relation named by the field:

        Select("Author").with_name("author").options_from("id", "name")
    """

    component = "Select"

    NO_OPTIONS_FOUND = "No results found"

    def __init__(self, label: str = ""):
        super().__init__(label)
        self.option_list: list[dict[str, Any]] = []
        self.options_key: str | None = None
        self.options_label: Any = None
        self.data({"noOptionsFound": self.NO_OPTIONS_FOUND})

    def prepare_value_for_front(self, name: str, value: Any, model: Any) -> None:
        if self.options_key and self.options_label:
            self.options(ModelManager.get_related_candidates(model, name), self.options_key, self.options_label)

        self.set_value_for_front(value)

    def set_value_for_front(self, value: Any) -> None:
        if not value:
            self.value = None
            return
        key = self.value_key_name(value)
        self.value = getattr(value, key) if key else value

    def value_key_name(self, value: Any) -> str | None:
        if self.options_key:
            return self.options_key
        return value.key_name() if isinstance(value, Record) else None

    def options(self, options: Any = None, options_key: str | None = None, options_label: Any = None) -> Select:
        """
        Set the options from a mapping (value -> label) or from records,
        reading ``options_key`` for the value and ``options_label`` for the label.
        """
        self.option_list = self.transform_options(options, options_key, options_label)
        return self

    def options_from(self, key_column: str, label_column: Any) -> Select:
        """Load the related records as options when the field is displayed."""
        self.options_key = key_column
        self.options_label = label_column
        return self

    @classmethod
    def transform_options(
        cls,
        options: Any = None,
        options_key: str | None = None,
        options_label: Any = None,
    ) -> list[dict[str, Any]]:
        pairs: Iterable[tuple[Any, Any]]
        if options is None:
            return []
        if isinstance(options, Mapping):
            pairs = options.items()
        else:
            pairs = enumerate(options)

        return [
            {
                "label": cls.transform_label(options_label, value) if options_label else value,
                "value": getattr(value, options_key) if options_key else key,
            }
            for key, value in pairs
        ]

    @classmethod
    def transform_label(cls, options_label: Any, value: Any) -> Any:
        if isinstance(options_label, Mapping):
            return {k: cls._label_part(v, value) for k, v in options_label.items()}
        if isinstance(options_label, (list, tuple)):
            return [cls._label_part(v, value) for v in options_label]
        if callable(options_label):
            return options_label(value)
        return getattr(value, options_label)

    @staticmethod
    def _label_part(mapping: Any, value: Any) -> Any:
        return mapping(value) if callable(mapping) else mapping

    def to_payload(self) -> dict[str, Any]:
        return {**super().to_payload(), "options": self.option_list}


class MultiSelect(Select):
    """Select holding a list of values, stored as an array on plain columns."""

    component = "MultiSelect"

    casts_to_array = True

    def set_value_for_front(self, value: Any) -> None:
        if not value:
            self.value = []
            return
        self.value = [
            getattr(item, key) if (key := self.value_key_name(item)) else item
            for item in value
        ]
