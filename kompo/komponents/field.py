"""
Field: a komponent bound to one or more record attributes.

Display path: rules are pushed to the komposer, the value is read from the
form's record and the readonly gate is applied. Save path: values are
filled into the record before it is saved (plain attributes, many-to-one
keys) and after it is saved (collections, one-to-one children).

A field subclass customizes the binding by defining any of:

    get_value_from_model(model, name)
    prepare_value_for_front(name, value, model)
    set_attribute_from_request(request, name, model)
    set_relation_from_request(request, name, model)

They are collected once into ``field.hooks`` when the field is built.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar

from kompo.config import settings
from kompo.core import arr
from kompo.core.request import KompoRequest
from kompo.core.text import slugify, snake
from kompo.core.types import KomposerType
from kompo.core.validation import ValidationManager
from kompo.komponents.komponent import Komponent, serialize
from kompo.records.model_manager import ModelManager

if TYPE_CHECKING:
    from kompo.komposers.komposer import Komposer

HOOK_NAMES = (
    "get_value_from_model",
    "prepare_value_for_front",
    "set_attribute_from_request",
    "set_relation_from_request",
)


@dataclass(frozen=True)
class FieldHooks:
    """Optional overrides of the default record binding."""

    get_value_from_model: Callable[[Any, str], Any] | None = None
    prepare_value_for_front: Callable[[str, Any, Any], None] | None = None
    set_attribute_from_request: Callable[[KompoRequest, str, Any], Any] | None = None
    set_relation_from_request: Callable[[KompoRequest, str, Any], Any] | None = None

    @classmethod
    def from_field(cls, field: Field) -> FieldHooks:
        return cls(**{name: getattr(field, name) for name in HOOK_NAMES if callable(getattr(field, name, None))})


class Field(Komponent):
    component = "Input"
    default_trigger = "change"

    casts_to_array: ClassVar[bool] = False

    def __init__(self, label: str = ""):
        super().__init__(label)
        self.name: str | list[str] = snake(label)
        self.value: Any = None
        self.placeholder: str | None = None
        self.slug: str | None = None
        self.extra_attributes: dict[str, Any] = {}
        self.filter_operator = "="
        self.eloquent = {
            "ignores_model": False,  # Doesn't interact with the record on display or submit.
            "does_not_fill": False,  # Reads the record on display but does not fill it on submit.
        }
        self.hooks = FieldHooks.from_field(self)

    # -----------------------------------------------------------------------
    # Builders
    # -----------------------------------------------------------------------

    def rules(self, rules: str | list[str] | dict[str, Any]) -> Field:
        """Append validation rules: "required|max:255" or a list of tokens."""
        return ValidationManager.set_field_rules(rules, self)

    def with_name(self, name: str | list[str]) -> Field:
        self.name = name
        return self

    def with_value(self, value: Any) -> Field:
        """Set the value. The record's value takes precedence on display when not empty."""
        self.set_value(value)
        return self

    def set_value(self, value: Any) -> None:
        self.value = value

    def with_placeholder(self, placeholder: str) -> Field:
        self.placeholder = placeholder
        return self

    def default(self, default_value: Any) -> Field:
        """Set a value only if the field has none yet."""
        if self.pristine():
            self.set_value(default_value)
        return self

    def pristine(self) -> bool:
        return not self.value

    def sluggable(self, slug_column: str = "slug") -> Field:
        """Also fill ``slug_column`` with a slug of this field's value."""
        self.slug = slug_column
        return self

    def required(self, indicator: str = "*") -> Field:
        self.data({"required": indicator})
        return self.rules("required")

    def read_only(self) -> Field:
        return self.data({"readOnly": True})

    def is_read_only(self) -> bool:
        return bool(self.data("readOnly"))

    def no_autocomplete(self) -> Field:
        return self.data({"noAutocomplete": True})

    def no_input_wrapper(self) -> Field:
        return self.data({"noInputWrapper": True})

    def with_extra_attributes(self, attributes: dict[str, Any] | None = None) -> Field:
        """Constant columns/values to persist alongside this field's value."""
        self.extra_attributes = dict(attributes or {})
        return self

    def ignores_model(self) -> Field:
        self.eloquent["ignores_model"] = True
        return self

    def does_not_fill(self) -> Field:
        self.eloquent["does_not_fill"] = True
        return self

    def filters_with(self, operator: str) -> Field:
        """Operator used when the field filters a query: =, !=, >, >=, <, <=, like."""
        self.filter_operator = operator
        return self

    def with_hooks(self, **hooks: Callable[..., Any]) -> Field:
        self.hooks = dataclasses.replace(self.hooks, **hooks)
        return self

    def eloquent_config(self, key: str) -> bool:
        return self.eloquent.get(key, False)

    # -----------------------------------------------------------------------
    # Display
    # -----------------------------------------------------------------------

    def prepare_for_display(self, komposer: Komposer) -> None:
        ValidationManager.push_field_rules_to_komposer(self, komposer)

        self.set_value_from_db(komposer)

        self.check_set_readonly(komposer)

    def set_value_from_db(self, komposer: Komposer) -> None:
        model = getattr(komposer, "model", None)
        if komposer.komposer_type is not KomposerType.FORM or model is None or self.eloquent_config("ignores_model"):
            return

        for name in arr.collect(self.name):
            target, attribute = ModelManager.parse_from_field_name(model, name)

            if self.hooks.get_value_from_model:
                value = self.hooks.get_value_from_model(target, attribute)
            else:
                value = ModelManager.get_value_from_db(target, attribute)

            if self.should_cast_to_array(target, attribute):
                value = arr.decode(value)

            if self.hooks.prepare_value_for_front:
                self.hooks.prepare_value_for_front(attribute, value, target)
            else:
                self.set_value(value or self.value)

    def check_set_readonly(self, komposer: Komposer) -> None:
        """Make the field readonly when the komposer's authorization excludes it."""
        if not settings.SMART_READONLY_FIELDS or not komposer.can_authorize():
            return

        authorization = komposer.authorization()

        for name in arr.collect(self.name):
            if not authorization or (isinstance(authorization, (list, tuple, set)) and name not in authorization):
                self.read_only()

    # -----------------------------------------------------------------------
    # Save
    # -----------------------------------------------------------------------

    def prepare_for_save(self, komposer: Komposer) -> None:
        komposer.components.append(self)

        super().prepare_for_save(komposer)

        ValidationManager.push_field_rules_to_komposer(self, komposer)

        self.check_set_readonly(komposer)

    def fill_before_save(self, request: KompoRequest, model: Any) -> None:
        """Assign request values to the record's in-memory attributes."""
        if self.does_not_fill_condition():
            return

        for name in arr.collect(self.name):
            if not request.has(name):
                continue

            target, attribute = ModelManager.parse_from_field_name(model, name, attach=True)

            if not ModelManager.fills_before_save(target, attribute):
                continue

            if self.should_cast_to_array(target, attribute):
                target.merge_casts({attribute: "array"})

            if self.hooks.set_attribute_from_request:
                value = self.hooks.set_attribute_from_request(request, attribute, target)
            else:
                value = request.input(name)

            ModelManager.fill_attribute(target, attribute, value, self.extra_attributes)

            if self.slug:
                ModelManager.fill_attribute(target, self.slug, slugify(value))

    def fill_after_save(self, request: KompoRequest, model: Any) -> None:
        """Persist relations that need the saved record's key."""
        if self.does_not_fill_condition():
            return

        for name in arr.collect(self.name):
            if not request.has(name):
                continue

            target, attribute = ModelManager.parse_from_field_name(model, name, attach=True)

            if not ModelManager.fills_after_save(target, attribute):
                continue

            if self.hooks.set_relation_from_request:
                value = self.hooks.set_relation_from_request(request, attribute, target)
            else:
                value = request.input(name)

            ModelManager.save_and_load_relation(target, attribute, value, self.extra_attributes)

    def does_not_fill_condition(self) -> bool:
        return self.eloquent_config("does_not_fill") or self.is_read_only()

    def should_cast_to_array(self, model: Any, name: str) -> bool:
        has_cast = getattr(model, "has_cast", None)
        return self.casts_to_array and not (callable(has_cast) and has_cast(name))

    def to_payload(self) -> dict[str, Any]:
        return {
            **super().to_payload(),
            "name": self.name,
            "value": serialize(self.value),
            "placeholder": self.placeholder,
        }
