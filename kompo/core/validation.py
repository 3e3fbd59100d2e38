"""
Validation rules for fields and komposers.

ValidationManager merges rule declarations (old tokens first, never dropping
one). RuleValidator checks a request against the merged rules map by
building a pydantic model on the fly.

Rule tokens follow the "required|max:255" convention:

    required, nullable, sometimes, string, integer, numeric, boolean,
    array, email, max:n, min:n, in:a,b,c, regex:pattern
"""

from __future__ import annotations

import logging
import re
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BeforeValidator, ValidationError, create_model
from pydantic_core import PydanticCustomError

from kompo.config import settings
from kompo.core import arr
from kompo.core.request import KompoRequest
from kompo.exceptions import KompoValidationError

logger = logging.getLogger(__name__)

Rules = dict[str, list[str]]


class ValidationManager:
    """Merges validation rules onto fields and komposers."""

    @classmethod
    def set_field_rules(cls, rules: Any, field: Any) -> Any:
        """
        Set the rules of a field. A plain rule string or list applies to every
        name of the field; a mapping keyed by the field's name is used as is.
        """
        if not (isinstance(rules, dict) and any(name in rules for name in arr.collect(field.name))):
            rules = {name: rules for name in arr.collect(field.name)}
        return cls._set_rules(rules, field)

    @classmethod
    def add_rules_to_komposer(cls, rules: dict[str, Any], komposer: Any) -> Any:
        """Append validation rules to the komposer."""
        return cls._set_rules(rules, komposer)

    @classmethod
    def push_field_rules_to_komposer(cls, field: Any, komposer: Any) -> None:
        """Push rules declared on the field itself up to its komposer."""
        if field.data("rules"):
            cls.add_rules_to_komposer(field.data("rules"), komposer)

    # -----------------------------------------------------------------------
    # Merging
    # -----------------------------------------------------------------------

    @classmethod
    def _set_rules(cls, rules: dict[str, Any], el: Any) -> Any:
        return el.data({"rules": cls.merge_rules(rules, el.data("rules") or {})})

    @classmethod
    def merge_rules(cls, rules: dict[str, Any], old_rules: Rules) -> Rules:
        results = {
            attribute: cls.merge_attribute(validations, old_rules.get(attribute, []))
            for attribute, validations in rules.items()
        }
        return {**old_rules, **results}

    @staticmethod
    def merge_attribute(validations: Any, old_validations: list[str] | None = None) -> list[str]:
        tokens = validations.split("|") if isinstance(validations, str) else list(validations or [])
        merged = [*(old_validations or []), *tokens]
        if settings.DEDUPLICATE_RULES:
            merged = list(dict.fromkeys(merged))
        return merged


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

_TYPES: dict[str, Any] = {
    "string": str,
    "integer": int,
    "numeric": float,
    "boolean": bool,
    "array": list,
}

_FLAGS = {"required", "nullable", "sometimes", "bail", *_TYPES}

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _label(attribute: str) -> str:
    return attribute.replace("_", " ").replace(".", " ")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def _size(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, list, dict)):
        return len(value)
    if isinstance(value, (int, float)):
        return value
    return None


def _unit(value: Any) -> str:
    if isinstance(value, str):
        return " characters"
    if isinstance(value, (list, dict)):
        return " items"
    return ""


def _required(label: str):
    def check(value: Any) -> Any:
        if _is_blank(value):
            raise PydanticCustomError("required", "The {label} field is required.", {"label": label})
        return value

    return check


def _empty_to_none(value: Any) -> Any:
    return None if isinstance(value, str) and value == "" else value


def _max(label: str, limit: float):
    def check(value: Any) -> Any:
        size = _size(value)
        if size is not None and size > limit:
            raise PydanticCustomError(
                "max",
                "The {label} may not be greater than {limit}{unit}.",
                {"label": label, "limit": _format_number(limit), "unit": _unit(value)},
            )
        return value

    return check


def _min(label: str, limit: float):
    def check(value: Any) -> Any:
        size = _size(value)
        if size is not None and size < limit:
            raise PydanticCustomError(
                "min",
                "The {label} must be at least {limit}{unit}.",
                {"label": label, "limit": _format_number(limit), "unit": _unit(value)},
            )
        return value

    return check


def _in(label: str, allowed: list[str]):
    def check(value: Any) -> Any:
        for item in arr.collect(value):
            if str(item) not in allowed:
                raise PydanticCustomError("in", "The selected {label} is invalid.", {"label": label})
        return value

    return check


def _email(label: str):
    def check(value: Any) -> Any:
        if not isinstance(value, str) or not _EMAIL.match(value):
            raise PydanticCustomError("email", "The {label} must be a valid email address.", {"label": label})
        return value

    return check


def _regex(label: str, pattern: str):
    compiled = re.compile(pattern.strip("/"))

    def check(value: Any) -> Any:
        if not isinstance(value, str) or not compiled.search(value):
            raise PydanticCustomError("regex", "The {label} format is invalid.", {"label": label})
        return value

    return check


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class RuleValidator:
    """Validates request fields against a merged rules map."""

    @classmethod
    def validate(cls, request: KompoRequest, rules: Rules) -> dict[str, Any]:
        """
        Check the request against the rules.

        Args:
            request: The request being dispatched
            rules: Merged rules map (attribute -> tokens)

        Returns:
            Validated values keyed by attribute

        Raises:
            KompoValidationError: With the error messages per attribute
        """
        definitions: dict[str, Any] = {}
        values: dict[str, Any] = {}
        attributes: dict[str, str] = {}

        for index, (attribute, tokens) in enumerate(rules.items()):
            tokens = ValidationManager.merge_attribute(tokens)
            if "sometimes" in tokens and not request.has(attribute):
                continue
            key = f"field_{index}"
            attributes[key] = attribute
            definitions[key] = cls._definition(attribute, tokens)
            if request.has(attribute):
                values[key] = request.input(attribute)

        if not definitions:
            return {}

        model = create_model("KompoRules", **definitions)
        try:
            validated = model.model_validate(values)
        except ValidationError as e:
            raise KompoValidationError(cls._errors(e, attributes)) from e

        return {attributes[key]: value for key, value in validated.model_dump().items()}

    @staticmethod
    def _definition(attribute: str, tokens: list[str]) -> tuple[Any, Any]:
        label = _label(attribute)
        base: Any = Any
        checks: list[Any] = []

        for token in tokens:
            name, _, argument = token.partition(":")
            if name in _TYPES:
                base = _TYPES[name]
            elif name == "max":
                checks.append(AfterValidator(_max(label, float(argument))))
            elif name == "min":
                checks.append(AfterValidator(_min(label, float(argument))))
            elif name == "in":
                checks.append(AfterValidator(_in(label, argument.split(","))))
            elif name == "email":
                checks.append(AfterValidator(_email(label)))
            elif name == "regex":
                checks.append(AfterValidator(_regex(label, argument)))
            elif name not in _FLAGS:
                logger.debug("validation: skipping unsupported rule %s on %s", token, attribute)

        annotation = Annotated[(base, *checks)] if checks else base

        if "required" in tokens:
            return Annotated[annotation, BeforeValidator(_required(label))], ...
        return Annotated[Optional[annotation], BeforeValidator(_empty_to_none)], None

    @staticmethod
    def _errors(error: ValidationError, attributes: dict[str, str]) -> dict[str, list[str]]:
        errors: dict[str, list[str]] = {}
        for item in error.errors():
            attribute = attributes.get(str(item["loc"][0]), str(item["loc"][0]))
            if item["type"] == "missing":
                message = f"The {_label(attribute)} field is required."
            else:
                message = item["msg"]
            errors.setdefault(attribute, []).append(message)
        return errors
