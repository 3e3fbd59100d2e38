"""String helpers for field names and slugs."""

from __future__ import annotations

import re
import unicodedata

_NON_WORD = re.compile(r"[^a-z0-9]+")


def snake(label: str | None) -> str:
    """"First name" -> "first_name", "firstName" -> "first_name"."""
    if not label:
        return ""
    value = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", label.strip())
    return _NON_WORD.sub("_", _ascii(value).lower()).strip("_")


def slugify(value: str | None, separator: str = "-") -> str:
    if not value:
        return ""
    return _NON_WORD.sub(separator, _ascii(str(value)).lower()).strip(separator)


def _ascii(value: str) -> str:
    return unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
