"""Shared enums."""

from __future__ import annotations

from enum import Enum


class KomposerType(str, Enum):
    """The closed set of bootable komposers."""

    FORM = "Form"
    QUERY = "Query"
    MENU = "Menu"
