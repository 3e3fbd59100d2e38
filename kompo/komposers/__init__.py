"""Komposers: Form, Query and Menu, their booters and the action handler."""

from kompo.komposers.form import Form, FormBooter
from kompo.komposers.handler import KomposerHandler
from kompo.komposers.komposer import Booter, Komposer
from kompo.komposers.menu import Menu, MenuBooter
from kompo.komposers.query import Query, QueryBooter

__all__ = [
    "Booter",
    "Form",
    "FormBooter",
    "KomposerHandler",
    "Komposer",
    "Menu",
    "MenuBooter",
    "Query",
    "QueryBooter",
]
