"""Menu: a display-only komposer (navbars, sidebars). Supports self-method calls."""

from __future__ import annotations

from kompo.core.types import KomposerType
from kompo.komposers.komposer import Booter, Komposer


class Menu(Komposer):
    komposer_type = KomposerType.MENU

    def prepare_for_save(self) -> Menu:
        # Nothing to save; only self-methods reach a booted menu.
        return self


class MenuBooter(Booter):
    pass
