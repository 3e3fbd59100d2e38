"""Komposer type resolution -- Form, Query and Menu ancestries, in that order."""

import pytest

from kompo.core.types import KomposerType
from kompo.exceptions import KomposerNotFound, NotBootableFromRouteException
from kompo.komposers import FormBooter, MenuBooter, Query, QueryBooter
from kompo.komposers.registry import class_name, resolve
from kompo.routing.dispatcher import Dispatcher, get_komposer_type
from kompo.tests.komposers import ContactForm, NavMenu, NotAKomposer, PostForm, PostQuery


class TestGetKomposerType:
    def test_form_ancestry(self):
        assert get_komposer_type(PostForm) is KomposerType.FORM
        assert get_komposer_type(ContactForm) is KomposerType.FORM

    def test_query_ancestry(self):
        assert get_komposer_type(PostQuery) is KomposerType.QUERY

    def test_menu_ancestry(self):
        assert get_komposer_type(NavMenu) is KomposerType.MENU

    def test_neither(self):
        with pytest.raises(NotBootableFromRouteException) as exc:
            get_komposer_type(NotAKomposer)
        assert exc.value.status_code == 500

    def test_deep_subclass(self):
        class FilteredPostQuery(PostQuery):
            pass

        assert get_komposer_type(FilteredPostQuery) is KomposerType.QUERY

    def test_base_query_is_bootable(self):
        assert get_komposer_type(Query) is KomposerType.QUERY


class TestBooterSelection:
    def test_booter_per_type(self, make_request):
        assert Dispatcher(make_request(), PostForm).booter is FormBooter
        assert Dispatcher(make_request(), PostQuery).booter is QueryBooter
        assert Dispatcher(make_request(), NavMenu).booter is MenuBooter

    def test_class_comes_from_boot_info(self, make_request, kompoinfo):
        request = make_request(headers={"X-Kompo-Info": kompoinfo("nav-menu")})
        dispatcher = Dispatcher(request)
        assert dispatcher.komposer_class is NavMenu
        assert dispatcher.boot_info.kompo_class == "nav-menu"


class TestRegistry:
    def test_alias_and_dotted_path(self):
        assert resolve("post-form") is PostForm
        assert resolve(class_name(PostForm)) is PostForm
        assert PostForm.kompo_class() == "post-form"

    def test_unknown_name(self):
        with pytest.raises(KomposerNotFound) as exc:
            resolve("nope")
        assert exc.value.status_code == 404

    def test_subclass_without_alias_uses_dotted_path(self):
        class LocalMenu(NavMenu):
            pass

        assert LocalMenu.kompo_class() == class_name(LocalMenu)
        assert resolve(LocalMenu.kompo_class()) is LocalMenu
