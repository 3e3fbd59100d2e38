"""
Query browsing -- pages, sorts and filters over selects and plain lists.
"""

import logging

import pytest
from sqlalchemy import select

from kompo.exceptions import RecordNotFound
from kompo.komposers import Query
from kompo.komposers.query import parse_page, parse_sort
from kompo.routing.dispatcher import Dispatcher
from kompo.tests.komposers import NumbersQuery, PostQuery
from kompo.tests.models import Post


def browse(make_request, kompoinfo, kompo_class, data=None, page=None, sort=None):
    headers = {"X-Kompo-Action": "browse-items", "X-Kompo-Info": kompoinfo(kompo_class)}
    if page is not None:
        headers["X-Kompo-Page"] = str(page)
    if sort is not None:
        headers["X-Kompo-Sort"] = sort
    return Dispatcher.dispatch_connection(make_request(data or {}, headers))


class TestHeaders:
    @pytest.mark.parametrize(
        "value,expected",
        [(None, 1), ("", 1), ("3", 3), ("0", 1), ("-2", 1), ("abc", 1)],
    )
    def test_page(self, value, expected):
        assert parse_page(value) == expected

    def test_sort(self):
        assert parse_sort("title:desc|id") == [("title", True), ("id", False)]
        assert parse_sort("") == []
        assert parse_sort("name:ASC") == [("name", False)]


class TestSelectQuery:
    def test_first_page(self, make_request, kompoinfo, seeded):
        results = browse(make_request, kompoinfo, "post-query", sort="id")

        assert results["kompoid"] == "post-query"
        assert [i["title"] for i in results["items"]] == ["Hello world", "Second post"]
        assert results["total"] == 3
        assert results["per_page"] == 2
        assert results["last_page"] == 2

    def test_second_page(self, make_request, kompoinfo, seeded):
        results = browse(make_request, kompoinfo, "post-query", page=2, sort="id")
        assert [i["title"] for i in results["items"]] == ["Hello again"]
        assert results["page"] == 2

    def test_sort_descending(self, make_request, kompoinfo, seeded):
        results = browse(make_request, kompoinfo, "post-query", sort="title:desc")
        assert [i["title"] for i in results["items"]] == ["Second post", "Hello world"]

    def test_multiple_sorts(self, make_request, kompoinfo, seeded):
        results = browse(make_request, kompoinfo, "post-query", sort="author_id|id:desc")
        assert [i["title"] for i in results["items"]] == ["Hello again", "Hello world"]

    def test_like_filter(self, make_request, kompoinfo, seeded):
        results = browse(make_request, kompoinfo, "post-query", {"title": "HELLO"}, sort="id")

        assert [i["title"] for i in results["items"]] == ["Hello world", "Hello again"]
        assert results["total"] == 2

    def test_equality_filter(self, make_request, kompoinfo, seeded):
        bob = seeded["authors"][1]
        results = browse(make_request, kompoinfo, "post-query", {"author_id": str(bob.id)})
        assert [i["title"] for i in results["items"]] == ["Second post"]

    def test_blank_filters_are_ignored(self, make_request, kompoinfo, seeded):
        results = browse(make_request, kompoinfo, "post-query", {"title": "", "author_id": None})
        assert results["total"] == 3

    def test_unknown_sort_column_is_ignored(self, make_request, kompoinfo, seeded, caplog):
        with caplog.at_level(logging.WARNING, logger="kompo.komposers.query"):
            results = browse(make_request, kompoinfo, "post-query", sort="nope|id")

        assert [i["title"] for i in results["items"]] == ["Hello world", "Second post"]
        assert "unknown sort column nope" in caplog.text

    def test_page_past_the_end(self, make_request, kompoinfo, seeded):
        results = browse(make_request, kompoinfo, "post-query", page=9)
        assert results["items"] == []
        assert results["total"] == 3

    def test_display_includes_first_page(self, make_request, seeded):
        payload = Dispatcher.boot_for_display(make_request({"title": "again"}), PostQuery).to_payload()

        assert payload["component"] == "Query"
        assert payload["results"]["items"] == [{"id": seeded["posts"][2].id, "title": "Hello again"}]


class TestListQuery:
    def test_paginates_in_order(self, make_request, kompoinfo):
        results = browse(make_request, kompoinfo, "numbers-query", page=2)

        assert [i["value"] for i in results["items"]] == [1, 9, 2]
        assert results["total"] == 6
        assert results["last_page"] == 2

    def test_filter_coerces_request_text(self, make_request, kompoinfo):
        results = browse(make_request, kompoinfo, "numbers-query", {"value": "5"}, sort="value")
        assert [i["value"] for i in results["items"]] == [5, 8, 9]

    def test_unparseable_filter_matches_nothing(self, make_request, kompoinfo):
        results = browse(make_request, kompoinfo, "numbers-query", {"value": "five"})
        assert results["items"] == []
        assert results["last_page"] == 1

    def test_cards_default_to_the_item(self, make_request, kompoinfo):
        results = browse(make_request, kompoinfo, "numbers-query", sort="value:desc")
        assert results["items"][0] == {"value": 9, "label": "#9"}

    def test_display_reads_filters_from_the_request(self, make_request):
        payload = Dispatcher.boot_for_display(make_request({"value": "8"}), NumbersQuery).to_payload()
        assert [i["value"] for i in payload["results"]["items"]] == [8, 9]

    def test_mixed_types_sort_as_text(self, make_request, kompoinfo, caplog):
        class MixedQuery(Query):
            kompo_alias = "mixed-query"

            def query(self):
                return [{"v": "a"}, {"v": 3}, {"v": None}, {"v": 1}]

        with caplog.at_level(logging.WARNING, logger="kompo.komposers.query"):
            results = browse(make_request, kompoinfo, "mixed-query", sort="v")

        assert [i["v"] for i in results["items"]] == [1, 3, "a", None]
        assert "mixed types in sort column v" in caplog.text


class TestDeleteItem:
    def test_deletes_the_record(self, session, make_request, kompoinfo, seeded):
        post = seeded["posts"][0]
        request = make_request(
            {"id": str(post.id)},
            {"X-Kompo-Action": "delete-item", "X-Kompo-Info": kompoinfo("post-query")},
        )

        assert Dispatcher.dispatch_connection(request) == {"deleted": str(post.id)}
        assert [p.title for p in session.scalars(select(Post).order_by(Post.id))] == ["Second post", "Hello again"]

    def test_unknown_key(self, make_request, kompoinfo, seeded):
        headers = {"X-Kompo-Action": "delete-item", "X-Kompo-Info": kompoinfo("post-query")}
        request = make_request({"id": "999"}, headers)
        with pytest.raises(RecordNotFound):
            Dispatcher.dispatch_connection(request)
