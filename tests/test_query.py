"""Tests for roost.http.query: immutable QueryParams."""

import pytest

from roost.http.query import QueryParams


class TestQueryParams:
    def test_getitem(self) -> None:
        q = QueryParams(b"q=hello&page=2")
        assert q["q"] == "hello"
        assert q["page"] == "2"

    def test_missing_key_raises(self) -> None:
        with pytest.raises(KeyError):
            QueryParams(b"q=hello")["missing"]

    def test_blank_values_kept(self) -> None:
        q = QueryParams(b"flag=&q=x")
        assert q["flag"] == ""

    def test_get_list(self) -> None:
        q = QueryParams(b"tag=python&tag=rust&q=hello")
        assert q.get_list("tag") == ["python", "rust"]
        assert q.get_list("missing") == []

    def test_empty(self) -> None:
        q = QueryParams()
        assert len(q) == 0
        assert q.raw == b""
