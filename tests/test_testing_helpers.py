"""Tests for roost.testing: synthetic requests and the test client."""

import pytest

from roost.testing import mock_http
from roost.testing.mock import build_scope


class TestBuildScope:
    def test_defaults(self) -> None:
        scope = build_scope()
        assert scope["type"] == "http"
        assert scope["method"] == "GET"
        assert scope["path"] == "/"
        assert scope["query_string"] == b""

    def test_query_merged_with_url(self) -> None:
        scope = build_scope("get", "/search?q=a", query={"page": 2, "tag": ["x", "y"]})
        assert scope["method"] == "GET"
        assert scope["path"] == "/search"
        assert scope["query_string"] == b"q=a&page=2&tag=x&tag=y"

    def test_headers_lowercased(self) -> None:
        scope = build_scope(headers={"X-Token": "t"})
        assert scope["headers"] == [(b"x-token", b"t")]


class TestMockHttp:
    async def test_json_body(self) -> None:
        request, response = mock_http({"method": "POST", "body": {"a": 1}})
        assert request.content_type == "application/json"
        assert request.headers["content-length"] == str(len(b'{"a": 1}'))
        assert await request.json() == {"a": 1}
        assert response.status == 404

    async def test_text_body(self) -> None:
        request, _ = mock_http({"body": "plain"})
        assert await request.text() == "plain"

    async def test_body_read_once_then_cached(self) -> None:
        request, _ = mock_http({"body": b"raw"})
        assert await request.body() == b"raw"
        assert await request.body() == b"raw"

    def test_client(self) -> None:
        request, _ = mock_http({"client": ("10.0.0.1", 5555)})
        assert request.client == ("10.0.0.1", 5555)

    def test_unknown_key(self) -> None:
        with pytest.raises(TypeError, match="Unknown mock request key"):
            mock_http({"path": "/"})
