"""Tests for URL building, body encoding, and header merging."""

from __future__ import annotations

import json

import httpx
from pydantic import BaseModel

from fetches.client.request import build_url, merge_headers, prepare_body


class Payload(BaseModel):
    name: str
    count: int = 0


# ---------------------------------------------------------------------------
# build_url
# ---------------------------------------------------------------------------


class TestBuildUrl:
    def test_joins_base_and_endpoint(self) -> None:
        assert build_url("/users", "https://api.test") == "https://api.test/users"

    def test_collapses_duplicate_slash(self) -> None:
        assert build_url("/users", "https://api.test/v1/") == "https://api.test/v1/users"

    def test_adds_missing_slash(self) -> None:
        assert build_url("users", "https://api.test/v1") == "https://api.test/v1/users"

    def test_absolute_endpoint_ignores_base(self) -> None:
        assert build_url("http://other.test/x", "https://api.test") == "http://other.test/x"

    def test_no_base(self) -> None:
        assert build_url("/relative") == "/relative"

    def test_empty_endpoint_uses_base(self) -> None:
        assert build_url("", "https://api.test") == "https://api.test"

    def test_params_appended(self) -> None:
        url = build_url("/s", "https://api.test", {"q": "a b", "page": 2})
        assert url == "https://api.test/s?q=a+b&page=2"

    def test_list_params_repeat(self) -> None:
        url = build_url("/s", "https://api.test", {"tag": ["x", "y"]})
        assert url == "https://api.test/s?tag=x&tag=y"

    def test_none_params_dropped(self) -> None:
        assert build_url("/s", "https://api.test", {"a": None}) == "https://api.test/s"

    def test_params_extend_existing_query(self) -> None:
        assert build_url("/s?x=1", "https://api.test", {"y": 2}) == "https://api.test/s?x=1&y=2"


# ---------------------------------------------------------------------------
# prepare_body
# ---------------------------------------------------------------------------


class TestPrepareBody:
    def test_none(self) -> None:
        assert prepare_body(None) == (None, None)

    def test_dict_is_json(self) -> None:
        content, content_type = prepare_body({"a": 1})
        assert json.loads(content) == {"a": 1}
        assert content_type == "application/json"

    def test_list_is_json(self) -> None:
        content, content_type = prepare_body([1, 2])
        assert json.loads(content) == [1, 2]
        assert content_type == "application/json"

    def test_model_is_json(self) -> None:
        content, content_type = prepare_body(Payload(name="x"))
        assert json.loads(content) == {"name": "x", "count": 0}
        assert content_type == "application/json"

    def test_string_is_text(self) -> None:
        assert prepare_body("hello") == ("hello", "text/plain")

    def test_bytes_are_octet_stream(self) -> None:
        assert prepare_body(b"\x00\x01") == (b"\x00\x01", "application/octet-stream")

    def test_query_params_are_form_encoded(self) -> None:
        content, content_type = prepare_body(httpx.QueryParams({"a": "1", "b": "two"}))
        assert content == "a=1&b=two"
        assert content_type == "application/x-www-form-urlencoded"

    def test_scalar_is_json_text(self) -> None:
        assert prepare_body(42) == ("42", "text/plain")


# ---------------------------------------------------------------------------
# merge_headers
# ---------------------------------------------------------------------------


class TestMergeHeaders:
    def test_later_layer_wins_case_insensitively(self) -> None:
        merged = merge_headers({"Accept": "a", "X-One": "1"}, {"accept": "b"})
        assert merged == {"X-One": "1", "accept": "b"}

    def test_none_layers_skipped(self) -> None:
        assert merge_headers(None, {"A": "1"}, None) == {"A": "1"}

    def test_empty(self) -> None:
        assert merge_headers() == {}
