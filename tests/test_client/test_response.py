"""Tests for FetchResult and response body extraction."""

from __future__ import annotations

import httpx

from alvys.client.response import FetchResult, build_result, extract_response_data


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_response(status_code: int = 200, **kwargs: object) -> httpx.Response:
    return httpx.Response(
        status_code,
        request=httpx.Request("GET", "https://integrations.alvys.com/api/p/v1/loads"),
        **kwargs,
    )


# ---------------------------------------------------------------------------
# extract_response_data
# ---------------------------------------------------------------------------


class TestExtractResponseData:
    def test_json_body(self) -> None:
        response = _make_response(json={"id": "L-1"})
        assert extract_response_data(response) == {"id": "L-1"}

    def test_non_json_falls_back_to_text(self) -> None:
        response = _make_response(text="plain words")
        assert extract_response_data(response) == "plain words"

    def test_no_content(self) -> None:
        assert extract_response_data(_make_response(204)) is None

    def test_empty_body(self) -> None:
        assert extract_response_data(_make_response(200, content=b"")) is None

    def test_text_mode_keeps_json_as_string(self) -> None:
        response = _make_response(text='{"id":"L-1"}')
        assert extract_response_data(response, "text") == '{"id":"L-1"}'

    def test_bytes_mode(self) -> None:
        response = _make_response(content=b"\x00\x01")
        assert extract_response_data(response, "bytes") == b"\x00\x01"

    def test_stream_mode_returns_response(self) -> None:
        response = _make_response(content=b"data")
        assert extract_response_data(response, "stream") is response


# ---------------------------------------------------------------------------
# build_result
# ---------------------------------------------------------------------------


class TestBuildResult:
    def test_success_fills_data(self) -> None:
        result = build_result(_make_response(json=[1, 2]))
        assert isinstance(result, FetchResult)
        assert result.ok
        assert result.data == [1, 2]
        assert result.error is None

    def test_failure_fills_error(self) -> None:
        result = build_result(_make_response(404, json={"message": "not found"}))
        assert not result.ok
        assert result.data is None
        assert result.error == {"message": "not found"}

    def test_error_body_ignores_parse_mode(self) -> None:
        result = build_result(_make_response(500, json={"message": "boom"}), "bytes")
        assert result.error == {"message": "boom"}
