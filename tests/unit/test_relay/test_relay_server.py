"""End-to-end tests for the WebSocket relay application."""

from __future__ import annotations

from typing import Any, Iterator
from unittest.mock import AsyncMock

import pytest
from fastapi import WebSocketDisconnect, status
from fastapi.testclient import TestClient

from conftest import FakeClock
from statusrelay.config.settings import Settings
from statusrelay.relay.cache import ResponseCache
from statusrelay.relay.server import MAX_CLOSE_REASON_BYTES, create_app, truncate_close_reason
from statusrelay.upstream.base import (
    InvalidDocumentError,
    UpstreamStatusError,
    UpstreamTransportError,
)

PATH = "/v1/ss14status"
TARGET = "http://status.example.org/status"


@pytest.fixture
def client(mock_source: AsyncMock, cache: ResponseCache) -> Iterator[TestClient]:
    """A test client with a mock status source and fake-clock cache."""
    app = create_app(source=mock_source, cache=cache)
    with TestClient(app) as test_client:
        yield test_client


def expect_close(ws: Any) -> WebSocketDisconnect:
    """Receive until the server closes the socket and return the close event."""
    with pytest.raises(WebSocketDisconnect) as exc_info:
        ws.receive_text()
    return exc_info.value


class TestLifespan:
    def test_source_opened_and_closed(self, mock_source: AsyncMock, cache: ResponseCache) -> None:
        app = create_app(source=mock_source, cache=cache)
        with TestClient(app):
            mock_source.open.assert_awaited_once()
        mock_source.close.assert_awaited_once()


class TestHttpRoutes:
    def test_health(self, client: TestClient) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok", "cached_targets": 0}

    def test_plain_request_on_relay_path(self, client: TestClient) -> None:
        resp = client.get(PATH)
        assert resp.status_code == 400

    def test_custom_path(self, mock_source: AsyncMock, cache: ResponseCache) -> None:
        settings = Settings(relay={"path": "/status"})
        with TestClient(create_app(settings, source=mock_source, cache=cache)) as client:
            with client.websocket_connect("/status") as ws:
                ws.send_text("VERSION")
                assert ws.receive_text() == "REPLY:VERSION\x070.0.0"


class TestCommandFlow:
    def test_version(self, client: TestClient) -> None:
        with client.websocket_connect(PATH) as ws:
            ws.send_text("VERSION")
            assert ws.receive_text() == "REPLY:VERSION\x070.0.0"

    def test_full_exchange(self, client: TestClient, expected_payload: str) -> None:
        with client.websocket_connect(PATH) as ws:
            ws.send_text(f"SETTARGET\x07{TARGET}")
            assert ws.receive_text() == "REPLY:SETTARGET\x07"
            ws.send_text("VERSION")
            assert ws.receive_text() == "REPLY:VERSION\x070.0.0"
            ws.send_text("READYFORDATA")
            assert ws.receive_text() == f"REPLY:READYFORDATA\x07{expected_payload}"

    def test_unknown_command_keeps_connection(self, client: TestClient) -> None:
        with client.websocket_connect(PATH) as ws:
            ws.send_text("HELLO\x07there")
            ws.send_text("VERSION")
            assert ws.receive_text() == "REPLY:VERSION\x070.0.0"

    def test_cache_shared_across_connections(
        self, client: TestClient, mock_source: AsyncMock, clock: FakeClock
    ) -> None:
        replies = []
        for _ in range(2):
            with client.websocket_connect(PATH) as ws:
                ws.send_text(f"SETTARGET\x07{TARGET}")
                ws.receive_text()
                ws.send_text("READYFORDATA")
                replies.append(ws.receive_text())
            clock.advance(0.1)

        assert replies[0] == replies[1]
        mock_source.fetch.assert_awaited_once_with(TARGET)
        assert client.get("/health").json()["cached_targets"] == 1

    def test_refetch_after_window(
        self, client: TestClient, mock_source: AsyncMock, clock: FakeClock
    ) -> None:
        with client.websocket_connect(PATH) as ws:
            ws.send_text(f"SETTARGET\x07{TARGET}")
            ws.receive_text()
            ws.send_text("READYFORDATA")
            ws.receive_text()
            clock.advance(0.5)
            ws.send_text("READYFORDATA")
            ws.receive_text()
        assert mock_source.fetch.await_count == 2


class TestConnectionTermination:
    def test_ready_without_target(self, client: TestClient, mock_source: AsyncMock) -> None:
        with client.websocket_connect(PATH) as ws:
            ws.send_text("READYFORDATA")
            closed = expect_close(ws)
        assert closed.code == status.WS_1002_PROTOCOL_ERROR
        assert closed.reason == "Command READYFORDATA failed: No target set."
        mock_source.fetch.assert_not_called()

    def test_set_target_without_argument(self, client: TestClient) -> None:
        with client.websocket_connect(PATH) as ws:
            ws.send_text("SETTARGET")
            closed = expect_close(ws)
        assert closed.reason == "Command SETTARGET failed: Expected an argument."

    def test_set_target_bad_uri(self, client: TestClient) -> None:
        with client.websocket_connect(PATH) as ws:
            ws.send_text("SETTARGET\x07file:///etc/passwd")
            closed = expect_close(ws)
        assert closed.code == status.WS_1002_PROTOCOL_ERROR
        assert "Bad URI." in closed.reason

    def test_binary_frame(self, client: TestClient) -> None:
        with client.websocket_connect(PATH) as ws:
            ws.send_bytes(b"VERSION")
            closed = expect_close(ws)
        assert closed.code == status.WS_1003_UNSUPPORTED_DATA
        assert closed.reason == "Cannot read binary or non-standard forms."

    def test_oversize_frame(self, client: TestClient) -> None:
        with client.websocket_connect(PATH) as ws:
            ws.send_text("VERSION" + "\x07" * 593)
            closed = expect_close(ws)
        assert closed.code == status.WS_1009_MESSAGE_TOO_BIG
        assert closed.reason == "Max message size is 512."

    @pytest.mark.parametrize(
        "error, reason",
        [
            (UpstreamStatusError(503), "Couldn't read status."),
            (InvalidDocumentError("not json"), "Didn't get valid JSON."),
            (UpstreamTransportError("timed out"), "Couldn't read: timed out"),
        ],
    )
    def test_upstream_failure(
        self, client: TestClient, mock_source: AsyncMock, error: Exception, reason: str
    ) -> None:
        mock_source.fetch.side_effect = error
        with client.websocket_connect(PATH) as ws:
            ws.send_text(f"SETTARGET\x07{TARGET}")
            ws.receive_text()
            ws.send_text("READYFORDATA")
            closed = expect_close(ws)
        assert closed.code == status.WS_1002_PROTOCOL_ERROR
        assert closed.reason == f"Command READYFORDATA failed: {reason}"

    def test_long_reason_truncated(self, client: TestClient, mock_source: AsyncMock) -> None:
        mock_source.fetch.side_effect = UpstreamTransportError("x" * 300)
        with client.websocket_connect(PATH) as ws:
            ws.send_text(f"SETTARGET\x07{TARGET}")
            ws.receive_text()
            ws.send_text("READYFORDATA")
            closed = expect_close(ws)
        assert closed.reason.startswith("Command READYFORDATA failed: Couldn't read: xxx")
        assert len(closed.reason.encode("utf-8")) == MAX_CLOSE_REASON_BYTES


class TestTruncateCloseReason:
    def test_short_reason_unchanged(self) -> None:
        assert truncate_close_reason("Bad URI.") == "Bad URI."

    def test_does_not_split_multibyte_characters(self) -> None:
        reason = "é" * 100
        truncated = truncate_close_reason(reason)
        assert len(truncated.encode("utf-8")) <= MAX_CLOSE_REASON_BYTES
        assert set(truncated) == {"é"}
