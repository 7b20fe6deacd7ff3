from __future__ import annotations

import json
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest

from stats_sdk.collector import SnapshotSource
from stats_sdk.config import StatisticsConfig
from stats_sdk.models import Snapshot


class FixedSource(SnapshotSource):
    def __init__(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot
        self.calls = 0

    def snapshot(self) -> Snapshot:
        self.calls += 1
        return self._snapshot


class _FakeTelemetryHandler(BaseHTTPRequestHandler):
    status = 204
    response_body = b""
    requests: list = []

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        return

    def do_GET(self) -> None:  # noqa: N802
        if not self.path.endswith("/ping"):
            self.send_error(404)
            return
        body = b"pong"
        self.send_response(200)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_POST(self) -> None:  # noqa: N802
        n = int(self.headers.get("Content-Length") or "0")
        raw = self.rfile.read(n) if n > 0 else b""
        type(self).requests.append(
            {
                "path": self.path,
                "headers": dict(self.headers),
                "body": json.loads(raw.decode("utf-8")) if raw else None,
            }
        )
        body = type(self).response_body
        self.send_response(type(self).status)
        if type(self).status != 204:
            self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if type(self).status != 204:
            self.wfile.write(body)


@pytest.fixture()
def telemetry_server():
    handler = type("Handler", (_FakeTelemetryHandler,), {"requests": [], "status": 204, "response_body": b""})
    server = HTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield server, handler
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture()
def server_config(telemetry_server) -> StatisticsConfig:
    server, _ = telemetry_server
    host, port = server.server_address
    return StatisticsConfig(
        endpoint=f"http://{host}:{port}/api/v1/",
        bearer_token="secret-token",
        vanity_url="abc123",
    )


@pytest.fixture()
def config() -> StatisticsConfig:
    return StatisticsConfig(
        endpoint="https://example.com/api/v1/",
        bearer_token="secret-token",
        vanity_url="abc123",
    )


@pytest.fixture()
def make_source():
    def factory(players: int = 5, slots: int = 10, version: str = "1.0") -> FixedSource:
        return FixedSource(Snapshot(players=players, slots=slots, version=version))

    return factory


@pytest.fixture()
def source(make_source) -> FixedSource:
    return make_source()
