from __future__ import annotations

import logging

from fastapi.testclient import TestClient

API = "/api/v1"


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_gate_rejections_carry_request_id(client: TestClient):
    resp = client.get(f"{API}/quotes", headers={"X-Request-ID": "rejected-1"})

    assert resp.status_code == 401
    assert resp.headers.get("X-Request-ID") == "rejected-1"


def test_unhandled_errors_are_logged_with_request_id(app_factory):
    app = app_factory()

    @app.get("/crash")
    async def crash():
        raise RuntimeError("boom")

    records: list[logging.LogRecord] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    handler = _Collect(level=logging.ERROR)
    handlers_logger = logging.getLogger("animequotes.core.exception_handlers")
    handlers_logger.addHandler(handler)
    try:
        resp = TestClient(app, raise_server_exceptions=False).get(
            "/crash", headers={"X-Request-ID": "crash-1"}
        )
    finally:
        handlers_logger.removeHandler(handler)

    assert resp.status_code == 500
    unhandled = [r for r in records if r.getMessage() == "unhandled_exception"]
    assert unhandled
    assert unhandled[0].request_id == "crash-1"
