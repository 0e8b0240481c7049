"""Tests for sensitive data filtering and request correlation in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from animequotes.core.logging import (
    REDACTED,
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    redact,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired like production: filters on the handler, JSON output."""

    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def _last_line(stream: StringIO) -> dict:
    return json.loads(stream.getvalue().strip().splitlines()[-1])


def test_sensitive_filter_redacts_api_keys(capture):
    logger, stream = capture

    logger.info(
        "gate.rejected",
        extra={
            "api_key": "ani-secret-123",
            "x-api-key": "ani-another-secret",
            "stage": "lookup_credential",
        },
    )

    output = stream.getvalue()
    assert "ani-secret-123" not in output
    assert "ani-another-secret" not in output
    assert _last_line(stream)["stage"] == "lookup_credential"


def test_sensitive_filter_redacts_store_urls(capture):
    logger, stream = capture

    logger.info(
        "stores.configured",
        extra={
            "redis_url": "redis://:hunter2@cache:6379/0",
            "database_url": "postgresql+asyncpg://app:hunter2@db/quotes",
            "counter_store": "redis",
        },
    )

    payload = _last_line(stream)
    assert "hunter2" not in stream.getvalue()
    assert payload["redis_url"] == REDACTED
    assert payload["database_url"] == REDACTED
    assert payload["counter_store"] == "redis"


def test_sensitive_filter_allows_safe_fields(capture):
    logger, stream = capture

    logger.info(
        "rate_limit.exceeded",
        extra={
            "key_type": "ip",
            "key_hash": "0123456789abcdef",
            "limit": 100,
            "retry_after_s": 12,
        },
    )

    payload = _last_line(stream)
    assert payload["message"] == "rate_limit.exceeded"
    assert payload["key_hash"] == "0123456789abcdef"
    assert payload["limit"] == 100
    assert REDACTED not in stream.getvalue()


def test_sensitive_filter_redacts_nested_dicts(capture):
    logger, stream = capture

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "X-API-Key": "secret-key",
                "user-agent": "pytest",
            },
            "attempts": [{"token": "t-1"}, {"count": 5}],
        },
    )

    payload = _last_line(stream)
    assert "secret-key" not in stream.getvalue()
    assert payload["headers"] == {"X-API-Key": REDACTED, "user-agent": "pytest"}
    assert payload["attempts"] == [{"token": REDACTED}, {"count": 5}]


def test_request_id_is_attached_from_context(capture):
    logger, stream = capture

    set_request_id("req-123")
    logger.info("quotes.served")

    assert _last_line(stream)["request_id"] == "req-123"


def test_redact_leaves_input_untouched():
    original = {"api_key": "ani-x", "nested": {"password": "p"}}

    cleaned = redact(original)

    assert cleaned == {"api_key": REDACTED, "nested": {"password": REDACTED}}
    assert original["api_key"] == "ani-x"
