"""Tests for structured logging and request_id propagation."""

import json
import logging

from doremi.core.logging import JsonFormatter, PrettyFormatter, configure_logging, get_request_id, latency_bucket_ms, log_event


def test_request_id_in_response_and_logs(client, caplog):
    with caplog.at_level(logging.INFO, logger="doremi"):
        response = client.get("/healthz")
    rid = response.headers.get("x-request-id")
    assert rid
    records = [r for r in caplog.records if getattr(r, "request_id", None) == rid]
    assert records, "Expected logs to contain request_id from response"
    assert len({r.request_id for r in records}) == 1


def test_request_id_not_leaked_after_request(client):
    client.get("/healthz")
    assert get_request_id() is None


def test_publish_log_carries_content_and_instructor(client, caplog):
    body = {"id": "v1", "title": "Intro", "description": "First", "instructor_id": "i1"}
    with caplog.at_level(logging.INFO, logger="doremi"):
        response = client.post("/v1/content/publish", json=body)
    rid = response.headers["x-request-id"]
    published = [r for r in caplog.records if r.getMessage() == "content.published"]
    assert len(published) == 1
    assert published[0].content_id == "v1"
    assert published[0].instructor_id == "i1"
    assert published[0].request_id == rid


def test_log_event_truncates_extra(caplog):
    with caplog.at_level(logging.INFO, logger="doremi"):
        log_event("info", "big.payload", extra={"blob": "x" * 2000})
    record = [r for r in caplog.records if r.getMessage() == "big.payload"][0]
    assert record.blob.endswith("...<truncated>")
    assert len(record.blob) < 600


def test_json_formatter_includes_domain_fields():
    record = logging.LogRecord("doremi", logging.WARNING, __file__, 1, "store.corrupt", None, None)
    record.request_id = "r1"
    record.bucket = "doremi_video_library"
    record.error_code = "store_corrupted"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "WARNING"
    assert payload["request_id"] == "r1"
    assert payload["bucket"] == "doremi_video_library"
    assert payload["error_code"] == "store_corrupted"
    assert "content_id" not in payload


def test_latency_buckets():
    assert latency_bucket_ms(None) == "unknown"
    assert latency_bucket_ms(5) == "<10ms"
    assert latency_bucket_ms(250) == "100-500ms"
    assert latency_bucket_ms(5000) == ">=1000ms"


def test_pretty_formatter_shows_domain_context():
    record = logging.LogRecord("doremi", logging.INFO, __file__, 1, "content.published", None, None)
    record.request_id = "r2"
    record.content_id = "v1"
    record.instructor_id = "i1"
    line = PrettyFormatter().format(record)
    assert "[doremi] [rid=r2] content.published" in line
    assert "content_id=v1 instructor_id=i1" in line


def test_configure_logging_honours_level():
    logger = logging.getLogger("doremi")
    previous_level, previous_handlers = logger.level, logger.handlers
    try:
        configure_logging("production", "warning")
        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JsonFormatter)
    finally:
        logger.setLevel(previous_level)
        logger.handlers = previous_handlers
