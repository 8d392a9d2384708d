"""
Unit tests for the logger factory and the Loki handler.
"""

import logging
import time
from logging.handlers import QueueHandler, RotatingFileHandler
from unittest.mock import MagicMock

import httpx

import loggers
from loggers import LokiHandler, get_logger, hex_dump, loki_payload


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestLokiHandler:
    """Tests for pushing records to Loki."""

    def test_payload(self):
        body = loki_payload("INFO", "hello", "bridge")

        stream = body["streams"][0]
        assert stream["stream"] == {"app": "bridge", "level": "INFO"}
        assert stream["values"][0][1] == "hello"

    def test_emit_posts_record(self, monkeypatch):
        post = MagicMock()
        monkeypatch.setattr(loggers.httpx, "post", post)
        handler = LokiHandler("http://loki:3100/loki/api/v1/push", "bridge")

        handler.emit(logging.makeLogRecord({"msg": "receipt closed", "levelname": "info"}))

        url = post.call_args.args[0]
        body = post.call_args.kwargs["json"]
        assert url == "http://loki:3100/loki/api/v1/push"
        assert body["streams"][0]["stream"]["level"] == "INFO"
        assert body["streams"][0]["values"][0][1] == "receipt closed"

    def test_push_failure_is_not_raised(self, monkeypatch):
        monkeypatch.setattr(loggers.httpx, "post", MagicMock(side_effect=httpx.ConnectError("refused")))
        handler = LokiHandler("http://loki:3100/loki/api/v1/push", "bridge")

        handler.emit(logging.makeLogRecord({"msg": "x", "levelname": "ERROR"}))


class TestGetLogger:
    """Tests for handler wiring."""

    def test_without_loki(self, tmp_path):
        log = get_logger("TEST_PLAIN", log_file=str(tmp_path / "logs" / "bridge.log"), loki_url="")

        kinds = [type(h) for h in log.handlers]
        assert RotatingFileHandler in kinds
        assert QueueHandler not in kinds
        assert (tmp_path / "logs").is_dir()

    def test_loki_push_runs_off_the_caller(self, tmp_path, monkeypatch):
        post = MagicMock()
        monkeypatch.setattr(loggers.httpx, "post", post)
        log = get_logger(
            "TEST_LOKI",
            log_file=str(tmp_path / "bridge.log"),
            loki_url="http://loki:3100/loki/api/v1/push",
        )

        assert any(isinstance(h, QueueHandler) for h in log.handlers)
        log.info("job 7 done")

        assert wait_for(lambda: post.called)
        assert "job 7 done" in post.call_args.kwargs["json"]["streams"][0]["values"][0][1]

    def test_handlers_attached_once(self, tmp_path):
        first = get_logger("TEST_ONCE", log_file=str(tmp_path / "bridge.log"), loki_url="")
        count = len(first.handlers)

        second = get_logger("TEST_ONCE", log_file=str(tmp_path / "bridge.log"), loki_url="")

        assert second is first
        assert len(second.handlers) == count


def test_hex_dump():
    assert hex_dump(bytes([0x02, 0x00, 0x0A])) == "02 00 0A"
