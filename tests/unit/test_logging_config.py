"""Unit tests for log formatting."""

import json
import logging

from certgate.logging_config import ConsoleFormatter, JsonFormatter, RequestIdFilter, request_id_var


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("certgate.test", logging.INFO, __file__, 1, "Progression %s", ("approved",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    def test_extra_fields_and_request_id(self):
        token = request_id_var.set("req-9")
        try:
            record = make_record(coach_id="coach-1", level=2, decision="approved")
            RequestIdFilter().filter(record)
        finally:
            request_id_var.reset(token)

        payload = json.loads(JsonFormatter().format(record))
        assert payload["msg"] == "Progression approved"
        assert payload["severity"] == "INFO"
        assert payload["request_id"] == "req-9"
        assert payload["coach_id"] == "coach-1"
        assert payload["level"] == 2

    def test_unserializable_extra_is_stringified(self):
        record = make_record(when=object())
        RequestIdFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
        assert isinstance(payload["when"], str)
        assert "request_id" not in payload


class TestConsoleFormatter:
    def test_decision_fields_first(self):
        record = make_record(elapsed_ms=3.5, decision="rejected_skip", coach_id="coach-1")
        line = ConsoleFormatter().format(record)
        assert "[-] Progression approved" in line
        assert line.endswith("| coach_id=coach-1 decision=rejected_skip elapsed_ms=3.5")
