"""Tests for logging setup."""

import json
import logging

from persi_broker.config import LoggingConfig
from persi_broker.logging import BrokerJsonFormatter, DuplicateLogFilter, TextFormatter
from persi_broker.logging_schema import LogEvent


def make_record(msg: str, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord("persi_broker.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestDuplicateLogFilter:
    """Tests for DuplicateLogFilter."""

    def test_suppresses_duplicates(self) -> None:
        f = DuplicateLogFilter(window_seconds=60)

        assert f.filter(make_record("Binding created")) is True
        assert f.filter(make_record("Binding created")) is False

    def test_ids_are_part_of_the_key(self) -> None:
        """Same message for different instances is not a duplicate."""
        f = DuplicateLogFilter(window_seconds=60)

        assert f.filter(make_record("Instance provisioned", instance_id="i1")) is True
        assert f.filter(make_record("Instance provisioned", instance_id="i2")) is True

    def test_errors_always_pass(self) -> None:
        f = DuplicateLogFilter(window_seconds=60)

        assert f.filter(make_record("store down", logging.ERROR)) is True
        assert f.filter(make_record("store down", logging.ERROR)) is True

    def test_evicts_least_recent(self) -> None:
        """Forgotten lines are logged again."""
        f = DuplicateLogFilter(window_seconds=60, max_keys=2)

        f.filter(make_record("a"))
        f.filter(make_record("b"))
        f.filter(make_record("c"))

        assert f.filter(make_record("a")) is True
        assert f.filter(make_record("c")) is False


class TestFormatters:
    """Tests for the text and JSON formatters."""

    def test_json_fields(self) -> None:
        """JSON lines carry service, level and extra fields."""
        formatter = BrokerJsonFormatter(LoggingConfig(service_name="persi-test"))
        record = make_record(
            "Binding created", event=LogEvent.BINDING_CREATED, instance_id="i1"
        )

        data = json.loads(formatter.format(record))

        assert data["message"] == "Binding created"
        assert data["service"] == "persi-test"
        assert data["level"] == "INFO"
        assert data["logger"] == "persi_broker.test"
        assert data["event"] == "binding_created"
        assert data["instance_id"] == "i1"
        assert "timestamp" in data

    def test_text_appends_context(self) -> None:
        line = TextFormatter().format(
            make_record("Binding removed", instance_id="i1", binding_id="b1")
        )

        assert line.endswith("Binding removed [instance_id=i1 binding_id=b1]")

    def test_text_without_context(self) -> None:
        line = TextFormatter().format(make_record("Starting persi broker"))

        assert line.endswith("persi_broker.test: Starting persi broker")
