"""Tests for logging setup and formatters."""

import json
import logging

import pytest

from fixtura.core.dsl import define_factory
from fixtura.core.logging import ConsoleFormatter, JSONLFormatter, setup_logging


def _record(level=logging.INFO, msg="Compiled plan for %s", args=("post",), **extra):
    record = logging.LogRecord("fixtura.core.resolver", level, __file__, 10, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONLFormatter:
    def test_one_json_object_per_record(self):
        entry = json.loads(JSONLFormatter().format(_record()))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "fixtura.core.resolver"
        assert entry["message"] == "Compiled plan for post"
        assert "source" not in entry

    def test_context_and_source(self):
        entry = json.loads(
            JSONLFormatter().format(_record(logging.WARNING, context={"factory": "post"}))
        )

        assert entry["context"] == {"factory": "post"}
        assert entry["source"]["line"] == 10


class TestConsoleFormatter:
    def test_component_and_message(self):
        line = ConsoleFormatter().format(_record())

        assert "[resolver]" in line
        assert line.endswith("Compiled plan for post")

    def test_level_shown_for_non_info(self):
        assert "DEBUG" in ConsoleFormatter().format(_record(logging.DEBUG))


class TestSetupLogging:
    def test_level_by_name(self):
        logger = setup_logging("debug")

        assert logger.name == "fixtura"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            setup_logging("LOUD")

    def test_log_file_receives_jsonl(self, tmp_path, registry):
        log_file = tmp_path / "logs" / "fixtura.log"
        setup_logging(logging.DEBUG, log_file=log_file)

        define_factory("post", registry=registry)
        registry.resolver.compile("post")

        entries = [json.loads(line) for line in log_file.read_text().splitlines()]
        messages = [entry["message"] for entry in entries]
        assert any(message.startswith("Compiled plan for post") for message in messages)


class TestLibraryLogging:
    def test_compilation_logs_at_debug(self, registry, caplog):
        define_factory("post", registry=registry)

        with caplog.at_level(logging.DEBUG, logger="fixtura"):
            registry.resolver.compile("post")
            registry.resolver.compile("post")

        messages = [record.getMessage() for record in caplog.records]
        assert any("Compiled plan for post" in message for message in messages)
        assert any("Plan cache hit for post" in message for message in messages)

    def test_reset_logs_at_info(self, registry, caplog):
        with caplog.at_level(logging.INFO, logger="fixtura"):
            registry.reset()

        assert "Registry reset" in caplog.text
