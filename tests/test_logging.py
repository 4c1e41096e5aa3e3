import json
import logging

import pytest

from pricectl.utils.logging import ConsoleFormatter, JSONFormatter, LogContext, setup_logging

logger = logging.getLogger("pricectl.tests")


def _record(message="Created %s", args=("price_1",), level=logging.INFO):
    return logger.makeRecord(logger.name, level, __file__, 1, message, args, None)


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestFormatters:
    def test_json_carries_resource_context(self):
        with LogContext(logger, stack_id="Billing", resource_id="Monthly", operation="deploy"):
            record = _record()

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "Created price_1"
        assert data["level"] == "INFO"
        assert data["stack_id"] == "Billing"
        assert data["resource_id"] == "Monthly"
        assert data["operation"] == "deploy"
        assert "resource_type" not in data

    def test_console_prefixes_resource_path(self):
        with LogContext(logger, stack_id="Billing", resource_id="Monthly"):
            record = _record()

        line = ConsoleFormatter(use_color=False).format(record)

        assert line.endswith("INFO     [Billing/Monthly] Created price_1")
        assert "\033[" not in line

    def test_console_without_context_or_stack(self):
        plain = ConsoleFormatter(use_color=False).format(_record("Loading app"))
        with LogContext(logger, resource_id="Pro"):
            bare = ConsoleFormatter(use_color=False).format(_record("Checking"))

        assert plain.endswith("INFO     Loading app")
        assert bare.endswith("[Pro] Checking")

    def test_console_colors_level(self):
        line = ConsoleFormatter(use_color=True).format(_record(level=logging.ERROR))

        assert "\033[31mERROR   \033[0m" in line


class TestLogContext:
    def test_factory_restored_after_nested_blocks(self):
        original = logging.getLogRecordFactory()

        with LogContext(logger, stack_id="Billing"):
            with LogContext(logger, resource_id="Pro"):
                inner = _record()
            outer = _record()

        assert logging.getLogRecordFactory() is original
        assert (inner.stack_id, inner.resource_id) == ("Billing", "Pro")
        assert outer.stack_id == "Billing"
        assert not hasattr(outer, "resource_id")
        assert not hasattr(_record(), "stack_id")


class TestSetupLogging:
    def test_console_only_without_log_dir(self, root_logger):
        setup_logging("warning", log_dir=None)

        assert len(root_logger.handlers) == 1
        assert root_logger.level == logging.WARNING
        assert logging.getLogger("stripe").level == logging.WARNING

    def test_json_lines_file(self, root_logger, tmp_path):
        setup_logging("error", log_dir=str(tmp_path / "logs"))

        with LogContext(logger, resource_id="Pro"):
            logger.debug("looked up %s", "prod_1")
        for handler in root_logger.handlers:
            handler.flush()

        (log_file,) = (tmp_path / "logs").glob("pricectl-*.jsonl")
        lines = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert lines[-1]["message"] == "looked up prod_1"
        assert lines[-1]["resource_id"] == "Pro"
        assert lines[-1]["level"] == "DEBUG"
