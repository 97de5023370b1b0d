"""Unit tests for logging setup."""

import io
import json
import logging

from reposcore.utils.logging import (
    HumanFormatter,
    JSONFormatter,
    LogMode,
    VerboseFormatter,
    configure_from_cli,
    get_logger,
    setup_logging,
)


def make_record(name: str = "reposcore.analyzers.coverage", level: int = logging.WARNING) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "coverage failed: %s", ("bad xml",), None)


class TestFormatters:
    """Tests for the three output formatters."""

    def test_human(self) -> None:
        output = HumanFormatter(use_colors=False).format(make_record())

        assert output == "[WARNING] coverage failed: bad xml"

    def test_human_colored(self) -> None:
        output = HumanFormatter(use_colors=True).format(make_record())

        assert output.startswith("\033[33m[WARNING]")

    def test_verbose_strips_namespace(self) -> None:
        """Test the reposcore prefix is dropped from logger names."""
        output = VerboseFormatter(use_colors=False).format(make_record())

        assert output.startswith("[WARNING][")
        assert output.endswith("] analyzers.coverage: coverage failed: bad xml")

    def test_json_includes_extra_data(self) -> None:
        record = make_record()
        record.extra_data = {"stage": "coverage"}

        entry = json.loads(JSONFormatter().format(record))

        assert entry["level"] == "WARNING"
        assert entry["logger"] == "reposcore.analyzers.coverage"
        assert entry["msg"] == "coverage failed: bad xml"
        assert entry["stage"] == "coverage"


class TestSetup:
    """Tests for logger configuration."""

    def test_get_logger_namespaces(self) -> None:
        assert get_logger("cli").name == "reposcore.cli"
        assert get_logger("reposcore.pipeline").name == "reposcore.pipeline"
        assert get_logger().name == "reposcore"

    def test_setup_logging_json(self) -> None:
        """Test JSON mode writes one parseable line per record."""
        stream = io.StringIO()
        setup_logging(mode=LogMode.JSON, level=logging.INFO, stream=stream)

        get_logger("pipeline").info("stage done")
        get_logger("pipeline").debug("hidden")

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])["msg"] == "stage done"

    def test_configure_quiet(self) -> None:
        configure_from_cli(quiet=True)

        assert logging.getLogger("reposcore").level == logging.WARNING

    def test_configure_verbose(self) -> None:
        configure_from_cli(verbose=True)

        logger = logging.getLogger("reposcore")
        assert logger.level == logging.DEBUG
        assert isinstance(logger.handlers[0].formatter, VerboseFormatter)
