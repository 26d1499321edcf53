"""Tests for the logging configuration module."""

import logging
import logging.handlers
from pathlib import Path
from unittest.mock import Mock

import pytest

from fuse_tester.logging_config.setup import EventLogHandler, setup_logging


@pytest.fixture(autouse=True)
def reset_loggers():
    """Reset root logger and third-party loggers after each test."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.WARNING)
    for name in ["pyvisa", "pyvisa_sim", "asyncio"]:
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestSetupLogging:
    """Tests for setup_logging handlers."""

    def test_installs_file_and_console_handlers(self, tmp_path: Path) -> None:
        setup_logging(log_file=tmp_path / "test.log", log_level="INFO")
        handlers = logging.getLogger().handlers

        assert len(handlers) == 2
        assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in handlers)
        assert not any(isinstance(h, EventLogHandler) for h in handlers)

    def test_sets_root_level(self, tmp_path: Path) -> None:
        setup_logging(log_file=tmp_path / "test.log", log_level="warning")
        assert logging.getLogger().level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, tmp_path: Path) -> None:
        setup_logging(log_file=tmp_path / "test.log", log_level="LOUD")
        assert logging.getLogger().level == logging.INFO

    def test_repeated_setup_does_not_duplicate_handlers(self, tmp_path: Path) -> None:
        setup_logging(log_file=tmp_path / "test.log")
        setup_logging(log_file=tmp_path / "test.log")
        assert len(logging.getLogger().handlers) == 2

    def test_writes_to_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        setup_logging(log_file=log_file, log_level="INFO")

        logging.getLogger("fuse_tester.test").info("Sequence finished: %s", "COMPLETED")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "Sequence finished: COMPLETED" in log_file.read_text(encoding="utf-8")

    def test_given_event_handler_receives_records(self, tmp_path: Path) -> None:
        """An event handler passed in is installed and forwards records."""
        callback = Mock()
        event_handler = EventLogHandler(callback)
        setup_logging(log_file=tmp_path / "test.log", event_handler=event_handler)

        assert event_handler in logging.getLogger().handlers
        assert len(logging.getLogger().handlers) == 3

        logging.getLogger("fuse_tester.test").info("Case %d passed", 3)

        callback.assert_called_once()
        assert callback.call_args.args[0].getMessage() == "Case 3 passed"


class TestThirdPartyLoggerSuppression:
    """Tests for third-party logger suppression in debug mode."""

    @pytest.mark.parametrize("name", ["pyvisa", "pyvisa_sim", "asyncio"])
    def test_debug_mode_suppresses(self, tmp_path: Path, name: str) -> None:
        setup_logging(log_file=tmp_path / "test.log", log_level="DEBUG")
        assert logging.getLogger(name).level == logging.WARNING

    def test_info_mode_does_not_suppress_third_party(self, tmp_path: Path) -> None:
        """Third-party loggers are not explicitly overridden in INFO mode."""
        setup_logging(log_file=tmp_path / "test.log", log_level="INFO")
        # NOTSET means the logger inherits from root (which is INFO)
        assert logging.getLogger("pyvisa").level == logging.NOTSET


class TestEventLogHandler:
    """Tests for EventLogHandler."""

    def _record(self) -> logging.LogRecord:
        return logging.LogRecord("fuse_tester", logging.INFO, __file__, 1, "hello", None, None)

    def test_forwards_records(self) -> None:
        callback = Mock()
        handler = EventLogHandler(callback)
        record = self._record()

        handler.emit(record)

        callback.assert_called_once_with(record)

    def test_drops_records_without_callback(self) -> None:
        EventLogHandler().emit(self._record())

    def test_set_callback(self) -> None:
        handler = EventLogHandler()
        callback = Mock()
        handler.set_callback(callback)
        handler.emit(self._record())
        callback.assert_called_once()

    def test_callback_error_is_handled(self, monkeypatch) -> None:
        """A failing consumer is reported through handleError, not raised."""
        handler = EventLogHandler(Mock(side_effect=RuntimeError("ui gone")))
        handle_error = Mock()
        monkeypatch.setattr(handler, "handleError", handle_error)

        handler.emit(self._record())

        handle_error.assert_called_once()
