import logging
import sys

import pytest

from simple_nominatim.infrastructure.monitoring.logger_setup import setup_logging


@pytest.fixture
def root_logger():
    """Restores the root logger and httpx loggers after each test."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    saved_http = {name: logging.getLogger(name).level for name in ("httpx", "httpcore")}
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)
    for name, level in saved_http.items():
        logging.getLogger(name).setLevel(level)


def test_console_handler_writes_to_stderr(root_logger):
    setup_logging(log_level=logging.INFO)

    assert root_logger.level == logging.INFO
    assert len(root_logger.handlers) == 1
    handler = root_logger.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stderr


def test_file_handler_is_added(root_logger, tmp_path):
    log_file = tmp_path / "nominatim.log"
    setup_logging(log_level=logging.DEBUG, log_file=str(log_file))

    logging.getLogger("simple_nominatim.test").debug("written to file")
    for handler in root_logger.handlers:
        handler.flush()

    assert any(isinstance(h, logging.FileHandler) for h in root_logger.handlers)
    assert "written to file" in log_file.read_text(encoding="utf-8")


def test_unwritable_log_file_falls_back_to_stderr(root_logger, tmp_path):
    setup_logging(log_file=str(tmp_path / "missing" / "dir" / "x.log"))
    assert len(root_logger.handlers) == 1


def test_http_client_loggers_are_quiet_unless_debugging(root_logger):
    setup_logging(log_level=logging.INFO)
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging(log_level=logging.DEBUG)
    assert logging.getLogger("httpx").level == logging.DEBUG
