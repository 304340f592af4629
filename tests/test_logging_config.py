import logging
import sys

import pytest

from eventregistry import EventRegistry, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


def test_configure_logging_installs_single_stdout_handler(restore_root_logger):
    root = restore_root_logger
    configure_logging(logging.DEBUG)
    configure_logging(logging.DEBUG)

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stdout


def test_level_from_env(restore_root_logger, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("EVREG_LOG_LEVEL", "warning")
    configure_logging()
    assert restore_root_logger.level == logging.WARNING


def test_leak_warning_reaches_stdout(restore_root_logger, capsys: pytest.CaptureFixture):
    configure_logging(logging.INFO)
    registry = EventRegistry()
    registry.max_listeners = 1
    registry.on("event", lambda: None)
    registry.on("event", lambda: None)

    out = capsys.readouterr().out
    assert "WARNING" in out
    assert "eventregistry.emitter" in out
    assert "memory leak" in out
