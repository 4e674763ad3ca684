import logging

import pytest

from pubsub_bridge import BridgeSettings, configure_logging


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


def test_configure_logging_installs_single_handler(restore_root):
    configure_logging(logging.DEBUG)
    configure_logging(logging.DEBUG)
    assert len(restore_root.handlers) == 1
    assert restore_root.level == logging.DEBUG


def test_level_from_env(restore_root, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("PUBSUB_LOG_LEVEL", "warning")
    configure_logging()
    assert restore_root.level == logging.WARNING


def test_unknown_level_name_uses_default(restore_root, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("PUBSUB_LOG_LEVEL", raising=False)
    configure_logging("chatty")
    assert restore_root.level == logging.INFO


def test_level_from_settings(restore_root):
    applied = configure_logging(settings=BridgeSettings(log_level="ERROR"))
    assert applied == logging.ERROR
    assert restore_root.level == logging.ERROR


def test_explicit_level_beats_settings(restore_root):
    configure_logging(logging.DEBUG, settings=BridgeSettings(log_level="ERROR"))
    assert restore_root.level == logging.DEBUG
