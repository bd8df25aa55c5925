import logging

from choreo.utils.logging import configure_logging


def test_configure_logging_installs_one_handler(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    previous = root.level
    try:
        configure_logging(logging.DEBUG)
        configure_logging(logging.ERROR)
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)


def test_configure_logging_keeps_existing_setup(monkeypatch):
    root = logging.getLogger()
    existing = logging.NullHandler()
    monkeypatch.setattr(root, "handlers", [existing])
    configure_logging()
    assert root.handlers == [existing]
