import logging
import os
import sys

import pytest

# Ensure src/ is importable when tests run from repo root
sys.path.insert(0, os.path.abspath("src"))

from shelfscan.logging import ROOT_NAME, configure_root, get_logger


@pytest.fixture
def log_file(tmp_path, monkeypatch):
    path = tmp_path / "shelfscan.log"
    monkeypatch.setenv("LOG_FILE", str(path))
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    configure_root(force=True)
    yield path
    monkeypatch.delenv("LOG_FILE")
    monkeypatch.delenv("LOG_LEVEL")
    configure_root(force=True)


def test_log_file_opened_once_for_many_modules(log_file):
    loggers = [get_logger(name) for name in ("cli-main", "ocr-client", "extraction-engine")]

    root = logging.getLogger(ROOT_NAME)
    file_handlers = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    for log in loggers:
        assert log.name.startswith(ROOT_NAME + ".")
        assert log.handlers == []
        assert log.propagate

    loggers[0].info("first")
    loggers[1].debug("second")
    file_handlers[0].flush()
    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert "[shelfscan.cli-main] INFO: first" in lines[0]
    assert "[shelfscan.ocr-client] DEBUG: second" in lines[1]


def test_configure_root_is_idempotent(log_file):
    root = configure_root()
    assert configure_root() is root
    assert len([h for h in root.handlers if isinstance(h, logging.FileHandler)]) == 1


def test_level_from_environment(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    try:
        assert configure_root(force=True).level == logging.WARNING
    finally:
        monkeypatch.delenv("LOG_LEVEL")
        configure_root(force=True)
