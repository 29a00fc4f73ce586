"""
Shared fixtures: keep logs, event log and notes inside the test's tmp_path.
"""

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from notegraph.config import settings


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "NOTES_DIR", tmp_path / "notes")
    monkeypatch.setattr(settings, "ASSETS_DIR", tmp_path / "assets")
    monkeypatch.setattr(settings, "OUTPUT_DIR", tmp_path / "site")
    monkeypatch.setattr(settings, "EVENT_LOG_PATH", tmp_path / "events.jsonl")
    monkeypatch.setattr(settings, "EVENT_LOG_ENABLED", True)
    monkeypatch.setattr(settings, "LOG_DIR", tmp_path / "logs")
    monkeypatch.setattr(settings, "LOG_PATH", tmp_path / "logs" / "notegraph.log")
    monkeypatch.setattr(settings, "ALLOW_DUPLICATE_ALIASES", False)
    monkeypatch.setattr(settings, "HUE_SEED", "test-seed")
    yield settings
    # The CLI installs handlers on the package logger; undo that for caplog
    logger = logging.getLogger("notegraph")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
