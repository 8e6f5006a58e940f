import logging

from collective_sync.config import load_settings
from collective_sync.logging_config import setup_logging


def test_load_settings(monkeypatch):
    monkeypatch.setenv("FIREBASE_PROJECT_ID", " demo-project ")
    monkeypatch.setenv("FIREBASE_API_KEY", "key123")
    monkeypatch.delenv("FIRESTORE_DATABASE", raising=False)
    monkeypatch.delenv("COLLECTIVE_DATA_PATH", raising=False)
    s = load_settings()
    assert s.project_id == "demo-project"
    assert s.api_key == "key123"
    assert s.database == "(default)"
    assert s.data_path == "collective_data.json"
    assert s.local_mode is False

    # empty project id falls back to local mode
    monkeypatch.setenv("FIREBASE_PROJECT_ID", "")
    s2 = load_settings()
    assert s2.project_id == ""
    assert s2.local_mode is True


def test_setup_logging_idempotent():
    logger1 = setup_logging(logging.DEBUG)
    logger2 = setup_logging(logging.DEBUG)
    assert logger1 is logger2
    assert logger1.handlers  # at least one handler installed
    assert logging.getLogger("httpx").level == logging.WARNING
