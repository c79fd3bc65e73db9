"""Pytest configuration and fixtures."""

import os

# Widgets are built without a visible display in CI
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest  # noqa: E402
from PyQt6.QtCore import QSettings  # noqa: E402
from PyQt6.QtTest import QTest  # noqa: E402
from PyQt6.QtWidgets import QApplication  # noqa: E402


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def temp_settings(tmp_path, monkeypatch):
    """Redirect application settings to a throwaway ini file."""
    settings_path = str(tmp_path / "settings.ini")
    monkeypatch.setattr(
        "core.app_settings._get_settings",
        lambda: QSettings(settings_path, QSettings.Format.IniFormat),
    )
    return settings_path


def wait_until(predicate, timeout_ms=3000, step_ms=10):
    """Process Qt events until predicate() is true or the timeout expires."""
    waited = 0
    while not predicate():
        if waited >= timeout_ms:
            return False
        QTest.qWait(step_ms)
        waited += step_ms
    return True
