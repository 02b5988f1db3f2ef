"""Pytest configuration.

The state objects are PySide6 QObjects. Signals are delivered synchronously
(direct connections) so no event loop is needed, but a single
`QCoreApplication` is created for the session so Qt has an application
instance before any QObject is built, and shut down cleanly at the end.
"""

from __future__ import annotations

from typing import Any

_APP: Any | None = None


def pytest_configure(config) -> None:  # noqa: ARG001
    """Ensure a QCoreApplication exists before collecting/running tests."""

    # Import lazily so non-Qt environments can still import this conftest.
    try:
        from PySide6.QtCore import QCoreApplication
    except ImportError:
        return

    global _APP

    app = QCoreApplication.instance()
    if app is None:
        # Keep a strong ref so it isn't GC'd mid-session.
        _APP = QCoreApplication([])
    else:
        _APP = app


def pytest_sessionfinish(session, exitstatus) -> None:  # noqa: ARG001
    """Attempt a clean Qt shutdown to avoid lingering threads at interpreter exit."""

    try:
        from PySide6.QtCore import QCoreApplication
    except ImportError:
        return

    app = QCoreApplication.instance()
    if app is None:
        return

    app.quit()
    app.processEvents()
