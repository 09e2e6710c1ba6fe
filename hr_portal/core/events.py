"""Global wizard signals.

Lightweight Qt signals that let the employment screens, the auto-save timer
and the status bar react to wizard progress without holding references to
each other.
"""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal


class _WizardEvents(QObject):
    """Signals emitted by employment wizard sessions."""

    # record_key
    draft_saved = Signal(str)
    # record_key, error message
    draft_save_failed = Signal(str, str)
    # new step name
    step_changed = Signal(str)
    # committed aggregate as returned by the backend
    employment_committed = Signal(object)


# Single shared instance that other modules can import and connect to.
wizard_events = _WizardEvents()
