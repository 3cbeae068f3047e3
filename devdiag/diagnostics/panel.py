"""Render targets for diagnostics output.

A panel shows the entries of exactly one run at a time. Entries are tagged
with the run id that produced them; anything tagged with a superseded run is
dropped.
"""

import sys
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, TextIO

from .models import RemediationAction, Severity
from ..utils import get_logger

logger = get_logger(__name__)


@dataclass
class PanelEntry:
    """One row of the diagnostics panel."""
    severity: Severity
    title: str
    detail: str = ""
    actions: List[RemediationAction] = field(default_factory=list)


class RunGate:
    """Tracks which run currently owns the panel."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[str] = None

    def open(self, run_id: str) -> None:
        """Hand the panel to a new run, superseding the previous one."""
        with self._lock:
            self._current = run_id

    def accepts(self, run_id: Optional[str]) -> bool:
        with self._lock:
            return run_id is not None and run_id == self._current

    @property
    def current(self) -> Optional[str]:
        with self._lock:
            return self._current


class PanelHandle(Protocol):
    """What the orchestrator needs from a render target."""

    def begin_run(self, run_id: str) -> None:
        ...

    def append(self, run_id: str, entry: PanelEntry) -> bool:
        ...

    def show_error(self, title: str, detail: str = "") -> None:
        ...


class BufferedPanel:
    """
    Panel that keeps the current run's entries in memory.

    Subclasses override ``_render`` and ``_clear`` to display them.
    """

    def __init__(self):
        self._gate = RunGate()
        self._lock = threading.RLock()
        self._entries: List[PanelEntry] = []
        self._errors: List[PanelEntry] = []

    @property
    def current_run_id(self) -> Optional[str]:
        return self._gate.current

    @property
    def entries(self) -> List[PanelEntry]:
        with self._lock:
            return list(self._entries)

    @property
    def errors(self) -> List[PanelEntry]:
        with self._lock:
            return list(self._errors)

    def accepts(self, run_id: Optional[str]) -> bool:
        return self._gate.accepts(run_id)

    def begin_run(self, run_id: str) -> None:
        with self._lock:
            self._gate.open(run_id)
            self._entries.clear()
            self._clear(run_id)

    def append(self, run_id: str, entry: PanelEntry) -> bool:
        """Add an entry; returns False when it belongs to a superseded run."""
        with self._lock:
            if not self._gate.accepts(run_id):
                logger.debug(f"Discarding entry from stale run {run_id}: {entry.title}")
                return False
            self._entries.append(entry)
            self._render(entry, run_id)
        return True

    def show_error(self, title: str, detail: str = "") -> None:
        """Top-level error not tied to any run."""
        entry = PanelEntry(Severity.ERROR, title, detail)
        with self._lock:
            self._errors.append(entry)
            self._render(entry, None)

    def _render(self, entry: PanelEntry, run_id: Optional[str]) -> None:
        pass

    def _clear(self, run_id: str) -> None:
        pass


class ConsolePanel(BufferedPanel):
    """Writes panel entries to a text stream (headless mode)."""

    ICONS = {
        Severity.INFO: "✓",
        Severity.WARNING: "!",
        Severity.ERROR: "✗",
    }

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__()
        self._stream = stream or sys.stdout

    def _clear(self, run_id: str) -> None:
        self._stream.write("\n" + "=" * 50 + "\nDev Connection Diagnostics\n" + "=" * 50 + "\n")

    def _render(self, entry: PanelEntry, run_id: Optional[str]) -> None:
        icon = self.ICONS.get(entry.severity, "-")
        lines = [f"[{icon}] {entry.title}"]
        if entry.detail:
            lines.append(f"    {entry.detail}")
        for action in entry.actions:
            if action.payload:
                lines.append(f"    -> {action.label}: {action.payload}")
            else:
                lines.append(f"    -> {action.label}")
        self._stream.write("\n".join(lines) + "\n")
        self._stream.flush()
