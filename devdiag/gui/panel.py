"""On-screen diagnostics panel."""

import customtkinter as ctk
from typing import Callable, Optional

from ..diagnostics.models import RemediationAction
from ..diagnostics.panel import BufferedPanel, PanelEntry
from ..utils import get_logger
from .components import EntryCard

logger = get_logger(__name__)

ActionHandler = Callable[[RemediationAction, str], None]


class DiagnosticsPanel(BufferedPanel):
    """
    Panel handle backed by a scrollable customtkinter frame.

    ``append`` may be called from worker threads; drawing is marshalled onto
    the Tk main loop and re-checks the run gate there, so entries from a
    superseded run never reach the screen.
    """

    def __init__(self, master, on_action: Optional[ActionHandler] = None):
        super().__init__()
        self._on_action = on_action

        self.frame = ctk.CTkScrollableFrame(
            master,
            fg_color="#0a0a0f",
            corner_radius=0
        )
        self.frame.grid_columnconfigure(0, weight=1)

    def _clear(self, run_id: str) -> None:
        self.frame.after(0, self._clear_widgets)

    def _clear_widgets(self) -> None:
        for widget in self.frame.winfo_children():
            widget.destroy()

    def _render(self, entry: PanelEntry, run_id: Optional[str]) -> None:
        self.frame.after(0, lambda: self._draw(entry, run_id))

    def _draw(self, entry: PanelEntry, run_id: Optional[str]) -> None:
        # Top-level errors have no run and are always shown
        if run_id is not None and not self.accepts(run_id):
            logger.debug(f"Dropping late entry from run {run_id}: {entry.title}")
            return

        card = EntryCard(
            self.frame,
            entry,
            on_action=lambda action: self._dispatch(action, run_id)
        )
        card.pack(fill="x", padx=10, pady=4)

    def _dispatch(self, action: RemediationAction, run_id: Optional[str]) -> None:
        if self._on_action and run_id is not None:
            self._on_action(action, run_id)


def init_panel(master, on_action: Optional[ActionHandler] = None) -> DiagnosticsPanel:
    """Create the panel once; the returned handle is reused across reruns."""
    panel = DiagnosticsPanel(master, on_action)
    logger.debug("Diagnostics panel created")
    return panel
