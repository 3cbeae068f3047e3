"""Main application window for the dev diagnostics tool."""

import customtkinter as ctk
import threading
from typing import Optional

from ..diagnostics import DiagnosticRunner, DiagnosticsRun, RemediationAction, perform_action
from ..network import DesktopPlatform
from ..utils import get_logger, Config
from .panel import DiagnosticsPanel, init_panel

logger = get_logger(__name__)


class DevDiagnosticsApp(ctk.CTk):
    """
    Small always-on-top window hosting the diagnostics panel.

    Diagnostics start automatically once the window is up; "Run checks again"
    starts a fresh, independent run on a worker thread.
    """

    COLORS = {
        'header_bg': "#111827",
        'accent': "#3b82f6",
        'text_primary': "#f9fafb",
        'text_secondary': "#9ca3af",
        'main_bg': "#0a0a0f",
    }

    def __init__(self, config: Config, platform: Optional[DesktopPlatform] = None):
        super().__init__()

        self.config = config
        self.platform = platform or DesktopPlatform(config.resolved_page_url())
        self.platform.set_clipboard_owner(self)
        self.runner = DiagnosticRunner(config, self.platform)

        self.title("Dev Connection Diagnostics")
        self.geometry(f"{config.window_width}x{config.window_height}")
        self.minsize(420, 360)
        self.attributes("-topmost", True)

        ctk.set_appearance_mode("dark" if config.dark_mode else "light")
        ctk.set_default_color_theme("blue")
        self.configure(fg_color=self.COLORS['main_bg'])

        self._build_ui()

        self.protocol("WM_DELETE_WINDOW", self._on_close)

        logger.info("Dev diagnostics window started")

    def _build_ui(self) -> None:
        self.grid_columnconfigure(0, weight=1)
        self.grid_rowconfigure(1, weight=1)

        header = ctk.CTkFrame(self, fg_color=self.COLORS['header_bg'], corner_radius=0)
        header.grid(row=0, column=0, sticky="ew")

        ctk.CTkLabel(
            header,
            text="Dev Connection Diagnostics",
            font=ctk.CTkFont(size=15, weight="bold"),
            text_color=self.COLORS['text_primary']
        ).pack(side="left", padx=12, pady=10)

        ctk.CTkButton(
            header,
            text="✕",
            width=32,
            height=28,
            fg_color="transparent",
            hover_color="#374151",
            command=self._on_close
        ).pack(side="right", padx=8)

        self.status_label = ctk.CTkLabel(
            header,
            text=self.platform.page_url(),
            font=ctk.CTkFont(size=11),
            text_color=self.COLORS['text_secondary']
        )
        self.status_label.pack(side="right", padx=8)

        self.panel: DiagnosticsPanel = init_panel(self, on_action=self._on_action)
        self.panel.frame.grid(row=1, column=0, sticky="nsew")

    def start_diagnostics(self) -> None:
        """Start a new run on a worker thread; the UI thread never blocks."""
        def run():
            try:
                self.runner.run_diagnostics(self.panel)
            except Exception as e:
                logger.error(f"Diagnostics crashed: {e}")
                self.panel.show_error("Diagnostics error", str(e))

        threading.Thread(target=run, daemon=True).start()

    def _on_action(self, action: RemediationAction, run_id: str) -> None:
        perform_action(action, self.platform, self.panel, run_id, rerun=self.start_diagnostics)

    def get_last_run(self) -> Optional[DiagnosticsRun]:
        """Latest completed run; superseded runs are never returned."""
        return self.runner.get_last_run()

    def _on_close(self) -> None:
        logger.info("Application closing")
        self.destroy()


def run_app(config: Config, platform: Optional[DesktopPlatform] = None) -> DevDiagnosticsApp:
    """Create the window, kick off the first run, and enter the main loop."""
    app = DevDiagnosticsApp(config, platform)
    app.after(100, app.start_diagnostics)
    app.mainloop()
    return app
