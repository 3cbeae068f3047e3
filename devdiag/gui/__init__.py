"""customtkinter front end."""

from .app import DevDiagnosticsApp, run_app
from .panel import DiagnosticsPanel, init_panel

__all__ = ["DevDiagnosticsApp", "run_app", "DiagnosticsPanel", "init_panel"]
