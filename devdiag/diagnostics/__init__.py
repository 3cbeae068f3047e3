"""Diagnostic orchestration and reporting."""

from .models import (
    ActionKind,
    CheckKind,
    CheckResult,
    DiagnosticsRun,
    HeuristicFinding,
    RemediationAction,
    Severity,
    StaleResultError,
)
from .heuristics import derive_findings
from .panel import BufferedPanel, ConsolePanel, PanelEntry, PanelHandle, RunGate
from .actions import perform_action
from .runner import DiagnosticRunner, run_diagnostics
from .reports import ReportGenerator

__all__ = [
    "ActionKind",
    "CheckKind",
    "CheckResult",
    "DiagnosticsRun",
    "HeuristicFinding",
    "RemediationAction",
    "Severity",
    "StaleResultError",
    "derive_findings",
    "BufferedPanel",
    "ConsolePanel",
    "PanelEntry",
    "PanelHandle",
    "RunGate",
    "perform_action",
    "DiagnosticRunner",
    "run_diagnostics",
    "ReportGenerator",
]
