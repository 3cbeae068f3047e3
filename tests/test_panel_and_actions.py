"""Run gating on panels and remediation action execution."""

from __future__ import annotations

import io

from conftest import FakePlatform, RecordingPanel
from devdiag.diagnostics import (
    ActionKind,
    ConsolePanel,
    PanelEntry,
    RemediationAction,
    RunGate,
    Severity,
    perform_action,
)


def test_run_gate_tracks_current_run() -> None:
    gate = RunGate()
    assert not gate.accepts("a")
    assert not gate.accepts(None)

    gate.open("a")
    assert gate.accepts("a")

    gate.open("b")
    assert not gate.accepts("a")
    assert gate.current == "b"


def test_panel_drops_entries_from_superseded_run(panel: RecordingPanel) -> None:
    panel.begin_run("a")
    assert panel.append("a", PanelEntry(Severity.INFO, "first"))

    panel.begin_run("b")
    assert not panel.append("a", PanelEntry(Severity.INFO, "late"))
    assert panel.append("b", PanelEntry(Severity.INFO, "second"))

    assert panel.titles() == ["second"]
    assert [rid for rid, _ in panel.rendered] == ["a", "b"]


def test_show_error_is_not_run_bound(panel: RecordingPanel) -> None:
    panel.show_error("Diagnostics panel unavailable", "no display")

    assert panel.errors[0].severity is Severity.ERROR
    assert panel.rendered == [(None, panel.errors[0])]


def test_console_panel_writes_entries_and_actions() -> None:
    stream = io.StringIO()
    panel = ConsolePanel(stream)
    panel.begin_run("a")
    panel.append("a", PanelEntry(
        Severity.WARNING,
        "No local dev server detected",
        "No responses on 5500.",
        [RemediationAction("Copy: npm start", ActionKind.COPY, "npm start")],
    ))

    output = stream.getvalue()
    assert "Dev Connection Diagnostics" in output
    assert "[!] No local dev server detected" in output
    assert "-> Copy: npm start: npm start" in output


def test_copy_action_writes_clipboard_and_confirms(panel: RecordingPanel) -> None:
    platform = FakePlatform()
    panel.begin_run("a")
    action = RemediationAction("Copy: npm start", ActionKind.COPY, "npm start")

    assert perform_action(action, platform, panel, "a")

    assert platform.clipboard == ["npm start"]
    assert panel.titles() == ["Copied: npm start"]


def test_copy_checklist_confirmation(panel: RecordingPanel) -> None:
    panel.begin_run("a")
    action = RemediationAction("Copy checklist", ActionKind.COPY, "line one\nline two")

    perform_action(action, FakePlatform(), panel, "a")

    assert panel.titles() == ["Checklist copied to clipboard"]


def test_open_and_note_actions(panel: RecordingPanel) -> None:
    platform = FakePlatform()
    panel.begin_run("a")

    perform_action(RemediationAction("Help", ActionKind.OPEN, "https://help.test/"),
                   platform, panel, "a")
    perform_action(RemediationAction("macOS proxy check", ActionKind.NOTE, "Uncheck proxies",
                                     note_title="macOS proxy check"),
                   platform, panel, "a")

    assert platform.opened == ["https://help.test/"]
    assert panel.titles() == ["macOS proxy check"]
    assert panel.entries[0].detail == "Uncheck proxies"


def test_rerun_action_calls_handler(panel: RecordingPanel) -> None:
    calls = []
    action = RemediationAction("Run checks again", ActionKind.RERUN)

    assert perform_action(action, FakePlatform(), panel, "a", rerun=lambda: calls.append(1))
    assert calls == [1]
    assert not perform_action(action, FakePlatform(), panel, "a")


def test_failing_action_is_logged_not_raised(panel: RecordingPanel, caplog) -> None:
    class NoClipboard(FakePlatform):
        def write_clipboard(self, text: str) -> None:
            raise RuntimeError("No window available to own the clipboard")

    action = RemediationAction("Copy: npm start", ActionKind.COPY, "npm start")

    assert not perform_action(action, NoClipboard(), panel, "a")
    assert "No window available" in caplog.text
