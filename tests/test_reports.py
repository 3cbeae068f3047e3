"""JSON and text reports for completed runs."""

from __future__ import annotations

import json
from datetime import datetime, timedelta

from conftest import FakePlatform
from devdiag.diagnostics import ReportGenerator, run_diagnostics
from devdiag.utils.logging_config import LogBuffer, LogEntry


def test_json_report(config, tmp_path) -> None:
    run = run_diagnostics(config, FakePlatform(page_url="file:///site/index.html"))
    path = tmp_path / "reports" / "run.json"

    text = ReportGenerator().to_json(run, path)

    data = json.loads(path.read_text(encoding='utf-8'))
    assert data == json.loads(text)
    assert data['run_id'] == run.run_id
    assert data['summary']['ports'] == [5500, 3000, 8080]
    assert len(data['results']) == 6
    assert data['findings'][0]['code'] == "file-origin-no-dev-server"
    assert data['findings'][0]['severity'] == "warning"


def test_text_report(config) -> None:
    run = run_diagnostics(config, FakePlatform(up_ports=(3000,)))

    text = ReportGenerator().to_text(run)

    assert "DEV CONNECTION DIAGNOSTICS REPORT" in text
    assert "[ OK ] localhost:3000" in text
    assert "[FAIL] localhost:5500" in text
    assert "No heuristic findings." in text


def test_report_attaches_log_records_from_the_run(config) -> None:
    run = run_diagnostics(config, FakePlatform())
    buffer = LogBuffer(max_entries=10)
    buffer.add(LogEntry(run.started_at - timedelta(seconds=5), "INFO", "devdiag", "earlier run"))
    buffer.add(LogEntry(run.started_at, "WARNING", "devdiag.runner", "localhost:5500 did not respond"))

    generator = ReportGenerator(buffer)
    data = generator.to_dict(run)

    assert [e['message'] for e in data['log']] == ["localhost:5500 did not respond"]
    assert "\nLOG\n" in generator.to_text(run)
    assert ReportGenerator().to_dict(run)['log'] == []


def test_log_buffer_is_bounded() -> None:
    buffer = LogBuffer(max_entries=2)
    now = datetime.now()
    for i in range(3):
        buffer.add(LogEntry(now, "INFO", "devdiag", f"line {i}"))

    assert [e.message for e in buffer.entries()] == ["line 1", "line 2"]
    buffer.resize(1)
    assert [e.message for e in buffer.entries()] == ["line 2"]
