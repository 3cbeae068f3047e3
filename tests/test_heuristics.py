"""Heuristic correlation over hand-built runs."""

from __future__ import annotations

import itertools
from datetime import datetime

import pytest

from devdiag.diagnostics import (
    CheckKind,
    CheckResult,
    DiagnosticsRun,
    Severity,
    StaleResultError,
    derive_findings,
)
from devdiag.diagnostics.heuristics import EXTERNAL_BLOCKED, FILE_ORIGIN_NO_SERVER, OFFLINE

PORTS = [5500, 3000, 8080]


def make_run(file_origin=False, up_ports=(), external_ok=True, online=True) -> DiagnosticsRun:
    run = DiagnosticsRun(run_id="r1", started_at=datetime.now(), ports=list(PORTS))
    run.add(CheckResult(
        kind=CheckKind.PROTOCOL,
        ok=not file_origin,
        detail="file-origin" if file_origin else "http",
        run_id="r1",
    ))
    for port in PORTS:
        run.add(CheckResult(kind=CheckKind.LOCAL_PORT, ok=port in up_ports, run_id="r1", port=port))
    run.add(CheckResult(kind=CheckKind.EXTERNAL, ok=external_ok, run_id="r1"))
    run.add(CheckResult(
        kind=CheckKind.NETWORK_ADAPTER, ok=online, run_id="r1", data={'online': online}
    ))
    return run


@pytest.mark.parametrize(
    "file_origin, up_ports, external_ok, online",
    list(itertools.product([True, False], [(), (5500,), (3000, 8080)], [True, False], [True, False])),
)
def test_findings_iff_conditions(file_origin, up_ports, external_ok, online) -> None:
    codes = {f.code for f in derive_findings(make_run(file_origin, up_ports, external_ok, online))}

    assert (FILE_ORIGIN_NO_SERVER in codes) == (file_origin and not up_ports)
    assert (EXTERNAL_BLOCKED in codes) == (not external_ok and bool(up_ports))
    assert (OFFLINE in codes) == (not online)


def test_offline_sorted_first() -> None:
    findings = derive_findings(make_run(file_origin=True, online=False))

    assert [f.code for f in findings] == [OFFLINE, FILE_ORIGIN_NO_SERVER]
    assert findings[0].severity is Severity.ERROR


def test_external_finding_is_hedged() -> None:
    findings = derive_findings(make_run(up_ports=(5500,), external_ok=False))

    assert "not a confirmed cause" in findings[0].detail


def test_incomplete_run_has_no_summary() -> None:
    run = DiagnosticsRun(run_id="r1", started_at=datetime.now(), ports=list(PORTS))
    run.add(CheckResult(kind=CheckKind.PROTOCOL, ok=True, run_id="r1"))

    assert not run.is_complete
    with pytest.raises(ValueError):
        derive_findings(run)


def test_run_rejects_stale_and_duplicate_results() -> None:
    run = make_run()

    with pytest.raises(StaleResultError):
        run.add(CheckResult(kind=CheckKind.EXTERNAL, ok=True, run_id="r0"))
    with pytest.raises(ValueError):
        run.add(CheckResult(kind=CheckKind.LOCAL_PORT, ok=True, run_id="r1", port=5500))
    with pytest.raises(ValueError):
        run.add(CheckResult(kind=CheckKind.EXTERNAL, ok=True, run_id="r1"))


def test_summary_shape() -> None:
    summary = make_run(up_ports=(3000,)).summary()

    assert summary['ports'] == PORTS
    assert [r['ok'] for r in summary['local_results']] == [False, True, False]
    assert summary['network_adapter'] == {'online': True}
