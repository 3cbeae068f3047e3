"""Correlation of a completed run's results into findings.

Findings are inferences, not diagnoses. Nothing here can observe the OS
proxy, VPN or firewall configuration.
"""

from typing import List, Optional

from .models import (
    ActionKind,
    DiagnosticsRun,
    HeuristicFinding,
    RemediationAction,
    Severity,
)
from ..utils import Config

FILE_ORIGIN_NO_SERVER = "file-origin-no-dev-server"
EXTERNAL_BLOCKED = "local-ok-external-blocked"
OFFLINE = "reconnect-required"

# Offline outranks everything for display
PRIORITIES = {
    OFFLINE: 0,
    FILE_ORIGIN_NO_SERVER: 10,
    EXTERNAL_BLOCKED: 20,
}


def derive_findings(run: DiagnosticsRun, config: Optional[Config] = None) -> List[HeuristicFinding]:
    """
    Derive heuristic findings from a completed run.

    Args:
        run: A run for which every check category has resolved
        config: Supplies the help links attached to findings

    Returns:
        Findings sorted by display priority

    Raises:
        ValueError: If the run is not complete
    """
    if not run.is_complete:
        raise ValueError(f"Run {run.run_id} is not complete; no summary yet")

    config = config or Config()
    findings: List[HeuristicFinding] = []

    if run.is_file_origin and not run.local_server_reachable:
        findings.append(HeuristicFinding(
            code=FILE_ORIGIN_NO_SERVER,
            title="Likely cause: file:// + no dev server",
            detail=(
                "Open the site via http://localhost:PORT (start a server). "
                "This often fixes ERR_CONNECTION_RESET in development."
            ),
            severity=Severity.WARNING,
            priority=PRIORITIES[FILE_ORIGIN_NO_SERVER],
            actions=[
                RemediationAction(
                    label="Copy: start simple server (Python)",
                    kind=ActionKind.COPY,
                    payload=f"python3 -m http.server {_preferred_port(run)}",
                    hint="Run in your project folder, then open the printed localhost URL",
                ),
            ],
        ))

    external = run.external
    if external is not None and not external.ok and run.local_server_reachable:
        findings.append(HeuristicFinding(
            code=EXTERNAL_BLOCKED,
            title="Pattern: local server OK but external fetch fails",
            detail=(
                "This often indicates a system proxy, VPN, or firewall interfering "
                "with outbound traffic. It is a hint, not a confirmed cause."
            ),
            severity=Severity.WARNING,
            priority=PRIORITIES[EXTERNAL_BLOCKED],
            actions=[
                RemediationAction(
                    label="Proxy/VPN help",
                    kind=ActionKind.OPEN,
                    payload=config.proxy_help_url,
                ),
            ],
        ))

    if not run.is_online:
        findings.append(HeuristicFinding(
            code=OFFLINE,
            title="Network offline: reconnect required",
            detail="Reconnect to Wi-Fi or Ethernet and retry.",
            severity=Severity.ERROR,
            priority=PRIORITIES[OFFLINE],
            actions=[
                RemediationAction(
                    label="Network troubleshooting",
                    kind=ActionKind.OPEN,
                    payload=config.network_help_url,
                ),
            ],
        ))

    findings.sort(key=lambda f: f.priority)
    return findings


def _preferred_port(run: DiagnosticsRun) -> int:
    return run.ports[0] if run.ports else 5500
