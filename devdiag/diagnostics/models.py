"""Data types produced by a diagnostics run."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class CheckKind(Enum):
    """Category of a probe."""
    PROTOCOL = "protocol"
    LOCAL_PORT = "local-port"
    EXTERNAL = "external"
    NETWORK_ADAPTER = "network-adapter"


class Severity(Enum):
    """Display level of a panel entry or finding."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ActionKind(Enum):
    """What a remediation action does when triggered."""
    COPY = "copy"      # Copy payload to the clipboard
    OPEN = "open"      # Open payload URL in a browser
    NOTE = "note"      # Show payload as an extra panel entry
    RERUN = "rerun"    # Start a new diagnostics run


@dataclass
class RemediationAction:
    """A user-triggerable, fire-and-forget action offered next to a result."""
    label: str
    kind: ActionKind
    payload: str = ""
    hint: str = ""                   # Short explanation shown under the button
    note_title: str = ""             # Panel title used by NOTE actions


@dataclass
class CheckResult:
    """Outcome of one probe."""
    kind: CheckKind
    ok: bool
    detail: str = ""                 # Message, error text or public IP
    run_id: str = ""                 # Run that issued the probe
    port: Optional[int] = None       # Set for local-port results only
    data: Dict[str, Any] = field(default_factory=dict)
    duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'kind': self.kind.value,
            'ok': self.ok,
            'detail': self.detail,
        }
        if self.port is not None:
            result['port'] = self.port
        if self.data:
            result['data'] = self.data
        if self.duration_ms is not None:
            result['duration_ms'] = round(self.duration_ms, 1)
        return result


@dataclass
class HeuristicFinding:
    """A non-authoritative inference drawn from a completed run."""
    code: str
    title: str
    detail: str
    severity: Severity = Severity.WARNING
    priority: int = 50               # Lower is shown first
    actions: List[RemediationAction] = field(default_factory=list)


class StaleResultError(ValueError):
    """A result was offered to a run other than the one that issued it."""


@dataclass
class DiagnosticsRun:
    """Ordered results of one orchestrator invocation."""
    run_id: str
    started_at: datetime
    ports: List[int] = field(default_factory=list)
    page_url: str = ""
    results: List[CheckResult] = field(default_factory=list)
    findings: List[HeuristicFinding] = field(default_factory=list)
    completed_at: Optional[datetime] = None

    def add(self, result: CheckResult) -> None:
        """Append a result issued by this run."""
        if result.run_id != self.run_id:
            raise StaleResultError(
                f"Result from run {result.run_id!r} offered to run {self.run_id!r}"
            )
        if result.kind is CheckKind.LOCAL_PORT:
            if any(r.port == result.port for r in self.port_results):
                raise ValueError(f"Port {result.port} already has a result")
        elif self.by_kind(result.kind):
            raise ValueError(f"{result.kind.value} already has a result")
        self.results.append(result)

    def by_kind(self, kind: CheckKind) -> List[CheckResult]:
        return [r for r in self.results if r.kind is kind]

    def first(self, kind: CheckKind) -> Optional[CheckResult]:
        matches = self.by_kind(kind)
        return matches[0] if matches else None

    @property
    def protocol(self) -> Optional[CheckResult]:
        return self.first(CheckKind.PROTOCOL)

    @property
    def external(self) -> Optional[CheckResult]:
        return self.first(CheckKind.EXTERNAL)

    @property
    def network_adapter(self) -> Optional[CheckResult]:
        return self.first(CheckKind.NETWORK_ADAPTER)

    @property
    def port_results(self) -> List[CheckResult]:
        return self.by_kind(CheckKind.LOCAL_PORT)

    @property
    def local_server_reachable(self) -> bool:
        """Run-level local-server finding: at least one port responded."""
        return any(r.ok for r in self.port_results)

    @property
    def responding_ports(self) -> List[int]:
        return [r.port for r in self.port_results if r.ok]

    @property
    def is_file_origin(self) -> bool:
        protocol = self.protocol
        return protocol is not None and not protocol.ok

    @property
    def is_online(self) -> bool:
        adapter = self.network_adapter
        return adapter is not None and bool(adapter.data.get('online', adapter.ok))

    @property
    def is_complete(self) -> bool:
        """All four categories resolved, one result per configured port."""
        probed = {r.port for r in self.port_results}
        return (
            self.protocol is not None
            and self.external is not None
            and self.network_adapter is not None
            and probed == set(self.ports)
        )

    @property
    def duration_ms(self) -> Optional[float]:
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds() * 1000

    def summary(self) -> Dict[str, Any]:
        """Compact dictionary used by the log summary and reports."""
        protocol = self.protocol
        external = self.external
        adapter = self.network_adapter
        return {
            'run_id': self.run_id,
            'page_url': self.page_url,
            'scheme': protocol.data.get('scheme') if protocol else None,
            'ports': list(self.ports),
            'local_results': [
                {'port': r.port, 'ok': r.ok, 'detail': r.detail} for r in self.port_results
            ],
            'external': external.to_dict() if external else None,
            'network_adapter': dict(adapter.data) if adapter else None,
        }
