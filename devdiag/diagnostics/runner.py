"""Diagnostics orchestrator: runs the checks, correlates, renders and logs."""

import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from urllib.parse import urlsplit

from .heuristics import derive_findings
from .models import (
    ActionKind,
    CheckKind,
    CheckResult,
    DiagnosticsRun,
    RemediationAction,
    Severity,
)
from .panel import BufferedPanel, PanelEntry, PanelHandle
from ..network import AdapterOffline, NetworkPlatform, ParseFailure, ProbeError
from ..utils import Config, get_logger, log_group

logger = get_logger(__name__)

Emit = Callable[[PanelEntry], bool]

LOCAL_FILE_SCHEMES = ("file",)

CHECKLIST = "\n".join([
    "Checklist to try:",
    "1. If you opened the HTML with file:// -> start a simple server "
    "(e.g. python3 -m http.server 5500) and open http://localhost:5500",
    "2. Restart your dev server (Live Server / npm start)",
    "3. If external requests fail -> temporarily disable VPN/proxy/firewall and retry",
    "4. If offline -> reconnect your network adapter",
])


class DiagnosticRunner:
    """
    Runs the four connectivity checks for one page and renders the outcome.

    Each call to ``run_diagnostics`` is an independent run with its own id;
    the panel is handed to the new run and output from older runs is dropped.
    """

    def __init__(self, config: Config, platform: NetworkPlatform):
        self.config = config
        self.platform = platform
        self._last_run: Optional[DiagnosticsRun] = None
        self._latest_run_id: Optional[str] = None
        self._lock = threading.Lock()

    def run_diagnostics(self, panel: Optional[PanelHandle] = None) -> DiagnosticsRun:
        """
        Run every check once and return the completed run.

        Args:
            panel: Render target; a silent in-memory panel when omitted

        Returns:
            DiagnosticsRun with one result per probed target and its findings
        """
        panel = panel if panel is not None else BufferedPanel()
        run_id = uuid.uuid4().hex[:12]
        with self._lock:
            self._latest_run_id = run_id

        run = DiagnosticsRun(
            run_id=run_id,
            started_at=datetime.now(),
            ports=list(self.config.local_ports),
            page_url=self.platform.page_url()
        )

        panel.begin_run(run_id)

        def emit(entry: PanelEntry) -> bool:
            return panel.append(run_id, entry)

        logger.info(f"Starting diagnostics run {run_id} for {run.page_url}")
        emit(PanelEntry(
            Severity.INFO,
            "Starting diagnostics",
            "Running checks to help identify causes for ERR_CONNECTION_RESET "
            "when loading local pages."
        ))

        checks: List[Tuple[str, CheckKind, Callable[[str, Emit], List[CheckResult]]]] = [
            ("Page Protocol", CheckKind.PROTOCOL, self._check_protocol),
            ("Local Dev Servers", CheckKind.LOCAL_PORT, self._check_local_servers),
            ("External Connectivity", CheckKind.EXTERNAL, self._check_external),
            ("Network Adapter", CheckKind.NETWORK_ADAPTER, self._check_network_adapter),
        ]

        for name, kind, check in checks:
            logger.info(f"Running check: {name}")
            try:
                results = check(run_id, emit)
            except Exception as e:
                logger.error(f"Check error ({name}): {e}")
                emit(PanelEntry(Severity.ERROR, f"{name} check failed", str(e)))
                results = self._fallback_results(kind, run_id, run, str(e))

            for result in results:
                run.add(result)

        run.findings = derive_findings(run, self.config)

        for finding in run.findings:
            emit(PanelEntry(finding.severity, finding.title, finding.detail, finding.actions))

        self._log_summary(run)
        run.completed_at = datetime.now()

        emit(PanelEntry(
            Severity.INFO,
            "Next steps",
            actions=[
                RemediationAction(
                    label="Copy checklist for ERR_CONNECTION_RESET",
                    kind=ActionKind.COPY,
                    payload=CHECKLIST,
                    hint="Copies a quick troubleshooting checklist",
                ),
                RemediationAction(
                    label="Run checks again",
                    kind=ActionKind.RERUN,
                    hint="Re-run diagnostics after changes",
                ),
            ]
        ))

        with self._lock:
            # A superseded run finishing late must not replace the newer one
            if self._latest_run_id == run_id:
                self._last_run = run
        logger.info(
            f"Diagnostics run {run_id} complete in {run.duration_ms:.0f}ms "
            f"({len(run.findings)} finding(s))"
        )
        return run

    def get_last_run(self) -> Optional[DiagnosticsRun]:
        """The latest run started by this runner, once it has completed."""
        return self._last_run

    def _fallback_results(self, kind: CheckKind, run_id: str, run: DiagnosticsRun,
                          error: str) -> List[CheckResult]:
        """Failed results for a check that raised instead of reporting."""
        if kind is CheckKind.LOCAL_PORT:
            return [
                CheckResult(kind=kind, ok=False, detail=error, run_id=run_id, port=port)
                for port in self.config.local_ports
            ]
        data = {'online': False} if kind is CheckKind.NETWORK_ADAPTER else {}
        return [CheckResult(kind=kind, ok=False, detail=error, run_id=run_id, data=data)]

    def _check_protocol(self, run_id: str, emit: Emit) -> List[CheckResult]:
        """Detect a page opened straight from disk."""
        page_url = self.platform.page_url()
        scheme = urlsplit(page_url).scheme.lower()

        if scheme in LOCAL_FILE_SCHEMES:
            logger.warning("Page opened via file:// - this can cause request/CORS issues")
            emit(PanelEntry(
                Severity.WARNING,
                "Page loaded via file:// (local file).",
                "Browsers sometimes block requests or CORS when opening HTML files directly. "
                "Run a local server and open http://localhost:PORT, or (advanced) run Chrome "
                "with --allow-file-access-from-files.",
                actions=[
                    RemediationAction(
                        label="Open Live Server docs",
                        kind=ActionKind.OPEN,
                        payload=self.config.live_server_docs_url,
                        hint="VS Code Live Server extension (easy)",
                    ),
                    RemediationAction(
                        label="Copy: start simple server (Python)",
                        kind=ActionKind.COPY,
                        payload="python3 -m http.server 5500",
                        hint="Run in your project folder and open http://localhost:5500",
                    ),
                ]
            ))
            return [CheckResult(
                kind=CheckKind.PROTOCOL, ok=False, detail="file-origin",
                run_id=run_id, data={'scheme': scheme}
            )]

        logger.info(f"Page protocol OK: {scheme}:")
        emit(PanelEntry(
            Severity.INFO,
            f"Page opened over {scheme}:",
            "This page is not loaded via file:// - file protocol issues do not apply."
        ))
        return [CheckResult(
            kind=CheckKind.PROTOCOL, ok=True, detail=scheme,
            run_id=run_id, data={'scheme': scheme}
        )]

    def _local_url(self, port: int) -> str:
        path = self.config.local_path
        separator = "&" if "?" in path else "?"
        stamp = int(time.time() * 1000)
        return f"http://localhost:{port}{path}{separator}{self.config.cache_bust_param}={stamp}"

    def _probe_port(self, run_id: str, port: int) -> CheckResult:
        """Probe one localhost port; never raises."""
        url = self._local_url(port)
        start = time.perf_counter()

        try:
            response = self.platform.timed_fetch(
                url, self.config.per_port_timeout_ms, read_body=False
            )
        except ProbeError as e:
            logger.warning(f"localhost:{port} did not respond: {e}")
            return CheckResult(
                kind=CheckKind.LOCAL_PORT, ok=False, detail=str(e), run_id=run_id,
                port=port, data={'error_kind': e.kind},
                duration_ms=(time.perf_counter() - start) * 1000
            )
        except Exception as e:
            logger.error(f"Error probing localhost:{port}: {e}")
            return CheckResult(
                kind=CheckKind.LOCAL_PORT, ok=False, detail=str(e), run_id=run_id,
                port=port, data={'error_kind': 'error'},
                duration_ms=(time.perf_counter() - start) * 1000
            )

        logger.info(f"localhost:{port} appears to be responding (HTTP {response.status_code})")
        return CheckResult(
            kind=CheckKind.LOCAL_PORT, ok=True, detail=f"HTTP {response.status_code}",
            run_id=run_id, port=port, data={'status_code': response.status_code},
            duration_ms=(time.perf_counter() - start) * 1000
        )

    def _check_local_servers(self, run_id: str, emit: Emit) -> List[CheckResult]:
        """Probe every configured localhost port for a dev server."""
        ports = self.config.local_ports
        port_list = ", ".join(str(p) for p in ports)
        logger.info(f"Probing localhost ports {port_list}")
        emit(PanelEntry(
            Severity.INFO,
            f"Checking local dev servers (ports: {port_list})",
            "This tests whether a dev server (Live Server, CRA, etc.) is running."
        ))

        if self.config.concurrent_port_probes and len(ports) > 1:
            workers = min(len(ports), self.config.max_port_workers)
            with ThreadPoolExecutor(max_workers=workers) as executor:
                results = list(executor.map(lambda p: self._probe_port(run_id, p), ports))
        else:
            results = [self._probe_port(run_id, port) for port in ports]

        up = [r.port for r in results if r.ok]
        if up:
            emit(PanelEntry(
                Severity.INFO,
                "Local dev server detected",
                f"Responding port(s): {', '.join(str(p) for p in up)} - "
                f"try opening http://localhost:{up[0]}"
            ))
        else:
            emit(PanelEntry(
                Severity.WARNING,
                "No local dev server detected",
                f"No responses on {port_list}. If you expected a server, try restarting it "
                "(Live Server / npm start).",
                actions=[
                    RemediationAction(
                        label="Copy: npm start",
                        kind=ActionKind.COPY,
                        payload="npm start",
                        hint="Run in your project folder if supported",
                    ),
                ]
            ))

        logger.debug(f"Local server probe results: {[r.to_dict() for r in results]}")
        return results

    def _check_external(self, run_id: str, emit: Emit) -> List[CheckResult]:
        """Fetch the public IP; failure hints at proxy/VPN/firewall interference."""
        url = self.config.external_probe_url
        logger.info("Fetching external IP to check outbound connectivity")
        emit(PanelEntry(
            Severity.INFO,
            "Checking external connectivity...",
            "Attempting to fetch your public IP - failures may indicate "
            "proxy/VPN/firewall blocking outbound requests."
        ))

        start = time.perf_counter()
        try:
            response = self.platform.timed_fetch(url, self.config.external_timeout_ms)
            payload = response.json()
            ip = payload.get('ip') if isinstance(payload, dict) else None
            if not isinstance(ip, str) or not ip:
                raise ParseFailure(f"No 'ip' field in response from {url}")
        except Exception as e:
            duration = (time.perf_counter() - start) * 1000
            logger.warning(f"External fetch failed: {e}")
            emit(PanelEntry(
                Severity.WARNING,
                "Unable to fetch external IP",
                "This may indicate a system proxy, VPN, or firewall. Try temporarily "
                "disabling VPN/proxy and re-run.",
                actions=[
                    RemediationAction(
                        label="Proxy/VPN help",
                        kind=ActionKind.OPEN,
                        payload=self.config.proxy_help_url,
                    ),
                    RemediationAction(
                        label="macOS proxy check",
                        kind=ActionKind.NOTE,
                        note_title="macOS proxy check",
                        payload="System Settings -> Network -> Advanced -> Proxies -> "
                                "Uncheck any proxies",
                    ),
                    RemediationAction(
                        label="Windows proxy check",
                        kind=ActionKind.NOTE,
                        note_title="Windows proxy check",
                        payload="Settings -> Network & Internet -> Proxy -> "
                                "Turn off Use a proxy server",
                    ),
                ]
            ))
            return [CheckResult(
                kind=CheckKind.EXTERNAL, ok=False, detail=str(e), run_id=run_id,
                data={'error_kind': _error_kind(e)}, duration_ms=duration
            )]

        duration = (time.perf_counter() - start) * 1000
        logger.info(f"External IP: {ip}")
        emit(PanelEntry(Severity.INFO, "External connectivity OK", f"Public IP: {ip}"))
        return [CheckResult(
            kind=CheckKind.EXTERNAL, ok=True, detail=ip, run_id=run_id,
            data={'ip': ip}, duration_ms=duration
        )]

    def _check_network_adapter(self, run_id: str, emit: Emit) -> List[CheckResult]:
        """Read the online flag, then confirm outbound traffic with a HEAD ping."""
        logger.info("Checking network adapter state")

        if not self.platform.is_online():
            logger.warning("Host reports offline")
            emit(PanelEntry(
                Severity.ERROR,
                "Network appears offline",
                "Your system reports no active network connection. "
                "Reconnect to the network and retry.",
                actions=[
                    RemediationAction(
                        label="Network troubleshooting",
                        kind=ActionKind.OPEN,
                        payload=self.config.network_help_url,
                    ),
                ]
            ))
            return [CheckResult(
                kind=CheckKind.NETWORK_ADAPTER, ok=False, detail=AdapterOffline.kind,
                run_id=run_id, data={'online': False}
            )]

        emit(PanelEntry(
            Severity.INFO,
            "Network adapter: online",
            "The system reports an active network connection."
        ))

        start = time.perf_counter()
        try:
            self.platform.timed_fetch(
                self.config.adapter_probe_url, self.config.adapter_timeout_ms, method="HEAD"
            )
        except Exception as e:
            logger.warning(f"Outbound connectivity check failed: {e}")
            emit(PanelEntry(
                Severity.WARNING,
                "Connectivity test failed",
                "You appear online but external requests might be blocked by "
                "firewall/proxy/VPN."
            ))
            return [CheckResult(
                kind=CheckKind.NETWORK_ADAPTER, ok=True, detail=f"online; check failed: {e}",
                run_id=run_id,
                data={'online': True, 'check': 'failed', 'error_kind': _error_kind(e)},
                duration_ms=(time.perf_counter() - start) * 1000
            )]

        logger.info(f"Outbound connectivity check resolved ({self.config.adapter_probe_url})")
        return [CheckResult(
            kind=CheckKind.NETWORK_ADAPTER, ok=True, detail="online",
            run_id=run_id, data={'online': True, 'check': 'ok'},
            duration_ms=(time.perf_counter() - start) * 1000
        )]

    def _log_summary(self, run: DiagnosticsRun) -> None:
        summary = run.summary()
        with log_group(logger, "Dev Diagnostics Summary") as line:
            line("Protocol: %s", summary['scheme'])
            line("Local ports checked: %s", summary['ports'])
            line("Local results: %s", summary['local_results'])
            line("External check: %s", summary['external'])
            line("Network adapter: %s", summary['network_adapter'])
            for finding in run.findings:
                line("Finding [%s]: %s", finding.severity.value, finding.title)


def _error_kind(error: Exception) -> str:
    return error.kind if isinstance(error, ProbeError) else ProbeError.kind


def run_diagnostics(config: Config, platform: NetworkPlatform,
                    panel: Optional[PanelHandle] = None) -> DiagnosticsRun:
    """Run one independent diagnostics pass."""
    return DiagnosticRunner(config, platform).run_diagnostics(panel)
