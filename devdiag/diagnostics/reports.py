"""Report generation for completed diagnostics runs."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .models import CheckKind, DiagnosticsRun, HeuristicFinding
from ..utils import get_logger
from ..utils.logging_config import LogBuffer, LogEntry

logger = get_logger(__name__)


def _serialize_finding(finding: HeuristicFinding) -> Dict[str, Any]:
    """Serialize a HeuristicFinding to a dictionary."""
    return {
        'code': finding.code,
        'title': finding.title,
        'detail': finding.detail,
        'severity': finding.severity.value,
        'priority': finding.priority,
        'actions': [
            {'label': a.label, 'kind': a.kind.value, 'payload': a.payload}
            for a in finding.actions
        ]
    }


class ReportGenerator:
    """
    Renders a completed DiagnosticsRun as JSON or plain text.

    The output is informational; it is not a stable machine contract.

    Args:
        log_buffer: When given, log records written during the run are
            attached to the report
    """

    def __init__(self, log_buffer: Optional[LogBuffer] = None):
        self.log_buffer = log_buffer

    def _run_log(self, run: DiagnosticsRun) -> List[LogEntry]:
        if self.log_buffer is None:
            return []
        return self.log_buffer.entries(since=run.started_at, until=run.completed_at)

    def to_dict(self, run: DiagnosticsRun) -> Dict[str, Any]:
        return {
            'report_version': '1.0',
            'run_id': run.run_id,
            'started_at': run.started_at.isoformat(),
            'completed_at': run.completed_at.isoformat() if run.completed_at else None,
            'duration_ms': run.duration_ms,
            'page_url': run.page_url,
            'summary': run.summary(),
            'results': [r.to_dict() for r in run.results],
            'findings': [_serialize_finding(f) for f in run.findings],
            'log': [e.to_dict() for e in self._run_log(run)],
        }

    def to_json(self, run: DiagnosticsRun, filepath: Optional[Path] = None) -> str:
        """
        Export a run to JSON.

        Args:
            run: Completed run to export
            filepath: Optional file path to save to

        Returns:
            JSON string
        """
        json_str = json.dumps(self.to_dict(run), indent=2, default=str)

        if filepath:
            filepath = Path(filepath)
            filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write(json_str)
            logger.info(f"Report saved to {filepath}")

        return json_str

    def to_text(self, run: DiagnosticsRun, filepath: Optional[Path] = None) -> str:
        """Export a run to plain text."""
        duration = f"{run.duration_ms:.0f}ms" if run.duration_ms is not None else "n/a"
        lines = [
            "=" * 60,
            "DEV CONNECTION DIAGNOSTICS REPORT",
            "=" * 60,
            "",
            f"Page:       {run.page_url}",
            f"Run:        {run.run_id}",
            f"Started:    {run.started_at.strftime('%Y-%m-%d %H:%M:%S')}",
            f"Duration:   {duration}",
            "",
            "-" * 60,
            "CHECK RESULTS",
            "-" * 60,
        ]

        for result in run.results:
            status = "[ OK ]" if result.ok else "[FAIL]"
            if result.kind is CheckKind.LOCAL_PORT:
                name = f"localhost:{result.port}"
            else:
                name = result.kind.value
            lines.append(f"{status} {name:<18} {result.detail}")

        lines.extend(["", "-" * 60, "FINDINGS", "-" * 60])
        if run.findings:
            for finding in run.findings:
                lines.append(f"  [{finding.severity.value.upper()}] {finding.title}")
                lines.append(f"      {finding.detail}")
                for action in finding.actions:
                    lines.append(f"      -> {action.label}: {action.payload}")
        else:
            lines.append("  No heuristic findings.")

        log = self._run_log(run)
        if log:
            lines.extend(["", "-" * 60, "LOG", "-" * 60])
            lines.extend(f"  {entry.format()}" for entry in log)

        lines.extend(["", "=" * 60, "End of Report", "=" * 60])

        text = "\n".join(lines)

        if filepath:
            filepath = Path(filepath)
            filepath.parent.mkdir(parents=True, exist_ok=True)
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write(text)
            logger.info(f"Text report saved to {filepath}")

        return text
