"""
Dev Connection Diagnostics

Troubleshoots local page loading problems (ERR_CONNECTION_RESET and friends):
file:// origins, missing dev servers, blocked outbound traffic and offline
network adapters.

Usage:
    python -m devdiag [PAGE] [--headless] [--ports 5500,3000,8080] [--json PATH] [--text PATH]
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .diagnostics import ConsolePanel, DiagnosticRunner, DiagnosticsRun, ReportGenerator, Severity
from .network import DesktopPlatform
from .utils import Config, get_log_buffer, get_logger, setup_logging

logger = get_logger(__name__)


def page_to_url(page: str) -> str:
    """Accept either a URL or a filesystem path to an HTML file."""
    if "://" in page:
        return page
    return Path(page).expanduser().resolve().as_uri()


def parse_ports(value: str) -> List[int]:
    try:
        return [int(p) for p in value.split(",") if p.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid port list: {value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devdiag",
        description="Diagnose why a local web page fails to load."
    )
    parser.add_argument("page", nargs="?", help="URL or path of the page being opened")
    parser.add_argument("--headless", action="store_true",
                        help="Print results to the console instead of opening a window")
    parser.add_argument("--ports", type=parse_ports,
                        help="Comma-separated localhost ports to probe")
    parser.add_argument("--json", type=Path, dest="json_path",
                        help="Write a JSON report of the run to this file")
    parser.add_argument("--text", type=Path, dest="text_path",
                        help="Write a plain text report of the run to this file")
    parser.add_argument("--config", type=Path, help="Config file (default ~/.devdiag/config.json)")
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def load_config(args: argparse.Namespace) -> Config:
    config = Config.load(args.config)
    if args.page:
        config = replace(config, page_url=page_to_url(args.page))
    if args.ports:
        config = replace(config, local_ports=args.ports)
    return config


def write_reports(run: DiagnosticsRun, json_path: Optional[Path] = None,
                  text_path: Optional[Path] = None) -> None:
    generator = ReportGenerator(get_log_buffer())
    if json_path:
        generator.to_json(run, json_path)
    if text_path:
        generator.to_text(run, text_path)


def run_headless(config: Config, json_path: Optional[Path] = None,
                 startup_error: Optional[str] = None,
                 text_path: Optional[Path] = None) -> int:
    """Run once, print to stdout; exit status 1 when a finding needs attention."""
    panel = ConsolePanel()
    if startup_error:
        panel.show_error("Diagnostics panel unavailable", startup_error)

    platform = DesktopPlatform(config.resolved_page_url())
    run = DiagnosticRunner(config, platform).run_diagnostics(panel)

    write_reports(run, json_path, text_path)

    needs_attention = any(
        f.severity in (Severity.WARNING, Severity.ERROR) for f in run.findings
    )
    return 1 if needs_attention else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    level = logging.DEBUG if args.verbose else getattr(logging, config.log_level.upper(), logging.INFO)
    setup_logging(level, args.log_file, max_entries=config.max_log_entries)

    if args.headless:
        return run_headless(config, args.json_path, text_path=args.text_path)

    from tkinter import TclError
    from .gui import run_app

    try:
        app = run_app(config)
    except TclError as e:
        logger.error(f"Cannot open the diagnostics window: {e}")
        return run_headless(config, args.json_path, startup_error=str(e),
                            text_path=args.text_path)

    last_run = app.get_last_run()
    if last_run is not None:
        write_reports(last_run, args.json_path, args.text_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
