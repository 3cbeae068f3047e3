"""Shared fixtures: a scriptable fake platform and a recording panel."""

from __future__ import annotations

import json
import threading
from typing import Dict, List, Optional, Tuple
from urllib.parse import urlsplit

import pytest

from devdiag.diagnostics.panel import BufferedPanel, PanelEntry
from devdiag.network import FetchResponse, NetworkFailure
from devdiag.utils import Config


class FakePlatform:
    """NetworkPlatform double driven entirely by constructor arguments."""

    def __init__(
        self,
        page_url: str = "http://localhost:5500/index.html",
        up_ports: Tuple[int, ...] = (),
        external_ip: str = "203.0.113.45",
        external_error: Optional[Exception] = None,
        external_body: Optional[str] = None,
        online: bool = True,
        adapter_error: Optional[Exception] = None,
    ):
        self._page_url = page_url
        self.up_ports = set(up_ports)
        self.external_ip = external_ip
        self.external_error = external_error
        self.external_body = external_body
        self.online = online
        self.adapter_error = adapter_error
        self.calls: List[Tuple[str, str, int, bool]] = []
        self.clipboard: List[str] = []
        self.opened: List[str] = []
        # port -> (started, release) for probes that should hang once
        self.blockers: Dict[int, Tuple[threading.Event, threading.Event]] = {}
        self._lock = threading.Lock()

    def block_port_once(self, port: int) -> Tuple[threading.Event, threading.Event]:
        started, release = threading.Event(), threading.Event()
        self.blockers[port] = (started, release)
        return started, release

    def page_url(self) -> str:
        return self._page_url

    def is_online(self) -> bool:
        return self.online

    def write_clipboard(self, text: str) -> None:
        self.clipboard.append(text)

    def open_external(self, url: str) -> None:
        self.opened.append(url)

    def timed_fetch(self, url: str, timeout_ms: int, method: str = "GET",
                    read_body: bool = True) -> FetchResponse:
        with self._lock:
            self.calls.append((method, url, timeout_ms, read_body))
        parts = urlsplit(url)

        if parts.hostname == "localhost":
            with self._lock:
                blocker = self.blockers.pop(parts.port, None)
            if blocker:
                started, release = blocker
                started.set()
                release.wait(5)
            if parts.port in self.up_ports:
                return FetchResponse(url=url, status_code=200, text="<html></html>")
            raise NetworkFailure("connection refused")

        if method == "HEAD":
            if self.adapter_error:
                raise self.adapter_error
            return FetchResponse(url=url, status_code=200)

        if self.external_error:
            raise self.external_error
        body = self.external_body
        if body is None:
            body = json.dumps({"ip": self.external_ip})
        return FetchResponse(url=url, status_code=200, text=body)

    def local_calls(self) -> List[str]:
        return [url for _, url, _, _ in self.calls if urlsplit(url).hostname == "localhost"]

    def head_calls(self) -> List[str]:
        return [url for method, url, _, _ in self.calls if method == "HEAD"]


class RecordingPanel(BufferedPanel):
    """Buffered panel that also remembers which run rendered each entry."""

    def __init__(self):
        super().__init__()
        self.rendered: List[Tuple[Optional[str], PanelEntry]] = []
        self.cleared: List[str] = []

    def _render(self, entry, run_id):
        self.rendered.append((run_id, entry))

    def _clear(self, run_id):
        self.cleared.append(run_id)

    def titles(self) -> List[str]:
        return [e.title for e in self.entries]


@pytest.fixture
def config() -> Config:
    return Config(page_url="http://localhost:5500/index.html")


@pytest.fixture
def panel() -> RecordingPanel:
    return RecordingPanel()
