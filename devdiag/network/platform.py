"""Host capabilities used by the diagnostics checks.

The checks never touch sockets, HTTP or the clipboard directly; they go
through a ``NetworkPlatform`` so the run and heuristic logic can be exercised
with fake implementations.
"""

import json
import socket
import time
import webbrowser
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol

import requests
from requests.exceptions import RequestException

from .errors import NetworkFailure, ParseFailure, ProbeTimeout
from ..utils import get_logger

logger = get_logger(__name__)


@dataclass
class FetchResponse:
    """Whatever arrived from a probe. The status code is never judged."""
    url: str
    status_code: int
    text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    elapsed_ms: Optional[float] = None

    def json(self) -> Any:
        """Decode the body as JSON, raising ParseFailure on malformed bodies."""
        try:
            return json.loads(self.text)
        except ValueError as e:
            raise ParseFailure(f"Response from {self.url} is not JSON: {e}") from e


class NetworkPlatform(Protocol):
    """Capabilities the orchestrator needs from its host."""

    def timed_fetch(self, url: str, timeout_ms: int, method: str = "GET",
                    read_body: bool = True) -> FetchResponse:
        ...

    def is_online(self) -> bool:
        ...

    def write_clipboard(self, text: str) -> None:
        ...

    def open_external(self, url: str) -> None:
        ...

    def page_url(self) -> str:
        ...


class DesktopPlatform:
    """
    NetworkPlatform backed by requests, the OS routing table and Tk.

    Args:
        page_url: URL of the page being diagnosed
        clipboard_owner: Tk widget whose clipboard is used, if any
        session: Optional requests session (shared connection pool)
    """

    # Addresses used only to ask the OS for a route; no packets are sent
    ROUTE_PROBES = (
        (socket.AF_INET, ("8.8.8.8", 80)),
        (socket.AF_INET6, ("2001:4860:4860::8888", 80)),
    )

    def __init__(
        self,
        page_url: str,
        clipboard_owner: Optional[Any] = None,
        session: Optional[requests.Session] = None
    ):
        self._page_url = page_url
        self._clipboard_owner = clipboard_owner
        self._session = session or requests.Session()

    def set_clipboard_owner(self, owner: Any) -> None:
        """Attach the Tk widget that owns the clipboard."""
        self._clipboard_owner = owner

    def page_url(self) -> str:
        return self._page_url

    def timed_fetch(self, url: str, timeout_ms: int, method: str = "GET",
                    read_body: bool = True) -> FetchResponse:
        """
        Issue one bounded HTTP request.

        Any HTTP response, including 4xx/5xx, counts as a response. Timeouts
        raise ProbeTimeout, everything else that prevents a response raises
        NetworkFailure. With ``read_body=False`` (and for HEAD) the connection
        is closed once the headers arrive; the body is never downloaded.
        """
        timeout = timeout_ms / 1000.0
        stream = method.upper() == "HEAD" or not read_body
        start = time.perf_counter()

        try:
            response = self._session.request(
                method,
                url,
                timeout=timeout,
                allow_redirects=True,
                stream=stream,
                headers={"Cache-Control": "no-store"}
            )
        except requests.exceptions.Timeout as e:
            logger.debug(f"{method} {url} timed out after {timeout_ms}ms")
            raise ProbeTimeout(f"timeout after {timeout_ms}ms") from e
        except requests.exceptions.ConnectionError as e:
            logger.debug(f"{method} {url} connection error: {e}")
            raise NetworkFailure(f"connection failed: {e}") from e
        except RequestException as e:
            raise NetworkFailure(f"request failed: {e}") from e

        elapsed = (time.perf_counter() - start) * 1000

        if stream:
            response.close()
            text = ""
        else:
            text = response.text

        return FetchResponse(
            url=url,
            status_code=response.status_code,
            text=text,
            headers=dict(response.headers),
            elapsed_ms=elapsed
        )

    def is_online(self) -> bool:
        """True when the OS has a non-loopback route to the outside."""
        for family, address in self.ROUTE_PROBES:
            try:
                with socket.socket(family, socket.SOCK_DGRAM) as s:
                    s.connect(address)
                    local_ip = s.getsockname()[0]
            except OSError as e:
                logger.debug(f"No route via {address[0]}: {e}")
                continue

            if local_ip and not local_ip.startswith(("127.", "0.", "::1")) and local_ip != "::":
                return True

        return False

    def write_clipboard(self, text: str) -> None:
        if self._clipboard_owner is None:
            raise RuntimeError("No window available to own the clipboard")
        self._clipboard_owner.clipboard_clear()
        self._clipboard_owner.clipboard_append(text)
        self._clipboard_owner.update()

    def open_external(self, url: str) -> None:
        if not webbrowser.open(url, new=2):
            logger.warning(f"No browser available to open {url}")
