"""Application configuration for the dev diagnostics tool."""

import json
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import List, Optional

from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Config:
    """Application configuration settings."""

    # Page being diagnosed; empty means ./index.html opened from disk
    page_url: str = ""

    # Local dev server probing
    local_ports: List[int] = field(default_factory=lambda: [
        5500,  # VS Code Live Server
        3000,  # create-react-app / Express
        8080,  # generic dev servers
    ])
    local_path: str = "/"
    per_port_timeout_ms: int = 2000
    cache_bust_param: str = "_dev_diag"
    concurrent_port_probes: bool = True
    max_port_workers: int = 20

    # External connectivity (public IP echo)
    external_probe_url: str = "https://api.ipify.org?format=json"
    external_timeout_ms: int = 4000

    # Network adapter supplementary ping
    adapter_probe_url: str = "https://example.com/"
    adapter_timeout_ms: int = 3000

    # Help resources offered as actions
    live_server_docs_url: str = (
        "https://marketplace.visualstudio.com/items?itemName=ritwickdey.LiveServer"
    )
    proxy_help_url: str = (
        "https://www.howtogeek.com/192640/how-to-disable-your-vpn-or-turn-it-off-on-windows-and-mac/"
    )
    network_help_url: str = "https://support.google.com/chrome/answer/95647?hl=en"

    # UI settings
    dark_mode: bool = True
    window_width: int = 520
    window_height: int = 640

    # Logging
    log_level: str = "INFO"
    max_log_entries: int = 5000

    def __post_init__(self) -> None:
        # Port probing is exhaustive over a set; keep first-seen order
        seen = []
        for port in self.local_ports:
            port = int(port)
            if not 0 < port < 65536:
                raise ValueError(f"Invalid port: {port}")
            if port not in seen:
                seen.append(port)
        self.local_ports = seen

        for name in (
            "per_port_timeout_ms", "external_timeout_ms", "adapter_timeout_ms", "max_port_workers"
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

        if not self.local_path.startswith("/"):
            self.local_path = "/" + self.local_path

    def resolved_page_url(self) -> str:
        """The page URL to diagnose, defaulting to ./index.html on disk."""
        if self.page_url:
            return self.page_url
        return (Path.cwd() / "index.html").resolve().as_uri()

    @classmethod
    def load(cls, filepath: Optional[Path] = None) -> "Config":
        """Load configuration from file, falling back to defaults."""
        if filepath is None:
            filepath = cls._default_config_path()

        if filepath.exists():
            try:
                with open(filepath, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                known = {f.name for f in fields(cls)}
                return cls(**{k: v for k, v in data.items() if k in known})
            except (json.JSONDecodeError, TypeError, ValueError) as e:
                logger.warning(f"Ignoring unreadable config {filepath}: {e}")

        return cls()

    def save(self, filepath: Optional[Path] = None) -> None:
        """Save configuration to file."""
        if filepath is None:
            filepath = self._default_config_path()

        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(asdict(self), f, indent=2)

    @staticmethod
    def _default_config_path() -> Path:
        """Get the default configuration file path."""
        return Path.home() / ".devdiag" / "config.json"
