"""Network probing primitives."""

from .errors import (
    ProbeError,
    ProbeTimeout,
    NetworkFailure,
    ParseFailure,
    AdapterOffline,
)
from .platform import NetworkPlatform, DesktopPlatform, FetchResponse

__all__ = [
    "ProbeError",
    "ProbeTimeout",
    "NetworkFailure",
    "ParseFailure",
    "AdapterOffline",
    "NetworkPlatform",
    "DesktopPlatform",
    "FetchResponse",
]
