"""Probe failure taxonomy.

Every probe failure is recovered at the check that produced it; these types
only carry the failure kind and message into the CheckResult.
"""


class ProbeError(Exception):
    """Base class for a failed probe."""

    kind = "error"


class ProbeTimeout(ProbeError):
    """The probe's bounded wait elapsed."""

    kind = "timeout"


class NetworkFailure(ProbeError):
    """Connection refused/reset, DNS failure or similar."""

    kind = "network"


class ParseFailure(ProbeError):
    """The response body did not have the expected shape."""

    kind = "parse"


class AdapterOffline(ProbeError):
    """The host reports no usable network connection."""

    kind = "offline"
