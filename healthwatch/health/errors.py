"""Error hierarchy for the health subsystem.

Probe errors are never fatal: the aggregator turns them into Unhealthy
entries. Configuration errors (duplicate names, bad endpoints) abort startup.
"""

from __future__ import annotations


class HealthwatchError(Exception):
    """Base class for all healthwatch errors."""


class ConfigurationError(HealthwatchError):
    """Raised when settings or the probes file cannot be turned into probes."""


class DuplicateNameError(ConfigurationError):
    """Raised when a probe is registered under a name that is already taken."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Probe '{name}' is already registered")


class ProbeError(HealthwatchError):
    """A single probe failed to produce a result."""

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        self.message = message
        super().__init__(f"Probe '{name}': {message}")


class ProbeTimeoutError(ProbeError):
    """The probe did not finish within its deadline."""

    def __init__(self, name: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(name, f"Timed out after {timeout:g}s")


class ProbeExecutionError(ProbeError):
    """The probe's check raised or returned something that is not a ProbeResult."""

    def __init__(self, name: str, cause: BaseException | str) -> None:
        self.cause = cause
        if isinstance(cause, BaseException):
            message = str(cause) or type(cause).__name__
        else:
            message = cause
        super().__init__(name, message)


class SerializationError(HealthwatchError):
    """A report could not be encoded for a consumer."""
