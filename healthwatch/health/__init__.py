"""Health subsystem: probes, registry, aggregator, reporter, scheduler."""

from .aggregator import Aggregator
from .engine import HealthStatus, Probe, ProbeResult, Report, worst_status
from .errors import (
    ConfigurationError,
    DuplicateNameError,
    HealthwatchError,
    ProbeExecutionError,
    ProbeTimeoutError,
    SerializationError,
)
from .registry import ProbeRegistry
from .scheduler import HealthHistory, HealthScheduler

__all__ = [
    "Aggregator",
    "ConfigurationError",
    "DuplicateNameError",
    "HealthHistory",
    "HealthScheduler",
    "HealthStatus",
    "HealthwatchError",
    "Probe",
    "ProbeExecutionError",
    "ProbeRegistry",
    "ProbeResult",
    "ProbeTimeoutError",
    "Report",
    "SerializationError",
    "worst_status",
]
