"""Probe registry: the fixed, ordered set of probes known to the service.

Populated once at startup (from settings and an optional probes.yaml) and
read-only afterwards, so concurrent readers need no locking.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Iterator
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from .engine import Probe
from .errors import ConfigurationError, DuplicateNameError
from .probes import dns_check, http_check, probe_from_endpoint, tcp_check

if TYPE_CHECKING:
    from healthwatch.config import Settings

logger = logging.getLogger(__name__)


class ProbeRegistry:
    """Append-only collection of uniquely named probes."""

    def __init__(self) -> None:
        self._probes: dict[str, Probe] = {}

    def register(self, probe: Probe) -> Probe:
        """Add ``probe``. Raises ``DuplicateNameError`` if the name is taken."""
        if probe.name in self._probes:
            raise DuplicateNameError(probe.name)
        self._probes[probe.name] = probe
        logger.debug("Registered probe %s (timeout=%ss)", probe.name, probe.timeout)
        return probe

    def list(self) -> list[Probe]:
        """Registered probes in registration order."""
        return list(self._probes.values())

    def get(self, name: str) -> Probe | None:
        return self._probes.get(name)

    def __len__(self) -> int:
        return len(self._probes)

    def __contains__(self, name: object) -> bool:
        return name in self._probes

    def __iter__(self) -> Iterator[Probe]:
        return iter(self.list())

    @classmethod
    def from_settings(cls, settings: Settings) -> ProbeRegistry:
        """Build the registry from ``probe_endpoints`` and ``probes_file``."""
        registry = cls()
        for endpoint in settings.probe_endpoints:
            registry.register(probe_from_endpoint(endpoint, timeout=settings.probe_timeout))

        if settings.probes_file:
            path = Path(settings.probes_file)
            if not path.is_absolute():
                path = Path.cwd() / path
            for probe in load_probes_file(path, default_timeout=settings.probe_timeout):
                registry.register(probe)

        logger.info("Probe registry loaded: %d probes", len(registry))
        return registry


# ── probes.yaml ──────────────────────────────────────────────────────────────


def load_probes_file(path: Path, default_timeout: float = 5.0) -> list[Probe]:
    """Parse a probes.yaml file.

    Format::

        probes:
          - name: api
            type: http
            url: https://api.example.com/health
          - name: db
            type: tcp
            hostname: db.internal
            port: 5432
            timeout: 2

    A missing file yields no probes; malformed entries are skipped.
    """
    if not path.exists():
        logger.warning("Probes file not found: %s", path)
        return []

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path}: expected a mapping with a 'probes' list, got {type(raw).__name__}")

    probes = []
    for entry in raw.get("probes") or []:
        try:
            probes.append(_parse_probe(entry, default_timeout))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed probe entry %r: %s", entry, e)
    return probes


def _parse_probe(raw: dict[str, Any], default_timeout: float) -> Probe:
    name = raw["name"]
    kind = raw.get("type", "http")
    timeout = float(raw.get("timeout", default_timeout))
    tags = tuple(raw.get("tags") or ()) or (kind,)

    if kind == "http":
        check = functools.partial(
            http_check, raw["url"],
            expected_status=int(raw.get("expected_status", 200)),
            timeout=timeout,
        )
    elif kind == "tcp":
        check = functools.partial(tcp_check, raw["hostname"], int(raw["port"]), timeout=timeout)
    elif kind == "dns":
        check = functools.partial(dns_check, raw["hostname"])
    else:
        raise ValueError(f"unknown probe type '{kind}'")

    return Probe(name=name, check=check, timeout=timeout, tags=tags)
