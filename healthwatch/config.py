from __future__ import annotations

from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode

from healthwatch.health.errors import ConfigurationError


class Settings(BaseSettings):
    """Service configuration loaded from environment / .env file.

    Built once in ``main`` and passed to the app; nothing reads it globally.
    """

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "HEALTHWATCH_",
        "extra": "ignore",
    }

    # Probes: comma-separated URLs / connection strings, optional "name=" prefix
    probe_endpoints: Annotated[list[str], NoDecode] = []
    probe_timeout: float = 5.0  # seconds, per probe
    probes_file: str = ""  # optional probes.yaml

    # Server
    listen_address: str = "0.0.0.0:8000"
    api_name: str = "My API"

    # Endpoint paths
    health_path: str = "/health"
    health_info_path: str = "/health-info"
    health_ui_path: str = "/health-ui"
    monitor_path: str = "/monitor"

    # Background polling for the dashboard (0 disables)
    poll_interval: float = 10.0
    history_size: int = 50

    # Reuse a report for this many seconds (0 = probe on every request)
    cache_ttl: float = 0.0

    # Logging
    log_level: str = "INFO"

    @field_validator("probe_endpoints", mode="before")
    @classmethod
    def _split_endpoints(cls, v: object) -> object:
        if isinstance(v, str):
            return [e.strip() for e in v.split(",") if e.strip()]
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    @property
    def host(self) -> str:
        return self._split_address()[0]

    @property
    def port(self) -> int:
        return self._split_address()[1]

    def _split_address(self) -> tuple[str, int]:
        host, sep, port = self.listen_address.rpartition(":")
        if not sep or not host or not port.isdigit() or not 0 < int(port) < 65536:
            raise ConfigurationError(
                f"Invalid listen_address '{self.listen_address}': expected host:port"
            )
        return host.strip("[]"), int(port)
