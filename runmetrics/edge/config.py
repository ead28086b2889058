"""
Agent Configuration.
"""

import os
from dataclasses import dataclass, fields, replace
from typing import Optional
import yaml

from ..errors import ConfigError

DEFAULT_SERVER_URL = "http://localhost:8080"
DEFAULT_POLL_INTERVAL = 2
DEFAULT_REPORT_INTERVAL = 10
DEFAULT_HTTP_TIMEOUT = 10
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY = 0.1


@dataclass(frozen=True)
class AgentConfig:
    """Validated agent configuration. Intervals are in seconds."""
    server_url: str = DEFAULT_SERVER_URL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    report_interval: float = DEFAULT_REPORT_INTERVAL

    # HTTP client
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    use_json: bool = False

    verbose: bool = False

    @property
    def base_url(self) -> str:
        """Server URL with a scheme and without a trailing slash."""
        url = self.server_url.strip()
        if not url.startswith(("http://", "https://")):
            url = "http://" + url
        return url.rstrip('/')

    def validate(self) -> None:
        """Raise ConfigError if any setting is unusable."""
        if not self.server_url or not self.server_url.strip():
            raise ConfigError("server URL cannot be empty")
        if self.poll_interval <= 0:
            raise ConfigError("poll interval must be positive")
        if self.report_interval <= 0:
            raise ConfigError("report interval must be positive")
        if self.http_timeout <= 0:
            raise ConfigError("HTTP timeout must be positive")
        if self.max_retries < 1:
            raise ConfigError("max retries must be at least 1")
        if self.retry_delay < 0:
            raise ConfigError("retry delay cannot be negative")

    def with_env(self) -> "AgentConfig":
        """Apply ADDRESS, POLL_INTERVAL and REPORT_INTERVAL overrides."""
        overrides = {}

        if os.getenv("ADDRESS"):
            overrides["server_url"] = os.getenv("ADDRESS")
        if os.getenv("POLL_INTERVAL"):
            overrides["poll_interval"] = _env_seconds("POLL_INTERVAL")
        if os.getenv("REPORT_INTERVAL"):
            overrides["report_interval"] = _env_seconds("REPORT_INTERVAL")

        return replace(self, **overrides)

    @classmethod
    def from_cli(
        cls,
        address: Optional[str] = None,
        poll_interval: Optional[int] = None,
        report_interval: Optional[int] = None,
        verbose: bool = False,
        use_json: bool = False,
        base: Optional["AgentConfig"] = None,
    ) -> "AgentConfig":
        """Build from flags, then environment overrides, then validate."""
        config = base or cls()

        flags = {"verbose": verbose or config.verbose, "use_json": use_json or config.use_json}
        if address is not None:
            flags["server_url"] = address
        if poll_interval is not None:
            flags["poll_interval"] = poll_interval
        if report_interval is not None:
            flags["report_interval"] = report_interval

        config = replace(config, **flags).with_env()
        config.validate()
        return config

    @classmethod
    def from_yaml(cls, path: str) -> "AgentConfig":
        """Load configuration from YAML file."""
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping at the top level")
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "AgentConfig":
        """Create config from dictionary; unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"unknown configuration keys: {', '.join(sorted(unknown))}")
        return cls(**data)


def _env_seconds(key: str) -> int:
    value = os.getenv(key, "")
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{key} must be an integer number of seconds, got {value!r}") from None
