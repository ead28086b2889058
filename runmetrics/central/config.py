"""
Metrics Server Configuration.
"""

import os
from dataclasses import dataclass
from typing import Optional

from ..errors import ConfigError

DEFAULT_ADDRESS = "localhost:8080"
DEFAULT_HOST = "0.0.0.0"


def parse_address(address: str) -> tuple[str, int]:
    """
    Split a listen address into host and port.

    Accepts ``host:port``, ``:port`` and a bare ``port``. A missing host
    means all interfaces.
    """
    if not address or not address.strip():
        raise ConfigError("address cannot be empty")

    address = address.strip()
    if ":" in address:
        host, _, port_text = address.rpartition(":")
        # [::1]:8080
        host = host.strip("[]")
    else:
        host, port_text = "", address

    if not port_text:
        raise ConfigError(f"invalid address '{address}': port cannot be empty")
    if not (port_text.isascii() and port_text.isdigit()):
        raise ConfigError(f"invalid address '{address}': port must be a number")

    port = int(port_text)
    if not 1 <= port <= 65535:
        raise ConfigError(f"invalid address '{address}': port {port} out of range 1-65535")

    return host or DEFAULT_HOST, port


@dataclass(frozen=True)
class ServerConfig:
    """Validated server configuration."""
    address: str = DEFAULT_ADDRESS
    verbose: bool = False

    @classmethod
    def from_cli(cls, address: Optional[str] = None, verbose: bool = False) -> "ServerConfig":
        """Build from flags; the ADDRESS environment variable overrides the flag."""
        env_address = os.getenv("ADDRESS")
        if env_address:
            address = env_address

        config = cls(address=address if address is not None else DEFAULT_ADDRESS, verbose=verbose)
        config.validate()
        return config

    def validate(self) -> None:
        parse_address(self.address)

    @property
    def host(self) -> str:
        return parse_address(self.address)[0]

    @property
    def port(self) -> int:
        return parse_address(self.address)[1]
