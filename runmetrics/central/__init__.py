"""
Metrics Server - in-memory metric storage behind an HTTP API.
"""

from .config import ServerConfig, parse_address
from .ingest_api import create_app, run_server
from .store import MetricStore

__all__ = ["ServerConfig", "parse_address", "create_app", "run_server", "MetricStore"]
