"""
Agent Collectors.

Each collector gathers metrics about the agent's host runtime.
"""

from .runtime import RUNTIME_GAUGES, RuntimeCollector

__all__ = [
    "RUNTIME_GAUGES",
    "RuntimeCollector",
]
