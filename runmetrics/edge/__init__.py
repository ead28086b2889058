"""
Metrics Agent - collects runtime statistics of its own process and
reports them to the metrics server over HTTP.
"""

from .agent import AgentState, MetricsAgent, run_agent
from .config import AgentConfig
from .sender import MetricsSender, SendResult
from .snapshot import Snapshot, SnapshotView

__all__ = [
    "AgentState",
    "MetricsAgent",
    "run_agent",
    "AgentConfig",
    "MetricsSender",
    "SendResult",
    "Snapshot",
    "SnapshotView",
]
