"""
runmetrics - runtime metrics agent and in-memory metrics server.
"""

__version__ = "1.0.0"
