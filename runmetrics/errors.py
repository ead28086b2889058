"""Exception types shared by the agent and the server."""


class RunMetricsError(Exception):
    """Base class for runmetrics errors."""


class ConfigError(RunMetricsError):
    """Raised when configuration is invalid. Fatal at startup."""
