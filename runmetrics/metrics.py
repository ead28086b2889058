"""
Metric model and wire codec.

Two metric kinds exist: a gauge carries a float that replaces the stored
value, a counter carries an integer delta that is added to it. The text
forms below are the ones used in URL paths and plain-text responses.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

_FLOAT_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)


class MetricType(str, Enum):
    """Metric kinds. Values are the literals used on the wire."""
    GAUGE = "gauge"
    COUNTER = "counter"


@dataclass(frozen=True)
class Gauge:
    """A gauge reading."""
    name: str
    value: float

    type = MetricType.GAUGE

    @property
    def wire_value(self) -> str:
        return format_gauge(self.value)


@dataclass(frozen=True)
class Counter:
    """A counter increment."""
    name: str
    delta: int

    type = MetricType.COUNTER

    @property
    def wire_value(self) -> str:
        return format_counter(self.delta)


Metric = Union[Gauge, Counter]


class MetricJSON(BaseModel):
    """JSON form of a metric, used by the ``/update`` and ``/value`` endpoints.

    ``delta`` is set for counters and ``value`` for gauges; the other one is
    left out when serialized.
    """
    id: str
    type: str
    delta: Optional[int] = Field(default=None, ge=INT64_MIN, le=INT64_MAX)
    value: Optional[float] = None

    @classmethod
    def from_metric(cls, metric: Metric) -> "MetricJSON":
        if isinstance(metric, Gauge):
            return cls(id=metric.name, type=MetricType.GAUGE.value, value=metric.value)
        return cls(id=metric.name, type=MetricType.COUNTER.value, delta=metric.delta)


def wrap_int64(value: int) -> int:
    """Wrap an arbitrary int into the signed 64-bit range."""
    return ((value - INT64_MIN) % 2 ** 64) + INT64_MIN


def parse_gauge(text: str) -> float:
    """Parse a decimal float. Non-finite values are rejected."""
    if not _FLOAT_RE.fullmatch(text):
        raise ValueError(f"not a decimal number: {text!r}")
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"value out of range: {text!r}")
    return value


def parse_counter(text: str) -> int:
    """Parse a signed base-10 integer that fits 64 bits."""
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"not an integer: {text!r}")
    value = int(text)
    if not INT64_MIN <= value <= INT64_MAX:
        raise ValueError(f"integer out of 64-bit range: {text!r}")
    return value


def format_gauge(value: float) -> str:
    """Shortest text that parses back to the same float, without a trailing ``.0``."""
    text = repr(float(value))
    if text.endswith(".0"):
        text = text[:-2]
    return text


def format_counter(value: int) -> str:
    return str(int(value))
