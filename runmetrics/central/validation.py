"""Validation of metric update and read requests."""

from dataclasses import dataclass
from typing import Union

from ..metrics import MetricType, parse_counter, parse_gauge


class MetricValidationError(ValueError):
    """A request field failed validation.

    ``status_code`` is the HTTP status the failure maps to: a missing name
    is reported as 404, everything else as 400.
    """

    def __init__(self, field: str, value: str, message: str, status_code: int = 400):
        self.field = field
        self.value = value
        self.message = message
        self.status_code = status_code
        super().__init__(f"invalid {field} {value!r}: {message}")


@dataclass
class MetricRequest:
    """A validated update request."""
    type: MetricType
    name: str
    value: Union[float, int]


def validate_metric_type(metric_type: str) -> MetricType:
    try:
        return MetricType(metric_type)
    except ValueError:
        raise MetricValidationError("type", metric_type, "must be 'gauge' or 'counter'") from None


def validate_metric_name(name: str) -> str:
    if not name:
        raise MetricValidationError("name", name, "cannot be empty", status_code=404)
    return name


def validate_metric_request(metric_type: str, name: str, value: str) -> MetricRequest:
    """Check type, then name, then value. The first failure wins."""
    kind = validate_metric_type(metric_type)
    validate_metric_name(name)

    try:
        if kind is MetricType.GAUGE:
            parsed: Union[float, int] = parse_gauge(value)
        else:
            parsed = parse_counter(value)
    except ValueError:
        expected = "a valid float number" if kind is MetricType.GAUGE else "a valid integer number"
        raise MetricValidationError("value", value, f"must be {expected}") from None

    return MetricRequest(type=kind, name=name, value=parsed)
