"""Tests for request validation."""

import pytest

from runmetrics.central.validation import (
    MetricValidationError,
    validate_metric_name,
    validate_metric_request,
    validate_metric_type,
)
from runmetrics.metrics import MetricType


def test_valid_gauge_request():
    req = validate_metric_request("gauge", "Alloc", "1024.5")
    assert req.type is MetricType.GAUGE
    assert req.name == "Alloc"
    assert req.value == 1024.5


def test_valid_counter_request():
    req = validate_metric_request("counter", "PollCount", "-3")
    assert req.type is MetricType.COUNTER
    assert req.value == -3
    assert isinstance(req.value, int)


@pytest.mark.parametrize("args, field, status", [
    (("Gauge", "x", "1"), "type", 400),
    (("invalid", "", "abc"), "type", 400),
    (("gauge", "", "abc"), "name", 404),
    (("gauge", "x", "abc"), "value", 400),
    (("counter", "x", "1.0"), "value", 400),
])
def test_first_failing_check_wins(args, field, status):
    with pytest.raises(MetricValidationError) as exc_info:
        validate_metric_request(*args)
    assert exc_info.value.field == field
    assert exc_info.value.status_code == status


def test_type_and_name_helpers():
    assert validate_metric_type("counter") is MetricType.COUNTER
    assert validate_metric_name("x") == "x"
    with pytest.raises(MetricValidationError):
        validate_metric_type("")
    with pytest.raises(MetricValidationError):
        validate_metric_name("")
