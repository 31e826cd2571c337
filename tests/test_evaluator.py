"""Unit tests for the threshold classification logic."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from models.records import SensorReading, ThresholdConfig
from services.evaluator import ThresholdEvaluator


def _reading(temperature: float, humidity: float) -> SensorReading:
    """Helper to build deterministic sensor readings."""

    return SensorReading(
        sensor_id="ESP-TEST",
        timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
        temperature=temperature,
        humidity=humidity,
    )


CONFIG = ThresholdConfig(temp_min=18.0, temp_max=27.0, hum_min=40.0, hum_max=70.0)


def test_reading_within_ranges_has_no_alert() -> None:
    evaluation = ThresholdEvaluator().evaluate(_reading(22.0, 55.0), CONFIG)

    assert evaluation.temp_alert is False
    assert evaluation.hum_alert is False
    assert evaluation.has_alert is False


@pytest.mark.parametrize("temperature", [17.9, 27.1, -5.0, 45.0])
def test_temperature_outside_range_raises_temp_alert(temperature: float) -> None:
    evaluation = ThresholdEvaluator().evaluate(_reading(temperature, 55.0), CONFIG)

    assert evaluation.temp_alert is True
    assert evaluation.hum_alert is False
    assert evaluation.has_alert is True


@pytest.mark.parametrize("humidity", [39.9, 70.1])
def test_humidity_outside_range_raises_hum_alert(humidity: float) -> None:
    evaluation = ThresholdEvaluator().evaluate(_reading(22.0, humidity), CONFIG)

    assert evaluation.temp_alert is False
    assert evaluation.hum_alert is True
    assert evaluation.has_alert is True


def test_bounds_are_inclusive() -> None:
    evaluator = ThresholdEvaluator()

    assert evaluator.evaluate(_reading(18.0, 40.0), CONFIG).has_alert is False
    assert evaluator.evaluate(_reading(27.0, 70.0), CONFIG).has_alert is False


def test_both_metrics_can_alert_together() -> None:
    evaluation = ThresholdEvaluator().evaluate(_reading(30.0, 85.0), CONFIG)

    assert evaluation.temp_alert is True
    assert evaluation.hum_alert is True
