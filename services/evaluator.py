"""Threshold classification for sensor readings."""

from __future__ import annotations

from dataclasses import dataclass

from models.records import SensorReading, ThresholdConfig


@dataclass(frozen=True)
class ThresholdEvaluation:
    """Which metrics of a reading fall outside the configured ranges."""

    temp_alert: bool = False
    hum_alert: bool = False

    @property
    def has_alert(self) -> bool:
        return self.temp_alert or self.hum_alert


class ThresholdEvaluator:
    """Pure classification component that can be unit tested in isolation."""

    def evaluate(self, reading: SensorReading, config: ThresholdConfig) -> ThresholdEvaluation:
        temperature = reading.temperature
        humidity = reading.humidity
        return ThresholdEvaluation(
            temp_alert=temperature < config.temp_min or temperature > config.temp_max,
            hum_alert=humidity < config.hum_min or humidity > config.hum_max,
        )
