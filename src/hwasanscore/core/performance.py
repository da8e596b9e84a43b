from dataclasses import dataclass
from typing import Tuple

from hwasanscore.core.rules import RuleConfigurationError


@dataclass(frozen=True)
class PerformanceScale:
    """
    Maps a performance-assessment tally (0..max_tally) onto 0..100.

    Without steps the mapping is linear. With steps it is banded: each
    (min_tally, value) pair holds from min_tally up to the next step.
    """

    max_tally: int = 8
    steps: Tuple[Tuple[float, float], ...] = ()

    def __post_init__(self) -> None:
        if self.max_tally <= 0:
            raise RuleConfigurationError("max_tally must be greater than 0")
        if not self.steps:
            return
        if self.steps[0] != (0, 0):
            raise RuleConfigurationError("Banded performance scale must start at (0, 0)")
        for (low_tally, low_value), (high_tally, high_value) in zip(self.steps, self.steps[1:]):
            if high_tally <= low_tally or high_value < low_value:
                raise RuleConfigurationError("Banded performance steps must rise with the tally")
        last_tally, last_value = self.steps[-1]
        if last_tally > self.max_tally or last_value != 100:
            raise RuleConfigurationError("Banded performance scale must reach 100 by max_tally")


DEFAULT_PERFORMANCE_SCALE = PerformanceScale(max_tally=8)


def normalize_performance(tally: float, scale: PerformanceScale = DEFAULT_PERFORMANCE_SCALE) -> float:
    clamped = max(0.0, min(float(tally), float(scale.max_tally)))
    if not scale.steps:
        return (clamped / scale.max_tally) * 100

    value = 0.0
    for min_tally, points in scale.steps:
        if clamped >= min_tally:
            value = float(points)
    return value
