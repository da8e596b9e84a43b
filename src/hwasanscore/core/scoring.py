from typing import Tuple

from hwasanscore.core.bands import classify
from hwasanscore.core.models import Components, Grade1Components, UpperGradeComponents
from hwasanscore.core.performance import DEFAULT_PERFORMANCE_SCALE, PerformanceScale, normalize_performance
from hwasanscore.core.rounding import round_half_up
from hwasanscore.core.rules import PERFORMANCE_FIELDS, category_for, weights_for


def _expected_variant(grade: int) -> type:
    return Grade1Components if grade == 1 else UpperGradeComponents


def _value(components: Components, name: str) -> float:
    value = getattr(components, name)
    return 0.0 if value is None else float(value)


def score_subject(
    components: Components,
    grade: int,
    half: int,
    subject: str,
    *,
    scale: PerformanceScale = DEFAULT_PERFORMANCE_SCALE,
) -> float:
    expected = _expected_variant(grade)
    if not isinstance(components, expected):
        raise TypeError(f"Grade {grade} expects {expected.__name__}, got {type(components).__name__}")

    formula = weights_for(grade, half, subject)

    # Only the formula's terms are read; disabled fields never reach the sum.
    total = 0.0
    for name, weight in formula.weights:
        value = _value(components, name)
        if name == "performance":
            total += value
        elif name in PERFORMANCE_FIELDS:
            total += normalize_performance(value, scale) * weight
        else:
            total += value * weight

    return round_half_up(max(0.0, min(total, 100.0)), 1)


def score_and_classify(
    components: Components,
    grade: int,
    half: int,
    subject: str,
    *,
    scale: PerformanceScale = DEFAULT_PERFORMANCE_SCALE,
) -> Tuple[float, str]:
    raw_score = score_subject(components, grade, half, subject, scale=scale)
    return raw_score, classify(raw_score, category_for(subject))
