import math
from typing import Optional

from hwasanscore.core.models import Attendance, Behavior, NonAcademicData, VOLUNTEER_TIERS, Volunteer
from hwasanscore.core.non_academic import DEFAULT_POLICY, NonAcademicPolicy
from hwasanscore.core.performance import DEFAULT_PERFORMANCE_SCALE, PerformanceScale
from hwasanscore.core.rules import PERFORMANCE_FIELDS, is_component_applicable, weights_for


EXAM_SCORE_MAX = 100.0


class InputRangeError(ValueError):
    pass


class InapplicableComponentError(InputRangeError):
    pass


def _finite(value: float, label: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InputRangeError(f"{label} must be a number, got {value!r}") from exc
    if not math.isfinite(number):
        raise InputRangeError(f"{label} must be a finite number")
    return number


def component_upper_bound(
    grade: int,
    half: int,
    subject: str,
    field: str,
    scale: PerformanceScale = DEFAULT_PERFORMANCE_SCALE,
) -> float:
    if field in PERFORMANCE_FIELDS:
        return float(scale.max_tally)
    if field == "performance":
        # Grade-1 performance is entered as points out of its share of 100.
        return round(weights_for(grade, half, subject).weight("performance") * 100, 6)
    return EXAM_SCORE_MAX


def validate_component(
    grade: int,
    half: int,
    subject: str,
    field: str,
    value: Optional[float],
    scale: PerformanceScale = DEFAULT_PERFORMANCE_SCALE,
) -> Optional[float]:
    if not is_component_applicable(grade, subject, field):
        raise InapplicableComponentError(f"{field} is not used for {subject} in grade {grade}")
    if value is None:
        return None

    number = _finite(value, field)
    upper = component_upper_bound(grade, half, subject, field, scale)
    if number < 0 or number > upper:
        raise InputRangeError(f"{field} for {subject} must be between 0 and {upper:g}, got {number:g}")
    return number


def validate_attendance(attendance: Attendance) -> None:
    for label in ("absences", "tardies", "early_leaves", "results"):
        counts = getattr(attendance, label)
        if len(counts) != 3:
            raise InputRangeError(f"{label} needs one count per grade, got {len(counts)}")
        for count in counts:
            if isinstance(count, bool) or not isinstance(count, int):
                raise InputRangeError(f"{label} counts must be whole numbers, got {count!r}")
            if count < 0:
                raise InputRangeError(f"{label} counts cannot be negative")


def validate_volunteer(volunteer: Volunteer) -> None:
    if volunteer.tier not in VOLUNTEER_TIERS:
        raise InputRangeError(f"Unsupported volunteer tier: {volunteer.tier}")
    if _finite(volunteer.hours, "Volunteer hours") < 0:
        raise InputRangeError("Volunteer hours cannot be negative")


def validate_behavior(behavior: Behavior, policy: NonAcademicPolicy = DEFAULT_POLICY) -> None:
    for grade, entry in enumerate(behavior.entries(), start=1):
        base = _finite(entry.base, f"Grade {grade} behavior base")
        extra = _finite(entry.extra, f"Grade {grade} behavior extra")
        if base < 0 or base > policy.behavior_base_max:
            raise InputRangeError(f"Grade {grade} behavior base must be between 0 and {policy.behavior_base_max:g}")
        if extra < 0 or extra > policy.behavior_extra_max:
            raise InputRangeError(f"Grade {grade} behavior extra must be between 0 and {policy.behavior_extra_max:g}")
        steps = extra / policy.behavior_extra_step
        if not math.isclose(steps, round(steps), abs_tol=1e-9):
            raise InputRangeError(f"Grade {grade} behavior extra must be a multiple of {policy.behavior_extra_step:g}")


def validate_non_academic(data: NonAcademicData, policy: NonAcademicPolicy = DEFAULT_POLICY) -> None:
    validate_attendance(data.attendance)
    validate_volunteer(data.volunteer)
    validate_behavior(data.behavior, policy)
