import math
from dataclasses import dataclass, field
from typing import Dict, FrozenSet

from hwasanscore.core.models import Attendance, Behavior, NonAcademicData, Volunteer
from hwasanscore.core.rounding import round_half_up
from hwasanscore.core.rules import RuleConfigurationError


NON_ACADEMIC_CEILING = 60.0
LATENESS_CATEGORIES: FrozenSet[str] = frozenset({"tardies", "early_leaves", "results"})


@dataclass(frozen=True)
class NonAcademicPolicy:
    """
    Point allocation for the non-academic score.

    Attendance is scored per grade from a ceiling of
    `attendance_ceiling_per_grade`, floored at 0. Each absence deducts
    `deduction_per_absence`. Lateness categories named in `pooled_lateness`
    are summed and every `lateness_per_absence` of them count as one absence;
    a lateness category left out of the pool deducts like an absence.
    """

    attendance_points: float = 30.0
    volunteer_points: float = 15.0
    behavior_points: float = 15.0

    attendance_ceiling_per_grade: float = 10.0
    deduction_per_absence: float = 1.0
    lateness_per_absence: int = 3
    pooled_lateness: FrozenSet[str] = LATENESS_CATEGORIES

    volunteer_hour_ceilings: Dict[str, float] = field(
        default_factory=lambda: {"none": 30.0, "30h": 30.0, "20h": 20.0}
    )
    full_marks_tiers: FrozenSet[str] = frozenset({"disabled"})

    behavior_base_max: float = 3.0
    behavior_extra_max: float = 2.0
    behavior_extra_step: float = 0.5

    def __post_init__(self) -> None:
        total = self.attendance_points + self.volunteer_points + self.behavior_points
        if not math.isclose(total, NON_ACADEMIC_CEILING):
            raise RuleConfigurationError(f"Non-academic allocation sums to {total:g}, expected {NON_ACADEMIC_CEILING:g}")
        if self.attendance_ceiling_per_grade <= 0 or self.lateness_per_absence <= 0:
            raise RuleConfigurationError("Attendance ceiling and lateness conversion must be positive")
        if not self.pooled_lateness <= LATENESS_CATEGORIES:
            raise RuleConfigurationError(f"Unknown lateness categories: {sorted(self.pooled_lateness - LATENESS_CATEGORIES)}")
        if any(hours <= 0 for hours in self.volunteer_hour_ceilings.values()):
            raise RuleConfigurationError("Volunteer hour ceilings must be positive")
        if self.behavior_base_max + self.behavior_extra_max <= 0:
            raise RuleConfigurationError("Behavior maximum must be positive")


DEFAULT_POLICY = NonAcademicPolicy()


@dataclass(frozen=True)
class NonAcademicBreakdown:
    attendance: float
    volunteer: float
    behavior: float
    total: float


def attendance_grade_score(
    absences: int,
    tardies: int,
    early_leaves: int,
    results: int,
    policy: NonAcademicPolicy = DEFAULT_POLICY,
) -> float:
    counts = {"tardies": tardies, "early_leaves": early_leaves, "results": results}
    pooled = sum(n for name, n in counts.items() if name in policy.pooled_lateness)
    direct = sum(n for name, n in counts.items() if name not in policy.pooled_lateness)
    absence_equivalents = absences + direct + pooled // policy.lateness_per_absence
    return max(0.0, policy.attendance_ceiling_per_grade - absence_equivalents * policy.deduction_per_absence)


def attendance_score(attendance: Attendance, policy: NonAcademicPolicy = DEFAULT_POLICY) -> float:
    earned = 0.0
    for absences, tardies, early_leaves, results in zip(
        attendance.absences, attendance.tardies, attendance.early_leaves, attendance.results
    ):
        earned += attendance_grade_score(absences, tardies, early_leaves, results, policy)
    maximum = policy.attendance_ceiling_per_grade * 3
    return earned * policy.attendance_points / maximum


def volunteer_score(volunteer: Volunteer, policy: NonAcademicPolicy = DEFAULT_POLICY) -> float:
    if volunteer.tier in policy.full_marks_tiers:
        return policy.volunteer_points
    try:
        ceiling = policy.volunteer_hour_ceilings[volunteer.tier]
    except KeyError as exc:
        raise ValueError(f"Unsupported volunteer tier: {volunteer.tier}") from exc
    hours = max(0.0, min(float(volunteer.hours), ceiling))
    return hours * policy.volunteer_points / ceiling


def behavior_score(behavior: Behavior, policy: NonAcademicPolicy = DEFAULT_POLICY) -> float:
    earned = 0.0
    for entry in behavior.entries():
        earned += min(entry.base, policy.behavior_base_max) + min(entry.extra, policy.behavior_extra_max)
    maximum = (policy.behavior_base_max + policy.behavior_extra_max) * 3
    return earned * policy.behavior_points / maximum


def non_academic_breakdown(data: NonAcademicData, policy: NonAcademicPolicy = DEFAULT_POLICY) -> NonAcademicBreakdown:
    attendance = attendance_score(data.attendance, policy)
    volunteer = volunteer_score(data.volunteer, policy)
    behavior = behavior_score(data.behavior, policy)
    total = min(NON_ACADEMIC_CEILING, attendance + volunteer + behavior)
    return NonAcademicBreakdown(
        attendance=round_half_up(attendance, 2),
        volunteer=round_half_up(volunteer, 2),
        behavior=round_half_up(behavior, 2),
        total=round_half_up(total, 2),
    )


def non_academic_score(data: NonAcademicData, policy: NonAcademicPolicy = DEFAULT_POLICY) -> float:
    return non_academic_breakdown(data, policy).total
