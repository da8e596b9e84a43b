from dataclasses import dataclass

from hwasanscore.core.models import AcademicRecord, SemesterData
from hwasanscore.core.non_academic import NON_ACADEMIC_CEILING, non_academic_score
from hwasanscore.core.rounding import round_half_up
from hwasanscore.core.semester import SEMESTER_KEYS


ACADEMIC_CEILING = 240.0
COMPOSITE_CEILING = ACADEMIC_CEILING + NON_ACADEMIC_CEILING
SEMESTER_SHARE = ACADEMIC_CEILING / len(SEMESTER_KEYS)


@dataclass(frozen=True)
class ScoreSummary:
    academic: float
    non_academic: float
    total: float
    progress_percent: float


def semester_points(semester: SemesterData) -> float:
    # Free semesters are pass/fail and add nothing to the academic ceiling.
    if semester.is_free_semester or not semester.subjects:
        return 0.0
    scored = sum(s.raw_score for s in semester.subjects if s.raw_score is not None)
    return SEMESTER_SHARE * (scored / len(semester.subjects)) / 100


def _academic_points(record: AcademicRecord) -> float:
    return sum(semester_points(record.semesters[key]) for key in SEMESTER_KEYS if key in record.semesters)


def academic_score(record: AcademicRecord) -> float:
    return round_half_up(_academic_points(record), 2)


def total_score(record: AcademicRecord) -> float:
    non_academic = min(NON_ACADEMIC_CEILING, non_academic_score(record.non_academic))
    return round_half_up(_academic_points(record) + non_academic, 2)


def score_summary(record: AcademicRecord) -> ScoreSummary:
    total = total_score(record)
    return ScoreSummary(
        academic=academic_score(record),
        non_academic=non_academic_score(record.non_academic),
        total=total,
        progress_percent=round_half_up(total / COMPOSITE_CEILING * 100, 1),
    )
