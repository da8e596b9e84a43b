import re
from dataclasses import replace
from typing import Tuple

from hwasanscore.core.bands import PASS_BAND
from hwasanscore.core.models import SemesterData, SubjectGrade, empty_components
from hwasanscore.core.rules import GRADE_LEVELS, GRADE_SUBJECTS, HALVES


_KEY_PATTERN = re.compile(r"^([1-3])학년 ([12])학기$")


class UnknownSemesterError(ValueError):
    pass


class InvalidTransitionError(Exception):
    pass


def semester_key(grade: int, half: int) -> str:
    if grade not in GRADE_LEVELS or half not in HALVES:
        raise UnknownSemesterError(f"No semester for grade {grade}, half {half}")
    return f"{grade}학년 {half}학기"


def parse_semester_key(key: str) -> Tuple[int, int]:
    match = _KEY_PATTERN.match(key or "")
    if not match:
        raise UnknownSemesterError(f"Unknown semester key: {key!r}")
    return int(match.group(1)), int(match.group(2))


SEMESTER_KEYS: Tuple[str, ...] = tuple(semester_key(grade, half) for grade in GRADE_LEVELS for half in HALVES)


def new_semester(grade: int) -> SemesterData:
    subjects = tuple(
        SubjectGrade(name=name, raw_score=0.0, achievement="A", components=empty_components(grade))
        for name in GRADE_SUBJECTS[grade]
    )
    return SemesterData(is_free_semester=False, subjects=subjects)


def toggle_free_semester(semester: SemesterData, enabled: bool) -> SemesterData:
    """
    Switch a semester between scored and free (pass/fail) mode.

    Entering free mode discards every numeric input. Leaving it resets
    subjects to a neutral A / 0.0 without restoring anything.
    """
    if semester.is_free_semester == enabled:
        return semester

    if enabled:
        subjects = tuple(
            replace(s, raw_score=None, achievement=PASS_BAND, components=type(s.components)())
            for s in semester.subjects
        )
    else:
        subjects = tuple(
            replace(s, raw_score=0.0, achievement="A", components=type(s.components)())
            for s in semester.subjects
        )
    return SemesterData(is_free_semester=enabled, subjects=subjects)
