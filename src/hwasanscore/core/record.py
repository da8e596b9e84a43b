import logging
from dataclasses import replace
from typing import Optional

from hwasanscore.core.models import AcademicRecord, NonAcademicData, SemesterData
from hwasanscore.core.performance import DEFAULT_PERFORMANCE_SCALE, PerformanceScale
from hwasanscore.core.scoring import score_and_classify
from hwasanscore.core.semester import (
    InvalidTransitionError,
    new_semester,
    parse_semester_key,
    toggle_free_semester,
)
from hwasanscore.core.validation import validate_component, validate_non_academic


logger = logging.getLogger(__name__)


class UnknownSubjectError(ValueError):
    pass


def new_record() -> AcademicRecord:
    return AcademicRecord(semesters={}, non_academic=NonAcademicData())


def semester_for(record: AcademicRecord, key: str) -> SemesterData:
    grade, _ = parse_semester_key(key)
    existing = record.semesters.get(key)
    return existing if existing is not None else new_semester(grade)


def with_semester(record: AcademicRecord, key: str, semester: SemesterData) -> AcademicRecord:
    parse_semester_key(key)
    semesters = dict(record.semesters)
    semesters[key] = semester
    return replace(record, semesters=semesters)


def set_free_semester(record: AcademicRecord, key: str, enabled: bool) -> AcademicRecord:
    semester = semester_for(record, key)
    toggled = toggle_free_semester(semester, enabled)
    if toggled is semester and key in record.semesters:
        return record
    logger.info("Semester %s free-semester mode set to %s", key, enabled)
    return with_semester(record, key, toggled)


def update_subject(
    record: AcademicRecord,
    key: str,
    subject: str,
    field: str,
    value: Optional[float],
    *,
    scale: PerformanceScale = DEFAULT_PERFORMANCE_SCALE,
) -> AcademicRecord:
    grade, half = parse_semester_key(key)
    semester = semester_for(record, key)
    if semester.is_free_semester:
        logger.warning("Rejected edit of %s/%s: %s is a free semester", subject, field, key)
        raise InvalidTransitionError(f"{key} is a free semester; numeric inputs are disabled")

    names = [s.name for s in semester.subjects]
    if subject not in names:
        raise UnknownSubjectError(f"{subject!r} is not a subject in {key}")
    index = names.index(subject)

    try:
        cleaned = validate_component(grade, half, subject, field, value, scale=scale)
    except ValueError:
        logger.warning("Rejected edit of %s/%s in %s (value=%r)", subject, field, key, value)
        raise

    current = semester.subjects[index]
    components = replace(current.components, **{field: cleaned})
    raw_score, achievement = score_and_classify(components, grade, half, subject, scale=scale)
    updated = replace(current, components=components, raw_score=raw_score, achievement=achievement)

    subjects = semester.subjects[:index] + (updated,) + semester.subjects[index + 1:]
    return with_semester(record, key, replace(semester, subjects=subjects))


def set_non_academic(record: AcademicRecord, data: NonAcademicData) -> AcademicRecord:
    validate_non_academic(data)
    return replace(record, non_academic=data)
