from typing import Any, Dict, Optional

from hwasanscore.core.bands import PASS_BAND
from hwasanscore.core.models import (
    AcademicRecord,
    Attendance,
    Behavior,
    BehaviorEntry,
    Components,
    Grade1Components,
    NonAcademicData,
    SemesterData,
    SubjectGrade,
    UpperGradeComponents,
    Volunteer,
)
from hwasanscore.core.rules import GRADE_SUBJECTS
from hwasanscore.core.semester import parse_semester_key


NOT_APPLICABLE = "-"

# Blob keys follow the host app's stored profile format.
_COMPONENT_KEYS: Dict[str, str] = {
    "midterm": "midterm",
    "final": "final",
    "performance": "performance",
    "perf_a": "perfA",
    "perf_b": "perfB",
    "perf_c": "perfC",
    "perf_d": "perfD",
    "paper_test": "paperTest",
}
_ATTENDANCE_KEYS: Dict[str, str] = {
    "absences": "absences",
    "tardies": "tardies",
    "early_leaves": "earlyLeaves",
    "results": "results",
}


class SerializationError(ValueError):
    pass


def _components_to_dict(components: Components) -> Dict[str, float]:
    payload: Dict[str, float] = {}
    for attr, key in _COMPONENT_KEYS.items():
        value = getattr(components, attr, None)
        if value is not None:
            payload[key] = value
    return payload


def _components_from_dict(grade: int, data: Dict[str, Any]) -> Components:
    variant = Grade1Components if grade == 1 else UpperGradeComponents
    values: Dict[str, Optional[float]] = {}
    for attr in variant.__dataclass_fields__:
        raw = data.get(_COMPONENT_KEYS[attr])
        values[attr] = None if raw is None else float(raw)
    return variant(**values)


def subject_to_dict(subject: SubjectGrade) -> Dict[str, Any]:
    return {
        "name": subject.name,
        "rawScore": NOT_APPLICABLE if subject.raw_score is None else subject.raw_score,
        "achievement": subject.achievement,
        **_components_to_dict(subject.components),
    }


def semester_to_dict(semester: SemesterData) -> Dict[str, Any]:
    return {
        "isFreeSemester": semester.is_free_semester,
        "subjects": [subject_to_dict(s) for s in semester.subjects],
    }


def non_academic_to_dict(data: NonAcademicData) -> Dict[str, Any]:
    attendance = data.attendance
    return {
        "attendance": {key: list(getattr(attendance, attr)) for attr, key in _ATTENDANCE_KEYS.items()},
        "volunteer": {"hours": data.volunteer.hours, "specialCase": data.volunteer.tier},
        "behavior": {
            name: {"base": entry.base, "extra": entry.extra}
            for name, entry in zip(("grade1", "grade2", "grade3"), data.behavior.entries())
        },
    }


def record_to_dict(record: AcademicRecord) -> Dict[str, Any]:
    return {
        "semesters": {key: semester_to_dict(semester) for key, semester in record.semesters.items()},
        "nonAcademic": non_academic_to_dict(record.non_academic),
    }


def _subject_from_dict(grade: int, data: Dict[str, Any]) -> SubjectGrade:
    raw = data.get("rawScore", 0.0)
    return SubjectGrade(
        name=str(data["name"]),
        raw_score=None if raw == NOT_APPLICABLE or raw is None else float(raw),
        achievement=str(data.get("achievement", "A")),
        components=_components_from_dict(grade, data),
    )


def semester_from_dict(key: str, data: Dict[str, Any]) -> SemesterData:
    grade, _ = parse_semester_key(key)
    semester = SemesterData(
        is_free_semester=bool(data.get("isFreeSemester", False)),
        subjects=tuple(_subject_from_dict(grade, s) for s in data.get("subjects", [])),
    )

    names = tuple(s.name for s in semester.subjects)
    if names != GRADE_SUBJECTS[grade]:
        raise SerializationError(f"{key} must list {', '.join(GRADE_SUBJECTS[grade])} in order, got {list(names)}")
    if semester.is_free_semester:
        for subject in semester.subjects:
            cleared = subject.components == type(subject.components)()
            if subject.achievement != PASS_BAND or subject.raw_score is not None or not cleared:
                raise SerializationError(f"{key} is a free semester but {subject.name} still carries a score")
    return semester


def non_academic_from_dict(data: Dict[str, Any]) -> NonAcademicData:
    attendance = data.get("attendance", {})
    volunteer = data.get("volunteer", {})
    behavior = data.get("behavior", {})
    return NonAcademicData(
        attendance=Attendance(
            **{attr: tuple(int(n) for n in attendance.get(key, (0, 0, 0))) for attr, key in _ATTENDANCE_KEYS.items()}
        ),
        volunteer=Volunteer(
            hours=float(volunteer.get("hours", 0.0)),
            tier=str(volunteer.get("specialCase", "none")),
        ),
        behavior=Behavior(
            **{
                name: BehaviorEntry(
                    base=float(behavior.get(name, {}).get("base", 3.0)),
                    extra=float(behavior.get(name, {}).get("extra", 0.0)),
                )
                for name in ("grade1", "grade2", "grade3")
            }
        ),
    )


def record_from_dict(data: Dict[str, Any]) -> AcademicRecord:
    try:
        semesters = {key: semester_from_dict(key, value) for key, value in data.get("semesters", {}).items()}
        non_academic = non_academic_from_dict(data.get("nonAcademic", {}))
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise SerializationError(f"Malformed academic record: {exc}") from exc
    return AcademicRecord(semesters=semesters, non_academic=non_academic)
