from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Union


ACHIEVEMENT_BANDS: Tuple[str, ...] = ("A", "B", "C", "D", "E", "P")
VOLUNTEER_TIERS: Tuple[str, ...] = ("none", "30h", "20h", "disabled")


@dataclass(frozen=True)
class Grade1Components:
    midterm: Optional[float] = None
    final: Optional[float] = None
    performance: Optional[float] = None


@dataclass(frozen=True)
class UpperGradeComponents:
    perf_a: Optional[float] = None
    perf_b: Optional[float] = None
    perf_c: Optional[float] = None
    perf_d: Optional[float] = None
    paper_test: Optional[float] = None


Components = Union[Grade1Components, UpperGradeComponents]


def empty_components(grade: int) -> Components:
    return Grade1Components() if grade == 1 else UpperGradeComponents()


@dataclass(frozen=True)
class SubjectGrade:
    name: str
    # None means "not applicable" (free semester).
    raw_score: Optional[float] = 0.0
    achievement: str = "A"
    components: Components = field(default_factory=Grade1Components)


@dataclass(frozen=True)
class SemesterData:
    is_free_semester: bool = False
    subjects: Tuple[SubjectGrade, ...] = ()

    def subject(self, name: str) -> Optional[SubjectGrade]:
        for subject in self.subjects:
            if subject.name == name:
                return subject
        return None


@dataclass(frozen=True)
class Attendance:
    absences: Tuple[int, int, int] = (0, 0, 0)
    tardies: Tuple[int, int, int] = (0, 0, 0)
    early_leaves: Tuple[int, int, int] = (0, 0, 0)
    results: Tuple[int, int, int] = (0, 0, 0)


@dataclass(frozen=True)
class Volunteer:
    hours: float = 0.0
    tier: str = "none"


@dataclass(frozen=True)
class BehaviorEntry:
    base: float = 3.0
    extra: float = 0.0


@dataclass(frozen=True)
class Behavior:
    grade1: BehaviorEntry = field(default_factory=BehaviorEntry)
    grade2: BehaviorEntry = field(default_factory=BehaviorEntry)
    grade3: BehaviorEntry = field(default_factory=BehaviorEntry)

    def entries(self) -> Tuple[BehaviorEntry, BehaviorEntry, BehaviorEntry]:
        return (self.grade1, self.grade2, self.grade3)


@dataclass(frozen=True)
class NonAcademicData:
    attendance: Attendance = field(default_factory=Attendance)
    volunteer: Volunteer = field(default_factory=Volunteer)
    behavior: Behavior = field(default_factory=Behavior)


@dataclass(frozen=True)
class AcademicRecord:
    semesters: Dict[str, SemesterData] = field(default_factory=dict)
    non_academic: NonAcademicData = field(default_factory=NonAcademicData)
