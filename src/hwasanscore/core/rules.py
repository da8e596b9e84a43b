import logging
import math
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Tuple


logger = logging.getLogger(__name__)

RULESET_VERSION = "hwasan-2024.1"

GRADE_LEVELS: Tuple[int, ...] = (1, 2, 3)
HALVES: Tuple[int, ...] = (1, 2)

GRADE_1_FIELDS: Tuple[str, ...] = ("midterm", "final", "performance")
PERFORMANCE_FIELDS: Tuple[str, ...] = ("perf_a", "perf_b", "perf_c", "perf_d")
UPPER_GRADE_FIELDS: Tuple[str, ...] = PERFORMANCE_FIELDS + ("paper_test",)

GRADE_SUBJECTS: Dict[int, Tuple[str, ...]] = {
    1: ("국어", "수학", "영어", "과학", "사회", "기가", "도덕", "한문", "미술", "음악", "체육"),
    2: ("국어", "수학", "영어", "과학", "역사", "기가", "도덕", "정보", "미술", "음악", "체육"),
    3: ("국어", "수학", "영어", "과학", "역사", "사회", "기가", "한문", "미술", "음악", "체육"),
}

_GRADE_1_MIDTERM = ("국어", "수학", "영어", "과학", "사회", "기가", "도덕")
_PAPER_TEST = ("국어", "수학", "영어", "과학", "역사", "기가")

# Which subjects sit each written exam. The disabled-field predicate and the
# reduced weight formulas are both derived from this table.
EXAM_SITTINGS: Dict[int, Dict[str, FrozenSet[str]]] = {
    1: {
        "midterm": frozenset(_GRADE_1_MIDTERM),
        "final": frozenset(_GRADE_1_MIDTERM + ("한문",)),
    },
    2: {"paper_test": frozenset(_PAPER_TEST)},
    3: {"paper_test": frozenset(_PAPER_TEST)},
}

PRACTICAL_SUBJECTS: FrozenSet[str] = frozenset({"미술", "음악", "체육"})

STANDARD = "standard"
PRACTICAL = "practical"

BAND_ORDER: Tuple[str, ...] = ("E", "D", "C", "B", "A")


class RuleConfigurationError(Exception):
    pass


@dataclass(frozen=True)
class WeightFormula:
    name: str
    weights: Tuple[Tuple[str, float], ...]

    @property
    def components(self) -> Tuple[str, ...]:
        return tuple(component for component, _ in self.weights)

    @property
    def total(self) -> float:
        return sum(weight for _, weight in self.weights)

    def weight(self, component: str) -> float:
        return dict(self.weights).get(component, 0.0)

    def without(self, disabled: Iterable[str], absorb: Optional[str] = None) -> "WeightFormula":
        """
        Drop disabled terms. Their weight goes to `absorb` when given,
        otherwise it is spread over the kept terms in proportion.
        """
        removed = set(disabled) & set(self.components)
        if not removed:
            return self

        freed = sum(weight for component, weight in self.weights if component in removed)
        kept = [(component, weight) for component, weight in self.weights if component not in removed]
        kept_total = sum(weight for _, weight in kept)
        if kept_total <= 0:
            raise RuleConfigurationError(f"Formula {self.name} has no weight left after removing {sorted(removed)}")

        if absorb is not None:
            if absorb not in dict(kept):
                raise RuleConfigurationError(f"Formula {self.name} cannot absorb freed weight into {absorb}")
            weights = tuple((c, w + freed if c == absorb else w) for c, w in kept)
        else:
            weights = tuple((c, w / kept_total) for c, w in kept)
        return WeightFormula(name=f"{self.name}-reduced", weights=weights)


@dataclass(frozen=True)
class Thresholds:
    category: str
    # (minimum score, band), best band first; the last entry starts at 0.
    cutoffs: Tuple[Tuple[float, str], ...]

    @property
    def bands(self) -> Tuple[str, ...]:
        return tuple(band for _, band in self.cutoffs)


def _upper(name: str, a: float, b: float, c: float, d: float, paper: float = 0.0) -> WeightFormula:
    weights = (("perf_a", a), ("perf_b", b), ("perf_c", c), ("perf_d", d))
    if paper:
        weights += (("paper_test", paper),)
    return WeightFormula(name=name, weights=weights)


GRADE_1_BASE = WeightFormula(
    name="g1-exam",
    weights=(("midterm", 0.3), ("final", 0.3), ("performance", 0.4)),
)

EVEN_SPLIT = _upper("even-split", 0.2, 0.2, 0.2, 0.2, 0.2)
SCIENCE = _upper("science", 0.18, 0.17, 0.18, 0.17, 0.3)
ENGLISH_FIRST_HALF = _upper("english-1st", 0.1, 0.1, 0.25, 0.25, 0.3)
ENGLISH_SECOND_HALF = _upper("english-2nd", 0.1, 0.2, 0.2, 0.2, 0.3)
TECH_HOME_EC = _upper("tech-home-ec", 0.2, 0.1, 0.1, 0.3, 0.3)
SOCIAL_STUDIES = _upper("social-studies", 0.15, 0.15, 0.2, 0.2, 0.3)
MUSIC = _upper("music", 0.2, 0.3, 0.2, 0.3)
PERFORMANCE_ONLY = _upper("performance-only", 0.25, 0.25, 0.25, 0.25)

STANDARD_THRESHOLDS = Thresholds(
    category=STANDARD,
    cutoffs=((90.0, "A"), (80.0, "B"), (70.0, "C"), (60.0, "D"), (0.0, "E")),
)
PRACTICAL_THRESHOLDS = Thresholds(
    category=PRACTICAL,
    cutoffs=((80.0, "A"), (60.0, "B"), (0.0, "C")),
)

THRESHOLDS_BY_CATEGORY: Dict[str, Thresholds] = {
    STANDARD: STANDARD_THRESHOLDS,
    PRACTICAL: PRACTICAL_THRESHOLDS,
}


def _fields_for(grade: int) -> Tuple[str, ...]:
    if grade not in GRADE_LEVELS:
        raise ValueError(f"Unsupported grade level: {grade}. Use 1, 2, or 3.")
    return GRADE_1_FIELDS if grade == 1 else UPPER_GRADE_FIELDS


def is_component_applicable(grade: int, subject: str, field: str) -> bool:
    fields = _fields_for(grade)
    if subject not in GRADE_SUBJECTS[grade] or field not in fields:
        return False
    sitting = EXAM_SITTINGS[grade].get(field)
    if sitting is None:
        return True
    return subject in sitting


def applicable_fields(grade: int, subject: str) -> Tuple[str, ...]:
    return tuple(field for field in _fields_for(grade) if is_component_applicable(grade, subject, field))


def _base_formula(grade: int, half: int, subject: str) -> WeightFormula:
    if grade == 1:
        return GRADE_1_BASE
    if subject in ("국어", "수학", "역사"):
        return EVEN_SPLIT
    if subject == "과학":
        return EVEN_SPLIT if grade == 2 and half == 1 else SCIENCE
    if subject == "영어":
        return ENGLISH_FIRST_HALF if half == 1 else ENGLISH_SECOND_HALF
    if subject == "기가" or (grade == 3 and subject == "한문"):
        return TECH_HOME_EC
    if subject == "사회" and grade == 3:
        return SOCIAL_STUDIES
    if subject == "음악":
        return MUSIC
    return PERFORMANCE_ONLY


def _build_weight_table() -> Dict[Tuple[int, int, str], WeightFormula]:
    table: Dict[Tuple[int, int, str], WeightFormula] = {}
    for grade in GRADE_LEVELS:
        # Grade 1 moves unused exam weight onto the performance term.
        absorb = "performance" if grade == 1 else None
        for half in HALVES:
            for subject in GRADE_SUBJECTS[grade]:
                disabled = [f for f in _fields_for(grade) if not is_component_applicable(grade, subject, f)]
                table[(grade, half, subject)] = _base_formula(grade, half, subject).without(disabled, absorb=absorb)
    return table


WEIGHT_TABLE: Dict[Tuple[int, int, str], WeightFormula] = _build_weight_table()


def weights_for(grade: int, half: int, subject: str) -> WeightFormula:
    try:
        return WEIGHT_TABLE[(grade, half, subject)]
    except KeyError as exc:
        raise RuleConfigurationError(
            f"No weight formula for grade {grade}, half {half}, subject {subject!r}"
        ) from exc


def category_for(subject: str) -> str:
    return PRACTICAL if subject in PRACTICAL_SUBJECTS else STANDARD


def thresholds_for_category(category: str) -> Thresholds:
    try:
        return THRESHOLDS_BY_CATEGORY[category]
    except KeyError as exc:
        raise RuleConfigurationError(f"Unknown achievement category: {category!r}") from exc


def band_thresholds_for(subject: str, grade: int) -> Thresholds:
    if subject not in GRADE_SUBJECTS.get(grade, ()):
        raise RuleConfigurationError(f"Subject {subject!r} is not taught in grade {grade}")
    return thresholds_for_category(category_for(subject))


def validate_thresholds(thresholds: Thresholds) -> None:
    cutoffs = thresholds.cutoffs
    if not cutoffs:
        raise RuleConfigurationError(f"{thresholds.category} thresholds are empty")
    if cutoffs[-1][0] != 0.0:
        raise RuleConfigurationError(f"{thresholds.category} thresholds must start at 0")
    if cutoffs[0][0] > 100.0:
        raise RuleConfigurationError(f"{thresholds.category} thresholds exceed 100")

    for (upper_min, upper_band), (lower_min, lower_band) in zip(cutoffs, cutoffs[1:]):
        if upper_min <= lower_min:
            raise RuleConfigurationError(f"{thresholds.category} thresholds overlap at {upper_min:g}")
        if upper_band not in BAND_ORDER or lower_band not in BAND_ORDER:
            raise RuleConfigurationError(f"{thresholds.category} thresholds use an unknown band")
        if BAND_ORDER.index(upper_band) <= BAND_ORDER.index(lower_band):
            raise RuleConfigurationError(
                f"{thresholds.category} band {upper_band} at {upper_min:g} is not above {lower_band}"
            )


def validate_rules() -> None:
    for grade in GRADE_LEVELS:
        if len(GRADE_SUBJECTS[grade]) != len(set(GRADE_SUBJECTS[grade])):
            raise RuleConfigurationError(f"Grade {grade} subject list has duplicates")
        for half in HALVES:
            for subject in GRADE_SUBJECTS[grade]:
                formula = weights_for(grade, half, subject)
                if not math.isclose(formula.total, 1.0, abs_tol=1e-9):
                    raise RuleConfigurationError(
                        f"Formula {formula.name} for {subject} (grade {grade}, half {half}) sums to {formula.total}"
                    )
                if set(formula.components) != set(applicable_fields(grade, subject)):
                    raise RuleConfigurationError(
                        f"Formula {formula.name} for {subject} (grade {grade}) does not match its exam sittings"
                    )

    for thresholds in THRESHOLDS_BY_CATEGORY.values():
        validate_thresholds(thresholds)


validate_rules()
logger.debug("Loaded rule set %s with %d weight formulas", RULESET_VERSION, len(WEIGHT_TABLE))
