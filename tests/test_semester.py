import unittest

from hwasanscore.core.models import (
    Behavior,
    BehaviorEntry,
    Grade1Components,
    NonAcademicData,
    UpperGradeComponents,
)
from hwasanscore.core.record import (
    UnknownSubjectError,
    new_record,
    semester_for,
    set_free_semester,
    set_non_academic,
    update_subject,
)
from hwasanscore.core.semester import (
    SEMESTER_KEYS,
    InvalidTransitionError,
    UnknownSemesterError,
    new_semester,
    parse_semester_key,
    semester_key,
    toggle_free_semester,
)
from hwasanscore.core.total import academic_score
from hwasanscore.core.validation import InapplicableComponentError, InputRangeError


FIRST = "1학년 1학기"


class SemesterKeyTests(unittest.TestCase):
    def test_six_keys_in_order(self):
        self.assertEqual(len(SEMESTER_KEYS), 6)
        self.assertEqual(SEMESTER_KEYS[0], FIRST)
        self.assertEqual(SEMESTER_KEYS[-1], "3학년 2학기")

    def test_round_trip(self):
        for grade in (1, 2, 3):
            for half in (1, 2):
                self.assertEqual(parse_semester_key(semester_key(grade, half)), (grade, half))

    def test_bad_keys(self):
        for key in ("4학년 1학기", "1학년 3학기", "", "grade 1"):
            with self.assertRaises(UnknownSemesterError):
                parse_semester_key(key)
        with self.assertRaises(UnknownSemesterError):
            semester_key(0, 1)


class FreeSemesterTests(unittest.TestCase):
    def _scored_semester(self):
        record = update_subject(new_record(), "2학년 1학기", "국어", "perf_a", 6)
        return record.semesters["2학년 1학기"]

    def test_new_semester_has_fixed_subject_list(self):
        semester = new_semester(2)
        self.assertEqual(len(semester.subjects), 11)
        self.assertFalse(semester.is_free_semester)
        for subject in semester.subjects:
            self.assertEqual(subject.raw_score, 0.0)
            self.assertEqual(subject.achievement, "A")
            self.assertIsInstance(subject.components, UpperGradeComponents)

    def test_enabling_discards_scores(self):
        free = toggle_free_semester(self._scored_semester(), True)
        self.assertTrue(free.is_free_semester)
        self.assertEqual(len(free.subjects), 11)
        for subject in free.subjects:
            self.assertEqual(subject.achievement, "P")
            self.assertIsNone(subject.raw_score)
            self.assertEqual(subject.components, UpperGradeComponents())

    def test_enabling_twice_is_a_no_op(self):
        free = toggle_free_semester(self._scored_semester(), True)
        self.assertIs(toggle_free_semester(free, True), free)

    def test_off_then_on_matches_first_toggle_on(self):
        first_on = toggle_free_semester(self._scored_semester(), True)
        again = toggle_free_semester(toggle_free_semester(first_on, False), True)
        self.assertEqual(again, first_on)

    def test_disabling_resets_to_neutral(self):
        free = toggle_free_semester(self._scored_semester(), True)
        scored = toggle_free_semester(free, False)
        self.assertFalse(scored.is_free_semester)
        for subject in scored.subjects:
            self.assertEqual(subject.achievement, "A")
            self.assertEqual(subject.raw_score, 0.0)
            self.assertEqual(subject.components, UpperGradeComponents())


class RecordEditTests(unittest.TestCase):
    def test_update_recomputes_score_and_band(self):
        record = new_record()
        record = update_subject(record, FIRST, "국어", "midterm", 90)
        record = update_subject(record, FIRST, "국어", "final", 85)
        record = update_subject(record, FIRST, "국어", "performance", 18)
        korean = record.semesters[FIRST].subject("국어")
        self.assertEqual(korean.raw_score, 70.5)
        self.assertEqual(korean.achievement, "C")
        self.assertEqual(korean.components, Grade1Components(midterm=90, final=85, performance=18))

    def test_update_returns_a_new_record(self):
        original = new_record()
        updated = update_subject(original, FIRST, "음악", "performance", 15)
        self.assertEqual(original.semesters, {})
        self.assertEqual(updated.semesters[FIRST].subject("음악").raw_score, 15.0)

    def test_clearing_a_component(self):
        record = update_subject(new_record(), FIRST, "음악", "performance", 15)
        record = update_subject(record, FIRST, "음악", "performance", None)
        self.assertEqual(record.semesters[FIRST].subject("음악").raw_score, 0.0)

    def test_inapplicable_field_is_rejected(self):
        with self.assertRaises(InapplicableComponentError):
            update_subject(new_record(), FIRST, "음악", "midterm", 80)
        with self.assertRaises(InapplicableComponentError):
            update_subject(new_record(), "3학년 1학기", "사회", "paper_test", 80)

    def test_out_of_range_values_are_rejected(self):
        with self.assertRaises(InputRangeError):
            update_subject(new_record(), FIRST, "국어", "performance", 41)
        with self.assertRaises(InputRangeError):
            update_subject(new_record(), FIRST, "국어", "midterm", -1)
        with self.assertRaises(InputRangeError):
            update_subject(new_record(), "2학년 2학기", "국어", "perf_a", 9)
        with self.assertRaises(InputRangeError):
            update_subject(new_record(), "2학년 2학기", "국어", "paper_test", float("nan"))

    def test_unknown_subject(self):
        with self.assertRaises(UnknownSubjectError):
            update_subject(new_record(), FIRST, "정보", "performance", 10)

    def test_free_semester_rejects_edits(self):
        record = set_free_semester(new_record(), FIRST, True)
        with self.assertRaises(InvalidTransitionError):
            update_subject(record, FIRST, "국어", "midterm", 90)

    def test_free_semester_drops_academic_points(self):
        record = update_subject(new_record(), FIRST, "음악", "performance", 100)
        self.assertGreater(academic_score(record), 0)
        record = set_free_semester(record, FIRST, True)
        self.assertEqual(academic_score(record), 0.0)
        for subject in record.semesters[FIRST].subjects:
            self.assertEqual(subject.achievement, "P")
            self.assertIsNone(subject.raw_score)

    def test_semester_for_missing_key_is_fresh(self):
        semester = semester_for(new_record(), "3학년 2학기")
        self.assertEqual([s.name for s in semester.subjects][-1], "체육")

    def test_set_non_academic_validates(self):
        bad = NonAcademicData(behavior=Behavior(grade1=BehaviorEntry(base=3.0, extra=0.3)))
        with self.assertRaises(InputRangeError):
            set_non_academic(new_record(), bad)
        good = NonAcademicData(behavior=Behavior(grade1=BehaviorEntry(base=3.0, extra=1.5)))
        self.assertEqual(set_non_academic(new_record(), good).non_academic, good)


if __name__ == "__main__":
    unittest.main()
