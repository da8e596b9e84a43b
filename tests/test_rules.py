import unittest

from hwasanscore.core.rules import (
    EXAM_SITTINGS,
    GRADE_LEVELS,
    GRADE_SUBJECTS,
    HALVES,
    PRACTICAL,
    STANDARD,
    RuleConfigurationError,
    Thresholds,
    WeightFormula,
    applicable_fields,
    band_thresholds_for,
    is_component_applicable,
    validate_thresholds,
    weights_for,
)


class WeightTableTests(unittest.TestCase):
    def test_every_combination_resolves_to_one_formula(self):
        for grade in GRADE_LEVELS:
            self.assertEqual(len(GRADE_SUBJECTS[grade]), 11)
            for half in HALVES:
                for subject in GRADE_SUBJECTS[grade]:
                    with self.subTest(grade=grade, half=half, subject=subject):
                        formula = weights_for(grade, half, subject)
                        self.assertAlmostEqual(formula.total, 1.0, places=9)
                        self.assertEqual(set(formula.components), set(applicable_fields(grade, subject)))

    def test_unknown_combination_fails_loudly(self):
        with self.assertRaises(RuleConfigurationError):
            weights_for(1, 1, "정보")
        with self.assertRaises(RuleConfigurationError):
            weights_for(2, 3, "국어")
        with self.assertRaises(RuleConfigurationError):
            weights_for(4, 1, "국어")

    def test_grade_1_core_formula(self):
        formula = weights_for(1, 1, "국어")
        self.assertAlmostEqual(formula.weight("midterm"), 0.3)
        self.assertAlmostEqual(formula.weight("final"), 0.3)
        self.assertAlmostEqual(formula.weight("performance"), 0.4)

    def test_grade_1_chinese_characters_moves_midterm_weight_to_performance(self):
        formula = weights_for(1, 2, "한문")
        self.assertEqual(formula.components, ("final", "performance"))
        self.assertAlmostEqual(formula.weight("final"), 0.3)
        self.assertAlmostEqual(formula.weight("performance"), 0.7)

    def test_grade_1_arts_is_pure_performance(self):
        for subject in ("미술", "음악", "체육"):
            formula = weights_for(1, 1, subject)
            self.assertEqual(formula.components, ("performance",))
            self.assertAlmostEqual(formula.weight("performance"), 1.0)

    def test_english_differs_by_half(self):
        first = weights_for(2, 1, "영어")
        second = weights_for(2, 2, "영어")
        self.assertAlmostEqual(first.weight("perf_c"), 0.25)
        self.assertAlmostEqual(second.weight("perf_c"), 0.2)
        self.assertAlmostEqual(first.weight("paper_test"), 0.3)
        self.assertAlmostEqual(second.weight("paper_test"), 0.3)

    def test_science_is_even_only_in_grade_2_first_half(self):
        self.assertAlmostEqual(weights_for(2, 1, "과학").weight("paper_test"), 0.2)
        self.assertAlmostEqual(weights_for(2, 2, "과학").weight("paper_test"), 0.3)
        self.assertAlmostEqual(weights_for(3, 1, "과학").weight("perf_b"), 0.17)

    def test_grade_3_social_studies_redistributes_paper_weight(self):
        formula = weights_for(3, 1, "사회")
        self.assertNotIn("paper_test", formula.components)
        self.assertAlmostEqual(formula.weight("perf_a"), 0.15 / 0.7)
        self.assertAlmostEqual(formula.weight("perf_d"), 0.2 / 0.7)

    def test_music_and_default_formulas(self):
        music = weights_for(3, 2, "음악")
        self.assertAlmostEqual(music.weight("perf_b"), 0.3)
        ethics = weights_for(2, 1, "도덕")
        for component in ("perf_a", "perf_b", "perf_c", "perf_d"):
            self.assertAlmostEqual(ethics.weight(component), 0.25)


class ApplicabilityTests(unittest.TestCase):
    def test_grade_1_exam_sittings(self):
        self.assertTrue(is_component_applicable(1, "국어", "midterm"))
        self.assertFalse(is_component_applicable(1, "한문", "midterm"))
        self.assertTrue(is_component_applicable(1, "한문", "final"))
        self.assertFalse(is_component_applicable(1, "음악", "final"))
        self.assertTrue(is_component_applicable(1, "음악", "performance"))

    def test_upper_grade_paper_test(self):
        self.assertTrue(is_component_applicable(2, "역사", "paper_test"))
        self.assertFalse(is_component_applicable(2, "도덕", "paper_test"))
        self.assertFalse(is_component_applicable(3, "한문", "paper_test"))
        self.assertTrue(is_component_applicable(3, "한문", "perf_a"))

    def test_fields_from_the_other_variant_are_never_applicable(self):
        self.assertFalse(is_component_applicable(1, "국어", "perf_a"))
        self.assertFalse(is_component_applicable(2, "국어", "performance"))
        self.assertFalse(is_component_applicable(2, "국어", "unknown"))

    def test_unknown_subject_is_not_applicable(self):
        self.assertFalse(is_component_applicable(2, "사회", "perf_a"))

    def test_unknown_grade_is_rejected(self):
        with self.assertRaises(ValueError):
            is_component_applicable(4, "국어", "perf_a")

    def test_predicate_agrees_with_exam_sittings(self):
        for grade, sittings in EXAM_SITTINGS.items():
            for field, subjects in sittings.items():
                for subject in GRADE_SUBJECTS[grade]:
                    self.assertEqual(is_component_applicable(grade, subject, field), subject in subjects)


class WeightFormulaTests(unittest.TestCase):
    def test_without_redistributes_proportionally(self):
        formula = WeightFormula("f", (("a", 0.25), ("b", 0.25), ("c", 0.5)))
        reduced = formula.without(["c"])
        self.assertAlmostEqual(reduced.weight("a"), 0.5)
        self.assertAlmostEqual(reduced.weight("b"), 0.5)

    def test_without_can_absorb_into_one_term(self):
        formula = WeightFormula("f", (("a", 0.3), ("b", 0.3), ("c", 0.4)))
        reduced = formula.without(["a", "b"], absorb="c")
        self.assertEqual(reduced.components, ("c",))
        self.assertAlmostEqual(reduced.weight("c"), 1.0)

    def test_without_nothing_returns_same_formula(self):
        formula = WeightFormula("f", (("a", 1.0),))
        self.assertIs(formula.without(["z"]), formula)

    def test_removing_every_term_is_a_configuration_error(self):
        formula = WeightFormula("f", (("a", 1.0),))
        with self.assertRaises(RuleConfigurationError):
            formula.without(["a"])


class ThresholdTests(unittest.TestCase):
    def test_band_thresholds_by_subject(self):
        self.assertEqual(band_thresholds_for("국어", 1).category, STANDARD)
        self.assertEqual(band_thresholds_for("체육", 3).category, PRACTICAL)
        self.assertEqual(band_thresholds_for("음악", 2).bands, ("A", "B", "C"))

    def test_band_thresholds_reject_unknown_subject(self):
        with self.assertRaises(RuleConfigurationError):
            band_thresholds_for("정보", 1)

    def test_overlapping_thresholds_are_rejected(self):
        bad = Thresholds("standard", ((80.0, "A"), (80.0, "B"), (0.0, "C")))
        with self.assertRaises(RuleConfigurationError):
            validate_thresholds(bad)

    def test_gap_at_zero_is_rejected(self):
        bad = Thresholds("standard", ((90.0, "A"), (10.0, "B")))
        with self.assertRaises(RuleConfigurationError):
            validate_thresholds(bad)

    def test_inverted_bands_are_rejected(self):
        bad = Thresholds("standard", ((90.0, "B"), (0.0, "A")))
        with self.assertRaises(RuleConfigurationError):
            validate_thresholds(bad)


if __name__ == "__main__":
    unittest.main()
