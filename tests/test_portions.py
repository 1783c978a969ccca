import math
import unittest

from platemate.portions import (
    DEFAULT_PORTION_GRAMS,
    UNIT_SYNONYMS,
    measured_grams,
    normalize_fractions,
    normalize_unit,
    parse_portion,
    portion_options,
    portion_to_grams,
)


class ParsePortionTestCase(unittest.TestCase):
    def test_simple_quantity_and_unit(self):
        self.assertEqual(parse_portion("2 cups flour"), (2.0, "cup", "flour"))

    def test_mixed_number(self):
        parsed = parse_portion("1 1/2 cups flour")
        self.assertAlmostEqual(parsed.quantity, 1.5)
        self.assertEqual(parsed.unit, "cup")
        self.assertEqual(parsed.ingredient, "flour")

    def test_unicode_fraction(self):
        parsed = parse_portion("½ cup sugar")
        self.assertAlmostEqual(parsed.quantity, 0.5)
        self.assertEqual(parsed.unit, "cup")
        self.assertEqual(parsed.ingredient, "sugar")

    def test_unicode_fraction_glued_to_whole_number(self):
        self.assertAlmostEqual(parse_portion("1½ cups milk").quantity, 1.5)

    def test_decimal_quantity_with_long_unit_name(self):
        self.assertEqual(parse_portion("2.5 tablespoons olive oil"), (2.5, "tbsp", "olive oil"))

    def test_quantity_without_unit(self):
        self.assertEqual(parse_portion("3 eggs"), (3.0, "", "eggs"))

    def test_glued_metric_unit(self):
        self.assertEqual(parse_portion("150g chicken breast"), (150.0, "g", "chicken breast"))

    def test_glued_plural_unit(self):
        self.assertEqual(parse_portion("5lbs potatoes"), (5.0, "lb", "potatoes"))
        self.assertEqual(parse_portion("2LB beef"), (2.0, "lb", "beef"))

    def test_text_without_quantity(self):
        self.assertEqual(parse_portion("salt to taste"), (0.0, "", "salt to taste"))

    def test_empty_text(self):
        self.assertEqual(parse_portion(""), (0.0, "", ""))
        self.assertEqual(parse_portion(None), (0.0, "", ""))

    def test_zero_denominator_does_not_raise(self):
        self.assertEqual(parse_portion("1/0 cup water").quantity, 0.0)

    def test_as_dict(self):
        self.assertEqual(
            parse_portion("2 cups flour").as_dict(),
            {"quantity": 2.0, "unit": "cup", "ingredient": "flour"},
        )


class NormalizeTestCase(unittest.TestCase):
    def test_normalize_unit_is_idempotent(self):
        for spelling in UNIT_SYNONYMS:
            canonical = normalize_unit(spelling)
            self.assertEqual(normalize_unit(canonical), canonical)

    def test_normalize_unit_passes_unknown_units_through(self):
        self.assertEqual(normalize_unit(" Pinch "), "pinch")
        self.assertEqual(normalize_unit(None), "")

    def test_normalize_fractions(self):
        self.assertEqual(normalize_fractions("¾ cup"), "3/4 cup")
        self.assertEqual(normalize_fractions("2¼ cups"), "2 1/4 cups")


class PortionToGramsTestCase(unittest.TestCase):
    def test_counted_eggs(self):
        self.assertEqual(portion_to_grams("2 eggs"), 100)

    def test_sized_potato(self):
        self.assertEqual(portion_to_grams("1 small potato"), 150)
        self.assertEqual(portion_to_grams("1 large potato"), 300)

    def test_explicit_weights(self):
        self.assertEqual(portion_to_grams("250g"), 250)
        self.assertEqual(portion_to_grams("1.5 kg"), 1500)
        self.assertEqual(portion_to_grams("330ml can"), 330)

    def test_household_measures(self):
        self.assertEqual(portion_to_grams("1 cup"), 240)
        self.assertEqual(portion_to_grams("a glass"), 250)
        self.assertEqual(portion_to_grams("1 bowl"), 300)

    def test_unknown_portion_falls_back_to_default(self):
        self.assertEqual(portion_to_grams("some"), DEFAULT_PORTION_GRAMS)
        self.assertEqual(portion_to_grams(None), DEFAULT_PORTION_GRAMS)

    def test_results_are_finite_and_positive(self):
        samples = ["", "0g", "0 eggs", "1/0", "999999999999999999999 eggs", "-3 cups", "½", "🥚"]
        for sample in samples:
            for convert in (portion_to_grams, measured_grams):
                grams = convert(sample)
                self.assertTrue(math.isfinite(grams), (convert.__name__, sample))
                self.assertGreater(grams, 0, (convert.__name__, sample))


class MeasuredGramsTestCase(unittest.TestCase):
    def test_units_are_converted(self):
        self.assertEqual(measured_grams("200g"), 200)
        self.assertEqual(measured_grams("2 cups"), 480)
        self.assertEqual(measured_grams("1 1/2 tbsp"), 22.5)
        self.assertAlmostEqual(measured_grams("4 oz"), 113.4)

    def test_bare_number_is_grams(self):
        self.assertEqual(measured_grams("75"), 75)

    def test_missing_portion_is_default(self):
        self.assertEqual(measured_grams(None), DEFAULT_PORTION_GRAMS)


class PortionOptionsTestCase(unittest.TestCase):
    def test_potato_options(self):
        self.assertIn("1 small (150g)", portion_options("Baked potato"))

    def test_sweet_potato_is_not_a_potato(self):
        self.assertNotIn("1 small (150g)", portion_options("sweet potato"))

    def test_egg_options(self):
        self.assertEqual(portion_options("Scrambled eggs")[0], "1 egg (50g)")

    def test_always_returns_options(self):
        self.assertTrue(portion_options("mystery stew"))
        self.assertTrue(portion_options(None))


if __name__ == "__main__":
    unittest.main()
