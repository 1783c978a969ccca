import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from support import AppTestCase

from platemate.ai import AIUnavailableError, analyze_food_text, normalize_detected_foods, summarize_foods


def fake_client(output_text: str) -> MagicMock:
    client = MagicMock()
    client.responses.create.return_value = SimpleNamespace(output_text=output_text)
    return client


class NormalizeFoodsTestCase(unittest.TestCase):
    def test_non_finite_and_negative_values_become_zero(self):
        foods = normalize_detected_foods(
            [
                {"name": "Toast", "calories": float("inf"), "protein": float("nan"), "carbs": -5, "fat": "3.6"},
                {"name": "", "calories": 100},
                "not a food",
            ]
        )
        self.assertEqual(len(foods), 1)
        self.assertEqual(
            {key: foods[0][key] for key in ("calories", "protein", "carbs", "fat")},
            {"calories": 0, "protein": 0, "carbs": 0, "fat": 4},
        )
        self.assertEqual(foods[0]["portion"], "1 serving")

    def test_summarize_skips_infinite_values(self):
        totals = summarize_foods([{"calories": float("inf"), "protein": 10}, {"calories": 250, "protein": 5}])
        self.assertEqual(totals["total_calories"], 250)
        self.assertEqual(totals["total_protein"], 15)


class AnalyzeFoodTextTestCase(AppTestCase):
    def setUp(self):
        super().setUp()
        self.ctx = self.app.app_context()
        self.ctx.push()

    def tearDown(self):
        self.ctx.pop()
        super().tearDown()

    def test_infinity_in_model_reply_is_ignored(self):
        reply = (
            '```json\n{"confidence": Infinity, "detected_foods": '
            '[{"name": "Porridge", "portion": "1 bowl", "calories": Infinity, "protein": 10, "carbs": 54, "fat": 6}]}\n```'
        )
        with patch("platemate.ai._client", return_value=fake_client(reply)):
            result = analyze_food_text("a bowl of porridge")

        self.assertEqual(result["confidence"], 0)
        self.assertEqual(result["detected_foods"][0]["calories"], 0)
        self.assertEqual(summarize_foods(result["detected_foods"])["total_protein"], 10)

    def test_reply_without_foods_is_unavailable(self):
        with patch("platemate.ai._client", return_value=fake_client("I cannot help with that.")):
            with self.assertRaises(AIUnavailableError):
                analyze_food_text("mystery")

    def test_missing_key_is_unavailable(self):
        with self.assertRaises(AIUnavailableError):
            analyze_food_text("two eggs")


if __name__ == "__main__":
    unittest.main()
