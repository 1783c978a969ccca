import unittest
from datetime import date, datetime

from support import AppTestCase

from platemate import db
from platemate.models import (
    DiaryEntry,
    DrinkEntry,
    FoodAnalysis,
    FoodConfirmation,
    Reflection,
    SavedRecipe,
    ShoppingListItem,
    StepEntry,
    User,
    WeightEntry,
)


def _analysis(user_id: int, label: str) -> FoodAnalysis:
    return FoodAnalysis(
        user_id=user_id,
        image_url="text-input",
        confidence=95,
        total_calories=420,
        total_protein=30,
        total_carbs=40,
        total_fat=12,
        detected_foods=[{"name": label, "portion": "1 plate", "calories": 420, "protein": 30, "carbs": 40, "fat": 12}],
    )


class DataIsolationTestCase(AppTestCase):
    def setUp(self):
        super().setUp()
        self.create_user("user1@example.com")
        self.create_user("user2@example.com")

        with self.app.app_context():
            user1 = User.query.filter_by(email="user1@example.com").one()
            user2 = User.query.filter_by(email="user2@example.com").one()

            analysis_u1 = _analysis(user1.id, "U1_SECRET_MEAL")
            analysis_u2 = _analysis(user2.id, "U2_SECRET_MEAL")
            db.session.add_all([analysis_u1, analysis_u2])
            db.session.flush()

            db.session.add(
                DiaryEntry(
                    user_id=user1.id,
                    analysis_id=analysis_u1.id,
                    meal_type="lunch",
                    meal_date=datetime(2026, 2, 18, 12, 0),
                )
            )
            meal_u2 = DiaryEntry(
                user_id=user2.id,
                analysis_id=analysis_u2.id,
                meal_type="lunch",
                meal_date=datetime(2026, 2, 18, 12, 30),
                notes="U2_SECRET_NOTE",
            )
            drink_u2 = DrinkEntry(
                user_id=user2.id,
                drink_name="U2_SECRET_DRINK",
                drink_type="coffee",
                amount=250,
                logged_at=datetime(2026, 2, 18, 9, 0),
            )
            weight_u2 = WeightEntry(user_id=user2.id, weight_grams=99999, logged_at=datetime(2026, 2, 18, 7, 0))
            recipe_u2 = SavedRecipe(user_id=user2.id, name="U2_PRIVATE_RECIPE", ingredients=["1 cup oats"], instructions=[])
            item_u2 = ShoppingListItem(user_id=user2.id, item="U2_PRIVATE_ITEM")
            confirmation_u2 = FoodConfirmation(
                user_id=user2.id,
                image_url="text-input",
                original_confidence=60,
                suggested_foods=[{"name": "U2_SUGGESTION"}],
            )
            db.session.add_all([meal_u2, drink_u2, weight_u2, recipe_u2, item_u2, confirmation_u2])
            db.session.add_all(
                [
                    StepEntry(user_id=user1.id, day=date(2026, 2, 18), steps=4321),
                    StepEntry(user_id=user2.id, day=date(1999, 12, 31), steps=1),
                    Reflection(
                        user_id=user2.id,
                        reflection_period="daily",
                        period_start=datetime(2026, 2, 17),
                        period_end=datetime(2026, 2, 18),
                        went_well="U2_REFLECTION",
                        could_improve="-",
                        action_steps=[],
                        sentiment_score=50,
                        ai_provider="fallback",
                        ai_model="none",
                    ),
                ]
            )
            db.session.commit()

            self.ids = {
                "analysis": analysis_u2.id,
                "diary": meal_u2.id,
                "drink": drink_u2.id,
                "weight": weight_u2.id,
                "recipe": recipe_u2.id,
                "item": item_u2.id,
                "confirmation": confirmation_u2.id,
            }

        self.login("user1@example.com")

    def test_user_cannot_read_another_users_records(self):
        paths = [
            f"/api/diary/{self.ids['diary']}",
            f"/api/drinks/{self.ids['drink']}",
            f"/api/weights/{self.ids['weight']}",
            f"/api/analyses/{self.ids['analysis']}",
            f"/api/food-confirmations/{self.ids['confirmation']}",
        ]
        for path in paths:
            response = self.client.get(path)
            self.assertEqual(response.status_code, 403, path)
            self.assertNotIn("U2_", response.get_data(as_text=True))

    def test_user_cannot_modify_or_delete_another_users_records(self):
        self.assertEqual(self.client.patch(f"/api/diary/{self.ids['diary']}", json={"notes": "x"}).status_code, 403)
        self.assertEqual(self.client.delete(f"/api/diary/{self.ids['diary']}").status_code, 403)
        self.assertEqual(self.client.delete(f"/api/weights/{self.ids['weight']}").status_code, 403)
        self.assertEqual(self.client.delete(f"/api/saved-recipes/{self.ids['recipe']}").status_code, 403)
        self.assertEqual(
            self.client.patch(f"/api/shopping-list/{self.ids['item']}", json={"checked": True}).status_code,
            403,
        )
        self.assertEqual(
            self.client.patch(f"/api/food-confirmations/{self.ids['confirmation']}", json={"status": "rejected"}).status_code,
            403,
        )

        with self.app.app_context():
            self.assertEqual(db.session.get(DiaryEntry, self.ids["diary"]).notes, "U2_SECRET_NOTE")

    def test_user_cannot_log_another_users_analysis(self):
        response = self.client.post(
            "/api/diary",
            json={"analysis_id": self.ids["analysis"], "meal_type": "lunch", "meal_date": "2026-02-18T13:00:00"},
        )
        self.assertEqual(response.status_code, 403)

    def test_shopping_list_from_foreign_recipe_is_denied(self):
        response = self.client.post("/api/shopping-list", json={"recipe_ids": [self.ids["recipe"]]})
        self.assertEqual(response.status_code, 403)

    def test_listings_only_show_current_users_content(self):
        listings = [
            "/api/diary",
            "/api/drinks",
            "/api/weights",
            "/api/steps",
            "/api/saved-recipes",
            "/api/shopping-list",
            "/api/food-confirmations",
            "/api/reflections",
        ]
        for path in listings:
            response = self.client.get(path)
            self.assertEqual(response.status_code, 200, path)
            body = response.get_data(as_text=True)
            self.assertNotIn("U2_", body, path)
            self.assertNotIn("1999-12-31", body, path)

        diary = self.client.get("/api/diary").get_data(as_text=True)
        self.assertIn("U1_SECRET_MEAL", diary)
        self.assertIn("4321", self.client.get("/api/steps").get_data(as_text=True))

    def test_missing_record_is_404(self):
        self.assertEqual(self.client.get("/api/diary/999999").status_code, 404)


if __name__ == "__main__":
    unittest.main()
