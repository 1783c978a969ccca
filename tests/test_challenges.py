import unittest
from datetime import datetime, timedelta

from support import AppTestCase

from platemate import db
from platemate.challenges import (
    CHALLENGE_DEFINITIONS,
    challenges_with_progress,
    check_streak,
    ensure_challenges_seeded,
    total_points,
    track_diary_goals,
    track_goal,
    track_meal_logged,
    track_water_goal,
    track_weight_logged,
)
from platemate.coaching import goals_dict
from platemate.models import Challenge, DiaryEntry, DrinkEntry, FoodAnalysis


class ChallengeTrackingTestCase(AppTestCase):
    def setUp(self):
        super().setUp()
        self.user_id = self.create_user()
        self.ctx = self.app.app_context()
        self.ctx.push()
        ensure_challenges_seeded()

    def tearDown(self):
        db.session.remove()
        self.ctx.pop()

    def progress_for(self, challenge_key):
        for challenge in challenges_with_progress(self.user_id):
            if challenge["challenge_key"] == challenge_key:
                return challenge["progress"]
        raise AssertionError(f"missing challenge {challenge_key}")

    def add_entry(self, meal_date, calories=500, protein=30):
        analysis = FoodAnalysis(
            user_id=self.user_id,
            image_url="text-input",
            confidence=95,
            total_calories=calories,
            total_protein=protein,
            total_carbs=40,
            total_fat=15,
            detected_foods=[],
        )
        entry = DiaryEntry(user_id=self.user_id, meal_type="lunch", meal_date=meal_date, analysis=analysis)
        db.session.add(entry)
        db.session.flush()
        return entry

    def test_seeding_is_idempotent(self):
        self.assertEqual(Challenge.query.count(), len(CHALLENGE_DEFINITIONS))
        self.assertEqual(ensure_challenges_seeded(), 0)

    def test_first_meal_completes_once(self):
        completed = track_meal_logged(self.user_id)
        db.session.commit()
        self.assertEqual([item["challenge_key"] for item in completed], ["first_meal_logged"])
        self.assertTrue(completed[0]["progress"]["is_completed"])

        self.assertEqual(track_meal_logged(self.user_id), [])
        db.session.commit()
        self.assertEqual(self.progress_for("first_meal_logged")["current_count"], 1)
        self.assertEqual(self.progress_for("5_meals_logged")["current_count"], 2)

    def test_streak_counts_never_decrease(self):
        self.assertEqual(
            [item["challenge_key"] for item in check_streak(self.user_id, 3)],
            ["3_day_streak"],
        )
        check_streak(self.user_id, 1)
        db.session.commit()
        self.assertEqual(self.progress_for("7_day_streak")["current_count"], 3)

    def test_total_points(self):
        self.assertEqual(total_points(self.user_id), 0)
        track_meal_logged(self.user_id)
        check_streak(self.user_id, 3)
        db.session.commit()
        self.assertEqual(total_points(self.user_id), 60)

    def test_weight_logging(self):
        for _ in range(9):
            self.assertEqual(track_weight_logged(self.user_id), [])
        completed = track_weight_logged(self.user_id)
        db.session.commit()
        self.assertEqual(completed[0]["challenge_key"], "weight_logged_10_times")
        self.assertEqual(completed[0]["reward_points"], 50)

    def test_unknown_goal_type(self):
        with self.assertRaises(ValueError):
            track_goal(self.user_id, "sleep")

    def test_diary_goals(self):
        goals = goals_dict(None)
        yesterday = datetime(2026, 3, 9, 12, 0)
        self.add_entry(yesterday, calories=1800, protein=100)

        new_entry = self.add_entry(yesterday + timedelta(days=1), calories=700, protein=160)
        entries = DiaryEntry.query.filter_by(user_id=self.user_id).all()
        track_diary_goals(self.user_id, entries, new_entry, goals)
        db.session.commit()
        self.assertEqual(self.progress_for("protein_goal_7_days")["current_count"], 1)
        self.assertEqual(self.progress_for("calorie_goal_10_days")["current_count"], 1)

        second = self.add_entry(yesterday + timedelta(days=1, hours=6), calories=300, protein=20)
        entries = DiaryEntry.query.filter_by(user_id=self.user_id).all()
        track_diary_goals(self.user_id, entries, second, goals)
        db.session.commit()
        self.assertEqual(self.progress_for("protein_goal_7_days")["current_count"], 1)
        self.assertEqual(self.progress_for("calorie_goal_10_days")["current_count"], 1)

    def test_back_dated_entry_does_not_rejudge_a_day(self):
        goals = goals_dict(None)
        day_one = datetime(2026, 3, 1, 12, 0)

        def log(meal_date):
            entry = self.add_entry(meal_date, calories=1500, protein=20)
            entries = DiaryEntry.query.filter_by(user_id=self.user_id).all()
            track_diary_goals(self.user_id, entries, entry, goals)
            db.session.commit()

        log(day_one)
        log(day_one + timedelta(days=2))
        self.assertEqual(self.progress_for("calorie_goal_10_days")["current_count"], 1)

        log(day_one + timedelta(days=1))
        self.assertEqual(self.progress_for("calorie_goal_10_days")["current_count"], 1)

    def test_water_goal_counts_on_crossing(self):
        goals = goals_dict(None)
        logged_at = datetime(2026, 3, 10, 8, 0)
        drinks = []
        for amount in (1500, 600, 400):
            drink = DrinkEntry(
                user_id=self.user_id,
                drink_name="Water",
                drink_type="water",
                amount=amount,
                logged_at=logged_at,
            )
            db.session.add(drink)
            db.session.flush()
            drinks.append(drink)
            track_water_goal(self.user_id, list(drinks), drink, goals)
        db.session.commit()
        self.assertEqual(self.progress_for("water_goal_5_days")["current_count"], 1)


if __name__ == "__main__":
    unittest.main()
