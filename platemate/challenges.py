import logging
from datetime import datetime

from platemate import db
from platemate.coaching import daily_totals
from platemate.models import Challenge, UserChallengeProgress

logger = logging.getLogger(__name__)

CHALLENGE_DEFINITIONS = [
    {
        "challenge_key": "first_meal_logged",
        "name": "First Steps",
        "description": "Log your first meal",
        "challenge_type": "count",
        "target_count": 1,
        "reward_points": 10,
        "reward_badge": "🎉",
        "difficulty": "easy",
    },
    {
        "challenge_key": "5_meals_logged",
        "name": "Getting Started",
        "description": "Log 5 meals",
        "challenge_type": "count",
        "target_count": 5,
        "reward_points": 25,
        "reward_badge": "🌟",
        "difficulty": "easy",
    },
    {
        "challenge_key": "3_day_streak",
        "name": "Consistency Builder",
        "description": "Log meals for 3 consecutive days",
        "challenge_type": "streak",
        "target_count": 3,
        "reward_points": 50,
        "reward_badge": "🔥",
        "difficulty": "medium",
    },
    {
        "challenge_key": "7_day_streak",
        "name": "Week Warrior",
        "description": "Log meals for 7 consecutive days",
        "challenge_type": "streak",
        "target_count": 7,
        "reward_points": 100,
        "reward_badge": "💪",
        "difficulty": "medium",
    },
    {
        "challenge_key": "30_day_streak",
        "name": "Habit Master",
        "description": "Log meals for 30 consecutive days",
        "challenge_type": "streak",
        "target_count": 30,
        "reward_points": 500,
        "reward_badge": "👑",
        "difficulty": "hard",
    },
    {
        "challenge_key": "water_goal_5_days",
        "name": "Hydration Hero",
        "description": "Meet your daily water goal 5 times",
        "challenge_type": "goal",
        "target_count": 5,
        "reward_points": 75,
        "reward_badge": "💧",
        "difficulty": "medium",
    },
    {
        "challenge_key": "calorie_goal_10_days",
        "name": "Calorie Champion",
        "description": "Stay within your calorie goal 10 times",
        "challenge_type": "goal",
        "target_count": 10,
        "reward_points": 150,
        "reward_badge": "🎯",
        "difficulty": "hard",
    },
    {
        "challenge_key": "protein_goal_7_days",
        "name": "Protein Pro",
        "description": "Meet your protein goal 7 times",
        "challenge_type": "goal",
        "target_count": 7,
        "reward_points": 100,
        "reward_badge": "💪",
        "difficulty": "medium",
    },
    {
        "challenge_key": "weight_logged_10_times",
        "name": "Scale Master",
        "description": "Log your weight 10 times",
        "challenge_type": "count",
        "target_count": 10,
        "reward_points": 50,
        "reward_badge": "⚖️",
        "difficulty": "easy",
    },
    {
        "challenge_key": "100_meals_logged",
        "name": "Tracking Legend",
        "description": "Log 100 meals total",
        "challenge_type": "count",
        "target_count": 100,
        "reward_points": 250,
        "reward_badge": "🏆",
        "difficulty": "hard",
    },
]

MEAL_CHALLENGE_KEYS = ("first_meal_logged", "5_meals_logged", "100_meals_logged")
STREAK_CHALLENGE_KEYS = ("3_day_streak", "7_day_streak", "30_day_streak")
GOAL_CHALLENGE_KEYS = {
    "water": "water_goal_5_days",
    "calorie": "calorie_goal_10_days",
    "protein": "protein_goal_7_days",
}


def ensure_challenges_seeded() -> int:
    existing = {key for (key,) in db.session.query(Challenge.challenge_key).all()}
    added = 0
    for definition in CHALLENGE_DEFINITIONS:
        if definition["challenge_key"] in existing:
            continue
        db.session.add(Challenge(is_active=True, **definition))
        added += 1

    if added:
        db.session.commit()
        logger.info("Seeded %s challenges", added)
    return added


def _get_challenge(challenge_key: str) -> Challenge | None:
    return Challenge.query.filter_by(challenge_key=challenge_key, is_active=True).first()


def _get_progress(user_id: int, challenge: Challenge) -> UserChallengeProgress:
    progress = UserChallengeProgress.query.filter_by(user_id=user_id, challenge_id=challenge.id).first()
    if progress is None:
        progress = UserChallengeProgress(user_id=user_id, challenge=challenge, current_count=0, is_completed=False)
        db.session.add(progress)
    return progress


def _advance(user_id: int, challenge_key: str, *, increment: int = 0, at_least: int = 0):
    """Raise a user's count on one challenge. Returns the progress row if this call completed it."""
    challenge = _get_challenge(challenge_key)
    if challenge is None:
        return None

    progress = _get_progress(user_id, challenge)
    if progress.is_completed:
        return None

    progress.current_count = max((progress.current_count or 0) + increment, at_least, progress.current_count or 0)
    progress.last_updated_at = datetime.utcnow()
    if progress.current_count >= challenge.target_count:
        progress.is_completed = True
        progress.completed_at = datetime.utcnow()
        logger.info("User %s completed challenge %s", user_id, challenge_key)
        return progress
    return None


def _completed_payload(completed: list) -> list[dict]:
    return [
        {**progress.challenge.to_dict(), "progress": progress.to_dict()}
        for progress in completed
        if progress is not None
    ]


def track_meal_logged(user_id: int) -> list[dict]:
    completed = [_advance(user_id, key, increment=1) for key in MEAL_CHALLENGE_KEYS]
    return _completed_payload(completed)


def track_weight_logged(user_id: int) -> list[dict]:
    return _completed_payload([_advance(user_id, "weight_logged_10_times", increment=1)])


def check_streak(user_id: int, consecutive_days: int) -> list[dict]:
    completed = [_advance(user_id, key, at_least=consecutive_days) for key in STREAK_CHALLENGE_KEYS]
    return _completed_payload(completed)


def track_goal(user_id: int, goal_type: str) -> list[dict]:
    challenge_key = GOAL_CHALLENGE_KEYS.get(goal_type)
    if challenge_key is None:
        raise ValueError(f"Unknown goal type: {goal_type}")
    return _completed_payload([_advance(user_id, challenge_key, increment=1)])


def track_diary_goals(user_id: int, entries: list, new_entry, goals: dict) -> list[dict]:
    """Count goal hits caused by logging new_entry.

    Protein counts when this entry takes the day over the goal. The calorie goal is judged
    once a day is finished, so it is checked for the previous logged day when the first
    entry of a later day arrives. A back-dated entry judges nothing, so each
    earlier day is counted at most once.
    """
    day = new_entry.meal_date.date()
    others = [entry for entry in entries if entry.id != new_entry.id]
    before = daily_totals(others, [], day)
    after = daily_totals([*others, new_entry], [], day)

    completed = []
    if before["protein"] < goals["daily_protein"] <= after["protein"]:
        completed += track_goal(user_id, "protein")

    other_days = {entry.meal_date.date() for entry in others}
    if before["meal_count"] == 0 and all(other_day < day for other_day in other_days):
        if other_days:
            previous = daily_totals(others, [], max(other_days))
            if 0 < previous["calories"] <= goals["daily_calories"]:
                completed += track_goal(user_id, "calorie")
    return completed


def track_water_goal(user_id: int, drinks: list, new_drink, goals: dict) -> list[dict]:
    day = new_drink.logged_at.date()
    others = [drink for drink in drinks if drink.id != new_drink.id]
    before = daily_totals([], others, day)["water_ml"]
    after = daily_totals([], [*others, new_drink], day)["water_ml"]
    if before < goals["daily_water"] <= after:
        return track_goal(user_id, "water")
    return []


def challenges_with_progress(user_id: int) -> list[dict]:
    challenges = Challenge.query.filter_by(is_active=True).order_by(Challenge.id.asc()).all()
    progress_by_challenge = {
        progress.challenge_id: progress
        for progress in UserChallengeProgress.query.filter_by(user_id=user_id).all()
    }

    payload = []
    for challenge in challenges:
        progress = progress_by_challenge.get(challenge.id)
        payload.append(
            {
                **challenge.to_dict(),
                "progress": progress.to_dict()
                if progress
                else {"current_count": 0, "is_completed": False, "completed_at": None, "last_updated_at": None},
            }
        )
    return payload


def total_points(user_id: int) -> int:
    completed = (
        UserChallengeProgress.query.filter_by(user_id=user_id, is_completed=True)
        .join(Challenge, Challenge.id == UserChallengeProgress.challenge_id)
        .with_entities(db.func.coalesce(db.func.sum(Challenge.reward_points), 0))
        .scalar()
    )
    return int(completed or 0)
