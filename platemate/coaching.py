import json
from datetime import date, datetime, timedelta
from typing import Iterable

from platemate import db
from platemate.models import AICoachMemory, NutritionGoals

TIP_CATEGORIES = ("all", "nutrition", "medication", "motivation")
MAX_RECENT_MOODS = 30
MAX_CONVERSATION_TOPICS = 10

EDUCATIONAL_TIPS = [
    {
        "id": "protein-first",
        "title": "Lead with protein",
        "content": "Eating the protein on your plate first helps you feel full sooner and protects muscle while losing weight.",
        "category": "nutrition",
        "importance": "high",
    },
    {
        "id": "fibre-every-meal",
        "title": "Add fibre to every meal",
        "content": "Vegetables, beans, oats and berries slow digestion and smooth out blood sugar. Aim for a fist-sized portion each meal.",
        "category": "nutrition",
        "importance": "medium",
    },
    {
        "id": "hydrate-early",
        "title": "Front-load your water",
        "content": "Drink a large glass of water with breakfast and another before lunch. Thirst is easily mistaken for hunger.",
        "category": "nutrition",
        "importance": "medium",
    },
    {
        "id": "glp1-small-meals",
        "title": "Smaller meals on GLP-1 medication",
        "content": "GLP-1 medications slow stomach emptying. Smaller, protein-rich meals eaten slowly reduce nausea.",
        "category": "medication",
        "importance": "high",
    },
    {
        "id": "glp1-fluids",
        "title": "Stay ahead on fluids",
        "content": "Reduced appetite often means reduced fluid intake. Sip water through the day, especially after injection days.",
        "category": "medication",
        "importance": "high",
    },
    {
        "id": "glp1-fatty-foods",
        "title": "Go easy on greasy foods",
        "content": "High-fat, fried meals are the most common trigger for side effects while on GLP-1 medication.",
        "category": "medication",
        "importance": "medium",
    },
    {
        "id": "progress-not-perfection",
        "title": "Progress, not perfection",
        "content": "One off-plan meal does not undo a week of good choices. Log it, learn from it and move on.",
        "category": "motivation",
        "importance": "medium",
    },
    {
        "id": "streaks",
        "title": "Protect your streak",
        "content": "Logging something every day, even a rough estimate, keeps the habit alive and the data useful.",
        "category": "motivation",
        "importance": "low",
    },
]

INTEREST_KEYWORDS = (
    ("gym", "gym"),
    ("workout", "gym"),
    ("football", "football"),
    ("soccer", "football"),
    ("music", "music"),
    ("gaming", "gaming"),
    ("video game", "gaming"),
    ("kids", "kids"),
    ("children", "kids"),
    ("car", "cars"),
    ("mental health", "mental health"),
    ("meditation", "mindfulness"),
)


def educational_tips(category: str = "all") -> list[dict]:
    if category not in TIP_CATEGORIES:
        raise ValueError(f"Invalid category. Must be one of: {', '.join(TIP_CATEGORIES)}")
    if category == "all":
        return list(EDUCATIONAL_TIPS)
    return [tip for tip in EDUCATIONAL_TIPS if tip["category"] == category]


def goals_dict(goals: NutritionGoals | None) -> dict:
    if goals is None:
        return dict(NutritionGoals.DEFAULTS)
    return {field: getattr(goals, field) for field in NutritionGoals.DEFAULTS}


def daily_totals(entries: Iterable, drinks: Iterable, day: date) -> dict:
    totals = {
        "day": day.isoformat(),
        "calories": 0,
        "protein": 0.0,
        "carbs": 0.0,
        "fat": 0.0,
        "water_ml": 0,
        "drink_calories": 0,
        "caffeine_mg": 0,
        "alcohol_units": 0.0,
        "meal_count": 0,
    }
    for entry in entries:
        if entry.meal_date.date() != day:
            continue
        scaled = entry.scaled_totals()
        totals["calories"] += scaled["calories"]
        totals["protein"] += scaled["protein"]
        totals["carbs"] += scaled["carbs"]
        totals["fat"] += scaled["fat"]
        totals["meal_count"] += 1

    for drink in drinks:
        if drink.logged_at.date() != day:
            continue
        if drink.drink_type == "water":
            totals["water_ml"] += drink.amount
        totals["drink_calories"] += drink.calories or 0
        totals["caffeine_mg"] += drink.caffeine or 0
        totals["alcohol_units"] += drink.alcohol_units or 0

    for key in ("protein", "carbs", "fat", "alcohol_units"):
        totals[key] = round(totals[key], 1)
    return totals


def period_totals(entries: list, drinks: list, days: list[date]) -> dict:
    """Per-day average of daily_totals over days; meal_count stays a sum."""
    per_day = [daily_totals(entries, drinks, day) for day in days]
    count = max(len(per_day), 1)
    averaged = {
        key: round(sum(item[key] for item in per_day) / count, 1)
        for key in ("protein", "carbs", "fat", "alcohol_units")
    }
    for key in ("calories", "water_ml", "drink_calories", "caffeine_mg"):
        averaged[key] = int(round(sum(item[key] for item in per_day) / count))
    averaged["meal_count"] = sum(item["meal_count"] for item in per_day)
    averaged["days"] = len(per_day)
    return averaged


def logging_streak(days: Iterable[date], today: date) -> int:
    """Consecutive logged days ending today, or ending yesterday when today has nothing yet."""
    logged = set(days)
    if today in logged:
        cursor = today
    elif today - timedelta(days=1) in logged:
        cursor = today - timedelta(days=1)
    else:
        return 0

    streak = 0
    while cursor in logged:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def _entry_foods(entry) -> str:
    analysis = entry.analysis
    foods = (analysis.detected_foods if analysis else None) or []
    names = [food.get("name") for food in foods if isinstance(food, dict) and food.get("name")]
    return ", ".join(names) or "Unknown"


def nutrition_context_text(entries: list) -> str:
    if not entries:
        return "No recent meal data available."

    scaled = [entry.scaled_totals() for entry in entries]
    count = max(len(entries), 1)
    summary = {
        "total_meals": len(entries),
        "recent_meals": [
            {
                "date": entry.meal_date.date().isoformat(),
                "meal_type": entry.meal_type,
                "foods": _entry_foods(entry),
                **totals,
            }
            for entry, totals in list(zip(entries, scaled))[:10]
        ],
        "average_per_meal": {
            key: round(sum(item[key] for item in scaled) / count)
            for key in ("calories", "protein", "carbs", "fat")
        },
    }
    return json.dumps(summary, indent=2)


def memory_context_text(memory: AICoachMemory | None) -> str:
    if memory is None:
        return ""
    lines = [
        f"Coach personality: {memory.selected_personality}",
        f"Motivational style: {memory.motivational_style}",
    ]
    for label, value in (
        ("Occupation", memory.occupation),
        ("Work schedule", memory.work_schedule),
        ("Lifestyle", memory.lifestyle_details),
        ("Fitness goals", memory.fitness_goals),
        ("Dietary preferences", memory.dietary_preferences),
    ):
        if value:
            lines.append(f"{label}: {value}")
    if memory.interests:
        lines.append(f"Interests: {', '.join(memory.interests)}")
    if memory.conversation_topics:
        lines.append(f"Recent topics: {', '.join(memory.conversation_topics[:5])}")
    if memory.recent_moods:
        latest = memory.recent_moods[0]
        lines.append(f"Latest mood: {latest.get('mood')} (sentiment {latest.get('sentiment')})")
    return "\n".join(lines)


def streak_achievement(streak: int) -> str | None:
    return f"{streak} day logging streak!" if streak >= 7 else None


def rule_based_coaching(entries: list, goals: dict, today: date, on_medication: bool = False) -> dict:
    streak = logging_streak((entry.meal_date.date() for entry in entries), today)
    today_entries = [entry for entry in entries if entry.meal_date.date() == today]
    calories = sum(entry.scaled_totals()["calories"] for entry in today_entries)
    protein = sum(entry.scaled_totals()["protein"] for entry in today_entries)

    if not entries:
        motivation = "Every journey starts with a single meal. Log your first one today and let's build from there."
    elif streak >= 3:
        motivation = f"{streak} days in a row of logging. That consistency is exactly what drives lasting change."
    else:
        motivation = "You're doing great! Every healthy choice you make is an investment in your future self."

    if today_entries and protein < goals["daily_protein"] * 0.5:
        nutrition_tip = "Protein is running low today. Add eggs, Greek yogurt, chicken or beans to your next meal."
    elif calories > goals["daily_calories"]:
        nutrition_tip = "You're over today's calorie goal. Keep the rest of the day to water, vegetables and lean protein."
    else:
        nutrition_tip = "Try to include a variety of colourful vegetables in your meals for optimal nutrition."

    if not today_entries:
        todays_focus = "Log your first meal of the day, even a rough estimate counts."
    else:
        remaining = max(goals["daily_calories"] - calories, 0)
        todays_focus = f"You have about {remaining} kcal left today. Plan a balanced, protein-rich next meal."

    return {
        "motivation": motivation,
        "nutrition_tip": nutrition_tip,
        "medication_tip": (
            "On GLP-1 medication, smaller protein-rich meals and steady fluids help with side effects."
            if on_medication
            else None
        ),
        "encouragement": "Progress isn't always perfect, but consistency is key. You've got this!",
        "todays_focus": todays_focus,
        "streak": streak,
        "achievement": streak_achievement(streak),
        "source": "rule_based",
    }


def _percent(value: float, goal: float) -> int:
    return int(round(value / goal * 100)) if goal else 0


def reflection_context_text(period: str, totals: dict, goals: dict) -> str:
    return (
        f"Period: {period}\n"
        f"- Calories: {totals['calories']} / {goals['daily_calories']} ({_percent(totals['calories'], goals['daily_calories'])}%)\n"
        f"- Protein: {totals['protein']}g / {goals['daily_protein']}g ({_percent(totals['protein'], goals['daily_protein'])}%)\n"
        f"- Carbs: {totals['carbs']}g\n"
        f"- Fat: {totals['fat']}g\n"
        f"- Water: {totals['water_ml']}ml / {goals['daily_water']}ml ({_percent(totals['water_ml'], goals['daily_water'])}%)\n"
        f"- Meals logged: {totals['meal_count']}"
    )


def rule_based_reflection(period: str, totals: dict, goals: dict) -> dict:
    went_well = []
    could_improve = []
    action_steps = []

    if totals["meal_count"]:
        went_well.append(f"You logged {totals['meal_count']} meals, which keeps your picture of this {period} accurate.")
    else:
        could_improve.append("No meals were logged, so there is little to learn from this period.")
        action_steps.append("Log at least one meal a day, even a quick estimate")

    if totals["protein"] >= goals["daily_protein"] * 0.8:
        went_well.append("Protein intake was close to or above your goal.")
    else:
        could_improve.append("Protein came in under target.")
        action_steps.append("Add a protein source to every meal")

    if totals["water_ml"] >= goals["daily_water"]:
        went_well.append("You hit your water goal.")
    else:
        could_improve.append("Water intake fell short of your goal.")
        action_steps.append("Set a reminder to drink water every 2 hours")

    if not went_well:
        went_well.append("You took the time to reflect, which is a great habit to maintain.")
    if not could_improve:
        could_improve.append("Keep doing what you're doing and look for one small improvement.")
    if not action_steps:
        action_steps.append("Plan tomorrow's meals in advance")

    sentiment = 50 + 15 * len(went_well) - 10 * len(could_improve)
    return {
        "went_well": " ".join(went_well),
        "could_improve": " ".join(could_improve),
        "action_steps": action_steps,
        "sentiment_score": max(0, min(100, sentiment)),
        "ai_provider": "fallback",
        "ai_model": "none",
    }


def get_or_create_memory(user_id: int) -> AICoachMemory:
    memory = AICoachMemory.query.filter_by(user_id=user_id).first()
    if memory is None:
        memory = AICoachMemory(
            user_id=user_id,
            selected_personality="zen",
            motivational_style="positive",
            interests=[],
            conversation_topics=[],
            recent_moods=[],
        )
        db.session.add(memory)
        db.session.commit()
    return memory


def add_mood_entry(memory: AICoachMemory, mood: str, sentiment: int) -> None:
    entry = {"date": datetime.utcnow().isoformat(), "mood": mood, "sentiment": sentiment}
    memory.recent_moods = [entry, *(memory.recent_moods or [])][:MAX_RECENT_MOODS]


def add_conversation_topic(memory: AICoachMemory, topic: str) -> None:
    topics = [existing for existing in (memory.conversation_topics or []) if existing != topic]
    memory.conversation_topics = [topic, *topics][:MAX_CONVERSATION_TOPICS]


def learn_from_message(memory: AICoachMemory, message: str) -> list[str]:
    """Pick up interests and schedule hints from free text. Returns the newly learned interests."""
    text = (message or "").lower()
    interests = list(memory.interests or [])
    learned = []
    for keyword, interest in INTEREST_KEYWORDS:
        if keyword in text and interest not in interests:
            interests.append(interest)
            learned.append(interest)
    if learned:
        memory.interests = interests

    if "night shift" in text:
        memory.work_schedule = "night shifts"
    elif "day shift" in text:
        memory.work_schedule = "day shifts"

    if "nurse" in text or "nursing" in text:
        memory.occupation = "nurse"
    elif any(word in text for word in ("military", "army", "veteran")):
        memory.lifestyle_details = "ex-military"

    memory.last_interaction = datetime.utcnow()
    return learned
