import math
from datetime import date, datetime, timezone

from platemate.models import (
    COACH_PERSONALITIES,
    DRINK_TYPES,
    MEAL_TYPES,
    REFLECTION_PERIODS,
    STEP_SOURCES,
)

SEXES = ("male", "female")
ACTIVITY_LEVELS = ("sedentary", "lightly_active", "moderately_active", "very_active", "extra_active")
WEIGHT_GOALS = ("lose_weight", "maintain_weight", "gain_weight")
MEDICATIONS = ("none", "ozempic", "wegovy", "mounjaro", "other_glp1")
MOTIVATIONAL_STYLES = ("positive", "tough_love", "balanced")
FINAL_CONFIRMATION_STATUSES = ("confirmed", "rejected")

MIN_PORTION_MULTIPLIER = 10
MAX_PORTION_MULTIPLIER = 1000


class ValidationError(ValueError):
    def __init__(self, message: str, details: list[str] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or [message]


def normalize_text(value):
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.lower() in {"none", "null"}:
        return None
    return text


def _require_mapping(body):
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    return body


def parse_number(value, field: str, *, minimum=None, maximum=None, allow_none=False):
    if value in (None, ""):
        if allow_none:
            return None
        raise ValidationError(f"{field} is required.")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a number.") from None
    if not math.isfinite(number):
        raise ValidationError(f"{field} must be a finite number.")
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}.")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be at most {maximum}.")
    return number


def parse_integer(value, field: str, *, minimum=None, maximum=None, allow_none=False):
    number = parse_number(value, field, minimum=minimum, maximum=maximum, allow_none=allow_none)
    if number is None:
        return None
    if not float(number).is_integer():
        raise ValidationError(f"{field} must be a whole number.")
    return int(number)


def parse_choice(value, field: str, choices, *, allow_none=False):
    text = normalize_text(value)
    if text is None:
        if allow_none:
            return None
        raise ValidationError(f"{field} is required.")
    text = text.lower()
    if text not in choices:
        raise ValidationError(f"{field} must be one of: {', '.join(choices)}.")
    return text


def parse_datetime(value, field: str = "date", *, allow_none=False) -> datetime | None:
    """Parse an ISO-8601 timestamp (a trailing "Z" is accepted) into a naive UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = normalize_text(value)
        if text is None:
            if allow_none:
                return None
            raise ValidationError(f"{field} is required.")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 date or datetime.") from None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_date(value, field: str = "day", *, allow_none=False) -> date | None:
    parsed = parse_datetime(value, field, allow_none=allow_none)
    return parsed.date() if parsed is not None else None


def parse_detected_foods(raw, field: str = "detected_foods") -> list[dict]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError(f"At least one food item is required in {field}.")

    foods = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"{field}[{index}] must be an object.")
        name = normalize_text(item.get("name"))
        if not name:
            raise ValidationError(f"{field}[{index}].name is required.")
        foods.append(
            {
                "name": name[:255],
                "portion": normalize_text(item.get("portion")) or "1 serving",
                "calories": parse_number(item.get("calories"), f"{field}[{index}].calories", minimum=0),
                "protein": parse_number(item.get("protein"), f"{field}[{index}].protein", minimum=0),
                "carbs": parse_number(item.get("carbs"), f"{field}[{index}].carbs", minimum=0),
                "fat": parse_number(item.get("fat"), f"{field}[{index}].fat", minimum=0),
                "icon": normalize_text(item.get("icon")) or "🍽️",
            }
        )
    return foods


def parse_diary_entry(body, partial: bool = False) -> dict:
    body = _require_mapping(body)
    values = {}

    if not partial or "meal_type" in body:
        values["meal_type"] = parse_choice(body.get("meal_type"), "meal_type", MEAL_TYPES)
    if "custom_meal_name" in body:
        values["custom_meal_name"] = normalize_text(body.get("custom_meal_name"))
    if values.get("meal_type") == "custom" and not partial and not values.get("custom_meal_name"):
        raise ValidationError("custom_meal_name is required for custom meals.")

    if not partial or "meal_date" in body:
        values["meal_date"] = parse_datetime(body.get("meal_date"), "meal_date")
    if "notes" in body:
        values["notes"] = normalize_text(body.get("notes"))

    if "portion_multiplier" in body and body.get("portion_multiplier") is not None:
        values["portion_multiplier"] = parse_integer(
            body.get("portion_multiplier"),
            "portion_multiplier",
            minimum=MIN_PORTION_MULTIPLIER,
            maximum=MAX_PORTION_MULTIPLIER,
        )
    elif not partial:
        values["portion_multiplier"] = 100

    if "analysis_id" in body and body.get("analysis_id") is not None:
        values["analysis_id"] = parse_integer(body.get("analysis_id"), "analysis_id", minimum=1)
    return values


def parse_drink_entry(body) -> dict:
    body = _require_mapping(body)
    drink_name = normalize_text(body.get("drink_name"))
    if not drink_name:
        raise ValidationError("drink_name is required.")

    amount = parse_integer(body.get("amount"), "amount", minimum=1)
    alcohol_content = parse_number(body.get("alcohol_content"), "alcohol_content", minimum=0, maximum=100, allow_none=True) or 0.0
    logged_at = parse_datetime(body.get("logged_at"), "logged_at", allow_none=True) or datetime.utcnow()

    return {
        "drink_name": drink_name[:255],
        "drink_type": parse_choice(body.get("drink_type"), "drink_type", DRINK_TYPES),
        "amount": amount,
        "calories": parse_integer(body.get("calories"), "calories", minimum=0, allow_none=True) or 0,
        "caffeine": parse_integer(body.get("caffeine"), "caffeine", minimum=0, allow_none=True) or 0,
        "sugar": parse_integer(body.get("sugar"), "sugar", minimum=0, allow_none=True) or 0,
        "alcohol_content": alcohol_content,
        "logged_at": logged_at,
        "notes": normalize_text(body.get("notes")),
    }


def parse_weight_entry(body, partial: bool = False) -> dict:
    body = _require_mapping(body)
    values = {}

    if body.get("weight_grams") is not None:
        values["weight_grams"] = parse_integer(body.get("weight_grams"), "weight_grams", minimum=1)
    elif body.get("weight_kg") is not None:
        values["weight_grams"] = int(round(parse_number(body.get("weight_kg"), "weight_kg", minimum=0.001) * 1000))
    elif not partial:
        raise ValidationError("weight_grams or weight_kg is required.")

    if "logged_at" in body:
        values["logged_at"] = parse_datetime(body.get("logged_at"), "logged_at")
    elif not partial:
        values["logged_at"] = datetime.utcnow()
    if "notes" in body:
        values["notes"] = normalize_text(body.get("notes"))

    if partial and not values:
        raise ValidationError("No weight fields supplied.")
    return values


def parse_step_entry(body) -> dict:
    body = _require_mapping(body)
    return {
        "day": parse_date(body.get("day") or body.get("date"), "day", allow_none=True) or datetime.utcnow().date(),
        "steps": parse_integer(body.get("steps"), "steps", minimum=0),
        "source": parse_choice(body.get("source") or "manual", "source", STEP_SOURCES),
    }


def parse_nutrition_goals(body) -> dict:
    body = _require_mapping(body)
    values = {}
    for field in ("daily_calories", "daily_protein", "daily_carbs", "daily_fat", "daily_water"):
        if field in body:
            values[field] = parse_integer(body.get(field), field, minimum=0)
    if not values:
        raise ValidationError("No nutrition goal fields supplied.")
    return values


def parse_user_profile(body) -> dict:
    body = _require_mapping(body)
    values = {}
    for field, maximum in (
        ("age", 130),
        ("height_cm", 300),
        ("current_weight_kg", 700),
        ("goal_weight_kg", 700),
    ):
        if field in body:
            values[field] = parse_integer(body.get(field), field, minimum=1, maximum=maximum, allow_none=True)
    if "weekly_weight_change_kg" in body:
        values["weekly_weight_change_kg"] = parse_integer(
            body.get("weekly_weight_change_kg"), "weekly_weight_change_kg", minimum=-5, maximum=5, allow_none=True
        )

    for field, choices in (
        ("sex", SEXES),
        ("activity_level", ACTIVITY_LEVELS),
        ("weight_goal", WEIGHT_GOALS),
        ("medication", MEDICATIONS),
    ):
        if field in body:
            values[field] = parse_choice(body.get(field), field, choices, allow_none=True)
    return values


def parse_confirmation_update(body) -> dict:
    body = _require_mapping(body)
    status = parse_choice(body.get("status"), "status", FINAL_CONFIRMATION_STATUSES)
    final_foods = None
    if status == "confirmed" or body.get("final_foods"):
        final_foods = parse_detected_foods(body.get("final_foods"), "final_foods")
    return {
        "status": status,
        "final_foods": final_foods,
        "user_feedback": normalize_text(body.get("user_feedback")),
    }


def _string_list(raw, field: str) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"{field} must be a list of strings.")
    return [text for text in (normalize_text(item) for item in raw) if text]


def parse_saved_recipe(body) -> dict:
    body = _require_mapping(body)
    name = normalize_text(body.get("name"))
    if not name:
        raise ValidationError("name is required.")
    ingredients = _string_list(body.get("ingredients"), "ingredients")
    if not ingredients:
        raise ValidationError("At least one ingredient is required.")

    return {
        "name": name[:255],
        "description": normalize_text(body.get("description")),
        "ingredients": ingredients,
        "instructions": _string_list(body.get("instructions"), "instructions"),
        "calories": parse_integer(body.get("calories"), "calories", minimum=0, allow_none=True),
        "protein": parse_integer(body.get("protein"), "protein", minimum=0, allow_none=True),
        "carbs": parse_integer(body.get("carbs"), "carbs", minimum=0, allow_none=True),
        "fat": parse_integer(body.get("fat"), "fat", minimum=0, allow_none=True),
        "cooking_time": normalize_text(body.get("cooking_time") or body.get("cookingTime")),
        "difficulty": normalize_text(body.get("difficulty")),
        "dietary_info": _string_list(body.get("dietary_info") or body.get("dietaryInfo"), "dietary_info"),
    }


def parse_coach_memory(body) -> dict:
    body = _require_mapping(body)
    values = {}
    if "selected_personality" in body:
        values["selected_personality"] = parse_choice(
            body.get("selected_personality"), "selected_personality", COACH_PERSONALITIES
        )
    if "motivational_style" in body:
        values["motivational_style"] = parse_choice(
            body.get("motivational_style"), "motivational_style", MOTIVATIONAL_STYLES
        )
    for field in ("occupation", "work_schedule", "lifestyle_details", "fitness_goals", "dietary_preferences"):
        if field in body:
            values[field] = normalize_text(body.get(field))
    for field in ("interests", "conversation_topics"):
        if field in body:
            values[field] = _string_list(body.get(field), field)
    if not values:
        raise ValidationError("No coach memory fields supplied.")
    return values


def parse_reflection_period(value) -> str:
    return parse_choice(value or "daily", "period", REFLECTION_PERIODS)
