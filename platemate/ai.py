import base64
import json
import logging
import math
import re

from flask import current_app
from openai import OpenAI, OpenAIError

logger = logging.getLogger(__name__)

DEFAULT_FOOD_ICON = "🍽️"

FOOD_JSON_SHAPE = (
    '{"confidence": number (0-100), "detected_foods": [{"name": "simple food name", '
    '"portion": "amount with unit, e.g. 150g, 2 large eggs, 1 cup", "calories": number, '
    '"protein": number, "carbs": number, "fat": number, "icon": "single emoji"}]}'
)


class AIUnavailableError(RuntimeError):
    pass


def ai_enabled() -> bool:
    return bool(current_app.config.get("OPENAI_API_KEY"))


def _client() -> OpenAI:
    api_key = current_app.config.get("OPENAI_API_KEY")
    if not api_key:
        raise AIUnavailableError("OPENAI_API_KEY is not configured.")
    return OpenAI(api_key=api_key)


def _extract_json_object(raw_text: str) -> dict:
    text = (raw_text or "").strip()
    if not text:
        return {}

    if text.startswith("```"):
        text = re.sub(r"^```[a-zA-Z0-9]*\s*", "", text)
        text = re.sub(r"\s*```$", "", text)

    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    match = re.search(r"\{[\s\S]*\}", text)
    if not match:
        return {}
    try:
        parsed = json.loads(match.group(0))
        return parsed if isinstance(parsed, dict) else {}
    except json.JSONDecodeError:
        return {}


def _respond_json(model_setting: str, prompt_input) -> tuple[dict, str]:
    client = _client()
    model = current_app.config.get(model_setting) or "gpt-4.1-mini"
    try:
        response = client.responses.create(model=model, input=prompt_input)
    except OpenAIError as exc:
        logger.warning("OpenAI request with %s failed: %s", model, exc)
        raise AIUnavailableError(f"AI request failed: {exc}") from exc
    return _extract_json_object(response.output_text or ""), model


def _as_number(value) -> float:
    if value in (None, "") or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) and number >= 0 else 0.0


def _clamp_confidence(value, default: int) -> int:
    if value in (None, ""):
        return default
    return max(0, min(100, int(round(_as_number(value)))))


def normalize_detected_foods(raw_foods) -> list[dict]:
    foods = []
    for item in raw_foods or []:
        if not isinstance(item, dict):
            continue
        name = str(item.get("name") or "").strip()
        if not name:
            continue
        foods.append(
            {
                "name": name[:255],
                "portion": str(item.get("portion") or "1 serving").strip()[:120],
                "calories": int(round(_as_number(item.get("calories")))),
                "protein": int(round(_as_number(item.get("protein")))),
                "carbs": int(round(_as_number(item.get("carbs")))),
                "fat": int(round(_as_number(item.get("fat")))),
                "icon": str(item.get("icon") or DEFAULT_FOOD_ICON).strip()[:16] or DEFAULT_FOOD_ICON,
            }
        )
    return foods


def summarize_foods(foods) -> dict:
    return {
        "total_calories": int(round(sum(_as_number(food.get("calories")) for food in foods))),
        "total_protein": int(round(sum(_as_number(food.get("protein")) for food in foods))),
        "total_carbs": int(round(sum(_as_number(food.get("carbs")) for food in foods))),
        "total_fat": int(round(sum(_as_number(food.get("fat")) for food in foods))),
    }


def _food_result(parsed: dict, default_confidence: int) -> dict:
    raw_foods = parsed.get("detected_foods") or parsed.get("detectedFoods")
    foods = normalize_detected_foods(raw_foods if isinstance(raw_foods, list) else [])
    if not foods:
        raise AIUnavailableError("The AI response did not include any recognisable foods.")
    return {
        "confidence": _clamp_confidence(parsed.get("confidence"), default_confidence),
        "detected_foods": foods,
    }


def analyze_food_text(description: str) -> dict:
    description = (description or "").strip()
    if not description:
        raise ValueError("A food description is required.")

    prompt = (
        "You are a nutrition expert. Identify every food in the user's description and estimate "
        "realistic portions and nutrition from standard USDA values.\n"
        "If the user gives a quantity (\"4 Weetabix\", \"2 eggs\"), multiply nutrition by it and keep it in the portion.\n"
        "Create separate items for \"X and Y\" patterns.\n"
        f"Return JSON only with this exact structure:\n{FOOD_JSON_SHAPE}\n\n"
        f"Description: {description}"
    )
    parsed, _ = _respond_json("OPENAI_TEXT_MODEL", prompt)
    return _food_result(parsed, default_confidence=90)


def analyze_food_image(image_bytes: bytes, mime_type: str | None = None) -> dict:
    if not image_bytes:
        raise ValueError("No image data was provided.")

    mime = (mime_type or "image/jpeg").split(";")[0].strip()
    if not mime.startswith("image/"):
        mime = "image/jpeg"
    image_b64 = base64.b64encode(image_bytes).decode("utf-8")

    prompt = (
        "Identify every food and drink in this photo. Use reference objects (plates, cutlery, hands) "
        "to estimate portion sizes, and estimate nutrition for each item from standard USDA values.\n"
        f"Return JSON only with this exact structure:\n{FOOD_JSON_SHAPE}"
    )
    parsed, _ = _respond_json(
        "OPENAI_VISION_MODEL",
        [
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": prompt},
                    {"type": "input_image", "image_url": f"data:{mime};base64,{image_b64}"},
                ],
            }
        ],
    )
    return _food_result(parsed, default_confidence=85)


def generate_daily_coaching(context_text: str, memory_text: str = "") -> dict:
    prompt = (
        "You are PlateMate's AI wellness coach. Generate daily coaching content that is motivational, "
        "educational and personalised. Be encouraging and give actionable advice.\n\n"
        f"User's recent nutrition data:\n{context_text}\n\n"
        f"What you remember about the user:\n{memory_text or 'Nothing yet.'}\n\n"
        "Return JSON only with keys: motivation (30-50 words), nutrition_tip (30-50 words), "
        "medication_tip (20-40 words about GLP-1 medication and nutrition, or null when not relevant), "
        "encouragement (20-40 words), todays_focus (15-30 words), achievement (or null)."
    )
    parsed, _ = _respond_json("OPENAI_COACH_MODEL", prompt)
    return {
        "motivation": parsed.get("motivation")
        or "You're doing great! Every healthy choice you make is an investment in your future self.",
        "nutrition_tip": parsed.get("nutrition_tip")
        or "Try to include a variety of colourful vegetables in your meals for optimal nutrition.",
        "medication_tip": parsed.get("medication_tip") or None,
        "encouragement": parsed.get("encouragement")
        or "Progress isn't always perfect, but consistency is key. You've got this!",
        "todays_focus": parsed.get("todays_focus") or "Focus on staying hydrated and eating mindfully today.",
        "achievement": parsed.get("achievement") or None,
    }


def generate_recipes(diet: str | None = None) -> list[dict]:
    diet_line = f"Every recipe must suit this diet: {diet}." if diet and diet != "all" else "Mix of diets."
    prompt = (
        "Suggest 6 healthy, realistic recipes. "
        f"{diet_line}\n"
        "Return JSON only: {\"recipes\": [{\"name\", \"description\", \"calories\", \"protein\", \"carbs\", "
        "\"fat\", \"servings\", \"prep_time\", \"cook_time\", \"difficulty\" (Easy/Medium/Hard), "
        "\"ingredients\": [\"quantity unit ingredient\"], \"instructions\": [steps], \"tags\": [], "
        "\"dietary_info\": []}]}"
    )
    parsed, _ = _respond_json("OPENAI_TEXT_MODEL", prompt)
    recipes = parsed.get("recipes")
    if not isinstance(recipes, list):
        raise AIUnavailableError("The AI response did not include recipes.")

    cleaned = []
    for recipe in recipes:
        if not isinstance(recipe, dict) or not recipe.get("name"):
            continue
        ingredients = recipe.get("ingredients")
        recipe["ingredients"] = [str(item) for item in ingredients] if isinstance(ingredients, list) else []
        dietary_info = recipe.get("dietary_info") or recipe.get("dietaryInfo")
        recipe["dietary_info"] = dietary_info if isinstance(dietary_info, list) else []
        cleaned.append(recipe)
    if not cleaned:
        raise AIUnavailableError("The AI response did not include recipes.")
    return cleaned


def generate_reflection(period: str, context_text: str) -> dict:
    prompt = (
        f"You are a supportive nutrition coach. Write a brief, encouraging {period} reflection "
        "based on this nutrition data.\n\n"
        f"{context_text}\n\n"
        "Return JSON only: {\"went_well\": \"2-3 positive observations\", "
        "\"could_improve\": \"2-3 constructive suggestions\", "
        "\"action_steps\": [\"specific action\", ...], \"sentiment_score\": 0-100}.\n"
        "Keep the tone warm and actionable. Focus on progress, not perfection."
    )
    parsed, model = _respond_json("OPENAI_COACH_MODEL", prompt)
    action_steps = parsed.get("action_steps")
    if not isinstance(action_steps, list) or not action_steps:
        action_steps = ["Keep logging your meals", "Stay hydrated", "Aim for balanced nutrition"]
    return {
        "went_well": parsed.get("went_well") or "You logged your meals consistently.",
        "could_improve": parsed.get("could_improve") or "Consider tracking water intake more regularly.",
        "action_steps": [str(step) for step in action_steps],
        "sentiment_score": _clamp_confidence(parsed.get("sentiment_score"), 75),
        "ai_provider": "openai",
        "ai_model": model,
    }
