from datetime import date, datetime, timedelta
from functools import wraps

from flask import Blueprint, abort, current_app, g, jsonify, request, send_from_directory, session
from werkzeug.exceptions import HTTPException
from werkzeug.security import check_password_hash, generate_password_hash

from platemate import db
from platemate.ai import (
    AIUnavailableError,
    ai_enabled,
    analyze_food_image,
    analyze_food_text,
    generate_daily_coaching,
    generate_recipes,
    generate_reflection,
    summarize_foods,
)
from platemate.challenges import (
    challenges_with_progress,
    check_streak,
    ensure_challenges_seeded,
    total_points,
    track_diary_goals,
    track_meal_logged,
    track_water_goal,
    track_weight_logged,
)
from platemate.coaching import (
    add_conversation_topic,
    add_mood_entry,
    daily_totals,
    educational_tips,
    get_or_create_memory,
    goals_dict,
    learn_from_message,
    logging_streak,
    memory_context_text,
    nutrition_context_text,
    period_totals,
    reflection_context_text,
    rule_based_coaching,
    rule_based_reflection,
    streak_achievement,
)
from platemate.food_catalog import get_food_services, scale_nutrients
from platemate.images import ImageUploadError, discard_upload, save_upload
from platemate.models import (
    AICoachMemory,
    DiaryEntry,
    DrinkEntry,
    FoodAnalysis,
    FoodConfirmation,
    NutritionGoals,
    Reflection,
    SavedRecipe,
    ShoppingListItem,
    StepEntry,
    User,
    UserProfile,
    WeightEntry,
)
from platemate.portions import measured_grams, parse_portion, portion_options, portion_to_grams
from platemate.schemas import (
    ValidationError,
    normalize_text,
    parse_coach_memory,
    parse_confirmation_update,
    parse_date,
    parse_detected_foods,
    parse_diary_entry,
    parse_drink_entry,
    parse_integer,
    parse_nutrition_goals,
    parse_reflection_period,
    parse_saved_recipe,
    parse_step_entry,
    parse_user_profile,
    parse_weight_entry,
)
from platemate.shopping import build_shopping_list

bp = Blueprint("api", __name__)

CONFIRMED_ANALYSIS_CONFIDENCE = 95
BARCODE_CONFIDENCE = 100

FALLBACK_RECIPES = [
    {
        "id": "fallback-1",
        "name": "Grilled Chicken Salad",
        "description": "Fresh mixed greens with grilled chicken breast, cherry tomatoes, and olive oil dressing",
        "calories": 320,
        "protein": 35,
        "carbs": 12,
        "fat": 15,
        "servings": 1,
        "prep_time": 15,
        "cook_time": 10,
        "difficulty": "Easy",
        "ingredients": ["2 cups mixed greens", "150g chicken breast", "1 cup cherry tomatoes", "1 tbsp olive oil", "1 tbsp lemon juice"],
        "instructions": ["Grill chicken", "Mix greens", "Add toppings", "Dress salad"],
        "tags": ["healthy", "protein"],
        "dietary_info": ["high-protein", "gluten-free"],
    },
    {
        "id": "fallback-2",
        "name": "Quinoa Buddha Bowl",
        "description": "Nutritious bowl with quinoa, roasted vegetables, and tahini dressing",
        "calories": 450,
        "protein": 15,
        "carbs": 65,
        "fat": 18,
        "servings": 1,
        "prep_time": 20,
        "cook_time": 25,
        "difficulty": "Medium",
        "ingredients": ["1/2 cup quinoa", "1 sweet potato", "1 cup broccoli", "1/2 cup chickpeas", "2 tbsp tahini"],
        "instructions": ["Cook quinoa", "Roast vegetables", "Assemble bowl", "Add dressing"],
        "tags": ["vegan", "healthy"],
        "dietary_info": ["vegan", "vegetarian", "high-fiber"],
    },
    {
        "id": "fallback-3",
        "name": "Mediterranean Wrap",
        "description": "Whole wheat wrap with hummus, vegetables, and feta cheese",
        "calories": 380,
        "protein": 12,
        "carbs": 45,
        "fat": 16,
        "servings": 1,
        "prep_time": 10,
        "cook_time": 0,
        "difficulty": "Easy",
        "ingredients": ["1 whole wheat tortilla", "3 tbsp hummus", "1/2 cucumber", "2 tomatoes", "30g feta cheese"],
        "instructions": ["Spread hummus", "Add vegetables", "Add cheese", "Roll wrap"],
        "tags": ["vegetarian", "mediterranean"],
        "dietary_info": ["vegetarian", "mediterranean"],
    },
]


def json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def utc_today() -> date:
    return datetime.utcnow().date()


def day_bounds(target_day: date):
    start = datetime.combine(target_day, datetime.min.time())
    return start, start + timedelta(days=1)


def parse_limit(default: int = 100, maximum: int = 500) -> int:
    raw = request.args.get("limit")
    if raw in (None, ""):
        return default
    return parse_integer(raw, "limit", minimum=1, maximum=maximum)


def normalize_email(value: str | None):
    if not value:
        return None
    return value.strip().lower()


def get_owned_or_abort(model, object_id: int):
    record = db.session.get(model, object_id)
    if record is None:
        abort(404, description=f"{model.__name__} not found.")
    if record.user_id != g.user.id:
        abort(403, description="Access denied.")
    return record


def get_goals(user_id: int) -> dict:
    return goals_dict(NutritionGoals.query.filter_by(user_id=user_id).first())


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if g.user is None:
            return jsonify({"error": "Authentication required."}), 401
        return view(*args, **kwargs)

    return wrapped


@bp.before_app_request
def load_logged_in_user():
    user_id = session.get("user_id")
    g.user = db.session.get(User, user_id) if user_id else None


@bp.app_errorhandler(ValidationError)
def handle_validation_error(exc: ValidationError):
    return jsonify({"error": exc.message, "details": exc.details}), 400


@bp.app_errorhandler(ImageUploadError)
def handle_image_error(exc: ImageUploadError):
    return jsonify({"error": str(exc)}), 400


@bp.app_errorhandler(AIUnavailableError)
def handle_ai_unavailable(exc: AIUnavailableError):
    current_app.logger.warning("AI unavailable: %s", exc)
    return jsonify({"error": "AI service is temporarily unavailable.", "details": [str(exc)]}), 503


@bp.app_errorhandler(HTTPException)
def handle_http_error(exc: HTTPException):
    return jsonify({"error": exc.description or exc.name}), exc.code


@bp.app_errorhandler(500)
def handle_server_error(exc):
    db.session.rollback()
    return jsonify({"error": "Internal server error."}), 500


# --- auth -------------------------------------------------------------------


@bp.post("/api/auth/register")
def register():
    body = json_body()
    email = normalize_email(body.get("email"))
    password = body.get("password") or ""

    if not email or "@" not in email:
        raise ValidationError("A valid email is required.")
    if len(password) < 8:
        raise ValidationError("Password must be at least 8 characters.")
    if User.query.filter_by(email=email).first():
        return jsonify({"error": "An account with that email already exists."}), 409

    user = User(
        email=email,
        password_hash=generate_password_hash(password),
        first_name=normalize_text(body.get("first_name")),
        last_name=normalize_text(body.get("last_name")),
    )
    db.session.add(user)
    db.session.commit()

    session.clear()
    session["user_id"] = user.id
    current_app.logger.info("Registered user %s", user.id)
    return jsonify(user.to_dict()), 201


@bp.post("/api/auth/login")
def login():
    body = json_body()
    email = normalize_email(body.get("email"))
    password = body.get("password") or ""

    user = User.query.filter_by(email=email).first() if email else None
    if not user or not user.password_hash or not check_password_hash(user.password_hash, password):
        return jsonify({"error": "Invalid email or password."}), 401

    session.clear()
    session["user_id"] = user.id
    return jsonify(user.to_dict())


@bp.post("/api/auth/logout")
@login_required
def logout():
    session.clear()
    return jsonify({"success": True})


@bp.get("/api/auth/user")
@login_required
def auth_user():
    return jsonify(g.user.to_dict())


# --- analysis -----------------------------------------------------------------


def store_analysis_result(result: dict, image_url: str, threshold: int):
    foods = result["detected_foods"]
    confidence = result["confidence"]

    if confidence < threshold:
        confirmation = FoodConfirmation(
            user_id=g.user.id,
            image_url=image_url,
            original_confidence=confidence,
            suggested_foods=foods,
            status="pending",
        )
        db.session.add(confirmation)
        db.session.commit()
        current_app.logger.info(
            "Confidence %s below %s, created confirmation %s", confidence, threshold, confirmation.id
        )
        return jsonify(
            {
                "type": "confirmation_required",
                "confirmation_id": confirmation.id,
                "confidence": confidence,
                "message": "Analysis requires confirmation due to low confidence",
                "suggested_foods": foods,
                "image_url": image_url,
            }
        )

    analysis = FoodAnalysis(user_id=g.user.id, image_url=image_url, confidence=confidence, detected_foods=foods)
    analysis.apply_totals(summarize_foods(foods))
    db.session.add(analysis)
    db.session.commit()
    return jsonify(analysis.to_dict())


@bp.post("/api/analyze")
@login_required
def analyze_image():
    upload_dir = current_app.config["UPLOAD_FOLDER"]
    image_url, jpeg_bytes = save_upload(request.files.get("image"), upload_dir, current_app.config["IMAGE_MAX_DIMENSION"])
    try:
        result = analyze_food_image(jpeg_bytes, "image/jpeg")
    except AIUnavailableError:
        discard_upload(image_url, upload_dir)
        raise
    return store_analysis_result(result, image_url, current_app.config["IMAGE_CONFIDENCE_THRESHOLD"])


@bp.post("/api/analyze-text")
@login_required
def analyze_text():
    description = normalize_text(json_body().get("food_description"))
    if not description:
        raise ValidationError("food_description is required.")
    result = analyze_food_text(description)
    return store_analysis_result(result, "text-input", current_app.config["TEXT_CONFIDENCE_THRESHOLD"])


def get_analysis_or_abort(analysis_id: int) -> FoodAnalysis:
    analysis = db.session.get(FoodAnalysis, analysis_id)
    if analysis is None:
        abort(404, description="Analysis not found.")
    if analysis.user_id is not None and analysis.user_id != g.user.id:
        abort(403, description="Access denied.")
    return analysis


@bp.get("/api/analyses/<int:analysis_id>")
@login_required
def analysis_detail(analysis_id: int):
    return jsonify(get_analysis_or_abort(analysis_id).to_dict())


@bp.patch("/api/analyses/<int:analysis_id>")
@login_required
def analysis_update(analysis_id: int):
    analysis = get_analysis_or_abort(analysis_id)
    foods = parse_detected_foods(json_body().get("detected_foods"))
    analysis.detected_foods = foods
    analysis.apply_totals(summarize_foods(foods))
    db.session.commit()
    return jsonify(analysis.to_dict())


@bp.get("/api/food-confirmations")
@login_required
def confirmation_list():
    query = FoodConfirmation.query.filter_by(user_id=g.user.id)
    status = normalize_text(request.args.get("status"))
    if status:
        query = query.filter_by(status=status)
    confirmations = query.order_by(FoodConfirmation.created_at.desc()).all()
    return jsonify([confirmation.to_dict() for confirmation in confirmations])


@bp.get("/api/food-confirmations/<int:confirmation_id>")
@login_required
def confirmation_detail(confirmation_id: int):
    return jsonify(get_owned_or_abort(FoodConfirmation, confirmation_id).to_dict())


@bp.patch("/api/food-confirmations/<int:confirmation_id>")
@login_required
def confirmation_update(confirmation_id: int):
    confirmation = get_owned_or_abort(FoodConfirmation, confirmation_id)
    if confirmation.status != "pending":
        return jsonify({"error": f"Confirmation is already {confirmation.status}."}), 409

    values = parse_confirmation_update(json_body())
    confirmation.status = values["status"]
    confirmation.final_foods = values["final_foods"]
    confirmation.user_feedback = values["user_feedback"]
    confirmation.confirmed_at = datetime.utcnow()

    if values["status"] != "confirmed":
        db.session.commit()
        current_app.logger.info("User %s rejected confirmation %s", g.user.id, confirmation.id)
        return jsonify({"confirmation": confirmation.to_dict(), "final_analysis": None})

    analysis = FoodAnalysis(
        user_id=g.user.id,
        image_url=confirmation.image_url,
        confidence=CONFIRMED_ANALYSIS_CONFIDENCE,
        detected_foods=values["final_foods"],
    )
    analysis.apply_totals(summarize_foods(values["final_foods"]))
    db.session.add(analysis)
    db.session.flush()
    confirmation.analysis_id = analysis.id
    db.session.commit()
    return jsonify({"confirmation": confirmation.to_dict(), "final_analysis": analysis.to_dict()})


# --- external nutrition lookups -------------------------------------------------


@bp.get("/api/barcode/<code>")
@login_required
def barcode_lookup(code: str):
    product = get_food_services().open_food_facts.lookup_barcode(code)
    if product is None:
        return jsonify({"error": "Product not found."}), 404
    return jsonify(product)


@bp.post("/api/barcode")
@login_required
def barcode_analysis():
    body = json_body()
    code = normalize_text(body.get("barcode"))
    if not code:
        raise ValidationError("barcode is required.")

    product = get_food_services().open_food_facts.lookup_barcode(code)
    if product is None:
        return jsonify({"error": "Product not found."}), 404

    portion = normalize_text(body.get("portion")) or product.get("serving_size") or "100g"
    grams = measured_grams(portion)
    scaled = scale_nutrients(product["nutrition_per_100g"], grams)
    food = {
        "name": product["name"] if not product.get("brand") else f"{product['brand']} {product['name']}",
        "portion": portion,
        "calories": scaled["calories"],
        "protein": scaled["protein"],
        "carbs": scaled["carbs"],
        "fat": scaled["fat"],
        "icon": "📦",
    }
    analysis = FoodAnalysis(
        user_id=g.user.id,
        image_url=product.get("image_url") or f"barcode:{product['barcode']}",
        confidence=BARCODE_CONFIDENCE,
        detected_foods=[food],
    )
    analysis.apply_totals(summarize_foods([food]))
    db.session.add(analysis)
    db.session.commit()
    return jsonify(analysis.to_dict()), 201


@bp.post("/api/nutrition/lookup")
@login_required
def nutrition_lookup():
    foods = json_body().get("foods")
    if not isinstance(foods, list) or not foods:
        raise ValidationError("foods must be a non-empty list of food names.")
    names = [str(name) for name in foods if isinstance(name, (str, int, float))]
    return jsonify(get_food_services().open_food_facts.get_nutrition_data(names))


@bp.post("/api/calculate-nutrition")
@login_required
def calculate_nutrition():
    foods = json_body().get("foods")
    if not isinstance(foods, list):
        raise ValidationError("Foods array is required.")

    usda = get_food_services().usda
    calculated = []
    for food in foods:
        if not isinstance(food, dict) or not normalize_text(food.get("name")):
            calculated.append(food)
            continue

        match = usda.find_best_match(food["name"])
        if match is None:
            current_app.logger.warning("No USDA match found for %s", food["name"])
            calculated.append(food)
            continue

        grams = measured_grams(food.get("portion"))
        calculated.append(
            {
                **food,
                **scale_nutrients(match["per_100g"], grams),
                "usda_description": match["description"],
                "portion_grams": grams,
            }
        )
    return jsonify({"foods": calculated})


# --- diary ----------------------------------------------------------------------


def user_entries_since(user_id: int, start: datetime, days: int = 60) -> list[DiaryEntry]:
    return (
        DiaryEntry.query.filter(
            DiaryEntry.user_id == user_id,
            DiaryEntry.meal_date >= start - timedelta(days=days),
        )
        .order_by(DiaryEntry.meal_date.desc())
        .all()
    )


def logged_days(user_id: int) -> set[date]:
    rows = db.session.query(DiaryEntry.meal_date).filter(DiaryEntry.user_id == user_id).all()
    return {meal_date.date() for (meal_date,) in rows}


def analysis_from_modified(raw) -> FoodAnalysis:
    if not isinstance(raw, dict):
        raise ValidationError("modified_analysis must be an object.")
    foods = parse_detected_foods(raw.get("detected_foods"))
    confidence = parse_integer(raw.get("confidence"), "confidence", minimum=0, maximum=100, allow_none=True)
    analysis = FoodAnalysis(
        user_id=g.user.id,
        image_url=normalize_text(raw.get("image_url")) or "manual-entry",
        confidence=confidence if confidence is not None else CONFIRMED_ANALYSIS_CONFIDENCE,
        detected_foods=foods,
    )
    analysis.apply_totals(summarize_foods(foods))
    return analysis


@bp.get("/api/diary")
@login_required
def diary_list():
    query = DiaryEntry.query.filter_by(user_id=g.user.id)
    day = parse_date(request.args.get("day"), "day", allow_none=True)
    if day is not None:
        start, end = day_bounds(day)
        query = query.filter(DiaryEntry.meal_date >= start, DiaryEntry.meal_date < end)
    entries = query.order_by(DiaryEntry.meal_date.desc()).limit(parse_limit()).all()
    return jsonify([entry.to_dict() for entry in entries])


@bp.post("/api/diary")
@login_required
def diary_create():
    body = json_body()
    values = parse_diary_entry(body)

    if body.get("modified_analysis"):
        analysis = analysis_from_modified(body.get("modified_analysis"))
        db.session.add(analysis)
        db.session.flush()
    elif values.get("analysis_id"):
        analysis = get_analysis_or_abort(values["analysis_id"])
    else:
        raise ValidationError("analysis_id or modified_analysis is required.")

    values["analysis_id"] = analysis.id
    entry = DiaryEntry(user_id=g.user.id, **values)
    db.session.add(entry)
    db.session.flush()

    ensure_challenges_seeded()
    day_start, _ = day_bounds(entry.meal_date.date())
    completed = track_meal_logged(g.user.id)
    completed += check_streak(g.user.id, logging_streak(logged_days(g.user.id), utc_today()))
    completed += track_diary_goals(g.user.id, user_entries_since(g.user.id, day_start), entry, get_goals(g.user.id))
    db.session.commit()

    current_app.logger.info("User %s logged diary entry %s", g.user.id, entry.id)
    return jsonify({**entry.to_dict(), "completed_challenges": completed}), 201


@bp.get("/api/diary/summary")
@login_required
def diary_summary():
    day = parse_date(request.args.get("day"), "day", allow_none=True) or utc_today()
    start, end = day_bounds(day)
    entries = DiaryEntry.query.filter(
        DiaryEntry.user_id == g.user.id, DiaryEntry.meal_date >= start, DiaryEntry.meal_date < end
    ).all()
    drinks = DrinkEntry.query.filter(
        DrinkEntry.user_id == g.user.id, DrinkEntry.logged_at >= start, DrinkEntry.logged_at < end
    ).all()

    totals = daily_totals(entries, drinks, day)
    goals = get_goals(g.user.id)
    remaining = {
        "calories": goals["daily_calories"] - totals["calories"],
        "protein": round(goals["daily_protein"] - totals["protein"], 1),
        "carbs": round(goals["daily_carbs"] - totals["carbs"], 1),
        "fat": round(goals["daily_fat"] - totals["fat"], 1),
        "water_ml": goals["daily_water"] - totals["water_ml"],
    }
    return jsonify(
        {
            "totals": totals,
            "goals": goals,
            "remaining": remaining,
            "streak": logging_streak(logged_days(g.user.id), utc_today()),
        }
    )


@bp.get("/api/diary/<int:entry_id>")
@login_required
def diary_detail(entry_id: int):
    return jsonify(get_owned_or_abort(DiaryEntry, entry_id).to_dict())


@bp.patch("/api/diary/<int:entry_id>")
@login_required
def diary_update(entry_id: int):
    entry = get_owned_or_abort(DiaryEntry, entry_id)
    values = parse_diary_entry(json_body(), partial=True)
    if "analysis_id" in values:
        get_analysis_or_abort(values["analysis_id"])
    for field, value in values.items():
        setattr(entry, field, value)
    if entry.meal_type == "custom" and not entry.custom_meal_name:
        raise ValidationError("custom_meal_name is required for custom meals.")
    db.session.commit()
    return jsonify(entry.to_dict())


@bp.delete("/api/diary/<int:entry_id>")
@login_required
def diary_delete(entry_id: int):
    entry = get_owned_or_abort(DiaryEntry, entry_id)
    db.session.delete(entry)
    db.session.commit()
    return jsonify({"success": True})


# --- drinks, weights, steps -------------------------------------------------------


@bp.get("/api/drinks")
@login_required
def drink_list():
    query = DrinkEntry.query.filter_by(user_id=g.user.id)
    day = parse_date(request.args.get("day"), "day", allow_none=True)
    if day is not None:
        start, end = day_bounds(day)
        query = query.filter(DrinkEntry.logged_at >= start, DrinkEntry.logged_at < end)
    drinks = query.order_by(DrinkEntry.logged_at.desc()).limit(parse_limit()).all()
    return jsonify([drink.to_dict() for drink in drinks])


@bp.post("/api/drinks")
@login_required
def drink_create():
    values = parse_drink_entry(json_body())
    drink = DrinkEntry(
        user_id=g.user.id,
        alcohol_units=DrinkEntry.compute_alcohol_units(values["amount"], values["alcohol_content"]),
        **values,
    )
    db.session.add(drink)
    db.session.flush()

    ensure_challenges_seeded()
    start, end = day_bounds(drink.logged_at.date())
    same_day = DrinkEntry.query.filter(
        DrinkEntry.user_id == g.user.id, DrinkEntry.logged_at >= start, DrinkEntry.logged_at < end
    ).all()
    completed = track_water_goal(g.user.id, same_day, drink, get_goals(g.user.id))
    db.session.commit()
    return jsonify({**drink.to_dict(), "completed_challenges": completed}), 201


@bp.get("/api/drinks/<int:drink_id>")
@login_required
def drink_detail(drink_id: int):
    return jsonify(get_owned_or_abort(DrinkEntry, drink_id).to_dict())


@bp.delete("/api/drinks/<int:drink_id>")
@login_required
def drink_delete(drink_id: int):
    drink = get_owned_or_abort(DrinkEntry, drink_id)
    db.session.delete(drink)
    db.session.commit()
    return jsonify({"success": True})


@bp.get("/api/weights")
@login_required
def weight_list():
    query = WeightEntry.query.filter_by(user_id=g.user.id)
    start = parse_date(request.args.get("start"), "start", allow_none=True)
    end = parse_date(request.args.get("end"), "end", allow_none=True)
    if start is not None:
        query = query.filter(WeightEntry.logged_at >= day_bounds(start)[0])
    if end is not None:
        query = query.filter(WeightEntry.logged_at < day_bounds(end)[1])
    weights = query.order_by(WeightEntry.logged_at.desc()).limit(parse_limit()).all()
    return jsonify([weight.to_dict() for weight in weights])


@bp.post("/api/weights")
@login_required
def weight_create():
    weight = WeightEntry(user_id=g.user.id, **parse_weight_entry(json_body()))
    db.session.add(weight)
    db.session.flush()
    ensure_challenges_seeded()
    completed = track_weight_logged(g.user.id)
    db.session.commit()
    return jsonify({**weight.to_dict(), "completed_challenges": completed}), 201


@bp.get("/api/weights/<int:weight_id>")
@login_required
def weight_detail(weight_id: int):
    return jsonify(get_owned_or_abort(WeightEntry, weight_id).to_dict())


@bp.patch("/api/weights/<int:weight_id>")
@login_required
def weight_update(weight_id: int):
    weight = get_owned_or_abort(WeightEntry, weight_id)
    for field, value in parse_weight_entry(json_body(), partial=True).items():
        setattr(weight, field, value)
    db.session.commit()
    return jsonify(weight.to_dict())


@bp.delete("/api/weights/<int:weight_id>")
@login_required
def weight_delete(weight_id: int):
    weight = get_owned_or_abort(WeightEntry, weight_id)
    db.session.delete(weight)
    db.session.commit()
    return jsonify({"success": True})


@bp.get("/api/steps")
@login_required
def step_list():
    query = StepEntry.query.filter_by(user_id=g.user.id)
    start = parse_date(request.args.get("start"), "start", allow_none=True)
    end = parse_date(request.args.get("end"), "end", allow_none=True)
    if start is not None:
        query = query.filter(StepEntry.day >= start)
    if end is not None:
        query = query.filter(StepEntry.day <= end)
    steps = query.order_by(StepEntry.day.desc()).limit(parse_limit()).all()
    return jsonify([entry.to_dict() for entry in steps])


@bp.post("/api/steps")
@login_required
def step_upsert():
    values = parse_step_entry(json_body())
    entry = StepEntry.query.filter_by(user_id=g.user.id, day=values["day"]).first()
    created = entry is None
    if created:
        entry = StepEntry(user_id=g.user.id, day=values["day"])
        db.session.add(entry)
    entry.steps = values["steps"]
    entry.source = values["source"]
    db.session.commit()
    return jsonify(entry.to_dict()), 201 if created else 200


# --- goals, profile, coach memory ---------------------------------------------------


@bp.get("/api/nutrition-goals")
@login_required
def nutrition_goals_get():
    goals = NutritionGoals.query.filter_by(user_id=g.user.id).first()
    if goals is None:
        return jsonify({**NutritionGoals.DEFAULTS, "user_id": g.user.id, "is_default": True})
    return jsonify(goals.to_dict())


@bp.post("/api/nutrition-goals")
@login_required
def nutrition_goals_set():
    values = parse_nutrition_goals(json_body())
    goals = NutritionGoals.query.filter_by(user_id=g.user.id).first()
    if goals is None:
        goals = NutritionGoals(user_id=g.user.id, **NutritionGoals.DEFAULTS)
        db.session.add(goals)
    for field, value in values.items():
        setattr(goals, field, value)
    db.session.commit()
    return jsonify(goals.to_dict())


@bp.get("/api/user-profile")
@login_required
def user_profile_get():
    profile = g.user.profile
    return jsonify(profile.to_dict() if profile else None)


@bp.post("/api/user-profile")
@login_required
def user_profile_set():
    values = parse_user_profile(json_body())
    profile = g.user.profile
    if profile is None:
        profile = UserProfile(user_id=g.user.id)
        db.session.add(profile)
    for field, value in values.items():
        setattr(profile, field, value)
    db.session.commit()
    return jsonify(profile.to_dict())


@bp.get("/api/coach-memory")
@login_required
def coach_memory_get():
    return jsonify(get_or_create_memory(g.user.id).to_dict())


@bp.patch("/api/coach-memory")
@login_required
def coach_memory_update():
    values = parse_coach_memory(json_body())
    memory = get_or_create_memory(g.user.id)
    for field, value in values.items():
        setattr(memory, field, value)
    db.session.commit()
    return jsonify(memory.to_dict())


@bp.post("/api/coach-memory/notes")
@login_required
def coach_memory_note():
    body = json_body()
    memory = get_or_create_memory(g.user.id)

    learned = learn_from_message(memory, normalize_text(body.get("message")) or "")
    mood = normalize_text(body.get("mood"))
    if mood:
        sentiment = parse_integer(body.get("sentiment"), "sentiment", minimum=0, maximum=100, allow_none=True)
        add_mood_entry(memory, mood[:64], sentiment if sentiment is not None else 50)
    topic = normalize_text(body.get("topic"))
    if topic:
        add_conversation_topic(memory, topic[:120])

    db.session.commit()
    return jsonify({"memory": memory.to_dict(), "learned_interests": learned})


# --- coaching and reflections -------------------------------------------------------


def build_daily_coaching() -> dict:
    entries = DiaryEntry.query.filter_by(user_id=g.user.id).order_by(DiaryEntry.meal_date.desc()).limit(30).all()
    today = utc_today()
    streak = logging_streak(logged_days(g.user.id), today)
    memory = AICoachMemory.query.filter_by(user_id=g.user.id).first()
    profile = g.user.profile
    on_medication = bool(profile and profile.medication and profile.medication != "none")

    try:
        coaching = generate_daily_coaching(nutrition_context_text(entries), memory_context_text(memory))
        coaching["source"] = "ai"
    except AIUnavailableError as exc:
        current_app.logger.info("Daily coaching falling back to rules: %s", exc)
        coaching = rule_based_coaching(entries, get_goals(g.user.id), today, on_medication=on_medication)

    coaching["streak"] = streak
    coaching["achievement"] = streak_achievement(streak) or coaching.get("achievement")
    return coaching


@bp.get("/api/coaching/daily")
@login_required
def coaching_daily():
    return jsonify(build_daily_coaching())


@bp.post("/api/coaching/generate")
@login_required
def coaching_generate():
    coaching = build_daily_coaching()
    memory = get_or_create_memory(g.user.id)
    memory.last_interaction = datetime.utcnow()
    db.session.commit()
    return jsonify(coaching)


@bp.get("/api/coaching/tips")
def coaching_tips():
    category = request.args.get("category", "all")
    try:
        return jsonify(educational_tips(category))
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400


@bp.get("/api/reflections")
@login_required
def reflection_list():
    reflections = (
        Reflection.query.filter_by(user_id=g.user.id)
        .order_by(Reflection.created_at.desc())
        .limit(parse_limit(default=30))
        .all()
    )
    return jsonify([reflection.to_dict() for reflection in reflections])


@bp.post("/api/reflections/generate")
@login_required
def reflection_generate():
    period = parse_reflection_period(json_body().get("period"))
    today = utc_today()
    day_count = 1 if period == "daily" else 7
    days = [today - timedelta(days=offset) for offset in range(day_count, 0, -1)]
    period_start, _ = day_bounds(days[0])
    period_end, _ = day_bounds(today)

    entries = DiaryEntry.query.filter(
        DiaryEntry.user_id == g.user.id, DiaryEntry.meal_date >= period_start, DiaryEntry.meal_date < period_end
    ).all()
    drinks = DrinkEntry.query.filter(
        DrinkEntry.user_id == g.user.id, DrinkEntry.logged_at >= period_start, DrinkEntry.logged_at < period_end
    ).all()
    totals = period_totals(entries, drinks, days)
    goals = get_goals(g.user.id)

    try:
        content = generate_reflection(period, reflection_context_text(period, totals, goals))
    except AIUnavailableError as exc:
        current_app.logger.info("Reflection falling back to rules: %s", exc)
        content = rule_based_reflection(period, totals, goals)

    reflection = Reflection(
        user_id=g.user.id,
        reflection_period=period,
        period_start=period_start,
        period_end=period_end,
        status="final",
        **content,
    )
    db.session.add(reflection)
    db.session.commit()
    return jsonify(reflection.to_dict()), 201


@bp.get("/api/challenges")
@login_required
def challenge_list():
    ensure_challenges_seeded()
    return jsonify(
        {
            "challenges": challenges_with_progress(g.user.id),
            "total_points": total_points(g.user.id),
        }
    )


# --- recipes and shopping -----------------------------------------------------------


def recipes_for_diet(diet: str | None):
    diet = (diet or "").strip().lower()
    try:
        return generate_recipes(diet or None)
    except AIUnavailableError as exc:
        current_app.logger.info("Serving fallback recipes: %s", exc)

    recipes = FALLBACK_RECIPES
    if diet and diet != "all":
        recipes = [recipe for recipe in FALLBACK_RECIPES if diet in recipe["dietary_info"]]
    return recipes or FALLBACK_RECIPES


@bp.get("/api/recipes")
def recipe_list():
    return jsonify(recipes_for_diet(request.args.get("diet")))


@bp.get("/api/recipes/<diet>")
def recipe_list_for_diet(diet: str):
    return jsonify(recipes_for_diet(diet))


@bp.get("/api/saved-recipes")
@login_required
def saved_recipe_list():
    recipes = SavedRecipe.query.filter_by(user_id=g.user.id).order_by(SavedRecipe.created_at.desc()).all()
    return jsonify([recipe.to_dict() for recipe in recipes])


@bp.post("/api/saved-recipes")
@login_required
def saved_recipe_create():
    recipe = SavedRecipe(user_id=g.user.id, **parse_saved_recipe(json_body()))
    db.session.add(recipe)
    db.session.commit()
    return jsonify(recipe.to_dict()), 201


@bp.delete("/api/saved-recipes/<int:recipe_id>")
@login_required
def saved_recipe_delete(recipe_id: int):
    recipe = get_owned_or_abort(SavedRecipe, recipe_id)
    db.session.delete(recipe)
    db.session.commit()
    return jsonify({"success": True})


def recipes_from_body(body: dict) -> list[dict]:
    if body.get("recipe_ids") is not None:
        raw_ids = body.get("recipe_ids")
        if not isinstance(raw_ids, list) or not raw_ids:
            raise ValidationError("recipe_ids must be a non-empty list.")
        recipe_ids = [parse_integer(raw_id, "recipe_ids", minimum=1) for raw_id in raw_ids]
        return [get_owned_or_abort(SavedRecipe, recipe_id).to_recipe() for recipe_id in recipe_ids]

    recipes = body.get("recipes")
    if not isinstance(recipes, list) or not recipes:
        raise ValidationError("recipes or recipe_ids is required.")
    for index, recipe in enumerate(recipes):
        if not isinstance(recipe, dict) or not isinstance(recipe.get("ingredients"), list):
            raise ValidationError(f"recipes[{index}] must have an ingredients list.")
    return recipes


@bp.post("/api/shopping-list/preview")
@login_required
def shopping_list_preview():
    recipes = recipes_from_body(json_body())
    return jsonify({"items": build_shopping_list(recipes), "recipe_count": len(recipes)})


@bp.get("/api/shopping-list")
@login_required
def shopping_list_get():
    items = (
        ShoppingListItem.query.filter_by(user_id=g.user.id)
        .order_by(ShoppingListItem.position.asc(), ShoppingListItem.id.asc())
        .all()
    )
    return jsonify([item.to_dict() for item in items])


@bp.post("/api/shopping-list")
@login_required
def shopping_list_create():
    recipes = recipes_from_body(json_body())
    lines = build_shopping_list(recipes)

    ShoppingListItem.query.filter_by(user_id=g.user.id).delete()
    items = [ShoppingListItem(user_id=g.user.id, item=line[:255], position=index) for index, line in enumerate(lines)]
    db.session.add_all(items)
    db.session.commit()
    current_app.logger.info("User %s built a shopping list with %s items", g.user.id, len(items))
    return jsonify([item.to_dict() for item in items]), 201


@bp.patch("/api/shopping-list/<int:item_id>")
@login_required
def shopping_list_item_update(item_id: int):
    item = get_owned_or_abort(ShoppingListItem, item_id)
    body = json_body()
    if not isinstance(body.get("checked"), bool):
        raise ValidationError("checked must be true or false.")
    item.checked = body["checked"]
    db.session.commit()
    return jsonify(item.to_dict())


@bp.delete("/api/shopping-list/<int:item_id>")
@login_required
def shopping_list_item_delete(item_id: int):
    item = get_owned_or_abort(ShoppingListItem, item_id)
    db.session.delete(item)
    db.session.commit()
    return jsonify({"success": True})


@bp.delete("/api/shopping-list")
@login_required
def shopping_list_clear():
    removed = ShoppingListItem.query.filter_by(user_id=g.user.id).delete()
    db.session.commit()
    return jsonify({"success": True, "removed": removed})


# --- portions -----------------------------------------------------------------------


@bp.post("/api/portions/parse")
@login_required
def portion_parse():
    text = json_body().get("text")
    if not isinstance(text, str):
        raise ValidationError("text is required.")
    parsed = parse_portion(text)
    return jsonify({**parsed.as_dict(), "grams": portion_to_grams(text)})


@bp.get("/api/portions/options")
@login_required
def portion_option_list():
    return jsonify({"options": portion_options(request.args.get("food"), request.args.get("portion"))})


# --- operations -----------------------------------------------------------------------


@bp.get("/api/cache/stats")
@login_required
def cache_stats():
    return jsonify({"open_food_facts": get_food_services().open_food_facts.cache_stats()})


@bp.post("/api/cache/clear")
@login_required
def cache_clear():
    services = get_food_services()
    if json_body().get("expired_only"):
        cleared = {"open_food_facts": services.open_food_facts.clear_expired()}
    else:
        cleared = {
            "open_food_facts": services.open_food_facts.clear_cache(),
            "usda": services.usda.clear_cache(),
        }
    current_app.logger.info("Cleared nutrition caches: %s", cleared)
    return jsonify({"success": True, "cleared": cleared})


@bp.get("/api/ai/status")
def ai_status():
    config = current_app.config
    return jsonify(
        {
            "openai": {
                "configured": ai_enabled(),
                "models": {
                    "vision": config.get("OPENAI_VISION_MODEL"),
                    "text": config.get("OPENAI_TEXT_MODEL"),
                    "coach": config.get("OPENAI_COACH_MODEL"),
                },
            },
            "fallbacks": {"coaching": "rule_based", "reflections": "rule_based", "recipes": "built_in"},
            "thresholds": {
                "image": config.get("IMAGE_CONFIDENCE_THRESHOLD"),
                "text": config.get("TEXT_CONFIDENCE_THRESHOLD"),
            },
        }
    )


@bp.get("/api/health")
def health():
    return jsonify({"status": "ok", "time": datetime.utcnow().isoformat()})


@bp.get("/uploads/<path:filename>")
def uploaded_file(filename: str):
    return send_from_directory(current_app.config["UPLOAD_FOLDER"], filename)
