from datetime import date, datetime

from platemate import db

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack", "custom")
DRINK_TYPES = (
    "water",
    "coffee",
    "tea",
    "juice",
    "soda",
    "sports_drink",
    "beer",
    "wine",
    "spirits",
    "cocktail",
    "other",
)
STEP_SOURCES = ("manual", "google_fit", "health_connect")
CONFIRMATION_STATUSES = ("pending", "confirmed", "rejected")
REFLECTION_PERIODS = ("daily", "weekly")
SHARE_CHANNELS = ("facebook", "twitter", "instagram")
CHALLENGE_TYPES = ("streak", "count", "goal")
CHALLENGE_DIFFICULTIES = ("easy", "medium", "hard")
COACH_PERSONALITIES = ("military", "gym_bro", "zen", "clinical", "dark_humour")


def _iso(value):
    return value.isoformat() if value is not None else None


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    password_hash = db.Column(db.String(255), nullable=True)
    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    profile_image_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    profile = db.relationship("UserProfile", backref="user", uselist=False, lazy=True)
    nutrition_goals = db.relationship("NutritionGoals", backref="user", uselist=False, lazy=True)
    coach_memory = db.relationship("AICoachMemory", backref="user", uselist=False, lazy=True)
    diary_entries = db.relationship("DiaryEntry", backref="user", lazy=True)
    drink_entries = db.relationship("DrinkEntry", backref="user", lazy=True)
    weight_entries = db.relationship("WeightEntry", backref="user", lazy=True)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "profile_image_url": self.profile_image_url,
            "created_at": _iso(self.created_at),
        }


class UserProfile(db.Model):
    __tablename__ = "user_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False)

    age = db.Column(db.Integer, nullable=True)
    sex = db.Column(db.String(16), nullable=True)  # male/female
    height_cm = db.Column(db.Integer, nullable=True)
    current_weight_kg = db.Column(db.Integer, nullable=True)
    goal_weight_kg = db.Column(db.Integer, nullable=True)
    activity_level = db.Column(db.String(32), nullable=True)
    weight_goal = db.Column(db.String(32), nullable=True)
    weekly_weight_change_kg = db.Column(db.Integer, nullable=True)
    medication = db.Column(db.String(32), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "age": self.age,
            "sex": self.sex,
            "height_cm": self.height_cm,
            "current_weight_kg": self.current_weight_kg,
            "goal_weight_kg": self.goal_weight_kg,
            "activity_level": self.activity_level,
            "weight_goal": self.weight_goal,
            "weekly_weight_change_kg": self.weekly_weight_change_kg,
            "medication": self.medication,
            "updated_at": _iso(self.updated_at),
        }


class NutritionGoals(db.Model):
    __tablename__ = "nutrition_goals"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False)
    daily_calories = db.Column(db.Integer, nullable=False, default=2000)
    daily_protein = db.Column(db.Integer, nullable=False, default=150)  # grams
    daily_carbs = db.Column(db.Integer, nullable=False, default=250)  # grams
    daily_fat = db.Column(db.Integer, nullable=False, default=65)  # grams
    daily_water = db.Column(db.Integer, nullable=False, default=2000)  # ml
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    DEFAULTS = {
        "daily_calories": 2000,
        "daily_protein": 150,
        "daily_carbs": 250,
        "daily_fat": 65,
        "daily_water": 2000,
    }

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "daily_calories": self.daily_calories,
            "daily_protein": self.daily_protein,
            "daily_carbs": self.daily_carbs,
            "daily_fat": self.daily_fat,
            "daily_water": self.daily_water,
            "updated_at": _iso(self.updated_at),
        }


class FoodAnalysis(db.Model):
    __tablename__ = "food_analyses"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    image_url = db.Column(db.String(500), nullable=False)
    confidence = db.Column(db.Integer, nullable=False)  # 0-100
    total_calories = db.Column(db.Integer, nullable=False, default=0)
    total_protein = db.Column(db.Integer, nullable=False, default=0)
    total_carbs = db.Column(db.Integer, nullable=False, default=0)
    total_fat = db.Column(db.Integer, nullable=False, default=0)
    detected_foods = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def apply_totals(self, totals: dict):
        self.total_calories = totals["total_calories"]
        self.total_protein = totals["total_protein"]
        self.total_carbs = totals["total_carbs"]
        self.total_fat = totals["total_fat"]

    def to_dict(self):
        return {
            "id": self.id,
            "image_url": self.image_url,
            "confidence": self.confidence,
            "total_calories": self.total_calories,
            "total_protein": self.total_protein,
            "total_carbs": self.total_carbs,
            "total_fat": self.total_fat,
            "detected_foods": self.detected_foods or [],
            "created_at": _iso(self.created_at),
        }


class FoodConfirmation(db.Model):
    __tablename__ = "food_confirmations"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    image_url = db.Column(db.String(500), nullable=False)
    original_confidence = db.Column(db.Integer, nullable=False)
    suggested_foods = db.Column(db.JSON, nullable=False, default=list)
    alternative_options = db.Column(db.JSON, nullable=True)
    status = db.Column(db.String(16), nullable=False, default="pending")
    final_foods = db.Column(db.JSON, nullable=True)
    user_feedback = db.Column(db.Text, nullable=True)
    analysis_id = db.Column(db.Integer, db.ForeignKey("food_analyses.id"), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    confirmed_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "image_url": self.image_url,
            "original_confidence": self.original_confidence,
            "suggested_foods": self.suggested_foods or [],
            "alternative_options": self.alternative_options,
            "status": self.status,
            "final_foods": self.final_foods,
            "user_feedback": self.user_feedback,
            "analysis_id": self.analysis_id,
            "created_at": _iso(self.created_at),
            "confirmed_at": _iso(self.confirmed_at),
        }


class DiaryEntry(db.Model):
    __tablename__ = "diary_entries"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    analysis_id = db.Column(db.Integer, db.ForeignKey("food_analyses.id"), nullable=False)
    meal_type = db.Column(db.String(16), nullable=False)
    custom_meal_name = db.Column(db.String(255), nullable=True)
    meal_date = db.Column(db.DateTime, nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    portion_multiplier = db.Column(db.Integer, nullable=False, default=100)  # percent, 100 = 1.0x
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    analysis = db.relationship("FoodAnalysis", lazy="joined")

    def scaled_totals(self) -> dict:
        factor = (self.portion_multiplier or 100) / 100.0
        analysis = self.analysis
        if analysis is None:
            return {"calories": 0, "protein": 0.0, "carbs": 0.0, "fat": 0.0}
        return {
            "calories": int(round(analysis.total_calories * factor)),
            "protein": round(analysis.total_protein * factor, 1),
            "carbs": round(analysis.total_carbs * factor, 1),
            "fat": round(analysis.total_fat * factor, 1),
        }

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "analysis_id": self.analysis_id,
            "meal_type": self.meal_type,
            "custom_meal_name": self.custom_meal_name,
            "meal_date": _iso(self.meal_date),
            "notes": self.notes,
            "portion_multiplier": self.portion_multiplier,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "totals": self.scaled_totals(),
            "created_at": _iso(self.created_at),
        }


class DrinkEntry(db.Model):
    __tablename__ = "drink_entries"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    drink_name = db.Column(db.String(255), nullable=False)
    drink_type = db.Column(db.String(32), nullable=False)
    amount = db.Column(db.Integer, nullable=False)  # ml
    calories = db.Column(db.Integer, nullable=False, default=0)
    caffeine = db.Column(db.Integer, nullable=False, default=0)  # mg
    sugar = db.Column(db.Integer, nullable=False, default=0)  # g
    alcohol_content = db.Column(db.Float, nullable=False, default=0)  # ABV percent
    alcohol_units = db.Column(db.Float, nullable=False, default=0)
    logged_at = db.Column(db.DateTime, nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @staticmethod
    def compute_alcohol_units(amount_ml: float, abv_percent: float) -> float:
        return round((amount_ml or 0) * (abv_percent or 0) / 1000.0, 2)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "drink_name": self.drink_name,
            "drink_type": self.drink_type,
            "amount": self.amount,
            "calories": self.calories,
            "caffeine": self.caffeine,
            "sugar": self.sugar,
            "alcohol_content": self.alcohol_content,
            "alcohol_units": self.alcohol_units,
            "logged_at": _iso(self.logged_at),
            "notes": self.notes,
            "created_at": _iso(self.created_at),
        }


class WeightEntry(db.Model):
    __tablename__ = "weight_entries"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    weight_grams = db.Column(db.Integer, nullable=False)
    logged_at = db.Column(db.DateTime, nullable=False, index=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "weight_grams": self.weight_grams,
            "weight_kg": round(self.weight_grams / 1000.0, 2),
            "logged_at": _iso(self.logged_at),
            "notes": self.notes,
            "created_at": _iso(self.created_at),
        }


class StepEntry(db.Model):
    __tablename__ = "step_entries"
    __table_args__ = (db.UniqueConstraint("user_id", "day", name="uq_step_entries_user_day"),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    day = db.Column(db.Date, default=date.today, nullable=False)
    steps = db.Column(db.Integer, nullable=False, default=0)
    source = db.Column(db.String(32), nullable=False, default="manual")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "day": _iso(self.day),
            "steps": self.steps,
            "source": self.source,
            "updated_at": _iso(self.updated_at),
        }


class Reflection(db.Model):
    __tablename__ = "reflections"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    reflection_period = db.Column(db.String(16), nullable=False)
    period_start = db.Column(db.DateTime, nullable=False)
    period_end = db.Column(db.DateTime, nullable=False)
    went_well = db.Column(db.Text, nullable=False)
    could_improve = db.Column(db.Text, nullable=False)
    action_steps = db.Column(db.JSON, nullable=False, default=list)
    sentiment_score = db.Column(db.Integer, nullable=False)  # 0-100
    ai_provider = db.Column(db.String(32), nullable=False)
    ai_model = db.Column(db.String(64), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="final")
    shared_at = db.Column(db.DateTime, nullable=True)
    share_channel = db.Column(db.String(32), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "reflection_period": self.reflection_period,
            "period_start": _iso(self.period_start),
            "period_end": _iso(self.period_end),
            "went_well": self.went_well,
            "could_improve": self.could_improve,
            "action_steps": self.action_steps or [],
            "sentiment_score": self.sentiment_score,
            "ai_provider": self.ai_provider,
            "ai_model": self.ai_model,
            "status": self.status,
            "shared_at": _iso(self.shared_at),
            "share_channel": self.share_channel,
            "created_at": _iso(self.created_at),
        }


class Challenge(db.Model):
    __tablename__ = "challenges"

    id = db.Column(db.Integer, primary_key=True)
    challenge_key = db.Column(db.String(64), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    challenge_type = db.Column(db.String(16), nullable=False)
    target_count = db.Column(db.Integer, nullable=False)
    reward_points = db.Column(db.Integer, nullable=False, default=10)
    reward_badge = db.Column(db.String(16), nullable=True)
    difficulty = db.Column(db.String(16), nullable=False, default="medium")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "challenge_key": self.challenge_key,
            "name": self.name,
            "description": self.description,
            "challenge_type": self.challenge_type,
            "target_count": self.target_count,
            "reward_points": self.reward_points,
            "reward_badge": self.reward_badge,
            "difficulty": self.difficulty,
        }


class UserChallengeProgress(db.Model):
    __tablename__ = "user_challenge_progress"
    __table_args__ = (
        db.UniqueConstraint("user_id", "challenge_id", name="uq_user_challenge_progress_user_challenge"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    challenge_id = db.Column(db.Integer, db.ForeignKey("challenges.id"), nullable=False)
    current_count = db.Column(db.Integer, nullable=False, default=0)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    last_updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    challenge = db.relationship("Challenge", lazy="joined")

    def to_dict(self):
        return {
            "current_count": self.current_count,
            "is_completed": self.is_completed,
            "completed_at": _iso(self.completed_at),
            "last_updated_at": _iso(self.last_updated_at),
        }


class SavedRecipe(db.Model):
    __tablename__ = "saved_recipes"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    ingredients = db.Column(db.JSON, nullable=False, default=list)
    instructions = db.Column(db.JSON, nullable=False, default=list)
    calories = db.Column(db.Integer, nullable=True)
    protein = db.Column(db.Integer, nullable=True)
    carbs = db.Column(db.Integer, nullable=True)
    fat = db.Column(db.Integer, nullable=True)
    cooking_time = db.Column(db.String(64), nullable=True)
    difficulty = db.Column(db.String(32), nullable=True)
    dietary_info = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_recipe(self):
        return {"name": self.name, "ingredients": self.ingredients or []}

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "description": self.description,
            "ingredients": self.ingredients or [],
            "instructions": self.instructions or [],
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "cooking_time": self.cooking_time,
            "difficulty": self.difficulty,
            "dietary_info": self.dietary_info or [],
            "created_at": _iso(self.created_at),
        }


class AICoachMemory(db.Model):
    __tablename__ = "ai_coach_memory"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), unique=True, nullable=False)
    selected_personality = db.Column(db.String(32), nullable=False, default="zen")
    motivational_style = db.Column(db.String(32), nullable=False, default="positive")
    occupation = db.Column(db.String(120), nullable=True)
    work_schedule = db.Column(db.String(120), nullable=True)
    lifestyle_details = db.Column(db.Text, nullable=True)
    fitness_goals = db.Column(db.Text, nullable=True)
    dietary_preferences = db.Column(db.Text, nullable=True)
    interests = db.Column(db.JSON, nullable=False, default=list)
    conversation_topics = db.Column(db.JSON, nullable=False, default=list)
    recent_moods = db.Column(db.JSON, nullable=False, default=list)
    last_interaction = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "selected_personality": self.selected_personality,
            "motivational_style": self.motivational_style,
            "occupation": self.occupation,
            "work_schedule": self.work_schedule,
            "lifestyle_details": self.lifestyle_details,
            "fitness_goals": self.fitness_goals,
            "dietary_preferences": self.dietary_preferences,
            "interests": self.interests or [],
            "conversation_topics": self.conversation_topics or [],
            "recent_moods": self.recent_moods or [],
            "last_interaction": _iso(self.last_interaction),
            "updated_at": _iso(self.updated_at),
        }


class ShoppingListItem(db.Model):
    __tablename__ = "shopping_list_items"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    item = db.Column(db.String(255), nullable=False)
    checked = db.Column(db.Boolean, nullable=False, default=False)
    position = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "item": self.item,
            "checked": self.checked,
            "position": self.position,
            "created_at": _iso(self.created_at),
        }
