"""create platemate tables

Revision ID: a3c9e1f27b40
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "a3c9e1f27b40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=True),
        sa.Column("profile_image_url", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "user_profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("sex", sa.String(length=16), nullable=True),
        sa.Column("height_cm", sa.Integer(), nullable=True),
        sa.Column("current_weight_kg", sa.Integer(), nullable=True),
        sa.Column("goal_weight_kg", sa.Integer(), nullable=True),
        sa.Column("activity_level", sa.String(length=32), nullable=True),
        sa.Column("weight_goal", sa.String(length=32), nullable=True),
        sa.Column("weekly_weight_change_kg", sa.Integer(), nullable=True),
        sa.Column("medication", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "nutrition_goals",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("daily_calories", sa.Integer(), nullable=False),
        sa.Column("daily_protein", sa.Integer(), nullable=False),
        sa.Column("daily_carbs", sa.Integer(), nullable=False),
        sa.Column("daily_fat", sa.Integer(), nullable=False),
        sa.Column("daily_water", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "food_analyses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("image_url", sa.String(length=500), nullable=False),
        sa.Column("confidence", sa.Integer(), nullable=False),
        sa.Column("total_calories", sa.Integer(), nullable=False),
        sa.Column("total_protein", sa.Integer(), nullable=False),
        sa.Column("total_carbs", sa.Integer(), nullable=False),
        sa.Column("total_fat", sa.Integer(), nullable=False),
        sa.Column("detected_foods", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("food_analyses", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_food_analyses_user_id"), ["user_id"], unique=False)

    op.create_table(
        "food_confirmations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("image_url", sa.String(length=500), nullable=False),
        sa.Column("original_confidence", sa.Integer(), nullable=False),
        sa.Column("suggested_foods", sa.JSON(), nullable=False),
        sa.Column("alternative_options", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("final_foods", sa.JSON(), nullable=True),
        sa.Column("user_feedback", sa.Text(), nullable=True),
        sa.Column("analysis_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("confirmed_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["analysis_id"], ["food_analyses.id"], ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("food_confirmations", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_food_confirmations_user_id"), ["user_id"], unique=False)

    op.create_table(
        "diary_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("analysis_id", sa.Integer(), nullable=False),
        sa.Column("meal_type", sa.String(length=16), nullable=False),
        sa.Column("custom_meal_name", sa.String(length=255), nullable=True),
        sa.Column("meal_date", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("portion_multiplier", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["analysis_id"], ["food_analyses.id"], ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("diary_entries", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_diary_entries_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_diary_entries_meal_date"), ["meal_date"], unique=False)

    op.create_table(
        "drink_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("drink_name", sa.String(length=255), nullable=False),
        sa.Column("drink_type", sa.String(length=32), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("calories", sa.Integer(), nullable=False),
        sa.Column("caffeine", sa.Integer(), nullable=False),
        sa.Column("sugar", sa.Integer(), nullable=False),
        sa.Column("alcohol_content", sa.Float(), nullable=False),
        sa.Column("alcohol_units", sa.Float(), nullable=False),
        sa.Column("logged_at", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("drink_entries", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_drink_entries_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_drink_entries_logged_at"), ["logged_at"], unique=False)

    op.create_table(
        "weight_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("weight_grams", sa.Integer(), nullable=False),
        sa.Column("logged_at", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("weight_entries", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_weight_entries_user_id"), ["user_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_weight_entries_logged_at"), ["logged_at"], unique=False)

    op.create_table(
        "step_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        sa.Column("steps", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(length=32), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "day", name="uq_step_entries_user_day"),
    )
    with op.batch_alter_table("step_entries", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_step_entries_user_id"), ["user_id"], unique=False)

    op.create_table(
        "reflections",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("reflection_period", sa.String(length=16), nullable=False),
        sa.Column("period_start", sa.DateTime(), nullable=False),
        sa.Column("period_end", sa.DateTime(), nullable=False),
        sa.Column("went_well", sa.Text(), nullable=False),
        sa.Column("could_improve", sa.Text(), nullable=False),
        sa.Column("action_steps", sa.JSON(), nullable=False),
        sa.Column("sentiment_score", sa.Integer(), nullable=False),
        sa.Column("ai_provider", sa.String(length=32), nullable=False),
        sa.Column("ai_model", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("shared_at", sa.DateTime(), nullable=True),
        sa.Column("share_channel", sa.String(length=32), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("reflections", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_reflections_user_id"), ["user_id"], unique=False)

    op.create_table(
        "challenges",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("challenge_key", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("challenge_type", sa.String(length=16), nullable=False),
        sa.Column("target_count", sa.Integer(), nullable=False),
        sa.Column("reward_points", sa.Integer(), nullable=False),
        sa.Column("reward_badge", sa.String(length=16), nullable=True),
        sa.Column("difficulty", sa.String(length=16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("challenge_key"),
    )

    op.create_table(
        "user_challenge_progress",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("challenge_id", sa.Integer(), nullable=False),
        sa.Column("current_count", sa.Integer(), nullable=False),
        sa.Column("is_completed", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("last_updated_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["challenge_id"], ["challenges.id"], ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "challenge_id", name="uq_user_challenge_progress_user_challenge"),
    )
    with op.batch_alter_table("user_challenge_progress", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_user_challenge_progress_user_id"), ["user_id"], unique=False)

    op.create_table(
        "saved_recipes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("ingredients", sa.JSON(), nullable=False),
        sa.Column("instructions", sa.JSON(), nullable=False),
        sa.Column("calories", sa.Integer(), nullable=True),
        sa.Column("protein", sa.Integer(), nullable=True),
        sa.Column("carbs", sa.Integer(), nullable=True),
        sa.Column("fat", sa.Integer(), nullable=True),
        sa.Column("cooking_time", sa.String(length=64), nullable=True),
        sa.Column("difficulty", sa.String(length=32), nullable=True),
        sa.Column("dietary_info", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("saved_recipes", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_saved_recipes_user_id"), ["user_id"], unique=False)

    op.create_table(
        "ai_coach_memory",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("selected_personality", sa.String(length=32), nullable=False),
        sa.Column("motivational_style", sa.String(length=32), nullable=False),
        sa.Column("occupation", sa.String(length=120), nullable=True),
        sa.Column("work_schedule", sa.String(length=120), nullable=True),
        sa.Column("lifestyle_details", sa.Text(), nullable=True),
        sa.Column("fitness_goals", sa.Text(), nullable=True),
        sa.Column("dietary_preferences", sa.Text(), nullable=True),
        sa.Column("interests", sa.JSON(), nullable=False),
        sa.Column("conversation_topics", sa.JSON(), nullable=False),
        sa.Column("recent_moods", sa.JSON(), nullable=False),
        sa.Column("last_interaction", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )

    op.create_table(
        "shopping_list_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("item", sa.String(length=255), nullable=False),
        sa.Column("checked", sa.Boolean(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("shopping_list_items", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_shopping_list_items_user_id"), ["user_id"], unique=False)


def downgrade():
    with op.batch_alter_table("shopping_list_items", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_shopping_list_items_user_id"))
    op.drop_table("shopping_list_items")
    op.drop_table("ai_coach_memory")
    with op.batch_alter_table("saved_recipes", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_saved_recipes_user_id"))
    op.drop_table("saved_recipes")
    with op.batch_alter_table("user_challenge_progress", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_user_challenge_progress_user_id"))
    op.drop_table("user_challenge_progress")
    op.drop_table("challenges")
    with op.batch_alter_table("reflections", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_reflections_user_id"))
    op.drop_table("reflections")
    with op.batch_alter_table("step_entries", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_step_entries_user_id"))
    op.drop_table("step_entries")
    with op.batch_alter_table("weight_entries", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_weight_entries_logged_at"))
        batch_op.drop_index(batch_op.f("ix_weight_entries_user_id"))
    op.drop_table("weight_entries")
    with op.batch_alter_table("drink_entries", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_drink_entries_logged_at"))
        batch_op.drop_index(batch_op.f("ix_drink_entries_user_id"))
    op.drop_table("drink_entries")
    with op.batch_alter_table("diary_entries", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_diary_entries_meal_date"))
        batch_op.drop_index(batch_op.f("ix_diary_entries_user_id"))
    op.drop_table("diary_entries")
    with op.batch_alter_table("food_confirmations", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_food_confirmations_user_id"))
    op.drop_table("food_confirmations")
    with op.batch_alter_table("food_analyses", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_food_analyses_user_id"))
    op.drop_table("food_analyses")
    op.drop_table("nutrition_goals")
    op.drop_table("user_profiles")
    op.drop_table("users")
