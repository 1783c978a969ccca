import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from platemate.shopping import build_shopping_list


def recipes_from_file(path: Path) -> list[dict]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("recipes", [data])
    if not isinstance(data, list):
        raise SystemExit(f"{path}: expected a recipe object or a list of recipes")
    return data


def recipes_from_database(email: str) -> list[dict]:
    from platemate import create_app
    from platemate.models import SavedRecipe, User

    app = create_app()
    with app.app_context():
        user = User.query.filter_by(email=email.strip().lower()).first()
        if user is None:
            raise SystemExit(f"No user with email {email}")
        return [recipe.to_recipe() for recipe in SavedRecipe.query.filter_by(user_id=user.id).all()]


def main():
    parser = argparse.ArgumentParser(
        description="Print a combined shopping list for a set of recipes."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--file",
        type=Path,
        help="JSON file holding a recipe, a list of recipes or {\"recipes\": [...]}.",
    )
    source.add_argument(
        "--user",
        help="Use every saved recipe of the user with this email.",
    )
    args = parser.parse_args()

    recipes = recipes_from_file(args.file) if args.file else recipes_from_database(args.user)
    items = build_shopping_list(recipes)
    for item in items:
        print(f"- {item}")
    print(f"{len(items)} items from {len(recipes)} recipes")


if __name__ == "__main__":
    main()
