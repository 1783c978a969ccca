import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from platemate import create_app
from platemate.challenges import CHALLENGE_DEFINITIONS, ensure_challenges_seeded


def main():
    parser = argparse.ArgumentParser(description="Insert the built-in challenges into the database.")
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the built-in challenge definitions without touching the database.",
    )
    args = parser.parse_args()

    if args.list:
        for definition in CHALLENGE_DEFINITIONS:
            print(
                f"{definition['challenge_key']}: {definition['name']} "
                f"({definition['challenge_type']}, target {definition['target_count']}, "
                f"{definition['reward_points']} pts)"
            )
        return

    app = create_app()
    with app.app_context():
        added = ensure_challenges_seeded()
        print(f"Challenges added: {added}")


if __name__ == "__main__":
    main()
