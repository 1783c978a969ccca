import math
from typing import Iterable, Mapping

from platemate.portions import ParsedPortion, normalize_unit, parse_portion

BERRY_WORDS = ("berries", "strawberries", "blueberries", "raspberries")
LEAFY_WORDS = ("lettuce", "spinach", "kale", "arugula")
COUNTED_PRODUCE_WORDS = ("onion", "garlic", "tomato")
DAIRY_WORDS = ("milk", "cream", "yogurt")
DRY_GOOD_WORDS = ("oats", "flour", "sugar", "rice")
NUT_WORDS = ("almond", "nut", "seed")
SPICE_WORDS = ("salt", "pepper", "spice", "cinnamon", "vanilla")


def _contains_any(text: str, words: Iterable[str]) -> bool:
    return any(word in text for word in words)


def _format_count(value: float) -> int:
    return int(math.ceil(value))


def aggregate_ingredients(recipes: Iterable[Mapping]) -> dict[str, list[ParsedPortion]]:
    grouped: dict[str, list[ParsedPortion]] = {}
    for recipe in recipes or []:
        for raw in recipe.get("ingredients") or []:
            if not isinstance(raw, str) or not raw.strip():
                continue
            parsed = parse_portion(raw)
            key = parsed.ingredient.lower()
            grouped.setdefault(key, []).append(parsed)
    return grouped


def _egg_line(count: float) -> str:
    egg_count = _format_count(count)
    if egg_count <= 6:
        return "1 half dozen eggs"
    if egg_count <= 12:
        return "1 dozen eggs"
    return f"{_format_count(egg_count / 12)} dozen eggs"


def _reaches_egg_rule(unit_norm: str, name: str) -> bool:
    if _contains_any(name, BERRY_WORDS + LEAFY_WORDS + COUNTED_PRODUCE_WORDS):
        return False
    if unit_norm in {"cup", "ml"} and _contains_any(name, DAIRY_WORDS):
        return False
    if _contains_any(name, DRY_GOOD_WORDS + NUT_WORDS):
        return False
    return "egg" in name


def shopping_quantity(quantity: float, unit: str, ingredient: str) -> str:
    """Turn a summed recipe amount into something you would actually buy."""
    unit_norm = normalize_unit(unit)
    name = ingredient.lower()

    if _contains_any(name, BERRY_WORDS):
        return "1 container mixed berries"
    if _contains_any(name, LEAFY_WORDS):
        return f"1 bag/bunch {ingredient}"
    if _contains_any(name, COUNTED_PRODUCE_WORDS):
        return f"{_format_count(quantity)} {ingredient}"

    if unit_norm in {"cup", "ml"} and _contains_any(name, DAIRY_WORDS):
        if quantity <= 1:
            return f"1 small carton {ingredient}"
        if quantity <= 4:
            return f"1 quart {ingredient}"
        return f"1 half gallon {ingredient}"

    if _contains_any(name, DRY_GOOD_WORDS):
        return f"1 package {ingredient}"
    if _contains_any(name, NUT_WORDS):
        return f"1 bag/container {ingredient}"

    if "egg" in name:
        return _egg_line(quantity)

    if _contains_any(name, SPICE_WORDS):
        return f"{ingredient} (to taste)"

    if quantity > 0:
        if unit_norm:
            return f"{_format_count(quantity)} {unit_norm} {ingredient} (or 1 package)"
        return f"{_format_count(quantity)} {ingredient}"
    return ingredient


def build_shopping_list(recipes: Iterable[Mapping]) -> list[str]:
    """One purchasable line per ingredient group, sorted case-insensitively.

    Every group that lands on the egg rule ("eggs", "large eggs", ...) shares a
    single egg count so differently worded eggs still add up.
    """
    items: list[str] = []
    seen: set[str] = set()
    egg_total = 0.0

    for parsed_items in aggregate_ingredients(recipes).values():
        display_name = parsed_items[0].ingredient
        totals_by_unit: dict[str, float] = {}
        for parsed in parsed_items:
            if parsed.quantity > 0:
                unit = normalize_unit(parsed.unit)
                totals_by_unit[unit] = totals_by_unit.get(unit, 0.0) + parsed.quantity

        if not totals_by_unit:
            lines = [display_name]
        else:
            lines = []
            for unit, total in totals_by_unit.items():
                if _reaches_egg_rule(unit, display_name.lower()):
                    egg_total += total
                else:
                    lines.append(shopping_quantity(total, unit, display_name))

        for line in lines:
            if line not in seen:
                seen.add(line)
                items.append(line)

    if egg_total > 0:
        items.append(_egg_line(egg_total))

    return sorted(items, key=lambda item: item.lower())
