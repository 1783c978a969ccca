import math
import re
from typing import NamedTuple

UNICODE_FRACTIONS = {
    "½": "1/2",
    "⅓": "1/3",
    "⅔": "2/3",
    "¼": "1/4",
    "¾": "3/4",
    "⅕": "1/5",
    "⅖": "2/5",
    "⅗": "3/5",
    "⅘": "4/5",
    "⅙": "1/6",
    "⅚": "5/6",
    "⅛": "1/8",
    "⅜": "3/8",
    "⅝": "5/8",
    "⅞": "7/8",
}

UNIT_SYNONYMS = {
    "cup": "cup",
    "cups": "cup",
    "tbsp": "tbsp",
    "tbsps": "tbsp",
    "tablespoon": "tbsp",
    "tablespoons": "tbsp",
    "tsp": "tsp",
    "tsps": "tsp",
    "teaspoon": "tsp",
    "teaspoons": "tsp",
    "oz": "oz",
    "ounce": "oz",
    "ounces": "oz",
    "lb": "lb",
    "lbs": "lb",
    "pound": "lb",
    "pounds": "lb",
    "g": "g",
    "gram": "g",
    "grams": "g",
    "kg": "kg",
    "kilogram": "kg",
    "kilograms": "kg",
    "ml": "ml",
    "milliliter": "ml",
    "milliliters": "ml",
    "millilitre": "ml",
    "millilitres": "ml",
    "l": "l",
    "liter": "l",
    "liters": "l",
    "litre": "l",
    "litres": "l",
}

DEFAULT_PORTION_GRAMS = 100.0

# Longest spellings first so "tablespoons" wins over "tablespoon".
_UNIT_ALTERNATION = "|".join(sorted(UNIT_SYNONYMS, key=len, reverse=True))
_UNIT_PATTERN = re.compile(rf"^({_UNIT_ALTERNATION})\s+(.+)$", re.IGNORECASE)
_MIXED_NUMBER_PATTERN = re.compile(r"^(\d+)\s+(\d+/\d+|\d+\.\d+)\s+(.*)$")
_QUANTITY_PATTERN = re.compile(r"^(\d+/\d+|\d+\.\d+|\d+)\s+(.*)$")
_GLUED_METRIC_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)(kg|lbs|lb|ml|oz|g|l)(?=\s)", re.IGNORECASE)

# small / medium / large grams keyed by food category, checked in order.
SIZE_WEIGHTS = (
    ("potato", {"small": 150.0, "medium": 200.0, "large": 300.0}),
    ("breast", {"small": 100.0, "medium": 150.0, "large": 200.0}),
    ("handful", {"small": 25.0}),
)
GENERIC_SIZE_WEIGHTS = {"small": 80.0, "medium": 120.0, "large": 180.0}
COUNT_WEIGHTS = (
    (re.compile(r"(\d+)\s*eggs?"), 50.0),
    (re.compile(r"(\d+)\s*slices?"), 30.0),
)

# Unit-aware conversions used when a portion carries an explicit measure.
MEASURE_TO_GRAMS = (
    (re.compile(r"\b(kg|kilograms?)\b"), 1000.0),
    (re.compile(r"\b(g|grams?)\b"), 1.0),
    (re.compile(r"\b(oz|ounces?)\b"), 28.35),
    (re.compile(r"\b(lb|lbs|pounds?)\b"), 453.592),
    (re.compile(r"\b(cups?)\b"), 240.0),
    (re.compile(r"\b(tbsp|tablespoons?)\b"), 15.0),
    (re.compile(r"\b(tsp|teaspoons?)\b"), 5.0),
    (re.compile(r"\b(ml|milliliters?|millilitres?)\b"), 1.0),
    (re.compile(r"\b(l|liters?|litres?)\b"), 1000.0),
    (re.compile(r"\b(slices?)\b"), 30.0),
    (re.compile(r"\b(pieces?|items?)\b"), 50.0),
    (re.compile(r"\b(servings?)\b"), 100.0),
)


class ParsedPortion(NamedTuple):
    quantity: float
    unit: str
    ingredient: str

    def as_dict(self) -> dict:
        return {"quantity": self.quantity, "unit": self.unit, "ingredient": self.ingredient}


def normalize_fractions(text: str) -> str:
    normalized = text or ""
    for glyph, ascii_fraction in UNICODE_FRACTIONS.items():
        normalized = re.sub(rf"(\d){glyph}", rf"\1 {ascii_fraction}", normalized)
        normalized = normalized.replace(glyph, ascii_fraction)
    return normalized


def normalize_unit(unit: str | None) -> str:
    raw = (unit or "").strip().lower()
    return UNIT_SYNONYMS.get(raw, raw)


def _number_value(token: str) -> float:
    if "/" in token:
        numerator, denominator = token.split("/", 1)
        try:
            denominator_value = float(denominator)
            if denominator_value == 0:
                return 0.0
            return float(numerator) / denominator_value
        except ValueError:
            return 0.0
    try:
        value = float(token)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def _split_unit(rest: str) -> tuple[str, str]:
    match = _UNIT_PATTERN.match(rest)
    if match:
        return normalize_unit(match.group(1)), match.group(2).strip()
    return "", rest.strip()


def parse_portion(text: str | None) -> ParsedPortion:
    """Split a free-text portion such as "1 1/2 cups flour" into quantity, unit and ingredient.

    Never raises: text without a leading quantity comes back as the ingredient
    with quantity 0 and no unit.
    """
    original = (text or "").strip()
    if not original:
        return ParsedPortion(0.0, "", "")

    normalized = normalize_fractions(original)
    normalized = _GLUED_METRIC_PATTERN.sub(r"\1 \2", normalized)

    mixed = _MIXED_NUMBER_PATTERN.match(normalized)
    if mixed:
        quantity = _number_value(mixed.group(1)) + _number_value(mixed.group(2))
        unit, ingredient = _split_unit(mixed.group(3))
        return ParsedPortion(quantity, unit, ingredient)

    simple = _QUANTITY_PATTERN.match(normalized)
    if simple:
        quantity = _number_value(simple.group(1))
        unit, ingredient = _split_unit(simple.group(2))
        return ParsedPortion(quantity, unit, ingredient)

    return ParsedPortion(0.0, "", original)


def _positive_or_default(value: float) -> float:
    if not math.isfinite(value) or value <= 0:
        return DEFAULT_PORTION_GRAMS
    return value


def _size_weight(portion: str, size: str) -> float | None:
    if size not in portion:
        return None
    for keyword, weights in SIZE_WEIGHTS:
        if keyword in portion and size in weights:
            return weights[size]
    return GENERIC_SIZE_WEIGHTS[size]


def _estimate_grams(portion: str) -> float:
    kg_match = re.search(r"(\d+(?:\.\d+)?)\s*kg", portion)
    if kg_match:
        return float(kg_match.group(1)) * 1000

    g_match = re.search(r"(\d+(?:\.\d+)?)\s*g\b", portion)
    if g_match:
        return float(g_match.group(1))

    ml_match = re.search(r"(\d+(?:\.\d+)?)\s*ml", portion)
    if ml_match:
        return float(ml_match.group(1))

    for size in ("small", "medium", "large"):
        weight = _size_weight(portion, size)
        if weight is not None:
            return weight

    for pattern, grams_each in COUNT_WEIGHTS:
        count_match = pattern.search(portion)
        if count_match:
            return float(count_match.group(1)) * grams_each

    if "cup" in portion:
        return 240.0
    if "bowl" in portion:
        return 400.0 if "large" in portion else 300.0
    if "glass" in portion:
        return 250.0
    if "handful" in portion:
        return 50.0

    leading = re.match(r"^(\d+(?:\.\d+)?)", portion)
    if leading:
        number = float(leading.group(1))
        if re.fullmatch(r"\d+(?:\.\d+)?", portion):
            return number
        return number * DEFAULT_PORTION_GRAMS

    return DEFAULT_PORTION_GRAMS


def portion_to_grams(portion: str | None) -> float:
    """Best-effort gram estimate for a described portion ("2 eggs", "1 small potato", "250ml")."""
    portion_lower = normalize_fractions(portion or "").lower().strip()
    return _positive_or_default(_estimate_grams(portion_lower))


def measured_grams(portion: str | None) -> float:
    portion_lower = normalize_fractions(portion or "").lower().strip()

    amount = DEFAULT_PORTION_GRAMS
    fraction_match = re.search(r"(\d+)\s*/\s*(\d+)", portion_lower)
    decimal_match = re.search(r"(\d+(?:\.\d+)?)", portion_lower)
    if fraction_match:
        whole_match = re.search(r"(\d+)\s+\d+\s*/\s*\d+", portion_lower)
        whole = float(whole_match.group(1)) if whole_match else 0.0
        amount = whole + _number_value(f"{fraction_match.group(1)}/{fraction_match.group(2)}")
    elif decimal_match:
        amount = float(decimal_match.group(1))

    for pattern, factor in MEASURE_TO_GRAMS:
        if pattern.search(portion_lower):
            return _positive_or_default(amount * factor)
    return _positive_or_default(amount)


def portion_options(food_name: str | None, current_portion: str | None = None) -> list[str]:
    name = (food_name or "").lower()
    portion = (current_portion or "").lower()

    if ("potato" in name or "potato" in portion) and not any(
        word in name for word in ("chip", "fries", "mashed", "salad", "sweet")
    ):
        return [
            "1 small (150g)",
            "1 medium (200g)",
            "1 large (300g)",
            "2 small (300g)",
            "2 medium (400g)",
            "2 large (600g)",
        ]

    if "egg" in name and "plant" not in name and "salad" not in name:
        return ["1 egg (50g)", "2 eggs (100g)", "3 eggs (150g)", "4 eggs (200g)"]

    if "chicken" in name and "breast" in name:
        return [
            "1 small breast (100g)",
            "1 medium breast (150g)",
            "1 large breast (200g)",
            "2 small breasts (200g)",
            "2 medium breasts (300g)",
        ]

    if re.search(r"steak|salmon|cod|tuna|pork|beef|lamb|fish", name):
        return ["100g", "150g", "200g", "250g", "300g"]

    if "bread" in name or "toast" in name:
        return ["1 slice (30g)", "2 slices (60g)", "3 slices (90g)", "4 slices (120g)"]

    if re.search(r"rice|pasta|noodle", name):
        return ["100g cooked", "150g cooked", "200g cooked", "250g cooked", "300g cooked"]

    if re.search(r"water|juice|milk|coffee|tea|drink|beverage|soda|cola", name):
        return ["100ml", "200ml", "250ml", "330ml", "500ml", "1 cup (240ml)", "1 glass (250ml)"]

    if "soup" in name:
        return ["1 cup (240ml)", "1 bowl (300ml)", "1 large bowl (400ml)"]

    if re.search(r"apple|banana|orange|pear|peach|plum", name):
        return ["1 small (80g)", "1 medium (120g)", "1 large (180g)", "2 small (160g)", "2 medium (240g)"]

    if re.search(r"berr", name):
        return ["50g (handful)", "100g", "150g", "200g", "1 cup (150g)"]

    if re.search(r"nut|almond|walnut|cashew|peanut", name):
        return ["25g (small handful)", "50g (handful)", "75g", "100g"]

    if "cheese" in name:
        return ["25g", "50g", "75g", "100g", "1 slice (30g)"]

    if "yogurt" in name or "yoghurt" in name:
        return ["100g (small pot)", "150g (standard pot)", "200g", "1 cup (240g)"]

    return ["50g", "100g", "150g", "200g", "250g", "300g"]
