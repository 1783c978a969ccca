import logging
from typing import Any

import httpx
from flask import current_app

from platemate.cache import NOT_FOUND, ExpiringCache

logger = logging.getLogger(__name__)

USER_AGENT = "PlateMate/1.0 (nutrition-lookup)"

NUTRIENT_NUMBER_MAP = {
    "208": "calories",
    "203": "protein",
    "205": "carbs",
    "204": "fat",
    "269": "sugar",
    "307": "sodium",
    "291": "fiber",
}
BASIC_NUTRIENT_NUMBERS = ("203", "204", "205", "208")


def safe_str(value, max_len: int):
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text[:max_len]


def _as_float(value) -> float | None:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _nutrient_number(nutrient: dict) -> str:
    return str(
        nutrient.get("nutrientNumber")
        or nutrient.get("number")
        or ((nutrient.get("nutrient") or {}).get("number") or "")
    )


def _nutrient_amount(nutrient: dict) -> float | None:
    value = nutrient.get("value")
    if value is None:
        value = nutrient.get("amount")
    return _as_float(value)


def parse_usda_nutrients(food_row: dict[str, Any]) -> dict[str, float]:
    parsed: dict[str, float] = {}
    for nutrient in food_row.get("foodNutrients") or []:
        field_name = NUTRIENT_NUMBER_MAP.get(_nutrient_number(nutrient))
        if not field_name or field_name in parsed:
            continue
        value = _nutrient_amount(nutrient)
        if value is None:
            continue
        parsed[field_name] = value
    return parsed


def scale_nutrients(per_100g: dict[str, float], grams: float) -> dict[str, float]:
    factor = grams / 100.0
    scaled = {
        "calories": int(round((per_100g.get("calories") or 0) * factor)),
        "protein": round((per_100g.get("protein") or 0) * factor, 1),
        "carbs": round((per_100g.get("carbs") or 0) * factor, 1),
        "fat": round((per_100g.get("fat") or 0) * factor, 1),
    }
    for optional in ("fiber", "sugar"):
        if (per_100g.get(optional) or 0) > 0:
            scaled[optional] = round(per_100g[optional] * factor, 1)
    if (per_100g.get("sodium") or 0) > 0:
        scaled["sodium"] = int(round(per_100g["sodium"] * factor))
    return scaled


def _usda_match_score(food_row: dict[str, Any]) -> int:
    nutrients = food_row.get("foodNutrients") or []
    present = {
        _nutrient_number(nutrient)
        for nutrient in nutrients
        if (_nutrient_amount(nutrient) or 0) > 0
    }
    has_basics = all(number in present for number in BASIC_NUTRIENT_NUMBERS)
    return len(nutrients) + (100 if has_basics else 0)


class OpenFoodFactsClient:
    BASE_URL = "https://world.openfoodfacts.org"
    SEARCH_URL = f"{BASE_URL}/api/v2/search"
    PRODUCT_URL = f"{BASE_URL}/api/v2/product"

    def __init__(self, http_client: httpx.Client | None = None, ttl_seconds: float = 24 * 60 * 60):
        self.client = http_client or httpx.Client(timeout=10.0, headers={"User-Agent": USER_AGENT})
        self.cache = ExpiringCache(ttl_seconds)

    def get_nutrition_data(self, food_names: list[str]) -> list[dict]:
        results = []
        for food_name in food_names:
            name = (food_name or "").strip()
            if not name:
                continue
            results.append({"food": name, "nutrition_per_100g": self.get_food_nutrition(name)})
        return results

    def get_food_nutrition(self, food_name: str):
        cached = self.cache.get(food_name)
        if cached is not None:
            logger.debug("Open Food Facts cache hit for %s", food_name)
            return cached

        params = {
            "search_terms": food_name,
            "search_simple": 1,
            "action": "process",
            "json": 1,
            "page_size": 1,
            "fields": "product_name,nutriments",
        }
        try:
            response = self.client.get(self.SEARCH_URL, params=params)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Open Food Facts lookup failed for %s: %s", food_name, exc)
            self.cache.set(food_name, NOT_FOUND)
            return NOT_FOUND

        products = data.get("products") if isinstance(data, dict) else None
        if not products:
            logger.info("No Open Food Facts data for %s", food_name)
            self.cache.set(food_name, NOT_FOUND)
            return NOT_FOUND

        nutriments = products[0].get("nutriments") or {}
        nutrition = {
            "calories": int(round(_as_float(nutriments.get("energy-kcal_100g")) or 0)),
            "protein": round(_as_float(nutriments.get("proteins_100g")) or 0, 1),
            "carbs": round(_as_float(nutriments.get("carbohydrates_100g")) or 0, 1),
            "fat": round(_as_float(nutriments.get("fat_100g")) or 0, 1),
        }
        self.cache.set(food_name, nutrition)
        return nutrition

    def lookup_barcode(self, barcode: str) -> dict | None:
        code = "".join(ch for ch in (barcode or "") if ch.isdigit())
        if len(code) < 6:
            return None

        cache_key = f"barcode:{code}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return None if cached == NOT_FOUND else cached

        try:
            response = self.client.get(
                f"{self.PRODUCT_URL}/{code}.json",
                params={"fields": "product_name,brands,serving_size,nutriments,image_url"},
            )
            if response.status_code == 404:
                self.cache.set(cache_key, NOT_FOUND)
                return None
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Open Food Facts barcode lookup failed for %s: %s", code, exc)
            return None

        product = data.get("product") if isinstance(data, dict) else None
        if not product or data.get("status") == 0:
            self.cache.set(cache_key, NOT_FOUND)
            return None

        nutriments = product.get("nutriments") or {}
        payload = {
            "barcode": code,
            "name": safe_str(product.get("product_name"), 255) or f"Product {code}",
            "brand": safe_str(product.get("brands"), 255),
            "serving_size": safe_str(product.get("serving_size"), 64),
            "image_url": safe_str(product.get("image_url"), 500),
            "nutrition_per_100g": {
                "calories": int(round(_as_float(nutriments.get("energy-kcal_100g")) or 0)),
                "protein": round(_as_float(nutriments.get("proteins_100g")) or 0, 1),
                "carbs": round(_as_float(nutriments.get("carbohydrates_100g")) or 0, 1),
                "fat": round(_as_float(nutriments.get("fat_100g")) or 0, 1),
            },
        }
        self.cache.set(cache_key, payload)
        return payload

    def cache_stats(self) -> dict:
        return self.cache.stats()

    def clear_cache(self) -> int:
        return self.cache.clear()

    def clear_expired(self) -> int:
        cleared = self.cache.clear_expired()
        logger.info("Cleared %s expired Open Food Facts cache entries", cleared)
        return cleared


class UsdaClient:
    SEARCH_URL = "https://api.nal.usda.gov/fdc/v1/foods/search"

    def __init__(self, api_key: str | None, http_client: httpx.Client | None = None, ttl_seconds: float = 60 * 60):
        self.api_key = api_key or "DEMO_KEY"
        self.client = http_client or httpx.Client(timeout=8.0, headers={"User-Agent": USER_AGENT})
        self.cache = ExpiringCache(ttl_seconds)

    def search_foods(self, query: str, page_size: int = 10) -> list[dict]:
        query = (query or "").strip()
        if len(query) < 2:
            return []

        cache_key = f"search:{query}:{page_size}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return cached

        payload = {
            "query": query,
            "pageSize": max(1, min(page_size, 25)),
            "dataType": ["Foundation", "SR Legacy", "Survey (FNDDS)"],
        }
        response = self.client.post(self.SEARCH_URL, params={"api_key": self.api_key}, json=payload)
        response.raise_for_status()
        data = response.json()
        foods = data.get("foods") if isinstance(data, dict) else None
        foods = foods if isinstance(foods, list) else []
        self.cache.set(cache_key, foods)
        return foods

    def find_best_match(self, food_name: str) -> dict | None:
        try:
            foods = self.search_foods(food_name)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("USDA lookup failed for %s: %s", food_name, exc)
            return None

        if not foods:
            logger.info("No USDA matches for %s", food_name)
            return None

        best = max(foods, key=_usda_match_score)
        return {
            "fdc_id": best.get("fdcId"),
            "description": safe_str(best.get("description"), 255) or food_name,
            "per_100g": parse_usda_nutrients(best),
        }

    def clear_cache(self) -> int:
        return self.cache.clear()


class FoodServices:
    def __init__(self, open_food_facts: OpenFoodFactsClient, usda: UsdaClient):
        self.open_food_facts = open_food_facts
        self.usda = usda


def init_app(app) -> None:
    ttl_hours = float(app.config.get("OPENFOODFACTS_CACHE_HOURS", 24))
    app.extensions["platemate.food"] = FoodServices(
        OpenFoodFactsClient(ttl_seconds=ttl_hours * 60 * 60),
        UsdaClient(app.config.get("USDA_API_KEY")),
    )


def get_food_services() -> FoodServices:
    return current_app.extensions["platemate.food"]
