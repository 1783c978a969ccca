import json
import unittest

import httpx

from platemate.cache import NOT_FOUND
from platemate.food_catalog import (
    OpenFoodFactsClient,
    UsdaClient,
    parse_usda_nutrients,
    scale_nutrients,
)


def usda_food(description, nutrients):
    return {
        "fdcId": abs(hash(description)) % 100000,
        "description": description,
        "foodNutrients": [{"nutrientNumber": number, "value": value} for number, value in nutrients.items()],
    }


class RecordingHandler:
    def __init__(self, responder):
        self.responder = responder
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


class OpenFoodFactsClientTestCase(unittest.TestCase):
    def make_client(self, responder):
        handler = RecordingHandler(responder)
        client = OpenFoodFactsClient(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
        return client, handler

    def test_search_result_is_cached(self):
        def responder(request):
            self.assertEqual(request.url.path, "/api/v2/search")
            self.assertEqual(request.url.params["search_terms"], "Greek Yogurt")
            return httpx.Response(
                200,
                json={
                    "products": [
                        {
                            "nutriments": {
                                "energy-kcal_100g": 97.4,
                                "proteins_100g": 9.04,
                                "carbohydrates_100g": 3.98,
                                "fat_100g": 5,
                            }
                        }
                    ]
                },
            )

        client, handler = self.make_client(responder)
        expected = {"calories": 97, "protein": 9.0, "carbs": 4.0, "fat": 5.0}
        self.assertEqual(client.get_food_nutrition("Greek Yogurt"), expected)
        self.assertEqual(client.get_food_nutrition("greek yogurt"), expected)
        self.assertEqual(len(handler.requests), 1)

    def test_failures_are_cached_as_not_found(self):
        client, handler = self.make_client(lambda request: httpx.Response(500))
        self.assertEqual(client.get_food_nutrition("mystery"), NOT_FOUND)
        self.assertEqual(client.get_food_nutrition("mystery"), NOT_FOUND)
        self.assertEqual(len(handler.requests), 1)

    def test_empty_products_is_not_found(self):
        client, _ = self.make_client(lambda request: httpx.Response(200, json={"products": []}))
        self.assertEqual(
            client.get_nutrition_data(["kale chips", " "]),
            [{"food": "kale chips", "nutrition_per_100g": NOT_FOUND}],
        )

    def test_lookup_barcode(self):
        def responder(request):
            self.assertEqual(request.url.path, "/api/v2/product/5000159484695.json")
            return httpx.Response(
                200,
                json={
                    "status": 1,
                    "product": {
                        "product_name": "Chocolate Bar",
                        "brands": "Acme",
                        "serving_size": "45g",
                        "nutriments": {"energy-kcal_100g": 530, "proteins_100g": 7.3},
                    },
                },
            )

        client, handler = self.make_client(responder)
        product = client.lookup_barcode("5000-1594-84695")
        self.assertEqual(product["barcode"], "5000159484695")
        self.assertEqual(product["name"], "Chocolate Bar")
        self.assertEqual(product["brand"], "Acme")
        self.assertEqual(product["nutrition_per_100g"], {"calories": 530, "protein": 7.3, "carbs": 0, "fat": 0})
        self.assertEqual(client.lookup_barcode("5000159484695"), product)
        self.assertEqual(len(handler.requests), 1)

    def test_unknown_barcode_is_remembered(self):
        client, handler = self.make_client(lambda request: httpx.Response(404))
        self.assertIsNone(client.lookup_barcode("12345678"))
        self.assertIsNone(client.lookup_barcode("12345678"))
        self.assertEqual(len(handler.requests), 1)

    def test_short_barcode_skips_the_network(self):
        client, handler = self.make_client(lambda request: httpx.Response(500))
        self.assertIsNone(client.lookup_barcode("12a"))
        self.assertEqual(handler.requests, [])

    def test_clear_expired_and_clear(self):
        client, _ = self.make_client(lambda request: httpx.Response(404))
        client.lookup_barcode("12345678")
        self.assertEqual(client.clear_expired(), 0)
        self.assertEqual(client.cache_stats()["total_entries"], 1)
        self.assertEqual(client.clear_cache(), 1)


class UsdaClientTestCase(unittest.TestCase):
    def test_best_match_prefers_complete_nutrients(self):
        foods = [
            usda_food("Chicken, sparse", {"208": 120}),
            usda_food("Chicken breast, roasted", {"208": 165, "203": 31, "204": 3.6, "205": 0.1, "307": 74}),
        ]
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"foods": foods})

        client = UsdaClient("secret", http_client=httpx.Client(transport=httpx.MockTransport(handler)))
        match = client.find_best_match("chicken breast")

        self.assertEqual(match["description"], "Chicken breast, roasted")
        self.assertEqual(match["per_100g"]["protein"], 31)
        self.assertEqual(seen[0].method, "POST")
        self.assertEqual(seen[0].url.params["api_key"], "secret")
        self.assertEqual(json.loads(seen[0].content)["query"], "chicken breast")

        client.find_best_match("chicken breast")
        self.assertEqual(len(seen), 1)

    def test_http_error_returns_none(self):
        client = UsdaClient(None, http_client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(429))))
        self.assertEqual(client.api_key, "DEMO_KEY")
        self.assertIsNone(client.find_best_match("rice"))

    def test_short_query_returns_nothing(self):
        client = UsdaClient("key", http_client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(500))))
        self.assertEqual(client.search_foods("a"), [])


class NutrientHelpersTestCase(unittest.TestCase):
    def test_parse_usda_nutrients_handles_nested_numbers(self):
        row = {
            "foodNutrients": [
                {"nutrient": {"number": "208"}, "amount": 52},
                {"number": "291", "value": "2.4"},
                {"nutrientNumber": "999", "value": 1},
                {"nutrientNumber": "203", "value": None},
            ]
        }
        self.assertEqual(parse_usda_nutrients(row), {"calories": 52.0, "fiber": 2.4})

    def test_scale_nutrients(self):
        per_100g = {"calories": 165, "protein": 31, "carbs": 0, "fat": 3.6, "sodium": 74, "fiber": 0}
        self.assertEqual(
            scale_nutrients(per_100g, 150),
            {"calories": 248, "protein": 46.5, "carbs": 0.0, "fat": 5.4, "sodium": 111},
        )


if __name__ == "__main__":
    unittest.main()
