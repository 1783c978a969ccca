import unittest

from platemate.shopping import aggregate_ingredients, build_shopping_list, shopping_quantity


class BuildShoppingListTestCase(unittest.TestCase):
    def test_combines_and_converts_to_purchasable_amounts(self):
        recipes = [
            {"name": "Pancakes", "ingredients": ["2 cups flour", "3 eggs", "1 cup milk", "salt to taste"]},
            {
                "name": "Dinner",
                "ingredients": ["1 cup flour", "2 eggs", "1 cup blueberries", "200g chicken breast"],
            },
        ]
        self.assertEqual(
            build_shopping_list(recipes),
            [
                "1 container mixed berries",
                "1 half dozen eggs",
                "1 package flour",
                "1 small carton milk",
                "200 g chicken breast (or 1 package)",
                "salt to taste",
            ],
        )

    def test_berries_collapse_to_one_line(self):
        recipes = [{"ingredients": ["1 cup strawberries", "1/2 cup raspberries"]}]
        self.assertEqual(build_shopping_list(recipes), ["1 container mixed berries"])

    def test_ingredients_group_case_insensitively(self):
        recipes = [{"ingredients": ["2 Tomatoes"]}, {"ingredients": ["1 tomatoes"]}]
        self.assertEqual(build_shopping_list(recipes), ["3 Tomatoes"])

    def test_differently_worded_eggs_share_one_count(self):
        recipes = [{"ingredients": ["4 eggs"]}, {"ingredients": ["3 large eggs"]}]
        self.assertEqual(build_shopping_list(recipes), ["1 dozen eggs"])

    def test_eggs_within_one_half_dozen(self):
        recipes = [{"ingredients": ["2 eggs", "1 egg yolk"]}, {"ingredients": ["3 Eggs"]}]
        self.assertEqual(build_shopping_list(recipes), ["1 half dozen eggs"])

    def test_no_recipes(self):
        self.assertEqual(build_shopping_list([]), [])
        self.assertEqual(build_shopping_list([{"name": "Empty"}]), [])

    def test_skips_non_string_ingredients(self):
        recipes = [{"ingredients": [None, 42, "  ", "1 onion"]}]
        self.assertEqual(build_shopping_list(recipes), ["1 onion"])


class ShoppingQuantityTestCase(unittest.TestCase):
    def test_eggs_round_up_to_dozens(self):
        self.assertEqual(shopping_quantity(6, "", "eggs"), "1 half dozen eggs")
        self.assertEqual(shopping_quantity(7, "", "eggs"), "1 dozen eggs")
        self.assertEqual(shopping_quantity(30, "", "eggs"), "3 dozen eggs")

    def test_dairy_by_volume(self):
        self.assertEqual(shopping_quantity(3, "cups", "milk"), "1 quart milk")
        self.assertEqual(shopping_quantity(6, "cup", "milk"), "1 half gallon milk")

    def test_leafy_greens(self):
        self.assertEqual(shopping_quantity(2, "cup", "spinach"), "1 bag/bunch spinach")

    def test_spices_are_to_taste(self):
        self.assertEqual(shopping_quantity(1, "tsp", "cinnamon"), "cinnamon (to taste)")

    def test_generic_counted_item(self):
        self.assertEqual(shopping_quantity(1.2, "", "avocado"), "2 avocado")


class AggregateIngredientsTestCase(unittest.TestCase):
    def test_groups_parsed_portions_by_ingredient(self):
        grouped = aggregate_ingredients([{"ingredients": ["2 cups flour", "1 tbsp flour", "1 egg"]}])
        self.assertEqual(sorted(grouped), ["egg", "flour"])
        self.assertEqual([portion.unit for portion in grouped["flour"]], ["cup", "tbsp"])


if __name__ == "__main__":
    unittest.main()
