"""Tests for shopping category assignment"""

import pytest

from mealcart.aggregator import ShoppingListItem
from mealcart.categorizer import CATEGORY_ORDER, categorize, category_rank, sort_items


class TestCategorize:
    """Tests for keyword categorization"""

    @pytest.mark.parametrize("name,expected", [
        ("Tomato", "Produce"),
        ("Cherry Tomatoes", "Produce"),
        ("Fruit", "Produce"),
        ("Mixed Vegetables", "Produce"),
        ("Eggplant", "Produce"),
        ("Cranberry", "Produce"),
        ("Blackberry", "Produce"),
        ("Stewing Steak", "Protein"),
        ("Chicken Breast", "Protein"),
        ("Egg", "Dairy & Eggs"),
        ("Milk", "Dairy & Eggs"),
        ("Tortilla Wrap", "Bakery & Grains"),
        ("Oats", "Bakery & Grains"),
        ("Beans", "Pantry"),
        ("Chickpeas", "Pantry"),
        ("Protein Snack", "Snacks & Supplements"),
        ("Orange Juice", "Beverages"),
        ("Hummus", "Condiments & Sauces"),
    ])
    def test_known_items(self, name, expected):
        assert categorize(name) == expected

    def test_specific_phrase_beats_broad_keyword(self):
        """Peanut butter is pantry, not dairy"""
        assert categorize("Peanut Butter") == "Pantry"
        assert categorize("Butter") == "Dairy & Eggs"

    def test_whole_word_matching(self):
        """'tea' does not match inside 'steak'"""
        assert categorize("Steak") == "Protein"

    def test_unknown_is_other(self):
        assert categorize("Dish Soap") == "Other"
        assert categorize("") == "Other"

    def test_case_insensitive(self):
        assert categorize("TOMATO") == categorize("tomato")


class TestOrdering:
    """Tests for display ordering"""

    def test_category_rank_follows_order(self):
        assert category_rank("Produce") == 0
        assert category_rank("Other") == len(CATEGORY_ORDER) - 1
        assert category_rank("Unknown") == len(CATEGORY_ORDER)

    def test_sort_by_rank_then_name(self):
        items = [
            ShoppingListItem("Milk", category="Dairy & Eggs"),
            ShoppingListItem("tomato", category="Produce"),
            ShoppingListItem("Apple", category="Produce"),
            ShoppingListItem("Chicken", category="Protein"),
        ]
        assert [i.ingredient_name for i in sort_items(items)] == ["Apple", "tomato", "Chicken", "Milk"]

    def test_sort_is_deterministic(self):
        items = [ShoppingListItem("B", category="Other"), ShoppingListItem("a", category="Other")]
        assert sort_items(items) == sort_items(list(reversed(items)))
