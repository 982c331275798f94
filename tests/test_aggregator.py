"""Tests for ingredient aggregation"""

from mealcart.aggregator import (
    ShoppingListItem,
    format_amount,
    format_item,
    merge_item,
    merge_items,
    rename_and_merge,
    units_compatible,
)


class TestUnitsCompatible:
    """Tests for unit compatibility"""

    def test_equal_units(self):
        assert units_compatible("g", "G") is True

    def test_missing_unit_is_compatible(self):
        assert units_compatible(None, "g") is True
        assert units_compatible("pcs", None) is True

    def test_different_units(self):
        assert units_compatible("g", "ml") is False


class TestMergeItems:
    """Tests for merging items by canonical key"""

    def test_same_unit_sums(self):
        """Equal keys with equal units add up"""
        merged = merge_items([
            ShoppingListItem("Tomato", amount=200, unit="g"),
            ShoppingListItem("Tomato", amount=100, unit="g"),
        ])
        assert len(merged) == 1
        assert merged["tomato"].amount == 300

    def test_different_units_not_summed(self):
        """Existing amount and unit are kept when units clash"""
        merged = merge_items([
            ShoppingListItem("Milk", amount=200, unit="ml"),
            ShoppingListItem("Milk", amount=1, unit="l"),
        ])
        assert len(merged) == 1
        assert merged["milk"].amount == 200
        assert merged["milk"].unit == "ml"

    def test_missing_unit_takes_other_side(self):
        merged = merge_items([
            ShoppingListItem("Fruit", amount=0.5),
            ShoppingListItem("Fruit", amount=1, unit="pcs"),
        ])
        assert merged["fruit"].amount == 1.5
        assert merged["fruit"].unit == "pcs"

    def test_case_insensitive_dedup(self):
        """First-seen display name wins"""
        merged = merge_items([
            ShoppingListItem("Chicken Breast", amount=200, unit="g"),
            ShoppingListItem("chicken breast", amount=100, unit="g"),
        ])
        assert list(merged) == ["chicken breast"]
        assert merged["chicken breast"].ingredient_name == "Chicken Breast"
        assert merged["chicken breast"].amount == 300

    def test_missing_amount_adds_nothing(self):
        merged = merge_items([
            ShoppingListItem("Salt"),
            ShoppingListItem("Salt", amount=5, unit="g"),
        ])
        assert merged["salt"].amount == 5

    def test_source_ids_unioned(self):
        merged = merge_items([
            ShoppingListItem("Egg", amount=2, source_recipe_ids={1}),
            ShoppingListItem("Egg", amount=3, source_recipe_ids={2}),
        ])
        assert merged["egg"].source_recipe_ids == {1, 2}

    def test_input_items_not_mutated(self):
        first = ShoppingListItem("Egg", amount=2, source_recipe_ids={1})
        merge_items([first, ShoppingListItem("Egg", amount=3, source_recipe_ids={2})])
        assert first.amount == 2
        assert first.source_recipe_ids == {1}

    def test_merge_item_returns_stored(self):
        working = {}
        stored = merge_item(working, ShoppingListItem("Egg", amount=2))
        assert working["egg"] is stored


class TestRenameAndMerge:
    """Tests for post-canonicalization re-merge"""

    def test_renamed_items_collide(self):
        working = merge_items([
            ShoppingListItem("Tomato", amount=200, unit="g", source_recipe_ids={1}),
            ShoppingListItem("Cherry Tomato", amount=100, unit="g", source_recipe_ids={2}),
        ])
        renamed = rename_and_merge(working, lambda name: {"Cherry Tomato": "Tomato"}.get(name, name))
        assert list(renamed) == ["tomato"]
        assert renamed["tomato"].amount == 300
        assert renamed["tomato"].source_recipe_ids == {1, 2}

    def test_empty_rename_keeps_name(self):
        working = merge_items([ShoppingListItem("Egg", amount=2)])
        renamed = rename_and_merge(working, lambda name: "")
        assert renamed["egg"].ingredient_name == "Egg"


class TestFormatting:
    """Tests for display strings"""

    def test_format_amount(self):
        assert format_amount(300.0) == "300"
        assert format_amount(1.5) == "1.5"
        assert format_amount(0.333333) == "0.33"

    def test_format_item(self):
        assert format_item(ShoppingListItem("Tomato", amount=300, unit="g")) == "300 g Tomato"

    def test_pluralizes_count_units(self):
        assert format_item(ShoppingListItem("Bread", amount=2, unit="slice")) == "2 slices Bread"

    def test_no_amount(self):
        assert format_item(ShoppingListItem("Salt")) == "Salt"

    def test_to_dict(self):
        item = ShoppingListItem("Tomato", amount=300, unit="g", category="Produce", source_recipe_ids={2, 1})
        assert item.to_dict() == {
            "ingredient": "Tomato",
            "canonicalKey": "tomato",
            "amount": 300,
            "unit": "g",
            "category": "Produce",
            "sourceRecipeIds": ["1", "2"],
        }
