"""Shopping category assignment and display ordering."""

import re
from typing import Iterable, List, NamedTuple, Tuple

PRODUCE = "Produce"
PROTEIN = "Protein"
DAIRY_EGGS = "Dairy & Eggs"
BAKERY_GRAINS = "Bakery & Grains"
PANTRY = "Pantry"
SNACKS_SUPPLEMENTS = "Snacks & Supplements"
BEVERAGES = "Beverages"
CONDIMENTS_SAUCES = "Condiments & Sauces"
OTHER = "Other"

# Display order of categories on the shopping list
CATEGORY_ORDER = (
    PRODUCE,
    PROTEIN,
    DAIRY_EGGS,
    BAKERY_GRAINS,
    PANTRY,
    SNACKS_SUPPLEMENTS,
    BEVERAGES,
    CONDIMENTS_SAUCES,
    OTHER,
)


class CategoryRule(NamedTuple):
    """Keywords that place an ingredient in a category."""
    category: str
    keywords: Tuple[str, ...]


# Evaluated top to bottom, first match wins. A category may appear in more
# than one row so that specific phrases ("peanut butter") beat broad ones ("butter").
CATEGORY_RULES = [
    CategoryRule(SNACKS_SUPPLEMENTS, (
        "protein", "whey", "snack", "crisps", "chocolate", "cereal bar", "granola bar",
        "flapjack", "biscuit", "popcorn", "rice cake", "trail mix", "energy bar",
    )),
    CategoryRule(CONDIMENTS_SAUCES, (
        "sauce", "ketchup", "mayonnaise", "mayo", "mustard", "dressing", "vinegar",
        "pesto", "salsa", "relish", "chutney", "gravy", "hummus", "sriracha",
    )),
    CategoryRule(PANTRY, (
        "peanut butter", "almond butter", "nut butter", "coconut milk", "black pepper",
        "stock", "stock cube", "baked bean",
    )),
    CategoryRule(BEVERAGES, (
        "juice", "coffee", "tea", "water", "soda", "cola", "lemonade", "smoothie",
        "kombucha", "oat milk", "almond milk", "soy milk", "wine", "beer",
    )),
    CategoryRule(PRODUCE, (
        "fruit", "vegetable", "veg", "salad", "leaves", "green bean", "tomato", "banana",
        "apple", "pear", "orange", "avocado", "berry", "strawberry", "blueberry",
        "raspberry", "blackberry", "cranberry", "gooseberry", "grape", "lemon", "lime", "mango",
        "pineapple", "melon", "kiwi", "peach", "plum", "cherry", "onion", "garlic",
        "potato", "carrot", "pepper", "courgette", "zucchini", "aubergine", "eggplant",
        "broccoli", "cauliflower", "spinach", "kale", "lettuce", "rocket", "cucumber",
        "mushroom", "celery", "cabbage", "leek", "ginger", "coriander", "parsley",
        "basil", "sprouts", "pea", "sweetcorn", "squash", "beetroot", "chilli",
        "asparagus", "radish",
    )),
    CategoryRule(PROTEIN, (
        "chicken", "beef", "steak", "pork", "lamb", "turkey", "mince", "bacon", "ham",
        "sausage", "fish", "salmon", "tuna", "cod", "haddock", "prawn", "shrimp", "falafel",
        "mackerel", "sardine", "tofu", "tempeh", "duck", "chorizo", "quorn",
    )),
    CategoryRule(DAIRY_EGGS, (
        "egg", "milk", "cheese", "cheddar", "mozzarella", "feta", "halloumi", "parmesan",
        "yoghurt", "yogurt", "butter", "cream", "creme fraiche", "skyr", "quark", "ricotta",
    )),
    CategoryRule(BAKERY_GRAINS, (
        "bread", "toast", "tortilla", "wrap", "bagel", "pitta", "pita", "roll", "muffin",
        "croissant", "pasta", "spaghetti", "penne", "noodles", "rice", "quinoa", "oats",
        "couscous", "bulgur", "granola", "cereal", "cracker", "flatbread",
    )),
    CategoryRule(PANTRY, (
        "beans", "lentils", "chickpeas", "flour", "sugar", "salt", "oil", "spice", "honey",
        "jam", "syrup", "yeast", "baking", "tinned", "canned", "passata", "nut", "seed", "almond",
        "walnut", "cashew", "cumin", "paprika", "cinnamon", "oregano", "herbs",
    )),
]


def _keyword_pattern(keyword: str) -> re.Pattern:
    # Whole-word match with an optional plural, so "tea" misses "steak"
    # and "egg" misses "eggplant" while "tomato" still hits "tomatoes".
    return re.compile(rf"\b{re.escape(keyword)}(?:s|es)?\b")


_COMPILED_RULES = [
    (rule.category, [_keyword_pattern(k) for k in rule.keywords])
    for rule in CATEGORY_RULES
]


def categorize(ingredient_name: str) -> str:
    """Assign a shopping category to an ingredient name.

    Args:
        ingredient_name: Display or raw name, any case

    Returns:
        One of CATEGORY_ORDER; "Other" when no rule matches.
    """
    if not ingredient_name:
        return OTHER

    name = ingredient_name.lower()
    for category, patterns in _COMPILED_RULES:
        if any(p.search(name) for p in patterns):
            return category
    return OTHER


def category_rank(category: str) -> int:
    """Position of a category in display order; unknown categories sort last."""
    try:
        return CATEGORY_ORDER.index(category)
    except ValueError:
        return len(CATEGORY_ORDER)


def sort_items(items: Iterable) -> List:
    """Sort items by category rank, then alphabetically by ingredient name."""
    return sorted(
        items,
        key=lambda i: (category_rank(i.category), i.ingredient_name.casefold(), i.ingredient_name),
    )
