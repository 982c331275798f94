"""Expansion of informal meal phrases into purchasable shopping items.

Meal plans describe snacks and simple dishes loosely ("a portion of fruit",
"protein shake", "avocado on toast"). This module turns those phrases into
the items someone actually buys, using an ordered rule table. Rules are
tried top to bottom and the first matching rule produces the output; a phrase
no rule recognises becomes a single item as written.

To teach the expander a new phrase, add an `ExpansionRule` row to
`EXPANSION_RULES` in the position that gives it the right priority.
"""

import re
from functools import lru_cache
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

from mealcart.quantity_parser import ParsedQuantity, parse_ingredient_text


class ExpandedItem(NamedTuple):
    """A canonical shopping item produced from a free-text phrase."""
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None


class ExpansionRule(NamedTuple):
    """One row of the expansion table.

    Attributes:
        name: Short label used in logs and tests
        triggers: Words or phrases, any of which selects this rule
        expand: Builds the output items from (phrase, parsed quantity)
        unless: Words that veto the rule even when a trigger is present
    """
    name: str
    triggers: Tuple[str, ...]
    expand: Callable[[str, ParsedQuantity], List[ExpandedItem]]
    unless: Tuple[str, ...] = ()


# Units that describe "how many" rather than weight or volume
COUNT_UNITS = {None, "pcs", "item", "portion", "slice", "scoop"}

FRUIT_NAMES = (
    "banana", "apple", "pear", "orange", "avocado", "clementine", "satsuma",
    "tangerine", "kiwi", "mango", "peach", "nectarine", "plum", "grapes",
    "berries", "strawberries", "blueberries", "raspberries", "melon", "pineapple",
)

PROTEIN_SNACK_TRIGGERS = (
    "protein bar", "protein shake", "protein yoghurt", "protein yogurt",
    "protein pudding", "protein drink", "protein powder", "protein snack",
    "whey", "whey protein",
)


@lru_cache(maxsize=None)
def _phrase_pattern(phrase: str) -> re.Pattern:
    return re.compile(rf"\b{re.escape(phrase)}(?:s|es)?\b")


def mentions(text: str, phrase: str) -> bool:
    """True if `phrase` appears in `text` as whole words (plural allowed)."""
    return bool(_phrase_pattern(phrase.lower()).search(text.lower()))


def _multiplier(parsed: ParsedQuantity) -> float:
    """How many servings a phrase asks for ("2 omelettes" -> 2)."""
    if parsed.quantity and parsed.unit in COUNT_UNITS:
        return parsed.quantity
    return 1


def _expand_fruit(phrase: str, parsed: ParsedQuantity) -> List[ExpandedItem]:
    if parsed.quantity is not None and parsed.unit not in COUNT_UNITS:
        # "150g berries" keeps its weight
        return [ExpandedItem("Fruit", parsed.quantity, parsed.unit)]

    quantity = parsed.quantity
    if quantity is None:
        quantity = 0.5 if mentions(phrase, "half") else 1
    return [ExpandedItem("Fruit", quantity, "pcs")]


def _expand_protein_snack(phrase: str, parsed: ParsedQuantity) -> List[ExpandedItem]:
    return [ExpandedItem("Protein Snack", _multiplier(parsed), "portion")]


def dish(
    base: Sequence[ExpandedItem],
    extras: Sequence[Tuple[str, ExpandedItem]] = (),
) -> Callable[[str, ParsedQuantity], List[ExpandedItem]]:
    """Build an expander for a composite dish.

    Args:
        base: Items every version of the dish needs
        extras: (keyword, item) pairs added when the keyword appears in the phrase

    Returns:
        Expander scaling every quantity by the number of servings asked for.
    """
    def expand(phrase: str, parsed: ParsedQuantity) -> List[ExpandedItem]:
        factor = _multiplier(parsed)
        items = list(base)
        for keyword, item in extras:
            if mentions(phrase, keyword) and item.name not in {i.name for i in items}:
                items.append(item)
        return [
            ExpandedItem(i.name, i.quantity * factor if i.quantity is not None else None, i.unit)
            for i in items
        ]
    return expand


_CHICKEN = ExpandedItem("Chicken Breast", 150, "g")
_TUNA = ExpandedItem("Tuna", 1, "can")
_HALLOUMI = ExpandedItem("Halloumi", 100, "g")
_FETA = ExpandedItem("Feta", 50, "g")
_EGG = ExpandedItem("Egg", 2, "pcs")
_AVOCADO = ExpandedItem("Avocado", 0.5, "pcs")
_SALAD_LEAVES = ExpandedItem("Mixed Salad Leaves", 80, "g")
_MIXED_VEG = ExpandedItem("Mixed Vegetables", 150, "g")

# Composite dishes, ordered by priority
DISH_RULES = [
    ExpansionRule(
        name="toast",
        triggers=("toast",),
        expand=dish(
            base=[ExpandedItem("Bread", 1, "slice")],
            extras=[
                ("egg", _EGG),
                ("avocado", _AVOCADO),
                ("butter", ExpandedItem("Butter", 10, "g")),
                ("beans", ExpandedItem("Baked Beans", 1, "can")),
            ],
        ),
    ),
    ExpansionRule(
        name="omelette",
        triggers=("omelette", "omelet"),
        expand=dish(
            base=[ExpandedItem("Egg", 3, "pcs"), ExpandedItem("Milk", 30, "ml")],
            extras=[
                ("cheese", ExpandedItem("Cheese", 30, "g")),
                ("ham", ExpandedItem("Ham", 50, "g")),
                ("mushroom", ExpandedItem("Mushroom", 50, "g")),
                ("spinach", ExpandedItem("Spinach", 30, "g")),
                ("pepper", ExpandedItem("Pepper", 0.5, "pcs")),
                ("tomato", ExpandedItem("Tomato", 1, "pcs")),
                ("onion", ExpandedItem("Onion", 0.5, "pcs")),
            ],
        ),
    ),
    ExpansionRule(
        name="wrap",
        triggers=("wrap",),
        expand=dish(
            base=[ExpandedItem("Tortilla Wrap", 1, "pcs"), ExpandedItem("Mixed Salad Leaves", 30, "g")],
            extras=[
                ("chicken", _CHICKEN),
                ("tuna", _TUNA),
                ("halloumi", _HALLOUMI),
                ("falafel", ExpandedItem("Falafel", 4, "pcs")),
                ("hummus", ExpandedItem("Hummus", 2, "tbsp")),
            ],
        ),
    ),
    ExpansionRule(
        name="quinoa bowl",
        triggers=("quinoa bowl", "quinoa"),
        expand=dish(
            base=[ExpandedItem("Quinoa", 75, "g"), _MIXED_VEG],
            extras=[
                ("chicken", _CHICKEN),
                ("halloumi", _HALLOUMI),
                ("chickpea", ExpandedItem("Chickpeas", 1, "can")),
                ("avocado", _AVOCADO),
                ("feta", _FETA),
            ],
        ),
    ),
    ExpansionRule(
        name="pasta",
        triggers=("pasta", "spaghetti", "penne", "fusilli"),
        expand=dish(
            base=[ExpandedItem("Pasta", 100, "g")],
            extras=[
                ("tomato", ExpandedItem("Passata", 200, "g")),
                ("pesto", ExpandedItem("Pesto", 2, "tbsp")),
                ("chicken", _CHICKEN),
                ("tuna", _TUNA),
                ("cheese", ExpandedItem("Parmesan", 20, "g")),
            ],
        ),
    ),
    ExpansionRule(
        name="salad",
        triggers=("salad",),
        expand=dish(
            base=[_SALAD_LEAVES, ExpandedItem("Tomato", 2, "pcs"), ExpandedItem("Cucumber", 0.5, "pcs")],
            extras=[
                ("chicken", _CHICKEN),
                ("tuna", _TUNA),
                ("halloumi", _HALLOUMI),
                ("feta", _FETA),
                ("egg", _EGG),
                ("avocado", _AVOCADO),
            ],
        ),
    ),
    ExpansionRule(
        name="stew",
        triggers=("stew", "casserole"),
        expand=dish(
            base=[
                ExpandedItem("Stewing Steak", 500, "g"),
                ExpandedItem("Mixed Vegetables", 300, "g"),
                ExpandedItem("Beans", 1, "can"),
            ],
        ),
    ),
]

# A named fruit inside any of these is an ingredient, not a piece of fruit
FRUIT_VETO_WORDS = tuple(
    word for rule in DISH_RULES for word in rule.triggers
) + ("bowl", "bread", "cake", "juice", "smoothie", "protein", "whey")

# Ordered by priority; first match wins
EXPANSION_RULES = [
    ExpansionRule(
        name="fruit portion",
        triggers=("portion of fruit", "fruit"),
        expand=_expand_fruit,
    ),
    ExpansionRule(
        name="named fruit",
        triggers=FRUIT_NAMES,
        expand=_expand_fruit,
        unless=FRUIT_VETO_WORDS,
    ),
    ExpansionRule(
        name="protein snack",
        triggers=PROTEIN_SNACK_TRIGGERS,
        expand=_expand_protein_snack,
    ),
] + DISH_RULES


def _rule_matches(rule: ExpansionRule, phrase: str) -> bool:
    if any(mentions(phrase, word) for word in rule.unless):
        return False
    return any(mentions(phrase, trigger) for trigger in rule.triggers)


def find_rule(phrase: str, rules: Sequence[ExpansionRule] = None) -> Optional[ExpansionRule]:
    """Return the first rule that applies to the phrase, or None."""
    if rules is None:
        rules = EXPANSION_RULES
    for rule in rules:
        if _rule_matches(rule, phrase):
            return rule
    return None


def expand_extra_item(
    phrase: str,
    parsed: ParsedQuantity = None,
    rules: Sequence[ExpansionRule] = None,
) -> List[ExpandedItem]:
    """Expand a free-text phrase into canonical shopping items.

    Args:
        phrase: Raw phrase from a meal plan, e.g. "1/2 banana" or "tuna salad"
        parsed: The phrase already split by the quantity parser; parsed here if omitted
        rules: Rule table to use instead of EXPANSION_RULES

    Returns:
        Zero or more items. Blank phrases give an empty list; phrases no rule
        recognises come back as a single item with the parsed quantity and unit.
    """
    if not phrase or not phrase.strip():
        return []

    if parsed is None:
        parsed = parse_ingredient_text(phrase)

    rule = find_rule(phrase, rules)
    if rule is not None:
        return rule.expand(phrase, parsed)

    name = parsed.name or phrase.strip()
    return [ExpandedItem(name, parsed.quantity, parsed.unit)]
