"""Ingredient aggregation logic for shopping list generation.

Combines like ingredients across recipes and free-text extras. Amounts are
only added together when their units agree; a missing unit agrees with any.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Iterable, Optional

from mealcart.ingredient_normalizer import canonical_key

logger = logging.getLogger(__name__)

# Count-style units that read as plurals in display ("2 slices")
PLURALIZABLE_UNITS = {'slice', 'can', 'scoop', 'portion', 'item', 'cup'}


@dataclass
class ShoppingListItem:
    """One line of the shopping list."""
    ingredient_name: str
    canonical_key: str = ""
    amount: Optional[float] = None
    unit: Optional[str] = None
    category: str = "Other"
    source_recipe_ids: set = field(default_factory=set)

    def __post_init__(self):
        if not self.canonical_key:
            self.canonical_key = canonical_key(self.ingredient_name)

    def to_dict(self) -> dict:
        return {
            "ingredient": self.ingredient_name,
            "canonicalKey": self.canonical_key,
            "amount": self.amount,
            "unit": self.unit,
            "category": self.category,
            "sourceRecipeIds": sorted(str(r) for r in self.source_recipe_ids),
        }


def units_compatible(first: Optional[str], second: Optional[str]) -> bool:
    """Two units can be summed when equal (case-insensitive) or either is missing."""
    if not first or not second:
        return True
    return first.lower() == second.lower()


def _add_amounts(first: Optional[float], second: Optional[float]) -> Optional[float]:
    if first is None:
        return second
    if second is None:
        return first
    return first + second


def merge_item(working: Dict[str, ShoppingListItem], item: ShoppingListItem) -> ShoppingListItem:
    """Merge one item into the working map, keyed by canonical key.

    The first item seen for a key keeps its display name. When units are
    compatible the amounts are added and a missing unit is filled from the
    other side; otherwise the existing amount and unit are kept as they are.
    Source recipe ids are always unioned.

    Returns:
        The item now stored under the key.
    """
    key = item.canonical_key.lower()
    existing = working.get(key)

    if existing is None:
        stored = replace(item, canonical_key=key, source_recipe_ids=set(item.source_recipe_ids))
        working[key] = stored
        return stored

    if units_compatible(existing.unit, item.unit):
        existing.amount = _add_amounts(existing.amount, item.amount)
        if not existing.unit:
            existing.unit = item.unit
    else:
        logger.debug(
            "Not combining %s: %s %s vs %s %s",
            key, existing.amount, existing.unit, item.amount, item.unit,
        )

    existing.source_recipe_ids |= set(item.source_recipe_ids)
    return existing


def merge_items(items: Iterable[ShoppingListItem]) -> Dict[str, ShoppingListItem]:
    """Merge a flat list of items into a map keyed by canonical key."""
    working: Dict[str, ShoppingListItem] = {}
    for item in items:
        if not item.canonical_key:
            continue
        merge_item(working, item)
    return working


def rename_and_merge(
    working: Dict[str, ShoppingListItem],
    rename: Callable[[str], str],
) -> Dict[str, ShoppingListItem]:
    """Rename every item through `rename` and merge items whose new keys collide.

    Used after canonicalization, where "Cherry Tomato" and "Tomato" may both
    become "Tomato". Insertion order of the input map is preserved.
    """
    renamed = []
    for item in working.values():
        new_name = rename(item.ingredient_name) or item.ingredient_name
        renamed.append(replace(item, ingredient_name=new_name, canonical_key=canonical_key(new_name)))
    return merge_items(renamed)


def format_amount(amount: float) -> str:
    """Format a float amount for display."""
    if amount == int(amount):
        return str(int(amount))

    rounded = round(amount, 2)
    if rounded == int(rounded):
        return str(int(rounded))

    return f"{rounded:.2f}".rstrip('0').rstrip('.')


def format_item(item: ShoppingListItem) -> str:
    """Format a shopping list item as a display string, e.g. "300 g Tomato"."""
    name = item.ingredient_name.strip()
    unit = item.unit or ''

    if item.amount is None:
        return name

    parts = [format_amount(item.amount)]

    if unit:
        if item.amount > 1 and unit in PLURALIZABLE_UNITS:
            unit = unit + 's'
        parts.append(unit)

    parts.append(name)
    return ' '.join(parts)
