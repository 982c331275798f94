"""Shopping list generation from recipes and free-text meal extras.

Pipeline for one build:

    recipe rows + extras -> parse / expand -> merge
        -> local name normalization -> canonicalization -> re-merge
        -> categorize -> sort

Every stage after loading is pure; only the row loader and the
canonicalization collaborator touch the outside world.
"""

import logging
import numbers
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from mealcart.aggregator import ShoppingListItem, merge_items, rename_and_merge
from mealcart.canonicalizer import (
    DEFAULT_TIMEOUT,
    Canonicalize,
    CanonicalizationCache,
    canonicalize_names,
)
from mealcart.categorizer import categorize, sort_items
from mealcart.extra_items import expand_extra_item
from mealcart.ingredient_normalizer import normalize_ingredient_name
from mealcart.meal_assembly import ParsedMeal, assemble_meals
from mealcart.quantity_parser import (
    normalize_unit,
    parse_amount,
    parse_ingredient_text,
    parse_number,
    unit_from_quantity,
)
from mealcart.recipe_matcher import RecipeCatalog

logger = logging.getLogger(__name__)


@dataclass
class RecipeIngredientRow:
    """An ingredient line of a stored recipe."""
    recipe_id: object
    ingredient_name: str
    amount: Optional[float] = None
    unit_code: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "RecipeIngredientRow":
        return cls(
            recipe_id=d.get("recipeId", d.get("recipe_id")),
            ingredient_name=d.get("ingredientName", d.get("ingredient_name", "")),
            amount=d.get("amount"),
            unit_code=d.get("unitCode", d.get("unit_code")),
        )


@dataclass
class ShoppingListResponse:
    """The finished list, already in display order."""
    items: List[ShoppingListItem] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"items": [item.to_dict() for item in self.items]}


# recipe ids -> ingredient rows for those recipes
LoadRows = Callable[[set], Iterable[RecipeIngredientRow]]


def to_amount(amount) -> Optional[float]:
    """Convert a stored amount to float.

    Accepts any real number (int, float, Decimal, Fraction) and quantity
    strings such as "1/2" or "200 g". Anything else gives None.
    """
    if amount is None or isinstance(amount, bool):
        return None
    if isinstance(amount, (numbers.Real, Decimal)):
        return float(amount)
    if isinstance(amount, str):
        value = parse_number(amount)
        if value is None:
            value = parse_amount(amount)
        return value
    return None


def to_unit(unit_code: Optional[str]) -> Optional[str]:
    """Short unit code for a stored unit; unknown codes pass through lowercased."""
    if not unit_code or not unit_code.strip():
        return None
    return normalize_unit(unit_code) or unit_code.strip().lower()


def rows_to_items(rows: Iterable[RecipeIngredientRow]) -> List[ShoppingListItem]:
    """Convert recipe ingredient rows to shopping list items.

    A row without a unit code takes the unit from a quantity string amount
    ("200 g").
    """
    items = []
    for row in rows:
        name = (row.ingredient_name or "").strip()
        if not name:
            continue
        unit = to_unit(row.unit_code)
        if unit is None and isinstance(row.amount, str):
            unit = unit_from_quantity(row.amount)
        items.append(ShoppingListItem(
            ingredient_name=name,
            amount=to_amount(row.amount),
            unit=unit,
            source_recipe_ids={row.recipe_id} if row.recipe_id is not None else set(),
        ))
    return items


def extras_to_items(extras: Iterable[str]) -> List[ShoppingListItem]:
    """Parse and expand free-text extras into shopping list items."""
    items = []
    for phrase in extras:
        if not phrase or not phrase.strip():
            continue
        parsed = parse_ingredient_text(phrase)
        for expanded in expand_extra_item(phrase, parsed):
            items.append(ShoppingListItem(
                ingredient_name=expanded.name,
                amount=expanded.quantity,
                unit=expanded.unit,
            ))
    return items


def build_shopping_list(
    recipe_ids: Iterable = (),
    load_rows: Optional[LoadRows] = None,
    extras: Iterable[str] = (),
    canonicalize: Optional[Canonicalize] = None,
    cache: Optional[CanonicalizationCache] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> ShoppingListResponse:
    """Build a categorized, de-duplicated shopping list.

    Args:
        recipe_ids: Recipes whose ingredients go on the list
        load_rows: Loads ingredient rows for a set of recipe ids
        extras: Free-text fragments such as "1/2 banana" or "protein shake"
        canonicalize: Optional name canonicalization collaborator
        cache: Optional canonicalization memo shared between builds
        timeout: Seconds to wait for the collaborator

    Returns:
        ShoppingListResponse sorted by category rank, then name. Empty input
        gives an empty response. Errors raised by `load_rows` propagate.
    """
    logger.info("Building shopping list...")

    ids = set(r for r in recipe_ids if r is not None)
    rows = list(load_rows(ids)) if ids and load_rows is not None else []

    row_items = rows_to_items(rows)
    extra_items = extras_to_items(extras or [])
    items = row_items + extra_items
    if not items:
        logger.info("Nothing to shop for")
        return ShoppingListResponse()

    working = merge_items(items)
    working = rename_and_merge(working, normalize_ingredient_name)

    mapping = canonicalize_names(
        [item.ingredient_name for item in working.values()],
        canonicalize=canonicalize,
        cache=cache,
        timeout=timeout,
    )
    working = rename_and_merge(
        working,
        lambda name: normalize_ingredient_name(mapping.get(name, name)),
    )

    for item in working.values():
        item.category = categorize(item.ingredient_name)

    result = sort_items(working.values())
    logger.info(
        "Shopping list built (%d items from %d recipe rows, %d extra items)",
        len(result), len(row_items), len(extra_items),
    )
    return ShoppingListResponse(items=result)


def build_shopping_list_for_meals(
    meals: Iterable[ParsedMeal],
    catalog: RecipeCatalog,
    load_rows: Optional[LoadRows] = None,
    canonicalize: Optional[Canonicalize] = None,
    cache: Optional[CanonicalizationCache] = None,
    timeout: float = DEFAULT_TIMEOUT,
    extras: Iterable[str] = (),
) -> ShoppingListResponse:
    """Build a shopping list straight from interpreted meal records.

    Meals are matched to catalog recipes locally; unmatched dish names and
    all free-text items become extras alongside any `extras` given.
    """
    selection = assemble_meals(meals, catalog)
    return build_shopping_list(
        recipe_ids=selection.recipe_ids,
        load_rows=load_rows,
        extras=list(selection.extras) + list(extras or []),
        canonicalize=canonicalize,
        cache=cache,
        timeout=timeout,
    )
