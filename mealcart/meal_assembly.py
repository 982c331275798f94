"""Turn interpreted meal plan records into recipe ids and free-text extras.

The interpretation service reads a free-text meal plan and returns one record
per meal. Its recipe title is only a hint: it can name a near-but-wrong
recipe, so every meal is matched again against the catalog here.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from mealcart.extra_items import find_rule
from mealcart.recipe_matcher import RecipeCatalog, match_recipe

logger = logging.getLogger(__name__)

# Order meals appear in within a day
MEAL_ORDER = ["breakfast", "mid-morning", "morning", "lunch", "mid-afternoon", "afternoon", "dinner", "evening"]

SNACK_MEAL_TYPES = ["mid-morning", "mid morning", "mid-afternoon", "mid afternoon", "snack"]


@dataclass
class ParsedMeal:
    """One meal as returned by the interpretation service."""
    meal_type: str = "Meal"
    matched_recipe_title: Optional[str] = None
    unmatched_meal_title: Optional[str] = None
    free_text_items: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> "ParsedMeal":
        """Build from the service's JSON (camelCase or snake_case keys)."""
        def pick(camel, snake):
            return d.get(camel, d.get(snake))

        items = pick("freeTextItems", "free_text_items") or []
        if isinstance(items, str):
            items = split_free_text(items)

        return cls(
            meal_type=pick("mealType", "meal_type") or "Meal",
            matched_recipe_title=pick("matchedRecipeTitle", "matched_recipe_title") or None,
            unmatched_meal_title=pick("unmatchedMealTitle", "unmatched_meal_title") or None,
            free_text_items=[str(i) for i in items if i is not None],
        )


@dataclass
class MealSelection:
    """What a set of meals contributes to a shopping list."""
    recipe_ids: List[object] = field(default_factory=list)
    extras: List[str] = field(default_factory=list)
    unmatched_titles: List[str] = field(default_factory=list)
    # Unmatched titles the expander cannot stand in for
    needs_review: List[str] = field(default_factory=list)


def split_free_text(text: Optional[str]) -> List[str]:
    """Split a meal's free text into fragments on newlines, commas and semicolons."""
    if not text:
        return []
    return [part.strip() for part in re.split(r'[\n,;]', text) if part.strip()]


def is_snack_meal(meal_type: Optional[str]) -> bool:
    """True for snack slots such as "Mid-morning" or "Afternoon snack"."""
    meal_type = (meal_type or "").lower()
    return any(s in meal_type for s in SNACK_MEAL_TYPES)


def is_auto_handled(meal: ParsedMeal) -> bool:
    """True when an unmatched meal can be shopped for without a recipe.

    Snack slots always can; other meals can when their title is a phrase the
    extra-item expander recognises ("tuna salad", "protein shake").
    """
    if is_snack_meal(meal.meal_type):
        return True
    title = meal.unmatched_meal_title or meal.matched_recipe_title
    return bool(title) and find_rule(title) is not None


def meal_rank(meal_type: Optional[str]) -> int:
    """Position of a meal type within the day; unknown types sort last."""
    meal_type = (meal_type or "").lower()
    for i, name in enumerate(MEAL_ORDER):
        if name in meal_type:
            return i
    return len(MEAL_ORDER)


def sort_meals(meals: Iterable[ParsedMeal]) -> List[ParsedMeal]:
    """Order meals through the day, keeping input order within a slot."""
    return sorted(meals, key=lambda m: meal_rank(m.meal_type))


def resolve_recipe(meal: ParsedMeal, catalog: RecipeCatalog) -> Optional[object]:
    """Match a meal to a catalog recipe, trying the service's title first as a seed."""
    for candidate in (meal.matched_recipe_title, meal.unmatched_meal_title):
        recipe_id = match_recipe(candidate, catalog)
        if recipe_id is not None:
            return recipe_id
    return None


def assemble_meals(meals: Iterable[ParsedMeal], catalog: RecipeCatalog) -> MealSelection:
    """Collect recipe ids and free-text extras from interpreted meals.

    A matched meal contributes its recipe id plus its free-text items. An
    unmatched meal contributes its dish title (if any) followed by its
    free-text items, all as extras. Recipe ids are de-duplicated in first-seen
    order. Unmatched titles that are not auto-handled are also listed in
    `needs_review`.
    """
    selection = MealSelection()

    for meal in sort_meals(meals):
        recipe_id = resolve_recipe(meal, catalog)
        items = [i.strip() for i in meal.free_text_items if i and i.strip()]

        if recipe_id is not None:
            if recipe_id not in selection.recipe_ids:
                selection.recipe_ids.append(recipe_id)
            selection.extras.extend(items)
            continue

        title = meal.unmatched_meal_title or meal.matched_recipe_title
        if title and title.strip():
            selection.unmatched_titles.append(title.strip())
            if is_auto_handled(meal):
                logger.debug("No recipe for %s '%s'; expanding it as free text", meal.meal_type, title)
            else:
                logger.info("No recipe for %s '%s'; using it as free text", meal.meal_type, title)
                selection.needs_review.append(title.strip())
            selection.extras.append(title.strip())
        selection.extras.extend(items)

    return selection
