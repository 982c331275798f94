"""Match free-text dish names against the recipe catalog.

Meal plan text names dishes loosely ("chicken & leek pie", "Leek Pie"), so a
candidate title is tried against the catalog by an ordered list of matcher
strategies. The first strategy to return a recipe id wins; no match at all is
a normal outcome and means the meal is handled as free text.
"""

import logging
import re
from typing import Callable, Iterable, List, NamedTuple, Optional, Sequence

logger = logging.getLogger(__name__)


class CatalogRecipe(NamedTuple):
    """A recipe as the matcher sees it."""
    id: object
    title: str


class RecipeCatalog:
    """Recipe titles loaded once per shopping list build.

    Args:
        recipes: (id, title) pairs in catalog order
        search: Optional indexed lookup from the persistence layer. Called with
            a lower-case fragment, it returns the recipes whose titles contain
            it (case-insensitive). Without one, titles are scanned in memory.
    """

    def __init__(
        self,
        recipes: Iterable = (),
        search: Optional[Callable[[str], Sequence[CatalogRecipe]]] = None,
    ):
        self.recipes: List[CatalogRecipe] = [
            r if isinstance(r, CatalogRecipe) else CatalogRecipe(*r) for r in recipes
        ]
        self._search = search

    def __len__(self) -> int:
        return len(self.recipes)

    def __iter__(self):
        return iter(self.recipes)

    def find_containing(self, fragment: str) -> Optional[CatalogRecipe]:
        """First recipe whose title contains `fragment`, ignoring case."""
        if not fragment:
            return None
        if self._search is not None:
            found = self._search(fragment)
            return found[0] if found else None
        fragment = fragment.lower()
        for recipe in self.recipes:
            if fragment in (recipe.title or "").lower():
                return recipe
        return None

    @classmethod
    def from_dicts(cls, rows: Iterable[dict]) -> "RecipeCatalog":
        """Build a catalog from [{"id": ..., "title": ...}] rows."""
        return cls(CatalogRecipe(row.get("id"), row.get("title", "")) for row in rows)


def normalize_title(text: str) -> str:
    """Lower-case, '&' -> 'and', hyphens -> spaces, collapse repeated spaces."""
    if not text:
        return ""
    text = text.lower().replace('&', 'and').replace('-', ' ')
    return re.sub(r'\s+', ' ', text).strip()


class ContainmentMatcher:
    """Catalog titles containing the normalized candidate (the indexed query)."""

    name = "containment"

    def match(self, candidate: str, catalog: RecipeCatalog) -> Optional[object]:
        recipe = catalog.find_containing(normalize_title(candidate))
        return recipe.id if recipe else None


class NormalizedSubstringMatcher:
    """Either normalized string contains the other."""

    name = "normalized substring"

    def match(self, candidate: str, catalog: RecipeCatalog) -> Optional[object]:
        needle = normalize_title(candidate)
        if not needle:
            return None
        for recipe in catalog:
            title = normalize_title(recipe.title)
            if title and (needle in title or title in needle):
                return recipe.id
        return None


class WordOverlapMatcher:
    """Recipe sharing the most words with the candidate.

    Accepted only when the overlap covers at least half of the candidate's
    words (and at least one word). Ties go to the earlier catalog entry.
    """

    name = "word overlap"

    def match(self, candidate: str, catalog: RecipeCatalog) -> Optional[object]:
        words = set(normalize_title(candidate).split())
        if not words:
            return None

        threshold = max(1, len(words) / 2)
        best_id = None
        best_overlap = 0

        for recipe in catalog:
            overlap = len(words & set(normalize_title(recipe.title).split()))
            if overlap > best_overlap:
                best_overlap = overlap
                best_id = recipe.id

        if best_overlap >= threshold:
            return best_id
        return None


DEFAULT_MATCHERS = [
    ContainmentMatcher(),
    NormalizedSubstringMatcher(),
    WordOverlapMatcher(),
]


def match_recipe(
    candidate: Optional[str],
    catalog: RecipeCatalog,
    matchers: Sequence = None,
) -> Optional[object]:
    """Find the catalog recipe best matching a dish name.

    Args:
        candidate: Dish name from meal plan text
        catalog: Recipes to match against
        matchers: Strategies to try in order (defaults to DEFAULT_MATCHERS)

    Returns:
        The matched recipe id, or None when no strategy finds one.
    """
    if not candidate or not candidate.strip() or catalog is None:
        return None

    if matchers is None:
        matchers = DEFAULT_MATCHERS

    for matcher in matchers:
        recipe_id = matcher.match(candidate, catalog)
        if recipe_id is not None:
            logger.debug("Matched %r to recipe %s by %s", candidate, recipe_id, matcher.name)
            return recipe_id

    return None
