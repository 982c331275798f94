#!/usr/bin/env python3
"""Generate a shopping list from a meal plan file.

Reads a JSON plan holding the recipe catalog, recipe ingredient rows, and
either interpreted meals or explicit recipe ids plus free-text extras. Builds
the categorized list and prints it as markdown or JSON.

Plan format:
    {
      "catalog": [{"id": 1, "title": "Leek Pie"}],
      "ingredients": [{"recipeId": 1, "ingredientName": "Leeks", "amount": 2, "unitCode": "item"}],
      "meals": [{"mealType": "Dinner", "matchedRecipeTitle": "Leek Pie", "freeTextItems": ["1 banana"]}],
      "recipe_ids": [],
      "extras": ["protein shake"]
    }

Usage:
    python shopping_list.py --input plan.json                  # Print markdown
    python shopping_list.py --input plan.json --json           # Print JSON
    python shopping_list.py --input plan.json --output list.md # Save to file
    python shopping_list.py --input plan.json --no-canonicalize
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file before reading configuration
load_dotenv()

from mealcart.canonicalizer import DEFAULT_TIMEOUT, OllamaCanonicalizer, default_cache
from mealcart.meal_assembly import ParsedMeal
from mealcart.recipe_matcher import RecipeCatalog
from mealcart.shopping_list_builder import (
    RecipeIngredientRow,
    build_shopping_list,
    build_shopping_list_for_meals,
)
from templates.shopping_list_template import generate_shopping_list_markdown


def load_plan(path: Path) -> dict:
    """Read and validate a JSON plan file.

    Raises:
        ValueError: If the file is missing, not JSON, not a JSON object, or
            holds catalog, ingredient or meal entries that are not objects.
    """
    if not path.exists():
        raise ValueError(f"Plan not found: {path}")

    try:
        plan = json.loads(path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}")

    if not isinstance(plan, dict):
        raise ValueError(f"Plan must be a JSON object: {path}")

    for key in ("catalog", "ingredients", "meals", "recipe_ids", "extras"):
        if not isinstance(plan.get(key, []), list):
            raise ValueError(f"Plan field '{key}' must be a list")

    for key in ("catalog", "ingredients", "meals"):
        for i, entry in enumerate(plan.get(key, [])):
            if not isinstance(entry, dict):
                raise ValueError(f"Plan field '{key}' entry {i} must be a JSON object")

    return plan


def make_row_loader(ingredient_dicts: list):
    """Build a `load_rows` callable over in-memory ingredient rows."""
    rows = [RecipeIngredientRow.from_dict(d) for d in ingredient_dicts]

    def load_rows(recipe_ids: set) -> list:
        return [row for row in rows if row.recipe_id in recipe_ids]

    return load_rows


def build_from_plan(plan: dict, canonicalize=None, cache=None, timeout: float = DEFAULT_TIMEOUT):
    """Build a ShoppingListResponse from a loaded plan."""
    load_rows = make_row_loader(plan.get("ingredients", []))
    extras = [str(e) for e in plan.get("extras", []) if e is not None]

    if plan.get("meals"):
        catalog = RecipeCatalog.from_dicts(plan.get("catalog", []))
        meals = [ParsedMeal.from_dict(m) for m in plan["meals"]]
        return build_shopping_list_for_meals(
            meals,
            catalog,
            load_rows=load_rows,
            canonicalize=canonicalize,
            cache=cache,
            timeout=timeout,
            extras=extras,
        )

    return build_shopping_list(
        recipe_ids=plan.get("recipe_ids", []),
        load_rows=load_rows,
        extras=extras,
        canonicalize=canonicalize,
        cache=cache,
        timeout=timeout,
    )


def main():
    parser = argparse.ArgumentParser(description="Generate shopping list from a meal plan")
    parser.add_argument('--input', type=Path, required=True, help='JSON plan file')
    parser.add_argument('--output', type=Path, help='Write to file instead of stdout')
    parser.add_argument('--json', action='store_true', help='Output JSON instead of markdown')
    parser.add_argument('--no-canonicalize', action='store_true', help='Skip model canonicalization')
    parser.add_argument('--timeout', type=float, default=DEFAULT_TIMEOUT, help='Canonicalization timeout in seconds')
    parser.add_argument('--title', type=str, help='Heading for the markdown list')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        plan = load_plan(args.input)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    canonicalize = None if args.no_canonicalize else OllamaCanonicalizer()
    response = build_from_plan(plan, canonicalize=canonicalize, cache=default_cache, timeout=args.timeout)

    if args.json:
        output = json.dumps(response.to_dict(), indent=2)
    else:
        output = generate_shopping_list_markdown(args.title or args.input.stem, response)

    if args.output:
        args.output.write_text(output, encoding='utf-8')
        print(f"Saved {len(response.items)} items to {args.output}")
        return

    print(output)


if __name__ == "__main__":
    main()
