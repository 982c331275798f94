"""Prompt template for ingredient name canonicalization via Ollama."""

import json

CANONICALIZATION_PROMPT = """You are a food and grocery data normaliser.
Given a list of ingredient names, return a JSON object mapping each original name
to its cleaned, normalised version.

Ingredient names:
{ingredient_names}

Rules:
- Use singular forms
- Remove brand names and descriptive noise
- Combine variants (e.g. "Tomatoes" and "Cherry Tomatoes" -> "Tomato")
- Simplify similar protein items (e.g. "Protein Shake", "Whey Protein Drink" -> "Protein Snack")
- Keep plain words (no emojis, punctuation)
- Every input name must appear exactly once as a key
- Return ONLY the JSON object, no markdown, no commentary"""


def build_canonicalization_prompt(ingredient_names: list[str]) -> str:
    """Build prompt for batch ingredient canonicalization.

    Args:
        ingredient_names: Distinct ingredient display names

    Returns:
        Formatted prompt string
    """
    return CANONICALIZATION_PROMPT.format(
        ingredient_names=json.dumps(ingredient_names, indent=2),
    )
