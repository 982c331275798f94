"""Free-text quantity parser - splits a line into name, quantity, and unit"""

from fractions import Fraction
import re
from typing import NamedTuple, Optional

# Unit normalization map
UNIT_ABBREVIATIONS = {
    "tablespoon": "tbsp", "tablespoons": "tbsp", "tbsp": "tbsp", "tbs": "tbsp",
    "teaspoon": "tsp", "teaspoons": "tsp", "tsp": "tsp",
    "cup": "cup", "cups": "cup",
    "ounce": "oz", "ounces": "oz", "oz": "oz",
    "pound": "lb", "pounds": "lb", "lb": "lb", "lbs": "lb",
    "gram": "g", "grams": "g", "g": "g", "gr": "g",
    "kilogram": "kg", "kilograms": "kg", "kg": "kg",
    "milliliter": "ml", "milliliters": "ml", "millilitre": "ml", "millilitres": "ml", "ml": "ml",
    "liter": "l", "liters": "l", "litre": "l", "litres": "l", "l": "l",
    "slice": "slice", "slices": "slice",
    "item": "item", "items": "item",
    "piece": "pcs", "pieces": "pcs", "pcs": "pcs", "pc": "pcs",
    "x": "pcs",
    "portion": "portion", "portions": "portion",
    "scoop": "scoop", "scoops": "scoop",
    "can": "can", "cans": "can", "tin": "can", "tins": "can",
}

# Codes recognised at the tail of a bare quantity string ("200 g", "2 cups")
QUANTITY_UNIT_CODES = ["kg", "g", "ml", "l", "tbsp", "tsp", "cup", "item", "cups", "items"]

# Word to number mapping
WORD_NUMBERS = {
    "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9, "ten": 10,
    "eleven": 11, "twelve": 12, "half": 0.5,
}

_NUMBER = r'\d+(?:[.,]\d+)?(?:\s+\d+/\d+|/\d+)?'

# "120g chicken", "2 x eggs", "1 1/2 cups oats", "1,5 l milk"
_QUANTITY_PATTERN = re.compile(
    rf'^(?P<qty>{_NUMBER})\s*(?P<unit>[a-zA-Z]+\b)?\s*(?P<name>.*)$'
)


class ParsedQuantity(NamedTuple):
    """A single free-text line split into its parts."""
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None


def normalize_unit(unit: str) -> Optional[str]:
    """Normalize a unit string to its short code.

    Returns:
        The short code (e.g. "tbsp", "g", "pcs"), or None for
        empty input or words that are not known units.
    """
    if not unit:
        return None
    return UNIT_ABBREVIATIONS.get(unit.strip().lower())


def parse_number(text: str) -> Optional[float]:
    """Parse a numeric token into a float.

    Handles whole numbers, decimals with '.' or ',', simple fractions
    (1/2 -> 0.5) and mixed fractions (1 1/2 -> 1.5).

    Returns:
        The parsed value, or None if the text is not a number.
    """
    if not text:
        return None

    text = re.sub(r'(\d)\s*/\s*(\d)', r'\1/\2', text.strip())

    mixed_match = re.match(r'^(\d+)\s+(\d+)/(\d+)$', text)
    if mixed_match:
        whole, num, den = mixed_match.groups()
        if int(den) == 0:
            return None
        return float(int(whole) + Fraction(int(num), int(den)))

    frac_match = re.match(r'^(\d+)/(\d+)$', text)
    if frac_match:
        num, den = frac_match.groups()
        if int(den) == 0:
            return None
        return float(Fraction(int(num), int(den)))

    decimal_match = re.match(r'^\d+(?:[.,]\d+)?$', text)
    if decimal_match:
        return float(text.replace(',', '.'))

    return None


def parse_amount(quantity: Optional[str]) -> Optional[float]:
    """Read the leading number of a quantity string like "200 g" or "1,5l".

    Returns:
        The number, or None if the string does not start with one.
    """
    if not quantity or not quantity.strip():
        return None

    match = re.match(r'^\s*([\d.,]+)', quantity)
    if not match:
        return None
    return parse_number(match.group(1).rstrip('.,'))


def unit_from_quantity(quantity: Optional[str]) -> Optional[str]:
    """Resolve a unit code from the end of a quantity string.

    "200 g" -> "g", "2 cups" -> "cup", "3 items" -> "item".
    Returns None when no known code ends the string.
    """
    if not quantity or not quantity.strip():
        return None

    trimmed = quantity.strip().lower()
    for code in QUANTITY_UNIT_CODES:
        if trimmed.endswith(" " + code) or trimmed.endswith(code):
            # "1 bowl" ends with "l" but is not litres
            prefix = trimmed[:-len(code)].rstrip()
            if prefix and not re.match(r'^[\d.,/\s]+$', prefix):
                continue
            return normalize_unit(code)
    return None


def _clean_name(name: str) -> str:
    """Trim whitespace and stray punctuation from the name part."""
    return re.sub(r'\s+', ' ', name).strip().strip(',.;:-').strip()


def parse_ingredient_text(raw: Optional[str]) -> ParsedQuantity:
    """Split a free-text line into (name, quantity, unit).

    Examples:
        "120g chicken breast" -> ("chicken breast", 120.0, "g")
        "1/2 banana"          -> ("banana", 0.5, None)
        "2 x eggs"            -> ("eggs", 2.0, "pcs")
        "protein bar"         -> ("protein bar", None, None)

    Never raises; the worst case is the whole trimmed input as the name.
    """
    if raw is None or not raw.strip():
        return ParsedQuantity(name="")

    text = _clean_name(raw)

    match = _QUANTITY_PATTERN.match(text)
    if match:
        quantity = parse_number(match.group('qty'))
        unit_word = match.group('unit') or ""
        name = match.group('name') or ""

        unit = normalize_unit(unit_word)
        if unit_word and unit is None:
            # Not a unit, it's the start of the name ("2 eggs")
            name = f"{unit_word} {name}"

        name = _clean_name(name)
        if quantity is not None and name:
            return ParsedQuantity(name=name, quantity=quantity, unit=unit)
        return ParsedQuantity(name=text)

    # Word numbers: "two eggs", "a banana"
    words = text.split(None, 1)
    if len(words) == 2 and words[0].lower() in WORD_NUMBERS:
        rest = words[1]
        rest_words = rest.split(None, 1)
        unit = normalize_unit(rest_words[0]) if rest_words else None
        if unit and len(rest_words) == 2:
            rest = rest_words[1]
        else:
            unit = None
        name = _clean_name(rest)
        if name:
            return ParsedQuantity(name=name, quantity=float(WORD_NUMBERS[words[0].lower()]), unit=unit)

    return ParsedQuantity(name=text)
