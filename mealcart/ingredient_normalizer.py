"""Local ingredient name normalization.

Deterministic clean-up applied to every shopping list name before (and after)
the canonicalization service sees it. It is also the only naming pass when
that service is unavailable.
"""

import re
import string

# Words that describe preparation, portioning, or marketing rather than the item
NOISE_WORDS = [
    "portion", "portions", "serving", "servings",
    "chopped", "diced", "sliced", "minced", "grated", "shredded", "crushed",
    "peeled", "halved", "cubed", "cooked", "uncooked", "raw",
    "fresh", "freshly", "frozen", "ripe", "large", "small", "medium",
    "organic", "free range", "free-range", "premium", "finest", "value",
    "essential", "everyday", "brand", "branded", "own brand",
    "of", "the", "some", "handful", "pack", "packet", "bag",
    "to taste", "optional",
]

# Irregular plurals checked before the general -s rule
IRREGULAR_PLURALS = {
    "tomatoes": "tomato",
    "potatoes": "potato",
    "mangoes": "mango",
    "avocadoes": "avocado",
    "berries": "berry",
    "strawberries": "strawberry",
    "blueberries": "blueberry",
    "raspberries": "raspberry",
    "cherries": "cherry",
    "anchovies": "anchovy",
    "chillies": "chilli",
    "chilies": "chili",
    "peaches": "peach",
    "radishes": "radish",
    "sandwiches": "sandwich",
    "loaves": "loaf",
    "halves": "half",
    "knives": "knife",
}

# Plurals bought as such; stripping the -s would change the product
KEEP_PLURAL = {
    "beans", "oats", "vegetables", "veggies", "noodles", "lentils", "chickpeas",
    "peas", "greens", "sprouts", "crisps", "chips", "molasses",
    "brussels", "herbs", "nuts", "seeds", "flakes", "leaves",
}

# "-ie" nouns whose plural only adds -s ("cookies" -> "cookie", not "cooky")
IE_PLURALS = {
    "cookies", "brownies", "smoothies", "pies", "hoagies", "goodies", "calories",
}

# Endings the general -s strip leaves alone: "glass", "hummus", "anis"
_GUARDED_ENDINGS = ("ss", "us", "is")
_MIN_STRIP_LENGTH = 4

_NOISE_PATTERN = re.compile(
    r'\b(?:' + '|'.join(re.escape(w) for w in sorted(NOISE_WORDS, key=len, reverse=True)) + r')\b'
)


def singularize(word: str) -> str:
    """Singularize a single lower-case word."""
    if not word:
        return word
    if word in IRREGULAR_PLURALS:
        return IRREGULAR_PLURALS[word]
    if word in KEEP_PLURAL:
        return word
    if word.endswith("ies") and len(word) > _MIN_STRIP_LENGTH:
        return word[:-1] if word in IE_PLURALS else word[:-3] + "y"
    if len(word) < _MIN_STRIP_LENGTH or not word.endswith('s'):
        return word
    if word.endswith(_GUARDED_ENDINGS):
        return word
    return word[:-1]


def strip_noise_words(text: str) -> str:
    """Remove noise words at word boundaries and collapse whitespace."""
    cleaned = _NOISE_PATTERN.sub(' ', text.lower())
    return re.sub(r'\s+', ' ', cleaned).strip()


def normalize_ingredient_name(name: str) -> str:
    """Normalize an ingredient name for display.

    Lower-cases, strips noise words, collapses whitespace, singularizes the
    last word, then title-cases.

    Examples:
        "Fresh Tomatoes"        -> "Tomato"
        "portion of fruit"      -> "Fruit"
        "chopped chicken breasts" -> "Chicken Breast"
        "Mixed Vegetables"      -> "Mixed Vegetables"

    Returns the trimmed original when stripping would leave nothing.
    """
    if not name or not name.strip():
        return ""

    text = re.sub(r'[()\[\]{}"]', ' ', name)
    cleaned = strip_noise_words(text).strip(' ,.;:-')
    if not cleaned:
        cleaned = re.sub(r'\s+', ' ', name.lower()).strip()

    words = cleaned.split(' ')
    words[-1] = singularize(words[-1])
    return string.capwords(' '.join(words))


def canonical_key(name: str) -> str:
    """Case- and punctuation-insensitive key used to decide whether two names merge.

    "Tomato" and "tomato" share a key, as do "Mac & Cheese" and "mac-and-cheese".
    """
    if not name:
        return ""
    key = name.lower().replace('&', ' and ')
    key = re.sub(r"[^\w\s']|_", ' ', key)
    key = key.replace("'", "")
    return re.sub(r'\s+', ' ', key).strip()
