"""Shopping list template generation.

Creates markdown shopping list files with one checkbox section per category.
"""

import re

from mealcart.aggregator import format_item
from mealcart.categorizer import CATEGORY_ORDER


def generate_shopping_list_markdown(title: str, response) -> str:
    """Generate shopping list markdown.

    Args:
        title: Heading suffix, e.g. 'Week 04' or a plan name
        response: ShoppingListResponse in display order

    Returns:
        Formatted markdown string
    """
    lines = [
        f"# Shopping List - {title}",
        "",
    ]

    if not response.items:
        lines.extend(["_Nothing to buy._", ""])
        return '\n'.join(lines)

    by_category = {}
    for item in response.items:
        by_category.setdefault(item.category, []).append(item)

    # Categories outside the known order go last, alphabetically
    extra = sorted(c for c in by_category if c not in CATEGORY_ORDER)
    for category in [c for c in CATEGORY_ORDER if c in by_category] + extra:
        lines.append(f"## {category}")
        lines.append("")
        for item in by_category[category]:
            lines.append(f"- [ ] {format_item(item)}")
        lines.append("")

    return '\n'.join(lines)


def generate_filename(title: str) -> str:
    """Generate filename for shopping list.

    Args:
        title: Heading suffix like 'Week 04'

    Returns:
        Filename like 'shopping-list-week-04.md'
    """
    slug = re.sub(r'[^a-z0-9]+', '-', title.lower()).strip('-')
    return f"shopping-list-{slug}.md" if slug else "shopping-list.md"
