"""
Name Normalizer

Text helpers shared by the normalizer and the classifier.

Key functions:
1. slugify: URL-safe identifier derived from a product name
2. clean_name: Remove HTML and normalize whitespace in display names
3. searchable_text: Case-folded name + description used for keyword scoring

Example:
    >>> slugify("Dental Chair Unit!")
    'dental-chair-unit'
    >>> searchable_text("Root Canal FILE", None)
    'root canal file '
"""

import re
from typing import Optional

# Slug used when a name yields nothing usable
FALLBACK_SLUG = 'unnamed-product'


def slugify(name: Optional[str]) -> str:
    """
    Convert a product name to a URL-safe slug.

    - Lowercase
    - Drop everything outside [a-z0-9], whitespace and hyphens
    - Collapse whitespace/hyphen runs into a single hyphen
    - Trim leading/trailing hyphens

    Args:
        name: Product name (may be None or empty)

    Returns:
        Slug, or FALLBACK_SLUG if nothing survives

    Example:
        >>> slugify("Apex Locator -- Pro")
        'apex-locator-pro'
        >>> slugify("")
        'unnamed-product'
    """
    if not name:
        return FALLBACK_SLUG

    slug = str(name).lower()
    slug = re.sub(r'[^a-z0-9\s-]', '', slug)
    slug = re.sub(r'[\s-]+', '-', slug)
    slug = slug.strip('-')

    return slug or FALLBACK_SLUG


def clean_name(name: Optional[str]) -> str:
    """
    Clean a display name by removing HTML and normalizing whitespace.

    Example:
        >>> clean_name("<b>Gutta</b>   Percha Points ")
        'Gutta Percha Points'
    """
    if not name:
        return ""

    cleaned = str(name).strip()

    # Remove HTML tags and entities
    cleaned = re.sub(r'<[^>]+>', ' ', cleaned)
    cleaned = re.sub(r'&[a-z]+;', ' ', cleaned)
    cleaned = re.sub(r'&#\d+;', ' ', cleaned)

    cleaned = re.sub(r'\s+', ' ', cleaned)
    return cleaned.strip()


def searchable_text(name: Optional[str], description: Optional[str]) -> str:
    """
    Build the text the classifier scores against.

    The two fields are joined with a single space and case-folded. Missing
    values contribute an empty string, so keyword phrases are matched exactly
    as they appear in the source.
    """
    return f"{name or ''} {description or ''}".casefold()
