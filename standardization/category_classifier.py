"""
Category Classifier

Classifies dental products into the fixed category taxonomy by keyword
scoring.

Each category scores one point per distinct keyword found as a substring of
the case-folded "name description" text. The highest score wins; ties go to
the category declared first; zero everywhere falls back to the default.

Example:
    classifier = CategoryClassifier()
    category = classifier.classify_product("Root canal file 25mm", "")
    # Returns: 'endo'
"""

import json
from typing import Optional, Dict, List, Tuple, Any, Mapping, Sequence

from .name_normalizer import searchable_text
from .taxonomy import DENTAL_TAXONOMY, DEFAULT_CATEGORY_ID


class CategoryClassifier:
    """
    Keyword-scoring product classifier.

    The taxonomy is an ordered mapping of category id to keywords. Insertion
    order is the tie-break order, so callers must pass an ordered mapping
    (a plain dict or a JSON object loaded with ``json.load``).
    """

    def __init__(
        self,
        taxonomy: Optional[Mapping[str, Sequence[str]]] = None,
        default_category: str = DEFAULT_CATEGORY_ID,
    ):
        """
        Args:
            taxonomy: Category id -> keywords (defaults to DENTAL_TAXONOMY)
            default_category: Returned when no keyword matches
        """
        source = DENTAL_TAXONOMY if taxonomy is None else taxonomy
        if not source:
            raise ValueError("Taxonomy must define at least one category")

        # Keywords are case-folded once; duplicates within a category count once
        self.taxonomy: Dict[str, Tuple[str, ...]] = {
            category_id: tuple(dict.fromkeys(k.casefold() for k in keywords))
            for category_id, keywords in source.items()
        }
        self.default_category = default_category

    @classmethod
    def from_json(cls, path: str, default_category: str = DEFAULT_CATEGORY_ID) -> "CategoryClassifier":
        """Load a taxonomy from a JSON object of category id -> keyword list."""
        with open(path, 'r', encoding='utf-8') as f:
            taxonomy = json.load(f)
        if not isinstance(taxonomy, dict):
            raise ValueError(f"Taxonomy file must contain a JSON object: {path}")
        return cls(taxonomy, default_category)

    def score(self, text: str) -> Dict[str, int]:
        """
        Score every category against already-searchable text.

        Returns:
            Category id -> number of distinct keywords found, in taxonomy order
        """
        folded = (text or '').casefold()
        return {
            category_id: sum(1 for keyword in keywords if keyword in folded)
            for category_id, keywords in self.taxonomy.items()
        }

    def classify(self, text: str) -> str:
        """
        Pick the best category for a piece of text.

        Args:
            text: Free text (case is ignored)

        Returns:
            Winning category id, or the default category if nothing matches

        Example:
            >>> CategoryClassifier().classify("composite crown")
            'operative'
        """
        best_category = None
        best_score = 0

        for category_id, score in self.score(text).items():
            # Strictly greater keeps the earliest category on ties
            if score > best_score:
                best_category = category_id
                best_score = score

        return best_category or self.default_category

    def classify_product(self, name: Optional[str], description: Optional[str]) -> str:
        """Classify using the product's name and description."""
        return self.classify(searchable_text(name, description))

    def classify_batch(self, products: List[Dict[str, Any]]) -> List[Tuple[str, str]]:
        """
        Classify multiple products.

        Args:
            products: List of dicts with 'name', 'description' and optional 'id'

        Returns:
            List of (product_id, category_id) tuples
        """
        results = []
        for product in products:
            category = self.classify_product(product.get('name'), product.get('description'))
            results.append((product.get('id', ''), category))
        return results

    def get_stats(self) -> Dict[str, int]:
        """Get classifier statistics."""
        return {
            'category_count': len(self.taxonomy),
            'keyword_count': sum(len(k) for k in self.taxonomy.values()),
        }


# === Convenience Functions ===

_classifier = None


def get_classifier() -> CategoryClassifier:
    """Get or create the shared classifier for the built-in taxonomy."""
    global _classifier
    if _classifier is None:
        _classifier = CategoryClassifier()
    return _classifier


def detect_category(name: Optional[str], description: Optional[str] = None) -> str:
    """
    Convenience function to classify a single product.

    Example:
        >>> detect_category("Gutta percha points", "Size 25")
        'endo'
    """
    return get_classifier().classify_product(name, description)
