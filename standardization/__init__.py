"""
Catalog Standardization Module

Turns heterogeneous vendor exports into store-ready product documents.

Key Components:
- CanonicalProduct: Normalized product schema
- ProductNormalizer: Field-by-field normalization with explicit defaults
- slugify / searchable_text: Shared text helpers
- CategoryClassifier: Keyword-scoring category detection
"""

from .schema import CanonicalProduct
from .name_normalizer import slugify, clean_name, searchable_text, FALLBACK_SLUG
from .normalizer import ProductNormalizer, normalize_product
from .category_classifier import CategoryClassifier, detect_category
from .taxonomy import DENTAL_TAXONOMY, DEFAULT_CATEGORY_ID

__all__ = [
    # Schema
    'CanonicalProduct',

    # Text helpers
    'slugify',
    'clean_name',
    'searchable_text',
    'FALLBACK_SLUG',

    # Normalization
    'ProductNormalizer',
    'normalize_product',

    # Category classification
    'CategoryClassifier',
    'detect_category',
    'DENTAL_TAXONOMY',
    'DEFAULT_CATEGORY_ID',
]
