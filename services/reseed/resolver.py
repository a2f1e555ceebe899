"""
Reference Resolver

Maps human-readable category and vendor names to stored document ids.
Lookups are memoized for the duration of one run; failed lookups are not
cached so a later call may still succeed.
"""

import logging
from threading import Lock
from typing import Dict, Optional, Tuple

from services.database.store import DocumentStore, StoreError
from standardization.taxonomy import DEFAULT_CATEGORY_ID

logger = logging.getLogger(__name__)

CATEGORIES = "categories"
VENDORS = "vendors"


class ReferenceResolver:
    """
    Category lookup order: slug, then name, then the default category.
    Vendor lookup: exact name, else None.
    """

    def __init__(self, store: DocumentStore, default_category_id: str = DEFAULT_CATEGORY_ID):
        self.store = store
        self.default_category_id = default_category_id
        self._cache: Dict[Tuple[str, str], Optional[str]] = {}
        self._lock = Lock()
        self.cache_stats = {'hits': 0, 'misses': 0, 'queries': 0}

    def clear_cache(self):
        with self._lock:
            self._cache.clear()
            self.cache_stats = {'hits': 0, 'misses': 0, 'queries': 0}

    def _cached(self, key: Tuple[str, str]) -> Tuple[bool, Optional[str]]:
        with self._lock:
            if key in self._cache:
                self.cache_stats['hits'] += 1
                return True, self._cache[key]
            self.cache_stats['misses'] += 1
            return False, None

    def _remember(self, key: Tuple[str, str], value: Optional[str]):
        with self._lock:
            self._cache[key] = value

    def _first_id(self, collection: str, field_name: str, value: str) -> Optional[str]:
        with self._lock:
            self.cache_stats['queries'] += 1
        docs = self.store.where(collection, field_name, value, limit=1)
        return docs[0].id if docs else None

    def resolve_category(self, name: Optional[str]) -> str:
        """Category id for a slug or display name; default id when unknown."""
        if not name:
            return self.default_category_id

        key = ('category', name)
        hit, value = self._cached(key)
        if hit:
            return value

        try:
            category_id = (self._first_id(CATEGORIES, 'slug', name)
                           or self._first_id(CATEGORIES, 'name', name))
        except StoreError as e:
            logger.error(f"Category lookup failed for {name!r}: {e}")
            return self.default_category_id

        if category_id is None:
            logger.warning(
                f"Category {name!r} not found, using default {self.default_category_id!r}"
            )
            category_id = self.default_category_id

        self._remember(key, category_id)
        return category_id

    def resolve_vendor(self, name: Optional[str]) -> Optional[str]:
        """Vendor id for an exact vendor name, or None when not found."""
        if not name:
            return None

        key = ('vendor', name)
        hit, value = self._cached(key)
        if hit:
            return value

        try:
            vendor_id = self._first_id(VENDORS, 'name', name)
        except StoreError as e:
            logger.error(f"Vendor lookup failed for {name!r}: {e}")
            return None

        if vendor_id is None:
            logger.warning(f"Vendor {name!r} not found")
        self._remember(key, vendor_id)
        return vendor_id
