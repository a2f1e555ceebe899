"""
Product Normalizer

Transforms raw vendor records into CanonicalProduct.

Vendor exports are loosely typed: any field may be missing, hold the wrong
type, or carry junk. Every output field is produced by one of the small
rule functions below, each with an explicit default, in a fixed precedence.

Usage:
    normalizer = ProductNormalizer()
    product = normalizer.normalize(raw_record, vendor_id="kandil")
"""

import logging
import math
import random
import re
import string
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Iterator, List, Callable

from .schema import CanonicalProduct
from .name_normalizer import slugify, clean_name

logger = logging.getLogger(__name__)

DEFAULT_NAME = 'Unnamed Product'
DEFAULT_DESCRIPTION = 'No description available'
DEFAULT_CURRENCY = 'EGP'
DEFAULT_MIN_STOCK_LEVEL = 5
DEFAULT_MAX_STOCK_LEVEL = 1000

_ID_ALPHABET = string.digits + string.ascii_lowercase
_LEADING_NUMBER = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')
_RESERVED_ID = re.compile(r'^__.*__$')
MAX_DOCUMENT_ID_BYTES = 1500


# === Field Rules ===

def is_present(value: Any) -> bool:
    """A value counts as present when it is not None and not blank."""
    if value is None:
        return False
    return str(value).strip() != ''


def coerce_number(value: Any) -> Optional[float]:
    """
    Parse a number leniently; None when nothing numeric can be read.

    Accepts ints, floats and strings with a leading number ("12.5 EGP").
    Booleans, NaN, infinities and integers too large for a float are
    rejected.

    Example:
        >>> coerce_number(" 12.50 ")
        12.5
        >>> coerce_number("n/a") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return None
    else:
        match = _LEADING_NUMBER.match(str(value).strip())
        if not match:
            return None
        number = float(match.group(0))

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_price(value: Any) -> float:
    """Non-negative price; anything unreadable or negative becomes 0."""
    number = coerce_number(value)
    if number is None or number < 0:
        return 0.0
    return number


def coerce_optional_price(value: Any) -> Optional[float]:
    number = coerce_number(value)
    if number is None or number < 0:
        return None
    return number


def coerce_count(value: Any, default: int = 0) -> int:
    """Non-negative integer, truncated toward zero."""
    number = coerce_number(value)
    if number is None or number < 0:
        return default
    return int(number)


def coerce_stock(value: Any) -> int:
    return coerce_count(value, 0)


def coerce_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return value != 0
    text = str(value).strip().lower()
    if text in ('true', 'yes', '1'):
        return True
    if text in ('false', 'no', '0'):
        return False
    return default


def as_list(value: Any) -> List[Any]:
    """Lists pass through, a bare string becomes a one-item list, else []."""
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    return []


def as_image_list(value: Any) -> List[str]:
    """Ordered image URLs; non-string and blank entries are dropped."""
    return [item.strip() for item in as_list(value) if isinstance(item, str) and item.strip()]


def as_dict(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def generate_product_id(now_ms: int, rng: random.Random) -> str:
    """product_<epoch-ms>_<9 base36 chars>"""
    suffix = ''.join(rng.choice(_ID_ALPHABET) for _ in range(9))
    return f"product_{now_ms}_{suffix}"


def is_valid_document_id(value: str) -> bool:
    """
    Whether a string can serve as a document id in every store backend.

    Ids may not contain '/', be '.' or '..', match the reserved ``__x__``
    form, or exceed 1500 bytes.
    """
    if not value or '/' in value or value in ('.', '..'):
        return False
    if _RESERVED_ID.match(value):
        return False
    return len(value.encode('utf-8')) <= MAX_DOCUMENT_ID_BYTES


def source_identity(raw: Dict[str, Any]) -> Optional[str]:
    """sku, then vendorSku, skipping values unusable as a document id."""
    for key in ('sku', 'vendorSku'):
        if not is_present(raw.get(key)):
            continue
        value = str(raw[key]).strip()
        if is_valid_document_id(value):
            return value
        logger.warning(f"Ignoring {key} {value!r} as product id: not a valid document id")
    return None


def pick_identity(raw: Dict[str, Any], now_ms: int, rng: random.Random) -> str:
    """id := sku, then vendorSku, then a generated id."""
    return source_identity(raw) or generate_product_id(now_ms, rng)


def pick_sku(raw: Dict[str, Any], now_ms: int) -> str:
    """sku := sku, then vendorSku, then SKU_<epoch-ms>."""
    if is_present(raw.get('sku')):
        return str(raw['sku']).strip()
    if is_present(raw.get('vendorSku')):
        return str(raw['vendorSku']).strip()
    return f"SKU_{now_ms}"


def pick_name(raw: Dict[str, Any]) -> str:
    name = clean_name(raw.get('name')) if is_present(raw.get('name')) else ''
    return name or DEFAULT_NAME


def pick_slug(raw: Dict[str, Any]) -> str:
    """
    slug := raw slug, then slugify(name).

    The name is slugified after clean_name, so markup never leaks into the
    slug: "<b>Bur</b> Kit" becomes "bur-kit", not "bbburb-kit".
    """
    if is_present(raw.get('slug')):
        return str(raw['slug']).strip()
    name = clean_name(raw.get('name')) if is_present(raw.get('name')) else ''
    return slugify(name)


def pick_description(raw: Dict[str, Any]) -> str:
    """description := description, then name, then a placeholder."""
    if is_present(raw.get('description')):
        return str(raw['description']).strip()
    if is_present(raw.get('name')):
        name = clean_name(raw['name'])
        if name:
            return name
    return DEFAULT_DESCRIPTION


def pick_currency(raw: Dict[str, Any]) -> str:
    if is_present(raw.get('currency')):
        return str(raw['currency']).strip().upper()
    return DEFAULT_CURRENCY


def pick_text(raw: Dict[str, Any], key: str, default: str = '') -> str:
    return str(raw[key]).strip() if is_present(raw.get(key)) else default


def pick_weight(raw: Dict[str, Any]) -> Dict[str, Any]:
    weight = as_dict(raw.get('weight'))
    return weight or {'value': None, 'unit': 'g'}


def pick_dimensions(raw: Dict[str, Any]) -> Dict[str, Any]:
    dimensions = as_dict(raw.get('dimensions'))
    return dimensions or {'length': None, 'width': None, 'height': None, 'unit': 'cm'}


# === Normalizer ===

class ProductNormalizer:
    """
    Normalizes raw vendor records into CanonicalProduct.

    The clock and random source are injectable so generated identifiers
    and timestamps are reproducible in tests.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.rng = rng or random.Random()
        self.reset_stats()

    def normalize(
        self,
        raw: Dict[str, Any],
        vendor_id: Optional[str],
        category_id: Optional[str] = None,
    ) -> CanonicalProduct:
        """
        Normalize one raw record.

        Args:
            raw: Raw vendor record (any shape)
            vendor_id: Store id of the vendor that owns the source file
            category_id: Resolved category id, if already known

        Returns:
            CanonicalProduct with every field populated
        """
        now = self.clock()
        now_ms = int(now.timestamp() * 1000)

        self.stats['processed'] += 1
        product_id = source_identity(raw)
        if product_id is None:
            self.stats['ids_generated'] += 1
            product_id = generate_product_id(now_ms, self.rng)
        if not is_present(raw.get('slug')):
            self.stats['slugs_generated'] += 1
        if coerce_number(raw.get('price')) is None:
            self.stats['prices_defaulted'] += 1
        if coerce_number(raw.get('stock')) is None:
            self.stats['stocks_defaulted'] += 1

        name = pick_name(raw)
        description = pick_description(raw)
        vendor_data = as_dict(raw.get('vendorData'))

        return CanonicalProduct(
            id=product_id,
            sku=pick_sku(raw, now_ms),
            slug=pick_slug(raw),
            vendor_sku=pick_text(raw, 'vendorSku', pick_text(raw, 'sku')),
            name=name,
            name_ar=pick_text(raw, 'nameAr'),
            description=description,
            short_description=pick_text(raw, 'shortDescription'),
            brand=pick_text(raw, 'brand'),
            model=pick_text(raw, 'model'),
            images=as_image_list(raw.get('images')),
            specifications=as_dict(raw.get('specifications')),
            features=as_list(raw.get('features')),
            tags=as_list(raw.get('tags')),
            search_keywords=as_list(raw.get('searchKeywords')),
            weight=pick_weight(raw),
            dimensions=pick_dimensions(raw),
            price=coerce_price(raw.get('price')),
            original_price=coerce_optional_price(raw.get('originalPrice')),
            currency=pick_currency(raw),
            sale_percentage=coerce_optional_price(raw.get('salePercentage')),
            category_id=category_id,
            vendor_id=vendor_id,
            stock=coerce_stock(raw.get('stock')),
            min_stock_level=coerce_count(raw.get('minStockLevel'), DEFAULT_MIN_STOCK_LEVEL),
            max_stock_level=coerce_count(raw.get('maxStockLevel'), DEFAULT_MAX_STOCK_LEVEL),
            is_active=coerce_bool(raw.get('isActive'), True),
            is_featured=coerce_bool(raw.get('isFeatured'), False),
            is_on_sale=coerce_bool(raw.get('isOnSale'), False),
            meta_title=pick_text(raw, 'metaTitle', name),
            meta_description=pick_text(raw, 'metaDescription', description),
            source_url=pick_text(vendor_data, 'sourceUrl'),
            scraped_data=as_dict(vendor_data.get('scrapedData')),
            variants=as_list(raw.get('variants')),
            is_bundle=coerce_bool(raw.get('isBundle'), False),
            bundle_items=as_list(raw.get('bundleItems')),
            created_at=now,
            updated_at=now,
            last_scraped_at=now,
        )

    def normalize_batch(
        self,
        raw_records: List[Any],
        vendor_id: Optional[str],
    ) -> Iterator[CanonicalProduct]:
        """
        Normalize many records, skipping entries that are not objects.

        Yields:
            CanonicalProduct instances in source order
        """
        for raw in raw_records:
            if not isinstance(raw, dict):
                self.stats['errors'] += 1
                logger.warning(f"Skipping non-object record: {type(raw).__name__}")
                continue
            yield self.normalize(raw, vendor_id)

    def get_stats(self) -> Dict[str, int]:
        """Return normalization statistics."""
        return self.stats.copy()

    def reset_stats(self):
        """Reset normalization statistics."""
        self.stats = {
            'processed': 0,
            'ids_generated': 0,
            'slugs_generated': 0,
            'prices_defaulted': 0,
            'stocks_defaulted': 0,
            'errors': 0,
        }


# === Convenience Functions ===

def normalize_product(raw: Dict[str, Any], vendor_id: Optional[str]) -> CanonicalProduct:
    """
    Convenience function to normalize a single record.

    Example:
        product = normalize_product({'name': 'Apex Locator', 'price': '1500'}, 'kandil')
    """
    return ProductNormalizer().normalize(raw, vendor_id)
