"""
CanonicalProduct Schema

Store-ready product format that every vendor record is normalized into.
Document keys are camelCase because the storefront reads them unmodified.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, List
import hashlib
import json


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class CanonicalProduct:
    """
    Normalized product written to the ``products`` collection.

    Foreign keys (category_id, vendor_id) are filled in by the pipeline
    after classification and reference resolution; a product is only
    writable once both are set (see ``is_resolved``).

    Example:
        product = CanonicalProduct(
            id="KM-1001",
            sku="KM-1001",
            slug="apex-locator",
            name="Apex Locator",
            description="Apex Locator",
            vendor_id="kandil",
        )
    """

    # === Identity ===
    id: str
    sku: str
    slug: str
    vendor_sku: str = ""

    # === Descriptive ===
    name: str = "Unnamed Product"
    name_ar: str = ""
    description: str = "No description available"
    short_description: str = ""
    brand: str = ""
    model: str = ""
    images: List[str] = field(default_factory=list)
    specifications: Dict[str, Any] = field(default_factory=dict)
    features: List[Any] = field(default_factory=list)
    tags: List[Any] = field(default_factory=list)
    search_keywords: List[Any] = field(default_factory=list)
    weight: Dict[str, Any] = field(default_factory=lambda: {'value': None, 'unit': 'g'})
    dimensions: Dict[str, Any] = field(
        default_factory=lambda: {'length': None, 'width': None, 'height': None, 'unit': 'cm'}
    )

    # === Price ===
    price: float = 0.0
    original_price: Optional[float] = None
    currency: str = "EGP"
    sale_percentage: Optional[float] = None

    # === Relationships ===
    category_id: Optional[str] = None
    vendor_id: Optional[str] = None

    # === Inventory ===
    stock: int = 0
    min_stock_level: int = 5
    max_stock_level: int = 1000

    # === Status ===
    is_active: bool = True
    is_featured: bool = False
    is_on_sale: bool = False

    # === SEO ===
    meta_title: str = ""
    meta_description: str = ""

    # === Analytics (always start at zero) ===
    average_rating: float = 0
    total_reviews: int = 0
    total_sold: int = 0
    views: int = 0

    # === Vendor provenance ===
    source_url: str = ""
    scraped_data: Dict[str, Any] = field(default_factory=dict)

    # === Variants / bundles ===
    variants: List[Any] = field(default_factory=list)
    is_bundle: bool = False
    bundle_items: List[Any] = field(default_factory=list)

    # === Tracking ===
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    last_scraped_at: datetime = field(default_factory=_utcnow)

    # Detected category slug before resolution (not persisted)
    detected_category: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        """Both foreign keys are set."""
        return bool(self.category_id) and bool(self.vendor_id)

    @property
    def content_hash(self) -> str:
        """
        Hash of the persisted content, timestamps excluded.
        Two runs over the same input produce the same hash per product.
        """
        content = {
            "id": self.id,
            "sku": self.sku,
            "slug": self.slug,
            "name": self.name,
            "price": self.price,
            "stock": self.stock,
            "category_id": self.category_id,
            "vendor_id": self.vendor_id,
        }
        content_str = json.dumps(content, sort_keys=True)
        return hashlib.md5(content_str.encode()).hexdigest()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the store document shape."""
        return {
            # Basic information
            "id": self.id,
            "name": self.name,
            "nameAr": self.name_ar,
            "description": self.description,
            "shortDescription": self.short_description,

            # Pricing
            "price": self.price,
            "originalPrice": self.original_price,
            "currency": self.currency,

            # Identification
            "sku": self.sku,
            "vendorSku": self.vendor_sku,
            "brand": self.brand,
            "model": self.model,

            # Relationships
            "categoryId": self.category_id,
            "vendorId": self.vendor_id,

            # Inventory
            "stock": self.stock,
            "minStockLevel": self.min_stock_level,
            "maxStockLevel": self.max_stock_level,

            # Media and details
            "images": list(self.images),
            "specifications": dict(self.specifications),
            "features": list(self.features),
            "tags": list(self.tags),
            "searchKeywords": list(self.search_keywords),
            "weight": dict(self.weight),
            "dimensions": dict(self.dimensions),

            # Status
            "isActive": self.is_active,
            "isFeatured": self.is_featured,
            "isOnSale": self.is_on_sale,
            "salePercentage": self.sale_percentage,

            # SEO
            "slug": self.slug,
            "metaTitle": self.meta_title,
            "metaDescription": self.meta_description,

            # Analytics
            "averageRating": self.average_rating,
            "totalReviews": self.total_reviews,
            "totalSold": self.total_sold,
            "views": self.views,

            # Vendor-specific
            "vendorData": {
                "sourceUrl": self.source_url,
                "lastScraped": self.last_scraped_at,
                "scrapedData": dict(self.scraped_data),
            },

            # Variants and bundles
            "variants": list(self.variants),
            "isBundle": self.is_bundle,
            "bundleItems": list(self.bundle_items),

            # Timestamps
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "lastScrapedAt": self.last_scraped_at,
        }
