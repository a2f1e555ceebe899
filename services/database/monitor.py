"""
Catalog Verification

Re-reads the store after a reseed and reports what it finds: collection
sizes against expectations, product distribution per vendor and per
category, and products whose foreign keys point nowhere. Read-only; never
repairs anything.
"""

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Optional, Dict, List
from dataclasses import dataclass, field

from .store import DocumentStore

logger = logging.getLogger(__name__)

CATEGORIES = "categories"
VENDORS = "vendors"
PRODUCTS = "products"


@dataclass
class VerificationReport:
    """Post-run catalog status report."""
    timestamp: datetime
    collection_counts: Dict[str, int]
    expected_counts: Dict[str, int]
    products_by_vendor: Dict[str, int]
    products_by_category: Dict[str, int]
    dangling_vendor_refs: List[str] = field(default_factory=list)
    dangling_category_refs: List[str] = field(default_factory=list)
    discrepancies: List[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return "ok" if not self.discrepancies else "mismatch"

    @property
    def ok(self) -> bool:
        return not self.discrepancies

    def to_dict(self) -> Dict:
        return {
            'timestamp': self.timestamp.isoformat(),
            'status': self.status,
            'collection_counts': self.collection_counts,
            'expected_counts': self.expected_counts,
            'products_by_vendor': self.products_by_vendor,
            'products_by_category': self.products_by_category,
            'dangling_vendor_refs': self.dangling_vendor_refs,
            'dangling_category_refs': self.dangling_category_refs,
            'discrepancies': self.discrepancies,
        }


class CatalogVerifier:
    """
    Checks that the store holds what a run claims to have written.

    Args:
        store: Document store to inspect
        max_listed: How many dangling product ids to keep per check
    """

    def __init__(self, store: DocumentStore, max_listed: int = 20):
        self.store = store
        self.max_listed = max_listed

    def verify(
        self,
        expected: Optional[Dict[str, int]] = None,
        expected_by_vendor: Optional[Dict[str, int]] = None,
    ) -> VerificationReport:
        """
        Run all checks.

        Args:
            expected: collection name -> expected document count
            expected_by_vendor: vendor id -> expected product count
        """
        expected = expected or {}
        discrepancies = []

        category_ids = {doc.id for doc in self.store.get(CATEGORIES)}
        vendor_ids = {doc.id for doc in self.store.get(VENDORS)}
        products = self.store.get(PRODUCTS)

        counts = {
            CATEGORIES: len(category_ids),
            VENDORS: len(vendor_ids),
            PRODUCTS: len(products),
        }
        for name, want in expected.items():
            if name not in counts:
                counts[name] = self.store.count(name)
            if counts[name] != want:
                discrepancies.append(
                    f"{name}: expected {want}, found {counts[name]}"
                )

        by_vendor = Counter()
        by_category = Counter()
        dangling_vendor = []
        dangling_category = []

        for doc in products:
            vendor_id = doc.get('vendorId')
            category_id = doc.get('categoryId')
            by_vendor[vendor_id] += 1
            by_category[category_id] += 1
            if vendor_id not in vendor_ids:
                dangling_vendor.append(doc.id)
            if category_id not in category_ids:
                dangling_category.append(doc.id)

        if dangling_vendor:
            discrepancies.append(
                f"{len(dangling_vendor)} products reference a missing vendor"
            )
        if dangling_category:
            discrepancies.append(
                f"{len(dangling_category)} products reference a missing category"
            )

        for vendor_id, want in (expected_by_vendor or {}).items():
            found = by_vendor.get(vendor_id, 0)
            if found != want:
                discrepancies.append(
                    f"vendor {vendor_id}: expected {want} products, found {found}"
                )

        report = VerificationReport(
            timestamp=datetime.now(timezone.utc),
            collection_counts=counts,
            expected_counts=dict(expected),
            products_by_vendor={str(k): v for k, v in by_vendor.most_common()},
            products_by_category={str(k): v for k, v in by_category.most_common()},
            dangling_vendor_refs=dangling_vendor[:self.max_listed],
            dangling_category_refs=dangling_category[:self.max_listed],
            discrepancies=discrepancies,
        )

        if discrepancies:
            for line in discrepancies:
                logger.warning(f"Verification: {line}")
        else:
            logger.info(
                f"Verification OK: {counts[CATEGORIES]} categories, "
                f"{counts[VENDORS]} vendors, {counts[PRODUCTS]} products"
            )

        return report

    def get_summary(self, report: Optional[VerificationReport] = None) -> str:
        """Human-readable verification summary."""
        report = report or self.verify()

        lines = [
            "=" * 50,
            "CATALOG VERIFICATION",
            "=" * 50,
            f"Status: {report.status.upper()}",
            "",
            "Collections:",
        ]
        for name, count in sorted(report.collection_counts.items()):
            want = report.expected_counts.get(name)
            suffix = f" (expected {want})" if want is not None else ""
            lines.append(f"  {name}: {count:,}{suffix}")

        lines.extend(["", "Products by vendor:"])
        for vendor_id, count in report.products_by_vendor.items():
            lines.append(f"  {vendor_id}: {count:,}")

        lines.extend(["", "Products by category:"])
        for category_id, count in report.products_by_category.items():
            lines.append(f"  {category_id}: {count:,}")

        if report.discrepancies:
            lines.extend(["", "Discrepancies:"])
            for line in report.discrepancies:
                lines.append(f"  - {line}")

        lines.append("=" * 50)
        return "\n".join(lines)
