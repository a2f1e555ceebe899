"""
Reseed Orchestrator

Runs a full-replace reseed of the catalog:

    CLEARING -> SEEDING_REFERENCE_DATA -> LOADING_SOURCES
    -> CLASSIFYING_AND_RESOLVING -> WRITING -> VERIFYING -> DONE

Any state may move to FAILED. Batches committed before a failure stay
committed; there is no rollback.
"""

import time
import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Any, Callable, Tuple

from services.database.store import DocumentStore, StoreError
from services.database.models import AdminUser
from services.database.monitor import CatalogVerifier, VerificationReport
from standardization.category_classifier import CategoryClassifier
from standardization.normalizer import ProductNormalizer
from standardization.schema import CanonicalProduct

from .batch_writer import BatchWriter
from .config import ReseedConfig
from .errors import (
    ReseedError,
    SourceReadError,
    SourceParseError,
    ResolutionError,
    WriteError,
    ClearError,
    SeedError,
    PipelineCancelled,
    PipelineAborted,
)
from .rate_limiter import WriteRateLimiter
from .resolver import ReferenceResolver
from .retry_handler import RetryHandler, RetryConfig
from .seed_data import seed_categories, seed_vendors
from .sources import load_source

logger = logging.getLogger(__name__)

CATEGORIES = "categories"
VENDORS = "vendors"
PRODUCTS = "products"
USERS = "users"


class PipelineState(Enum):
    CLEARING = "clearing"
    SEEDING_REFERENCE_DATA = "seeding_reference_data"
    LOADING_SOURCES = "loading_sources"
    CLASSIFYING_AND_RESOLVING = "classifying_and_resolving"
    WRITING = "writing"
    VERIFYING = "verifying"
    DONE = "done"
    FAILED = "failed"


class FileStatus:
    PENDING = "pending"
    MISSING = "missing"        # unreadable, skipped
    FAILED = "failed"          # parse error, file dropped
    EXCLUDED = "excluded"      # vendor not resolved
    PARTIAL = "partial"        # a chunk failed
    CANCELLED = "cancelled"
    WRITTEN = "written"


@dataclass
class FileStats:
    """Per-source statistics"""
    source: str
    vendor_name: str
    vendor_id: Optional[str] = None
    records: int = 0
    prepared: int = 0
    written: int = 0
    errors: int = 0
    category_stats: Dict[str, int] = field(default_factory=dict)
    status: str = FileStatus.PENDING
    error: Optional[str] = None

    @property
    def clean(self) -> bool:
        return self.status == FileStatus.WRITTEN and self.errors == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'vendor_name': self.vendor_name,
            'vendor_id': self.vendor_id,
            'records': self.records,
            'prepared': self.prepared,
            'written': self.written,
            'errors': self.errors,
            'category_stats': dict(self.category_stats),
            'status': self.status,
            'error': self.error,
        }


@dataclass
class RunReport:
    """Everything a run did, including partial results of a failed run"""
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    transitions: List[PipelineState] = field(default_factory=list)
    files: List[FileStats] = field(default_factory=list)
    reference_counts: Dict[str, int] = field(default_factory=dict)
    cleared: Dict[str, int] = field(default_factory=dict)
    admin_user_id: Optional[str] = None
    verification: Optional[VerificationReport] = None
    normalizer_stats: Dict[str, int] = field(default_factory=dict)
    resolver_stats: Dict[str, int] = field(default_factory=dict)
    duration: float = 0.0
    error: Optional[str] = None

    @property
    def state(self) -> Optional[PipelineState]:
        return self.transitions[-1] if self.transitions else None

    @property
    def category_distribution(self) -> Dict[str, int]:
        total = Counter()
        for stats in self.files:
            total.update(stats.category_stats)
        return dict(total.most_common())

    @property
    def total_records(self) -> int:
        return sum(s.records for s in self.files)

    @property
    def total_written(self) -> int:
        return sum(s.written for s in self.files)

    @property
    def total_errors(self) -> int:
        return sum(s.errors for s in self.files)

    @property
    def status(self) -> str:
        if self.state != PipelineState.DONE:
            return "aborted"
        if not all(s.clean for s in self.files):
            return "completed_with_errors"
        if self.verification is not None and not self.verification.ok:
            return "completed_with_errors"
        return "clean"

    @property
    def exit_code(self) -> int:
        return {"clean": 0, "completed_with_errors": 1}.get(self.status, 2)

    def summary(self) -> str:
        """Human-readable run summary."""
        lines = [
            "=" * 60,
            "CATALOG RESEED SUMMARY",
            "=" * 60,
            f"Status: {self.status} (exit {self.exit_code})",
            f"Duration: {self.duration:.1f}s",
            f"States: {' -> '.join(s.name for s in self.transitions)}",
        ]
        if self.error:
            lines.append(f"Error: {self.error}")

        if self.reference_counts:
            lines.append("")
            lines.append("Reference data:")
            for name, count in self.reference_counts.items():
                lines.append(f"  {name}: {count}")

        lines.append("")
        lines.append("Sources:")
        for s in self.files:
            lines.append(
                f"  {s.source} [{s.vendor_name} -> {s.vendor_id or '?'}]: "
                f"{s.records} records, {s.written} written, {s.errors} errors ({s.status})"
            )
            if s.error:
                lines.append(f"    {s.error}")

        distribution = self.category_distribution
        if distribution:
            lines.append("")
            lines.append("Categories:")
            for category_id, count in distribution.items():
                lines.append(f"  {category_id}: {count}")

        lines.append("")
        lines.append(
            f"Total: {self.total_records} records, {self.total_written} written, "
            f"{self.total_errors} errors"
        )

        if self.verification is not None:
            lines.append(f"Verification: {self.verification.status}")
            for line in self.verification.discrepancies:
                lines.append(f"  - {line}")

        lines.append("=" * 60)
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'started_at': self.started_at.isoformat(),
            'status': self.status,
            'exit_code': self.exit_code,
            'transitions': [s.value for s in self.transitions],
            'files': [s.to_dict() for s in self.files],
            'reference_counts': self.reference_counts,
            'category_distribution': self.category_distribution,
            'verification': self.verification.to_dict() if self.verification else None,
            'duration': self.duration,
            'error': self.error,
        }


class ReseedOrchestrator:
    """
    Coordinates one reseed run against a document store.

    Only one run may use a store at a time; ``run()`` holds the store's
    run lock throughout.
    """

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[ReseedConfig] = None,
        classifier: Optional[CategoryClassifier] = None,
        normalizer: Optional[ProductNormalizer] = None,
        retry_handler: Optional[RetryHandler] = None,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[Callable[[str, int, int], None]] = None,
    ):
        self.store = store
        self.config = config or ReseedConfig()
        self.cancel_event = cancel_event or threading.Event()

        if classifier is None:
            if self.config.taxonomy_path:
                classifier = CategoryClassifier.from_json(
                    str(self.config.taxonomy_path), self.config.default_category_id
                )
            else:
                classifier = CategoryClassifier(default_category=self.config.default_category_id)
        self.classifier = classifier
        self.normalizer = normalizer or ProductNormalizer()
        self.resolver = ReferenceResolver(store, self.config.default_category_id)

        retry = self.config.retry
        self.retry_handler = retry_handler or RetryHandler(RetryConfig(
            max_attempts=retry.max_attempts,
            base_delay=retry.base_delay,
            max_delay=retry.max_delay,
            jitter=retry.jitter,
        ))
        self.rate_limiter = (
            WriteRateLimiter(self.config.writes_per_second)
            if self.config.writes_per_second else None
        )
        self.writer = BatchWriter(
            store,
            chunk_size=self.config.chunk_size,
            retry_handler=self.retry_handler,
            rate_limiter=self.rate_limiter,
            cancel_event=self.cancel_event,
            progress_callback=progress_callback,
        )

    def cancel(self):
        """Request cooperative cancellation at the next chunk boundary."""
        logger.warning("Cancellation requested")
        self.cancel_event.set()

    def _enter(self, report: RunReport, state: PipelineState):
        report.transitions.append(state)
        logger.info(f"=== {state.name} ===")

    def _check_cancelled(self, where: str):
        if self.cancel_event.is_set():
            raise PipelineCancelled(f"Run cancelled {where}")

    # ========================================
    # Run
    # ========================================

    def run(self) -> RunReport:
        """
        Execute a full run.

        Returns:
            RunReport with state DONE

        Raises:
            PipelineAborted: the run reached FAILED (``e.report`` has partial results)
            RunLockError: another run holds this store
        """
        report = RunReport()
        start_time = time.time()

        with self.store.run_lock():
            self.resolver.clear_cache()
            self.normalizer.reset_stats()
            try:
                self._clear(report)
                self._seed_reference_data(report)
                loaded = self._load_sources(report)
                prepared = self._classify_and_resolve(report, loaded)
                self._write(report, prepared)
                self._verify(report)
                self._enter(report, PipelineState.DONE)

            except ReseedError as e:
                report.error = str(e)
                self._enter(report, PipelineState.FAILED)
                logger.error(f"Reseed aborted: {e}")
                raise PipelineAborted(f"Reseed aborted: {e}", report) from e

            except Exception as e:
                report.error = str(e)
                self._enter(report, PipelineState.FAILED)
                logger.exception("Reseed failed unexpectedly")
                raise

            finally:
                report.duration = time.time() - start_time
                report.normalizer_stats = self.normalizer.get_stats()
                report.resolver_stats = dict(self.resolver.cache_stats)

        logger.info(
            f"Reseed {report.status}: {report.total_written}/{report.total_records} "
            f"products written in {report.duration:.1f}s"
        )
        return report

    # ========================================
    # States
    # ========================================

    def _clear(self, report: RunReport):
        self._enter(report, PipelineState.CLEARING)
        collections = [PRODUCTS, VENDORS, CATEGORIES]
        if self.config.admin.enabled:
            collections.append(USERS)

        for collection in collections:
            try:
                report.cleared[collection] = self.writer.delete_all(collection)
            except (WriteError, StoreError) as e:
                raise ClearError(f"Failed to clear {collection}: {e}") from e

    def _seed_reference_data(self, report: RunReport):
        self._enter(report, PipelineState.SEEDING_REFERENCE_DATA)

        for collection, models in (
            (CATEGORIES, seed_categories()),
            (VENDORS, seed_vendors()),
        ):
            result = self.writer.write(
                collection,
                [(model.id, model.to_document()) for model in models],
                label=collection,
            )
            try:
                result.raise_for_error()
            except WriteError as e:
                raise SeedError(f"Failed to seed {collection}: {e}") from e
            report.reference_counts[collection] = result.processed
            logger.info(f"Seeded {result.processed} {collection}")

        if self.config.admin.enabled:
            report.admin_user_id = self._create_admin_user()
            report.reference_counts[USERS] = 1

    def _create_admin_user(self) -> str:
        admin = self.config.admin
        try:
            if self.store.where(USERS, 'email', admin.email.strip().lower(), limit=1):
                raise SeedError(f"Admin user {admin.email} already exists")
            user = AdminUser.create(
                admin.email,
                admin.password,
                first_name=admin.first_name,
                last_name=admin.last_name,
            )
            user_id = self.store.add(USERS, user.to_document())
        except StoreError as e:
            raise SeedError(f"Failed to create admin user: {e}") from e

        logger.info(f"Created admin user {user.email} ({user_id})")
        return user_id

    def _load_sources(self, report: RunReport) -> List[Tuple[FileStats, List[Any]]]:
        self._enter(report, PipelineState.LOADING_SOURCES)
        loaded = []

        for source in self.config.sources:
            stats = FileStats(source=source.path.name, vendor_name=source.vendor_name)
            report.files.append(stats)
            try:
                records = load_source(source.path)
            except SourceReadError as e:
                logger.warning(f"Skipping {source.path.name}: {e.cause}")
                stats.status = FileStatus.MISSING
                stats.error = str(e)
                continue
            except SourceParseError as e:
                stats.status = FileStatus.FAILED
                stats.error = str(e)
                if self.config.abort_on_parse_error:
                    raise
                logger.error(f"Dropping {source.path.name}: {e.reason}")
                continue

            stats.records = len(records)
            loaded.append((stats, records))

        return loaded

    def _prepare_record(self, product: CanonicalProduct) -> CanonicalProduct:
        product.detected_category = self.classifier.classify_product(
            product.name, product.description
        )
        product.category_id = self.resolver.resolve_category(product.detected_category)
        if not product.is_resolved:
            raise ResolutionError("category", product.detected_category)
        return product

    def _prepare_file(
        self,
        stats: FileStats,
        records: List[Any],
        executor: ThreadPoolExecutor,
    ) -> List[CanonicalProduct]:
        prepared: List[CanonicalProduct] = []
        categories = Counter()
        chunk_size = self.config.chunk_size

        for start in range(0, len(records), chunk_size):
            self._check_cancelled(f"while preparing {stats.source}")

            products = []
            for raw in records[start:start + chunk_size]:
                if not isinstance(raw, dict):
                    stats.errors += 1
                    logger.warning(f"[{stats.source}] Skipping non-object record: {type(raw).__name__}")
                    continue
                try:
                    products.append(self.normalizer.normalize(raw, stats.vendor_id))
                except Exception as e:
                    stats.errors += 1
                    logger.warning(f"[{stats.source}] Record could not be normalized: {e}")

            futures = [executor.submit(self._prepare_record, p) for p in products]
            for future in futures:
                try:
                    product = future.result()
                except Exception as e:
                    stats.errors += 1
                    logger.warning(f"[{stats.source}] Record could not be prepared: {e}")
                    continue
                prepared.append(product)
                categories[product.category_id] += 1

        stats.prepared = len(prepared)
        stats.category_stats = dict(categories.most_common())
        return prepared

    def _classify_and_resolve(
        self,
        report: RunReport,
        loaded: List[Tuple[FileStats, List[Any]]],
    ) -> List[Tuple[FileStats, List[CanonicalProduct]]]:
        self._enter(report, PipelineState.CLASSIFYING_AND_RESOLVING)
        results = []

        with ThreadPoolExecutor(max_workers=self.config.prepare_workers) as executor:
            for stats, records in loaded:
                vendor_id = self.resolver.resolve_vendor(stats.vendor_name)
                if vendor_id is None:
                    error = ResolutionError("vendor", stats.vendor_name)
                    stats.status = FileStatus.EXCLUDED
                    stats.errors = stats.records
                    stats.error = str(error)
                    logger.warning(f"Excluding {stats.source}: {error}")
                    continue

                stats.vendor_id = vendor_id
                products = self._prepare_file(stats, records, executor)
                logger.info(
                    f"[{stats.source}] Prepared {stats.prepared}/{stats.records} "
                    f"records for vendor {vendor_id}"
                )
                results.append((stats, products))

        return results

    def _write(
        self,
        report: RunReport,
        prepared: List[Tuple[FileStats, List[CanonicalProduct]]],
    ):
        self._enter(report, PipelineState.WRITING)

        for stats, products in prepared:
            self._check_cancelled(f"before writing {stats.source}")
            if self.rate_limiter:
                self.rate_limiter.sweep()

            result = self.writer.write(
                PRODUCTS,
                [(p.id, p.to_dict()) for p in products],
                label=stats.source,
            )
            stats.written = result.processed

            try:
                result.raise_for_error()
            except PipelineCancelled:
                stats.status = FileStatus.CANCELLED
                raise
            except WriteError as e:
                stats.status = FileStatus.PARTIAL
                stats.error = str(e)
                logger.error(f"[{stats.source}] Continuing with next source after write failure")
                continue

            stats.status = FileStatus.WRITTEN

    def _verify(self, report: RunReport):
        self._enter(report, PipelineState.VERIFYING)
        if not self.config.verify:
            logger.info("Verification disabled")
            return

        expected = dict(report.reference_counts)
        expected[PRODUCTS] = report.total_written

        by_vendor = Counter()
        for stats in report.files:
            if stats.vendor_id and stats.written:
                by_vendor[stats.vendor_id] += stats.written

        report.verification = CatalogVerifier(self.store).verify(expected, dict(by_vendor))
