#!/usr/bin/env python3
"""
Catalog Reseed - full-replace loader for vendor product exports

Usage:
    python3 main.py                      # reseed with default sources
    python3 main.py reseed --config reseed.json
    python3 main.py reseed --backend memory --admin-password 'S3cret!'
    python3 main.py verify
    python3 main.py classify "root canal file"

Exit codes: 0 clean, 1 completed with errors, 2 aborted.
"""

import sys
import json
import signal
import logging
import argparse
from pathlib import Path

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger(__name__)

from services.database import (
    DocumentStore,
    MemoryDocumentStore,
    SqliteDocumentStore,
    FirestoreDocumentStore,
    CatalogVerifier,
    StoreError,
)
from services.reseed.config import ReseedConfig, AdminSettings, SourceConfig
from services.reseed.errors import PipelineAborted
from services.reseed.orchestrator import ReseedOrchestrator
from standardization.category_classifier import CategoryClassifier
from standardization.name_normalizer import searchable_text

EXIT_CLEAN = 0
EXIT_WITH_ERRORS = 1
EXIT_ABORTED = 2


def open_store(config: ReseedConfig) -> DocumentStore:
    """Create the configured document store backend."""
    settings = config.store
    if settings.backend == 'memory':
        return MemoryDocumentStore()
    if settings.backend == 'firestore':
        return FirestoreDocumentStore(project=settings.firestore_project)
    return SqliteDocumentStore(str(settings.sqlite_path))


def load_config(args) -> ReseedConfig:
    """Config file (if given), then RESEED_* env vars, then CLI flags."""
    config = ReseedConfig.from_file(args.config) if args.config else ReseedConfig()
    config = ReseedConfig.from_env(config)

    overrides = {}
    if args.backend:
        config.store.backend = args.backend
    if args.db:
        config.store.sqlite_path = Path(args.db)
    if args.chunk_size:
        overrides['chunk_size'] = args.chunk_size
    if args.source:
        overrides['sources'] = [
            SourceConfig(path, vendor) for path, vendor in
            (item.rsplit('=', 1) for item in args.source)
        ]
    if getattr(args, 'admin_password', None):
        overrides['admin'] = AdminSettings(
            enabled=True,
            email=args.admin_email or config.admin.email,
            password=args.admin_password,
        )
    if getattr(args, 'continue_on_parse_error', False):
        overrides['abort_on_parse_error'] = False

    if overrides:
        values = {k: getattr(config, k) for k in config.__dataclass_fields__}
        values.update(overrides)
        config = ReseedConfig(**values)
    return config


def cmd_reseed(config: ReseedConfig, report_path: str = None) -> int:
    """Run the full reseed pipeline."""
    store = open_store(config)
    orchestrator = ReseedOrchestrator(store, config)

    def handle_interrupt(signum, frame):
        orchestrator.cancel()

    previous = signal.signal(signal.SIGINT, handle_interrupt)
    try:
        report = orchestrator.run()
    except PipelineAborted as e:
        report = e.report
    except StoreError as e:
        logger.error(f"Store error: {e}")
        return EXIT_ABORTED
    finally:
        signal.signal(signal.SIGINT, previous)
        store.close()

    print(report.summary())

    if report_path:
        output_file = Path(report_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), f, ensure_ascii=False, indent=2, default=str)
        logger.info(f"Saved report to {output_file}")

    return report.exit_code


def cmd_verify(config: ReseedConfig) -> int:
    """Report what the store currently holds."""
    store = open_store(config)
    try:
        verifier = CatalogVerifier(store)
        report = verifier.verify()
        print(verifier.get_summary(report))
    except StoreError as e:
        logger.error(f"Store error: {e}")
        return EXIT_ABORTED
    finally:
        store.close()
    return EXIT_CLEAN if report.ok else EXIT_WITH_ERRORS


def cmd_classify(config: ReseedConfig, text: str) -> int:
    """Show keyword scores and the winning category for a piece of text."""
    if config.taxonomy_path:
        classifier = CategoryClassifier.from_json(str(config.taxonomy_path), config.default_category_id)
    else:
        classifier = CategoryClassifier(default_category=config.default_category_id)

    folded = searchable_text(text, None)
    scores = {k: v for k, v in classifier.score(folded).items() if v}
    print(json.dumps({
        'text': text,
        'category': classifier.classify(folded),
        'scores': scores,
    }, ensure_ascii=False, indent=2))
    return EXIT_CLEAN


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Catalog reseed pipeline')
    parser.add_argument('--config', type=str, help='JSON config file')
    parser.add_argument('--backend', choices=['sqlite', 'memory', 'firestore'],
                        help='Document store backend')
    parser.add_argument('--db', type=str, help='SQLite database path')
    parser.add_argument('--chunk-size', type=int, help='Writes per batch (1-500)')
    parser.add_argument('--source', action='append', metavar='PATH=VENDOR',
                        help='Source file and vendor name (repeatable)')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose logging')

    sub = parser.add_subparsers(dest='command')

    reseed = sub.add_parser('reseed', help='Clear and reseed the catalog (default)')
    reseed.add_argument('--admin-email', type=str, help='Admin user email')
    reseed.add_argument('--admin-password', type=str, help='Create an admin user with this password')
    reseed.add_argument('--continue-on-parse-error', action='store_true',
                        help='Drop malformed source files instead of aborting')
    reseed.add_argument('--report', type=str, help='Write the run report as JSON')

    sub.add_parser('verify', help='Verify the stored catalog')

    classify = sub.add_parser('classify', help='Classify a piece of text')
    classify.add_argument('text', nargs='+')

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = load_config(args)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_ABORTED

    if args.command == 'verify':
        return cmd_verify(config)
    if args.command == 'classify':
        return cmd_classify(config, ' '.join(args.text))
    return cmd_reseed(config, getattr(args, 'report', None))


if __name__ == '__main__':
    sys.exit(main())
