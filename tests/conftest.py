"""
Shared fixtures for the reseed test suite.
"""

import json
import random
from datetime import datetime, timezone

import pytest

from services.database.memory_store import MemoryDocumentStore
from services.database.store import StoreError
from standardization.normalizer import ProductNormalizer


class FlakyStore(MemoryDocumentStore):
    """
    Memory store whose Nth batch commit (1-based, counting every attempt)
    fails with ``error``.
    """

    def __init__(self, fail_on=(), error_factory=lambda: StoreError("commit rejected")):
        super().__init__()
        self.fail_on = set(fail_on)
        self.error_factory = error_factory
        self.commit_attempts = 0

    def _apply(self, ops):
        self.commit_attempts += 1
        if self.commit_attempts in self.fail_on:
            raise self.error_factory()
        return super()._apply(ops)


@pytest.fixture
def store():
    return MemoryDocumentStore()


@pytest.fixture
def flaky_store_factory():
    return FlakyStore


@pytest.fixture
def fixed_clock():
    moment = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def normalizer(fixed_clock):
    return ProductNormalizer(clock=fixed_clock, rng=random.Random(42))


@pytest.fixture
def write_source(tmp_path):
    """Write a JSON (or raw text) source file and return its path."""
    def _write(name, content):
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content, encoding='utf-8')
        else:
            path.write_text(json.dumps(content, ensure_ascii=False), encoding='utf-8')
        return path
    return _write


def make_records(prefix, count, name="Dental mirror", description="Stainless"):
    return [
        {
            'sku': f'{prefix}-{i:04d}',
            'name': f'{name} {i}',
            'description': description,
            'price': str(10 + i),
            'stock': i % 7,
        }
        for i in range(count)
    ]


@pytest.fixture
def records_factory():
    return make_records
