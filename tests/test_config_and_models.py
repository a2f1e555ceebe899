"""
Tests for configuration loading, reference models and source loading.
"""

import json
from datetime import timedelta
from pathlib import Path

import pytest

from services.database.models import Category, Vendor, AdminUser, verify_password
from services.reseed.config import ReseedConfig, SourceConfig
from services.reseed.errors import SourceReadError, SourceParseError
from services.reseed.seed_data import seed_categories, seed_vendors
from services.reseed.sources import load_source
from standardization.taxonomy import DENTAL_TAXONOMY


class TestReseedConfig:

    def test_defaults(self):
        config = ReseedConfig()
        assert config.chunk_size == 100
        assert config.abort_on_parse_error is True
        assert [s.vendor_name for s in config.sources] == [
            'Kandil Medical', 'Denta Carts', 'Misr Sinai For Supplies',
        ]

    @pytest.mark.parametrize("size", [0, 501])
    def test_chunk_size_validation(self, size):
        with pytest.raises(ValueError):
            ReseedConfig(chunk_size=size)

    def test_workers_bounded_by_chunk_size(self):
        assert ReseedConfig(chunk_size=2, prepare_workers=8).prepare_workers == 2

    def test_admin_requires_password(self):
        with pytest.raises(ValueError):
            ReseedConfig.from_dict({'admin': {'enabled': True}})

    def test_from_file(self, tmp_path):
        path = tmp_path / "reseed.json"
        path.write_text(json.dumps({
            'chunk_size': 50,
            'sources': [{'path': 'a.json', 'vendor_name': 'Denta Carts'}],
            'store': {'backend': 'memory'},
        }))
        config = ReseedConfig.from_file(path)
        assert config.chunk_size == 50
        assert config.sources == [SourceConfig(Path('a.json'), 'Denta Carts')]
        assert config.store.backend == 'memory'

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv('RESEED_DATA_DIR', str(tmp_path))
        monkeypatch.setenv('RESEED_BACKEND', 'memory')
        monkeypatch.setenv('RESEED_CHUNK_SIZE', '25')
        monkeypatch.setenv('RESEED_ADMIN_PASSWORD', 'S3cret!')
        config = ReseedConfig.from_env()
        assert config.store.backend == 'memory'
        assert config.chunk_size == 25
        assert config.admin.enabled
        assert config.sources[0].path.parent == tmp_path

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            ReseedConfig.from_dict({'store': {'backend': 'mongo'}})


class TestReferenceModels:

    def test_category_document_is_camel_case(self):
        doc = Category(id='endo', slug='endo', name='Endo', name_ar='علاج الجذور').to_document()
        assert doc['nameAr'] == 'علاج الجذور'
        assert doc['isActive'] is True
        assert 'id' not in doc
        assert 'createdAt' in doc

    def test_vendor_accepts_aliases(self):
        vendor = Vendor(id='v', name='V', slug='v', nameAr='ف', isActive=False)
        assert vendor.name_ar == 'ف'
        assert vendor.is_active is False

    def test_admin_user_hashes_password(self):
        user = AdminUser.create(' Admin@Example.com ', 'S3cret!')
        doc = user.to_document()
        assert doc['email'] == 'admin@example.com'
        assert doc['role'] == 'admin'
        assert doc['password'] != 'S3cret!'
        assert verify_password('S3cret!', doc['password'])
        assert not verify_password('wrong', doc['password'])
        assert doc['loginAttempts'] == 0
        assert doc['lockUntil'] is None

    def test_timestamps_are_timezone_aware(self):
        vendor = Vendor(id='v', name='V', slug='v')
        user = AdminUser.create('admin@example.com', 'S3cret!')
        assert vendor.created_at.utcoffset() == timedelta(0)
        assert user.updated_at.utcoffset() == timedelta(0)

    def test_seed_categories_cover_taxonomy(self):
        assert {c.id for c in seed_categories()} == set(DENTAL_TAXONOMY)
        assert all(c.slug == c.id for c in seed_categories())

    def test_seed_vendors(self):
        assert {v.id: v.name for v in seed_vendors()} == {
            'kandil': 'Kandil Medical',
            'denta-carts': 'Denta Carts',
            'misr-sinai': 'Misr Sinai For Supplies',
        }


class TestLoadSource:

    def test_array(self, write_source):
        path = write_source("a.json", [{'sku': 'A'}, "junk"])
        assert load_source(path) == [{'sku': 'A'}, "junk"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceReadError):
            load_source(tmp_path / "missing.json")

    def test_malformed_json(self, write_source):
        path = write_source("bad.json", "[{'sku': ")
        with pytest.raises(SourceParseError):
            load_source(path)

    def test_top_level_must_be_array(self, write_source):
        path = write_source("obj.json", {'products': []})
        with pytest.raises(SourceParseError):
            load_source(path)
