"""
Tests for the product normalizer and its field rules.
"""

import math
import random

import pytest

from standardization.normalizer import (
    ProductNormalizer,
    normalize_product,
    coerce_number,
    coerce_price,
    coerce_stock,
    coerce_bool,
    as_list,
    as_image_list,
    pick_identity,
    pick_sku,
    pick_slug,
    pick_description,
    pick_currency,
    generate_product_id,
    is_valid_document_id,
    DEFAULT_DESCRIPTION,
)
from standardization.name_normalizer import FALLBACK_SLUG

NOW_MS = 1714564800000


class TestNumericRules:

    @pytest.mark.parametrize("value,expected", [
        ("12.5", 12.5),
        (12, 12.0),
        (" 3 ", 3.0),
        ("99 EGP", 99.0),
        ("1e3", 1000.0),
    ])
    def test_lenient_parsing(self, value, expected):
        assert coerce_number(value) == expected

    @pytest.mark.parametrize("value", [
        None, "", "n/a", True, float('nan'), float('inf'), [], {}, 10 ** 400, -10 ** 400,
    ])
    def test_unreadable_numbers(self, value):
        assert coerce_number(value) is None

    def test_price_defaults_to_zero(self):
        assert coerce_price(None) == 0
        assert coerce_price("free") == 0
        assert coerce_price(-5) == 0
        assert coerce_price(float('nan')) == 0

    def test_stock_truncates_and_clamps(self):
        assert coerce_stock("7.9") == 7
        assert coerce_stock(-3) == 0
        assert coerce_stock(None) == 0
        assert isinstance(coerce_stock(4.0), int)

    def test_bool_coercion(self):
        assert coerce_bool("yes") is True
        assert coerce_bool("0") is False
        assert coerce_bool(None, True) is True
        assert coerce_bool("maybe", False) is False


class TestIdentityRules:

    def test_sku_wins(self):
        raw = {'sku': 'KM-1', 'vendorSku': 'V-1'}
        assert pick_identity(raw, NOW_MS, random.Random(1)) == 'KM-1'
        assert pick_sku(raw, NOW_MS) == 'KM-1'

    def test_vendor_sku_fallback(self):
        raw = {'sku': '  ', 'vendorSku': 'V-1'}
        assert pick_identity(raw, NOW_MS, random.Random(1)) == 'V-1'
        assert pick_sku(raw, NOW_MS) == 'V-1'

    def test_numeric_sku_is_stringified(self):
        assert pick_identity({'sku': 1234}, NOW_MS, random.Random(1)) == '1234'

    @pytest.mark.parametrize("sku", ['KM/1001', '.', '..', '__meta__', 'x' * 1501])
    def test_unusable_sku_falls_back(self, sku):
        assert pick_identity({'sku': sku, 'vendorSku': 'V-1'}, NOW_MS, random.Random(1)) == 'V-1'
        generated = pick_identity({'sku': sku}, NOW_MS, random.Random(1))
        assert generated.startswith(f'product_{NOW_MS}_')
        assert is_valid_document_id(generated)

    def test_unusable_sku_is_kept_as_sku_field(self, normalizer):
        product = normalizer.normalize({'sku': 'KM/1001', 'name': 'Mirror'}, 'kandil')
        assert product.sku == 'KM/1001'
        assert product.id.startswith('product_')
        assert normalizer.get_stats()['ids_generated'] == 1

    def test_generated_identity(self):
        product_id = pick_identity({}, NOW_MS, random.Random(1))
        prefix, ms, suffix = product_id.split('_')
        assert prefix == 'product'
        assert ms == str(NOW_MS)
        assert len(suffix) == 9
        assert suffix.isalnum() and suffix == suffix.lower()
        assert pick_sku({}, NOW_MS) == f'SKU_{NOW_MS}'

    def test_generated_ids_are_reproducible_with_seeded_rng(self):
        a = generate_product_id(NOW_MS, random.Random(7))
        b = generate_product_id(NOW_MS, random.Random(7))
        assert a == b


class TestTextRules:

    def test_slug_from_raw(self):
        assert pick_slug({'slug': 'custom-slug', 'name': 'Other'}) == 'custom-slug'

    def test_slug_from_name(self):
        assert pick_slug({'name': 'Dental Chair Unit!'}) == 'dental-chair-unit'

    def test_slug_ignores_markup_in_name(self):
        assert pick_slug({'name': '<b>Bur</b> Kit'}) == 'bur-kit'

    def test_slug_placeholder(self):
        assert pick_slug({}) == FALLBACK_SLUG
        assert pick_slug({'name': '!!!'}) == FALLBACK_SLUG

    def test_description_chain(self):
        assert pick_description({'description': 'Desc', 'name': 'Name'}) == 'Desc'
        assert pick_description({'name': 'Name'}) == 'Name'
        assert pick_description({}) == DEFAULT_DESCRIPTION

    def test_currency(self):
        assert pick_currency({}) == 'EGP'
        assert pick_currency({'currency': 'usd'}) == 'USD'

    def test_collections(self):
        assert as_list("single") == ["single"]
        assert as_list(None) == []
        assert as_image_list(["a.jpg", 3, None, " b.jpg "]) == ["a.jpg", "b.jpg"]


class TestProductNormalizer:

    def test_missing_price_and_stock_become_zero(self, normalizer):
        product = normalizer.normalize({'name': 'Gutta percha'}, 'kandil')
        assert product.price == 0
        assert product.stock == 0
        assert not math.isnan(product.price)

    def test_oversized_numbers_degrade_to_defaults(self, normalizer):
        product = normalizer.normalize({'name': 'Mirror', 'stock': 10 ** 400, 'price': 10 ** 400}, 'kandil')
        assert product.stock == 0
        assert product.price == 0
        assert normalizer.get_stats()['stocks_defaulted'] == 1

    def test_full_record(self, normalizer, fixed_clock):
        raw = {
            'sku': 'KM-1001',
            'name': 'Apex Locator',
            'price': '1500.50',
            'stock': '12',
            'images': 'https://cdn.example.com/apex.jpg',
            'brand': 'Woodpecker',
            'isFeatured': 'true',
            'extraField': 'ignored',
        }
        product = normalizer.normalize(raw, 'kandil')

        assert product.id == 'KM-1001'
        assert product.sku == 'KM-1001'
        assert product.slug == 'apex-locator'
        assert product.price == 1500.5
        assert product.stock == 12
        assert product.vendor_id == 'kandil'
        assert product.category_id is None
        assert product.description == 'Apex Locator'
        assert product.images == ['https://cdn.example.com/apex.jpg']
        assert product.is_featured is True
        assert product.is_active is True
        assert product.meta_title == 'Apex Locator'
        assert product.created_at == fixed_clock()

    def test_vendor_data_variants_and_bundles(self, normalizer, fixed_clock):
        raw = {
            'sku': 'KM-2001',
            'name': 'Endo starter kit',
            'vendorData': {'sourceUrl': 'https://kandil.example/kit', 'scrapedData': {'page': 3}},
            'variants': [{'id': 'v1', 'price': 10}],
            'isBundle': 'yes',
            'bundleItems': ['KM-1', 'KM-2'],
        }
        doc = normalizer.normalize(raw, 'kandil').to_dict()
        assert doc['vendorData'] == {
            'sourceUrl': 'https://kandil.example/kit',
            'lastScraped': fixed_clock(),
            'scrapedData': {'page': 3},
        }
        assert doc['variants'] == [{'id': 'v1', 'price': 10}]
        assert doc['isBundle'] is True
        assert doc['bundleItems'] == ['KM-1', 'KM-2']
        assert doc['lastScrapedAt'] == fixed_clock()

    def test_vendor_data_defaults(self, normalizer):
        doc = normalizer.normalize({'name': 'Mirror', 'vendorData': 'junk'}, 'kandil').to_dict()
        assert doc['vendorData']['sourceUrl'] == ''
        assert doc['vendorData']['scrapedData'] == {}
        assert doc['variants'] == []
        assert doc['isBundle'] is False
        assert doc['bundleItems'] == []

    def test_defaults_and_analytics(self, normalizer):
        doc = normalizer.normalize({}, 'kandil').to_dict()
        assert doc['name'] == 'Unnamed Product'
        assert doc['description'] == DEFAULT_DESCRIPTION
        assert doc['slug'] == FALLBACK_SLUG
        assert doc['currency'] == 'EGP'
        assert doc['minStockLevel'] == 5
        assert doc['maxStockLevel'] == 1000
        assert doc['specifications'] == {}
        assert doc['weight'] == {'value': None, 'unit': 'g'}
        for key in ('averageRating', 'totalReviews', 'totalSold', 'views'):
            assert doc[key] == 0

    def test_stats(self, normalizer):
        normalizer.normalize({'name': 'A'}, 'v')
        normalizer.normalize({'sku': 'X', 'slug': 's', 'price': 1, 'stock': 1}, 'v')
        stats = normalizer.get_stats()
        assert stats['processed'] == 2
        assert stats['ids_generated'] == 1
        assert stats['slugs_generated'] == 1
        assert stats['prices_defaulted'] == 1
        assert stats['stocks_defaulted'] == 1

    def test_batch_skips_non_objects(self, normalizer):
        products = list(normalizer.normalize_batch([{'sku': 'A'}, "junk", 42, {'sku': 'B'}], 'v'))
        assert [p.id for p in products] == ['A', 'B']
        assert normalizer.get_stats()['errors'] == 2

    def test_content_hash_ignores_timestamps(self):
        first = ProductNormalizer().normalize({'sku': 'A', 'price': 3}, 'v')
        second = ProductNormalizer().normalize({'sku': 'A', 'price': 3}, 'v')
        assert first.content_hash == second.content_hash

    def test_convenience_function(self):
        assert normalize_product({'sku': 'Z'}, 'v').id == 'Z'
