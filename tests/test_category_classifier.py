"""
Tests for keyword category classification.
"""

import json

import pytest

from standardization.category_classifier import CategoryClassifier, detect_category
from standardization.taxonomy import DENTAL_TAXONOMY, DEFAULT_CATEGORY_ID


@pytest.fixture
def classifier():
    return CategoryClassifier()


class TestClassify:

    def test_endodontic(self, classifier):
        assert classifier.classify("root canal file") == "endo"

    def test_no_keyword_falls_back(self, classifier):
        assert classifier.classify("xyz qqq") == DEFAULT_CATEGORY_ID
        assert classifier.classify("") == DEFAULT_CATEGORY_ID

    def test_tie_goes_to_first_declared(self, classifier):
        scores = classifier.score("composite crown")
        assert scores["operative"] == scores["fixed-crown"] == 1
        assert classifier.classify("composite crown") == "operative"

    def test_case_insensitive(self, classifier):
        assert classifier.classify("ROOT CANAL FILE") == "endo"

    def test_deterministic(self, classifier):
        results = {classifier.classify("orthodontic bracket wire") for _ in range(20)}
        assert results == {"ortho"}

    def test_highest_score_wins(self, classifier):
        # one instruments keyword vs two endo keywords
        assert classifier.classify("mirror with apex locator") == "endo"

    def test_classify_product_uses_description(self, classifier):
        assert classifier.classify_product("Kit", "Gutta percha points") == "endo"

    def test_score_keeps_taxonomy_order(self, classifier):
        assert list(classifier.score("anything")) == list(DENTAL_TAXONOMY)


class TestCustomTaxonomy:

    def test_custom_default(self):
        classifier = CategoryClassifier({"a": ["alpha"], "b": ["beta"]}, default_category="b")
        assert classifier.classify("alpha") == "a"
        assert classifier.classify("gamma") == "b"

    def test_duplicate_keywords_count_once(self):
        classifier = CategoryClassifier({"a": ["x", "X", "x"], "b": ["x", "y"]})
        assert classifier.score("x y") == {"a": 1, "b": 2}

    def test_empty_taxonomy_rejected(self):
        with pytest.raises(ValueError):
            CategoryClassifier({})

    def test_from_json_preserves_order(self, tmp_path):
        path = tmp_path / "taxonomy.json"
        path.write_text(json.dumps({"zeta": ["shared"], "alpha": ["shared"]}))
        classifier = CategoryClassifier.from_json(str(path), default_category="alpha")
        assert classifier.classify("shared") == "zeta"

    def test_batch(self, classifier):
        results = classifier.classify_batch([
            {"id": "1", "name": "Root canal file"},
            {"id": "2", "name": "Unknown", "description": None},
        ])
        assert results == [("1", "endo"), ("2", DEFAULT_CATEGORY_ID)]


def test_detect_category():
    assert detect_category("Gutta percha points", "Size 25") == "endo"
