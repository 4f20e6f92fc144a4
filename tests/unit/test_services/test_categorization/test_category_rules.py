"""
Unit tests for the default taxonomy and rule loading.
"""

import json

import pytest

from spendscope.services.categorization.category_rules import (
    DEFAULT_CATEGORIES,
    DEFAULT_RULES,
    category_name,
    get_category,
    load_rules,
)
from spendscope.services.categorization.models import RuleField, RuleType


class TestDefaults:
    """Tests for the built-in categories and rules."""

    def test_rules_reference_known_categories(self):
        """Every default rule points at a default category."""
        ids = {c.id for c in DEFAULT_CATEGORIES}
        for rule in DEFAULT_RULES:
            assert rule.category_id in ids, rule

    def test_rules_ordered_by_priority(self):
        priorities = [r.priority for r in DEFAULT_RULES]
        assert priorities == sorted(priorities)

    def test_parents_exist(self):
        ids = {c.id for c in DEFAULT_CATEGORIES}
        for category in DEFAULT_CATEGORIES:
            assert category.parent_id is None or category.parent_id in ids

    def test_income_rules_are_deposit_rules(self):
        income = [r for r in DEFAULT_RULES if r.category_id in ("salary", "refunds")]
        assert income and all(r.type is RuleType.DEPOSIT for r in income)

    def test_lookup(self):
        assert get_category("cafes").parent_id == "food"
        assert get_category("nope").id == "uncategorized"
        assert category_name("restaurants") == "Restaurants"
        assert category_name("custom") == "custom"


class TestLoadRules:
    """Tests for load_rules."""

    def test_list_file(self, tmp_path):
        """A JSON list loads and is sorted by priority, stable on ties."""
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([
            {"priority": 20, "categoryId": "fuel", "type": "keyword", "pattern": "HPCL"},
            {"priority": 5, "category_id": "rent", "type": "merchant", "pattern": "NOBROKER",
             "field": "merchant", "min_amount": 10000},
            {"priority": 20, "categoryId": "cafes", "type": "regex", "pattern": "^UPI/STARBUCKS"},
        ]))

        rules = load_rules(path)

        assert [r.category_id for r in rules] == ["rent", "fuel", "cafes"]
        assert rules[0].field is RuleField.MERCHANT
        assert rules[2].type is RuleType.REGEX

    def test_wrapped_file(self, tmp_path):
        """{"rules": [...]} is accepted too."""
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"rules": [
            {"priority": 1, "categoryId": "salary", "type": "deposit"},
        ]}))

        rules = load_rules(str(path))
        assert len(rules) == 1
        assert rules[0].pattern == ""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "absent.json")

    def test_invalid_type(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps([{"priority": 1, "categoryId": "x", "type": "bogus"}]))
        with pytest.raises(ValueError):
            load_rules(path)
