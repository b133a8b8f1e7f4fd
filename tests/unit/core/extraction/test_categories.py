"""Tests for the category extraction table."""
import pytest
from app.core.extraction.categories import CATEGORY_RULES, MergeStrategy, rule_for
from app.core.extraction.prompt_loader import PromptLoader
from app.core.models.document import DocumentCategory


class TestCategoryRules:
    def test_every_category_has_a_rule(self):
        assert set(CATEGORY_RULES) == set(DocumentCategory)

    @pytest.mark.parametrize("category, strategy", [
        (DocumentCategory.MEDICAL_RECORDS, MergeStrategy.RECORDS),
        (DocumentCategory.MEDICAL_BILLS, MergeStrategy.BILLS),
        (DocumentCategory.POLICE_REPORT, MergeStrategy.FIRST_RESULT),
        (DocumentCategory.WAGE_DOCUMENTATION, MergeStrategy.FIRST_RESULT),
        (DocumentCategory.PHOTOS, MergeStrategy.RAW_TEXT),
        (DocumentCategory.LIEN_LETTER, MergeStrategy.RAW_TEXT),
    ])
    def test_strategies(self, category, strategy):
        assert rule_for(category).strategy == strategy

    def test_oracle_rules_have_existing_prompts(self):
        """Every rule that calls the oracle names a bundled prompt and a shape."""
        loader = PromptLoader()
        for rule in CATEGORY_RULES.values():
            if rule.calls_oracle:
                assert loader.exists(rule.prompt_name)
                assert rule.shape is not None
            else:
                assert rule.strategy == MergeStrategy.RAW_TEXT

    def test_unknown_category_uses_other_rule(self):
        assert rule_for("NOT_A_CATEGORY") is CATEGORY_RULES[DocumentCategory.OTHER]
