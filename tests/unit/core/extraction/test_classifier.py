"""Tests for DocumentClassifier."""
from datetime import date
import pytest
from app.core.exceptions import LLMError
from app.core.extraction.classifier import DocumentClassifier
from app.core.extraction.retry_utils import RetryConfig
from app.core.models.document import Classification, DocumentCategory
from app.core.ports.llm import LLMPort, ModelConfig


class FixedLLM(LLMPort):
    """Returns one canned response (or raises it) and records prompts."""

    def __init__(self, response):
        self.response = response
        self.prompts = []

    def get_model_config(self, model):
        return ModelConfig("fixed", "test", 100, 0.0, 10.0, 1000, "")

    async def generate(self, prompt, model, max_tokens=None, temperature=None, system=None):
        self.prompts.append(prompt)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class TestDocumentClassifier:
    """Classification decoding and fallbacks."""

    def make_classifier(self, response, **kwargs):
        llm = FixedLLM(response)
        return llm, DocumentClassifier(llm=llm, retry_config=RetryConfig.disabled(), **kwargs)

    @pytest.mark.asyncio
    async def test_valid_classification(self):
        llm, classifier = self.make_classifier(
            '```json\n{"category": "MEDICAL_BILLS", "subcategory": "Hospital", "confidence": 0.92, '
            '"documentDate": "2024-02-01", "providerName": "City Hospital"}\n```'
        )

        result = await classifier.classify("Statement of charges", "doc-1")

        assert result.category == DocumentCategory.MEDICAL_BILLS
        assert result.subcategory == "Hospital"
        assert result.confidence == 0.92
        assert result.document_date == date(2024, 2, 1)
        assert result.provider_name == "City Hospital"

    @pytest.mark.asyncio
    async def test_unknown_category_coerced_to_other(self):
        _, classifier = self.make_classifier('{"category": "RECIPE", "confidence": 0.8}')

        result = await classifier.classify("Two cups of flour", "doc-1")

        assert result.category == DocumentCategory.OTHER
        assert result.confidence == 0.8

    @pytest.mark.asyncio
    async def test_lowercase_category_accepted(self):
        _, classifier = self.make_classifier('{"category": "police_report", "confidence": 1}')

        result = await classifier.classify("Incident report", "doc-1")

        assert result.category == DocumentCategory.POLICE_REPORT

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        LLMError("boom"),
        "I think this is a medical record.",
        '{"confidence": 0.9}',
    ])
    async def test_failures_return_default(self, response):
        """Oracle errors, non-JSON and missing category all yield OTHER / 0.0."""
        _, classifier = self.make_classifier(response)

        result = await classifier.classify("Some text", "doc-1")

        assert result == Classification()

    @pytest.mark.asyncio
    async def test_confidence_clamped(self):
        _, classifier = self.make_classifier('{"category": "PHOTOS", "confidence": 7}')

        result = await classifier.classify("Photo", "doc-1")

        assert result.confidence == 1.0

    @pytest.mark.asyncio
    async def test_non_numeric_confidence_keeps_category(self):
        _, classifier = self.make_classifier('{"category": "MEDICAL_BILLS", "confidence": "high"}')

        result = await classifier.classify("Statement of charges", "doc-1")

        assert result.category == DocumentCategory.MEDICAL_BILLS
        assert result.confidence == 0.0

    @pytest.mark.asyncio
    async def test_only_leading_sample_sent(self):
        llm, classifier = self.make_classifier('{"category": "OTHER"}', sample_chars=20)

        await classifier.classify("HEAD-OF-DOC " + "z" * 100 + " TAIL-MARKER", "doc-1")

        assert "HEAD-OF-DOC" in llm.prompts[0]
        assert "TAIL-MARKER" not in llm.prompts[0]
