"""Tests for MedicalEventExtractor and save_medical_events."""
import json
import pytest
from app.core.exceptions import LLMError, StorageError
from app.core.extraction.event_extractor import MedicalEventExtractor, save_medical_events
from app.core.extraction.retry_utils import RetryConfig
from app.core.extraction.text_chunker import TextChunker
from app.core.ports.llm import LLMPort, ModelConfig


class ScriptedLLM(LLMPort):
    """Answers each prompt by the first marker found in it, recording call order."""

    def __init__(self, answers):
        self.answers = answers
        self.calls = []

    def get_model_config(self, model):
        return ModelConfig("scripted", "test", 100, 0.0, 10.0, 1000, "")

    async def generate(self, prompt, model, max_tokens=None, temperature=None, system=None):
        for marker, answer in self.answers.items():
            if marker in prompt:
                self.calls.append(marker)
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise LLMError("no scripted answer")


class RecordingRepository:
    """Minimal stand-in collecting saved events."""

    def __init__(self, fail_on=None):
        self.saved = []
        self.fail_on = fail_on

    async def save_medical_event(self, event):
        if event.provider_name == self.fail_on:
            raise StorageError("write failed")
        self.saved.append(event)


def chunked_text(*markers):
    """Text the 100-char chunker splits into one chunk per marker."""
    parts = [marker + " " + "x" * (97 - len(marker)) for marker in markers]
    return "\n\n".join(parts)


def event(date, provider="Dr. Smith", **fields):
    payload = {"date_of_service": date, "provider_name": provider, "facility_name": "City Hospital"}
    payload.update(fields)
    return payload


class TestMedicalEventExtractor:
    """Sequential chunk extraction with deduplication."""

    @pytest.fixture
    def make_extractor(self):
        def _make(llm):
            return MedicalEventExtractor(
                llm=llm,
                chunker=TextChunker(max_chars=100),
                retry_config=RetryConfig.disabled(),
            )
        return _make

    @pytest.mark.asyncio
    async def test_chunks_called_in_order(self, make_extractor):
        llm = ScriptedLLM({
            "PART-A": json.dumps([event("2024-01-10")]),
            "PART-B": json.dumps([event("2024-02-10")]),
            "PART-C": json.dumps([event("2024-03-10")]),
        })

        events = await make_extractor(llm).extract(chunked_text("PART-A", "PART-B", "PART-C"), "doc-1")

        assert llm.calls == ["PART-A", "PART-B", "PART-C"]
        assert [e["date_of_service"] for e in events] == ["2024-01-10", "2024-02-10", "2024-03-10"]

    @pytest.mark.asyncio
    async def test_failed_chunk_is_skipped(self, make_extractor):
        """A chunk whose call raises contributes nothing; later chunks still run."""
        llm = ScriptedLLM({
            "PART-A": LLMError("boom"),
            "PART-B": "I could not find any events, sorry.",
            "PART-C": json.dumps([event("2024-03-10")]),
        })

        events = await make_extractor(llm).extract(chunked_text("PART-A", "PART-B", "PART-C"), "doc-1")

        assert llm.calls == ["PART-A", "PART-B", "PART-C"]
        assert len(events) == 1
        assert events[0]["date_of_service"] == "2024-03-10"

    @pytest.mark.asyncio
    async def test_events_deduplicated_across_chunks(self, make_extractor):
        """The same visit split across chunks is merged into one event."""
        llm = ScriptedLLM({
            "PART-A": json.dumps([event("2024-01-10", diagnoses=[{"diagnosis_name": "Neck strain"}])]),
            "PART-B": json.dumps([event("2024-01-10", chief_complaint="Neck pain",
                                        diagnoses=[{"diagnosis_name": "Headache"}])]),
        })

        events = await make_extractor(llm).extract(chunked_text("PART-A", "PART-B"), "doc-1")

        assert len(events) == 1
        assert events[0]["chief_complaint"] == "Neck pain"
        assert [d["diagnosis_name"] for d in events[0]["diagnoses"]] == ["Neck strain", "Headache"]

    @pytest.mark.asyncio
    async def test_truncated_array_salvages_complete_items(self, make_extractor):
        truncated = json.dumps([event("2024-01-10"), event("2024-01-11")])[:-30]
        llm = ScriptedLLM({"PART-A": truncated})

        events = await make_extractor(llm).extract(chunked_text("PART-A"), "doc-1")

        assert [e["date_of_service"] for e in events] == ["2024-01-10"]

    @pytest.mark.asyncio
    async def test_items_without_date_are_dropped(self, make_extractor):
        llm = ScriptedLLM({"PART-A": json.dumps([{"provider_name": "Dr. X"}, event("2024-01-10")])})

        events = await make_extractor(llm).extract(chunked_text("PART-A"), "doc-1")

        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_loosely_typed_lists_are_kept(self, make_extractor):
        """A string or lone object in a list field does not cost the event."""
        llm = ScriptedLLM({"PART-A": json.dumps([
            {"date_of_service": "2024-01-15", "diagnoses": "Cervical strain"},
            {"date_of_service": "2024-02-15", "medications": {"medication_name": "Ibuprofen"},
             "treatments_procedures": "Physical therapy"},
            {"date_of_service": "2024-03-15", "diagnoses": 42},
        ])})

        events = await make_extractor(llm).extract(chunked_text("PART-A"), "doc-1")

        assert [e["date_of_service"] for e in events] == ["2024-01-15", "2024-02-15", "2024-03-15"]
        assert events[0]["diagnoses"] == [{"diagnosis_name": "Cervical strain"}]
        assert events[1]["medications"] == [{"medication_name": "Ibuprofen"}]
        assert events[1]["treatments_procedures"] == ["Physical therapy"]
        assert events[2]["diagnoses"] == []


class TestSaveMedicalEvents:
    """Persisting raw events."""

    @pytest.mark.asyncio
    async def test_bad_dates_are_skipped(self):
        repo = RecordingRepository()
        raw = [event("2024-01-10"), event("not a date"), event("03/05/2024")]

        saved = await save_medical_events(repo, "case-1", "doc-1", raw)

        assert len(saved) == 2
        assert [e.date_of_service.isoformat() for e in repo.saved] == ["2024-01-10", "2024-03-05"]
        assert all(e.case_id == "case-1" and e.document_id == "doc-1" for e in saved)

    @pytest.mark.asyncio
    async def test_failed_save_does_not_stop_remaining(self):
        repo = RecordingRepository(fail_on="Dr. Broken")
        raw = [event("2024-01-10", provider="Dr. Broken"), event("2024-01-11")]

        saved = await save_medical_events(repo, "case-1", "doc-1", raw)

        assert [e.provider_name for e in saved] == ["Dr. Smith"]

    @pytest.mark.asyncio
    async def test_costs_and_renamed_fields_mapped(self):
        repo = RecordingRepository()
        raw = [event(
            "2024-01-10",
            costs={"total_charge": "$1,250.00", "insurance_paid": 900, "patient_responsibility": None},
            future_treatment_recommended=["Surgery consult"],
            pre_existing_mentioned=[{"condition": "Prior back injury"}],
        )]

        saved = await save_medical_events(repo, "case-1", "doc-1", raw)

        assert saved[0].total_charge == 1250.0
        assert saved[0].insurance_paid == 900.0
        assert saved[0].patient_responsibility is None
        assert saved[0].future_treatment == ["Surgery consult"]
        assert saved[0].pre_existing_mentions == [{"condition": "Prior back injury"}]
