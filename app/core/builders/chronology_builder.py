"""
ChronologyEngine - Case-level medical chronology generation.

Combines the deterministic analysis in chronology_analysis with three oracle
calls: gap explanations (enrichment only), the treatment narrative and the
executive summary. Oracle failures never fail generation; gaps stay
un-enriched and prose falls back to fixed placeholder text.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.config.pipeline_limits import (
    NARRATIVE_MAX_DIAGNOSES,
    NARRATIVE_MAX_EVENTS,
    NARRATIVE_MAX_PROVIDERS,
    SUMMARY_MAX_DIAGNOSES,
)
from app.core.builders import chronology_analysis as analysis
from app.core.builders.date_utils import format_date
from app.core.exceptions import ChronologyError
from app.core.extraction.llm_config import LLM_SETTINGS, ExtractionConfig
from app.core.extraction.payload_shapes import GapExplanationPayload
from app.core.extraction.prompt_loader import PromptLoader
from app.core.extraction.response_parser import ResponseParser
from app.core.extraction.retry_utils import RetryConfig, retry_with_backoff
from app.core.models.case import Case, CaseStatus
from app.core.models.chronology import DiagnosisSummary, MedicalChronology, ProviderSummary, TreatmentGap
from app.core.models.medical_event import MedicalEvent
from app.core.ports.llm import LLMPort
from app.core.ports.storage import CaseRepositoryPort

logger = logging.getLogger(__name__)

NARRATIVE_FALLBACK = "Chronology narrative generation failed. Please regenerate."
EXECUTIVE_SUMMARY_FALLBACK = "Executive summary generation failed."

IMPACT_LEVELS = ("low", "medium", "high")
FINDINGS_PREVIEW_CHARS = 200


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _diagnoses_block(diagnoses: List[DiagnosisSummary], limit: int) -> str:
    lines = [
        f"- {d.diagnosis} ({d.icd_code})" if d.icd_code else f"- {d.diagnosis}"
        for d in diagnoses[:limit]
    ]
    return "\n".join(lines) or "None documented"


def _providers_block(providers: List[ProviderSummary], limit: int) -> str:
    lines = [
        f"- {p.name} ({p.type}): {p.visit_count} visits, {_money(p.total_cost)}"
        for p in providers[:limit]
    ]
    return "\n".join(lines) or "None documented"


def _gaps_block(gaps: List[TreatmentGap], with_explanations: bool = True) -> str:
    if not gaps:
        return "No significant treatment gaps"
    lines = []
    for i, gap in enumerate(gaps, 1):
        line = f"{i}. {format_date(gap.start_date)} to {format_date(gap.end_date)} ({gap.duration_days} days)"
        if with_explanations:
            line += f": {gap.explanation or 'No explanation'}"
        lines.append(line)
    return "\n".join(lines)


def _event_block(event: MedicalEvent) -> str:
    diagnoses = ", ".join(
        dx["diagnosis_name"] for dx in event.diagnoses or []
        if isinstance(dx, dict) and dx.get("diagnosis_name")
    )
    pain = event.pain_score
    lines = [
        f"- {format_date(event.date_of_service)}: {event.display_provider or 'Provider'} "
        f"({event.provider_type or 'Visit'})",
        f"  Chief Complaint: {event.chief_complaint or 'Not documented'}",
        f"  Diagnoses: {diagnoses or 'None documented'}",
        f"  Pain Score: {f'{pain:g}/10' if pain is not None else 'Not recorded'}",
    ]
    if event.objective_findings:
        lines.append(f"  Findings: {event.objective_findings[:FINDINGS_PREVIEW_CHARS]}...")
    return "\n".join(lines)


def _normalize_impact(value: Any) -> Optional[str]:
    """Reduce free-form impact text ("medium - may be questioned") to low/medium/high."""
    if not isinstance(value, str):
        return None
    text = value.strip().lower()
    for level in IMPACT_LEVELS:
        if text.startswith(level):
            return level
    return None


def _timeline_event(event: MedicalEvent) -> Dict[str, Any]:
    return {
        "id": event.id,
        "dateOfService": format_date(event.date_of_service),
        "providerName": event.provider_name,
        "providerType": event.provider_type,
        "facilityName": event.facility_name,
        "documentType": event.document_type,
        "diagnoses": event.diagnoses,
        "treatmentsProcedures": event.treatments_procedures,
        "vitalSigns": event.vital_signs,
        "totalCharge": event.total_charge,
    }


class ChronologyEngine:
    """Generate and read the per-case medical chronology.

    Usage:
        engine = ChronologyEngine(repository=repo, llm=bedrock_adapter)
        chronology = await engine.generate(case_id)
    """

    def __init__(
        self,
        repository: CaseRepositoryPort,
        llm: LLMPort,
        prompt_loader: Optional[PromptLoader] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self._repository = repository
        self._llm = llm
        self._prompts = prompt_loader or PromptLoader()
        self._parser = ResponseParser()
        self._retry_config = retry_config or RetryConfig.for_bedrock()

    async def generate(self, case_id: str) -> MedicalChronology:
        """
        Build the chronology from the case's events and upsert it.

        Args:
            case_id: Case to build the chronology for

        Returns:
            The saved MedicalChronology

        Raises:
            ChronologyError: If the case does not exist or has no medical events
        """
        logger.info(f"Generating chronology for case {case_id}")

        case = await self._repository.get_case(case_id)
        if case is None:
            raise ChronologyError(f"Case {case_id} not found")

        events = await self._repository.list_medical_events(case_id)
        if not events:
            raise ChronologyError(f"No medical events found for case {case_id}")

        gaps = analysis.detect_treatment_gaps(events)
        providers = analysis.summarize_providers(events)
        diagnoses = analysis.summarize_diagnoses(events)
        mmi = analysis.detect_mmi(events)

        chronology = MedicalChronology(
            case_id=case_id,
            treatment_duration_days=analysis.treatment_duration_days(events),
            total_visits=len(events),
            total_medical_costs=analysis.total_medical_costs(events),
            first_visit_date=events[0].date_of_service,
            last_visit_date=events[-1].date_of_service,
            treatment_gaps=await self._enrich_gaps(gaps, case),
            mmi_reached=mmi.reached,
            mmi_date=mmi.date,
            mmi_notes=mmi.notes,
            pain_score_history=analysis.extract_pain_score_history(events),
            providers_summary=providers,
            diagnosis_summary=diagnoses,
            body_parts_affected=analysis.summarize_body_parts(events),
        )
        chronology.chronology_narrative = await self._generate_narrative(events, case, chronology)
        chronology.executive_summary = await self._generate_executive_summary(case, chronology)
        chronology.generated_at = datetime.now()

        await self._repository.save_chronology(chronology)

        case.status = CaseStatus.EXTRACTION_COMPLETE
        case.updated_at = datetime.now()
        await self._repository.save_case(case)

        logger.info(
            f"Chronology generated for case {case_id}: {chronology.total_visits} visits, "
            f"{len(chronology.treatment_gaps)} gaps, MMI {'reached' if chronology.mmi_reached else 'not reached'}"
        )
        return chronology

    async def get_chronology(self, case_id: str) -> Optional[MedicalChronology]:
        return await self._repository.get_chronology(case_id)

    async def get_timeline_data(self, case_id: str) -> Dict[str, Any]:
        """Events plus stored gaps and visit date range for timeline display."""
        events = await self._repository.list_medical_events(case_id)
        chronology = await self._repository.get_chronology(case_id)
        return {
            "events": [_timeline_event(e) for e in events],
            "gaps": [g.to_dict() for g in chronology.treatment_gaps] if chronology else [],
            "dateRange": {
                "start": format_date(chronology.first_visit_date) if chronology else None,
                "end": format_date(chronology.last_visit_date) if chronology else None,
            },
        }

    async def _call_oracle(self, prompt_name: str, config: ExtractionConfig, **values: Any) -> str:
        rendered = self._prompts.render(prompt_name, **values)
        return await retry_with_backoff(
            self._llm.generate,
            prompt=rendered.prompt,
            model=config.model_preference,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            system=rendered.system,
            max_retries=self._retry_config.max_retries,
            base_delay=self._retry_config.base_delay,
            max_delay=self._retry_config.max_delay,
        )

    async def _enrich_gaps(self, gaps: List[TreatmentGap], case: Case) -> List[TreatmentGap]:
        """Attach oracle explanation and impact to the computed gaps.

        Dates and durations always come from the computed gaps. Oracle items
        are matched by (startDate, endDate), falling back to position.
        """
        if not gaps:
            return gaps

        try:
            response = await self._call_oracle(
                "gap_explanations",
                LLM_SETTINGS.gap_explanation,
                client_name=case.client_name,
                gaps_block=_gaps_block(gaps, with_explanations=False),
            )
            items = self._parser.decode_array(response, GapExplanationPayload).unwrap()
        except Exception as e:
            logger.error(f"Error generating gap explanations for case {case.id}: {e}")
            return gaps

        by_dates = {(item.get("startDate"), item.get("endDate")): item for item in items}
        for i, gap in enumerate(gaps):
            item = by_dates.get((format_date(gap.start_date), format_date(gap.end_date)))
            if item is None and i < len(items):
                item = items[i]
            if item is None:
                continue
            explanation = item.get("explanation")
            gap.explanation = explanation.strip() if isinstance(explanation, str) and explanation.strip() else None
            gap.impact = _normalize_impact(item.get("impact"))

        return gaps

    async def _generate_narrative(
        self,
        events: List[MedicalEvent],
        case: Case,
        chronology: MedicalChronology,
    ) -> str:
        try:
            text = await self._call_oracle(
                "narrative",
                LLM_SETTINGS.narrative,
                client_name=case.client_name,
                incident_date=format_date(case.incident_date) or "Not provided",
                incident_type=case.incident_type or "Not provided",
                incident_description=case.incident_description or "Not provided",
                treatment_duration_days=chronology.treatment_duration_days,
                total_visits=chronology.total_visits,
                total_medical_costs=_money(chronology.total_medical_costs),
                diagnoses_block=_diagnoses_block(chronology.diagnosis_summary, NARRATIVE_MAX_DIAGNOSES),
                providers_block=_providers_block(chronology.providers_summary, NARRATIVE_MAX_PROVIDERS),
                gaps_block=_gaps_block(chronology.treatment_gaps),
                events_block="\n\n".join(_event_block(e) for e in events[:NARRATIVE_MAX_EVENTS]),
            )
        except Exception as e:
            logger.error(f"Error generating chronology narrative for case {case.id}: {e}")
            return NARRATIVE_FALLBACK
        return text.strip() or NARRATIVE_FALLBACK

    async def _generate_executive_summary(self, case: Case, chronology: MedicalChronology) -> str:
        try:
            text = await self._call_oracle(
                "executive_summary",
                LLM_SETTINGS.executive_summary,
                client_name=case.client_name,
                incident_type=case.incident_type or "Incident",
                incident_date=format_date(case.incident_date) or "an unknown date",
                treatment_duration_days=chronology.treatment_duration_days,
                total_visits=chronology.total_visits,
                total_medical_costs=_money(chronology.total_medical_costs),
                diagnoses_block=_diagnoses_block(chronology.diagnosis_summary, SUMMARY_MAX_DIAGNOSES),
            )
        except Exception as e:
            logger.error(f"Error generating executive summary for case {case.id}: {e}")
            return EXECUTIVE_SUMMARY_FALLBACK
        return text.strip() or EXECUTIVE_SUMMARY_FALLBACK
