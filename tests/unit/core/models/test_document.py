"""Tests for Document and Case models."""
from datetime import date
from app.core.models.case import Case, CaseStatus
from app.core.models.document import (
    CLINICAL_CATEGORIES,
    Classification,
    Document,
    DocumentCategory,
    ProcessingStatus,
)


class TestDocumentCategory:
    def test_coerce_known_value(self):
        assert DocumentCategory.coerce(" medical_bills ") == DocumentCategory.MEDICAL_BILLS

    def test_coerce_unknown_value_is_other(self):
        assert DocumentCategory.coerce("TAX_RETURN") == DocumentCategory.OTHER
        assert DocumentCategory.coerce(None) == DocumentCategory.OTHER

    def test_clinical_categories(self):
        assert CLINICAL_CATEGORIES == {DocumentCategory.MEDICAL_RECORDS, DocumentCategory.MEDICAL_BILLS}


class TestDocument:
    def test_is_terminal(self):
        document = Document(id="d", case_id="c", filename="k")
        assert not document.is_terminal
        document.processing_status = ProcessingStatus.FAILED
        assert document.is_terminal

    def test_apply_classification(self):
        document = Document(id="d", case_id="c", filename="k")

        document.apply_classification(Classification(
            category=DocumentCategory.MEDICAL_RECORDS,
            subcategory="ER visit",
            confidence=0.92,
            document_date=date(2024, 1, 15),
            provider_name="City ER",
        ))

        assert document.category == DocumentCategory.MEDICAL_RECORDS
        assert document.classification_confidence == 0.92
        assert document.document_date == date(2024, 1, 15)

    def test_persisted_shape_round_trips(self):
        document = Document(
            id="d", case_id="c", filename="c/d-report.pdf", original_filename="report.pdf",
            processing_status=ProcessingStatus.COMPLETED, category=DocumentCategory.POLICE_REPORT,
            extracted_data={"reportNumber": "24-001"},
        )

        data = document.to_dict()

        assert data["processingStatus"] == "COMPLETED"
        assert data["category"] == "POLICE_REPORT"
        assert Document.from_dict(data) == document


class TestCase:
    def test_client_name(self):
        assert Case(id="c", client_first_name="Jane", client_last_name="Doe").client_name == "Jane Doe"
        assert Case(id="c", client_first_name="Jane").client_name == "Jane"

    def test_persisted_shape_round_trips(self):
        case = Case(id="c", incident_date=date(2023, 12, 1), status=CaseStatus.PROCESSING,
                    damages_calculation={"medicalExpenses": {"total": 10.0}})

        data = case.to_dict()

        assert data["incidentDate"] == "2023-12-01"
        assert Case.from_dict(data) == case
