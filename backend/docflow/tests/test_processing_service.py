"""
Tests for the simulated ProcessingService.

Tests cover:
- Output shape of each routine
- Parameter handling (language, tables, categories, fields)
- Failure reporting (never raises)
"""

import random

import pytest

from docflow.processing.service import (
    DocumentInfo,
    ProcessingRoutine,
    ProcessingService,
)


@pytest.fixture
def docs():
    return [
        DocumentInfo(id=7, file_path="/tmp/a.pdf", file_name="a.pdf", mime_type="application/pdf"),
        DocumentInfo(id=8, file_path="/tmp/b.txt", file_name="b.txt", mime_type="text/plain"),
    ]


@pytest.fixture
def service():
    return ProcessingService(rng=random.Random(7), simulate_delays=False)


class TestRoutines:
    """Tests for each simulated routine."""

    @pytest.mark.asyncio
    async def test_ocr(self, service, docs):
        result = await service.process_documents(ProcessingRoutine.OCR, docs, {})

        assert result.success is True
        assert result.data["total_documents"] == 2
        assert result.data["language"] == "en"
        assert result.data["tables_extracted"] == []
        first = result.data["extracted_text"][0]
        assert first["document_id"] == 7
        assert first["confidence"] == 0.95
        assert "a.pdf" in first["text"]

    @pytest.mark.asyncio
    async def test_ocr_with_tables_and_language(self, service, docs):
        result = await service.process_documents(
            ProcessingRoutine.OCR, docs, {"extract_tables": True, "language": "fr"}
        )

        assert result.data["language"] == "fr"
        assert len(result.data["tables_extracted"]) == 1

    @pytest.mark.asyncio
    async def test_text_extraction_counts(self, service, docs):
        result = await service.process_documents(ProcessingRoutine.TEXT_EXTRACTION, docs)

        entry = result.data["extracted_content"][1]
        assert entry["metadata"]["format"] == "text/plain"
        assert entry["metadata"]["character_count"] == len(entry["content"])
        assert entry["metadata"]["word_count"] == len(entry["content"].split())
        assert result.data["preserve_formatting"] is True

    @pytest.mark.asyncio
    async def test_classification_uses_given_categories(self, service, docs):
        categories = ["invoice", "receipt", "contract", "report", "memo"]
        result = await service.process_documents(
            ProcessingRoutine.CLASSIFICATION,
            docs,
            {"categories": categories, "confidence_threshold": 0.8},
        )

        for item in result.data["classifications"]:
            assert item["category"] in categories
            assert 0.8 <= item["confidence"] <= 0.99
            assert item["above_threshold"] is True
            assert len(item["alternatives"]) == 3
            assert item["category"] not in {alt["category"] for alt in item["alternatives"]}
        assert result.data["confidence_threshold"] == 0.8

    @pytest.mark.asyncio
    async def test_classification_defaults(self, service, docs):
        result = await service.process_documents(ProcessingRoutine.CLASSIFICATION, docs)

        assert result.data["categories_used"] == ["invoice", "receipt", "contract", "report"]
        assert result.data["confidence_threshold"] == 0.7

    @pytest.mark.asyncio
    async def test_data_extraction_fields(self, service, docs):
        result = await service.process_documents(
            ProcessingRoutine.DATA_EXTRACTION,
            docs,
            {"fields": ["invoice_number", "vendor", "po_number"]},
        )

        fields = result.data["extracted_data"][0]["extracted_fields"]
        assert fields == {
            "invoice_number": "INV-000007",
            "vendor": "Vendor 7",
            "po_number": "Value for po_number",
        }
        assert set(result.data["extracted_data"][0]["validation"]) == {
            "invoice_number", "vendor", "po_number"
        }

    @pytest.mark.asyncio
    async def test_data_extraction_without_validation(self, service, docs):
        result = await service.process_documents(
            ProcessingRoutine.DATA_EXTRACTION, docs, {"validate_data": False}
        )

        assert result.data["validation_enabled"] is False
        assert result.data["extracted_data"][0]["validation"] is None

    @pytest.mark.asyncio
    async def test_metadata_reports_documents(self, service, docs):
        result = await service.process_documents(ProcessingRoutine.OCR, docs, {"language": "en"})

        assert result.metadata == {"documents_processed": 2, "parameters": {"language": "en"}}
        assert result.processing_time_ms >= 0


class TestFailures:
    """Processing errors are reported, never raised."""

    @pytest.mark.asyncio
    async def test_unknown_routine(self, service, docs):
        result = await service.process_documents("translation", docs)

        assert result.success is False
        assert "Unknown processing routine" in result.error
        assert result.data is None

    @pytest.mark.asyncio
    async def test_routine_error_becomes_failed_result(self, service, docs):
        result = await service.process_documents(
            ProcessingRoutine.CLASSIFICATION, docs, {"categories": [], "confidence_threshold": "x"}
        )

        assert result.success is False
        assert result.error


def test_document_info_from_snapshot():
    info = DocumentInfo.from_snapshot(
        {"id": 3, "title": "Invoice", "file_path": "/tmp/x.pdf", "file_name": "x.pdf"}
    )

    assert info.id == 3
    assert info.file_name == "x.pdf"
    assert info.mime_type is None
