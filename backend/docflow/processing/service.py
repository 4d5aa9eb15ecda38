"""
Simulated document processing.

ProcessingService stands in for real OCR, text extraction, classification
and data extraction engines. Each routine waits for a configured duration
and returns synthetic, realistically shaped output.

Contract (relied on by JobOrchestrator):
- process_documents never raises for processing errors; it returns a
  ProcessingResult with success=False and the error message
- data is a JSON-serializable dict
"""

import asyncio
import enum
import logging
import random
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from docflow.config.processing_defaults import (
    ProcessingDefaultsLoader,
    get_processing_defaults_loader,
)

logger = logging.getLogger(__name__)


class ProcessingRoutine(str, enum.Enum):
    """Processing routines offered by ProcessingService."""
    OCR = "ocr"
    TEXT_EXTRACTION = "text_extraction"
    CLASSIFICATION = "classification"
    DATA_EXTRACTION = "data_extraction"


@dataclass
class DocumentInfo:
    """Document metadata handed to a processing routine."""
    id: int
    file_path: Optional[str]
    file_name: Optional[str]
    mime_type: Optional[str]

    @classmethod
    def from_snapshot(cls, snapshot: Dict[str, Any]) -> "DocumentInfo":
        return cls(
            id=snapshot["id"],
            file_path=snapshot.get("file_path"),
            file_name=snapshot.get("file_name"),
            mime_type=snapshot.get("mime_type"),
        )


@dataclass
class ProcessingResult:
    """
    Outcome of a processing call.

    Attributes:
        routine: Routine that ran
        success: Whether processing succeeded
        data: Routine output (success only)
        error: Error message (failure only)
        processing_time_ms: Wall-clock duration
        metadata: documents_processed and the parameters used
    """
    routine: ProcessingRoutine
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    processing_time_ms: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)


class ProcessingService:
    """Dispatches documents to a simulated processing routine."""

    def __init__(
        self,
        defaults: Optional[ProcessingDefaultsLoader] = None,
        rng: Optional[random.Random] = None,
        simulate_delays: bool = True,
    ):
        """
        Args:
            defaults: Processing defaults (durations, categories, fields)
            rng: Random source for synthetic values
            simulate_delays: Disable to skip the simulated durations
        """
        self.defaults = defaults or get_processing_defaults_loader()
        self.rng = rng or random.Random()
        self.simulate_delays = simulate_delays

    async def process_documents(
        self,
        routine: ProcessingRoutine,
        documents: Sequence[DocumentInfo],
        parameters: Optional[Dict[str, Any]] = None,
    ) -> ProcessingResult:
        """
        Run a processing routine over a set of documents.

        Args:
            routine: Routine to run
            documents: Documents to process
            parameters: Routine parameters (routine specific)

        Returns:
            ProcessingResult (success=False on any processing error)
        """
        parameters = parameters or {}
        started = time.monotonic()

        logger.info(
            "processing.started",
            extra={"routine": getattr(routine, "value", routine), "documents": len(documents)},
        )

        try:
            handlers = {
                ProcessingRoutine.OCR: self._process_ocr,
                ProcessingRoutine.TEXT_EXTRACTION: self._process_text_extraction,
                ProcessingRoutine.CLASSIFICATION: self._process_classification,
                ProcessingRoutine.DATA_EXTRACTION: self._process_data_extraction,
            }
            handler = handlers.get(routine)
            if handler is None:
                raise ValueError(f"Unknown processing routine: {routine}")

            data = await handler(documents, parameters)
        except Exception as e:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            logger.error(
                "processing.failed",
                extra={"routine": getattr(routine, "value", routine), "error": str(e)},
            )
            return ProcessingResult(
                routine=routine,
                success=False,
                error=str(e),
                processing_time_ms=elapsed_ms,
            )

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "processing.completed",
            extra={"routine": routine.value, "duration_ms": elapsed_ms},
        )

        return ProcessingResult(
            routine=routine,
            success=True,
            data=data,
            processing_time_ms=elapsed_ms,
            metadata={
                "documents_processed": len(documents),
                "parameters": parameters,
            },
        )

    async def _simulate(self, routine: ProcessingRoutine) -> float:
        duration = self.defaults.get_duration_seconds(routine.value)
        if self.simulate_delays and duration > 0:
            await asyncio.sleep(duration)
        return duration

    async def _process_ocr(
        self, documents: Sequence[DocumentInfo], parameters: Dict[str, Any]
    ) -> Dict[str, Any]:
        duration = await self._simulate(ProcessingRoutine.OCR)
        language = parameters.get("language", self.defaults.get_default_language())
        confidence_threshold = parameters.get("confidence", 0.8)
        extract_tables = bool(parameters.get("extract_tables", False))

        extracted = [
            {
                "document_id": doc.id,
                "file_name": doc.file_name,
                "text": _ocr_text(doc.file_name),
                "confidence": 0.95,
                "word_count": 150,
                "language": language,
                "processing_details": {
                    "method": "simulated_ocr",
                    "confidence_threshold": confidence_threshold,
                    "extract_tables": extract_tables,
                },
            }
            for doc in documents
        ]

        return {
            "extracted_text": extracted,
            "total_documents": len(documents),
            "processing_time_seconds": duration,
            "language": language,
            "confidence_threshold": confidence_threshold,
            "tables_extracted": _sample_tables() if extract_tables else [],
        }

    async def _process_text_extraction(
        self, documents: Sequence[DocumentInfo], parameters: Dict[str, Any]
    ) -> Dict[str, Any]:
        await self._simulate(ProcessingRoutine.TEXT_EXTRACTION)
        preserve_formatting = bool(parameters.get("preserve_formatting", True))

        extracted = []
        for doc in documents:
            content = _extracted_content(doc.file_name)
            extracted.append({
                "document_id": doc.id,
                "file_name": doc.file_name,
                "content": content,
                "metadata": {
                    "format": doc.mime_type or "application/octet-stream",
                    "extraction_method": "direct_text",
                    "preserve_formatting": preserve_formatting,
                    "character_count": len(content),
                    "word_count": len(content.split()),
                    "line_count": content.count("\n") + 1,
                },
            })

        return {
            "extracted_content": extracted,
            "total_documents": len(documents),
            "preserve_formatting": preserve_formatting,
            "processing_method": "direct_text_extraction",
        }

    async def _process_classification(
        self, documents: Sequence[DocumentInfo], parameters: Dict[str, Any]
    ) -> Dict[str, Any]:
        await self._simulate(ProcessingRoutine.CLASSIFICATION)
        categories: List[str] = list(
            parameters.get("categories") or self.defaults.get_classification_categories()
        )
        threshold = float(
            parameters.get("confidence_threshold", self.defaults.get_confidence_threshold())
        )

        classifications = []
        for doc in documents:
            category = self.rng.choice(categories)
            confidence = round(self.rng.uniform(threshold, 0.99), 3)
            classifications.append({
                "document_id": doc.id,
                "file_name": doc.file_name,
                "category": category,
                "confidence": confidence,
                "above_threshold": confidence >= threshold,
                "alternatives": self._alternatives(categories, category),
                "classification_model": "simulated_classifier",
            })

        return {
            "classifications": classifications,
            "total_documents": len(documents),
            "categories_used": categories,
            "confidence_threshold": threshold,
            "model_version": "1.0.0",
        }

    async def _process_data_extraction(
        self, documents: Sequence[DocumentInfo], parameters: Dict[str, Any]
    ) -> Dict[str, Any]:
        await self._simulate(ProcessingRoutine.DATA_EXTRACTION)
        fields: List[str] = list(
            parameters.get("fields") or self.defaults.get_extraction_fields()
        )
        validate = bool(parameters.get("validate_data", True))

        extracted = [
            {
                "document_id": doc.id,
                "file_name": doc.file_name,
                "extracted_fields": self._extract_fields(fields, doc.id),
                "validation": self._validate_fields(fields) if validate else None,
                "extraction_confidence": 0.92,
                "processing_method": "structured_data_extraction",
            }
            for doc in documents
        ]

        return {
            "extracted_data": extracted,
            "total_documents": len(documents),
            "fields_extracted": fields,
            "validation_enabled": validate,
            "extraction_model": "simulated_extractor",
        }

    def _alternatives(self, categories: List[str], primary: str) -> List[Dict[str, Any]]:
        alternatives = [
            {"category": category, "confidence": round(self.rng.uniform(0.1, 0.8), 3)}
            for category in categories
            if category != primary
        ]
        alternatives.sort(key=lambda alt: alt["confidence"], reverse=True)
        return alternatives[:3]

    def _extract_fields(self, fields: List[str], document_id: int) -> Dict[str, str]:
        today = datetime.now(timezone.utc).date().isoformat()
        values = {
            "invoice_number": f"INV-{document_id:06d}",
            "amount": f"${self.rng.uniform(100, 10100):.2f}",
            "date": today,
            "vendor": f"Vendor {document_id}",
            "customer": f"Customer {document_id}",
            "description": f"Service or product description for document {document_id}",
        }
        return {name: values.get(name, f"Value for {name}") for name in fields}

    def _validate_fields(self, fields: List[str]) -> Dict[str, Dict[str, Any]]:
        # ~90% of simulated fields pass validation
        return {
            name: {
                "valid": self.rng.random() > 0.1,
                "confidence": round(self.rng.uniform(0.7, 0.99), 3),
                "validation_rules": [f"{name}_format_check", f"{name}_range_check"],
            }
            for name in fields
        }


def _ocr_text(file_name: Optional[str]) -> str:
    today = datetime.now(timezone.utc).date().isoformat()
    return (
        f"Extracted text from {file_name}:\n\n"
        "This is sample text recognized from the scanned document.\n"
        f"Date: {today}\n"
        "Page Count: 3\n"
        "Language: English\n"
    )


def _extracted_content(file_name: Optional[str]) -> str:
    return (
        f"Extracted content from {file_name}:\n\n"
        "Main document content, headers and footers, tables and metadata\n"
        "captured by direct text extraction.\n"
        "Status: Processed"
    )


def _sample_tables() -> List[Dict[str, Any]]:
    return [
        {
            "table_id": 1,
            "rows": 5,
            "columns": 4,
            "data": [
                ["Item", "Description", "Quantity", "Price"],
                ["1", "Product A", "2", "$100.00"],
                ["2", "Product B", "1", "$150.00"],
                ["3", "Service C", "3", "$75.00"],
                ["", "", "Total", "$475.00"],
            ],
        }
    ]
