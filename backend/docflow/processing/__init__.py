"""Simulated document processing routines."""

from docflow.processing.service import (
    DocumentInfo,
    ProcessingResult,
    ProcessingRoutine,
    ProcessingService,
)

__all__ = [
    "DocumentInfo",
    "ProcessingResult",
    "ProcessingRoutine",
    "ProcessingService",
]
