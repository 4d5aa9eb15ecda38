"""
Processing defaults configuration loader.

Loads simulated processing durations and per-type parameter defaults
from config/processing_defaults.yml.

Consumers:
  - ProcessingService: simulated OCR, text extraction, classification
    and data extraction routines

Usage:
    from docflow.config.processing_defaults import get_processing_defaults_loader

    loader = get_processing_defaults_loader()
    loader.get_duration_seconds("ocr")  # 2.0
    loader.get_classification_categories()
"""

import logging
import os
from pathlib import Path
from threading import Lock
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

_FALLBACK_DURATIONS = {
    "ocr": 2.0,
    "text_extraction": 1.5,
    "classification": 1.0,
    "data_extraction": 1.8,
}
_FALLBACK_CATEGORIES = ["invoice", "receipt", "contract", "report"]
_FALLBACK_FIELDS = ["invoice_number", "amount", "date", "vendor"]
_FALLBACK_CONFIDENCE_THRESHOLD = 0.7


class ProcessingDefaultsLoader:
    """
    Thread-safe singleton loader for config/processing_defaults.yml.

    Every getter falls back to built-in defaults when the file or the
    key is missing.
    """

    _instance: Optional["ProcessingDefaultsLoader"] = None
    _lock = Lock()

    def __new__(cls, config_path: Optional[str] = None):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None):
        if self._initialized:
            return

        self._config_path = config_path or os.getenv("PROCESSING_DEFAULTS_PATH")
        self._raw: Dict[str, Any] = {}
        self._load_lock = Lock()

        self._load()
        self._initialized = True

    def _resolve_path(self) -> Path:
        if self._config_path:
            return Path(self._config_path)

        candidates = [
            Path(__file__).parent.parent.parent.parent / "config" / "processing_defaults.yml",
            Path(os.getcwd()) / "config" / "processing_defaults.yml",
            Path(os.getcwd()) / ".." / "config" / "processing_defaults.yml",
        ]

        for p in candidates:
            resolved = p.resolve()
            if resolved.exists():
                return resolved

        raise FileNotFoundError(
            f"processing_defaults.yml not found in: {[str(p) for p in candidates]}"
        )

    def _load(self) -> None:
        with self._load_lock:
            try:
                path = self._resolve_path()
                logger.info("Loading processing defaults from %s", path)

                with open(path, "r") as f:
                    self._raw = yaml.safe_load(f) or {}

                logger.info(
                    "Loaded processing defaults: durations=%s",
                    list(self._raw.get("durations_seconds", {}).keys()),
                )
            except FileNotFoundError:
                logger.warning(
                    "processing_defaults.yml not found, using fallback defaults"
                )
                self._raw = {}

    def get_duration_seconds(self, routine: str) -> float:
        """
        Return the simulated duration for a processing routine.

        Args:
            routine: 'ocr', 'text_extraction', 'classification' or 'data_extraction'

        Returns:
            Duration in seconds (0 disables the pause)
        """
        durations = self._raw.get("durations_seconds", {})
        return float(durations.get(routine, _FALLBACK_DURATIONS.get(routine, 0.0)))

    def get_classification_categories(self) -> List[str]:
        return list(
            self._raw.get("classification", {}).get("categories", _FALLBACK_CATEGORIES)
        )

    def get_confidence_threshold(self) -> float:
        return float(
            self._raw.get("classification", {}).get(
                "confidence_threshold", _FALLBACK_CONFIDENCE_THRESHOLD
            )
        )

    def get_extraction_fields(self) -> List[str]:
        return list(
            self._raw.get("data_extraction", {}).get("fields", _FALLBACK_FIELDS)
        )

    def get_default_language(self) -> str:
        return str(self._raw.get("ocr", {}).get("language", "en"))


def get_processing_defaults_loader() -> ProcessingDefaultsLoader:
    """Get the singleton ProcessingDefaultsLoader instance."""
    return ProcessingDefaultsLoader()


def reset_processing_defaults_loader() -> None:
    """Reset the singleton (for testing)."""
    ProcessingDefaultsLoader._instance = None
