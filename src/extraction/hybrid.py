"""Extraction pipeline choosing between OCR rules and generative AI.

Three engines are supported:

* ``ocr``: Tesseract text scraped with the regex rules.
* ``ai``: the page image is sent to Gemini.
* ``auto``: AI first when an API key is configured; OCR rules fill the
  fields AI left empty, and take over entirely if the AI call fails.
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from src.documents.fields import DocumentType, normalize_fields
from src.ocr.document_processor import DocumentProcessor, DocumentResult
from src.ocr.tesseract_engine import ProgressCallback
from src.utils.config import AppConfig
from src.utils.logger import get_logger

from .ai_extractor import AIExtractedField, GeminiExtractor
from .rule_extractor import ExtractedField, RuleExtractor

logger = get_logger(__name__)


class ExtractionEngine(StrEnum):
    """Which extraction engine to run."""

    OCR = "ocr"
    AI = "ai"
    AUTO = "auto"


@dataclass
class HybridField:
    """A field produced by the extraction pipeline."""

    field_name: str
    value: str
    confidence: float
    source: str
    ai_value: str | None = None
    rule_value: str | None = None


@dataclass
class ExtractionResult:
    """Complete extraction result for one document."""

    document_type: str
    engine: str
    fields: list[HybridField]
    raw_text: str
    page_count: int = 1
    overall_confidence: float = 0.0

    def as_form(self) -> dict[str, str]:
        """Return the fields as ``{field_name: value}``."""
        return {f.field_name: f.value for f in self.fields}


def merge_into_form(form: dict[str, str], extracted: dict[str, str]) -> dict[str, str]:
    """Overlay extracted values onto a form; keys not extracted are kept."""
    return {**form, **extracted}


class HybridExtractor:
    """Runs OCR and/or AI extraction and merges the results.

    Args:
        config: Application configuration.
        processor: Document processor for loading and OCR. Built from
            ``config`` when omitted.
    """

    def __init__(
        self, config: AppConfig, processor: DocumentProcessor | None = None
    ) -> None:
        self.config = config
        self.processor = processor or DocumentProcessor(config)
        self.rule_extractor = RuleExtractor()
        self._ai_extractor: GeminiExtractor | None = None
        self.confidence_threshold = config.extraction.confidence_threshold

    @property
    def ai_available(self) -> bool:
        return bool(self.config.ai.api_key)

    def _get_ai_extractor(self) -> GeminiExtractor:
        """Lazily create the Gemini client on first use."""
        if self._ai_extractor is None:
            self._ai_extractor = GeminiExtractor(self.config.ai)
        return self._ai_extractor

    def extract(
        self,
        source: Path | bytes,
        document_type: DocumentType | str,
        engine: ExtractionEngine | str | None = None,
        filename: str = "document",
        progress: ProgressCallback | None = None,
    ) -> ExtractionResult:
        """Extract form fields from a document image or PDF.

        Args:
            source: Document path or raw bytes.
            document_type: Which document's fields to extract.
            engine: Engine to use. Defaults to the configured engine.
            filename: Display name for logging.
            progress: Optional OCR progress callback (percent).

        Returns:
            Normalized extracted fields with their sources.

        Raises:
            ValueError: If ``engine`` is ``ai`` and no API key is configured.
            RuntimeError: If the selected engine fails with no fallback.
        """
        document_type = DocumentType(document_type)
        engine = ExtractionEngine(engine or self.config.extraction.engine)

        ai_fields: list[AIExtractedField] = []
        if engine == ExtractionEngine.AI:
            ai_fields = self._run_ai(source, document_type)
        elif engine == ExtractionEngine.AUTO and self.ai_available:
            try:
                ai_fields = self._run_ai(source, document_type)
            except RuntimeError as exc:
                logger.warning("AI extraction failed, falling back to OCR: %s", exc)

        rule_fields: list[ExtractedField] = []
        doc_result: DocumentResult | None = None
        needs_ocr = engine == ExtractionEngine.OCR or (
            engine == ExtractionEngine.AUTO
            and len(ai_fields) < len(self.rule_extractor.patterns[document_type])
        )
        if needs_ocr:
            doc_result = self.processor.process(source, filename, progress=progress)
            rule_fields = self.rule_extractor.extract(
                doc_result.combined_text, document_type
            )

        ocr_confidence = doc_result.confidence if doc_result else 1.0
        merged = self._merge_fields(
            document_type, rule_fields, ai_fields, ocr_confidence
        )
        overall = sum(f.confidence for f in merged) / len(merged) if merged else 0.0

        logger.info(
            "Extracted %d %s fields from %s using %s",
            len(merged),
            document_type,
            filename,
            engine,
        )
        return ExtractionResult(
            document_type=document_type.value,
            engine=engine.value,
            fields=merged,
            raw_text=doc_result.combined_text if doc_result else "",
            page_count=doc_result.page_count if doc_result else 1,
            overall_confidence=overall,
        )

    def _run_ai(
        self, source: Path | bytes, document_type: DocumentType
    ) -> list[AIExtractedField]:
        """Send the first page of the document to the AI extractor."""
        images = self.processor.load_images(source)
        if not images:
            return []
        return self._get_ai_extractor().extract(images[0], document_type)

    def _merge_fields(
        self,
        document_type: DocumentType,
        rule_fields: list[ExtractedField],
        ai_fields: list[AIExtractedField],
        ocr_confidence: float,
    ) -> list[HybridField]:
        """Combine AI and rule fields; AI values win where both exist.

        Args:
            document_type: Document the fields belong to.
            rule_fields: Results from the OCR rules.
            ai_fields: Results from the AI extractor.
            ocr_confidence: Mean OCR confidence scaling rule confidences.

        Returns:
            Normalized fields at or above the confidence threshold.
        """
        merged: dict[str, HybridField] = {}

        for rf in rule_fields:
            merged[rf.field_name] = HybridField(
                field_name=rf.field_name,
                value=rf.value,
                confidence=rf.confidence * ocr_confidence,
                source="rule",
                rule_value=rf.value,
            )

        for af in ai_fields:
            existing = merged.get(af.field_name)
            if existing is None:
                merged[af.field_name] = HybridField(
                    field_name=af.field_name,
                    value=af.value,
                    confidence=af.confidence,
                    source="ai",
                    ai_value=af.value,
                )
                continue
            existing.ai_value = af.value
            existing.source = "hybrid"
            existing.value = af.value
            existing.confidence = max(existing.confidence, af.confidence)

        normalized = normalize_fields(
            document_type, {k: f.value for k, f in merged.items()}
        )
        fields: list[HybridField] = []
        for key, value in normalized.items():
            field = merged[key]
            field.value = value
            if value and field.confidence >= self.confidence_threshold:
                fields.append(field)
        return fields
