"""Loads an uploaded document and runs it through preprocessing and OCR."""

import io
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from src.preprocessing.pipeline import PreprocessingPipeline, QualityMetrics
from src.utils.config import AppConfig
from src.utils.logger import get_logger

from .pdf_handler import PDFHandler, is_pdf
from .tesseract_engine import OCRResult, ProgressCallback, TesseractEngine

logger = get_logger(__name__)

PAGE_SEPARATOR = "\n\n--- Page Break ---\n\n"


@dataclass
class PageResult:
    """OCR output and image quality for a single page."""

    page_number: int
    ocr_result: OCRResult
    quality_metrics: QualityMetrics


@dataclass
class DocumentResult:
    """OCR output for a whole document."""

    source_file: str
    page_count: int
    pages: list[PageResult]
    combined_text: str

    @property
    def confidence(self) -> float:
        """Mean OCR confidence across pages."""
        if not self.pages:
            return 0.0
        return sum(p.ocr_result.confidence for p in self.pages) / len(self.pages)


class DocumentProcessor:
    """Image/PDF loading, preprocessing, and Tesseract OCR in one place.

    Args:
        config: Application configuration object.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.pdf_handler = PDFHandler(
            dpi=config.ocr.pdf_dpi, max_pages=config.ocr.max_pages
        )
        self.preprocessing = PreprocessingPipeline(config.preprocessing)
        self.ocr_engine = TesseractEngine(
            tesseract_cmd=config.ocr.tesseract_cmd,
            default_lang=config.ocr.default_lang,
        )

    def load_images(self, source: Path | bytes) -> list[np.ndarray]:
        """Load the pages of a document as RGB numpy arrays.

        Args:
            source: Path to a document file, or raw file bytes.

        Returns:
            One image per page. Image files always have one page.

        Raises:
            ValueError: If the content is neither a PDF nor a readable image.
        """
        if is_pdf(source):
            return self.pdf_handler.pdf_to_images(source)

        try:
            fp = io.BytesIO(source) if isinstance(source, bytes) else source
            img = Image.open(fp)
            return [np.array(img.convert("RGB"))]
        except UnidentifiedImageError as exc:
            raise ValueError(f"Unreadable image: {exc}") from exc

    def process(
        self,
        source: Path | bytes,
        filename: str = "document",
        progress: ProgressCallback | None = None,
    ) -> DocumentResult:
        """OCR a document from a file path or bytes.

        Args:
            source: Path to a document file, or raw file bytes.
            filename: Display name for the source document.
            progress: Optional callback receiving percent complete.

        Returns:
            Per-page OCR results and the combined text.
        """
        logger.info("Processing document: %s", filename)
        images = self.load_images(source)

        processed: list[np.ndarray] = []
        metrics: list[QualityMetrics] = []
        for image in images:
            page_image, page_metrics = self.preprocessing.process(image)
            processed.append(page_image)
            metrics.append(page_metrics)

        ocr_results = self.ocr_engine.extract_pages(
            processed, psm=self.config.ocr.psm, progress=progress
        )
        pages = [
            PageResult(page_number=i, ocr_result=result, quality_metrics=quality)
            for i, (result, quality) in enumerate(zip(ocr_results, metrics), 1)
        ]

        logger.info("Processed %d pages from %s", len(pages), filename)
        return DocumentResult(
            source_file=filename,
            page_count=len(pages),
            pages=pages,
            combined_text=PAGE_SEPARATOR.join(p.ocr_result.text for p in pages),
        )
