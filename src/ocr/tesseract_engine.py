"""Tesseract OCR wrapper returning page text and a confidence score."""

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
import pytesseract
from PIL import Image

from src.utils.logger import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass
class OCRWord:
    """A recognised word and its confidence (0.0 to 1.0)."""

    text: str
    confidence: float
    line_num: int


@dataclass
class OCRResult:
    """OCR output for one page."""

    text: str
    words: list[OCRWord]
    language: str
    confidence: float


class TesseractEngine:
    """Runs Tesseract on page images.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the one on ``PATH``.
        default_lang: Tesseract language code, e.g. ``"eng"`` or ``"eng+hin"``.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        default_lang: str = "eng",
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.default_lang = default_lang

    def extract_text(
        self,
        image: np.ndarray,
        lang: str | None = None,
        psm: int = 3,
    ) -> OCRResult:
        """Recognise the text on a page.

        Args:
            image: Page image as a numpy array.
            lang: Language code. Defaults to the engine default.
            psm: Tesseract page segmentation mode.

        Returns:
            Page text, the words Tesseract was confident about, and the
            mean word confidence.

        Raises:
            RuntimeError: If Tesseract is missing or fails on the image.
        """
        lang = lang or self.default_lang
        config = f"--psm {psm}"
        pil_image = Image.fromarray(image)

        try:
            text = pytesseract.image_to_string(pil_image, lang=lang, config=config)
            data = pytesseract.image_to_data(
                pil_image,
                lang=lang,
                config=config,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractNotFoundError, pytesseract.TesseractError) as exc:
            raise RuntimeError(f"Tesseract OCR failed: {exc}") from exc

        words: list[OCRWord] = []
        for word_text, conf, line_num in zip(
            data["text"], data["conf"], data["line_num"], strict=False
        ):
            conf = float(conf)
            word_text = word_text.strip()
            if conf > 0 and word_text:
                words.append(OCRWord(word_text, conf / 100.0, int(line_num)))

        confidence = sum(w.confidence for w in words) / len(words) if words else 0.0
        logger.info(
            "OCR recognised %d words with average confidence %.2f",
            len(words),
            confidence,
        )
        return OCRResult(text=text, words=words, language=lang, confidence=confidence)

    def extract_pages(
        self,
        images: list[np.ndarray],
        lang: str | None = None,
        psm: int = 3,
        progress: ProgressCallback | None = None,
    ) -> list[OCRResult]:
        """Recognise several pages, reporting progress as a percentage.

        Args:
            images: Page images, in order.
            lang: Language code. Defaults to the engine default.
            psm: Tesseract page segmentation mode.
            progress: Called with 0 before the first page and with the
                completed percentage after each page.

        Returns:
            One OCR result per page.
        """
        if progress:
            progress(0)
        results: list[OCRResult] = []
        for i, image in enumerate(images, 1):
            results.append(self.extract_text(image, lang=lang, psm=psm))
            if progress:
                progress(round(i * 100 / len(images)))
        return results
