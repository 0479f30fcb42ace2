"""PDF rasterisation for scanned identity documents and marksheets."""

from pathlib import Path

import numpy as np
from pdf2image import convert_from_bytes, convert_from_path

from src.utils.logger import get_logger

logger = get_logger(__name__)


def is_pdf(source: Path | bytes) -> bool:
    """Return True for ``.pdf`` paths and bytes starting with the PDF magic."""
    if isinstance(source, bytes):
        return source[:4] == b"%PDF"
    return Path(source).suffix.lower() == ".pdf"


class PDFHandler:
    """Converts the first pages of a PDF to RGB numpy arrays.

    Args:
        dpi: Rendering resolution.
        max_pages: Pages to render. ID cards and marksheets carry the
            fields on their first page or two.
    """

    def __init__(self, dpi: int = 300, max_pages: int = 2) -> None:
        self.dpi = dpi
        self.max_pages = max_pages

    def pdf_to_images(self, pdf_source: Path | bytes) -> list[np.ndarray]:
        """Render a PDF to page images.

        Args:
            pdf_source: Path to a PDF file or raw PDF bytes.

        Returns:
            Page images as RGB numpy arrays.

        Raises:
            FileNotFoundError: If a path is given and the file does not exist.
            RuntimeError: If PDF conversion fails.
        """
        options = {"dpi": self.dpi, "first_page": 1, "last_page": self.max_pages}
        try:
            if isinstance(pdf_source, str | Path):
                path = Path(pdf_source)
                if not path.exists():
                    raise FileNotFoundError(f"PDF file not found: {path}")
                pil_images = convert_from_path(str(path), **options)
            else:
                pil_images = convert_from_bytes(pdf_source, **options)
        except FileNotFoundError:
            raise
        except Exception as exc:
            raise RuntimeError(f"PDF conversion failed: {exc}") from exc

        images = [np.array(img.convert("RGB")) for img in pil_images]
        logger.info("Rendered %d PDF pages at %d DPI", len(images), self.dpi)
        return images
