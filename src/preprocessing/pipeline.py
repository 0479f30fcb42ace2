"""Configurable preprocessing pipeline run on every page before OCR."""

from dataclasses import dataclass

import cv2
import numpy as np

from src.utils.config import PreprocessingConfig
from src.utils.logger import get_logger

from .filters import apply_clahe, binarize, denoise, deskew, to_gray, upscale

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def calculate_sharpness(image: np.ndarray) -> float:
    """Laplacian variance; blurry phone photos score low."""
    return float(cv2.Laplacian(to_gray(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Standard deviation of grayscale intensities."""
    return float(to_gray(image).std())


class PreprocessingPipeline:
    """Applies the enabled preprocessing steps in a fixed order.

    The order is upscale, deskew, denoise, contrast, binarize. The output
    is always a single-channel image.

    Args:
        config: Which steps to run and their parameters.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def process(self, image: np.ndarray) -> tuple[np.ndarray, QualityMetrics]:
        """Preprocess one page image.

        Args:
            image: Page image (RGB, RGBA, or grayscale).

        Returns:
            Tuple of (processed grayscale image, quality metrics).
        """
        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(image),
            sharpness_after=0.0,
            contrast_before=calculate_contrast(image),
            contrast_after=0.0,
        )

        result = to_gray(upscale(image, self.config.min_width))

        if self.config.deskew_enabled:
            result = deskew(result)
        if self.config.denoise_enabled:
            result = denoise(result)
        if self.config.contrast_enabled:
            result = apply_clahe(
                result,
                clip_limit=self.config.clahe_clip_limit,
                tile_size=self.config.clahe_tile_size,
            )
        if self.config.binarize_enabled:
            result = binarize(result, self.config.binarize_method)

        metrics.sharpness_after = calculate_sharpness(result)
        metrics.contrast_after = calculate_contrast(result)
        logger.debug(
            "Preprocessed page: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return result, metrics
