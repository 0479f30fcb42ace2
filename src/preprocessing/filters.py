"""OpenCV filters for cleaning up photographed identity documents.

Phone photos of ID cards are small, unevenly lit, and often slightly
rotated. These filters upscale, denoise, even out contrast, binarize,
and straighten them before Tesseract sees them.
"""

import cv2
import numpy as np

from src.utils.logger import get_logger

logger = get_logger(__name__)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an RGB/RGBA image to grayscale; grayscale passes through."""
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    return image


def upscale(image: np.ndarray, min_width: int = 1000) -> np.ndarray:
    """Enlarge an image so it is at least ``min_width`` pixels wide.

    Args:
        image: Input image.
        min_width: Target minimum width. Wider images are returned as-is.

    Returns:
        The resized image, keeping the aspect ratio.
    """
    height, width = image.shape[:2]
    if width == 0 or width >= min_width:
        return image
    scale = min_width / width
    result = cv2.resize(
        image,
        (min_width, int(round(height * scale))),
        interpolation=cv2.INTER_CUBIC,
    )
    logger.debug("Upscaled image from %dpx to %dpx wide", width, min_width)
    return result


def denoise(image: np.ndarray, d: int = 9, sigma: int = 75) -> np.ndarray:
    """Bilateral filter: smooths paper texture while keeping glyph edges."""
    return cv2.bilateralFilter(image, d, sigma, sigma)


def apply_clahe(
    image: np.ndarray, clip_limit: float = 2.0, tile_size: int = 8
) -> np.ndarray:
    """Even out lighting with CLAHE on a grayscale image."""
    clahe = cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=(tile_size, tile_size))
    return clahe.apply(to_gray(image))


def binarize(image: np.ndarray, method: str = "adaptive") -> np.ndarray:
    """Threshold an image to black text on white.

    Args:
        image: Input image (color or grayscale).
        method: ``"adaptive"`` (Gaussian, handles glare) or ``"otsu"``.

    Returns:
        Binary image with values 0 or 255.

    Raises:
        ValueError: If the method is not supported.
    """
    gray = to_gray(image)
    if method == "adaptive":
        return cv2.adaptiveThreshold(
            gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 31, 10
        )
    if method == "otsu":
        _, result = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return result
    raise ValueError(f"Unsupported binarize method: {method}")


def detect_skew_angle(image: np.ndarray) -> float:
    """Estimate rotation in degrees from the dominant Hough line angle."""
    edges = cv2.Canny(to_gray(image), 50, 150, apertureSize=3)
    lines = cv2.HoughLinesP(
        edges, 1, np.pi / 180, 100, minLineLength=100, maxLineGap=10
    )
    if lines is None:
        return 0.0
    angles = [
        np.degrees(np.arctan2(y2 - y1, x2 - x1)) for x1, y1, x2, y2 in lines[:, 0]
    ]
    # Ignore vertical strokes; card text lines are near horizontal.
    angles = [a for a in angles if abs(a) < 45]
    return float(np.median(angles)) if angles else 0.0


def deskew(image: np.ndarray, angle_threshold: float = 0.5) -> np.ndarray:
    """Rotate an image to undo small skews; below the threshold it is untouched."""
    angle = detect_skew_angle(image)
    if abs(angle) < angle_threshold:
        return image

    height, width = image.shape[:2]
    matrix = cv2.getRotationMatrix2D((width // 2, height // 2), angle, 1.0)
    logger.info("Deskewing image by %.2f degrees", angle)
    return cv2.warpAffine(
        image,
        matrix,
        (width, height),
        flags=cv2.INTER_CUBIC,
        borderMode=cv2.BORDER_REPLICATE,
    )
