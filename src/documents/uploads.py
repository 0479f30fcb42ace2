"""Acceptance checks for uploaded document files."""

from dataclasses import dataclass
from pathlib import PurePath

from src.utils.config import UploadConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

_EXTENSION_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".pdf": "application/pdf",
}

# Content types that say nothing about the file; fall back to the extension.
_GENERIC_TYPES = {"", "application/octet-stream"}


class UploadRejected(ValueError):
    """Raised when an uploaded file is not accepted for processing.

    Args:
        title: Short summary suitable for a notification heading.
        description: What the user should do instead.
        reason: Machine-readable reason, ``"type"`` or ``"size"``.
    """

    def __init__(self, title: str, description: str, reason: str) -> None:
        super().__init__(description)
        self.title = title
        self.description = description
        self.reason = reason


@dataclass
class UploadInfo:
    """Summary of an accepted upload."""

    filename: str
    content_type: str
    size_bytes: int

    @property
    def size_mb(self) -> float:
        """File size in megabytes, rounded to two decimals."""
        return round(self.size_bytes / 1024 / 1024, 2)

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")


def resolve_content_type(filename: str, content_type: str | None) -> str:
    """Pick the effective content type, using the extension for generic types."""
    content_type = (content_type or "").lower()
    if content_type in _GENERIC_TYPES:
        return _EXTENSION_TYPES.get(PurePath(filename).suffix.lower(), content_type)
    return content_type


def check_upload(
    filename: str,
    content_type: str | None,
    size_bytes: int,
    config: UploadConfig | None = None,
) -> UploadInfo:
    """Validate the type and size of an uploaded file.

    Args:
        filename: Name of the uploaded file.
        content_type: MIME type reported by the client, if any.
        size_bytes: Size of the file content.
        config: Upload limits. Defaults to the standard limits.

    Returns:
        Information about the accepted upload.

    Raises:
        UploadRejected: If the file type or size is not accepted.
    """
    config = config or UploadConfig()
    effective_type = resolve_content_type(filename, content_type)

    if effective_type not in config.allowed_content_types:
        logger.warning("Rejected upload %s with type %r", filename, content_type)
        raise UploadRejected(
            "Invalid file type",
            "Please upload a JPG, PNG, or PDF file",
            "type",
        )

    max_bytes = int(config.max_file_size_mb * 1024 * 1024)
    if size_bytes > max_bytes:
        logger.warning("Rejected upload %s of %d bytes", filename, size_bytes)
        raise UploadRejected(
            "File too large",
            f"Please upload a file smaller than {config.max_file_size_mb:g}MB",
            "size",
        )

    return UploadInfo(
        filename=filename, content_type=effective_type, size_bytes=size_bytes
    )
