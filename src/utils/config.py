"""Configuration management for the document verification service.

Loads and validates YAML configuration with sensible defaults for
uploads, preprocessing, OCR, extraction, validation, and verification.
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")


class UploadConfig(BaseModel):
    """Limits applied to uploaded document files."""

    max_file_size_mb: float = 10.0
    allowed_content_types: list[str] = Field(
        default_factory=lambda: [
            "image/jpeg",
            "image/png",
            "image/jpg",
            "application/pdf",
        ]
    )


class PreprocessingConfig(BaseModel):
    """Configuration for image preprocessing before OCR."""

    min_width: int = 1000
    deskew_enabled: bool = False
    denoise_enabled: bool = True
    contrast_enabled: bool = True
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 8
    binarize_enabled: bool = True
    binarize_method: str = "adaptive"


class OCRConfig(BaseModel):
    """Configuration for the Tesseract OCR engine."""

    tesseract_cmd: str | None = None
    default_lang: str = "eng"
    psm: int = 3
    pdf_dpi: int = 300
    max_pages: int = 2


class AIConfig(BaseModel):
    """Configuration for generative AI field extraction."""

    api_key: str | None = None
    model_name: str = "gemini-1.5-flash"
    confidence: float = 0.9


class ExtractionConfig(BaseModel):
    """Configuration for field extraction."""

    engine: str = "auto"
    confidence_threshold: float = 0.0


class ValidationConfig(BaseModel):
    """Configuration for the plausibility rules engine."""

    rules_path: str = "configs/validation_rules.yaml"


class VerificationConfig(BaseModel):
    """Configuration for the stand-in verifiers."""

    mode: str = "simulated"
    delay_seconds: float = 2.0
    failure_rate: float = 0.3
    seed: int | None = None
    registry_path: str = "configs/registry.yaml"


class ServerConfig(BaseModel):
    """Bind address for the API server."""

    host: str = "0.0.0.0"
    port: int = 8000


class AppConfig(BaseModel):
    """Top-level application configuration."""

    uploads: UploadConfig = Field(default_factory=UploadConfig)
    preprocessing: PreprocessingConfig = Field(default_factory=PreprocessingConfig)
    ocr: OCRConfig = Field(default_factory=OCRConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    verification: VerificationConfig = Field(default_factory=VerificationConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    log_level: str = "INFO"


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    """Fill the AI API key from the environment when the file leaves it unset."""
    if config.ai.api_key:
        return config
    for name in _API_KEY_ENV_VARS:
        value = os.environ.get(name)
        if value:
            logger.debug("Using AI API key from %s", name)
            config.ai.api_key = value
            break
    return config


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        return _apply_env_overrides(AppConfig(**raw))

    logger.info("No config file found at %s, using defaults", path)
    return _apply_env_overrides(AppConfig())
