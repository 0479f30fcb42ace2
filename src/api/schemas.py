"""Pydantic request/response schemas for the FastAPI endpoints."""

from typing import Any

from pydantic import BaseModel, Field

from src.documents.fields import DocumentType
from src.extraction.hybrid import ExtractionEngine
from src.verification.verifier import VerificationStatus


class FieldSpecResponse(BaseModel):
    """One input field of a document form."""

    key: str
    label: str
    placeholder: str
    max_length: int | None = None
    input_type: str = "text"


class DocumentInfo(BaseModel):
    """A supported document type and its form fields."""

    document_type: DocumentType
    title: str
    fields: list[FieldSpecResponse]


class DocumentsResponse(BaseModel):
    """Response schema listing the supported document types."""

    documents: list[DocumentInfo]


class ExtractedFieldResponse(BaseModel):
    """Response schema for a single extracted field."""

    field_name: str
    value: str
    confidence: float
    source: str


class ExtractionResponse(BaseModel):
    """Response schema for a document extraction request."""

    success: bool
    document_id: str
    document_type: DocumentType
    engine: ExtractionEngine
    filename: str
    file_size_mb: float
    fields: list[ExtractedFieldResponse]
    form: dict[str, str]
    raw_text: str
    overall_confidence: float
    processing_time_ms: float
    page_count: int = 1


class FormRequest(BaseModel):
    """A filled-in document form."""

    document_type: DocumentType
    fields: dict[str, str] = Field(default_factory=dict)


class ValidationResultResponse(BaseModel):
    """Response schema for a single plausibility check."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str


class ValidationResponse(BaseModel):
    """Response schema for a plausibility report."""

    document_type: DocumentType
    all_valid: bool
    results: list[ValidationResultResponse]
    warnings: list[str] = Field(default_factory=list)


class VerificationResponse(BaseModel):
    """Response schema for a verification request."""

    status: VerificationStatus
    message: str
    details: dict[str, Any]


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
    ai_available: bool
