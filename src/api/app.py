"""FastAPI application for the document verification service.

Provides REST endpoints for the document field catalog, OCR/AI field
extraction from uploads, plausibility checks, and verification.
"""

import shutil
import time
import uuid
from pathlib import Path
from typing import Annotated

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from src.documents.fields import (
    DOCUMENT_FIELDS,
    DOCUMENT_TITLES,
    DocumentType,
    normalize_fields,
)
from src.documents.uploads import UploadRejected, check_upload
from src.extraction.hybrid import ExtractionEngine, HybridExtractor
from src.utils.config import AppConfig, load_config
from src.utils.logger import get_logger
from src.validation.rules_engine import FormValidationError, RulesEngine
from src.verification.service import VerificationService, build_verifier

from .schemas import (
    DocumentInfo,
    DocumentsResponse,
    ExtractedFieldResponse,
    ExtractionResponse,
    FieldSpecResponse,
    FormRequest,
    HealthResponse,
    ValidationResponse,
    ValidationResultResponse,
    VerificationResponse,
)

logger = get_logger(__name__)

VERSION = "1.0.0"

app = FastAPI(
    title="Document Verification API",
    description="Extract and verify Aadhar, PAN, and marksheet details",
    version=VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_extractor(config: AppConfig) -> HybridExtractor:
    """Build the extraction pipeline from a loaded configuration."""
    return HybridExtractor(config)


def _get_rules_engine() -> RulesEngine:
    """Build the plausibility rules engine from the current configuration."""
    return RulesEngine(Path(load_config().validation.rules_path))


def _get_verification_service() -> VerificationService:
    """Build the verification service from the current configuration."""
    return VerificationService(build_verifier(load_config()))


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        tesseract_available=shutil.which("tesseract") is not None,
        ai_available=bool(load_config().ai.api_key),
    )


@app.get("/documents", response_model=DocumentsResponse)
async def list_documents() -> DocumentsResponse:
    """List the supported document types and their form fields."""
    return DocumentsResponse(
        documents=[
            DocumentInfo(
                document_type=doc,
                title=DOCUMENT_TITLES[doc],
                fields=[
                    FieldSpecResponse(
                        key=spec.key,
                        label=spec.label,
                        placeholder=spec.placeholder,
                        max_length=spec.max_length,
                        input_type=spec.input_type,
                    )
                    for spec in specs
                ],
            )
            for doc, specs in DOCUMENT_FIELDS.items()
        ]
    )


@app.post("/extract", response_model=ExtractionResponse)
async def extract_document(
    file: Annotated[UploadFile, File(...)],
    document_type: Annotated[DocumentType, Query()],
    engine: Annotated[ExtractionEngine | None, Query()] = None,
) -> ExtractionResponse:
    """Extract form fields from an uploaded document image or PDF.

    Args:
        file: Uploaded JPG, PNG, or PDF file, within the configured size limit.
        document_type: Which document's fields to extract.
        engine: ``ocr``, ``ai``, or ``auto``. Defaults to the configured engine.

    Returns:
        Extracted fields and the form values they fill in.
    """
    start_time = time.time()
    filename = file.filename or "document"
    content = await file.read()
    config = load_config()

    try:
        upload = check_upload(
            filename, file.content_type, len(content), config.uploads
        )
    except UploadRejected as exc:
        status_code = 413 if exc.reason == "size" else 400
        raise HTTPException(
            status_code=status_code,
            detail={"title": exc.title, "description": exc.description},
        ) from exc

    try:
        extractor = _get_extractor(config)
        result = extractor.extract(content, document_type, engine, filename=filename)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("Extraction failed for %s: %s", filename, exc)
        raise HTTPException(
            status_code=500,
            detail="Could not extract text from document. "
            "Please enter details manually.",
        ) from exc

    return ExtractionResponse(
        success=True,
        document_id=str(uuid.uuid4()),
        document_type=document_type,
        engine=result.engine,
        filename=filename,
        file_size_mb=upload.size_mb,
        fields=[
            ExtractedFieldResponse(
                field_name=f.field_name,
                value=f.value,
                confidence=round(f.confidence, 3),
                source=f.source,
            )
            for f in result.fields
        ],
        form=result.as_form(),
        raw_text=result.raw_text,
        overall_confidence=round(result.overall_confidence, 3),
        processing_time_ms=(time.time() - start_time) * 1000,
        page_count=result.page_count,
    )


@app.post("/validate", response_model=ValidationResponse)
async def validate_form(request: FormRequest) -> ValidationResponse:
    """Run the plausibility checks on a filled-in form.

    Values are normalized the same way as for verification first.
    """
    fields = normalize_fields(request.document_type, request.fields)
    report = _get_rules_engine().validate(fields, request.document_type)
    return ValidationResponse(
        document_type=request.document_type,
        all_valid=report.all_valid,
        results=[
            ValidationResultResponse(
                field_name=r.field_name,
                is_valid=r.is_valid,
                message=r.message,
                rule_name=r.rule_name,
            )
            for r in report.results
        ],
        warnings=report.warnings,
    )


@app.post("/verify", response_model=VerificationResponse)
async def verify_document(request: FormRequest) -> VerificationResponse:
    """Verify a filled-in form with the configured verifier.

    A blank required field is rejected with 422 before any verifier runs.
    """
    service = _get_verification_service()
    try:
        result = await service.verify(request.document_type, request.fields)
    except FormValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail={"title": "Validation Error", "description": str(exc)},
        ) from exc

    return VerificationResponse(
        status=result.status, message=result.message, details=result.details
    )
