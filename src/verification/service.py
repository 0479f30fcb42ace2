"""Verification flow shared by the API and the CLI."""

import random
from enum import StrEnum
from pathlib import Path

from src.documents.fields import DocumentType, normalize_fields
from src.utils.config import AppConfig
from src.utils.logger import get_logger
from src.validation.rules_engine import RulesEngine, check_required

from .verifier import (
    PlausibilityVerifier,
    RegistryVerifier,
    SimulatedVerifier,
    VerificationResult,
    VerificationStatus,
    Verifier,
    load_registry,
)

logger = get_logger(__name__)


class VerificationMode(StrEnum):
    """Which stand-in verifier to use."""

    SIMULATED = "simulated"
    REGISTRY = "registry"
    PLAUSIBILITY = "plausibility"


def build_verifier(
    config: AppConfig, mode: VerificationMode | str | None = None
) -> Verifier:
    """Create the verifier selected by ``mode`` or the configuration.

    Raises:
        ValueError: If the mode is not one of :class:`VerificationMode`.
    """
    settings = config.verification
    mode = VerificationMode(mode or settings.mode)

    if mode == VerificationMode.REGISTRY:
        return RegistryVerifier(load_registry(Path(settings.registry_path)))
    if mode == VerificationMode.PLAUSIBILITY:
        return PlausibilityVerifier(RulesEngine(Path(config.validation.rules_path)))
    return SimulatedVerifier(
        delay_seconds=settings.delay_seconds,
        failure_rate=settings.failure_rate,
        rng=random.Random(settings.seed),
    )


class VerificationService:
    """Normalizes a form, checks required fields, and runs a verifier.

    Args:
        verifier: The verifier to delegate to.
    """

    def __init__(self, verifier: Verifier) -> None:
        self.verifier = verifier

    async def verify(
        self, document_type: DocumentType | str, fields: dict[str, str]
    ) -> VerificationResult:
        """Verify a filled-in document form.

        Args:
            document_type: Document the fields belong to.
            fields: Form values keyed by field name.

        Returns:
            The verifier's result. Unexpected verifier errors are reported
            as a failed result rather than raised.

        Raises:
            FormValidationError: If a required field is blank.
            ValueError: If the document type is not supported.
        """
        document_type = DocumentType(document_type)
        normalized = normalize_fields(document_type, fields)
        check_required(document_type, normalized)

        logger.info(
            "Verifying %s with %s", document_type, type(self.verifier).__name__
        )
        try:
            result = await self.verifier.verify(document_type, normalized)
        except Exception as exc:
            logger.error("Verification call failed: %s", exc)
            return VerificationResult(
                VerificationStatus.FAILED,
                {"error": "Network error"},
                "Verification failed due to network error",
            )

        logger.info("Verification of %s: %s", document_type, result.status)
        return result
