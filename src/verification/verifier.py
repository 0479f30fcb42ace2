"""Stand-in document verifiers.

None of these talk to an official records system. They exist so the
rest of the flow (form validation, result reporting) can be exercised:

* ``SimulatedVerifier`` waits briefly and succeeds about 70% of the time.
* ``RegistryVerifier`` looks the fields up in a small in-memory table.
* ``PlausibilityVerifier`` passes when the plausibility rules pass.
"""

import asyncio
import random
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path
from typing import Any, Protocol

import yaml

from src.documents.fields import DocumentType, field_keys
from src.utils.logger import get_logger
from src.validation.rules_engine import RulesEngine, parse_date

logger = get_logger(__name__)

NO_MATCH_ERROR = "Document details do not match official records"


class VerificationStatus(StrEnum):
    """Outcome of a verification request."""

    VERIFIED = "verified"
    FAILED = "failed"
    PENDING = "pending"


@dataclass
class VerificationResult:
    """Status, supporting details, and a user-facing message."""

    status: VerificationStatus
    details: dict[str, Any] = field(default_factory=dict)
    message: str = ""


def new_verification_id() -> str:
    """Return an id of the form ``VER<epoch milliseconds>``."""
    return f"VER{int(time.time() * 1000)}"


def verified_result(fields: dict[str, str], **extra: Any) -> VerificationResult:
    """Build a success result echoing the fields with an id and timestamp."""
    details: dict[str, Any] = {
        **fields,
        **extra,
        "verification_id": new_verification_id(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    return VerificationResult(
        VerificationStatus.VERIFIED, details, "Document verification successful"
    )


def failed_result(error: str = NO_MATCH_ERROR, **extra: Any) -> VerificationResult:
    """Build the standard failure result."""
    return VerificationResult(
        VerificationStatus.FAILED,
        {"error": error, **extra},
        "Verification failed - Please check your details",
    )


def pending_result() -> VerificationResult:
    """Placeholder reported while a verification call is in flight."""
    return VerificationResult(
        VerificationStatus.PENDING, {}, "Verification in progress..."
    )


class Verifier(Protocol):
    """Anything that can verify a normalized set of document fields."""

    async def verify(
        self, document_type: DocumentType, fields: dict[str, str]
    ) -> VerificationResult: ...


class SimulatedVerifier:
    """Coin-flip verifier standing in for a remote verification API.

    Args:
        delay_seconds: Simulated round-trip time.
        failure_rate: Probability of a failed verification.
        rng: Random source, injectable for deterministic tests.
    """

    def __init__(
        self,
        delay_seconds: float = 2.0,
        failure_rate: float = 0.3,
        rng: random.Random | None = None,
    ) -> None:
        self.delay_seconds = delay_seconds
        self.failure_rate = failure_rate
        self.rng = rng or random.Random()

    async def verify(
        self, document_type: DocumentType, fields: dict[str, str]
    ) -> VerificationResult:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        if self.rng.random() > self.failure_rate:
            return verified_result(fields)
        return failed_result()


# One known record per document type.
DEFAULT_REGISTRY: list[dict[str, str]] = [
    {
        "document_type": "aadhar",
        "aadhar_number": "2345 6789 0124",
        "full_name": "Rahul Sharma",
        "dob": "15-08-1995",
        "pincode": "110001",
    },
    {
        "document_type": "pan",
        "pan_number": "ABCDE1234F",
        "full_name": "Priya Patel",
        "father_name": "Rajesh Patel",
        "dob": "22-03-1990",
    },
    {
        "document_type": "marksheet",
        "roll_number": "1234567",
        "student_name": "Amit Kumar",
        "school_name": "Delhi Public School",
        "board": "CBSE",
        "class": "12th",
        "passing_year": "2020",
        "percentage": "85.5%",
    },
]


def _comparable(key: str, value: Any) -> str:
    """Reduce a value to the form used for registry equality."""
    text = str(value or "").strip()
    if key == "aadhar_number":
        return re.sub(r"\D", "", text)
    if key == "dob":
        parsed = parse_date(text)
        if parsed:
            return parsed.isoformat()
    return re.sub(r"\s+", "", text).casefold()


def load_registry(path: Path | None) -> list[dict[str, str]]:
    """Load registry records from YAML, or return the built-in table."""
    if path is not None and path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        records = data.get("records") if isinstance(data, dict) else data
        if records:
            logger.info("Loaded %d registry records from %s", len(records), path)
            return [{k: str(v) for k, v in r.items()} for r in records]
    return list(DEFAULT_REGISTRY)


class RegistryVerifier:
    """Looks fields up in a small in-memory table by linear scan.

    A record matches when it has the same document type and every field
    of that document compares equal, ignoring case and whitespace, with
    Aadhar numbers compared as digits and dates as calendar dates.

    Args:
        records: Registry rows; each carries a ``document_type`` key.
    """

    def __init__(self, records: list[dict[str, str]] | None = None) -> None:
        self.records = records if records is not None else list(DEFAULT_REGISTRY)

    def find(
        self, document_type: DocumentType, fields: dict[str, str]
    ) -> dict[str, str] | None:
        """Return the first matching record, or None."""
        keys = field_keys(document_type)
        wanted = {k: _comparable(k, fields.get(k)) for k in keys}
        for record in self.records:
            if record.get("document_type") != document_type.value:
                continue
            if all(_comparable(k, record.get(k)) == wanted[k] for k in keys):
                return record
        return None

    async def verify(
        self, document_type: DocumentType, fields: dict[str, str]
    ) -> VerificationResult:
        record = self.find(document_type, fields)
        if record is None:
            logger.info("No registry record matches the %s details", document_type)
            return failed_result()
        return verified_result(fields)


class PlausibilityVerifier:
    """Treats a passing plausibility check as a successful verification.

    Args:
        rules_engine: Rules engine used for the check.
    """

    def __init__(self, rules_engine: RulesEngine | None = None) -> None:
        self.rules_engine = rules_engine or RulesEngine()

    async def verify(
        self, document_type: DocumentType, fields: dict[str, str]
    ) -> VerificationResult:
        report = self.rules_engine.validate(fields, document_type)
        if report.all_valid:
            return verified_result(fields)
        return failed_result(
            "Document details failed plausibility checks",
            failed_checks=[
                {"field": r.field_name, "rule": r.rule_name, "message": r.message}
                for r in report.failures
            ],
        )
