"""Rule-based field extraction from OCR text.

Each document field has an ordered list of regular expressions. The
first pattern that matches anywhere in the text wins, and its captured
group is cleaned up into the form's value format. Label captures stop
at the end of the line, so a label followed by a blank value does not
swallow the next line of the card.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from src.documents.fields import DocumentType, format_aadhar_number
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ExtractedField:
    """A field value extracted by a regex rule."""

    field_name: str
    value: str
    confidence: float
    start_pos: int
    end_pos: int
    extraction_method: str = "regex"


@dataclass(frozen=True)
class FieldPattern:
    """One candidate pattern for a field.

    ``transform`` turns the captured text into the form value; it may
    return an empty string to reject the match.
    """

    pattern: str
    confidence: float
    flags: int = re.IGNORECASE
    transform: Callable[[str], str] | None = None
    upper_text: bool = False


# Captured text for a label value: letters, spaces and dots on one line.
_PERSON = r"([A-Za-z][A-Za-z .]*)"
_INSTITUTION = r"([A-Za-z][A-Za-z .,&'\-]*)"

# A bare "Name" label that is not part of a parent's or school's label.
_PLAIN_NAME = (
    r"(?:(?<!School )(?<!Father's )(?<!Mother's )(?<!Father’s )(?<!Mother’s )"
    r"(?<!Father )(?<!Mother )"
    r"\bName(?!\s+of\s+(?:the\s+)?(?:School|Institution))|नाम)"
)

# Label separator. The value may sit on the next line only when that line
# is not itself a "Label: value" line.
_SEP = r"[: \t]*(?:\n(?![^\n:]*:)[ \t]*)?"

_ROMAN_CLASSES = {"X": "10th", "XII": "12th", "10": "10th", "12": "12th"}


def _clean_text(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip(" .")


def _dashed_date(value: str) -> str:
    return value.replace("/", "-")


def _class_level(value: str) -> str:
    return _ROMAN_CLASSES.get(value.upper(), "")


def _constant(value: str) -> Callable[[str], str]:
    return lambda _: value


_DOB_PATTERNS = [
    FieldPattern(r"\b(\d{2}[/\-]\d{2}[/\-]\d{4})\b", 0.9, 0, _dashed_date),
]

_AADHAR_PATTERNS: dict[str, list[FieldPattern]] = {
    "aadhar_number": [
        FieldPattern(r"\b(\d{4}\s?\d{4}\s?\d{4})\b", 0.95, 0, format_aadhar_number),
    ],
    "full_name": [
        FieldPattern(_PLAIN_NAME + _SEP + _PERSON, 0.8, transform=_clean_text),
    ],
    "dob": _DOB_PATTERNS,
    "pincode": [
        FieldPattern(r"\b(\d{6})\b", 0.8, 0),
    ],
}

_PAN_PATTERNS: dict[str, list[FieldPattern]] = {
    "pan_number": [
        FieldPattern(r"\b([A-Z]{5}\d{4}[A-Z])\b", 0.95, 0, upper_text=True),
    ],
    "full_name": [
        FieldPattern(_PLAIN_NAME + _SEP + _PERSON, 0.8, transform=_clean_text),
    ],
    "father_name": [
        FieldPattern(
            r"(?:Father['’]?s\s+Name|Father|पिता)" + _SEP + _PERSON,
            0.8,
            transform=_clean_text,
        ),
    ],
    "dob": _DOB_PATTERNS,
}

_MARKSHEET_PATTERNS: dict[str, list[FieldPattern]] = {
    "roll_number": [
        FieldPattern(
            r"(?:\bRoll\s*(?:No\.?|Number|Code)?|रोल\s*(?:नं\.?|नंबर)?)[:.\s]*"
            r"([A-Za-z0-9/\-]*\d[A-Za-z0-9/\-]*)",
            0.9,
        ),
    ],
    "student_name": [
        FieldPattern(
            r"(?:Student|Candidate)['’]?s?\s+Name" + _SEP + _PERSON,
            0.9,
            transform=_clean_text,
        ),
        FieldPattern(
            r"Name\s+of\s+(?:the\s+)?(?:Student|Candidate)" + _SEP + _PERSON,
            0.9,
            transform=_clean_text,
        ),
        FieldPattern(_PLAIN_NAME + _SEP + _PERSON, 0.7, transform=_clean_text),
    ],
    "school_name": [
        FieldPattern(
            r"(?:School|Institution)\s+Name" + _SEP + _INSTITUTION,
            0.9,
            transform=_clean_text,
        ),
        FieldPattern(
            r"Name\s+of\s+(?:the\s+)?School" + _SEP + _INSTITUTION,
            0.9,
            transform=_clean_text,
        ),
        FieldPattern(
            r"(?:School|विद्यालय)" + _SEP + _INSTITUTION, 0.7, transform=_clean_text
        ),
    ],
    "board": [
        FieldPattern(
            r"\b(CBSE|Central\s+Board\s+of\s+Secondary\s+Education)\b",
            0.9,
            transform=_constant("CBSE"),
        ),
        FieldPattern(
            r"\b(ICSE|ISC|Council\s+for\s+the\s+Indian\s+School\s+Certificate)\b",
            0.9,
            transform=_constant("ICSE"),
        ),
        FieldPattern(
            r"\b(State\s+Board|Board\s+of\s+(?:Higher\s+)?Secondary"
            r"(?:\s+School)?\s+Education)\b",
            0.8,
            transform=_constant("State Board"),
        ),
    ],
    "class": [
        FieldPattern(
            r"\b(?:Class|Std\.?|Standard)[:\s]*(XII|X|10|12)(?:th)?\b",
            0.85,
            transform=_class_level,
        ),
        FieldPattern(
            r"\b(Senior\s+School\s+Certificate|Higher\s+Secondary\s+(?:School\s+)?"
            r"(?:Certificate|Examination))\b",
            0.7,
            transform=_constant("12th"),
        ),
        FieldPattern(
            r"\b(Secondary\s+School\s+(?:Examination|Certificate))\b",
            0.7,
            transform=_constant("10th"),
        ),
    ],
    "passing_year": [
        FieldPattern(
            r"(?:Year\s+of\s+(?:Passing|Exam(?:ination)?)|Passing\s+Year)"
            r"[:\s]*((?:19|20)\d{2})\b",
            0.9,
        ),
        FieldPattern(r"\b((?:19|20)\d{2})\b", 0.6, 0),
    ],
    "percentage": [
        FieldPattern(r"(\d+\.?\d*)\s*%", 0.85, 0, lambda v: f"{v}%"),
        FieldPattern(r"(\d+\.?\d*)\s*CGPA", 0.85, transform=lambda v: f"{v} CGPA"),
        FieldPattern(r"CGPA[:\s]*(\d+\.?\d*)", 0.8, transform=lambda v: f"{v} CGPA"),
    ],
}

FIELD_PATTERNS: dict[DocumentType, dict[str, list[FieldPattern]]] = {
    DocumentType.AADHAR: _AADHAR_PATTERNS,
    DocumentType.PAN: _PAN_PATTERNS,
    DocumentType.MARKSHEET: _MARKSHEET_PATTERNS,
}


class RuleExtractor:
    """Regex-based field extractor for identity documents.

    Args:
        patterns: Per-document field patterns. Defaults to the built-in set.
    """

    def __init__(
        self,
        patterns: dict[DocumentType, dict[str, list[FieldPattern]]] | None = None,
    ) -> None:
        self.patterns = patterns or FIELD_PATTERNS

    def extract(
        self, text: str, document_type: DocumentType | str
    ) -> list[ExtractedField]:
        """Extract the fields of a document type from OCR text.

        Args:
            text: OCR text to search.
            document_type: Which document's fields to look for.

        Returns:
            At most one extracted field per field name, in catalog order.
        """
        doc_patterns = self.patterns.get(DocumentType(document_type), {})
        results: list[ExtractedField] = []

        for field_name, candidates in doc_patterns.items():
            extracted = self._first_match(field_name, candidates, text)
            if extracted:
                results.append(extracted)

        logger.info(
            "Rule extraction found %d/%d %s fields",
            len(results),
            len(doc_patterns),
            document_type,
        )
        return results

    def extract_form(
        self, text: str, document_type: DocumentType | str
    ) -> dict[str, str]:
        """Extract fields as a plain ``{field_name: value}`` mapping."""
        return {f.field_name: f.value for f in self.extract(text, document_type)}

    def _first_match(
        self, field_name: str, candidates: list[FieldPattern], text: str
    ) -> ExtractedField | None:
        """Return the field produced by the first candidate pattern that matches."""
        for candidate in candidates:
            haystack = text.upper() if candidate.upper_text else text
            match = re.search(candidate.pattern, haystack, candidate.flags)
            if not match:
                continue

            raw = match.group(1) if match.groups() else match.group(0)
            value = candidate.transform(raw) if candidate.transform else raw.strip()
            if not value:
                continue

            logger.debug("Matched %s=%r", field_name, value)
            return ExtractedField(
                field_name=field_name,
                value=value,
                confidence=candidate.confidence,
                start_pos=match.start(),
                end_pos=match.end(),
            )
        return None
