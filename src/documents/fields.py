"""Field catalog and input formatting for the supported identity documents.

Each document type has an ordered list of form fields. The formatters
mirror what a user sees while typing: Aadhar numbers are grouped in
fours and PAN numbers are upper-cased.
"""

import re
from dataclasses import dataclass
from enum import StrEnum


class DocumentType(StrEnum):
    """Identity documents the service knows how to collect."""

    AADHAR = "aadhar"
    PAN = "pan"
    MARKSHEET = "marksheet"


@dataclass(frozen=True)
class FieldSpec:
    """A single input field on a document form."""

    key: str
    label: str
    placeholder: str
    max_length: int | None = None
    input_type: str = "text"


DOCUMENT_FIELDS: dict[DocumentType, list[FieldSpec]] = {
    DocumentType.AADHAR: [
        FieldSpec("aadhar_number", "Aadhar Number", "XXXX XXXX XXXX", 14),
        FieldSpec("full_name", "Full Name", "As per Aadhar Card"),
        FieldSpec("dob", "Date of Birth", "DD/MM/YYYY", input_type="date"),
        FieldSpec("pincode", "Pincode", "6-digit pincode", 6),
    ],
    DocumentType.PAN: [
        FieldSpec("pan_number", "PAN Number", "ABCDE1234F", 10),
        FieldSpec("full_name", "Full Name", "As per PAN Card"),
        FieldSpec("father_name", "Father's Name", "As per PAN Card"),
        FieldSpec("dob", "Date of Birth", "DD/MM/YYYY", input_type="date"),
    ],
    DocumentType.MARKSHEET: [
        FieldSpec("roll_number", "Roll Number", "Board Roll Number"),
        FieldSpec("student_name", "Student Name", "As per Marksheet"),
        FieldSpec("school_name", "School Name", "Full School Name"),
        FieldSpec("board", "Board", "CBSE/ICSE/State Board"),
        FieldSpec("class", "Class", "10th/12th"),
        FieldSpec("passing_year", "Passing Year", "YYYY"),
        FieldSpec("percentage", "Percentage/CGPA", "85.5% or 9.2 CGPA"),
    ],
}

DOCUMENT_TITLES: dict[DocumentType, str] = {
    DocumentType.AADHAR: "Aadhar Card",
    DocumentType.PAN: "PAN Card",
    DocumentType.MARKSHEET: "Class 10th/12th Marksheet",
}


def get_fields(document_type: DocumentType | str) -> list[FieldSpec]:
    """Return the ordered field specs for a document type.

    Raises:
        ValueError: If the document type is not supported.
    """
    return DOCUMENT_FIELDS[DocumentType(document_type)]


def field_keys(document_type: DocumentType | str) -> list[str]:
    """Return the field keys for a document type, in form order."""
    return [spec.key for spec in get_fields(document_type)]


def format_aadhar_number(value: str) -> str:
    """Group the digits of an Aadhar number in fours, at most 14 characters.

    >>> format_aadhar_number("234567890123")
    '2345 6789 0123'
    """
    digits = re.sub(r"\D", "", value)
    return re.sub(r"(\d{4})(?=\d)", r"\1 ", digits)[:14]


def format_pan_number(value: str) -> str:
    """Upper-case a PAN number and cut it to 10 characters."""
    return value.upper()[:10]


_FORMATTERS = {
    "aadhar_number": format_aadhar_number,
    "pan_number": format_pan_number,
}


def normalize_fields(
    document_type: DocumentType | str, fields: dict[str, str]
) -> dict[str, str]:
    """Clean a set of form values the way the input form would.

    Values are trimmed, the Aadhar and PAN formatters are applied, each
    field is cut to its ``max_length``, and keys that the document type
    does not define are dropped.

    Args:
        document_type: Document the values belong to.
        fields: Raw field key/value pairs.

    Returns:
        Normalized key/value pairs, in catalog order.
    """
    normalized: dict[str, str] = {}
    for spec in get_fields(document_type):
        raw = fields.get(spec.key)
        if raw is None:
            continue
        value = str(raw).strip()
        formatter = _FORMATTERS.get(spec.key)
        if formatter:
            value = formatter(value)
        if spec.max_length is not None:
            value = value[: spec.max_length]
        normalized[spec.key] = value
    return normalized


def humanize_key(key: str) -> str:
    """Return a display label for a field or detail key."""
    for specs in DOCUMENT_FIELDS.values():
        for spec in specs:
            if spec.key == key:
                return spec.label
    return key.replace("_", " ").strip().title()
