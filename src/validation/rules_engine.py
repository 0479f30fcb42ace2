"""Plausibility rules for identity document fields.

These checks only assert that values look right (formats, ranges,
dates that exist); they say nothing about whether a document is real.
Rules are loaded per document type from YAML, with built-in defaults.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from src.documents.fields import DocumentType, get_fields
from src.utils.logger import get_logger

logger = get_logger(__name__)


DATE_FORMATS: list[str] = [
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%Y-%m-%d",
    "%d.%m.%Y",
]

# Verhoeff dihedral group tables used for the Aadhar check digit.
_VERHOEFF_D = [
    [0, 1, 2, 3, 4, 5, 6, 7, 8, 9],
    [1, 2, 3, 4, 0, 6, 7, 8, 9, 5],
    [2, 3, 4, 0, 1, 7, 8, 9, 5, 6],
    [3, 4, 0, 1, 2, 8, 9, 5, 6, 7],
    [4, 0, 1, 2, 3, 9, 5, 6, 7, 8],
    [5, 9, 8, 7, 6, 0, 4, 3, 2, 1],
    [6, 5, 9, 8, 7, 1, 0, 4, 3, 2],
    [7, 6, 5, 9, 8, 2, 1, 0, 4, 3],
    [8, 7, 6, 5, 9, 3, 2, 1, 0, 4],
    [9, 8, 7, 6, 5, 4, 3, 2, 1, 0],
]
_VERHOEFF_P = [
    [0, 1, 2, 3, 4, 5, 6, 7, 8, 9],
    [1, 5, 7, 6, 2, 8, 3, 0, 9, 4],
    [5, 8, 0, 3, 7, 9, 6, 1, 4, 2],
    [8, 9, 1, 6, 0, 4, 3, 5, 2, 7],
    [9, 4, 5, 3, 1, 2, 6, 8, 7, 0],
    [4, 2, 8, 6, 5, 7, 3, 9, 0, 1],
    [2, 7, 9, 3, 8, 0, 6, 4, 1, 5],
    [7, 0, 4, 6, 9, 1, 3, 2, 5, 8],
]

_SCORE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*(%|CGPA)?$", re.IGNORECASE)


class FormValidationError(ValueError):
    """Raised when a form is missing a required field.

    Args:
        field_name: Key of the first missing field.
        label: Display label of that field.
    """

    def __init__(self, field_name: str, label: str) -> None:
        super().__init__(f"{label} is required")
        self.field_name = field_name
        self.label = label


def parse_date(value: Any) -> date | None:
    """Parse a date in any supported format, or return None."""
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(str(value).strip(), fmt).date()
        except ValueError:
            continue
    return None


def verhoeff_valid(number: str) -> bool:
    """Return True if a digit string carries a valid Verhoeff check digit."""
    if not number.isdigit():
        return False
    check = 0
    for i, digit in enumerate(reversed(number)):
        check = _VERHOEFF_D[check][_VERHOEFF_P[i % 8][int(digit)]]
    return check == 0


def check_required(
    document_type: DocumentType | str, fields: dict[str, Any]
) -> None:
    """Ensure every field of a document type has a non-blank value.

    Raises:
        FormValidationError: For the first missing field, in form order.
    """
    for spec in get_fields(document_type):
        value = fields.get(spec.key)
        if value is None or not str(value).strip():
            raise FormValidationError(spec.key, spec.label)


@dataclass
class ValidationResult:
    """Result of a single field validation check."""

    field_name: str
    is_valid: bool
    message: str
    rule_name: str
    confidence_adjustment: float = 0.0


@dataclass
class ValidationReport:
    """Aggregated validation report for a document."""

    all_valid: bool
    results: list[ValidationResult]
    warnings: list[str] = field(default_factory=list)
    field_confidences: dict[str, float] = field(default_factory=dict)

    @property
    def failures(self) -> list[ValidationResult]:
        return [r for r in self.results if not r.is_valid]


class RulesEngine:
    """Configurable plausibility rules engine.

    Args:
        rules_path: Path to the validation rules YAML file.
    """

    def __init__(
        self, rules_path: Path = Path("configs/validation_rules.yaml")
    ) -> None:
        self.rules = self._load_rules(rules_path)
        self._validators: dict[str, Any] = {
            "required": self._validate_required,
            "regex": self._validate_regex,
            "date_format": self._validate_date,
            "not_future": self._validate_not_future,
            "number_range": self._validate_number_range,
            "year_range": self._validate_year_range,
            "score": self._validate_score,
            "verhoeff": self._validate_verhoeff,
        }

    def _load_rules(self, path: Path) -> dict:
        """Load rules from YAML, falling back to the built-in defaults."""
        if path.exists():
            with open(path) as f:
                data = yaml.safe_load(f)
                if data:
                    logger.info("Loaded validation rules from %s", path)
                    return data
        logger.debug("Using default validation rules")
        return self._default_rules()

    def _default_rules(self) -> dict:
        """Rules applied when no rules file is available.

        Every catalog field is required; format and range checks are
        layered on top for the fields that have a known shape.
        """
        rules: dict[str, dict[str, list[dict]]] = {
            doc.value: {spec.key: [{"type": "required"}] for spec in get_fields(doc)}
            for doc in DocumentType
        }
        dob_rules = [{"type": "date_format"}, {"type": "not_future"}]

        rules["aadhar"]["aadhar_number"].append(
            {
                "type": "regex",
                "pattern": r"^[2-9]\d{3} \d{4} \d{4}$",
                "message": (
                    "Aadhar number must be 12 digits and cannot start with 0 or 1"
                ),
            }
        )
        rules["aadhar"]["dob"].extend(dob_rules)
        rules["aadhar"]["pincode"].append(
            {
                "type": "regex",
                "pattern": r"^[1-9]\d{5}$",
                "message": "Pincode must be 6 digits and cannot start with 0",
            }
        )
        rules["pan"]["pan_number"].append(
            {
                "type": "regex",
                "pattern": r"^[A-Z]{5}\d{4}[A-Z]$",
                "message": "PAN must be 5 letters, 4 digits, and a letter",
            }
        )
        rules["pan"]["dob"].extend(dob_rules)
        rules["marksheet"]["passing_year"].append({"type": "year_range", "min": 1950})
        rules["marksheet"]["percentage"].append({"type": "score"})
        return rules

    def validate(
        self,
        fields: dict[str, Any],
        document_type: DocumentType | str,
        field_confidences: dict[str, float] | None = None,
    ) -> ValidationReport:
        """Run the plausibility rules of a document type.

        Args:
            fields: Field name-value pairs.
            document_type: Document type selecting the rule set.
            field_confidences: Initial confidence scores per field.

        Returns:
            Validation report with results and adjusted confidences.
        """
        results: list[ValidationResult] = []
        warnings: list[str] = []
        adjusted = dict(field_confidences or {})

        doc_rules = self.rules.get(str(document_type))
        if doc_rules is None:
            logger.warning(
                "No rules configured for %s, using the default rules", document_type
            )
            doc_rules = self._default_rules().get(str(document_type), {})

        for field_name, rules in doc_rules.items():
            value = fields.get(field_name)
            if isinstance(value, str) and not value.strip():
                value = None

            for rule in rules:
                rule_type = rule.get("type")
                validator = self._validators.get(rule_type)

                if not validator:
                    warnings.append(f"Unknown rule type: {rule_type}")
                    continue

                result = validator(field_name, value, rule)
                results.append(result)

                if field_name in adjusted:
                    adjusted[field_name] += result.confidence_adjustment
                    adjusted[field_name] = max(0.0, min(1.0, adjusted[field_name]))

        all_valid = all(r.is_valid for r in results)
        logger.info(
            "Plausibility check for %s: %s (%d checks)",
            document_type,
            "PASSED" if all_valid else "FAILED",
            len(results),
        )

        return ValidationReport(
            all_valid=all_valid,
            results=results,
            warnings=warnings,
            field_confidences=adjusted,
        )

    def _validate_required(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a required field is present and non-empty."""
        if value is not None and str(value).strip():
            return ValidationResult(
                field_name, True, "Required field present", "required"
            )
        return ValidationResult(
            field_name,
            False,
            f"Required field missing: {field_name}",
            "required",
            -0.5,
        )

    def _validate_regex(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Validate a value against the rule's ``pattern``."""
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "regex")

        pattern = rule.get("pattern", "")
        if re.match(pattern, str(value)):
            return ValidationResult(field_name, True, "Matches pattern", "regex", 0.05)
        return ValidationResult(
            field_name,
            False,
            rule.get("message", f"Does not match pattern: {pattern}"),
            "regex",
            -0.1,
        )

    def _validate_date(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a value is a real calendar date in a supported format."""
        if value is None:
            return ValidationResult(
                field_name, True, "No value to validate", "date_format"
            )
        if parse_date(value):
            return ValidationResult(
                field_name, True, "Valid date", "date_format", 0.1
            )
        return ValidationResult(
            field_name, False, f"Invalid date: {value}", "date_format", -0.2
        )

    def _validate_not_future(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a date is not after today."""
        parsed = parse_date(value) if value is not None else None
        if parsed is None:
            return ValidationResult(
                field_name, True, "No date to compare", "not_future"
            )
        if parsed <= date.today():
            return ValidationResult(
                field_name, True, "Date is not in the future", "not_future"
            )
        return ValidationResult(
            field_name, False, f"Date is in the future: {value}", "not_future", -0.3
        )

    def _validate_number_range(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check that a numeric value lies in ``[min, max]``."""
        if value is None:
            return ValidationResult(
                field_name, True, "No value to validate", "number_range"
            )
        try:
            number = float(str(value).strip())
        except ValueError:
            return ValidationResult(
                field_name, False, f"Not a number: {value}", "number_range", -0.2
            )

        low = float(rule.get("min", float("-inf")))
        high = float(rule.get("max", float("inf")))
        if low <= number <= high:
            return ValidationResult(
                field_name, True, "Number in valid range", "number_range", 0.05
            )
        return ValidationResult(
            field_name,
            False,
            f"{value} outside range [{rule.get('min')}, {rule.get('max')}]",
            "number_range",
            -0.15,
        )

    def _validate_year_range(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check a four-digit year between ``min`` and ``max`` (default: this year)."""
        if value is None:
            return ValidationResult(
                field_name, True, "No value to validate", "year_range"
            )
        text = str(value).strip()
        low = int(rule.get("min", 1950))
        high = int(rule.get("max", date.today().year))
        if re.fullmatch(r"\d{4}", text) and low <= int(text) <= high:
            return ValidationResult(
                field_name, True, "Year in valid range", "year_range", 0.05
            )
        return ValidationResult(
            field_name,
            False,
            f"Year must be between {low} and {high}: {value}",
            "year_range",
            -0.2,
        )

    def _validate_score(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check a percentage (0-100) or CGPA (0-10) score.

        ``"85.5%"`` is a percentage and ``"9.2 CGPA"`` a CGPA. A bare
        number is read as CGPA up to 10 and as a percentage above that.
        """
        if value is None:
            return ValidationResult(field_name, True, "No value to validate", "score")

        match = _SCORE_PATTERN.match(str(value).strip())
        if not match:
            return ValidationResult(
                field_name, False, f"Invalid percentage or CGPA: {value}", "score", -0.2
            )

        number = float(match.group(1))
        unit = (match.group(2) or "").upper()
        if unit == "CGPA" or (not unit and number <= 10):
            valid, scale = number <= 10, "CGPA"
        else:
            valid, scale = number <= 100, "percentage"

        if valid:
            return ValidationResult(field_name, True, f"Valid {scale}", "score", 0.05)
        return ValidationResult(
            field_name, False, f"{scale} out of range: {value}", "score", -0.2
        )

    def _validate_verhoeff(
        self, field_name: str, value: Any, rule: dict
    ) -> ValidationResult:
        """Check the Aadhar check digit."""
        if value is None:
            return ValidationResult(
                field_name, True, "No value to validate", "verhoeff"
            )
        digits = re.sub(r"\D", "", str(value))
        if len(digits) == 12 and verhoeff_valid(digits):
            return ValidationResult(
                field_name, True, "Check digit valid", "verhoeff", 0.1
            )
        return ValidationResult(
            field_name, False, "Aadhar check digit does not match", "verhoeff", -0.3
        )
