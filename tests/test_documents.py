"""Tests for the document field catalog and upload checks."""

import pytest

from src.documents.fields import (
    DOCUMENT_TITLES,
    DocumentType,
    field_keys,
    format_aadhar_number,
    format_pan_number,
    get_fields,
    humanize_key,
    normalize_fields,
)
from src.documents.uploads import (
    UploadInfo,
    UploadRejected,
    check_upload,
    resolve_content_type,
)
from src.utils.config import UploadConfig


class TestFieldCatalog:
    """Tests for the per-document field lists."""

    def test_every_type_has_title_and_fields(self) -> None:
        for doc_type in DocumentType:
            assert DOCUMENT_TITLES[doc_type]
            assert get_fields(doc_type)

    def test_aadhar_keys_in_order(self) -> None:
        assert field_keys("aadhar") == [
            "aadhar_number",
            "full_name",
            "dob",
            "pincode",
        ]

    def test_pan_keys(self) -> None:
        assert field_keys(DocumentType.PAN) == [
            "pan_number",
            "full_name",
            "father_name",
            "dob",
        ]

    def test_marksheet_has_seven_fields(self) -> None:
        assert len(field_keys(DocumentType.MARKSHEET)) == 7

    def test_max_lengths(self) -> None:
        aadhar = {f.key: f for f in get_fields(DocumentType.AADHAR)}
        assert aadhar["aadhar_number"].max_length == 14
        assert aadhar["pincode"].max_length == 6
        assert aadhar["dob"].input_type == "date"

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(ValueError):
            get_fields("passport")


class TestFormatters:
    """Tests for the typing-time formatters."""

    def test_aadhar_groups_digits(self) -> None:
        assert format_aadhar_number("234567890124") == "2345 6789 0124"

    def test_aadhar_strips_non_digits(self) -> None:
        assert format_aadhar_number("2345-6789-0124") == "2345 6789 0124"

    def test_aadhar_partial(self) -> None:
        assert format_aadhar_number("234567") == "2345 67"

    def test_aadhar_truncated(self) -> None:
        assert format_aadhar_number("23456789012499") == "2345 6789 0124"

    def test_pan_uppercased_and_cut(self) -> None:
        assert format_pan_number("abcde1234fxyz") == "ABCDE1234F"


class TestNormalizeFields:
    """Tests for normalize_fields."""

    def test_trims_formats_and_drops_unknown(self) -> None:
        result = normalize_fields(
            DocumentType.AADHAR,
            {
                "pincode": " 1100012 ",
                "aadhar_number": "234567890124",
                "full_name": "  Rahul Sharma ",
                "extra": "ignored",
            },
        )
        assert result == {
            "aadhar_number": "2345 6789 0124",
            "full_name": "Rahul Sharma",
            "pincode": "110001",
        }
        assert list(result) == ["aadhar_number", "full_name", "pincode"]

    def test_pan_number_uppercased(self) -> None:
        result = normalize_fields("pan", {"pan_number": "abcde1234f"})
        assert result["pan_number"] == "ABCDE1234F"


class TestHumanizeKey:
    def test_known_key_uses_label(self) -> None:
        assert humanize_key("father_name") == "Father's Name"
        assert humanize_key("percentage") == "Percentage/CGPA"

    def test_unknown_key_title_cased(self) -> None:
        assert humanize_key("verification_id") == "Verification Id"


class TestUploads:
    """Tests for upload acceptance."""

    def test_accepts_png(self) -> None:
        info = check_upload("card.png", "image/png", 2048)
        assert isinstance(info, UploadInfo)
        assert info.is_image
        assert info.size_mb == 0.0

    def test_accepts_pdf(self) -> None:
        info = check_upload("marks.pdf", "application/pdf", 5 * 1024 * 1024)
        assert not info.is_image
        assert info.size_mb == 5.0

    def test_rejects_text_file(self) -> None:
        with pytest.raises(UploadRejected) as exc_info:
            check_upload("notes.txt", "text/plain", 100)
        assert exc_info.value.reason == "type"
        assert exc_info.value.title == "Invalid file type"
        assert exc_info.value.description == "Please upload a JPG, PNG, or PDF file"

    def test_rejects_large_file(self) -> None:
        with pytest.raises(UploadRejected) as exc_info:
            check_upload("card.jpg", "image/jpeg", 10 * 1024 * 1024 + 1)
        assert exc_info.value.reason == "size"
        assert exc_info.value.title == "File too large"
        assert "10MB" in exc_info.value.description

    def test_exactly_at_limit_accepted(self) -> None:
        check_upload("card.jpg", "image/jpeg", 10 * 1024 * 1024)

    def test_custom_limit(self) -> None:
        config = UploadConfig(max_file_size_mb=1.0)
        with pytest.raises(UploadRejected):
            check_upload("card.jpg", "image/jpeg", 2 * 1024 * 1024, config)

    def test_upload_rejected_is_value_error(self) -> None:
        assert issubclass(UploadRejected, ValueError)

    def test_generic_type_resolved_from_extension(self) -> None:
        assert resolve_content_type("scan.PDF", "application/octet-stream") == (
            "application/pdf"
        )
        assert resolve_content_type("photo.jpg", None) == "image/jpeg"

    def test_specific_type_kept(self) -> None:
        assert resolve_content_type("photo.jpg", "IMAGE/PNG") == "image/png"
