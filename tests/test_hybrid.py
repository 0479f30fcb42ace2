"""Tests for the hybrid extraction pipeline."""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from src.extraction.ai_extractor import AIExtractedField
from src.extraction.hybrid import (
    ExtractionEngine,
    ExtractionResult,
    HybridExtractor,
    merge_into_form,
)
from src.utils.config import AIConfig, AppConfig, ExtractionConfig


def _processor(text: str, confidence: float = 1.0) -> MagicMock:
    processor = MagicMock()
    processor.load_images.return_value = [np.zeros((10, 10, 3), dtype=np.uint8)]
    doc_result = MagicMock(combined_text=text, confidence=confidence, page_count=1)
    processor.process.return_value = doc_result
    return processor


def _config(api_key: str | None = None, threshold: float = 0.0) -> AppConfig:
    return AppConfig(
        ai=AIConfig(api_key=api_key, confidence=0.9),
        extraction=ExtractionConfig(engine="auto", confidence_threshold=threshold),
    )


class TestOcrEngine:
    """Tests for OCR-only extraction."""

    def test_rule_fields_scaled_by_ocr_confidence(self, aadhar_text: str) -> None:
        extractor = HybridExtractor(_config(), _processor(aadhar_text, 0.5))
        result = extractor.extract(b"img", "aadhar", engine="ocr")

        assert isinstance(result, ExtractionResult)
        assert result.engine == "ocr"
        assert result.raw_text == aadhar_text
        number = next(f for f in result.fields if f.field_name == "aadhar_number")
        assert number.source == "rule"
        assert number.confidence == pytest.approx(0.95 * 0.5)
        assert result.as_form()["full_name"] == "Rahul Sharma"

    def test_threshold_filters_fields(self, aadhar_text: str) -> None:
        extractor = HybridExtractor(
            _config(threshold=0.5), _processor(aadhar_text, 0.6)
        )
        result = extractor.extract(b"img", "aadhar", engine=ExtractionEngine.OCR)
        # Scaled by 0.6, only the 0.95 and 0.9 rules clear 0.5.
        assert list(result.as_form()) == ["aadhar_number", "dob"]

    def test_no_text_no_fields(self) -> None:
        extractor = HybridExtractor(_config(), _processor(""))
        result = extractor.extract(b"img", "pan", engine="ocr")
        assert result.fields == []
        assert result.overall_confidence == 0.0

    def test_auto_without_key_uses_ocr(self, pan_text: str) -> None:
        processor = _processor(pan_text)
        extractor = HybridExtractor(_config(), processor)
        result = extractor.extract(b"img", "pan")

        assert result.engine == "auto"
        assert result.as_form()["pan_number"] == "ABCDE1234F"
        processor.load_images.assert_not_called()


class TestAiEngine:
    """Tests for AI and auto extraction with Gemini mocked out."""

    def test_ai_without_key_raises(self) -> None:
        extractor = HybridExtractor(_config(), _processor(""))
        with pytest.raises(ValueError, match="API key"):
            extractor.extract(b"img", "pan", engine="ai")

    @patch("src.extraction.hybrid.GeminiExtractor")
    def test_ai_only_skips_ocr(self, mock_gemini: MagicMock) -> None:
        mock_gemini.return_value.extract.return_value = [
            AIExtractedField("pan_number", "abcde1234f", 0.9),
        ]
        processor = _processor("")
        extractor = HybridExtractor(_config(api_key="key"), processor)

        result = extractor.extract(b"img", "pan", engine="ai")

        processor.process.assert_not_called()
        assert result.as_form() == {"pan_number": "ABCDE1234F"}
        assert result.fields[0].source == "ai"
        assert result.raw_text == ""

    @patch("src.extraction.hybrid.GeminiExtractor")
    def test_auto_merges_ai_over_rules(
        self, mock_gemini: MagicMock, pan_text: str
    ) -> None:
        mock_gemini.return_value.extract.return_value = [
            AIExtractedField("full_name", "Priya Patel", 0.9),
        ]
        extractor = HybridExtractor(_config(api_key="key"), _processor(pan_text))

        result = extractor.extract(b"img", "pan")
        fields = {f.field_name: f for f in result.fields}

        assert fields["full_name"].value == "Priya Patel"
        assert fields["full_name"].source == "hybrid"
        assert fields["full_name"].rule_value == "PRIYA PATEL"
        assert fields["pan_number"].source == "rule"

    @patch("src.extraction.hybrid.GeminiExtractor")
    def test_auto_falls_back_to_ocr_on_ai_failure(
        self, mock_gemini: MagicMock, pan_text: str
    ) -> None:
        mock_gemini.return_value.extract.side_effect = RuntimeError("boom")
        extractor = HybridExtractor(_config(api_key="key"), _processor(pan_text))

        result = extractor.extract(b"img", "pan")

        assert result.as_form()["pan_number"] == "ABCDE1234F"
        assert all(f.source == "rule" for f in result.fields)

    @patch("src.extraction.hybrid.GeminiExtractor")
    def test_auto_skips_ocr_when_ai_complete(self, mock_gemini: MagicMock) -> None:
        mock_gemini.return_value.extract.return_value = [
            AIExtractedField("pan_number", "ABCDE1234F", 0.9),
            AIExtractedField("full_name", "Priya Patel", 0.9),
            AIExtractedField("father_name", "Rajesh Patel", 0.9),
            AIExtractedField("dob", "22-03-1990", 0.9),
        ]
        processor = _processor("")
        extractor = HybridExtractor(_config(api_key="key"), processor)

        result = extractor.extract(b"img", "pan")

        processor.process.assert_not_called()
        assert len(result.fields) == 4
        assert result.overall_confidence == pytest.approx(0.9)

    def test_ai_available(self) -> None:
        assert HybridExtractor(_config(api_key="k"), _processor("")).ai_available
        assert not HybridExtractor(_config(), _processor("")).ai_available


class TestMergeIntoForm:
    def test_extracted_values_overwrite(self) -> None:
        form = {"full_name": "", "pincode": "110001"}
        merged = merge_into_form(form, {"full_name": "Rahul Sharma"})
        assert merged == {"full_name": "Rahul Sharma", "pincode": "110001"}

    def test_form_not_mutated(self) -> None:
        form = {"full_name": "A"}
        merge_into_form(form, {"full_name": "B"})
        assert form == {"full_name": "A"}
