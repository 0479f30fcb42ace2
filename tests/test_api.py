"""Tests for the FastAPI endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from src.api.app import app
from src.extraction.hybrid import ExtractionResult, HybridField
from src.utils.config import AppConfig, UploadConfig
from src.verification.service import VerificationService
from src.verification.verifier import RegistryVerifier


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def _extraction_result() -> ExtractionResult:
    return ExtractionResult(
        document_type="pan",
        engine="ocr",
        fields=[
            HybridField("pan_number", "ABCDE1234F", 0.95, "rule"),
            HybridField("full_name", "PRIYA PATEL", 0.8, "rule"),
        ],
        raw_text="PRIYA PATEL ABCDE1234F",
        overall_confidence=0.875,
    )


class TestHealthAndCatalog:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert "tesseract_available" in data
        assert "ai_available" in data

    def test_documents(self, client: TestClient) -> None:
        response = client.get("/documents")
        assert response.status_code == 200
        docs = response.json()["documents"]
        assert [d["document_type"] for d in docs] == ["aadhar", "pan", "marksheet"]
        aadhar_fields = docs[0]["fields"]
        assert aadhar_fields[0]["key"] == "aadhar_number"
        assert aadhar_fields[0]["max_length"] == 14


class TestExtractEndpoint:
    """Tests for POST /extract."""

    @patch("src.api.app._get_extractor")
    def test_extract_success(
        self, mock_get: MagicMock, client: TestClient, png_bytes: bytes
    ) -> None:
        mock_get.return_value.extract.return_value = _extraction_result()

        response = client.post(
            "/extract",
            params={"document_type": "pan", "engine": "ocr"},
            files={"file": ("pan.png", png_bytes, "image/png")},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["document_type"] == "pan"
        assert data["form"] == {"pan_number": "ABCDE1234F", "full_name": "PRIYA PATEL"}
        assert data["fields"][0]["source"] == "rule"
        assert data["overall_confidence"] == 0.875
        args = mock_get.return_value.extract.call_args
        assert args.args[1] == "pan"
        assert args.args[2] == "ocr"

    def test_invalid_file_type(self, client: TestClient) -> None:
        response = client.post(
            "/extract",
            params={"document_type": "pan"},
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == {
            "title": "Invalid file type",
            "description": "Please upload a JPG, PNG, or PDF file",
        }

    def test_file_too_large(self, client: TestClient) -> None:
        big = b"0" * (10 * 1024 * 1024 + 1)
        response = client.post(
            "/extract",
            params={"document_type": "aadhar"},
            files={"file": ("card.jpg", big, "image/jpeg")},
        )
        assert response.status_code == 413
        assert response.json()["detail"]["title"] == "File too large"

    def test_unknown_document_type(self, client: TestClient, png_bytes: bytes) -> None:
        response = client.post(
            "/extract",
            params={"document_type": "passport"},
            files={"file": ("card.png", png_bytes, "image/png")},
        )
        assert response.status_code == 422

    @patch("src.api.app._get_extractor")
    def test_value_error_is_bad_request(
        self, mock_get: MagicMock, client: TestClient, png_bytes: bytes
    ) -> None:
        mock_get.return_value.extract.side_effect = ValueError(
            "AI extraction requires an API key"
        )
        response = client.post(
            "/extract",
            params={"document_type": "pan", "engine": "ai"},
            files={"file": ("pan.png", png_bytes, "image/png")},
        )
        assert response.status_code == 400
        assert "API key" in response.json()["detail"]

    @patch("src.api.app._get_extractor")
    def test_ocr_failure_asks_for_manual_entry(
        self, mock_get: MagicMock, client: TestClient, png_bytes: bytes
    ) -> None:
        mock_get.return_value.extract.side_effect = RuntimeError("tesseract missing")
        response = client.post(
            "/extract",
            params={"document_type": "pan"},
            files={"file": ("pan.png", png_bytes, "image/png")},
        )
        assert response.status_code == 500
        assert "enter details manually" in response.json()["detail"]

    @patch("src.api.app._get_extractor")
    @patch("src.api.app.load_config")
    def test_configured_size_limit(
        self,
        mock_config: MagicMock,
        mock_get: MagicMock,
        client: TestClient,
        png_bytes: bytes,
    ) -> None:
        mock_config.return_value = AppConfig(
            uploads=UploadConfig(max_file_size_mb=0.00001)
        )
        response = client.post(
            "/extract",
            params={"document_type": "pan"},
            files={"file": ("pan.png", png_bytes, "image/png")},
        )
        assert response.status_code == 413
        assert response.json()["detail"]["title"] == "File too large"
        mock_get.assert_not_called()

    @patch("src.api.app._get_extractor")
    @patch("src.api.app.load_config")
    def test_configured_content_types(
        self,
        mock_config: MagicMock,
        mock_get: MagicMock,
        client: TestClient,
        png_bytes: bytes,
    ) -> None:
        mock_config.return_value = AppConfig(
            uploads=UploadConfig(allowed_content_types=["application/pdf"])
        )
        response = client.post(
            "/extract",
            params={"document_type": "pan"},
            files={"file": ("pan.png", png_bytes, "image/png")},
        )
        assert response.status_code == 400
        assert response.json()["detail"]["title"] == "Invalid file type"


class TestValidateEndpoint:
    def test_valid_form(self, client: TestClient, pan_fields: dict[str, str]) -> None:
        response = client.post(
            "/validate", json={"document_type": "pan", "fields": pan_fields}
        )
        assert response.status_code == 200
        assert response.json()["all_valid"] is True

    def test_invalid_form(self, client: TestClient, pan_fields: dict[str, str]) -> None:
        pan_fields["pan_number"] = "12345"
        response = client.post(
            "/validate", json={"document_type": "pan", "fields": pan_fields}
        )
        data = response.json()
        assert data["all_valid"] is False
        failed = [r["field_name"] for r in data["results"] if not r["is_valid"]]
        assert failed == ["pan_number"]

    def test_fields_normalized_first(
        self, client: TestClient, aadhar_fields: dict[str, str]
    ) -> None:
        aadhar_fields["aadhar_number"] = "234567890124"
        response = client.post(
            "/validate", json={"document_type": "aadhar", "fields": aadhar_fields}
        )
        assert response.status_code == 200
        assert response.json()["all_valid"] is True


class TestVerifyEndpoint:
    """Tests for POST /verify."""

    @pytest.fixture(autouse=True)
    def _registry_service(self):
        with patch(
            "src.api.app._get_verification_service",
            return_value=VerificationService(RegistryVerifier()),
        ):
            yield

    def test_verified(self, client: TestClient, pan_fields: dict[str, str]) -> None:
        response = client.post(
            "/verify", json={"document_type": "pan", "fields": pan_fields}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "verified"
        assert data["details"]["verification_id"].startswith("VER")

    def test_not_in_registry(
        self, client: TestClient, pan_fields: dict[str, str]
    ) -> None:
        pan_fields["full_name"] = "Someone Else"
        response = client.post(
            "/verify", json={"document_type": "pan", "fields": pan_fields}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "failed"
        assert data["message"] == "Verification failed - Please check your details"

    def test_missing_field(self, client: TestClient) -> None:
        response = client.post(
            "/verify",
            json={"document_type": "aadhar", "fields": {"full_name": "Rahul"}},
        )
        assert response.status_code == 422
        assert response.json()["detail"] == {
            "title": "Validation Error",
            "description": "Aadhar Number is required",
        }
