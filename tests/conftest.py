"""Shared test fixtures for the document verification test suite."""

import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

AADHAR_TEXT = (
    "Government of India\n"
    "Name: Rahul Sharma\n"
    "DOB: 15/08/1995\n"
    "Male\n"
    "2345 6789 0124\n"
    "Address: 12 MG Road, New Delhi 110001\n"
)

PAN_TEXT = (
    "INCOME TAX DEPARTMENT\n"
    "GOVT. OF INDIA\n"
    "Name\n"
    "PRIYA PATEL\n"
    "Father's Name\n"
    "RAJESH PATEL\n"
    "Date of Birth\n"
    "22/03/1990\n"
    "Permanent Account Number\n"
    "ABCDE1234F\n"
)

MARKSHEET_TEXT = (
    "CENTRAL BOARD OF SECONDARY EDUCATION\n"
    "Senior School Certificate Examination\n"
    "Roll No: 1234567\n"
    "Student Name: Amit Kumar\n"
    "Mother's Name: Sunita Devi\n"
    "Father's Name: Rakesh Kumar\n"
    "School Name: Delhi Public School\n"
    "Class XII\n"
    "Year of Passing: 2020\n"
    "Percentage: 85.5%\n"
)


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.zeros((200, 300), dtype=np.uint8)
    image[50:150, 50:250] = 255
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic RGB test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def png_bytes() -> bytes:
    """A small PNG image encoded as bytes."""
    img = Image.fromarray(np.zeros((100, 200, 3), dtype=np.uint8))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"


@pytest.fixture
def aadhar_fields() -> dict[str, str]:
    """Aadhar form values matching the built-in registry record."""
    return {
        "aadhar_number": "2345 6789 0124",
        "full_name": "Rahul Sharma",
        "dob": "15-08-1995",
        "pincode": "110001",
    }


@pytest.fixture
def pan_fields() -> dict[str, str]:
    """PAN form values matching the built-in registry record."""
    return {
        "pan_number": "ABCDE1234F",
        "full_name": "Priya Patel",
        "father_name": "Rajesh Patel",
        "dob": "22-03-1990",
    }


@pytest.fixture
def marksheet_fields() -> dict[str, str]:
    """Marksheet form values matching the built-in registry record."""
    return {
        "roll_number": "1234567",
        "student_name": "Amit Kumar",
        "school_name": "Delhi Public School",
        "board": "CBSE",
        "class": "12th",
        "passing_year": "2020",
        "percentage": "85.5%",
    }


@pytest.fixture
def aadhar_text() -> str:
    """OCR text of an Aadhar card."""
    return AADHAR_TEXT


@pytest.fixture
def pan_text() -> str:
    """OCR text of a PAN card."""
    return PAN_TEXT


@pytest.fixture
def marksheet_text() -> str:
    """OCR text of a Class 12 marksheet."""
    return MARKSHEET_TEXT
