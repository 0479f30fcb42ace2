"""Generative AI field extraction using Google Gemini.

The page image is sent with a prompt that lists the document's field
keys and asks for a single JSON object back. Only known keys with
non-empty values are kept.
"""

import json
import re
from dataclasses import dataclass

import google.generativeai as genai
import numpy as np
from PIL import Image

from src.documents.fields import DOCUMENT_TITLES, DocumentType, get_fields
from src.utils.config import AIConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


@dataclass
class AIExtractedField:
    """A field returned by the generative model."""

    field_name: str
    value: str
    confidence: float


def build_prompt(document_type: DocumentType | str) -> str:
    """Build the extraction prompt for a document type."""
    document_type = DocumentType(document_type)
    lines = [
        f'  "{spec.key}": "{spec.label} ({spec.placeholder})"'
        for spec in get_fields(document_type)
    ]
    return (
        f"This image is an Indian {DOCUMENT_TITLES[document_type]}. "
        "Read the printed details and return ONLY a JSON object with these keys:\n"
        "{\n" + ",\n".join(lines) + "\n}\n"
        "Use an empty string for any value that is not visible. "
        "Write dates as DD-MM-YYYY. Do not add any other text."
    )


def parse_json_reply(text: str) -> dict:
    """Pull the first JSON object out of a model reply.

    Models sometimes wrap the object in prose or a code fence, so the
    outermost ``{...}`` span is parsed.

    Raises:
        ValueError: If the reply holds no parseable JSON object.
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        raise ValueError("AI reply did not contain a JSON object")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ValueError(f"AI reply was not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("AI reply JSON is not an object")
    return data


class GeminiExtractor:
    """Extracts document fields from an image with a Gemini model.

    Args:
        config: AI configuration holding the API key and model name.

    Raises:
        ValueError: If no API key is configured.
    """

    def __init__(self, config: AIConfig) -> None:
        if not config.api_key:
            raise ValueError("AI extraction requires an API key")
        self.config = config
        genai.configure(api_key=config.api_key)
        self.model = genai.GenerativeModel(config.model_name)
        logger.info("Using Gemini model %s for extraction", config.model_name)

    def extract(
        self, image: np.ndarray | Image.Image, document_type: DocumentType | str
    ) -> list[AIExtractedField]:
        """Ask the model for the fields visible on a document image.

        Args:
            image: Page image as a numpy array or PIL image.
            document_type: Which document's fields to ask for.

        Returns:
            Extracted fields in catalog order.

        Raises:
            RuntimeError: If the model call fails or its reply is unusable.
        """
        pil_image = image if isinstance(image, Image.Image) else Image.fromarray(image)
        prompt = build_prompt(document_type)

        try:
            response = self.model.generate_content([prompt, pil_image])
            data = parse_json_reply(response.text)
        except Exception as exc:
            raise RuntimeError(f"AI extraction failed: {exc}") from exc

        fields: list[AIExtractedField] = []
        for spec in get_fields(document_type):
            value = data.get(spec.key)
            if value is None or not str(value).strip():
                continue
            fields.append(
                AIExtractedField(spec.key, str(value).strip(), self.config.confidence)
            )
        logger.info("AI extraction found %d fields", len(fields))
        return fields
