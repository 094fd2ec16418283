"""Mistral AI classifier.

PDFs are uploaded through the file API and referenced by signed URL; images
are sent inline as base64 data URLs.
"""

import base64
import os
from typing import Optional, Sequence

from mistralai import Mistral

from sentinel.config import ConfigError
from .base import (
    Classifier,
    Classification,
    ClassificationFailure,
    CATEGORIES,
    CLASSIFY_TIMEOUT,
    parse_classification_response,
)


class MistralClassifier(Classifier):
    """Mistral implementation using mistral-small-latest (vision capable)."""

    model = "mistral-small-latest"

    def __init__(self, api_key: Optional[str] = None) -> None:
        """Initialize Mistral client.

        Raises:
            ConfigError: If no API key is given and MISTRAL_API_KEY is unset
        """
        api_key = api_key or os.environ.get("MISTRAL_API_KEY")
        if not api_key:
            raise ConfigError("Missing required settings: MISTRAL_API_KEY")
        self.client = Mistral(api_key=api_key, timeout_ms=int(CLASSIFY_TIMEOUT * 1000))

    @property
    def name(self) -> str:
        return "mistral"

    def classify(self, content: bytes, mime_type: str, file_name: str = "",
                 categories: Sequence[str] = CATEGORIES) -> Classification:
        self._check_size(content)

        try:
            document_part = self._document_part(content, mime_type)
            response = self.client.chat.complete(
                model=self.model,
                messages=[{
                    "role": "user",
                    "content": [
                        {"type": "text", "text": self._build_prompt(categories)},
                        document_part,
                    ],
                }],
                response_format={"type": "json_object"},
            )
            response_text = response.choices[0].message.content
        except ClassificationFailure:
            raise
        except Exception as e:
            raise self._failure_from_exception(e)

        return parse_classification_response(response_text, categories)

    def _document_part(self, content: bytes, mime_type: str) -> dict:
        if mime_type == "application/pdf":
            upload = self.client.files.upload(
                file={"file_name": "document.pdf", "content": content},
                purpose="ocr",
            )
            signed_url = self.client.files.get_signed_url(file_id=upload.id)
            return {"type": "document_url", "document_url": signed_url.url}

        encoded = base64.b64encode(content).decode("ascii")
        return {"type": "image_url", "image_url": f"data:{mime_type};base64,{encoded}"}
