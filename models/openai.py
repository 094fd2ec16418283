"""OpenAI classifier.

Sends the document inline (base64) to gpt-4o with a JSON response format.
"""

import base64
import os
from typing import Optional, Sequence

from openai import OpenAI

from sentinel.config import ConfigError
from .base import (
    Classifier,
    Classification,
    CATEGORIES,
    CLASSIFY_TIMEOUT,
    parse_classification_response,
)


class OpenAIClassifier(Classifier):
    """OpenAI implementation for document classification."""

    model = "gpt-4o"

    def __init__(self, api_key: Optional[str] = None) -> None:
        """Initialize OpenAI client.

        Raises:
            ConfigError: If no API key is given and OPENAI_API_KEY is unset
        """
        api_key = api_key or os.environ.get("OPENAI_API_KEY")
        if not api_key:
            raise ConfigError("Missing required settings: OPENAI_API_KEY")
        self.client = OpenAI(api_key=api_key, timeout=CLASSIFY_TIMEOUT, max_retries=0)

    @property
    def name(self) -> str:
        return "openai"

    def classify(self, content: bytes, mime_type: str, file_name: str = "",
                 categories: Sequence[str] = CATEGORIES) -> Classification:
        self._check_size(content)

        data_url = f"data:{mime_type};base64,{base64.b64encode(content).decode('ascii')}"
        if mime_type == "application/pdf":
            document_part = {
                "type": "file",
                "file": {
                    "filename": file_name or "document.pdf",
                    "file_data": data_url,
                },
            }
        else:
            document_part = {"type": "image_url", "image_url": {"url": data_url}}

        try:
            response = self.client.chat.completions.create(
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
        except Exception as e:
            raise self._failure_from_exception(e)

        return parse_classification_response(response_text, categories)
