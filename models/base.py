"""Base classes for document classifiers.

This module defines the interface every LLM backend implements, the closed
category set, and the shared prompt/response handling.
"""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx


class LLMError(Exception):
    """Base exception for LLM operations."""
    pass


class ClassificationFailure(LLMError):
    """The model could not produce a usable classification.

    Attributes:
        reason: Short tag shown to the operator, e.g. "API error"
    """

    def __init__(self, message: str, reason: str = "API error") -> None:
        super().__init__(message)
        self.reason = reason


@dataclass
class Classification:
    """Result of classifying a document.

    Attributes:
        category: One of CATEGORIES
        suggested_name: Proposed file name stem (no date prefix, no extension)
    """
    category: str
    suggested_name: str


CATEGORIES = (
    "学校・教育",
    "請求書・領収書",
    "マニュアル・保証書",
    "公共料金",
    "税金・公的書類",
    "金融・保険",
    "医療・健康",
    "仕事関連",
    "チラシ・広告",
    "その他",
)

# Extension → MIME type for everything the models accept
SUPPORTED_MIME_TYPES = {
    '.pdf': 'application/pdf',
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.bmp': 'image/bmp',
    '.webp': 'image/webp',
}

# Maximum document size sent to a model (20MB)
MAX_FILE_SIZE_MB = 20

# Seconds allowed for a classification request
CLASSIFY_TIMEOUT = 30.0


def is_supported_mime_type(mime_type: str) -> bool:
    return mime_type in SUPPORTED_MIME_TYPES.values()


CLASSIFY_PROMPT = """このドキュメント（画像またはPDF）の内容を分析し、最も適切だと思われるカテゴリを下記のリストから1つだけ選んでください。
リストにないカテゴリは使用しないでください。判断が難しい場合は「その他」と回答してください。

あわせて、内容が一目でわかる短いファイル名を提案してください。
- 日本語で、単語は「_」でつなぐ（例: 電気代_請求書）
- 日付や拡張子は含めない
- 「/」などファイル名に使えない記号は使わない

回答は次のJSON形式のみで、他の言葉は含めないでください:
{{"category": "<カテゴリ名>", "fileName": "<ファイル名>"}}

カテゴリリスト:
{categories}
"""


class Classifier(ABC):
    """Abstract base class for LLM classifiers.

    Implementations send the document to a model and return a Classification.
    Every problem on the model side (transport, timeout, auth, bad output)
    surfaces as ClassificationFailure so the scanner can route the document
    to manual review without special-casing providers.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name (e.g., 'mistral', 'openai')."""
        pass

    @abstractmethod
    def classify(self, content: bytes, mime_type: str, file_name: str = "",
                 categories: Sequence[str] = CATEGORIES) -> Classification:
        """Classify a document.

        Args:
            content: Raw document bytes
            mime_type: One of SUPPORTED_MIME_TYPES
            file_name: Original name, passed along for context
            categories: Closed set of allowed categories

        Returns:
            Classification with a category from `categories`

        Raises:
            ClassificationFailure: On any model-side problem
        """
        pass

    # =========================================================================
    # Helper methods (shared by all implementations)
    # =========================================================================

    def _check_size(self, content: bytes) -> None:
        if len(content) > MAX_FILE_SIZE_MB * 1024 * 1024:
            raise ClassificationFailure(
                f"Document exceeds {MAX_FILE_SIZE_MB}MB limit "
                f"({len(content) / 1024 / 1024:.1f}MB)",
                reason="non-conforming file",
            )

    def _build_prompt(self, categories: Sequence[str]) -> str:
        return CLASSIFY_PROMPT.format(categories=", ".join(categories))

    def _failure_from_exception(self, exc: Exception) -> ClassificationFailure:
        """Map a provider SDK exception to a tagged ClassificationFailure."""
        status = getattr(exc, "status_code", None)
        if isinstance(exc, (httpx.TimeoutException, TimeoutError)) or "Timeout" in type(exc).__name__:
            reason = "timeout"
        elif status in (401, 403):
            reason = "configuration error"
        else:
            reason = "API error"
        return ClassificationFailure(f"{self.name} request failed: {exc}", reason=reason)


_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def parse_classification_response(response: Optional[str],
                                  categories: Sequence[str] = CATEGORIES) -> Classification:
    """Parse and validate the model's JSON answer.

    Accepts the JSON object alone or wrapped in a ``` fence.

    Raises:
        ClassificationFailure: If the response isn't JSON, the category is not
            in the closed set, or the file name is missing
    """
    if not response or not response.strip():
        raise ClassificationFailure("Model returned an empty response", reason="malformed response")

    text = _FENCE_RE.sub("", response.strip())
    try:
        data = json.loads(text)
    except ValueError:
        raise ClassificationFailure(f"Model response is not JSON: {response[:200]}",
                                    reason="malformed response")
    if not isinstance(data, dict):
        raise ClassificationFailure("Model response is not a JSON object",
                                    reason="malformed response")

    category = str(data.get("category") or "").strip()
    file_name = str(data.get("fileName") or "").strip()

    if category not in categories:
        raise ClassificationFailure(f"Model returned an unknown category: {category!r}",
                                    reason="unknown category")
    if not file_name:
        raise ClassificationFailure("Model response has no fileName",
                                    reason="malformed response")

    return Classification(category=category, suggested_name=file_name)
