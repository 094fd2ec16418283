"""Tests for classifier response parsing and provider error mapping."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest

from models import (
    CATEGORIES,
    ClassificationFailure,
    create_classifier,
    is_supported_mime_type,
    parse_classification_response,
)
from models.openai import OpenAIClassifier
from sentinel.config import ConfigError


def completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


class TestParseResponse:

    def test_plain_json(self):
        result = parse_classification_response('{"category": "公共料金", "fileName": "水道料金_2024年3月"}')
        assert result.category == "公共料金"
        assert result.suggested_name == "水道料金_2024年3月"

    def test_fenced_json(self):
        text = '```json\n{"category": "医療・健康", "fileName": "診療明細"}\n```'
        assert parse_classification_response(text).category == "医療・健康"

    def test_unknown_category(self):
        with pytest.raises(ClassificationFailure) as exc_info:
            parse_classification_response('{"category": "Invoices", "fileName": "x"}')
        assert exc_info.value.reason == "unknown category"

    @pytest.mark.parametrize("text", [
        "",
        "I think this is an invoice",
        '["請求書・領収書"]',
        '{"category": "その他"}',
    ])
    def test_malformed(self, text):
        with pytest.raises(ClassificationFailure) as exc_info:
            parse_classification_response(text)
        assert exc_info.value.reason == "malformed response"

    def test_category_set_is_closed(self):
        assert len(CATEGORIES) == 10
        assert "その他" in CATEGORIES


class TestSupportedTypes:

    @pytest.mark.parametrize("mime", ["application/pdf", "image/png", "image/jpeg", "image/webp"])
    def test_supported(self, mime):
        assert is_supported_mime_type(mime)

    @pytest.mark.parametrize("mime", ["text/plain", "application/vnd.google-apps.document", ""])
    def test_unsupported(self, mime):
        assert not is_supported_mime_type(mime)


class TestCreateClassifier:

    def test_unknown_provider(self):
        with pytest.raises(ConfigError):
            create_classifier("llama")

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ConfigError) as exc_info:
            create_classifier("openai")
        assert "OPENAI_API_KEY" in str(exc_info.value)


class TestOpenAIClassifier:

    @pytest.fixture
    def classifier(self):
        classifier = OpenAIClassifier(api_key="test-key")
        classifier.client = MagicMock()
        return classifier

    def test_pdf_sent_as_file_part(self, classifier):
        classifier.client.chat.completions.create.return_value = completion(
            '{"category": "金融・保険", "fileName": "保険証券"}')
        result = classifier.classify(b"%PDF", "application/pdf", "scan.pdf")

        assert result.category == "金融・保険"
        kwargs = classifier.client.chat.completions.create.call_args.kwargs
        parts = kwargs["messages"][0]["content"]
        assert parts[1]["type"] == "file"
        assert parts[1]["file"]["file_data"].startswith("data:application/pdf;base64,")

    def test_timeout_reason(self, classifier):
        classifier.client.chat.completions.create.side_effect = httpx.ReadTimeout("slow")
        with pytest.raises(ClassificationFailure) as exc_info:
            classifier.classify(b"\x89PNG", "image/png")
        assert exc_info.value.reason == "timeout"

    def test_oversized_document(self, classifier):
        with pytest.raises(ClassificationFailure) as exc_info:
            classifier.classify(b"0" * (21 * 1024 * 1024), "application/pdf")
        assert exc_info.value.reason == "non-conforming file"
        classifier.client.chat.completions.create.assert_not_called()
