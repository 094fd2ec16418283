"""Document classifiers for Drive Sentinel.

Provides a uniform classification interface across LLM providers:
- MistralClassifier: Mistral AI (default)
- OpenAIClassifier: OpenAI GPT-4o

Usage:
    from models import create_classifier

    classifier = create_classifier("mistral")
    result = classifier.classify(pdf_bytes, "application/pdf")
"""

from .base import (
    Classifier,
    Classification,
    ClassificationFailure,
    LLMError,
    CATEGORIES,
    SUPPORTED_MIME_TYPES,
    is_supported_mime_type,
    parse_classification_response,
)


def create_classifier(provider: str = "mistral") -> Classifier:
    """Create a classifier for the specified provider.

    Args:
        provider: LLM provider name ("mistral" or "openai")

    Raises:
        ConfigError: If the provider is unknown or its API key is missing
    """
    from sentinel.config import ConfigError

    provider = provider.lower()

    if provider == "mistral":
        from .mistral import MistralClassifier
        return MistralClassifier()
    elif provider == "openai":
        from .openai import OpenAIClassifier
        return OpenAIClassifier()
    else:
        raise ConfigError(
            f"Unknown LLM provider: {provider}. "
            "Must be 'mistral' or 'openai'"
        )


__all__ = [
    'Classifier',
    'Classification',
    'ClassificationFailure',
    'LLMError',
    'CATEGORIES',
    'SUPPORTED_MIME_TYPES',
    'is_supported_mime_type',
    'parse_classification_response',
    'create_classifier',
]
