"""Translation layer - provider clients and the document translator."""
from .llm_translator import (
    BaseTranslator,
    ChatCompletionTranslator,
    DashscopeTranslator,
    create_translator,
    extract_completion_text,
)
from .document_translator import DocumentTranslator

__all__ = [
    "BaseTranslator",
    "ChatCompletionTranslator",
    "DashscopeTranslator",
    "DocumentTranslator",
    "create_translator",
    "extract_completion_text",
]
