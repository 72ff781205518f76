"""Exception hierarchy for the translation pipeline."""
from typing import Optional


class TranslationError(Exception):
    """Base class for every error raised by this package."""


class ProviderCallError(TranslationError):
    """A single call to the translation provider failed.

    These errors are contained per paragraph by the document translator:
    the paragraph keeps its original text and the document still completes.
    """


class TransportError(ProviderCallError):
    """The provider could not be reached (connection failure, timeout)."""


class ProviderError(ProviderCallError):
    """The provider answered with a non-success HTTP status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"API request failed with status {status_code}: {body}")


class MalformedResponseError(ProviderCallError):
    """The provider response is missing or mistypes an expected field."""

    def __init__(self, field: str, detail: Optional[str] = None):
        self.field = field
        message = f"invalid API response format: '{field}'"
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)


class StructuralError(TranslationError):
    """The input document has a shape the translator cannot rebuild."""


class UnsupportedBlockError(StructuralError):
    """A body item is neither a paragraph, a table nor an opaque block."""


class DocumentFormatError(TranslationError, ValueError):
    """The input file is not a readable Word (.docx) document."""
