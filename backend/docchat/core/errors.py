"""Exception hierarchy for the document chat backend.

Provider-level errors (extraction, embeddings, language model) are raised by
the collaborators; the pipelines wrap them in operation-level errors with
``raise ... from`` so callers only need to handle one type per operation.
A missing session or upload is not an error: lookups return ``None``.
"""

from typing import Any, Dict, Optional


class DocChatError(Exception):
    """Base exception for all document chat errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging and error bodies."""
        return {
            "error": {
                "message": self.message,
                "code": self.__class__.__name__,
                "details": self.details,
            }
        }


# --- Provider errors ---

class ExtractionError(DocChatError):
    """Raised when page text cannot be extracted from a file."""

    def __init__(self, message: str = "Text extraction failed", file_path: Optional[str] = None):
        super().__init__(message, {"file_path": file_path} if file_path else None)


class EmbeddingError(DocChatError):
    """Raised when the embedding provider fails."""

    def __init__(self, message: str = "Embedding generation failed", model: Optional[str] = None):
        super().__init__(message, {"model": model} if model else None)


class LanguageModelError(DocChatError):
    """Raised when the language model call fails or returns no usable text."""

    def __init__(self, message: str = "Language model call failed", model: Optional[str] = None):
        super().__init__(message, {"model": model} if model else None)


# --- Vector store errors ---

class DimensionMismatch(DocChatError):
    """Raised when a vector does not match the store's dimensionality."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector dimension {actual} does not match store dimension {expected}",
            {"expected": expected, "actual": actual},
        )


class CorruptStore(DocChatError):
    """Raised when a persisted vector store file cannot be read back."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, {"path": path} if path else None)


# --- Operation errors ---

class IngestionError(DocChatError):
    """Raised when a document could not be ingested; the store is unchanged."""


class QueryError(DocChatError):
    """Raised when a question could not be answered."""


class TranslationError(DocChatError):
    """Raised when any page of a document fails to translate."""


# --- Session and upload errors ---

class SessionReadError(DocChatError):
    """Raised when a persisted chat session file is malformed."""

    def __init__(self, session_id: str, reason: str):
        self.session_id = session_id
        super().__init__(f"Could not read chat session {session_id}: {reason}", {"session_id": session_id})


class InvalidSessionId(DocChatError, ValueError):
    """Raised when a session id is not a safe file-name identifier."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Invalid session id: {session_id!r}")


class UnsafeFilename(DocChatError, ValueError):
    """Raised when an upload token tries to escape the upload directory."""

    def __init__(self, filename: str):
        self.filename = filename
        super().__init__(f"Unsafe filename: {filename!r}")
