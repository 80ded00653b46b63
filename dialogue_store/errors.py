"""Error types raised across the dialogue store."""

from __future__ import annotations

CONVERSATION_IMPORT_FAILED = "Conversation import failed"
HISTORY_IMPORT_FAILED = "Failed to import history"


class DialogueStoreError(Exception):
    """Base exception for dialogue store errors."""

    pass


class StorageError(DialogueStoreError):
    """
    Key-value backend failure.

    Attributes:
        operation: Backend operation that failed (get, set, remove, clear, decode)
        key: Key involved, when the failure is tied to one
    """

    def __init__(self, message: str, *, operation: str, key: str | None = None):
        self.operation = operation
        self.key = key
        super().__init__(message)


class DataImportError(DialogueStoreError):
    """
    Malformed export payload.

    The string form is always one of the fixed messages so callers can tell a
    bad file apart from an unavailable backend; ``reason`` keeps the detail.
    """

    def __init__(self, message: str, reason: str | None = None):
        self.message = message
        self.reason = reason
        super().__init__(message)


class SummarizationError(DialogueStoreError):
    """External summarizer failure."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        self.message = message
        super().__init__(f"[{provider}] {message}")
