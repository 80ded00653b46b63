"""
Dialogue Store

Persistence, search, statistics and transfer for character dialogue
sessions over a pluggable key-value backend.
"""

from dialogue_store.errors import (
    DataImportError,
    DialogueStoreError,
    StorageError,
    SummarizationError,
)
from dialogue_store.store import DialogueStore

__version__ = "0.1.0"

__all__ = [
    "DialogueStore",
    "DialogueStoreError",
    "DataImportError",
    "StorageError",
    "SummarizationError",
]
