"""Bounded history log of finished sessions."""

from dialogue_store.history.log import HistoryLog

__all__ = ["HistoryLog"]
