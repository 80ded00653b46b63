"""Persisted key namespace."""

CONVERSATION_PREFIX = "conversation_"
SUMMARY_PREFIX = "conversation_summary_"
CONVERSATION_INDEX = "conversation_index"
FAVORITE_CONVERSATIONS = "favorite_conversations"
DIALOGUE_HISTORY = "dialogue_history"
CONVERSATION_HISTORY = "conversation_history"
HISTORY_SETTINGS = "history_settings"


def conversation_key(conversation_id: str) -> str:
    return f"{CONVERSATION_PREFIX}{conversation_id}"


def summary_key(conversation_id: str) -> str:
    return f"{SUMMARY_PREFIX}{conversation_id}"
