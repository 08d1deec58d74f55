"""LangChain tools for reading and updating per-session word memory."""

import json

from langchain_core.tools import tool

from assistant.guardrails import tool_logger
from memory.service import InvalidMemoryInput, get_service


def _dump(payload) -> str:
    return json.dumps(payload, ensure_ascii=False)


def _error(exc: InvalidMemoryInput) -> str:
    return f"Error: invalid memory request: {exc}"


@tool
def memory_read(session_id: str) -> str:
    """Read the user's memory and history for personalization.

    Returns the full session record as JSON: recent goals and utterances,
    preferred words, per-word usage counts, word-pair counts and the
    mastery forecast.

    Args:
        session_id: The session to read memory for.
    """
    try:
        record = get_service().read_memory(session_id)
    except InvalidMemoryInput as e:
        result = _error(e)
    else:
        result = _dump(record.to_json_dict())
    tool_logger.log("memory_read", {"session_id": session_id}, result)
    return result


@tool
def memory_write(session_id: str, updates: dict) -> str:
    """Update the user's memory with new information.

    Args:
        session_id: The session to update memory for.
        updates:    Partial record. Allowed keys: 'recentGoals' and
                    'recentUtterances' (lists of strings, prepended),
                    'preferredWords' (word -> score, merged) and
                    'programContext' (rawText / extractedGoals / targetWords,
                    merged field by field).
    """
    try:
        ok = get_service().write_memory_partial(session_id, updates)
    except InvalidMemoryInput as e:
        result = _error(e)
    else:
        result = _dump({"success": ok})
    tool_logger.log("memory_write", {"session_id": session_id, "updates": updates}, result)
    return result


@tool
def record_spoken_words(session_id: str, words: list[str]) -> str:
    """Record words the user just spoke.

    Use this after an utterance is finalized so word counts, preferred
    words and the mastery forecast stay current.

    Args:
        session_id: The session the words belong to.
        words:      The words used, in spoken order.
    """
    try:
        ok = get_service().record_spoken_words(session_id, words)
    except InvalidMemoryInput as e:
        result = _error(e)
    else:
        result = _dump({"success": ok})
    tool_logger.log("record_spoken_words", {"session_id": session_id, "words": words}, result)
    return result


@tool
def record_utterance(session_id: str, utterance: str) -> str:
    """Record a full spoken sentence and count its two-word combinations.

    Args:
        session_id: The session the utterance belongs to.
        utterance:  The sentence exactly as spoken.
    """
    try:
        ok = get_service().record_utterance(session_id, utterance)
    except InvalidMemoryInput as e:
        result = _error(e)
    else:
        result = _dump({"success": ok})
    tool_logger.log("record_utterance", {"session_id": session_id, "utterance": utterance}, result)
    return result


@tool
def get_mastery_forecast(session_id: str) -> str:
    """Return each word's mastery level and projected mastery date.

    Words are listed emerging first, then developing, then mastered.

    Args:
        session_id: The session to forecast for.
    """
    try:
        entries = get_service().get_forecast(session_id)
    except InvalidMemoryInput as e:
        result = _error(e)
    else:
        result = _dump([e.model_dump(mode="json", by_alias=True) for e in entries])
    tool_logger.log("get_mastery_forecast", {"session_id": session_id}, result)
    return result
