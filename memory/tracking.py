"""Word and word-pair usage tracking.

Both trackers follow the same cycle: read the record through the store,
mutate it in memory, save it back. The cycle runs under the session's lock.
"""

import re
from typing import Iterable, List, Optional

from memory.forecast import forecast
from memory.locks import SessionLocks
from memory.schema import (
    MAX_RECENT_ITEMS,
    PAIR_DELIMITER,
    CombinationStats,
    SessionMemoryRecord,
    WordStats,
    normalize_word,
    pair_key,
    utcnow,
)
from memory.store import MemoryStore

_TOKEN_SPLIT = re.compile(r"[\s" + re.escape(PAIR_DELIMITER) + r"]+")


def tokenize(utterance: str) -> List[str]:
    """Lower-cased tokens of *utterance*, split on whitespace and the pair delimiter."""
    return [token for token in _TOKEN_SPLIT.split(utterance.lower()) if token]


def adjacent_pairs(tokens: List[str]) -> List[str]:
    return [pair_key(first, second) for first, second in zip(tokens, tokens[1:])]


class WordUsageTracker:
    """Counts spoken words and keeps the mastery forecast current."""

    def __init__(self, store: MemoryStore, locks: Optional[SessionLocks] = None) -> None:
        self._store = store
        self._locks = locks or SessionLocks()

    def record_words(self, session_id: str, words: Iterable[str]) -> SessionMemoryRecord:
        with self._locks.hold(session_id):
            record = self._store.get(session_id)
            now = utcnow()
            for word in words:
                normalized = normalize_word(word)
                if not normalized:
                    continue
                stats = record.word_stats.get(normalized)
                if stats is None:
                    record.word_stats[normalized] = WordStats(count=1, last_used_at=now)
                else:
                    stats.count += 1
                    stats.last_used_at = now
                record.preferred_words[normalized] = record.preferred_words.get(normalized, 0) + 1

            record.mastery_forecast = forecast(record.word_stats)
            self._store.save(record)
            return record


class CombinationTracker:
    """Counts ordered adjacent word pairs and keeps recent utterances."""

    def __init__(self, store: MemoryStore, locks: Optional[SessionLocks] = None) -> None:
        self._store = store
        self._locks = locks or SessionLocks()

    def record_utterance(self, session_id: str, utterance: str) -> SessionMemoryRecord:
        with self._locks.hold(session_id):
            record = self._store.get(session_id)
            for key in adjacent_pairs(tokenize(utterance)):
                stats = record.combination_stats.get(key)
                if stats is None:
                    record.combination_stats[key] = CombinationStats(count=1)
                else:
                    stats.count += 1

            record.recent_utterances = [utterance, *record.recent_utterances][:MAX_RECENT_ITEMS]
            self._store.save(record)
            return record
