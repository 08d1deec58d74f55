"""Tests for the MemoryService read/write contract."""

import pytest

from memory.cache import MemoryCache
from memory.service import InvalidMemoryUpdate, InvalidSessionId, build_service


def test_read_memory_creates_record(service):
    record = service.read_memory("s1")
    assert record.session_id == "s1"
    assert record.word_stats == {}


def test_write_memory_partial_merges(service):
    service.write_memory_partial("s1", {"recentGoals": ["ask for help"]})
    ok = service.write_memory_partial(
        "s1",
        {
            "recentGoals": ["greet friend"],
            "preferredWords": {"Help": 3},
            "programContext": {"targetWords": ["help", "more"]},
        },
    )

    assert ok is True
    record = service.read_memory("s1")
    assert record.recent_goals == ["greet friend", "ask for help"]
    assert record.preferred_words == {"help": 3}
    assert record.program_context.target_words == ["help", "more"]


def test_write_memory_partial_rejects_malformed_input(service, durable):
    """Malformed updates are reported and never reach the store."""
    with pytest.raises(InvalidMemoryUpdate):
        service.write_memory_partial("s1", {"recentGoals": 42})
    assert "s1" not in durable.rows


def test_write_memory_partial_reports_cache_failure(service, monkeypatch):
    def broken_save(record):
        raise RuntimeError("cache exploded")

    monkeypatch.setattr(service.store, "save", broken_save)
    assert service.write_memory_partial("s1", {"recentGoals": ["x"]}) is False


def test_record_spoken_words_and_forecast(service):
    assert service.record_spoken_words("s1", ["want"] * 6 + ["juice"]) is True

    forecast = service.get_forecast("s1")
    assert [(f.word, f.level) for f in forecast] == [("juice", "emerging"), ("want", "developing")]


def test_record_utterance(service):
    assert service.record_utterance("s1", "I want ball") is True
    record = service.read_memory("s1")
    assert set(record.combination_stats) == {"i+want", "want+ball"}
    assert record.recent_utterances == ["I want ball"]


def test_sessions_are_isolated(service):
    service.record_spoken_words("a", ["go"])
    service.record_spoken_words("b", ["stop"])
    assert list(service.read_memory("a").word_stats) == ["go"]
    assert list(service.read_memory("b").word_stats) == ["stop"]


def test_build_service_without_database_is_cache_only():
    service = build_service(database_url="", cache=MemoryCache())
    assert service.store.durable_available is False
    service.record_spoken_words("s1", ["Ball", "ball"])
    assert service.read_memory("s1").word_stats["ball"].count == 2


def test_build_service_with_sqlite(tmp_path):
    url = f"sqlite:///{tmp_path / 'memory.db'}"
    service = build_service(database_url=url, cache=MemoryCache())
    assert service.store.durable_available is True
    service.record_utterance("s1", "go park")
    assert service.read_memory("s1").recent_utterances == ["go park"]


@pytest.mark.parametrize("session_id", ["", "   "])
@pytest.mark.parametrize(
    "call",
    [
        lambda svc, sid: svc.read_memory(sid),
        lambda svc, sid: svc.write_memory_partial(sid, {"recentGoals": ["x"]}),
        lambda svc, sid: svc.record_spoken_words(sid, ["ball"]),
        lambda svc, sid: svc.record_utterance(sid, "go park"),
        lambda svc, sid: svc.get_forecast(sid),
    ],
    ids=["read", "write", "words", "utterance", "forecast"],
)
def test_blank_session_id_rejected(service, durable, cache, session_id, call):
    """Every operation rejects a blank session id before touching the store."""
    with pytest.raises(InvalidSessionId):
        call(service, session_id)
    assert durable.rows == {}
    assert len(cache) == 0
