import threading

import pytest

from packages.core.config import SyncSettings
from packages.core.digest.summarizer import NO_SUMMARY, ThreadSummarizer
from packages.core.digest.sync import ThreadSyncService, run_sync_safely
from packages.core.discord.client import DiscordMessage, DiscordThread
from packages.core.errors import SourceFetchError, SummarizationError, SyncAlreadyRunning
from packages.core.storage.sqlite import SQLiteThreadSummaryStore


class FakeSource:
    def __init__(self, threads):
        # thread id -> chronological messages
        self.threads = threads
        self.failing = set()
        self.page_calls = 0

    def add_message(self, thread_id, content):
        messages = self.threads[thread_id]
        index = len(messages) + 1
        messages.append(
            DiscordMessage(
                id=str(int(thread_id) * 1000 + index),
                author_name="alice",
                content=content,
                created_timestamp=1700000000000 + int(thread_id) * 1000 + index,
            )
        )

    def list_archived_threads(self, parent_id, limit):
        return [DiscordThread(id=tid, name=f"Thread {tid}") for tid in self.threads][:limit]

    def fetch_newest(self, thread_id):
        if thread_id in self.failing:
            raise SourceFetchError("rate limited", status_code=429)
        messages = self.threads[thread_id]
        return messages[-1] if messages else None

    def fetch_page(self, thread_id, before=None, limit=100):
        self.page_calls += 1
        older = [m for m in self.threads[thread_id] if before is None or int(m.id) < int(before)]
        return list(reversed(older))[:limit]


class FakeSummarizer:
    def __init__(self):
        self.calls = []
        self.failing_titles = set()

    def summarize(self, title, messages):
        self.calls.append((title, list(messages)))
        if title in self.failing_titles:
            raise SummarizationError("timeout")
        return f"<p>{len(messages)} messages</p>"


def _settings(**overrides):
    values = dict(discord_token="token", forum_channel_id="999", lookback=10, page_size=2)
    values.update(overrides)
    return SyncSettings(**values)


@pytest.fixture
def store(tmp_path):
    return SQLiteThreadSummaryStore(db_path=str(tmp_path / "threads.db"))


def _source():
    source = FakeSource({"1": [], "2": []})
    for index in range(5):
        source.add_message("1", f"one {index}")
    for index in range(3):
        source.add_message("2", f"two {index}")
    return source


def test_first_run_processes_every_thread(store):
    source = _source()
    summarizer = FakeSummarizer()
    service = ThreadSyncService(source, store, summarizer, _settings())

    stats = service.run()

    assert (stats.processed, stats.skipped, stats.failed) == (2, 0, 0)
    record = store.get_thread_summary("1")
    assert record.name == "Thread 1"
    assert [m.content for m in record.transcript] == [f"one {i}" for i in range(5)]
    assert record.summary == "<p>5 messages</p>"
    assert record.last_message_timestamp == source.threads["1"][-1].created_timestamp
    assert service.last_stats is stats


def test_second_run_skips_unchanged_threads(store):
    source = _source()
    summarizer = FakeSummarizer()
    service = ThreadSyncService(source, store, summarizer, _settings())
    service.run()
    summarizer.calls.clear()
    source.page_calls = 0

    stats = service.run()

    assert (stats.processed, stats.skipped) == (0, 2)
    assert summarizer.calls == []
    assert source.page_calls == 0


def test_new_message_triggers_full_resync(store):
    source = _source()
    summarizer = FakeSummarizer()
    service = ThreadSyncService(source, store, summarizer, _settings())
    service.run()
    summarizer.calls.clear()

    source.add_message("2", "follow up")
    stats = service.run()

    assert (stats.processed, stats.skipped) == (1, 1)
    assert len(summarizer.calls) == 1
    title, messages = summarizer.calls[0]
    assert title == "Thread 2"
    assert len(messages) == 4
    record = store.get_thread_summary("2")
    assert record.last_message_timestamp == source.threads["2"][-1].created_timestamp
    assert record.transcript[-1].content == "follow up"


def test_lookback_limits_threads(store):
    source = _source()
    service = ThreadSyncService(source, store, FakeSummarizer(), _settings())

    stats = service.run(lookback=1)

    assert stats.processed == 1
    assert store.get_thread_summary("2") is None


def test_failing_thread_is_isolated(store):
    source = _source()
    source.failing.add("1")
    summarizer = FakeSummarizer()
    summarizer.failing_titles.add("Thread 2")
    service = ThreadSyncService(source, store, summarizer, _settings())

    stats = service.run()

    assert (stats.processed, stats.skipped, stats.failed) == (0, 0, 2)
    assert stats.failed_thread_ids == ["1", "2"]
    assert store.list_thread_summaries() == []


def test_failed_summary_is_retried_next_run(store):
    source = _source()
    summarizer = FakeSummarizer()
    summarizer.failing_titles.add("Thread 1")
    service = ThreadSyncService(source, store, summarizer, _settings())
    service.run()

    summarizer.failing_titles.clear()
    stats = service.run()

    assert (stats.processed, stats.skipped) == (1, 1)
    assert store.get_thread_summary("1") is not None


def test_overlapping_run_is_rejected(store):
    entered = threading.Event()
    release = threading.Event()

    class BlockingSource(FakeSource):
        def list_archived_threads(self, parent_id, limit):
            entered.set()
            release.wait(timeout=5)
            return []

    service = ThreadSyncService(BlockingSource({}), store, FakeSummarizer(), _settings())
    worker = threading.Thread(target=service.run)
    worker.start()
    try:
        assert entered.wait(timeout=5)
        assert service.is_running is True
        with pytest.raises(SyncAlreadyRunning):
            service.run()
        assert run_sync_safely(service) is None
    finally:
        release.set()
        worker.join(timeout=5)
    assert service.is_running is False


def test_run_sync_safely_logs_listing_failure(store, caplog):
    class BrokenSource(FakeSource):
        def list_archived_threads(self, parent_id, limit):
            raise SourceFetchError("unauthorized", status_code=401)

    service = ThreadSyncService(BrokenSource({}), store, FakeSummarizer(), _settings())

    assert run_sync_safely(service) is None
    assert "sync_failed" in caplog.text
    assert service.is_running is False


def test_run_sync_safely_returns_stats(store):
    service = ThreadSyncService(_source(), store, FakeSummarizer(), _settings())
    stats = run_sync_safely(service)
    assert stats.processed == 2


class ScriptedLLM:
    def __init__(self, responses):
        self.responses = list(responses)

    def chat(self, messages, tools=None):
        return self.responses.pop(0)


def test_malformed_completion_does_not_abort_sweep(store):
    llm = ScriptedLLM(
        [
            {"choices": ["garbled"]},
            {"choices": [{"message": {"content": "<p>ok</p>"}}]},
        ]
    )
    service = ThreadSyncService(
        _source(), store, ThreadSummarizer(llm_client=llm), _settings()
    )

    stats = service.run()

    assert (stats.processed, stats.failed) == (1, 1)
    assert stats.failed_thread_ids == ["1"]
    assert store.get_thread_summary("1") is None
    assert store.get_thread_summary("2").summary == "<p>ok</p>"


def test_null_choice_stores_placeholder(store):
    llm = ScriptedLLM([{"choices": [None]}, {"choices": [None]}])
    service = ThreadSyncService(
        _source(), store, ThreadSummarizer(llm_client=llm), _settings()
    )

    stats = service.run()

    assert stats.processed == 2
    assert store.get_thread_summary("1").summary == NO_SUMMARY


def test_lookback_defaults_to_settings(store):
    service = ThreadSyncService(_source(), store, FakeSummarizer(), _settings(lookback=1))

    assert service.run().processed == 1
    assert service.run(lookback=2).processed == 1
    assert store.get_thread_summary("2") is not None
