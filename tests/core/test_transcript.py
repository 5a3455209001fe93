import math

import pytest

from packages.core.digest.detector import has_new_messages
from packages.core.digest.transcript import fetch_transcript
from packages.core.discord.client import DiscordMessage, DiscordThread
from packages.core.storage.base import ThreadSummaryState


def _message(index):
    return DiscordMessage(
        id=str(1000 + index),
        author_name=f"user{index % 3}",
        content=f"message {index}",
        created_timestamp=1700000000000 + index,
    )


class FakeSource:
    def __init__(self, count):
        # Chronological, oldest first.
        self.messages = [_message(index) for index in range(1, count + 1)]
        self.newest_calls = 0
        self.page_calls = []

    def fetch_newest(self, thread_id):
        self.newest_calls += 1
        return self.messages[-1] if self.messages else None

    def fetch_page(self, thread_id, before=None, limit=100):
        self.page_calls.append(before)
        older = [m for m in self.messages if before is None or int(m.id) < int(before)]
        return list(reversed(older))[:limit]

    def list_archived_threads(self, parent_id, limit):
        return []


THREAD = DiscordThread(id="42", name="Torrent not matching")


def _stored(last_message_timestamp):
    return ThreadSummaryState(
        thread_id="42",
        name="Torrent not matching",
        summary="old",
        last_message_timestamp=last_message_timestamp,
        updated_at=0,
    )


def test_empty_thread_reports_no_change():
    source = FakeSource(0)
    assert fetch_transcript(source, THREAD) is None
    assert source.page_calls == []


def test_unchanged_thread_makes_no_page_requests():
    source = FakeSource(30)
    existing = _stored(source.messages[-1].created_timestamp)

    assert fetch_transcript(source, THREAD, existing) is None
    assert source.newest_calls == 1
    assert source.page_calls == []


def test_changed_thread_fetches_full_history():
    source = FakeSource(30)
    existing = _stored(source.messages[-2].created_timestamp)

    fetched = fetch_transcript(source, THREAD, existing, page_size=10)

    assert fetched is not None
    assert len(fetched.transcript) == 30
    assert fetched.last_message_timestamp == source.messages[-1].created_timestamp


@pytest.mark.parametrize(
    "count,page_size",
    [(1, 100), (100, 100), (101, 100), (250, 100), (7, 3), (9, 3)],
)
def test_pagination_request_count_and_order(count, page_size):
    source = FakeSource(count)

    fetched = fetch_transcript(source, THREAD, page_size=page_size)

    assert len(source.page_calls) == math.ceil(count / page_size)
    assert [m.content for m in fetched.transcript] == [
        f"message {index}" for index in range(1, count + 1)
    ]
    assert [m.user for m in fetched.transcript] == [m.author_name for m in source.messages]


def test_cursor_moves_to_oldest_seen_message():
    source = FakeSource(7)

    fetch_transcript(source, THREAD, page_size=3)

    assert source.page_calls == ["1007", "1004", "1001"]


def test_cap_keeps_most_recent_messages():
    source = FakeSource(50)

    fetched = fetch_transcript(source, THREAD, page_size=10, max_messages=15)

    assert len(fetched.transcript) == 15
    assert fetched.transcript[0].content == "message 36"
    assert fetched.transcript[-1].content == "message 50"
    assert len(source.page_calls) == 2


def test_detector_requires_resync_without_record():
    assert has_new_messages(None, _message(1)) is True


def test_detector_compares_timestamps_only():
    newest = _message(5)
    assert has_new_messages(_stored(newest.created_timestamp), newest) is False
    assert has_new_messages(_stored(newest.created_timestamp - 1), newest) is True
