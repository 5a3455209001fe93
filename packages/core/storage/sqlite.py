from __future__ import annotations

import json
import logging
import os
import sqlite3
import time
from typing import Any, Dict, List, Optional

from ..errors import PersistenceError
from .base import ThreadSummaryState, ThreadSummaryStore, TranscriptMessage


logger = logging.getLogger("thread_digest.storage")


def _now_ms() -> int:
    return int(time.time() * 1000)


def encode_transcript(transcript: List[TranscriptMessage]) -> str:
    return json.dumps(
        [{"user": message.user, "content": message.content} for message in transcript]
    )


def decode_transcript(transcript_json: Optional[str]) -> List[TranscriptMessage]:
    try:
        parsed = json.loads(transcript_json or "[]")
    except ValueError:
        logger.warning("transcript_decode_failed")
        return []
    if not isinstance(parsed, list):
        return []
    messages = []
    for entry in parsed:
        if not isinstance(entry, dict):
            continue
        messages.append(
            TranscriptMessage(
                user=str(entry.get("user") or ""),
                content=str(entry.get("content") or ""),
            )
        )
    return messages


class SQLiteThreadSummaryStore(ThreadSummaryStore):
    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS thread_summaries (
                    thread_id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    transcript_json TEXT NOT NULL,
                    summary TEXT NOT NULL,
                    last_message_timestamp INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS thread_summaries_last_message_idx
                ON thread_summaries (last_message_timestamp DESC)
                """
            )

    def _row_to_state(self, row: Any) -> ThreadSummaryState:
        return ThreadSummaryState(
            thread_id=row[0],
            name=row[1],
            transcript=decode_transcript(row[2]),
            summary=row[3] or "",
            last_message_timestamp=int(row[4]),
            updated_at=int(row[5]),
        )

    def upsert_thread_summary(
        self,
        thread_id: str,
        name: str,
        transcript: List[TranscriptMessage],
        summary: str,
        last_message_timestamp: int,
    ) -> ThreadSummaryState:
        updated_at = _now_ms()
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO thread_summaries (
                        thread_id, name, transcript_json, summary,
                        last_message_timestamp, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(thread_id) DO UPDATE SET
                        name = excluded.name,
                        transcript_json = excluded.transcript_json,
                        summary = excluded.summary,
                        last_message_timestamp = excluded.last_message_timestamp,
                        updated_at = excluded.updated_at
                    """,
                    (
                        thread_id,
                        name,
                        encode_transcript(transcript),
                        summary,
                        last_message_timestamp,
                        updated_at,
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(
                f"Failed to store thread summary {thread_id}: {exc}"
            ) from exc
        return ThreadSummaryState(
            thread_id=thread_id,
            name=name,
            transcript=list(transcript),
            summary=summary,
            last_message_timestamp=last_message_timestamp,
            updated_at=updated_at,
        )

    def get_thread_summary(self, thread_id: str) -> Optional[ThreadSummaryState]:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT thread_id, name, transcript_json, summary,
                       last_message_timestamp, updated_at
                FROM thread_summaries
                WHERE thread_id = ?
                LIMIT 1
                """,
                (thread_id,),
            ).fetchone()
            if row is None:
                return None
            return self._row_to_state(row)

    def list_thread_summaries(self) -> List[ThreadSummaryState]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT thread_id, name, transcript_json, summary,
                       last_message_timestamp, updated_at
                FROM thread_summaries
                ORDER BY last_message_timestamp DESC
                """
            ).fetchall()
            return [self._row_to_state(row) for row in rows]

    def debug_snapshot(self) -> Dict[str, Any]:
        with self._connect() as conn:
            count = conn.execute("SELECT COUNT(*) FROM thread_summaries").fetchone()[0]
            newest = conn.execute(
                "SELECT MAX(last_message_timestamp) FROM thread_summaries"
            ).fetchone()[0]
        return {"thread_count": count, "newest_message_timestamp": newest}
