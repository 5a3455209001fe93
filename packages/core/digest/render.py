from __future__ import annotations

import datetime as dt
import re
from html import escape
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from packages.core.config import DEFAULT_TITLE
from packages.core.storage.base import ThreadSummaryState, TranscriptMessage


NO_SUMMARY_TEXT = "No AI summary available."
NO_TRANSCRIPT_HTML = "<p>No transcript captured.</p>"

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")

PAGE_STYLE = """
      body {
        font-family: system-ui, -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
        margin: 0;
        background: #f8fafc;
        color: #0f172a;
        line-height: 1.5;
      }
      .content { max-width: 960px; margin: 0 auto; padding: 2rem; }
      h1 { font-size: 1.8rem; margin-bottom: 1.5rem; }
      details {
        border: 1px solid #cbd5f5;
        border-radius: 0.5rem;
        margin-bottom: 1rem;
        background: #ffffff;
        overflow: hidden;
      }
      summary {
        cursor: pointer;
        display: flex;
        justify-content: space-between;
        align-items: center;
        font-weight: 600;
        padding: 0.75rem 1rem;
      }
      summary::-webkit-details-marker { display: none; }
      .thread-title { margin-right: 1rem; }
      .timestamp { font-size: 0.85rem; color: #475569; }
      section { padding: 0 1rem 1rem; margin-top: 0.25rem; }
      h3 { margin: 1rem 0 0.5rem; font-size: 1rem; }
      .message {
        border: 1px solid #cbd5f5;
        border-radius: 0.5rem;
        padding: 0.5rem 0.75rem;
        margin-bottom: 0.5rem;
        background: #e2e8f0;
      }
      .message header { font-weight: 600; margin-bottom: 0.25rem; }
      pre { font-family: inherit; white-space: pre-wrap; word-break: break-word; margin: 0; }
      @media (prefers-color-scheme: dark) {
        body { background: #0f172a; color: #e2e8f0; }
        details { border-color: #334155; background: #1e293b; }
        .timestamp { color: #94a3b8; }
        .message { border-color: #334155; background: #0f172a; }
      }
"""


def ms_to_iso(value: int) -> str:
    moment = dt.datetime.fromtimestamp(value / 1000, tz=dt.timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def strip_html(value: str) -> str:
    if not value:
        return ""
    return _SPACE_RE.sub(" ", _TAG_RE.sub(" ", value)).strip()


def render_summary(summary: str) -> str:
    # Model output is trusted markup.
    trimmed = (summary or "").strip()
    if not trimmed:
        return f"<p>{NO_SUMMARY_TEXT}</p>"
    return trimmed


def render_transcript(transcript: List[TranscriptMessage]) -> str:
    if not transcript:
        return NO_TRANSCRIPT_HTML
    return "".join(
        '<article class="message">'
        f"<header>{escape(message.user)}</header>"
        f"<pre>{escape(message.content)}</pre>"
        "</article>"
        for message in transcript
    )


def render_thread(record: ThreadSummaryState, expanded: bool = False) -> str:
    open_attr = " open" if expanded else ""
    return (
        f'<details id="thread-{escape(record.thread_id)}"{open_attr}>'
        "<summary>"
        f'<span class="thread-title">{escape(record.name)}</span>'
        f'<span class="timestamp">{ms_to_iso(record.last_message_timestamp)}</span>'
        "</summary>"
        "<section>"
        "<h3>AI Summary</h3>"
        f"{render_summary(record.summary)}"
        "<h3>Transcript</h3>"
        f"{render_transcript(record.transcript)}"
        "</section>"
        "</details>"
    )


def render_page(
    records: List[ThreadSummaryState],
    open_thread_id: Optional[str] = None,
    title: str = DEFAULT_TITLE,
) -> str:
    if records:
        content = "\n".join(
            render_thread(record, expanded=record.thread_id == open_thread_id)
            for record in records
        )
    else:
        content = "<p>No thread summaries stored yet.</p>"

    return f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>{escape(title)}</title>
    <style>{PAGE_STYLE}</style>
  </head>
  <body>
    <main class="content">
      <h1>{escape(title)}</h1>
      {content}
    </main>
  </body>
</html>"""


def render_transcript_for_feed(transcript: List[TranscriptMessage]) -> str:
    if not transcript:
        return NO_TRANSCRIPT_HTML
    items = "".join(
        f"<li><strong>{escape(message.user)}:</strong> {escape(message.content)}</li>"
        for message in transcript
    )
    return f"<h4>Messages</h4><ul>{items}</ul>"


def _with_params(url: str, params: Dict[str, str]) -> str:
    if not params:
        return url
    return f"{url}?{urlencode(params)}"


def build_json_feed(
    records: List[ThreadSummaryState],
    origin: str,
    apikey: Optional[str] = None,
    title: str = DEFAULT_TITLE,
) -> Dict[str, Any]:
    """Build a JSON Feed v1 document, one item per record in the given order."""
    origin = origin.rstrip("/")
    key_params = {"apikey": apikey} if apikey else {}

    items = []
    for record in records:
        summary_html = (record.summary or "").strip()
        summary_text = strip_html(summary_html)
        items.append(
            {
                "id": record.thread_id,
                "title": record.name,
                "url": _with_params(f"{origin}/", {"thread": record.thread_id, **key_params}),
                "summary": summary_text or NO_SUMMARY_TEXT,
                "content_html": render_summary(summary_html)
                + render_transcript_for_feed(record.transcript),
                "date_published": ms_to_iso(record.last_message_timestamp),
                "date_modified": ms_to_iso(record.updated_at),
                "transcript": [
                    {"user": message.user, "content": message.content}
                    for message in record.transcript
                ],
            }
        )

    return {
        "version": "https://jsonfeed.org/version/1",
        "title": title,
        "home_page_url": origin,
        "feed_url": _with_params(f"{origin}/feed.json", key_params),
        "items": items,
    }
