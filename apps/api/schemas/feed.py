from __future__ import annotations

from typing import List

from pydantic import BaseModel


class FeedTranscriptMessage(BaseModel):
    user: str
    content: str


class FeedItem(BaseModel):
    id: str
    title: str
    url: str
    summary: str
    content_html: str
    date_published: str
    date_modified: str
    transcript: List[FeedTranscriptMessage]


class JsonFeed(BaseModel):
    version: str
    title: str
    home_page_url: str
    feed_url: str
    items: List[FeedItem]
