from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from packages.core.config import DEFAULT_PROJECT_DESCRIPTION
from packages.core.errors import SummarizationError
from packages.core.llm.openai_client import OpenAIClient
from packages.core.storage.base import TranscriptMessage


logger = logging.getLogger("thread_digest.sync")

NO_SUMMARY = "(no summary)"

PROMPT_TEMPLATE = """
You are summarizing a Discord support thread for {project}.

Thread title: "{title}"

Conversation:
{transcript}

I am the primary developer and don't have time to read these threads. Summarize this thread:
- What was the user's problem?
- What troubleshooting was done?
- What was the final resolution (or current status)?
- What improvements could we make to the docs or the app that would help? (0 to 1 improvements only)

Return 3-4 CONCISE notes formatted as HTML with <h4> and <p> tags.
"""


def _indented(content: str) -> str:
    return "\n".join(f"\t{line}" for line in content.split("\n"))


def format_transcript(messages: List[TranscriptMessage]) -> str:
    return "".join(
        f"{message.user}:\n{_indented(message.content)}\n" for message in messages
    )


def build_prompt(title: str, messages: List[TranscriptMessage], project: str) -> str:
    return PROMPT_TEMPLATE.format(
        project=project,
        title=title,
        transcript=format_transcript(messages),
    )


def _extract_content(response: Dict[str, Any]) -> Optional[str]:
    choices = response.get("choices")
    if not choices:
        return None
    if not isinstance(choices, list):
        raise SummarizationError("Completion choices must be a list")
    choice = choices[0]
    if not choice:
        return None
    if not isinstance(choice, dict):
        raise SummarizationError("Completion choice must be an object")
    message = choice.get("message")
    if not message:
        return None
    if not isinstance(message, dict):
        raise SummarizationError("Completion message must be an object")
    content = message.get("content")
    if not isinstance(content, str):
        return None
    return content.strip() or None


class ThreadSummarizer:
    """Summarizes a thread transcript with a single chat completion."""

    def __init__(
        self,
        llm_client: Optional[OpenAIClient] = None,
        project_description: str = DEFAULT_PROJECT_DESCRIPTION,
    ) -> None:
        self.llm = llm_client or OpenAIClient()
        self.project_description = project_description

    def summarize(self, title: str, messages: List[TranscriptMessage]) -> str:
        """
        Summarize one thread.

        Args:
            title: Thread title
            messages: Chronological transcript

        Returns:
            Summary HTML, or the placeholder when the model returns nothing

        Raises:
            SummarizationError: the request failed or the reply was malformed
        """
        prompt = build_prompt(title, messages, self.project_description)
        response = self.llm.chat([{"role": "user", "content": prompt}])
        if not isinstance(response, dict):
            raise SummarizationError("Unexpected completion payload")
        content = _extract_content(response)
        if content is None:
            logger.warning("summary_empty title=%s", title)
            return NO_SUMMARY
        return content
