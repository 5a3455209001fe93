from .client import (
    DiscordClient,
    DiscordMessage,
    DiscordThread,
    parse_message,
    parse_thread,
    snowflake_timestamp,
)

__all__ = [
    "DiscordClient",
    "DiscordMessage",
    "DiscordThread",
    "parse_message",
    "parse_thread",
    "snowflake_timestamp",
]
