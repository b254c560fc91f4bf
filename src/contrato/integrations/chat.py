"""Shared chat log where roll reports are published."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class ChatChannel(Protocol):
    """Fire-and-forget publisher for HTML chat messages."""

    async def publish(self, speaker_id: str, html_content: str) -> None:
        """Post a message as `speaker_id`."""
        ...


@dataclass
class ChatMessage:
    """A message posted to the chat log."""

    speaker_id: str
    content: str
    posted_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class ChatLog:
    """In-memory chat channel that keeps every posted message."""

    def __init__(self, max_messages: int = 500) -> None:
        self.max_messages = max_messages
        self.messages: list[ChatMessage] = []

    async def publish(self, speaker_id: str, html_content: str) -> None:
        """Append a message, dropping the oldest past `max_messages`."""
        self.messages.append(ChatMessage(speaker_id=speaker_id, content=html_content))
        if len(self.messages) > self.max_messages:
            del self.messages[: len(self.messages) - self.max_messages]

        logger.debug("chat_message_published", speaker_id=speaker_id)
