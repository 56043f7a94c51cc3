"""Conversion between store messages and LangChain chat messages.

Only prose crosses the boundary: facet fragments stay on the engine side and
a LangChain model sees the conversation as plain human/AI turns.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage

from research_stream.domain.entities import Message
from research_stream.domain.enums import Role

logger = logging.getLogger(__name__)


def message_content_text(message: BaseMessage) -> str:
    """Return the textual content of *message*, flattening content blocks."""
    content = message.content
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(str(block.get("text", "")))
    return "".join(parts)


def to_langchain_messages(messages: Sequence[Message]) -> list[BaseMessage]:
    """Convert store messages to LangChain messages.

    Assistant messages without prose (an empty slot that is still opening,
    or a response that only carried facets) are skipped.
    """
    converted: list[BaseMessage] = []
    for message in messages:
        text = message.text
        if message.is_user:
            converted.append(HumanMessage(content=text, id=message.message_id))
        elif text:
            converted.append(AIMessage(content=text, id=message.message_id))
    return converted


def from_langchain_messages(messages: Iterable[BaseMessage]) -> list[Message]:
    """Convert LangChain human/AI messages to store messages.

    Other message types (system, tool) have no counterpart and are dropped.
    """
    converted: list[Message] = []
    for message in messages:
        if isinstance(message, HumanMessage):
            role = Role.USER
        elif isinstance(message, AIMessage):
            role = Role.ASSISTANT
        else:
            logger.debug("Dropping %s message", type(message).__name__)
            continue
        entry = Message(
            role=role,
            fragments=[{"type": "text", "text": message_content_text(message)}],
        )
        if message.id:
            entry.message_id = message.id
        converted.append(entry)
    return converted
