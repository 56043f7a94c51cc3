"""Scripted chat model for demos and tests.

``ScriptedChatModel`` is a ``BaseChatModel`` that answers from a fixed list
of replies, cycling through them, so the research graph can run end to end
without an API key.  With no replies configured it restates the last human
message.
"""

from __future__ import annotations

from typing import Any

from langchain_core.callbacks import CallbackManagerForLLMRun
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import ConfigDict


class ScriptedChatModel(BaseChatModel):
    """A chat model that replays canned answers.

    Usage::

        model = ScriptedChatModel(replies=["First answer.", "Second answer."])
        # Each call returns the next reply; after the last it starts over.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    replies: list[str] = []
    _call_index: int = 0

    @property
    def _llm_type(self) -> str:
        return "scripted"

    @property
    def call_count(self) -> int:
        return self._call_index

    def _generate(
        self,
        messages: list[BaseMessage],
        stop: list[str] | None = None,
        run_manager: CallbackManagerForLLMRun | None = None,
        **kwargs: Any,
    ) -> ChatResult:
        if self.replies:
            text = self.replies[self._call_index % len(self.replies)]
        else:
            text = _restate(messages)
        self._call_index += 1
        return ChatResult(
            generations=[ChatGeneration(message=AIMessage(content=text))]
        )


def _restate(messages: list[BaseMessage]) -> str:
    for message in reversed(messages):
        if isinstance(message, HumanMessage) and isinstance(message.content, str):
            return f"Here is what the gathered sources say about: {message.content}"
    return "No question was asked."
