"""Domain entities for the research stream engine.

Entities have identity and a controlled lifecycle.  A ``Message`` is
immutable once appended, except that the most recent assistant message keeps
accumulating fragments while it streams.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any

from .enums import Role
from .fragments import fragment_text


@dataclass
class Message:
    """One conversation message: a role plus an ordered fragment list.

    Fragments are stored as received (raw mappings or typed fragments) so
    that malformed ones reach the demultiplexer and are reported there.
    """

    role: Role
    fragments: list[Any] = field(default_factory=list)
    message_id: str = field(default_factory=lambda: f"msg-{uuid.uuid4().hex[:12]}")

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role=Role.USER, fragments=[{"type": "text", "text": text}])

    @classmethod
    def assistant(cls) -> Message:
        return cls(role=Role.ASSISTANT)

    @property
    def is_user(self) -> bool:
        return self.role is Role.USER

    @property
    def is_assistant(self) -> bool:
        return self.role is Role.ASSISTANT

    @property
    def text(self) -> str:
        """Concatenated prose of all text fragments."""
        return "".join(fragment_text(f) for f in self.fragments)

    @property
    def fragment_count(self) -> int:
        return len(self.fragments)

    def append(self, fragment: Any) -> None:
        """Append *fragment*; the list only ever grows."""
        self.fragments.append(fragment)
