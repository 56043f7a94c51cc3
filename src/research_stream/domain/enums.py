"""Domain enumerations for the research stream engine.

These enums capture the fixed vocabularies used across the domain layer:
message roles, fragment kinds, transport status and loading speed.
"""

from enum import Enum


class Role(Enum):
    """Author of a message in the conversation."""

    USER = "user"
    ASSISTANT = "assistant"


class FragmentKind(Enum):
    """Kind of an incremental response fragment.

    The value is the ``type`` discriminator used on the wire.
    """

    TEXT = "text"
    SOURCES = "data-sources"
    TICKER = "data-ticker"
    FOLLOWUP = "data-followup"
    STATUS = "data-status"

    @property
    def is_facet(self) -> bool:
        """True for kinds that carry structured facet data (not prose)."""
        return self is not FragmentKind.TEXT


class ChatStatus(Enum):
    """Lifecycle status of the transport, as reported by the message store."""

    READY = "ready"
    SUBMITTED = "submitted"  # query sent, no assistant slot yet
    STREAMING = "streaming"
    ERROR = "error"

    @property
    def is_processing(self) -> bool:
        return self in (ChatStatus.SUBMITTED, ChatStatus.STREAMING)


class LoadingSpeed(Enum):
    """User-selected cadence for cycling the pipeline-stage label."""

    SLOW = "slow"
    NORMAL = "normal"
    FAST = "fast"

    @property
    def cycle_ms(self) -> int:
        """Milliseconds between step label advances."""
        return _CYCLE_MS[self]


_CYCLE_MS = {
    LoadingSpeed.SLOW: 1400,
    LoadingSpeed.NORMAL: 1000,
    LoadingSpeed.FAST: 700,
}
