"""Domain layer for the research stream engine.

Re-exports all public domain types so that consumers can write::

    from research_stream.domain import FacetSnapshot, Message, Role
"""

# -- Enumerations -------------------------------------------------------------
from .enums import ChatStatus, FragmentKind, LoadingSpeed, Role

# -- Value Objects ------------------------------------------------------------
from .values import (
    FacetSnapshot,
    ImageItem,
    NewsItem,
    ProgressState,
    ProgressView,
    Source,
)

# -- Fragments ----------------------------------------------------------------
from .fragments import (
    FollowUpFragment,
    Fragment,
    SourcesFragment,
    StatusFragment,
    TextFragment,
    TickerFragment,
    parse_fragment,
)

# -- Entities -----------------------------------------------------------------
from .entities import Message

# -- Domain Events ------------------------------------------------------------
from .events import (
    DomainEvent,
    FacetsUpdated,
    FragmentRejected,
    MessagesChanged,
    ProgressCompleted,
    ProgressStarted,
    ProgressTicked,
    QueryDeferred,
    QuerySubmitted,
    SourcesCompleted,
    TurnFrozen,
    TurnStarted,
)

# -- Exceptions ---------------------------------------------------------------
from .exceptions import (
    HistoryKeyError,
    MalformedFragmentError,
    ResearchStreamError,
    TurnStateError,
)

__all__ = [
    # Enums
    "ChatStatus",
    "FragmentKind",
    "LoadingSpeed",
    "Role",
    # Values
    "FacetSnapshot",
    "ImageItem",
    "NewsItem",
    "ProgressState",
    "ProgressView",
    "Source",
    # Fragments
    "FollowUpFragment",
    "Fragment",
    "SourcesFragment",
    "StatusFragment",
    "TextFragment",
    "TickerFragment",
    "parse_fragment",
    # Entities
    "Message",
    # Events
    "DomainEvent",
    "FacetsUpdated",
    "FragmentRejected",
    "MessagesChanged",
    "ProgressCompleted",
    "ProgressStarted",
    "ProgressTicked",
    "QueryDeferred",
    "QuerySubmitted",
    "SourcesCompleted",
    "TurnFrozen",
    "TurnStarted",
    # Exceptions
    "HistoryKeyError",
    "MalformedFragmentError",
    "ResearchStreamError",
    "TurnStateError",
]
