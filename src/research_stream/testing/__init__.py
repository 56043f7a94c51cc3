"""Public testing utilities for the research stream engine.

Provides a manual clock for deterministic progress tests, wire-fragment
builders, and a scripted chat model for running the research graph without
API keys.
"""

from research_stream.testing.clock import ManualHandle, ManualScheduler
from research_stream.testing.fragments import (
    followup_fragment,
    numbered_sources_fragment,
    source_record,
    sources_fragment,
    status_fragment,
    text_fragment,
    ticker_fragment,
)
from research_stream.testing.mock_llm import ScriptedChatModel

__all__ = [
    # Clock
    "ManualHandle",
    "ManualScheduler",
    # Fragments
    "followup_fragment",
    "numbered_sources_fragment",
    "source_record",
    "sources_fragment",
    "status_fragment",
    "text_fragment",
    "ticker_fragment",
    # Chat model
    "ScriptedChatModel",
]
