"""Presentation layer for the research stream engine.

Public API
----------
- :class:`TurnConsole` -- rich (or plain-text) rendering of paired turns
- :func:`to_markdown`, :func:`to_json_dict`, :func:`format_citations`,
  :func:`export_markdown`, :func:`export_json` -- export utilities
"""

from research_stream.presentation.console import TurnConsole, format_remaining
from research_stream.presentation.export import (
    conversation_to_markdown,
    export_json,
    export_markdown,
    format_citations,
    to_json_dict,
    to_markdown,
)

__all__ = [
    # Console
    "TurnConsole",
    "format_remaining",
    # Export
    "conversation_to_markdown",
    "export_json",
    "export_markdown",
    "format_citations",
    "to_json_dict",
    "to_markdown",
]
