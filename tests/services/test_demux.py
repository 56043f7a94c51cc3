"""Tests for the fragment demultiplexer."""

from __future__ import annotations

import logging

import pytest

from research_stream.domain.enums import FragmentKind
from research_stream.services.demux import demultiplex
from research_stream.testing.fragments import (
    followup_fragment,
    numbered_sources_fragment,
    status_fragment,
    text_fragment,
    ticker_fragment,
)


class TestDemultiplex:

    def test_empty_list(self) -> None:
        result = demultiplex([], 0)
        assert result.is_empty
        assert result.processed == 0

    def test_nothing_new_returns_empty_with_same_count(self) -> None:
        frags = [ticker_fragment("AAPL")]
        result = demultiplex(frags, 1)
        assert result.is_empty
        assert result.processed == 1

    def test_last_of_each_kind_wins(self) -> None:
        frags = [
            numbered_sources_fragment(3),
            ticker_fragment("AAPL"),
            numbered_sources_fragment(7),
        ]
        result = demultiplex(frags, 0)
        sources, _, _ = result.sources.to_group()
        assert len(sources) == 7
        assert result.ticker.data.symbol == "AAPL"
        assert result.processed == 3

    def test_kinds_follow_arrival_order_of_winners(self) -> None:
        frags = [
            ticker_fragment("A"),
            followup_fragment("q"),
            ticker_fragment("B"),
        ]
        result = demultiplex(frags, 0)
        assert result.kinds == (FragmentKind.FOLLOWUP, FragmentKind.TICKER)

    def test_only_unseen_tail_is_considered(self) -> None:
        frags = [ticker_fragment("OLD"), followup_fragment("q1")]
        result = demultiplex(frags, 1)
        assert result.ticker is None
        assert result.follow_up.data.questions == ["q1"]

    def test_text_fragments_are_not_facets(self) -> None:
        result = demultiplex([text_fragment("hello"), text_fragment(" world")], 0)
        assert result.updates == {}
        assert result.processed == 2

    def test_idempotent_with_returned_count(self) -> None:
        frags = [numbered_sources_fragment(2), ticker_fragment("AAPL")]
        first = demultiplex(frags, 0)
        second = demultiplex(frags, first.processed)
        assert not first.is_empty
        assert second.is_empty
        assert second.processed == first.processed

    def test_same_count_twice_gives_equal_results(self) -> None:
        frags = [ticker_fragment("AAPL"), status_fragment("working")]
        assert demultiplex(frags, 0) == demultiplex(frags, 0)

    def test_status_completion_flag(self) -> None:
        frags = [
            status_fragment("done", complete=True),
            status_fragment("composing"),
        ]
        result = demultiplex(frags, 0)
        assert result.sources_complete is True
        assert result.status.data.message == "composing"

    def test_malformed_fragment_skipped_and_reported(self, caplog: pytest.LogCaptureFixture) -> None:
        frags = [
            {"type": "data-unknown", "data": {}},
            ticker_fragment("AAPL"),
            "not a fragment",
        ]
        with caplog.at_level(logging.WARNING, logger="research_stream.services.demux"):
            result = demultiplex(frags, 0)
        assert result.ticker.data.symbol == "AAPL"
        assert [r.position for r in result.rejected] == [0, 2]
        assert result.processed == 3
        assert "malformed" in caplog.text

    def test_malformed_followed_by_valid_of_same_kind(self) -> None:
        frags = [ticker_fragment("AAPL"), {"type": "data-ticker"}]
        result = demultiplex(frags, 0)
        assert result.ticker.data.symbol == "AAPL"
        assert len(result.rejected) == 1

    def test_negative_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            demultiplex([], -1)

    def test_shrunk_list_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            result = demultiplex([ticker_fragment("A")], 5)
        assert result.is_empty
        assert result.processed == 5
        assert "shrank" in caplog.text
