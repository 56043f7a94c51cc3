"""Tests for the engine composition root."""

from __future__ import annotations

from research_stream.domain.events import ProgressTicked, TurnFrozen
from research_stream.engine import build_engine
from research_stream.infrastructure.config import EngineConfig
from research_stream.testing.clock import ManualScheduler
from research_stream.testing.fragments import status_fragment


class TestEventLogRetention:

    def _run_turns(self, cfg: EngineConfig, turns: int) -> tuple:
        scheduler = ManualScheduler()
        engine = build_engine(config=cfg, scheduler=scheduler)
        for i in range(turns):
            engine.session.submit(f"question {i}")
            engine.store.open_assistant()
            engine.store.append_fragment(status_fragment(f"step {i}"))
            scheduler.advance(20.0)
            engine.store.finish()
        return engine, scheduler

    def test_log_keeps_only_newest_events(self) -> None:
        engine, _ = self._run_turns(EngineConfig(seed=0, event_log_size=25), turns=30)
        assert len(engine.events) == 25
        frozen = [e.turn_index for e in engine.events.of_type(TurnFrozen)]
        assert frozen == [29]
        engine.close()

    def test_long_conversation_stays_within_default_bound(self) -> None:
        cfg = EngineConfig(seed=0)
        engine, _ = self._run_turns(cfg, turns=50)
        assert len(engine.events) == cfg.event_log_size
        assert engine.events.of_type(ProgressTicked)
        engine.close()

    def test_zero_size_keeps_everything(self) -> None:
        engine, _ = self._run_turns(EngineConfig(seed=0, event_log_size=0), turns=3)
        short = len(engine.events)
        engine.close()
        engine, _ = self._run_turns(EngineConfig(seed=0, event_log_size=0), turns=6)
        assert len(engine.events) > short
        engine.close()
