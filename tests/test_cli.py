"""Tests for the research-stream CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from research_stream.cli import main
from research_stream.engine import ResearchEngine
from research_stream.testing.fragments import (
    numbered_sources_fragment,
    status_fragment,
    ticker_fragment,
)


def _write_recording(path: Path, records: list[dict]) -> Path:
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
    return path


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


RECORDING = [
    {"event": "user", "text": "AAPL stock price"},
    {"event": "assistant"},
    {"event": "fragment", "data": numbered_sources_fragment(7)},
    {"event": "advance", "seconds": 2},
    {"event": "fragment", "data": ticker_fragment("AAPL")},
    {"event": "fragment", "data": status_fragment("Read 7 sources", complete=True)},
    {"event": "fragment", "data": {"type": "text", "text": "Apple closed higher."}},
    {"event": "finish"},
]


class TestCli:

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--version"]) == 0
        assert capsys.readouterr().out.startswith("research-stream ")

    def test_no_command_prints_help(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_info(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--plain", "info"]) == 0
        out = capsys.readouterr().out
        assert "Queuing request" in out
        assert "step speed" in out

    def test_replay_prints_turns(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        rec = _write_recording(tmp_path / "session.jsonl", RECORDING)
        assert _run(["--plain", "replay", str(rec)]) == 0
        out = capsys.readouterr().out
        assert "Q: AAPL stock price" in out
        assert "ticker: AAPL" in out
        assert "+2 more" in out
        assert "A: Apple closed higher." in out

    def test_replay_exports(self, tmp_path: Path) -> None:
        rec = _write_recording(tmp_path / "session.jsonl", RECORDING)
        md = tmp_path / "out.md"
        js = tmp_path / "out.json"
        assert _run([
            "--plain", "replay", str(rec), "--export-md", str(md), "--export-json", str(js),
        ]) == 0
        assert md.read_text(encoding="utf-8").startswith("# AAPL stock price")
        data = json.loads(js.read_text(encoding="utf-8"))
        assert len(data[0]["sources"]) == 7

    def test_replay_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["replay", str(tmp_path / "nope.jsonl")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_replay_unknown_event(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        rec = _write_recording(tmp_path / "bad.jsonl", [{"event": "teleport"}])
        assert _run(["replay", str(rec)]) == 1
        assert "bad.jsonl:1" in capsys.readouterr().err

    def test_replay_fragment_before_assistant(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        rec = _write_recording(tmp_path / "bad.jsonl", [
            {"event": "user", "text": "q"},
            {"event": "fragment", "data": ticker_fragment("AAPL")},
        ])
        assert _run(["replay", str(rec)]) == 1
        assert "bad.jsonl:2" in capsys.readouterr().err

    def test_demo(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--plain", "demo", "AAPL stock price", "--seed", "3"]) == 0
        out = capsys.readouterr().out
        assert "Q: AAPL stock price" in out
        assert "ticker: AAPL" in out
        assert "follow-ups:" in out

    def test_demo_with_follow_up(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["--plain", "demo", "solar power", "--seed", "1", "--follow-up", "0"]) == 0
        out = capsys.readouterr().out
        assert "[2] Q: What are the main criticisms of solar power?" in out

    def test_config_file(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        cfg = tmp_path / "engine.json"
        cfg.write_text(json.dumps({"steps": {"labels": ["Alpha", "Beta"]}}), encoding="utf-8")
        assert _run(["--plain", "--config", str(cfg), "info"]) == 0
        assert "Alpha | Beta" in capsys.readouterr().out

    def test_replay_null_advance_reports_line(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        rec = _write_recording(tmp_path / "bad.jsonl", [
            {"event": "user", "text": "q"},
            {"event": "advance", "seconds": None},
        ])
        assert _run(["replay", str(rec)]) == 1
        assert "bad.jsonl:2" in capsys.readouterr().err


class TestCliTeardown:

    @pytest.fixture
    def close_calls(self, monkeypatch: pytest.MonkeyPatch) -> list[int]:
        calls: list[int] = []
        original = ResearchEngine.close

        def tracking_close(engine: ResearchEngine) -> None:
            calls.append(1)
            original(engine)

        monkeypatch.setattr(ResearchEngine, "close", tracking_close)
        return calls

    def test_replay_error_closes_engine(self, tmp_path: Path, close_calls: list[int]) -> None:
        rec = _write_recording(tmp_path / "bad.jsonl", [
            {"event": "user", "text": "q"},
            {"event": "teleport"},
        ])
        assert _run(["replay", str(rec)]) == 1
        assert close_calls == [1]

    def test_replay_success_closes_engine(self, tmp_path: Path, close_calls: list[int]) -> None:
        rec = _write_recording(tmp_path / "session.jsonl", RECORDING)
        assert _run(["--plain", "replay", str(rec)]) == 0
        assert close_calls == [1]

    def test_demo_bad_follow_up_closes_engine(self, close_calls: list[int]) -> None:
        assert _run(["--plain", "demo", "solar power", "--seed", "1", "--follow-up", "9"]) == 1
        assert close_calls == [1]

    def test_demo_blank_query_closes_engine(self, close_calls: list[int]) -> None:
        assert _run(["--plain", "demo", "   "]) == 1
        assert close_calls == [1]
