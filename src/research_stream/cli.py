"""Command-line interface for the research stream engine.

Provides subcommands for replaying recorded streams, running the scripted
research pipeline, and showing the configuration in effect.  Replays and
demos run on a manual clock, so progress output is deterministic.

Entry point
-----------
The ``main()`` function is registered as a console script in
``pyproject.toml``::

    [project.scripts]
    research-stream = "research_stream.cli:main"

Usage examples::

    research-stream replay session.jsonl --export-md answer.md
    research-stream demo "How did AAPL do this quarter?" --seed 7
    research-stream info
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

from research_stream.domain.exceptions import ResearchStreamError

logger = logging.getLogger(__name__)

_EVENTS = ("user", "assistant", "fragment", "finish", "advance")


def _build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="research-stream",
        description=(
            "Research Stream -- reconcile streamed research answers into "
            "per-turn sources, ticker, follow-ups and progress."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        default=False,
        help="Show version and exit.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level. (default: WARNING)",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        default=False,
        help="Plain-text output instead of rich panels.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON engine configuration file.  Environment overrides still apply.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available subcommands")

    # -- replay --------------------------------------------------------------
    replay_parser = subparsers.add_parser(
        "replay",
        help="Replay a recorded stream.",
        description=(
            "Replay a JSON-lines recording of transport events "
            f"({', '.join(_EVENTS)}) and print the reconciled turns."
        ),
    )
    replay_parser.add_argument("file", type=str, help="Path to the .jsonl recording.")
    replay_parser.add_argument(
        "--export-md", type=str, default=None, help="Write the turns as Markdown.",
    )
    replay_parser.add_argument(
        "--export-json", type=str, default=None, help="Write the turns as JSON.",
    )

    # -- demo ----------------------------------------------------------------
    demo_parser = subparsers.add_parser(
        "demo",
        help="Run the scripted research pipeline.",
        description="Stream a query through the scripted LangGraph pipeline.",
    )
    demo_parser.add_argument("query", type=str, help="Research question.")
    demo_parser.add_argument(
        "--seed", type=int, default=None, help="Random seed for reproducibility.",
    )
    demo_parser.add_argument(
        "--follow-up",
        type=int,
        default=None,
        help="After the answer, submit the follow-up question at this index.",
    )

    # -- info ----------------------------------------------------------------
    subparsers.add_parser(
        "info",
        help="Show version and configuration.",
        description="Display the version, configuration and loading steps in effect.",
    )

    return parser


def _load_config(args: argparse.Namespace) -> Any:
    from research_stream.infrastructure.config import EngineConfig, load_config_from_json

    if args.config is None:
        return EngineConfig.from_env()
    cfg = load_config_from_json(Path(args.config).read_text(encoding="utf-8"))
    return replace(cfg, steps=cfg.steps.with_env())


def _make_console(args: argparse.Namespace) -> Any:
    from research_stream.presentation.console import TurnConsole

    return TurnConsole(use_rich=not args.plain)


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------

def apply_record(engine: Any, record: dict[str, Any], scheduler: Any) -> None:
    """Apply one replay record to *engine*'s store or clock."""
    event = record.get("event")
    store = engine.store
    if event == "user":
        store.append_user(str(record.get("text", "")))
    elif event == "assistant":
        store.open_assistant()
    elif event == "fragment":
        store.append_fragment(record.get("data"))
    elif event == "finish":
        store.finish(error=bool(record.get("error", False)))
    elif event == "advance":
        scheduler.advance(float(record.get("seconds", 1.0)))
    else:
        raise ValueError(f"unknown replay event {event!r}")


def _replay_file(engine: Any, path: Path, scheduler: Any) -> bool:
    """Feed every record of *path* to *engine*; ``False`` after a reported error."""
    with open(path, encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as exc:
                print(f"Error: {path}:{line_no}: invalid JSON ({exc})", file=sys.stderr)
                return False
            if not isinstance(record, dict):
                print(f"Error: {path}:{line_no}: record must be an object", file=sys.stderr)
                return False
            try:
                apply_record(engine, record, scheduler)
            except (TypeError, ValueError, ResearchStreamError) as exc:
                print(f"Error: {path}:{line_no}: {exc}", file=sys.stderr)
                return False
    return True


def _cmd_replay(args: argparse.Namespace) -> int:
    """Handle the ``replay`` subcommand."""
    from research_stream.engine import build_engine
    from research_stream.presentation.export import export_json, export_markdown
    from research_stream.testing.clock import ManualScheduler

    path = Path(args.file)
    if not path.exists():
        print(f"Error: recording not found: {path}", file=sys.stderr)
        return 1

    scheduler = ManualScheduler()
    engine = build_engine(config=_load_config(args), scheduler=scheduler)
    try:
        if not _replay_file(engine, path, scheduler):
            return 1
        turns = engine.turns()
        _make_console(args).print_turns(turns)
        if args.export_md:
            print(f"Markdown written to {export_markdown(turns, args.export_md)}")
        if args.export_json:
            print(f"JSON written to {export_json(turns, args.export_json)}")
        return 0
    finally:
        engine.close()


def _cmd_demo(args: argparse.Namespace) -> int:
    """Handle the ``demo`` subcommand."""
    from research_stream.engine import build_engine
    from research_stream.graph.scripted import build_research_graph
    from research_stream.graph.streaming import GraphTransport
    from research_stream.testing.clock import ManualScheduler

    scheduler = ManualScheduler()
    engine = build_engine(config=_load_config(args), scheduler=scheduler)
    try:
        app = build_research_graph(seed=args.seed)
        engine.session.bind_transport(
            GraphTransport(app, engine.store, pace=lambda: scheduler.advance(1.0))
        )

        if not engine.session.submit(args.query):
            print("Error: query was not submitted (blank?)", file=sys.stderr)
            return 1

        if args.follow_up is not None:
            try:
                engine.session.follow_up(args.follow_up)
            except IndexError as exc:
                print(f"Error: {exc}", file=sys.stderr)
                return 1

        _make_console(args).print_turns(engine.turns())
        return 0
    finally:
        engine.close()


def _cmd_info(args: argparse.Namespace) -> int:
    """Handle the ``info`` subcommand."""
    from research_stream import __version__

    cfg = _load_config(args)
    progress = cfg.progress
    rows = [
        ("version", __version__),
        ("eta", (
            f"{progress.base_seconds}s + min({progress.cap_extra_seconds}s, "
            f"len/{progress.length_divisor}) + 0..{progress.jitter_max_seconds}s"
        )),
        ("max active fraction", f"{progress.max_active_fraction:.2f}"),
        ("step speed", f"{cfg.steps.speed.value} ({cfg.steps.speed.cycle_ms} ms)"),
        ("steps", " | ".join(cfg.steps.labels)),
        ("seed", str(cfg.seed)),
    ]
    _make_console(args).print_info(rows, title=f"research-stream {__version__}")
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Handle --version at top level
    if args.version:
        from research_stream import __version__
        print(f"research-stream {__version__}")
        sys.exit(0)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    handlers: dict[str, Any] = {
        "replay": _cmd_replay,
        "demo": _cmd_demo,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        sys.exit(1)

    try:
        exit_code = handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        exit_code = 130
    except Exception as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)
