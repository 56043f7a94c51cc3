"""Configuration dataclasses for the research stream engine.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid combinations.  Configs are **frozen** so they can be
shared between the estimator, the CLI and tests without risking silent
mutation.

The progress constants are UX tuning knobs for a heuristic ETA; they carry
no information about real backend latency.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any

from research_stream.domain.enums import LoadingSpeed

ENV_LOADING_STEPS = "RESEARCH_STREAM_LOADING_STEPS"
ENV_LOADING_SPEED = "RESEARCH_STREAM_LOADING_SPEED"

DEFAULT_STEP_LABELS: tuple[str, ...] = (
    "Queuing request",
    "Finding sources",
    "Fetching content",
    "Cross-checking",
    "Composing answer",
)

DEFAULT_EVENT_LOG_SIZE = 500


# ===================================================================== #
#  Progress Configuration                                                #
# ===================================================================== #

@dataclass(frozen=True)
class ProgressConfig:
    """Constants of the heuristic ETA model.

    ``estimated_total = base + min(cap_extra, len(query) // length_divisor)
    + jitter`` with ``jitter`` drawn uniformly from ``[0, jitter_max]``.

    Attributes
    ----------
    base_seconds:
        Floor of every estimate.
    cap_extra_seconds:
        Upper bound on the query-length contribution.
    length_divisor:
        Query characters per extra second.
    jitter_max_seconds:
        Inclusive upper bound of the random jitter.
    max_active_fraction:
        Ceiling of the progress fraction while the turn is still active.
    tick_interval_seconds:
        Period of the progress tick.
    """

    base_seconds: int = 8
    cap_extra_seconds: int = 10
    length_divisor: int = 35
    jitter_max_seconds: int = 2
    max_active_fraction: float = 0.95
    tick_interval_seconds: float = 1.0

    @property
    def max_estimate_seconds(self) -> int:
        return self.base_seconds + self.cap_extra_seconds + self.jitter_max_seconds

    def validate(self) -> None:
        """Raise ``ValueError`` if any field is out of valid range."""
        if self.base_seconds < 1:
            raise ValueError(f"base_seconds must be >= 1, got {self.base_seconds}")
        if self.cap_extra_seconds < 0:
            raise ValueError(
                f"cap_extra_seconds must be >= 0, got {self.cap_extra_seconds}"
            )
        if self.length_divisor < 1:
            raise ValueError(
                f"length_divisor must be >= 1, got {self.length_divisor}"
            )
        if self.jitter_max_seconds < 0:
            raise ValueError(
                f"jitter_max_seconds must be >= 0, got {self.jitter_max_seconds}"
            )
        if not (0.0 < self.max_active_fraction < 1.0):
            raise ValueError(
                f"max_active_fraction must be in (0, 1), got {self.max_active_fraction}"
            )
        if self.tick_interval_seconds <= 0:
            raise ValueError(
                f"tick_interval_seconds must be > 0, got {self.tick_interval_seconds}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ProgressConfig:
        valid_keys = {f.name for f in fields(cls)}
        cfg = cls(**{k: v for k, v in data.items() if k in valid_keys})
        cfg.validate()
        return cfg


# ===================================================================== #
#  Step Configuration                                                    #
# ===================================================================== #

@dataclass(frozen=True)
class StepConfig:
    """Pipeline-stage labels cycled while a turn is in flight.

    Attributes
    ----------
    labels:
        Ordered stage labels.  Purely cosmetic; unrelated to real progress.
    speed:
        Cadence of the label cycle (see ``LoadingSpeed.cycle_ms``).
    """

    labels: tuple[str, ...] = DEFAULT_STEP_LABELS
    speed: LoadingSpeed = LoadingSpeed.NORMAL

    def __post_init__(self) -> None:
        # frozen=True prevents normal assignment; coerce lists and strings.
        if not isinstance(self.labels, tuple):
            object.__setattr__(self, "labels", tuple(self.labels))
        if isinstance(self.speed, str):
            object.__setattr__(self, "speed", LoadingSpeed(self.speed))

    @property
    def cycle_seconds(self) -> float:
        return self.speed.cycle_ms / 1000.0

    def validate(self) -> None:
        if not self.labels:
            raise ValueError("labels must not be empty")
        if any(not label.strip() for label in self.labels):
            raise ValueError("labels must not contain blank entries")

    def to_dict(self) -> dict[str, Any]:
        return {"labels": list(self.labels), "speed": self.speed.value}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StepConfig:
        kwargs: dict[str, Any] = {}
        if "labels" in data:
            kwargs["labels"] = tuple(data["labels"])
        if "speed" in data:
            kwargs["speed"] = LoadingSpeed(data["speed"])
        cfg = cls(**kwargs)
        cfg.validate()
        return cfg

    def with_env(self, environ: Mapping[str, str] | None = None) -> StepConfig:
        """Return a copy overridden by the loading-step environment variables.

        ``RESEARCH_STREAM_LOADING_STEPS`` is pipe-separated; blank entries
        are dropped and an empty result keeps the current labels.
        ``RESEARCH_STREAM_LOADING_SPEED`` must name a ``LoadingSpeed``.
        """
        env = os.environ if environ is None else environ
        cfg = self
        raw_steps = env.get(ENV_LOADING_STEPS, "")
        labels = tuple(s.strip() for s in raw_steps.split("|") if s.strip())
        if labels:
            cfg = replace(cfg, labels=labels)
        raw_speed = env.get(ENV_LOADING_SPEED, "").strip().lower()
        if raw_speed:
            try:
                cfg = replace(cfg, speed=LoadingSpeed(raw_speed))
            except ValueError as exc:
                raise ValueError(
                    f"{ENV_LOADING_SPEED} must be one of "
                    f"{[s.value for s in LoadingSpeed]}, got '{raw_speed}'"
                ) from exc
        return cfg


# ===================================================================== #
#  Engine Configuration                                                  #
# ===================================================================== #

@dataclass(frozen=True)
class EngineConfig:
    """Top-level configuration of the reconciliation engine.

    Attributes
    ----------
    progress:
        ETA model constants.
    steps:
        Stage labels and their cadence.
    seed:
        Seed for the ETA jitter generator; ``None`` draws from OS entropy.
    event_log_size:
        Number of newest events the engine keeps in its event log.  ``0``
        keeps everything, which only suits short replays and tests.
    """

    progress: ProgressConfig = field(default_factory=ProgressConfig)
    steps: StepConfig = field(default_factory=StepConfig)
    seed: int | None = None
    event_log_size: int = DEFAULT_EVENT_LOG_SIZE

    def validate(self) -> None:
        self.progress.validate()
        self.steps.validate()
        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be >= 0, got {self.seed}")
        if self.event_log_size < 0:
            raise ValueError(f"event_log_size must be >= 0, got {self.event_log_size}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "progress": self.progress.to_dict(),
            "steps": self.steps.to_dict(),
            "seed": self.seed,
            "event_log_size": self.event_log_size,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EngineConfig:
        cfg = cls(
            progress=ProgressConfig.from_dict(data.get("progress") or {}),
            steps=StepConfig.from_dict(data.get("steps") or {}),
            seed=data.get("seed"),
            event_log_size=int(data.get("event_log_size", DEFAULT_EVENT_LOG_SIZE)),
        )
        cfg.validate()
        return cfg

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Default config with the loading-step environment overrides applied."""
        cfg = cls(steps=StepConfig().with_env(environ))
        cfg.validate()
        return cfg


def load_config_from_json(json_str: str) -> EngineConfig:
    """Parse a JSON object with optional ``progress``, ``steps`` and ``seed`` keys."""
    raw = json.loads(json_str)
    if not isinstance(raw, dict):
        raise ValueError("Top-level JSON must be an object")
    return EngineConfig.from_dict(raw)
