"""Infrastructure layer for the research stream engine.

Re-exports the public API surface for convenience::

    from research_stream.infrastructure import (
        EventBus, EventLog, MessageStore,
        EngineConfig, ProgressConfig, StepConfig,
        AsyncioScheduler, RepeatingTimer,
    )
"""

from research_stream.infrastructure.config import (
    DEFAULT_STEP_LABELS,
    EngineConfig,
    ProgressConfig,
    StepConfig,
    load_config_from_json,
)
from research_stream.infrastructure.event_bus import EventBus, EventLog
from research_stream.infrastructure.message_store import MessageStore
from research_stream.infrastructure.scheduling import (
    AsyncioScheduler,
    RepeatingTimer,
    Scheduler,
    TimerHandle,
)

__all__ = [
    # Event bus
    "EventBus",
    "EventLog",
    # Transport
    "MessageStore",
    # Timers
    "AsyncioScheduler",
    "RepeatingTimer",
    "Scheduler",
    "TimerHandle",
    # Configuration
    "DEFAULT_STEP_LABELS",
    "EngineConfig",
    "ProgressConfig",
    "StepConfig",
    "load_config_from_json",
]
