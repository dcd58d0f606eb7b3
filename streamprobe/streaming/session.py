"""
Stream session state.

A StreamSession is the mutable record of one streaming exchange. Only the
EventDispatcher mutates it; consumers read it through the public properties.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .metrics import IntervalStatistics, compute_interval_statistics

ERROR_ANNOTATION = "\n\n[Error: {message}]"


class StreamKind(str, Enum):
    """Generation endpoints exposed by the backend."""

    AI = "ai"
    SIMULATED = "simulated"

    @property
    def path(self) -> str:
        return f"/stream-{self.value}"


class SessionState(str, Enum):
    """Lifecycle of a session. Every state but ACTIVE is terminal."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ERRORED = "errored"
    CLOSED = "closed"


@dataclass
class StreamSession:
    """
    Record of one streaming exchange.

    Attributes:
        generation: Dispatcher generation this session belongs to
        kind: Which stream endpoint was requested
        started_at: Monotonic clock reading (seconds) when the request was issued
        session_id: Unique identifier
        state: Current lifecycle state
        superseded: True once a newer session has been started
        error: Error message for ERRORED sessions
    """

    generation: int
    kind: StreamKind
    started_at: float
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: SessionState = SessionState.ACTIVE
    superseded: bool = False
    error: Optional[str] = None
    _parts: List[str] = field(default_factory=list, init=False, repr=False)
    _samples: List[int] = field(default_factory=list, init=False, repr=False)
    _chunk_count: int = field(default=0, init=False, repr=False)

    # ========== Read-only view ==========

    @property
    def text(self) -> str:
        """Accumulated response text, including any error annotation."""
        return "".join(self._parts)

    @property
    def chunk_count(self) -> int:
        return self._chunk_count

    @property
    def samples(self) -> Tuple[int, ...]:
        """Elapsed milliseconds since start, one per chunk, in arrival order."""
        return tuple(self._samples)

    @property
    def is_terminal(self) -> bool:
        return self.state is not SessionState.ACTIVE

    @property
    def accepts_events(self) -> bool:
        """Whether dispatching to this session may still change it."""
        return not self.is_terminal and not self.superseded

    def interval_statistics(self) -> Optional[IntervalStatistics]:
        """Interval statistics over chunk arrivals, or None for fewer than two chunks."""
        return compute_interval_statistics(self._samples)

    def to_dict(self) -> Dict[str, Any]:
        """Summary for display or logging."""
        stats = self.interval_statistics()
        return {
            "session_id": self.session_id,
            "kind": self.kind.value,
            "state": self.state.value,
            "superseded": self.superseded,
            "chunk_count": self._chunk_count,
            "text": self.text,
            "error": self.error,
            "intervals": stats.to_dict() if stats else None,
        }

    # ========== Mutation (EventDispatcher only) ==========

    def _append_chunk(self, text: str, elapsed_ms: int) -> None:
        self._parts.append(text)
        self._chunk_count += 1
        self._samples.append(elapsed_ms)

    def _annotate_error(self, message: str) -> None:
        self._parts.append(ERROR_ANNOTATION.format(message=message))
        self.error = message
        self.state = SessionState.ERRORED

    def _transition(self, state: SessionState) -> None:
        if not self.is_terminal:
            self.state = state
