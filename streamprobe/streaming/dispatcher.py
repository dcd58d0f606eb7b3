"""
Event dispatcher.

Applies FrameRecords to StreamSessions. Supersession is tracked with a
generation counter: a session only accepts events while its generation is
the dispatcher's current one and it has not reached a terminal state.
"""

import logging
import time
from typing import Callable, Optional

from .frames import FrameRecord
from .session import SessionState, StreamKind, StreamSession

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class EventDispatcher:
    """
    Classifies frames and updates the session they belong to.

    Example:
        >>> dispatcher = EventDispatcher()
        >>> session = dispatcher.begin_session(StreamKind.SIMULATED)
        >>> dispatcher.dispatch(session, FrameRecord(chunk="Hi"))
        True
        >>> session.text
        'Hi'
    """

    def __init__(self, clock: Optional[Clock] = None):
        """
        Initialize dispatcher.

        Args:
            clock: Monotonic clock returning seconds (defaults to time.monotonic)
        """
        self._clock = clock or time.monotonic
        self._generation = 0
        self._current: Optional[StreamSession] = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def current_session(self) -> Optional[StreamSession]:
        return self._current

    def begin_session(self, kind: StreamKind) -> StreamSession:
        """
        Retire the current session (if any) and start a new one.

        The previous session is marked superseded before the new session is
        created, so late events for it are dropped.
        """
        previous = self._current
        if previous is not None and not previous.superseded:
            previous.superseded = True
            logger.debug(
                f"Session {previous.session_id} superseded (state={previous.state.value})"
            )

        self._generation += 1
        session = StreamSession(
            generation=self._generation,
            kind=kind,
            started_at=self._clock(),
        )
        self._current = session
        logger.debug(
            f"Session {session.session_id} started (kind={kind.value}, generation={self._generation})"
        )
        return session

    def _accepts(self, session: StreamSession) -> bool:
        # Only the session this dispatcher started last may change.
        if session is not self._current or not session.accepts_events:
            logger.debug(
                f"Ignoring event for session {session.session_id} "
                f"(state={session.state.value}, superseded={session.superseded})"
            )
            return False
        return True

    def _elapsed_ms(self, session: StreamSession) -> int:
        return int(round((self._clock() - session.started_at) * 1000))

    def dispatch(self, session: StreamSession, record: FrameRecord) -> bool:
        """
        Apply one frame to a session.

        Chunk text is appended before any terminal signal in the same frame
        takes effect. Frames with no recognized field are a no-op.

        Args:
            session: Session the frame belongs to
            record: Decoded frame

        Returns:
            True if the frame was applied, False if the session no longer
            accepts events
        """
        if not self._accepts(session):
            return False

        if record.has_chunk:
            session._append_chunk(record.chunk, self._elapsed_ms(session))

        # An error in the same frame as the completion tag wins.
        if record.has_error:
            session._annotate_error(record.error)
        elif record.is_complete:
            session._transition(SessionState.COMPLETED)

        return True

    def fail(self, session: StreamSession, message: str) -> bool:
        """Resolve a session as errored after a transport or decode failure."""
        if not self._accepts(session):
            return False
        session._annotate_error(message)
        return True

    def close(self, session: StreamSession) -> bool:
        """Mark a session closed when its stream ends without a completion frame."""
        if not self._accepts(session):
            return False
        session._transition(SessionState.CLOSED)
        return True
