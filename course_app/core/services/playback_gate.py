"""Anti-skip gate that keeps learners from seeking past what they have watched.

The gate consumes playback positions reported by a media player and answers
each one with a verdict. A verdict either accepts the position or tells the
player to jump back to the high-water mark (``max_watched``). A rejected jump
also raises a short "locked" notice. That notice is advisory only: playback
continues from the corrected position.

Admins get an override that disables gating, and once a lesson has ended the
gate disengages so the learner can scrub freely.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable

from course_app.constants.playback_constants import (
    DEFAULT_SEEK_TOLERANCE_SECONDS,
    LOCK_NOTICE_SECONDS,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
CompletionCallback = Callable[[str | None], None]


class PlaybackState(Enum):
    """Observable state of one playback session."""

    IDLE = auto()
    PLAYING = auto()
    LOCKED = auto()
    ENDED = auto()


@dataclass(frozen=True)
class PositionVerdict:
    """Answer to a single position report."""

    accepted: bool
    position: float
    max_watched: float
    locked: bool

    @property
    def corrected(self) -> bool:
        return not self.accepted


class PlaybackGate:
    """Tracks the furthest legitimately watched point of the loaded lesson."""

    def __init__(
        self,
        tolerance: float = DEFAULT_SEEK_TOLERANCE_SECONDS,
        lock_notice_seconds: float = LOCK_NOTICE_SECONDS,
        allow_skip: bool = False,
        clock: Clock = time.monotonic,
        on_complete: CompletionCallback | None = None,
    ) -> None:
        if tolerance < 0:
            raise ValueError("Tolerance cannot be negative.")
        self._tolerance = float(tolerance)
        self._lock_notice_seconds = float(lock_notice_seconds)
        self._allow_skip = allow_skip
        self._clock = clock
        self._on_complete = on_complete

        self._lesson_id: str | None = None
        self._max_watched: float = 0.0
        self._started: bool = False
        self._ended: bool = False
        self._completion_sent: bool = False
        self._locked_until: float | None = None

    @property
    def lesson_id(self) -> str | None:
        return self._lesson_id

    @property
    def max_watched(self) -> float:
        return self._max_watched

    @property
    def tolerance(self) -> float:
        return self._tolerance

    @property
    def allow_skip(self) -> bool:
        return self._allow_skip

    @allow_skip.setter
    def allow_skip(self, value: bool) -> None:
        self._allow_skip = value

    @property
    def is_ended(self) -> bool:
        return self._ended

    @property
    def is_locked(self) -> bool:
        return self._locked_until is not None and self._clock() < self._locked_until

    @property
    def state(self) -> PlaybackState:
        if self._ended:
            return PlaybackState.ENDED
        if self.is_locked:
            return PlaybackState.LOCKED
        if self._started:
            return PlaybackState.PLAYING
        return PlaybackState.IDLE

    def load(self, lesson_id: str | None, resume_position: float = 0.0) -> None:
        """Switch to a lesson and reset the high-water mark to its resume point."""
        self._lesson_id = lesson_id
        self._max_watched = max(0.0, float(resume_position))
        self._started = False
        self._ended = False
        self._completion_sent = False
        self._locked_until = None

    def start(self) -> None:
        """Explicit play action. Gating is already armed before the first frame."""
        if not self._ended:
            self._started = True

    def report_position(self, position: float) -> PositionVerdict:
        """Evaluate one position report from the player.

        Every report past ``max_watched + tolerance`` is rejected and restarts
        the lock notice. The corrective seek lands on ``max_watched`` and so
        passes as an ordinary in-bounds report.
        """
        position = float(position)

        if self._allow_skip or self._ended or position <= self._max_watched + self._tolerance:
            self._bump(position)
            return self._verdict(True, position)

        self._locked_until = self._clock() + self._lock_notice_seconds
        logger.info(
            "Rejected seek to %.2fs on lesson %s; watched up to %.2fs",
            position,
            self._lesson_id,
            self._max_watched,
        )
        return self._verdict(False, self._max_watched)

    def can_end(self, duration: float | None = None) -> bool:
        """Whether an end-of-media event would be honoured right now."""
        if self._allow_skip or self._ended:
            return True
        if not self._started:
            return False
        return duration is None or float(duration) <= self._max_watched + self._tolerance

    def mark_ended(self, duration: float | None = None) -> bool:
        """Handle natural completion. Returns True when the completion fired.

        While gated, the end event is ignored unless playback was started and
        the reported duration is within tolerance of ``max_watched``.
        """
        if not self.can_end(duration):
            logger.warning(
                "Ignored end of lesson %s at %.2fs watched (duration %s, started %s)",
                self._lesson_id,
                self._max_watched,
                duration,
                self._started,
            )
            return False

        self._ended = True
        self._locked_until = None
        if duration is not None:
            self._max_watched = max(self._max_watched, float(duration))

        if self._completion_sent:
            return False
        self._completion_sent = True
        logger.info("Lesson %s completed", self._lesson_id)
        if self._on_complete is not None:
            self._on_complete(self._lesson_id)
        return True

    def _bump(self, position: float) -> None:
        if position > self._max_watched:
            self._max_watched = position

    def _verdict(self, accepted: bool, position: float) -> PositionVerdict:
        return PositionVerdict(
            accepted=accepted,
            position=position,
            max_watched=self._max_watched,
            locked=self.is_locked,
        )
