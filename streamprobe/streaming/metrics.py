"""
Chunk arrival timing statistics.

Derived on demand from the elapsed-time samples a StreamSession records for
each chunk; nothing here is stored on the session.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence, Tuple, Union


@dataclass(frozen=True)
class IntervalStatistics:
    """
    Statistics over the gaps between consecutive chunk arrivals.

    Attributes:
        intervals: Millisecond differences between consecutive samples
        average: Arithmetic mean of the intervals, rounded to the nearest integer
        minimum: Smallest interval
        maximum: Largest interval
    """

    intervals: Tuple[int, ...]
    average: int
    minimum: int
    maximum: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intervals": list(self.intervals),
            "average_ms": self.average,
            "min_ms": self.minimum,
            "max_ms": self.maximum,
        }


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_interval_statistics(
    source: Union[Sequence[int], Any],
) -> Optional[IntervalStatistics]:
    """
    Compute interval statistics from elapsed-time samples.

    Args:
        source: Sample sequence, or any object exposing ``samples``
            (e.g. a StreamSession)

    Returns:
        IntervalStatistics, or None when fewer than two samples exist
    """
    samples = getattr(source, "samples", source)
    if len(samples) < 2:
        return None

    intervals = tuple(samples[i] - samples[i - 1] for i in range(1, len(samples)))
    return IntervalStatistics(
        intervals=intervals,
        average=_round_half_up(sum(intervals) / len(intervals)),
        minimum=min(intervals),
        maximum=max(intervals),
    )


def time_to_first_chunk(source: Union[Sequence[int], Any]) -> Optional[int]:
    """Milliseconds from request start to the first chunk, or None if no chunk arrived."""
    samples = getattr(source, "samples", source)
    if not samples:
        return None
    return samples[0]
