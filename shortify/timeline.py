"""Turn still frames and their timestamps into contiguous timed segments."""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from .errors import TimelineError
from .still_frames import FrameRecord

logger = logging.getLogger(__name__)

# Shortest segment that survives microsecond formatting of ``-t`` and the crop expression
MIN_SEGMENT_DURATION = 1e-6
DURATION_TOLERANCE = 1e-3


@dataclass(frozen=True)
class Segment:
    """A still frame shown from ``start_time`` for ``duration`` seconds."""
    frame: FrameRecord
    start_time: float
    duration: float

    @property
    def end_time(self) -> float:
        return self.start_time + self.duration


def reconcile_timeline(
    frames: Sequence[FrameRecord],
    timestamps: Sequence[float],
    duration: float,
) -> List[Segment]:
    """
    Pair each frame with the time until the next detected moment.

    Frame ``i`` lasts until ``timestamps[i + 1]``; the last frame lasts until
    the end of the asset. The first frame always starts at 0.0, so the
    segments cover the whole asset. A zero, negative or sub-microsecond
    duration means frames and timestamps were paired inconsistently upstream
    and is reported rather than clamped.

    Args:
        frames: Frames in ordinal order
        timestamps: One start time per frame, in seconds
        duration: Total asset duration in seconds

    Returns:
        Segments whose durations sum to ``duration``

    Raises:
        TimelineError: On empty input, a count mismatch, a segment shorter than a microsecond,
            or durations that do not add up to ``duration``
    """
    if not frames:
        raise TimelineError("Cannot build a timeline without frames")
    if len(frames) != len(timestamps):
        raise TimelineError(
            f"Frame/timestamp count mismatch: {len(frames)} frames, {len(timestamps)} timestamps"
        )
    if timestamps[0] != 0.0:
        logger.info(f"First frame timestamp {timestamps[0]:.3f}s moved to 0.000s")

    segments = []
    for i, frame in enumerate(frames):
        start = timestamps[i] if i > 0 else 0.0
        end = timestamps[i + 1] if i < len(frames) - 1 else duration
        segment_duration = end - start
        if segment_duration < MIN_SEGMENT_DURATION:
            raise TimelineError(
                f"Segment duration {segment_duration:.7f}s too short for frame {frame.ordinal} "
                f"(start {start:.3f}s, end {end:.3f}s, asset duration {duration:.3f}s)"
            )
        segments.append(Segment(frame=frame, start_time=start, duration=segment_duration))

    total = sum(segment.duration for segment in segments)
    if abs(total - duration) > DURATION_TOLERANCE:
        raise TimelineError(
            f"Segment durations sum to {total:.6f}s, asset duration is {duration:.6f}s"
        )

    logger.info(f"Frame timestamps: {', '.join(f'{t:.2f}' for t in timestamps)}")
    logger.debug(f"Segment durations: {', '.join(f'{s.duration:.2f}' for s in segments)}")
    return segments
