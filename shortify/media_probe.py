"""
Static property probing for source videos.

Width, height, duration and time base are fetched with independent ffprobe
queries issued in parallel, then merged into one immutable AssetInfo once all
of them have succeeded.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import ffmpeg

from .errors import ProbeError, decode_stderr

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssetInfo:
    """Immutable snapshot of a source video's static properties."""
    width: int
    height: int
    duration: float
    time_base: Optional[Fraction] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ProbeError(f"Invalid dimensions {self.width}x{self.height}")
        if self.duration <= 0:
            raise ProbeError(f"Invalid duration {self.duration}")


def _query_video_stream(video_path: str, entry: str) -> Any:
    probe = ffmpeg.probe(video_path, select_streams='v:0', show_entries=f'stream={entry}')
    streams = probe.get('streams') or []
    if not streams:
        raise ProbeError(f"No video stream found in {video_path}")
    if entry not in streams[0]:
        raise ProbeError(f"ffprobe returned no '{entry}' for {video_path}")
    return streams[0][entry]


def _query_duration(video_path: str) -> Any:
    probe = ffmpeg.probe(video_path, show_entries='format=duration')
    duration = probe.get('format', {}).get('duration')
    if duration is None:
        raise ProbeError(f"ffprobe returned no duration for {video_path}")
    return duration


def _query_time_base(video_path: str) -> Any:
    try:
        return _query_video_stream(video_path, 'time_base')
    except (ProbeError, ffmpeg.Error) as e:
        logger.debug(f"Time base unavailable for {video_path}: {decode_stderr(e) or e}")
        return None


def _parse_time_base(value: Any) -> Optional[Fraction]:
    if value is None:
        return None
    try:
        num, den = str(value).split('/')
        return Fraction(int(num), int(den))
    except (ValueError, ZeroDivisionError):
        logger.debug(f"Ignoring unparsable time base: {value!r}")
        return None


def probe_asset(video_path: Union[str, Path], max_workers: int = 3) -> AssetInfo:
    """
    Probe width, height, duration and time base of a video.

    Args:
        video_path: Path to the source video
        max_workers: Number of ffprobe queries allowed in flight at once

    Returns:
        AssetInfo for the video

    Raises:
        ProbeError: If the file is unreadable, has no video stream, or reports
            missing or non-numeric dimensions/duration
    """
    video_path = str(video_path)
    if not Path(video_path).is_file():
        raise ProbeError(f"Video file not found: {video_path}")

    queries: Dict[str, Callable[[], Any]] = {
        'width': lambda: _query_video_stream(video_path, 'width'),
        'height': lambda: _query_video_stream(video_path, 'height'),
        'duration': lambda: _query_duration(video_path),
        'time_base': lambda: _query_time_base(video_path),
    }

    raw: Dict[str, Any] = {}
    try:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {name: pool.submit(query) for name, query in queries.items()}
            for name, future in futures.items():
                raw[name] = future.result()
    except ffmpeg.Error as e:
        raise ProbeError(f"Failed to probe video {video_path}", stderr=decode_stderr(e))
    except ProbeError:
        raise
    except (OSError, ValueError) as e:
        raise ProbeError(f"Unexpected error probing video {video_path}: {e}")

    try:
        width = int(raw['width'])
        height = int(raw['height'])
        duration = float(raw['duration'])
    except (TypeError, ValueError):
        raise ProbeError(
            f"Non-numeric probe values for {video_path}: "
            f"width={raw['width']!r}, height={raw['height']!r}, duration={raw['duration']!r}"
        )

    info = AssetInfo(
        width=width,
        height=height,
        duration=duration,
        time_base=_parse_time_base(raw['time_base']),
    )
    logger.info(f"Video dimensions: {info.width}x{info.height}, duration: {info.duration}s")
    return info


def has_audio_stream(media_path: Union[str, Path]) -> bool:
    """Return True if ffprobe reports at least one audio stream."""
    try:
        probe = ffmpeg.probe(str(media_path), select_streams='a', show_entries='stream=codec_type')
    except ffmpeg.Error as e:
        raise ProbeError(f"Failed to probe audio streams of {media_path}", stderr=decode_stderr(e))
    except OSError as e:
        raise ProbeError(f"Failed to probe audio streams of {media_path}: {e}")
    return any(s.get('codec_type', 'audio') == 'audio' for s in probe.get('streams') or [])
