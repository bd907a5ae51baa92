"""
Scene-change timestamp extraction.

ffmpeg's ``showinfo`` filter reports every frame that passes the scene
``select`` expression on stderr, one line per frame, e.g.::

    [Parsed_showinfo_1 @ 0x...] n:   2 pts: 179179 pts_time:7.00699 duration:...

This module is the only place that reads timing data out of that diagnostic
text. Any line carrying a ``pts_time:<number>`` marker contributes one
timestamp; every other line is ignored. Finding no markers at all is a valid
result (an empty list), not an error.
"""

import re
import logging
from pathlib import Path
from typing import List, Union

import ffmpeg

from .errors import SceneDetectionError, decode_stderr

logger = logging.getLogger(__name__)

PTS_TIME_PATTERN = re.compile(r'pts_time:\s*([-+]?[0-9][0-9.eE+-]*)')


def scene_select_expression(threshold: float) -> str:
    """Select expression that always keeps frame 0, then frames whose scene score exceeds ``threshold``."""
    return f"if(eq(n,0),1,gt(scene,{threshold}))"


def parse_pts_times(stderr_text: str) -> List[float]:
    """
    Parse ``pts_time`` markers out of ffmpeg diagnostic output.

    Args:
        stderr_text: Raw stderr text of an ffmpeg run using ``showinfo``

    Returns:
        Timestamps in the order they appear; unparsable markers are dropped
    """
    timestamps = []
    for line in stderr_text.splitlines():
        match = PTS_TIME_PATTERN.search(line)
        if not match:
            continue
        try:
            timestamps.append(float(match.group(1)))
        except ValueError:
            logger.debug(f"Discarding unparsable pts_time in line: {line.strip()}")
    return timestamps


def extract_scene_timestamps(video_path: Union[str, Path], threshold: float) -> List[float]:
    """
    Run a scene-change analysis pass and return the detected timestamps.

    Args:
        video_path: Path to the source video
        threshold: Scene score threshold (0.0-1.0)

    Returns:
        Ordered timestamps in seconds, possibly empty

    Raises:
        SceneDetectionError: If ffmpeg itself fails
    """
    stream = (
        ffmpeg
        .input(str(video_path))
        .filter('select', scene_select_expression(threshold))
        .filter('showinfo')
        .output('pipe:', format='null')
        .global_args('-hide_banner', '-loglevel', 'info', '-nostats')
    )

    try:
        _, stderr = ffmpeg.run(stream, capture_stdout=True, capture_stderr=True)
    except ffmpeg.Error as e:
        raise SceneDetectionError(f"Scene analysis failed for {video_path}", stderr=decode_stderr(e))
    except OSError as e:
        raise SceneDetectionError(f"Scene analysis could not start for {video_path}: {e}")

    timestamps = parse_pts_times(stderr.decode('utf-8', errors='replace'))
    if timestamps:
        logger.info(f"Captured {len(timestamps)} timestamps via showinfo")
    else:
        logger.info("No timestamps from showinfo")
    return timestamps
