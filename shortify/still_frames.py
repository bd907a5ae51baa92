"""
Still frame extraction for the panning pipeline.

One PNG is written per detected scene change. When scene detection yields too
few frames the stills are re-extracted at a fixed sampling interval instead.
Frame files and their timestamps always come from the same strategy: the
``used_fallback`` / ``timestamps_synthesized`` flags on ExtractionResult make
that pairing explicit and are checked when the result is built.
"""

import re
import shutil
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import ffmpeg

from .config_loader import ShortifyConfig
from .errors import ExtractionError, SceneDetectionError, decode_stderr
from .media_probe import AssetInfo
from .scene_timestamps import extract_scene_timestamps, scene_select_expression

logger = logging.getLogger(__name__)

FRAME_PREFIX = "frame_"
FRAME_PATTERN = re.compile(r'^frame_(\d+)\.png$')
STILLS_PATTERN = re.compile(r'^_stills_(\d+)\.png$')


@dataclass(frozen=True)
class FrameRecord:
    """An extracted still; ``ordinal`` is the number embedded in its filename."""
    index: int
    path: Path
    ordinal: int


@dataclass(frozen=True)
class ExtractionResult:
    """Frames plus their timestamps, extracted with one consistent strategy."""
    frames: Tuple[FrameRecord, ...]
    timestamps: Tuple[float, ...]
    used_fallback: bool = False
    timestamps_synthesized: bool = False

    def __post_init__(self):
        if self.timestamps and len(self.timestamps) != len(self.frames):
            raise ExtractionError(
                f"Frame/timestamp count mismatch: {len(self.frames)} frames, "
                f"{len(self.timestamps)} timestamps"
            )
        ordinals = [frame.ordinal for frame in self.frames]
        if any(b <= a for a, b in zip(ordinals, ordinals[1:])):
            raise ExtractionError(f"Frames are not in strictly increasing ordinal order: {ordinals}")
        if self.used_fallback and not self.timestamps_synthesized:
            raise ExtractionError("Fixed-interval frames cannot be paired with scene-detected timestamps")


def list_frame_files(directory: Union[str, Path], pattern: re.Pattern = FRAME_PATTERN) -> List[FrameRecord]:
    """
    List extracted frames sorted by the ordinal embedded in their filenames.

    Directory listing order is never used; ``frame_10.png`` sorts after
    ``frame_9.png``.
    """
    directory = Path(directory)
    numbered = []
    for path in directory.iterdir():
        match = pattern.match(path.name)
        if match:
            numbered.append((int(match.group(1)), path))
    numbered.sort(key=lambda item: item[0])
    return [FrameRecord(index=i, path=path, ordinal=ordinal) for i, (ordinal, path) in enumerate(numbered)]


def even_timestamps(duration: float, count: int) -> List[float]:
    """Spread ``count`` timestamps evenly over ``duration`` starting at zero."""
    if count <= 0:
        return []
    interval = duration / count
    return [i * interval for i in range(count)]


def usable_timestamps(timestamps: Sequence[float], frame_count: int, duration: float) -> bool:
    """True if there is one strictly increasing timestamp per frame, all within ``[0, duration]``."""
    if not timestamps or len(timestamps) != frame_count:
        return False
    if any(t < 0.0 or t > duration for t in timestamps):
        return False
    return all(b > a for a, b in zip(timestamps, timestamps[1:]))


def _run_extraction(stream, description: str) -> None:
    logger.info(f"Starting: {description}")
    ffmpeg.run(stream, capture_stdout=True, capture_stderr=True, overwrite_output=True)
    logger.info(f"Completed: {description}")


def _extract_scene_frames(video_path: str, stills_dir: Path, threshold: float) -> None:
    stream = (
        ffmpeg
        .input(video_path)
        .filter('select', scene_select_expression(threshold))
        .output(str(stills_dir / f"{FRAME_PREFIX}%d.png"), fps_mode='vfr')
        .global_args('-hide_banner', '-loglevel', 'error')
    )
    _run_extraction(stream, "Extracting frames with scene detection")


def _extract_interval_frames(video_path: str, stills_dir: Path, interval: float) -> None:
    stream = (
        ffmpeg
        .input(video_path)
        .filter('fps', fps=1.0 / interval)
        .output(str(stills_dir / f"{FRAME_PREFIX}%d.png"))
        .global_args('-hide_banner', '-loglevel', 'error')
    )
    _run_extraction(stream, "Extracting frames at regular intervals")


def extract_stills(
    video_path: Union[str, Path],
    stills_dir: Union[str, Path],
    asset_info: AssetInfo,
    config: ShortifyConfig,
) -> ExtractionResult:
    """
    Extract one still per scene change, falling back to fixed intervals.

    Args:
        video_path: Path to the source video
        stills_dir: Existing directory the frames are written into
        asset_info: Probe result of the source video
        config: Pipeline configuration (thresholds, fallback interval)

    Returns:
        ExtractionResult whose frame and timestamp counts are equal

    Raises:
        ExtractionError: If the fixed-interval fallback fails or yields no frames
    """
    video_path = str(video_path)
    stills_dir = Path(stills_dir)
    try:
        stills_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ExtractionError(f"Cannot create stills directory {stills_dir}: {e}")

    used_fallback = False
    timestamps: List[float] = []
    frames: List[FrameRecord] = []

    try:
        _extract_scene_frames(video_path, stills_dir, config.scene_threshold)
        frames = list_frame_files(stills_dir)
    except (ffmpeg.Error, OSError) as e:
        logger.warning(f"Scene detection failed, trying regular intervals: {decode_stderr(e) or e}")
        used_fallback = True

    if not used_fallback and len(frames) >= config.min_scene_frames:
        try:
            timestamps = extract_scene_timestamps(video_path, config.scene_threshold)
        except SceneDetectionError as e:
            logger.warning(f"Scene timestamp pass failed, will synthesize timestamps: {e}")
            timestamps = []

    if len(frames) < config.min_scene_frames:
        logger.info(
            f"Scene detection found {len(frames)} frame(s), "
            f"extracting every {config.fallback_interval}s instead"
        )
        used_fallback = True
        try:
            for stale in list_frame_files(stills_dir):
                stale.path.unlink()
            _extract_interval_frames(video_path, stills_dir, config.fallback_interval)
            frames = list_frame_files(stills_dir)
        except ffmpeg.Error as e:
            raise ExtractionError(
                f"Fixed-interval frame extraction failed for {video_path}",
                stderr=decode_stderr(e),
            )
        except OSError as e:
            raise ExtractionError(f"Fixed-interval frame extraction failed for {video_path}: {e}")
        if not frames:
            raise ExtractionError(f"Fixed-interval extraction produced no frames for {video_path}")

    timestamps_synthesized = False
    if used_fallback or not usable_timestamps(timestamps, len(frames), asset_info.duration):
        if timestamps and not used_fallback:
            logger.info(
                f"Scene detection timestamps ({len(timestamps)} for {len(frames)} frames) "
                f"are mismatched, out of order or outside 0-{asset_info.duration}s, using even distribution"
            )
        timestamps = even_timestamps(asset_info.duration, len(frames))
        timestamps_synthesized = True
        logger.info(f"Fallback timestamps (even distribution): {', '.join(f'{t:.2f}' for t in timestamps)}")

    logger.info(f"Extracted {len(frames)} still frames")
    return ExtractionResult(
        frames=tuple(frames),
        timestamps=tuple(timestamps),
        used_fallback=used_fallback,
        timestamps_synthesized=timestamps_synthesized,
    )


def export_scene_stills(
    video_path: Union[str, Path],
    output_dir: Union[str, Path] = "_stills",
    threshold: float = 0.15,
) -> List[FrameRecord]:
    """
    Export the first frame and every scene change of a video as PNG stills.

    Any existing ``output_dir`` is removed first so the directory only ever
    holds the stills of one video.

    Raises:
        ExtractionError: If ffmpeg fails
    """
    output_dir = Path(output_dir)
    try:
        if output_dir.exists():
            logger.info(f"Removing existing {output_dir} directory")
            shutil.rmtree(output_dir)
        output_dir.mkdir(parents=True)
    except OSError as e:
        raise ExtractionError(f"Cannot prepare output directory {output_dir}: {e}")

    stream = (
        ffmpeg
        .input(str(video_path))
        .filter('select', scene_select_expression(threshold))
        .output(str(output_dir / "_stills_%d.png"), fps_mode='vfr')
        .global_args('-hide_banner', '-loglevel', 'error')
    )
    try:
        _run_extraction(stream, f"Extracting unique frames from {video_path}")
    except ffmpeg.Error as e:
        raise ExtractionError(f"Still export failed for {video_path}", stderr=decode_stderr(e))
    except OSError as e:
        raise ExtractionError(f"Still export failed for {video_path}: {e}")

    stills = list_frame_files(output_dir, pattern=STILLS_PATTERN)
    logger.info(f"Frames saved in {output_dir} ({len(stills)} stills)")
    return stills
