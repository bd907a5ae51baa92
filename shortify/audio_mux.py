"""
Audio reattachment.

The source's audio track is extracted to the workspace and muxed onto the
rendered panning video, truncated to the shorter of the two streams.
"""

import logging
from pathlib import Path
from typing import Union

import ffmpeg

from .config_loader import ShortifyConfig
from .errors import MissingAudioError, MuxError, ProbeError, decode_stderr
from .media_probe import has_audio_stream

logger = logging.getLogger(__name__)


def extract_audio_track(source_path: Union[str, Path], audio_path: Union[str, Path], audio_codec: str = 'aac') -> Path:
    """
    Extract the audio track of ``source_path`` to ``audio_path``.

    Raises:
        MuxError: If ffmpeg fails
    """
    stream = (
        ffmpeg
        .input(str(source_path))
        .output(str(audio_path), vn=None, acodec=audio_codec)
        .global_args('-hide_banner', '-loglevel', 'error')
        .overwrite_output()
    )
    logger.info("Starting: Extracting audio from original video")
    try:
        ffmpeg.run(stream, capture_stdout=True, capture_stderr=True)
    except ffmpeg.Error as e:
        raise MuxError(f"Audio extraction failed for {source_path}", stderr=decode_stderr(e))
    except OSError as e:
        raise MuxError(f"Audio extraction failed for {source_path}: {e}")
    logger.info("Completed: Extracting audio from original video")
    return Path(audio_path)


def mux_audio(
    video_path: Union[str, Path],
    audio_path: Union[str, Path],
    output_path: Union[str, Path],
    audio_codec: str = 'aac',
) -> Path:
    """
    Combine a video-only file with an audio file, stopping at the shorter stream.

    Raises:
        MuxError: If ffmpeg fails
    """
    video = ffmpeg.input(str(video_path)).video
    audio = ffmpeg.input(str(audio_path)).audio
    stream = (
        ffmpeg
        .output(video, audio, str(output_path), vcodec='copy', acodec=audio_codec, shortest=None)
        .global_args('-hide_banner', '-loglevel', 'error')
        .overwrite_output()
    )
    logger.info("Starting: Combining panning video with audio")
    try:
        ffmpeg.run(stream, capture_stdout=True, capture_stderr=True)
    except ffmpeg.Error as e:
        raise MuxError(f"Muxing audio onto {video_path} failed", stderr=decode_stderr(e))
    except OSError as e:
        raise MuxError(f"Muxing audio onto {video_path} failed: {e}")
    logger.info("Completed: Combining panning video with audio")
    return Path(output_path)


def attach_audio(
    source_path: Union[str, Path],
    video_path: Union[str, Path],
    output_path: Union[str, Path],
    workspace_dir: Union[str, Path],
    config: ShortifyConfig,
) -> Path:
    """
    Reattach the source video's audio to the rendered panning video.

    Args:
        source_path: Original landscape video
        video_path: Rendered, video-only panning video
        output_path: Final output file
        workspace_dir: Directory for the intermediate audio file
        config: Audio codec settings

    Returns:
        Path to the final output

    Raises:
        MuxError: If the source has no audio track or ffmpeg fails
    """
    try:
        source_has_audio = has_audio_stream(source_path)
    except ProbeError as e:
        raise MuxError(f"Could not inspect audio of {source_path}: {e.message}", stderr=e.stderr)
    if not source_has_audio:
        raise MissingAudioError(f"No audio stream found in {source_path}")

    audio_path = extract_audio_track(source_path, Path(workspace_dir) / 'audio.aac', config.audio_codec)
    return mux_audio(video_path, audio_path, output_path, config.audio_codec)
