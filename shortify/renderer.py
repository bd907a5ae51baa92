"""Render a FilterGraph into a silent panning video with ffmpeg."""

import logging
from pathlib import Path
from typing import Union

import ffmpeg

from .config_loader import ShortifyConfig
from .errors import RenderError, decode_stderr
from .filter_graph import FilterGraph

logger = logging.getLogger(__name__)


def build_render_command(graph: FilterGraph, output_path: Union[str, Path], config: ShortifyConfig):
    """ffmpeg-python command that renders ``graph`` to ``output_path``."""
    return (
        graph
        .to_ffmpeg(output_path, vcodec=config.video_codec, pix_fmt=config.pixel_format)
        .global_args('-hide_banner', '-loglevel', 'error')
        .overwrite_output()
    )


def render_panning_video(
    graph: FilterGraph,
    output_path: Union[str, Path],
    config: ShortifyConfig,
) -> Path:
    """
    Run ffmpeg on the panning filter graph.

    Each still is fed as a looped input cut to its segment duration, so the
    rendered video has no audio track.

    Args:
        graph: Filter graph built from the timeline
        output_path: Destination of the rendered video
        config: Codec and pixel format settings

    Returns:
        Path to the rendered video

    Raises:
        RenderError: If ffmpeg exits with a non-zero status
    """
    output_path = Path(output_path)
    command = build_render_command(graph, output_path, config)
    logger.info(
        f"Rendering {len(graph.chains)} segments ({graph.total_duration:.2f}s) to {output_path}"
    )
    logger.debug(f"Command: {' '.join(ffmpeg.compile(command))}")

    try:
        ffmpeg.run(command, capture_stdout=True, capture_stderr=True)
    except ffmpeg.Error as e:
        raise RenderError(
            f"Panning video synthesis failed; command: {' '.join(ffmpeg.compile(command))}",
            stderr=decode_stderr(e),
        )
    except OSError as e:
        raise RenderError(f"Could not start ffmpeg for panning video synthesis: {e}")

    return output_path
