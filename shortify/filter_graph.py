"""
Filter graph construction for the panning video.

The graph is kept as a tuple of typed per-segment descriptors. It only becomes
ffmpeg ``-filter_complex`` text in ``FilterGraph.to_ffmpeg``, which builds the
equivalent ffmpeg-python node graph; everything before that is plain data and
can be inspected without running ffmpeg.

Per segment::

    still (looped, -t duration) -> fps -> scale -> [pad] -> crop (moving x) -> setpts

All segment chains are concatenated in ordinal order, then re-timed and
converted to the output pixel format.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import ffmpeg

from .geometry import GeometryPlan
from .timeline import Segment

logger = logging.getLogger(__name__)


def format_seconds(value: float) -> str:
    """Render seconds with microsecond precision and no trailing zeros."""
    text = f"{value:.6f}".rstrip('0').rstrip('.')
    return text or "0"


@dataclass(frozen=True)
class SegmentChain:
    """Transform chain for one still frame."""
    index: int
    frame_path: Path
    duration: float
    frame_rate: int
    scaled_width: int
    output_width: int
    output_height: int
    pan_distance: int

    @property
    def duration_text(self) -> str:
        return format_seconds(self.duration)

    @property
    def needs_padding(self) -> bool:
        return self.pan_distance < 0

    @property
    def crop_x_expression(self) -> str:
        """Crop offset moving from 0 to the pan distance over this segment's own duration."""
        if self.pan_distance <= 0:
            return "0"
        return f"{self.pan_distance}*t/{self.duration_text}"

    def to_stream(self):
        stream = (
            ffmpeg
            .input(str(self.frame_path), loop=1, t=self.duration_text)
            .filter('fps', fps=self.frame_rate)
            .filter('scale', self.scaled_width, self.output_height)
        )
        if self.needs_padding:
            stream = stream.filter('pad', self.output_width, self.output_height, '(ow-iw)/2', 0)
        return (
            stream
            .filter('crop', self.output_width, self.output_height, self.crop_x_expression, 0)
            .filter('setpts', 'PTS-STARTPTS')
        )


@dataclass(frozen=True)
class FilterGraph:
    chains: Tuple[SegmentChain, ...]
    frame_rate: int
    pixel_format: str

    @property
    def total_duration(self) -> float:
        return sum(chain.duration for chain in self.chains)

    def to_ffmpeg(self, output_path: Union[str, Path], **output_kwargs):
        """
        Build the ffmpeg-python command for this graph.

        Args:
            output_path: Where the rendered (video-only) file is written
            **output_kwargs: Extra output options, e.g. ``vcodec='libx264'``

        Returns:
            ffmpeg-python output stream, ready for ``ffmpeg.run``
        """
        streams = [chain.to_stream() for chain in self.chains]
        joined = (
            ffmpeg
            .concat(*streams, v=1, a=0)
            .filter('fps', fps=self.frame_rate)
            .filter('format', self.pixel_format)
        )
        return joined.output(str(output_path), **output_kwargs)

    def to_filter_complex(self) -> str:
        """Return the ``-filter_complex`` text ffmpeg would receive."""
        args = self.to_ffmpeg('pipe:', format='null').get_args()
        return args[args.index('-filter_complex') + 1]


def build_filter_graph(
    segments: Sequence[Segment],
    plan: GeometryPlan,
    frame_rate: int = 60,
    pixel_format: str = 'yuv420p',
) -> FilterGraph:
    """
    Describe the per-segment pan chains and their concatenation.

    Args:
        segments: Timed segments in ordinal order
        plan: Geometry shared by every segment
        frame_rate: Rate forced before cropping, so the pan moves every output frame
        pixel_format: Output pixel format

    Returns:
        Immutable FilterGraph
    """
    if not segments:
        raise ValueError("build_filter_graph called with empty segment list")

    chains: List[SegmentChain] = []
    for i, segment in enumerate(segments):
        chains.append(SegmentChain(
            index=i,
            frame_path=Path(segment.frame.path),
            duration=segment.duration,
            frame_rate=frame_rate,
            scaled_width=plan.scaled_width,
            output_width=plan.output_width,
            output_height=plan.output_height,
            pan_distance=plan.pan_distance,
        ))

    logger.debug(f"Built filter graph with {len(chains)} segment chains")
    return FilterGraph(chains=tuple(chains), frame_rate=frame_rate, pixel_format=pixel_format)
