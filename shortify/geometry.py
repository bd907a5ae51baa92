"""
Panning geometry for portrait output.

The landscape source is scaled so its height matches the portrait canvas, and
a canvas-wide crop window slides from the left edge to the right edge over
each segment. The horizontal span it covers is the pan distance.
"""

import math
import logging
from dataclasses import dataclass

from .media_probe import AssetInfo

logger = logging.getLogger(__name__)

UHD_MIN_SOURCE_HEIGHT = 2160

# name -> (width, height)
RESOLUTION_CLASSES = {
    'uhd': (2160, 3840),
    'sd': (608, 1080),
}


@dataclass(frozen=True)
class GeometryPlan:
    resolution_class: str
    output_width: int
    output_height: int
    scale_factor: float
    scaled_width: int
    pan_distance: int


def select_resolution_class(source_height: int) -> str:
    return 'uhd' if source_height >= UHD_MIN_SOURCE_HEIGHT else 'sd'


def plan_geometry(asset_info: AssetInfo) -> GeometryPlan:
    """
    Compute canvas, scale and pan distance for a source video.

    A negative pan distance means the scaled source is narrower than the
    canvas; the filter graph pads it instead of panning.
    """
    resolution_class = select_resolution_class(asset_info.height)
    output_width, output_height = RESOLUTION_CLASSES[resolution_class]

    scale_factor = output_height / asset_info.height
    scaled_width = int(math.floor(asset_info.width * scale_factor + 0.5))
    pan_distance = scaled_width - output_width

    plan = GeometryPlan(
        resolution_class=resolution_class,
        output_width=output_width,
        output_height=output_height,
        scale_factor=scale_factor,
        scaled_width=scaled_width,
        pan_distance=pan_distance,
    )
    logger.info(
        f"Panning parameters: input={asset_info.width}x{asset_info.height}, "
        f"output={output_width}x{output_height} ({resolution_class}), "
        f"scale={scale_factor:.3f}, pan distance={pan_distance}px"
    )
    return plan
