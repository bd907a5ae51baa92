#!/usr/bin/env python3
"""
Shortify pipeline: landscape video in, vertical panning video out.

Stages, in order:

1. probe the source (dimensions, duration)
2. extract one still per scene change (fixed-interval fallback)
3. reconcile frames and timestamps into contiguous segments
4. plan the portrait canvas and pan distance, build the filter graph
5. render the silent panning video
6. reattach the source audio

All intermediates live in a Workspace that is removed when the run ends,
whether it succeeded or not.
"""

import json
import shutil
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .audio_mux import attach_audio
from .config_loader import ShortifyConfig
from .errors import MissingAudioError, MuxError, ShortifyError
from .filter_graph import FilterGraph, build_filter_graph
from .geometry import GeometryPlan, plan_geometry
from .media_probe import AssetInfo, probe_asset
from .renderer import render_panning_video
from .still_frames import ExtractionResult, extract_stills
from .timeline import Segment, reconcile_timeline
from .workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Everything one run needs; nothing is shared between runs."""
    source_path: Path
    output_path: Path
    config: ShortifyConfig
    workspace: Workspace


@dataclass
class PipelineResult:
    output_path: Path
    asset_info: AssetInfo
    geometry: GeometryPlan
    segments: List[Segment] = field(default_factory=list)
    used_fallback: bool = False
    audio_attached: bool = True


@contextmanager
def pipeline_stage(description: str):
    """Log start/completion/failure of a stage around the wrapped block."""
    logger.info(f"Starting: {description}")
    try:
        yield
    except ShortifyError as e:
        logger.error(f"Failed during: {description} [{e.stage}]: {e.message}")
        if e.stderr:
            logger.error(f"Tool output:\n{e.stderr}")
        raise
    except Exception as e:
        logger.error(f"Failed during: {description}: {type(e).__name__}: {e}")
        raise
    logger.info(f"Completed: {description}")


def _finalize_output(context: PipelineContext, rendered: Path) -> bool:
    """Attach audio; returns False when the output was written video-only."""
    with pipeline_stage("Reattaching audio"):
        try:
            context.output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MuxError(f"Cannot create output directory {context.output_path.parent}: {e}")
        try:
            attach_audio(
                context.source_path,
                rendered,
                context.output_path,
                context.workspace.root,
                context.config,
            )
        except MissingAudioError:
            if not context.config.allow_silent_output:
                raise
            logger.warning(f"{context.source_path} has no audio track; writing video-only output")
            try:
                shutil.copyfile(rendered, context.output_path)
            except OSError as e:
                raise MuxError(f"Writing video-only output {context.output_path} failed: {e}")
            return False
    return True


def run_pipeline(
    source_path: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
    config: Optional[ShortifyConfig] = None,
) -> PipelineResult:
    """
    Convert a landscape video into a vertical panning video.

    Args:
        source_path: Landscape source video
        output_path: Final output file (default: ``config.output_file``)
        config: Pipeline configuration (default: built-in defaults)

    Returns:
        PipelineResult describing the run

    Raises:
        ShortifyError: Subclass identifying the failed stage
    """
    config = config or ShortifyConfig()
    source_path = Path(source_path)
    output_path = Path(output_path or config.output_file)

    logger.info(f"Processing video: {source_path}")

    with Workspace(prefix=config.temp_prefix, base_dir=config.temp_root) as workspace:
        context = PipelineContext(
            source_path=source_path,
            output_path=output_path,
            config=config,
            workspace=workspace,
        )

        with pipeline_stage("Probing source video"):
            asset_info = probe_asset(context.source_path, max_workers=config.probe_workers)

        with pipeline_stage("Extracting still frames"):
            extraction: ExtractionResult = extract_stills(
                context.source_path, workspace.stills_dir, asset_info, config
            )

        with pipeline_stage("Reconciling timeline"):
            segments = reconcile_timeline(extraction.frames, extraction.timestamps, asset_info.duration)

        with pipeline_stage("Planning panning geometry"):
            geometry = plan_geometry(asset_info)
            graph: FilterGraph = build_filter_graph(
                segments, geometry, frame_rate=config.frame_rate, pixel_format=config.pixel_format
            )

        with pipeline_stage("Creating panning video from still frames"):
            rendered = render_panning_video(graph, workspace.path('panning_video.mp4'), config)

        audio_attached = _finalize_output(context, rendered)

    logger.info("Processing complete.")
    logger.info(f"Output saved as: {output_path}")
    return PipelineResult(
        output_path=output_path,
        asset_info=asset_info,
        geometry=geometry,
        segments=segments,
        used_fallback=extraction.used_fallback,
        audio_attached=audio_attached,
    )


def create_run_manifest(result: PipelineResult, manifest_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Write a JSON summary of a finished run.

    Args:
        result: Result returned by run_pipeline
        manifest_path: Destination JSON file

    Returns:
        The manifest dictionary that was written
    """
    info = result.asset_info
    geometry = result.geometry
    manifest = {
        'shortify_run': {
            'timestamp': datetime.now().isoformat(),
            'output_file': str(result.output_path),
            'source': {
                'width': info.width,
                'height': info.height,
                'duration': info.duration,
                'time_base': str(info.time_base) if info.time_base is not None else None,
            },
            'geometry': {
                'resolution_class': geometry.resolution_class,
                'output_width': geometry.output_width,
                'output_height': geometry.output_height,
                'scale_factor': geometry.scale_factor,
                'scaled_width': geometry.scaled_width,
                'pan_distance': geometry.pan_distance,
            },
            'used_fallback': result.used_fallback,
            'audio_attached': result.audio_attached,
            'segments': [
                {
                    'ordinal': segment.frame.ordinal,
                    'frame': segment.frame.path.name,
                    'start_time': segment.start_time,
                    'duration': segment.duration,
                }
                for segment in result.segments
            ],
        }
    }

    manifest_path = Path(manifest_path)
    manifest_path.parent.mkdir(parents=True, exist_ok=True)
    with open(manifest_path, 'w') as f:
        json.dump(manifest, f, indent=2)

    logger.info(f"Created run manifest: {manifest_path}")
    return manifest
