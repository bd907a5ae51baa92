#!/usr/bin/env python3
"""
CLI tool that turns a landscape video into a vertical panning short.

Scene changes in the source become still frames; each still is shown for the
time until the next scene change while a portrait-sized crop window pans
across it. The original audio is reattached at the end.

Usage:
    python cli/shortify_video.py input_video.mp4
    python cli/shortify_video.py input_video.mp4 --output short.mp4
    python cli/shortify_video.py input_video.mp4 --config config/shortify.yaml --manifest run.json
"""

import argparse
import json
import logging
import os
import sys

# Add the parent directory to the path so we can import the package uninstalled
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shortify.config_loader import DEFAULT_CONFIG_PATH, ConfigurationError, load_shortify_config
from shortify.errors import ShortifyError
from shortify.pipeline import create_run_manifest, run_pipeline

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Convert a landscape video into a vertical panning video",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Basic conversion, writes _shorted.mp4
    python cli/shortify_video.py data/landscape.mp4

    # Custom output and a run manifest
    python cli/shortify_video.py data/landscape.mp4 -o short.mp4 --manifest short.json

    # Less sensitive scene detection, sample every 3s on fallback
    python cli/shortify_video.py data/landscape.mp4 --scene-threshold 0.05 --fallback-interval 3
        """
    )
    parser.add_argument("video_path", type=str, help="Path to the landscape source video")
    parser.add_argument("--output", "-o", type=str, default=None,
                        help="Output video path (default: from config, _shorted.mp4)")
    parser.add_argument("--config", "-c", type=str, default=DEFAULT_CONFIG_PATH,
                        help=f"YAML configuration file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--frame-rate", type=int, default=None,
                        help="Output frame rate (default: 60)")
    parser.add_argument("--scene-threshold", type=float, default=None,
                        help="Scene change threshold, 0.0-1.0 (default: 0.01)")
    parser.add_argument("--fallback-interval", type=float, default=None,
                        help="Seconds between stills when scene detection finds too few (default: 2.0)")
    parser.add_argument("--allow-silent", action="store_true",
                        help="Write video-only output when the source has no audio track")
    parser.add_argument("--manifest", "-m", type=str, default=None,
                        help="Write a JSON summary of the run to this path")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate inputs and configuration without processing")
    return parser


def apply_overrides(config, args: argparse.Namespace):
    """Return ``config`` with command-line values replacing file values."""
    overrides = {}
    if args.frame_rate is not None:
        overrides['frame_rate'] = args.frame_rate
    if args.scene_threshold is not None:
        overrides['scene_threshold'] = args.scene_threshold
    if args.fallback_interval is not None:
        overrides['fallback_interval'] = args.fallback_interval
    if args.allow_silent:
        overrides['allow_silent_output'] = True
    if not overrides:
        return config
    return type(config).from_dict({**config.to_dict(), **overrides})


def main():
    """Main CLI entry point."""
    args = build_parser().parse_args()
    setup_logging(args.verbose)

    if not os.path.isfile(args.video_path):
        logger.error(f"Video file not found: {args.video_path}")
        print(json.dumps({
            'status': 'error',
            'input_file': args.video_path,
            'failed_stage': 'input',
            'error_message': f"Video file not found: {args.video_path}",
        }, indent=2))
        sys.exit(1)

    try:
        config = apply_overrides(load_shortify_config(args.config), args)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        print(json.dumps({
            'status': 'error',
            'input_file': args.video_path,
            'failed_stage': e.stage,
            'error_message': str(e),
        }, indent=2))
        sys.exit(1)

    output_path = args.output or config.output_file
    logger.info("Shortify parameters:")
    logger.info(f"  Frame rate: {config.frame_rate}")
    logger.info(f"  Scene threshold: {config.scene_threshold}")
    logger.info(f"  Fallback interval: {config.fallback_interval}s")
    logger.info(f"  Output: {output_path}")

    if args.dry_run:
        logger.info("Dry run completed successfully")
        sys.exit(0)

    try:
        result = run_pipeline(args.video_path, output_path, config)
        if args.manifest:
            create_run_manifest(result, args.manifest)

        print(json.dumps({
            'status': 'success',
            'input_file': args.video_path,
            'output_file': str(result.output_path),
            'segment_count': len(result.segments),
            'used_fallback': result.used_fallback,
            'audio_attached': result.audio_attached,
            'output_resolution': f"{result.geometry.output_width}x{result.geometry.output_height}",
        }, indent=2))

    except ShortifyError as e:
        logger.error(f"Shortify failed during {e.stage}: {e.message}")
        print(json.dumps({
            'status': 'error',
            'input_file': args.video_path,
            'failed_stage': e.stage,
            'error_message': e.message,
            'tool_output': e.stderr,
        }, indent=2))
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Processing interrupted by user")
        sys.exit(130)

    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}")
        print(json.dumps({
            'status': 'error',
            'input_file': args.video_path,
            'error_message': f"Unexpected error: {str(e)}",
        }, indent=2))
        sys.exit(1)


if __name__ == "__main__":
    main()
