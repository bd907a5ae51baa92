#!/usr/bin/env python3
"""
CLI tool that exports the distinct moments of a video as PNG stills.

The first frame and every frame whose scene-change score exceeds the
threshold are written to the output directory as ``_stills_<n>.png``. The
output directory is recreated on every run.

Usage:
    python cli/extract_stills.py input_video.mp4
    python cli/extract_stills.py input_video.mp4 --output-dir stills --threshold 0.3
"""

import argparse
import json
import logging
import os
import sys

# Add the parent directory to the path so we can import the package uninstalled
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shortify.config_loader import DEFAULT_CONFIG_PATH, ConfigurationError, load_shortify_config
from shortify.errors import ExtractionError
from shortify.still_frames import export_scene_stills

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Export one still per scene change of a video")
    parser.add_argument("video_path", type=str, help="Path to the video file")
    parser.add_argument("--output-dir", "-o", type=str, default=None,
                        help="Directory for the stills (default: from config, _stills)")
    parser.add_argument("--threshold", "-t", type=float, default=None,
                        help="Scene change threshold, 0.0-1.0 (default: 0.15)")
    parser.add_argument("--config", "-c", type=str, default=DEFAULT_CONFIG_PATH,
                        help=f"YAML configuration file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not os.path.isfile(args.video_path):
        logger.error(f"Video file not found: {args.video_path}")
        sys.exit(1)

    try:
        config = load_shortify_config(args.config)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)

    threshold = args.threshold if args.threshold is not None else config.stills_threshold
    if not (0.0 < threshold <= 1.0):
        logger.error("Threshold must be in (0.0, 1.0]")
        sys.exit(1)
    output_dir = args.output_dir or config.stills_dir

    logger.info(f"Processing video: {args.video_path}")
    try:
        stills = export_scene_stills(args.video_path, output_dir, threshold)
    except ExtractionError as e:
        logger.error(f"Still export failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Export interrupted by user")
        sys.exit(130)

    print(json.dumps({
        'status': 'success',
        'input_file': args.video_path,
        'output_dir': output_dir,
        'still_count': len(stills),
        'stills': [still.path.name for still in stills],
    }, indent=2))


if __name__ == "__main__":
    main()
