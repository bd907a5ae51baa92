"""
Test suite for the shortify_video and extract_stills CLI tools.
"""

import json
import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shortify.config_loader import clear_config_cache
from shortify.errors import ExtractionError, RenderError
from shortify.geometry import GeometryPlan
from shortify.media_probe import AssetInfo
from shortify.pipeline import PipelineResult
from shortify.still_frames import FrameRecord
from shortify.timeline import Segment


def make_result(output_path):
    frames = [FrameRecord(index=i, path=Path(f"frame_{i + 1}.png"), ordinal=i + 1) for i in range(3)]
    return PipelineResult(
        output_path=Path(output_path),
        asset_info=AssetInfo(width=1920, height=1080, duration=10.0),
        geometry=GeometryPlan('sd', 608, 1080, 1.0, 1920, 1312),
        segments=[
            Segment(frames[0], 0.0, 3.0),
            Segment(frames[1], 3.0, 4.0),
            Segment(frames[2], 7.0, 3.0),
        ],
    )


class TestShortifyCLI(unittest.TestCase):
    """Test the shortify_video CLI tool."""

    def setUp(self):
        clear_config_cache()
        self.temp_dir = tempfile.mkdtemp()
        self.test_video = os.path.join(self.temp_dir, "landscape.mp4")
        self.test_output = os.path.join(self.temp_dir, "short.mp4")
        self.config_path = os.path.join(self.temp_dir, "missing.yaml")
        with open(self.test_video, 'w') as f:
            f.write("mock video content")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)
        clear_config_cache()

    def run_cli(self, *extra):
        import cli.shortify_video as shortify_cli
        test_args = ['shortify_video.py', self.test_video, '--config', self.config_path] + list(extra)
        with patch('sys.argv', test_args):
            with patch('builtins.print') as mock_print:
                try:
                    shortify_cli.main()
                    exit_code = 0
                except SystemExit as e:
                    exit_code = e.code
        output = json.loads(mock_print.call_args[0][0]) if mock_print.called else None
        return exit_code, output

    @patch('cli.shortify_video.run_pipeline')
    def test_basic_usage(self, mock_run):
        mock_run.return_value = make_result(self.test_output)

        exit_code, output = self.run_cli('--output', self.test_output)

        self.assertEqual(exit_code, 0)
        self.assertEqual(output['status'], 'success')
        self.assertEqual(output['segment_count'], 3)
        self.assertEqual(output['output_resolution'], '608x1080')
        source, output_path, config = mock_run.call_args[0]
        self.assertEqual(source, self.test_video)
        self.assertEqual(output_path, self.test_output)
        self.assertEqual(config.frame_rate, 60)

    @patch('cli.shortify_video.run_pipeline')
    def test_overrides(self, mock_run):
        mock_run.return_value = make_result(self.test_output)

        self.run_cli('--frame-rate', '30', '--scene-threshold', '0.2',
                     '--fallback-interval', '3', '--allow-silent')

        config = mock_run.call_args[0][2]
        self.assertEqual(config.frame_rate, 30)
        self.assertEqual(config.scene_threshold, 0.2)
        self.assertEqual(config.fallback_interval, 3.0)
        self.assertTrue(config.allow_silent_output)

    @patch('cli.shortify_video.run_pipeline')
    def test_default_output_name(self, mock_run):
        mock_run.return_value = make_result('_shorted.mp4')
        self.run_cli()
        self.assertEqual(mock_run.call_args[0][1], '_shorted.mp4')

    @patch('cli.shortify_video.create_run_manifest')
    @patch('cli.shortify_video.run_pipeline')
    def test_manifest(self, mock_run, mock_manifest):
        result = make_result(self.test_output)
        mock_run.return_value = result
        manifest_path = os.path.join(self.temp_dir, 'run.json')

        self.run_cli('--manifest', manifest_path)

        mock_manifest.assert_called_once_with(result, manifest_path)

    @patch('cli.shortify_video.run_pipeline')
    def test_stage_failure(self, mock_run):
        mock_run.side_effect = RenderError("Panning video synthesis failed", stderr="Unknown encoder 'libx264'")

        exit_code, output = self.run_cli()

        self.assertEqual(exit_code, 1)
        self.assertEqual(output['status'], 'error')
        self.assertEqual(output['failed_stage'], 'render')
        self.assertEqual(output['tool_output'], "Unknown encoder 'libx264'")

    @patch('cli.shortify_video.run_pipeline')
    def test_keyboard_interrupt(self, mock_run):
        mock_run.side_effect = KeyboardInterrupt()
        exit_code, _ = self.run_cli()
        self.assertEqual(exit_code, 130)

    @patch('cli.shortify_video.run_pipeline')
    def test_invalid_override(self, mock_run):
        exit_code, output = self.run_cli('--scene-threshold', '5')

        self.assertEqual(exit_code, 1)
        self.assertEqual(output['failed_stage'], 'configuration')
        mock_run.assert_not_called()

    @patch('cli.shortify_video.run_pipeline')
    def test_dry_run(self, mock_run):
        exit_code, output = self.run_cli('--dry-run')
        self.assertEqual(exit_code, 0)
        self.assertIsNone(output)
        mock_run.assert_not_called()

    @patch('cli.shortify_video.run_pipeline')
    def test_missing_video(self, mock_run):
        os.remove(self.test_video)
        exit_code, output = self.run_cli()

        self.assertEqual(exit_code, 1)
        self.assertEqual(output['failed_stage'], 'input')
        mock_run.assert_not_called()


class TestExtractStillsCLI(unittest.TestCase):
    """Test the extract_stills CLI tool."""

    def setUp(self):
        clear_config_cache()
        self.temp_dir = tempfile.mkdtemp()
        self.test_video = os.path.join(self.temp_dir, "landscape.mp4")
        self.config_path = os.path.join(self.temp_dir, "missing.yaml")
        with open(self.test_video, 'w') as f:
            f.write("mock video content")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)
        clear_config_cache()

    def run_cli(self, *extra):
        import cli.extract_stills as stills_cli
        test_args = ['extract_stills.py', self.test_video, '--config', self.config_path] + list(extra)
        with patch('sys.argv', test_args):
            with patch('builtins.print') as mock_print:
                try:
                    stills_cli.main()
                    exit_code = 0
                except SystemExit as e:
                    exit_code = e.code
        output = json.loads(mock_print.call_args[0][0]) if mock_print.called else None
        return exit_code, output

    @patch('cli.extract_stills.export_scene_stills')
    def test_defaults(self, mock_export):
        mock_export.return_value = [
            FrameRecord(index=0, path=Path("_stills/_stills_1.png"), ordinal=1),
            FrameRecord(index=1, path=Path("_stills/_stills_2.png"), ordinal=2),
        ]

        exit_code, output = self.run_cli()

        self.assertEqual(exit_code, 0)
        mock_export.assert_called_once_with(self.test_video, '_stills', 0.15)
        self.assertEqual(output['still_count'], 2)
        self.assertEqual(output['stills'], ['_stills_1.png', '_stills_2.png'])

    @patch('cli.extract_stills.export_scene_stills')
    def test_custom_options(self, mock_export):
        mock_export.return_value = []
        out_dir = os.path.join(self.temp_dir, 'stills')

        self.run_cli('--output-dir', out_dir, '--threshold', '0.3')

        mock_export.assert_called_once_with(self.test_video, out_dir, 0.3)

    @patch('cli.extract_stills.export_scene_stills')
    def test_threshold_out_of_range(self, mock_export):
        exit_code, _ = self.run_cli('--threshold', '1.5')
        self.assertEqual(exit_code, 1)
        mock_export.assert_not_called()

    @patch('cli.extract_stills.export_scene_stills')
    def test_export_failure(self, mock_export):
        mock_export.side_effect = ExtractionError("Still export failed", stderr="broken")
        exit_code, output = self.run_cli()
        self.assertEqual(exit_code, 1)
        self.assertIsNone(output)


if __name__ == '__main__':
    unittest.main()
