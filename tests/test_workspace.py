"""Unit tests for the scoped run workspace."""

import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from shortify.workspace import Workspace


class TestWorkspace:
    def test_context_creates_and_removes_tree(self, tmp_path):
        with Workspace(prefix="temp_shortify_", base_dir=tmp_path) as workspace:
            root = workspace.root
            assert root.is_dir()
            assert root.parent == tmp_path
            assert root.name.startswith("temp_shortify_")
            assert workspace.stills_dir.is_dir()
            workspace.path("panning_video.mp4").write_bytes(b'video')

        assert not root.exists()

    def test_concurrent_workspaces_are_distinct(self, tmp_path):
        with Workspace(base_dir=tmp_path) as first, Workspace(base_dir=tmp_path) as second:
            assert first.root != second.root

    def test_removed_when_block_raises(self, tmp_path):
        with pytest.raises(ValueError):
            with Workspace(base_dir=tmp_path) as workspace:
                root = workspace.root
                raise ValueError("stage failed")
        assert not root.exists()

    def test_removed_on_keyboard_interrupt(self, tmp_path):
        with pytest.raises(KeyboardInterrupt):
            with Workspace(base_dir=tmp_path) as workspace:
                root = workspace.root
                raise KeyboardInterrupt()
        assert not root.exists()

    def test_teardown_is_idempotent(self, tmp_path):
        workspace = Workspace(base_dir=tmp_path).acquire()
        with patch('shortify.workspace.shutil.rmtree') as mock_rmtree:
            workspace.teardown()
            workspace.teardown()
        mock_rmtree.assert_called_once_with(workspace.root)

    def test_teardown_failure_is_logged_not_raised(self, tmp_path, caplog):
        workspace = Workspace(base_dir=tmp_path).acquire()
        with patch('shortify.workspace.shutil.rmtree', side_effect=OSError("device busy")):
            workspace.teardown()
        assert "device busy" in caplog.text

    def test_paths_require_acquire(self, tmp_path):
        workspace = Workspace(base_dir=tmp_path)
        with pytest.raises(RuntimeError):
            workspace.path("audio.aac")

    def test_double_acquire_rejected(self, tmp_path):
        workspace = Workspace(base_dir=tmp_path).acquire()
        try:
            with pytest.raises(RuntimeError):
                workspace.acquire()
        finally:
            workspace.teardown()

    def test_teardown_before_acquire_is_noop(self, tmp_path):
        with patch('shortify.workspace.shutil.rmtree') as mock_rmtree:
            Workspace(base_dir=tmp_path).teardown()
        mock_rmtree.assert_not_called()

    def test_defaults_to_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with Workspace() as workspace:
            assert workspace.root.parent == tmp_path
