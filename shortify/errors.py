"""
Error kinds raised by the Shortify pipeline.

Every stage raises a subclass of ShortifyError. The CLI uses the ``stage``
attribute to report which step failed, and ``stderr`` to show the ffmpeg
diagnostic text that came with the failure.
"""

from typing import Optional


class ShortifyError(Exception):
    """Base class for all pipeline errors."""

    stage = "pipeline"

    def __init__(self, message: str, stderr: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stderr = stderr
        if stage:
            self.stage = stage

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}\n{self.stderr}"
        return self.message


class ProbeError(ShortifyError):
    """Source asset is unreadable or lacks a usable video stream."""
    stage = "probe"


class SceneDetectionError(ShortifyError):
    """Scene analysis pass failed. Recovered locally by the still extractor."""
    stage = "scene_detection"


class ExtractionError(ShortifyError):
    """Both scene-based and fixed-interval frame extraction failed."""
    stage = "extract_stills"


class TimelineError(ShortifyError):
    """Frame/timestamp pairing produced a non-positive segment duration."""
    stage = "timeline"


class RenderError(ShortifyError):
    """ffmpeg failed while synthesizing the panning video."""
    stage = "render"


class MuxError(ShortifyError):
    """Audio could not be reattached to the rendered video."""
    stage = "audio_mux"


class MissingAudioError(MuxError):
    """The source video has no audio track to reattach."""


def decode_stderr(error) -> str:
    """Return the decoded stderr of an ``ffmpeg.Error`` (empty if not captured)."""
    stderr = getattr(error, "stderr", None)
    if not stderr:
        return ""
    if isinstance(stderr, bytes):
        return stderr.decode("utf-8", errors="replace").strip()
    return str(stderr).strip()
