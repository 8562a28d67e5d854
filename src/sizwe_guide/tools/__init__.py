"""Tools for Sizwe Guide: export pipeline stages and AI-backed services."""

from .video_exporter import PresentationExporter, export_presentation_video
from .playback import MediaElement, PlaybackController, format_time

__all__ = [
    "PresentationExporter",
    "export_presentation_video",
    "MediaElement",
    "PlaybackController",
    "format_time",
]
