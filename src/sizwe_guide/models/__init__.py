"""
Data models for Sizwe Guide.

This module provides Pydantic models for type safety and validation
throughout the application.
"""

from .presentation import (
    Difficulty,
    PresentationContent,
)
from .playback import PlaybackState
from .export_job import (
    ExportStatus,
    ExportJob,
    ExportResult,
    VideoArtifact,
)
from .guidance import (
    ChatRole,
    ChatMessage,
    Conversation,
    MarksSubmission,
    Pathway,
    LearnerRecommendation,
    Course,
    Career,
    StudentRecommendation,
)

__all__ = [
    # Presentation
    "Difficulty",
    "PresentationContent",
    # Playback
    "PlaybackState",
    # Export
    "ExportStatus",
    "ExportJob",
    "ExportResult",
    "VideoArtifact",
    # Guidance
    "ChatRole",
    "ChatMessage",
    "Conversation",
    "MarksSubmission",
    "Pathway",
    "LearnerRecommendation",
    "Course",
    "Career",
    "StudentRecommendation",
]
