"""
Presentation content models.

A presentation is produced by the document summarizer and carries
everything needed to show and export one narrated frame.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, validator


class Difficulty(str, Enum):
    """Audience level label shown inside the frame badge."""
    GRADE_9_10 = "Grade 9-10"
    GRADE_11_12 = "Grade 11-12"
    TERTIARY = "Tertiary"
    GENERAL = "General"

    @classmethod
    def from_label(cls, label: Optional[str]) -> "Difficulty":
        """Map a free-form label onto a known level, defaulting to GENERAL."""
        if isinstance(label, cls):
            return label
        normalized = (label or "").strip().lower().replace("–", "-").replace(" ", "")
        for level in cls:
            if level.value.lower().replace(" ", "") == normalized:
                return level
        return cls.GENERAL


class PresentationContent(BaseModel):
    """Immutable summary of a study document plus its narration locator."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = Field(..., description="Catchy title for the video")
    summary: str = Field(..., description="Narration script")
    key_points: List[str] = Field(default_factory=list, alias="keyPoints", description="Key takeaways in order")
    difficulty: Difficulty = Field(Difficulty.GENERAL, description="Audience level")
    audio_resource: Optional[str] = Field(None, alias="audioUrl", description="data:, http(s) URL or file path")

    @validator("difficulty", pre=True)
    def coerce_difficulty(cls, v):
        return Difficulty.from_label(v)

    @validator("key_points", pre=True)
    def drop_blank_points(cls, v):
        if v is None:
            return []
        return [str(point).strip() for point in v if str(point).strip()]

    @property
    def has_audio(self) -> bool:
        return bool(self.audio_resource)

    def with_audio(self, locator: str) -> "PresentationContent":
        """Return a copy with the narration locator attached."""
        return self.model_copy(update={"audio_resource": locator})
