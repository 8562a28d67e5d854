"""Playback state for the narration player."""

from pydantic import BaseModel, Field


class PlaybackState(BaseModel):
    """Transport state mirrored from the narration audio element."""
    is_playing: bool = Field(False, description="True while audio is playing")
    is_muted: bool = Field(False, description="Orthogonal mute flag")
    current_position: float = Field(0.0, ge=0, description="Playback position (seconds)")
    total_duration: float = Field(0.0, ge=0, description="Media duration, 0 while unknown")

    @property
    def progress(self) -> float:
        """Fraction played in [0, 1]; 0 when duration is unknown."""
        if self.total_duration <= 0:
            return 0.0
        return min(1.0, max(0.0, self.current_position / self.total_duration))
