"""Configuration management for Sizwe Guide."""

from typing import Optional, Tuple
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Gemini API
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    tts_voice: str = "Kore"
    request_timeout: float = 60.0  # seconds

    # Video export
    video_resolution: str = "1920x1080"
    video_fps: int = 30
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    video_container: str = "mp4"
    export_dir: str = "./data/exports"

    # Frame layout
    title_font_size: int = 72
    summary_font_size: int = 40
    summary_min_font_size: int = 24

    # Development
    debug: bool = False
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def resolution(self) -> Tuple[int, int]:
        """Video resolution as (width, height)."""
        width, height = self.video_resolution.lower().split("x")
        return int(width), int(height)

    def get_gemini_model_name(self) -> str:
        """Get the Gemini model name used for text completions."""
        return self.gemini_model

    def validate_api_keys(self) -> bool:
        """Check if required API keys are configured."""
        return bool(self.gemini_api_key)


# Global settings instance
settings = Settings()
