"""Shared fixtures for Sizwe Guide tests."""

import base64
import io
import wave

import numpy as np
import pytest

from sizwe_guide.models.presentation import PresentationContent


def make_wav_bytes(duration: float = 1.0, sample_rate: int = 8000, channels: int = 1) -> bytes:
    """Build a 16-bit PCM WAV tone of the given length."""
    n_samples = int(round(duration * sample_rate))
    t = np.arange(n_samples) / sample_rate
    tone = (0.3 * np.sin(2 * np.pi * 440 * t) * 32767).astype("<i2")
    frames = np.repeat(tone[:, None], channels, axis=1).tobytes()

    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wav:
        wav.setnchannels(channels)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(frames)
    return buffer.getvalue()


def make_data_url(audio: bytes, mime_type: str = "audio/wav") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(audio).decode('ascii')}"


@pytest.fixture
def wav_bytes():
    """One second of mono narration."""
    return make_wav_bytes(1.0)


@pytest.fixture
def presentation(wav_bytes):
    """Presentation with inline narration."""
    return PresentationContent(
        title="Photosynthesis",
        summary="Plants turn sunlight, water and carbon dioxide into glucose and oxygen.",
        keyPoints=["Chlorophyll absorbs light", "Oxygen is released"],
        difficulty="Grade 9-10",
        audioUrl=make_data_url(wav_bytes),
    )


@pytest.fixture
def wav_factory():
    """Build WAV bytes of a chosen length and layout."""
    return make_wav_bytes


@pytest.fixture
def data_url():
    """Wrap bytes in a base64 data: URL."""
    return make_data_url
