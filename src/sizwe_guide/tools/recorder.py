"""Record a combined stream into a container file and package it."""

import asyncio
import logging
import re
import tempfile
from pathlib import Path
from typing import Optional

import aiofiles

from ..config import settings
from ..errors import RecordingError
from ..models.export_job import ExportJob, VideoArtifact
from .stream_mux import CombinedMediaStream


logger = logging.getLogger(__name__)

# Anything outside this set is replaced in derived file names
UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]")
DEFAULT_FILENAME = "presentation"
CHUNK_SIZE = 1024 * 1024

CONTAINER_MIME_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mkv": "video/x-matroska",
    "mov": "video/quicktime",
}


def sanitize_filename(title: str) -> str:
    """Derive a filesystem- and URL-safe stem from a title.

    Every non-alphanumeric character becomes an underscore, so titles
    that differ only in punctuation map to the same name.
    """
    stem = UNSAFE_FILENAME_CHARS.sub("_", title or "")
    if not stem.strip("_"):
        return DEFAULT_FILENAME
    return stem


class Recorder:
    """Encodes a CombinedMediaStream for a fixed duration."""

    def __init__(
        self,
        codec: Optional[str] = None,
        audio_codec: Optional[str] = None,
        container: Optional[str] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        self.codec = codec or settings.video_codec
        self.audio_codec = audio_codec or settings.audio_codec
        self.container = (container or settings.video_container).lstrip(".").lower()
        self.chunk_size = chunk_size

    @property
    def mime_type(self) -> str:
        return CONTAINER_MIME_TYPES.get(self.container, "application/octet-stream")

    async def record(self, stream: CombinedMediaStream, duration: float, job: ExportJob) -> float:
        """Record exactly `duration` seconds of the stream into job.recorded_chunks.

        The stop point is the decoded narration length, not an end-of-track
        signal, because the captured frame never ends on its own.

        Returns:
            The recorded duration in seconds

        Raises:
            RecordingError: If the encoder is unavailable or writing fails
        """
        if duration <= 0:
            raise RecordingError(f"Cannot record a stream of {duration:.3f}s")

        loop = asyncio.get_event_loop()
        clip = stream.clip.with_duration(duration)

        with tempfile.TemporaryDirectory(prefix="sizwe_export_") as tmp_dir:
            output_path = Path(tmp_dir) / f"recording.{self.container}"
            temp_audio = Path(tmp_dir) / "recording_audio.m4a"

            logger.info(f"Recording {duration:.2f}s to {output_path.name}")
            try:
                await loop.run_in_executor(
                    None,
                    lambda: clip.write_videofile(
                        str(output_path),
                        fps=stream.fps,
                        codec=self.codec,
                        audio_codec=self.audio_codec,
                        audio_bitrate="192k",
                        temp_audiofile=str(temp_audio),
                        remove_temp=True,
                        logger=None,
                    ),
                )
            except Exception as e:
                raise RecordingError(f"Encoder failed: {e}")

            if not output_path.exists() or output_path.stat().st_size == 0:
                raise RecordingError("Encoder produced no output")

            async with aiofiles.open(output_path, "rb") as f:
                while True:
                    chunk = await f.read(self.chunk_size)
                    if not chunk:
                        break
                    job.recorded_chunks.append(chunk)

        logger.debug(f"Recorded {len(job.recorded_chunks)} chunks")
        return duration

    def package(self, job: ExportJob, title: str, duration: float) -> VideoArtifact:
        """Join recorded chunks into a single downloadable artifact."""
        if not job.recorded_chunks:
            raise RecordingError("Nothing was recorded")

        return VideoArtifact(
            filename=f"{sanitize_filename(title)}.{self.container}",
            mime_type=self.mime_type,
            data=b"".join(job.recorded_chunks),
            duration=duration,
        )
