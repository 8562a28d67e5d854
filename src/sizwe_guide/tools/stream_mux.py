"""Combine the rendered frame and decoded narration using MoviePy."""

import logging
from typing import Optional

import numpy as np

from moviepy import ImageClip
from moviepy.audio.AudioClip import AudioArrayClip

from ..config import settings
from ..errors import StreamCompositionError
from .audio_decode import DecodedAudio
from .text_layout import RenderedFrame


logger = logging.getLogger(__name__)


class CombinedMediaStream:
    """One video track plus one audio track, both starting at t=0.

    Owned by a single export job; close() releases both tracks.
    """

    def __init__(self, video_track: ImageClip, audio_track: AudioArrayClip, fps: int):
        self.video_track = video_track
        self.audio_track = audio_track
        self.fps = fps
        self.clip = video_track.with_audio(audio_track)
        self._closed = False

    @property
    def duration(self) -> float:
        return float(self.audio_track.duration)

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.fps

    @property
    def start_skew(self) -> float:
        """Offset between video and audio start times (seconds)."""
        return abs(float(self.video_track.start) - float(self.audio_track.start))

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        for clip in (self.clip, self.video_track, self.audio_track):
            try:
                clip.close()
            except Exception as e:
                logger.debug(f"Ignoring error while closing clip: {e}")
        self._closed = True


class StreamMuxer:
    """Captures a frame at a fixed rate and pairs it with narration audio."""

    def __init__(self, fps: Optional[int] = None):
        self.fps = fps or settings.video_fps

    def compose(
        self,
        frame: Optional[RenderedFrame],
        audio: Optional[DecodedAudio],
    ) -> CombinedMediaStream:
        """Build the combined stream.

        Raises:
            StreamCompositionError: If either source is unavailable or the
                tracks would start more than one frame apart
        """
        if frame is None:
            raise StreamCompositionError("No rendered frame available for video capture")
        if audio is None or audio.samples.size == 0:
            raise StreamCompositionError("No decoded narration available for the audio track")

        try:
            video_track = ImageClip(frame.to_array(), duration=audio.duration).with_fps(self.fps)
        except Exception as e:
            raise StreamCompositionError(f"Could not capture frame as video: {e}")

        samples = audio.samples
        # moviepy writes a one-column array at twice its length
        if samples.shape[1] == 1:
            samples = np.repeat(samples, 2, axis=1)

        try:
            audio_track = AudioArrayClip(samples, fps=audio.sample_rate)
        except Exception as e:
            video_track.close()
            raise StreamCompositionError(f"Could not build audio track: {e}")

        stream = CombinedMediaStream(video_track, audio_track, self.fps)
        if stream.start_skew > stream.frame_interval:
            stream.close()
            raise StreamCompositionError(
                f"Video and audio start {stream.start_skew:.3f}s apart"
            )

        logger.debug(
            f"Composed stream: {frame.size[0]}x{frame.size[1]} @ {self.fps}fps, "
            f"{audio.channels}ch audio, {stream.duration:.2f}s"
        )
        return stream
