"""Narrated video export: frame + narration -> downloadable video file."""

import logging
import threading
import traceback
from pathlib import Path
from typing import Dict, Any, Optional

import aiofiles

from ..config import settings
from ..errors import (
    DecodeError,
    ExportError,
    FetchError,
    RecordingError,
    StreamCompositionError,
)
from ..models.export_job import ExportJob, ExportResult, ExportStatus, VideoArtifact
from ..models.presentation import PresentationContent
from ..utils.logging_config import log_start, log_update, log_complete
from .audio_decode import load_narration
from .recorder import Recorder
from .stream_mux import CombinedMediaStream, StreamMuxer
from .text_layout import TextLayoutRenderer


logger = logging.getLogger(__name__)

USER_MESSAGES = {
    FetchError: "Couldn't download the narration audio. Please try again.",
    DecodeError: "The narration audio could not be read, so the video was not created.",
    StreamCompositionError: "Video capture isn't available right now. Please try again.",
    RecordingError: "Recording the video failed. Please try again.",
}
GENERIC_FAILURE = "Failed to generate video. Please try again."
BUSY_MESSAGE = "A video is already being generated for this presentation."


def user_message_for(error: Exception) -> str:
    """Pick the notification text shown for a failed export."""
    for error_type, message in USER_MESSAGES.items():
        if isinstance(error, error_type):
            return message
    return GENERIC_FAILURE


class PresentationExporter:
    """Runs one export at a time for a presentation.

    A second export requested while one is in flight is rejected rather
    than queued; the frame and audio graph belong to the running job.
    """

    def __init__(
        self,
        renderer: Optional[TextLayoutRenderer] = None,
        muxer: Optional[StreamMuxer] = None,
        recorder: Optional[Recorder] = None,
        output_dir: Optional[str] = None,
    ):
        self.renderer = renderer or TextLayoutRenderer()
        self.muxer = muxer or StreamMuxer()
        self.recorder = recorder or Recorder()
        self.output_dir = output_dir
        # Gradio handlers each run their own event loop on a worker thread
        self._guard = threading.Lock()
        self.current_job: Optional[ExportJob] = None
        self.last_job: Optional[ExportJob] = None

    @property
    def is_busy(self) -> bool:
        """True while an export is in flight; the export control is disabled."""
        return self._guard.locked()

    async def export(self, content: PresentationContent) -> ExportResult:
        """Export content as one narrated video.

        Never raises for pipeline failures: the job is marked failed, its
        resources released, and the result carries a user-facing message.
        """
        if not self._guard.acquire(blocking=False):
            logger.warning(f"Export for '{content.title}' rejected: another export is running")
            return ExportResult(status="rejected", message=BUSY_MESSAGE)

        try:
            return await self._run(content)
        finally:
            self._guard.release()

    async def _run(self, content: PresentationContent) -> ExportResult:
        job = ExportJob()
        self.current_job = job
        stream: Optional[CombinedMediaStream] = None
        log_start(logger, f"Exporting video for '{content.title}' (job {job.job_id})")

        try:
            job.advance(ExportStatus.RENDERING)
            frame = self.renderer.render(content)

            job.advance(ExportStatus.DECODING)
            log_update(logger, "Decoding narration...")
            audio = await load_narration(content.audio_resource)

            job.advance(ExportStatus.CAPTURING)
            stream = self.muxer.compose(frame, audio)

            job.advance(ExportStatus.RECORDING)
            log_update(logger, f"Recording {audio.duration:.2f}s...")
            recorded = await self.recorder.record(stream, audio.duration, job)

            artifact = self.recorder.package(job, content.title, recorded)
            output_path = None
            if self.output_dir:
                output_path = str(await self._save(artifact, self.output_dir))
            job.complete(artifact)

            log_complete(logger, f"Exported {artifact.filename} ({artifact.size} bytes)")
            return ExportResult(
                status="success",
                message=f"Video ready: {artifact.filename}",
                job_id=job.job_id,
                artifact=artifact,
                output_path=output_path,
            )

        except Exception as e:
            if isinstance(e, ExportError):
                logger.error(f"Export job {job.job_id} failed during {job.status.value}: {e}")
            else:
                logger.error(f"Export job {job.job_id} failed unexpectedly: {e}")
                logger.error(traceback.format_exc())
            job.fail(str(e))
            return ExportResult(
                status="error",
                message=user_message_for(e),
                job_id=job.job_id,
            )

        finally:
            if stream is not None:
                stream.close()
            self.last_job = job
            self.current_job = None

    async def _save(self, artifact: VideoArtifact, directory: str) -> Path:
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / artifact.filename
        async with aiofiles.open(path, "wb") as f:
            await f.write(artifact.data)
        return path


async def export_presentation_video(
    presentation: Dict[str, Any],
    output_dir: Optional[str] = None,
) -> Dict[str, Any]:
    """Export a presentation dict to a video file.

    Args:
        presentation: PresentationContent fields (camelCase keys accepted)
        output_dir: Directory for the file, defaults to settings.export_dir

    Returns:
        Result with output path or error
    """
    try:
        content = PresentationContent(**presentation)
        exporter = PresentationExporter(output_dir=output_dir or settings.export_dir)
        result = await exporter.export(content)

        if not result.ok:
            return {"status": "error", "error": result.message}

        return {
            "status": "success",
            "output_path": result.output_path,
            "filename": result.artifact.filename,
            "duration": result.artifact.duration,
        }

    except Exception as e:
        logger.error(f"Video export failed: {e}")
        return {
            "status": "error",
            "error": str(e)
        }
