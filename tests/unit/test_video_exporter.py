"""Unit tests for the narrated video export pipeline."""

import asyncio

import numpy as np
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from sizwe_guide.errors import DecodeError, FetchError, RecordingError
from sizwe_guide.models.export_job import ExportResult, ExportStatus, VideoArtifact
from sizwe_guide.tools.audio_decode import DecodedAudio
from sizwe_guide.tools.recorder import Recorder
from sizwe_guide.tools.text_layout import TextLayoutRenderer
from sizwe_guide.tools.video_exporter import (
    BUSY_MESSAGE,
    GENERIC_FAILURE,
    USER_MESSAGES,
    PresentationExporter,
    export_presentation_video,
    user_message_for,
)


NARRATION_SECONDS = 42.0


@pytest.fixture
def narration():
    samples = np.zeros((int(NARRATION_SECONDS * 100), 1), dtype=np.float32)
    return DecodedAudio(samples=samples, sample_rate=100, duration=NARRATION_SECONDS)


@pytest.fixture
def stream():
    return MagicMock(name="stream")


@pytest.fixture
def muxer(stream):
    muxer = MagicMock(name="muxer")
    muxer.compose.return_value = stream
    return muxer


@pytest.fixture
def recorder():
    recorder = Recorder(container="mp4")

    async def fake_record(stream, duration, job):
        job.recorded_chunks.extend([b"\x00\x00\x00\x18ftyp", b"mp42"])
        return duration

    recorder.record = AsyncMock(side_effect=fake_record)
    return recorder


@pytest.fixture
def exporter(muxer, recorder):
    return PresentationExporter(
        renderer=TextLayoutRenderer(resolution=(1280, 720)),
        muxer=muxer,
        recorder=recorder,
    )


class TestPresentationExporter:
    """Test PresentationExporter.export."""

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.load_narration', new_callable=AsyncMock)
    async def test_successful_export(self, mock_load, exporter, presentation, narration, stream, recorder):
        mock_load.return_value = narration

        result = await exporter.export(presentation)

        assert result.ok
        assert result.artifact.filename == "Photosynthesis.mp4"
        assert result.artifact.mime_type == "video/mp4"
        assert result.artifact.duration == NARRATION_SECONDS
        assert result.artifact.data == b"\x00\x00\x00\x18ftypmp42"

        job = exporter.last_job
        assert job.status == ExportStatus.COMPLETE
        assert job.artifact is result.artifact
        assert [h["to_status"] for h in job.status_history] == [
            "rendering", "decoding", "capturing", "recording", "complete"
        ]

        recorder.record.assert_awaited_once()
        assert recorder.record.await_args.args[1] == NARRATION_SECONDS
        stream.close.assert_called_once()
        assert not exporter.is_busy
        assert exporter.current_job is None

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.load_narration', new_callable=AsyncMock)
    async def test_unreachable_narration(self, mock_load, exporter, presentation, muxer, recorder):
        mock_load.side_effect = FetchError("Narration resource returned HTTP 404")

        result = await exporter.export(presentation)

        assert result.status == "error"
        assert result.message == USER_MESSAGES[FetchError]
        assert result.artifact is None

        job = exporter.last_job
        assert job.status == ExportStatus.FAILED
        assert job.status_history[-1]["from_status"] == "decoding"
        assert "404" in job.error
        assert job.recorded_chunks == []
        muxer.compose.assert_not_called()
        recorder.record.assert_not_awaited()

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.load_narration', new_callable=AsyncMock)
    async def test_corrupt_narration(self, mock_load, exporter, presentation):
        mock_load.side_effect = DecodeError("Unsupported or corrupt narration audio")

        result = await exporter.export(presentation)

        assert result.message == USER_MESSAGES[DecodeError]
        assert exporter.last_job.status == ExportStatus.FAILED

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.load_narration', new_callable=AsyncMock)
    async def test_recording_failure_discards_fragments(
        self, mock_load, exporter, presentation, narration, recorder, stream
    ):
        mock_load.return_value = narration

        async def partial_record(stream, duration, job):
            job.recorded_chunks.append(b"partial")
            raise RecordingError("Encoder failed: broken pipe")

        recorder.record.side_effect = partial_record

        result = await exporter.export(presentation)

        job = exporter.last_job
        assert result.message == USER_MESSAGES[RecordingError]
        assert job.status == ExportStatus.FAILED
        assert job.recorded_chunks == []
        assert job.artifact is None
        stream.close.assert_called_once()

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.load_narration', new_callable=AsyncMock)
    async def test_unexpected_error_uses_generic_message(self, mock_load, presentation, muxer, recorder):
        renderer = MagicMock()
        renderer.render.side_effect = RuntimeError("font cache corrupted")
        exporter = PresentationExporter(renderer=renderer, muxer=muxer, recorder=recorder)

        result = await exporter.export(presentation)

        assert result.message == GENERIC_FAILURE
        assert exporter.last_job.status_history[-1]["from_status"] == "rendering"
        mock_load.assert_not_awaited()

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.load_narration', new_callable=AsyncMock)
    async def test_second_export_rejected_while_busy(
        self, mock_load, exporter, presentation, narration, recorder
    ):
        mock_load.return_value = narration
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_record(stream, duration, job):
            started.set()
            await release.wait()
            job.recorded_chunks.append(b"video")
            return duration

        recorder.record.side_effect = slow_record

        first = asyncio.create_task(exporter.export(presentation))
        await started.wait()
        assert exporter.is_busy
        assert exporter.current_job.status == ExportStatus.RECORDING

        second = await exporter.export(presentation)

        assert second.status == "rejected"
        assert second.message == BUSY_MESSAGE
        assert exporter.current_job.status == ExportStatus.RECORDING

        release.set()
        result = await first

        assert result.ok
        assert recorder.record.await_count == 1
        assert not exporter.is_busy

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.load_narration', new_callable=AsyncMock)
    async def test_rejected_while_another_thread_exports(self, mock_load, exporter, presentation, recorder):
        # Simulate an export holding the exporter on another Gradio worker thread
        exporter._guard.acquire()
        try:
            assert exporter.is_busy

            result = await exporter.export(presentation)
        finally:
            exporter._guard.release()

        assert result.status == "rejected"
        assert result.message == BUSY_MESSAGE
        mock_load.assert_not_awaited()
        recorder.record.assert_not_awaited()
        assert exporter.last_job is None
        assert not exporter.is_busy

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.load_narration', new_callable=AsyncMock)
    async def test_export_saves_to_output_dir(self, mock_load, muxer, recorder, presentation, narration, tmp_path):
        mock_load.return_value = narration
        exporter = PresentationExporter(
            renderer=TextLayoutRenderer(resolution=(1280, 720)),
            muxer=muxer,
            recorder=recorder,
            output_dir=str(tmp_path / "exports"),
        )

        result = await exporter.export(presentation)

        assert result.output_path.endswith("Photosynthesis.mp4")
        assert (tmp_path / "exports" / "Photosynthesis.mp4").read_bytes() == result.artifact.data

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.load_narration', new_callable=AsyncMock)
    async def test_each_export_gets_new_job(self, mock_load, exporter, presentation, narration):
        mock_load.return_value = narration

        await exporter.export(presentation)
        first_job = exporter.last_job
        await exporter.export(presentation)

        assert exporter.last_job.job_id != first_job.job_id
        assert first_job.status == ExportStatus.COMPLETE


class TestUserMessages:
    def test_subclass_lookup(self):
        assert user_message_for(FetchError("x")) == USER_MESSAGES[FetchError]

    def test_unknown_error(self):
        assert user_message_for(KeyError("x")) == GENERIC_FAILURE


class TestExportPresentationVideo:
    """Test the dict-based export wrapper."""

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.PresentationExporter')
    async def test_success(self, mock_exporter_cls):
        artifact = VideoArtifact(filename="Photosynthesis.mp4", data=b"video", duration=42.0)
        mock_exporter_cls.return_value.export = AsyncMock(return_value=ExportResult(
            status="success", artifact=artifact, output_path="/tmp/out/Photosynthesis.mp4"
        ))

        result = await export_presentation_video(
            {"title": "Photosynthesis", "summary": "Plants make food.", "audioUrl": "narration.wav"},
            output_dir="/tmp/out",
        )

        assert result["status"] == "success"
        assert result["filename"] == "Photosynthesis.mp4"
        assert result["duration"] == 42.0
        mock_exporter_cls.assert_called_once_with(output_dir="/tmp/out")

    @pytest.mark.asyncio
    @patch('sizwe_guide.tools.video_exporter.PresentationExporter')
    async def test_failed_export(self, mock_exporter_cls):
        mock_exporter_cls.return_value.export = AsyncMock(return_value=ExportResult(
            status="error", message=USER_MESSAGES[FetchError]
        ))

        result = await export_presentation_video({"title": "T", "summary": "S"}, output_dir="/tmp/out")

        assert result == {"status": "error", "error": USER_MESSAGES[FetchError]}

    @pytest.mark.asyncio
    async def test_invalid_presentation(self):
        result = await export_presentation_video({"summary": "No title"})

        assert result["status"] == "error"
