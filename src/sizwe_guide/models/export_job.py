"""
Export job data models.

An ExportJob tracks one end-to-end video generation attempt. It moves
strictly forward through its phases and can fail from any non-terminal
phase. The finished file is carried as a VideoArtifact.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Dict, Any, Optional, ClassVar
from pydantic import BaseModel, Field
import uuid

from ..errors import InvalidTransitionError


class ExportStatus(str, Enum):
    """Export phases in the order a job passes through them."""
    IDLE = "idle"
    RENDERING = "rendering"
    DECODING = "decoding"
    CAPTURING = "capturing"
    RECORDING = "recording"
    COMPLETE = "complete"
    FAILED = "failed"


class VideoArtifact(BaseModel):
    """Single downloadable video file produced by a successful job."""
    filename: str = Field(..., description="Sanitized file name including extension")
    mime_type: str = Field("video/mp4", description="Container MIME type")
    data: bytes = Field(..., repr=False, description="Complete container bytes")
    duration: float = Field(..., ge=0, description="Recorded duration (seconds)")

    @property
    def size(self) -> int:
        return len(self.data)

    def save(self, directory: str) -> Path:
        """Write the artifact into directory and return the file path."""
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / self.filename
        path.write_bytes(self.data)
        return path


class ExportJob(BaseModel):
    """Transient state machine for one export attempt."""
    job_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12], description="Job identifier")
    status: ExportStatus = Field(ExportStatus.IDLE, description="Current phase")
    recorded_chunks: List[bytes] = Field(default_factory=list, repr=False, description="Recorded fragments in order")
    artifact: Optional[VideoArtifact] = Field(None, description="Set only once complete")
    error: Optional[str] = Field(None, description="Failure reason")
    status_history: List[Dict[str, Any]] = Field(default_factory=list, description="Phase transitions")

    ORDER: ClassVar[List[ExportStatus]] = [
        ExportStatus.IDLE,
        ExportStatus.RENDERING,
        ExportStatus.DECODING,
        ExportStatus.CAPTURING,
        ExportStatus.RECORDING,
        ExportStatus.COMPLETE,
    ]

    @property
    def is_terminal(self) -> bool:
        return self.status in (ExportStatus.COMPLETE, ExportStatus.FAILED)

    @property
    def is_active(self) -> bool:
        return self.status not in (ExportStatus.IDLE, ExportStatus.COMPLETE, ExportStatus.FAILED)

    def _record(self, new_status: ExportStatus) -> None:
        self.status_history.append({
            "from_status": self.status.value,
            "to_status": new_status.value,
            "timestamp": datetime.utcnow().isoformat()
        })
        self.status = new_status

    def advance(self, new_status: ExportStatus) -> None:
        """Move forward to new_status; backward or skipped-back moves raise."""
        if new_status == ExportStatus.FAILED:
            raise InvalidTransitionError("Use fail() to mark a job as failed")
        if self.is_terminal:
            raise InvalidTransitionError(f"Job {self.job_id} already {self.status.value}")
        if self.ORDER.index(new_status) <= self.ORDER.index(self.status):
            raise InvalidTransitionError(
                f"Cannot move job {self.job_id} from {self.status.value} to {new_status.value}"
            )
        self._record(new_status)

    def fail(self, message: str) -> None:
        """Mark the job failed and drop any partial fragments."""
        if self.is_terminal:
            raise InvalidTransitionError(f"Job {self.job_id} already {self.status.value}")
        self.error = message
        self.recorded_chunks.clear()
        self.artifact = None
        self._record(ExportStatus.FAILED)

    def complete(self, artifact: VideoArtifact) -> None:
        """Attach the artifact and finish the job."""
        self.advance(ExportStatus.COMPLETE)
        self.artifact = artifact


class ExportResult(BaseModel):
    """Outcome returned to the caller of an export."""
    status: str = Field(..., description="success, error or rejected")
    message: str = Field("", description="User-facing notification")
    job_id: Optional[str] = Field(None, description="Job that produced this result")
    artifact: Optional[VideoArtifact] = Field(None, description="Present only on success")
    output_path: Optional[str] = Field(None, description="Where the artifact was saved, if saved")

    @property
    def ok(self) -> bool:
        return self.status == "success"
