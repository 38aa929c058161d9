"""
Domain entities for the chunked transcription pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from core.constants import JobPhase, ProgressStatus

# Sort key of a segment. Initial split pieces are (n,), pieces produced by
# repairing segment k are k + (i,), so order survives repair without renumbering.
SegmentIndex = Tuple[int, ...]


def format_index(index: SegmentIndex) -> str:
    """Render a segment index as "5" or "5.1"."""
    return ".".join(str(part) for part in index)


@dataclass(frozen=True)
class MediaInfo:
    """Result of probing a source file."""

    duration_seconds: float
    size_bytes: int
    format_name: str = ""


@dataclass
class Job:
    """One transcription request and its working files."""

    session_id: str
    source_path: str
    original_filename: str
    size_bytes: int
    work_dir: str
    extension: str
    duration_seconds: Optional[float] = None
    segment_duration: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def segment_prefix(self) -> str:
        return f"{self.session_id}-"


@dataclass(frozen=True)
class Segment:
    """A bounded-duration slice of the source file."""

    session_id: str
    index: SegmentIndex
    file_path: str
    size_bytes: int

    @property
    def label(self) -> str:
        return format_index(self.index)

    @property
    def file_name(self) -> str:
        return Path(self.file_path).name


@dataclass(frozen=True)
class SegmentResult:
    """Terminal outcome of transcribing one segment."""

    index: SegmentIndex
    text: str
    failed: bool = False

    @classmethod
    def placeholder(cls, index: SegmentIndex, reason: str) -> "SegmentResult":
        return cls(
            index=index,
            text=f"[Segment {format_index(index)} failed: {reason}]",
            failed=True,
        )


@dataclass(frozen=True)
class ProgressEvent:
    """One entry of a job's progress stream."""

    status: ProgressStatus
    message: str
    progress: int
    transcription: Optional[str] = None
    saved_as: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (ProgressStatus.COMPLETE, ProgressStatus.ERROR)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "status": self.status.value,
            "message": self.message,
            "progress": self.progress,
        }
        if self.transcription is not None:
            data["transcription"] = self.transcription
        if self.saved_as is not None:
            data["saved_as"] = self.saved_as
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class JobState:
    """Counters and flags used to detect the global completion condition."""

    discovered: int = 0
    processed: int = 0
    split_finished: bool = False
    repair_finished: bool = False
    discovery_finished: bool = False
    failed: bool = False

    @property
    def phase(self) -> JobPhase:
        if self.failed:
            return JobPhase.FAILED
        if not self.discovery_finished:
            return JobPhase.DISCOVERING
        if self.processed < self.discovered:
            return JobPhase.DRAINING
        return JobPhase.COMPLETE
