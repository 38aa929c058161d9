"""Constants shared by the API and the transcription pipeline."""
from enum import Enum


class ProgressStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETE = "complete"
    ERROR = "error"


class JobPhase(str, Enum):
    DISCOVERING = "DISCOVERING"
    DRAINING = "DRAINING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


# Accepted upload formats
SUPPORTED_FORMATS = [".mp3", ".wav", ".m4a", ".ogg", ".flac"]

# Progress milestones (percent)
PROGRESS_ACCEPTED = 5
PROGRESS_PROBED = 5
PROGRESS_PLANNED = 10
PROGRESS_SPLIT = 20
PROGRESS_SEGMENTS_DONE = 90
PROGRESS_ASSEMBLING = 95
PROGRESS_COMPLETE = 100

# Segment namespace inside the segments directory
SEGMENT_MARKER = "chunk"
REPAIR_MARKER = "repair"
