"""
Domain layer: entities shared by the pipeline components.
"""

from .entities import (
    Job,
    JobState,
    MediaInfo,
    ProgressEvent,
    Segment,
    SegmentIndex,
    SegmentResult,
    format_index,
)

__all__ = [
    "Job",
    "JobState",
    "MediaInfo",
    "ProgressEvent",
    "Segment",
    "SegmentIndex",
    "SegmentResult",
    "format_index",
]
