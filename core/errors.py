"""
Error taxonomy for the transcription pipeline.

Permanent errors abort the whole job. Transient errors are retried by the
segment transcriber. Segment-level failures never abort the job; they end up
as a placeholder in the final transcript.
"""


class TranscriptionPipelineError(Exception):
    """Base class for all pipeline errors."""


class PermanentError(TranscriptionPipelineError):
    """Fatal for the job, never retried."""


class TransientError(TranscriptionPipelineError):
    """Network, timeout, rate-limit or 5xx failure of the transcription service."""


class InvalidAudioFormatError(PermanentError):
    """Uploaded file has an unsupported extension."""


class MissingDependencyError(PermanentError):
    """ffmpeg/ffprobe binary is not installed."""


class ProbeError(PermanentError):
    """Source file is unreadable, empty or has no parsable duration."""


class SplitError(PermanentError):
    """The split tool reported a failure."""


class RepairExhaustedError(PermanentError):
    """A segment could not be brought under the size limit."""


class OversizedSegmentError(PermanentError):
    """A segment above the hard limit reached the transcriber after repair."""


class SegmentDiscoveryError(PermanentError):
    """Segment files could not be listed, so the transcript would be incomplete."""


class TranscriptionRejectedError(TranscriptionPipelineError):
    """The transcription service rejected the content; retrying will not help."""


class SegmentTranscriptionError(TranscriptionPipelineError):
    """A single segment could not be transcribed. Recorded as a placeholder."""
