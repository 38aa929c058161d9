import asyncio
import json
import os
import time
import uuid
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

from core.config import MB, get_settings
from core.constants import PROGRESS_ACCEPTED, SUPPORTED_FORMATS
from core.errors import InvalidAudioFormatError, PermanentError
from core.logger import logger
from domain.entities import Job
from ports.storage import TranscriptStorePort
from ports.transcriber import TranscriberPort
from worker.processor import TranscriptionJobProcessor
from worker.progress import ProgressReporter
from worker.transcriber import SegmentTranscriber

settings = get_settings()


class TranscribeService:
    """
    Transcribes uploaded audio files.

    Files within the transcription service's size limit are sent in a single
    call. Larger files go through the segmented pipeline and report progress
    as a stream of JSON events.
    """

    def __init__(
        self,
        transcriber: Optional[TranscriberPort] = None,
        store: Optional[TranscriptStorePort] = None,
        processor: Optional[TranscriptionJobProcessor] = None,
    ):
        self.transcriber = transcriber or self._get_transcriber()
        self.store = store or self._get_store()
        self.processor = processor or TranscriptionJobProcessor(self.transcriber)

        self.segments_dir = Path(settings.segments_dir)
        self.segments_dir.mkdir(parents=True, exist_ok=True)
        self.limit_bytes = settings.transcription_limit_bytes

        logger.info(
            f"TranscribeService initialized (limit={settings.transcription_limit_mb}MB, "
            f"model={settings.transcription_model})"
        )

    def _get_transcriber(self) -> TranscriberPort:
        from adapters.openai.transcriber import OpenAITranscriber

        return OpenAITranscriber()

    def _get_store(self) -> TranscriptStorePort:
        from services.transcript_store import get_transcript_store

        return get_transcript_store()

    @staticmethod
    def validate_format(filename: str) -> str:
        """
        Check an upload's extension against the accepted formats.

        Returns:
            Lower-cased extension including the dot

        Raises:
            InvalidAudioFormatError: If the extension is not accepted
        """
        extension = Path(filename).suffix.lower()
        if extension not in SUPPORTED_FORMATS:
            raise InvalidAudioFormatError(
                f"Only audio files are allowed ({', '.join(SUPPORTED_FORMATS)})"
            )
        return extension

    def requires_segmentation(self, size_bytes: int) -> bool:
        """Whether a file is above the single-request limit."""
        return size_bytes > self.limit_bytes

    async def transcribe_file(self, file_path: str, original_filename: str) -> Dict[str, Any]:
        """
        Transcribe a file within the size limit in a single call.

        Args:
            file_path: Uploaded file on disk (removed afterwards)
            original_filename: Name given by the client

        Returns:
            Dictionary with the transcription and the saved filename

        Raises:
            SegmentTranscriptionError: If the call is rejected or retries run out
        """
        start_time = time.time()
        try:
            logger.info(f"Transcribing {original_filename} in a single request")
            text = await SegmentTranscriber(self.transcriber).transcribe_with_retry(file_path)
            saved_as = self.store.save(text, original_filename)

            duration = time.time() - start_time
            logger.info(f"Transcribed {original_filename} in {duration:.2f}s")
            return {
                "transcription": text,
                "saved_as": saved_as,
                "duration": duration,
            }
        finally:
            try:
                os.remove(file_path)
                logger.debug(f"Cleaned up upload: {file_path}")
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.warning(f"Failed to clean up upload {file_path}: {e}")

    def create_job(self, file_path: str, original_filename: str, size_bytes: int) -> Job:
        return Job(
            session_id=str(uuid.uuid4()),
            source_path=file_path,
            original_filename=original_filename,
            size_bytes=size_bytes,
            work_dir=str(self.segments_dir),
            extension=Path(file_path).suffix.lower(),
        )

    async def stream_large_file(
        self, file_path: str, original_filename: str, size_bytes: int
    ) -> AsyncIterator[str]:
        """
        Run the segmented pipeline and yield each progress event as a JSON object.

        The stream always ends with one status=complete or status=error event.
        If the consumer stops reading, the job is cancelled and its files removed.
        """
        job = self.create_job(file_path, original_filename, size_bytes)
        reporter = ProgressReporter(job.session_id)
        reporter.emit(
            f"Processing large file ({round(size_bytes / MB)}MB). Splitting into segments "
            f"under the {settings.transcription_limit_mb}MB limit...",
            PROGRESS_ACCEPTED,
        )

        task = asyncio.create_task(self._run_job(job, reporter))
        try:
            async for event in reporter.stream():
                yield json.dumps(event.to_dict())
        finally:
            if not task.done():
                logger.warning(f"[{job.session_id}] Client went away, cancelling job")
                task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def _run_job(self, job: Job, reporter: ProgressReporter) -> None:
        try:
            transcript = await self.processor.run(job, reporter)
        except PermanentError as e:
            reporter.fail(str(e))
            return
        except Exception as e:
            logger.error(f"[{job.session_id}] Unexpected failure: {e}")
            reporter.fail("Failed to process audio file")
            return

        saved_as = self.store.save(transcript, job.original_filename)
        reporter.complete(transcript, saved_as=saved_as)
