import asyncio
import os
from unittest.mock import AsyncMock, patch

import pytest

from core.errors import MissingDependencyError, ProbeError, SplitError
from domain.entities import MediaInfo
from worker.processor import TranscriptionJobProcessor
from worker.progress import ProgressReporter
from worker.segmenter import Segmenter

from fakes import FakeSegmenter, FakeTranscriber, session_files

MB = 1024 * 1024


def media_info(job):
    # 100MB over 1000s plans 200s segments
    return MediaInfo(duration_seconds=1000.0, size_bytes=100 * MB, format_name="mp3")


@pytest.mark.asyncio
async def test_segmented_job_produces_ordered_transcript(make_job):
    # 1000 bytes at 2 bytes/s is 500s of audio: three segments of 200s
    job = make_job(source_bytes=b"a" * 1000)
    reporter = ProgressReporter(job.session_id)
    segmenter = FakeSegmenter(bytes_per_second=2)
    processor = TranscriptionJobProcessor(FakeTranscriber(), segmenter=segmenter)

    with patch("worker.processor.probe_media", new=AsyncMock(return_value=media_info(job))):
        transcript = await processor.run(job, reporter)

    assert transcript == "text-000 text-001 text-002"
    assert job.segment_duration == 200
    assert segmenter.calls[0][1] == 200

    progress = [event.progress for event in reporter.events]
    assert progress[:2] == [5, 10]
    assert progress == sorted(progress)
    assert progress[-1] == 95
    assert not reporter.finished

    assert session_files(job) == {}
    assert not os.path.exists(job.source_path)


@pytest.mark.asyncio
async def test_split_failure_cleans_up(make_job):
    job = make_job(source_bytes=b"a" * 1000)
    transcriber = FakeTranscriber()
    processor = TranscriptionJobProcessor(
        transcriber, segmenter=FakeSegmenter(bytes_per_second=2, fail_after=2)
    )

    with patch("worker.processor.probe_media", new=AsyncMock(return_value=media_info(job))):
        with pytest.raises(SplitError):
            await processor.run(job, ProgressReporter(job.session_id))

    assert session_files(job) == {}
    assert not os.path.exists(job.source_path)


@pytest.mark.asyncio
async def test_probe_failure_is_permanent(make_job):
    job = make_job()
    segmenter = FakeSegmenter()
    processor = TranscriptionJobProcessor(FakeTranscriber(), segmenter=segmenter)

    with patch("worker.processor.probe_media", new=AsyncMock(side_effect=ProbeError("Could not parse media container"))):
        with pytest.raises(ProbeError):
            await processor.run(job, ProgressReporter(job.session_id))

    assert segmenter.calls == []
    assert not os.path.exists(job.source_path)


@pytest.mark.asyncio
async def test_split_failing_on_first_segment_fails_the_job(make_job):
    job = make_job(source_bytes=b"a" * 1000)
    transcriber = FakeTranscriber()
    processor = TranscriptionJobProcessor(
        transcriber, segmenter=FakeSegmenter(bytes_per_second=2, fail_after=0)
    )

    with patch("worker.processor.probe_media", new=AsyncMock(return_value=media_info(job))):
        with pytest.raises(SplitError):
            await asyncio.wait_for(processor.run(job, ProgressReporter(job.session_id)), timeout=5)

    assert transcriber.calls == []
    assert session_files(job) == {}
    assert not os.path.exists(job.source_path)


@pytest.mark.asyncio
async def test_missing_ffmpeg_fails_the_job(make_job):
    job = make_job(source_bytes=b"a" * 1000)
    processor = TranscriptionJobProcessor(
        FakeTranscriber(), segmenter=Segmenter(ffmpeg_binary="ffmpeg-not-installed-here")
    )

    with patch("worker.processor.probe_media", new=AsyncMock(return_value=media_info(job))):
        with pytest.raises(MissingDependencyError):
            await asyncio.wait_for(processor.run(job, ProgressReporter(job.session_id)), timeout=5)

    assert session_files(job) == {}
    assert not os.path.exists(job.source_path)
