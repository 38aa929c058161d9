from unittest.mock import AsyncMock, patch

import pytest

from core.errors import (
    OversizedSegmentError,
    SegmentTranscriptionError,
    TranscriptionRejectedError,
    TransientError,
)
from domain.entities import Segment
from worker.transcriber import SegmentTranscriber


def make_segment(tmp_path, size=10, index=(0,)):
    path = tmp_path / "session-1-chunk-000.mp3"
    path.write_bytes(b"a" * size)
    return Segment(session_id="session-1", index=index, file_path=str(path), size_bytes=size)


@pytest.mark.asyncio
async def test_transient_failures_are_retried(tmp_path):
    transcriber = AsyncMock()
    transcriber.transcribe.side_effect = [
        TransientError("Connection reset"),
        TransientError("Rate limit reached"),
        "hello there",
    ]
    segment_transcriber = SegmentTranscriber(transcriber, hard_limit_bytes=100, max_retries=2, backoff_seconds=0)

    text = await segment_transcriber.transcribe_segment(make_segment(tmp_path))

    assert text == "hello there"
    assert transcriber.transcribe.await_count == 3


@pytest.mark.asyncio
async def test_backoff_is_linear(tmp_path):
    transcriber = AsyncMock()
    transcriber.transcribe.side_effect = [TransientError("timeout"), TransientError("timeout"), "ok"]
    segment_transcriber = SegmentTranscriber(transcriber, hard_limit_bytes=100, max_retries=2, backoff_seconds=0.5)

    with patch("worker.transcriber.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        await segment_transcriber.transcribe_segment(make_segment(tmp_path))

    assert [call.args[0] for call in mock_sleep.await_args_list] == [0.5, 1.0]


@pytest.mark.asyncio
async def test_retries_are_bounded(tmp_path):
    transcriber = AsyncMock()
    transcriber.transcribe.side_effect = TransientError("503 Service Unavailable")
    segment_transcriber = SegmentTranscriber(transcriber, hard_limit_bytes=100, max_retries=1, backoff_seconds=0)

    with pytest.raises(SegmentTranscriptionError, match="all 2 attempts failed"):
        await segment_transcriber.transcribe_segment(make_segment(tmp_path))
    assert transcriber.transcribe.await_count == 2


@pytest.mark.asyncio
async def test_rejection_is_not_retried(tmp_path):
    transcriber = AsyncMock()
    transcriber.transcribe.side_effect = TranscriptionRejectedError("HTTP 400: Invalid file format")
    segment_transcriber = SegmentTranscriber(transcriber, hard_limit_bytes=100, max_retries=2, backoff_seconds=0)

    with pytest.raises(SegmentTranscriptionError, match="Invalid file format"):
        await segment_transcriber.transcribe_segment(make_segment(tmp_path))
    assert transcriber.transcribe.await_count == 1


@pytest.mark.asyncio
async def test_empty_segment_is_not_sent(tmp_path):
    transcriber = AsyncMock()
    segment_transcriber = SegmentTranscriber(transcriber, hard_limit_bytes=100, max_retries=0)

    with pytest.raises(SegmentTranscriptionError, match="empty segment file"):
        await segment_transcriber.transcribe_segment(make_segment(tmp_path, size=0))
    transcriber.transcribe.assert_not_awaited()


@pytest.mark.asyncio
async def test_oversized_segment_is_fatal(tmp_path):
    transcriber = AsyncMock()
    segment_transcriber = SegmentTranscriber(transcriber, hard_limit_bytes=100, max_retries=0)

    with pytest.raises(OversizedSegmentError):
        await segment_transcriber.transcribe_segment(make_segment(tmp_path, size=101))
    transcriber.transcribe.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_segment_file(tmp_path):
    segment = Segment(
        session_id="session-1",
        index=(3,),
        file_path=str(tmp_path / "gone.mp3"),
        size_bytes=10,
    )
    segment_transcriber = SegmentTranscriber(AsyncMock(), hard_limit_bytes=100, max_retries=0)

    with pytest.raises(SegmentTranscriptionError, match="unreadable"):
        await segment_transcriber.transcribe_segment(segment)
