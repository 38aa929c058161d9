import pytest

from core.constants import ProgressStatus
from worker.progress import ProgressReporter


def test_progress_is_clamped_to_last_value():
    reporter = ProgressReporter("session-1")
    reporter.emit("Analyzed audio file", 10)
    event = reporter.emit("Re-split 1 oversized segments", 5)

    assert event.progress == 10
    assert reporter.last_progress == 10


def test_progress_is_capped_at_100():
    reporter = ProgressReporter()
    event = reporter.emit("done", 140)
    assert event.progress == 100


def test_segment_progress_interpolates_between_split_and_done():
    reporter = ProgressReporter()
    assert reporter.segment_progress(0, 4).progress == 20
    assert reporter.segment_progress(1, 4).progress == 37
    assert reporter.segment_progress(2, 4).progress == 55
    assert reporter.segment_progress(4, 4).progress == 90


def test_segment_progress_does_not_drop_when_more_segments_are_found():
    reporter = ProgressReporter()
    reporter.segment_progress(2, 2)
    # discovering more segments would compute a lower percentage
    event = reporter.segment_progress(2, 8)
    assert event.progress == 90


def test_segment_progress_without_segments():
    assert ProgressReporter().segment_progress(0, 0) is None


def test_nothing_is_emitted_after_terminal_event():
    reporter = ProgressReporter()
    reporter.complete("hello world", saved_as="2024-01-01T00-00-00-000000_a.txt")

    assert reporter.finished
    assert reporter.fail("late failure") is None
    assert reporter.emit("late", 50) is None
    assert [event.status for event in reporter.events] == [ProgressStatus.COMPLETE]


def test_failure_event_carries_reason():
    reporter = ProgressReporter()
    event = reporter.fail("ffmpeg exited with code 1")

    assert event.to_dict() == {
        "status": "error",
        "message": "Transcription failed: ffmpeg exited with code 1",
        "progress": 100,
        "error": "ffmpeg exited with code 1",
    }


@pytest.mark.asyncio
async def test_stream_ends_with_terminal_event():
    reporter = ProgressReporter()
    reporter.emit("Analyzed audio file", 5)
    reporter.emit("Splitting audio", 10)
    reporter.complete("text")

    events = [event async for event in reporter.stream()]

    assert [event.progress for event in events] == [5, 10, 100]
    assert events[-1].transcription == "text"
