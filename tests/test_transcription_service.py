import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.errors import InvalidAudioFormatError, SegmentTranscriptionError, SplitError, TransientError
from services.transcript_store import FileTranscriptStore
from services.transcription import TranscribeService

MB = 1024 * 1024


@pytest.fixture
def store(tmp_path):
    return FileTranscriptStore(str(tmp_path / "transcriptions"))


@pytest.fixture
def upload(tmp_path):
    path = tmp_path / "upload.mp3"
    path.write_bytes(b"audio")
    return path


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def parse_stream(chunks):
    decoder = json.JSONDecoder()
    body = "".join(chunks)
    events, position = [], 0
    while position < len(body):
        event, position = decoder.raw_decode(body, position)
        events.append(event)
    return events


def test_validate_format():
    assert TranscribeService.validate_format("Lecture.MP3") == ".mp3"
    with pytest.raises(InvalidAudioFormatError):
        TranscribeService.validate_format("notes.pdf")


def test_requires_segmentation(store):
    service = TranscribeService(transcriber=AsyncMock(), store=store)
    assert not service.requires_segmentation(25 * MB)
    assert service.requires_segmentation(25 * MB + 1)


@pytest.mark.asyncio
async def test_small_file_is_transcribed_saved_and_removed(store, upload):
    transcriber = AsyncMock()
    transcriber.transcribe.return_value = "short answer"
    service = TranscribeService(transcriber=transcriber, store=store)

    result = await service.transcribe_file(str(upload), "answer.mp3")

    assert result["transcription"] == "short answer"
    assert store.read(result["saved_as"]) == "short answer"
    assert not upload.exists()


@pytest.mark.asyncio
async def test_small_file_retries_transient_errors(store, upload, monkeypatch):
    monkeypatch.setattr("worker.transcriber.asyncio.sleep", AsyncMock())
    transcriber = AsyncMock()
    transcriber.transcribe.side_effect = [TransientError("Rate limit reached"), "ok"]
    service = TranscribeService(transcriber=transcriber, store=store)

    result = await service.transcribe_file(str(upload), "answer.mp3")

    assert result["transcription"] == "ok"
    assert transcriber.transcribe.await_count == 2


@pytest.mark.asyncio
async def test_small_file_failure_still_removes_upload(store, upload, monkeypatch):
    monkeypatch.setattr("worker.transcriber.asyncio.sleep", AsyncMock())
    transcriber = AsyncMock()
    transcriber.transcribe.side_effect = TransientError("Connection error")
    service = TranscribeService(transcriber=transcriber, store=store)

    with pytest.raises(SegmentTranscriptionError):
        await service.transcribe_file(str(upload), "answer.mp3")
    assert not upload.exists()


@pytest.mark.asyncio
async def test_large_file_stream_ends_with_complete(store, upload):
    async def run(job, reporter):
        reporter.emit("Analyzed audio file (60min total)", 5)
        reporter.emit("Splitting audio into ~10min segments...", 10)
        reporter.emit("Transcription complete. Finalizing results...", 95)
        return "part one part two"

    processor = MagicMock()
    processor.run = AsyncMock(side_effect=run)
    service = TranscribeService(transcriber=AsyncMock(), store=store, processor=processor)

    chunks = [chunk async for chunk in service.stream_large_file(str(upload), "lecture.mp3", 60 * MB)]
    events = parse_stream(chunks)

    assert events[0]["status"] == "processing"
    assert events[0]["progress"] == 5
    assert [event["progress"] for event in events] == sorted(event["progress"] for event in events)
    assert events[-1]["status"] == "complete"
    assert events[-1]["progress"] == 100
    assert events[-1]["transcription"] == "part one part two"
    assert store.read(events[-1]["saved_as"]) == "part one part two"
    assert sum(event["status"] != "processing" for event in events) == 1

    job = processor.run.await_args.args[0]
    assert job.original_filename == "lecture.mp3"
    assert job.extension == ".mp3"


@pytest.mark.asyncio
async def test_large_file_stream_ends_with_error(store, upload):
    processor = MagicMock()
    processor.run = AsyncMock(side_effect=SplitError("ffmpeg exited with code 1: Invalid data"))
    service = TranscribeService(transcriber=AsyncMock(), store=store, processor=processor)

    events = parse_stream([chunk async for chunk in service.stream_large_file(str(upload), "broken.mp3", 60 * MB)])

    assert events[-1]["status"] == "error"
    assert events[-1]["error"] == "ffmpeg exited with code 1: Invalid data"
    assert store.list() == []


@pytest.mark.asyncio
async def test_unexpected_failure_is_reported_generically(store, upload):
    processor = MagicMock()
    processor.run = AsyncMock(side_effect=RuntimeError("boom"))
    service = TranscribeService(transcriber=AsyncMock(), store=store, processor=processor)

    events = parse_stream([chunk async for chunk in service.stream_large_file(str(upload), "a.mp3", 60 * MB)])

    assert events[-1]["status"] == "error"
    assert events[-1]["error"] == "Failed to process audio file"
