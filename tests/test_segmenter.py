import shutil

import pytest

from core.errors import MissingDependencyError, SplitError
from worker.segmenter import (
    Segmenter,
    parse_segment_index,
    segment_filename,
    segment_pattern,
)

from fakes import write_segment


def test_segment_filenames(make_job):
    job = make_job(session_id="abc")
    assert segment_filename(job, (5,)) == "abc-chunk-005.mp3"
    assert segment_filename(job, (5, 1)) == "abc-chunk-005_001.mp3"
    assert segment_pattern(job).endswith("abc-chunk-%03d.mp3")


def test_parse_ignores_other_files(make_job):
    job = make_job(session_id="abc")
    assert parse_segment_index(job, "abc-chunk-012_003.mp3") == (12, 3)
    assert parse_segment_index(job, "xyz-chunk-012.mp3") is None
    assert parse_segment_index(job, "abc-chunk-012.wav") is None
    assert parse_segment_index(job, "abc-repair-12-000.mp3") is None


def test_list_segments_sorted_by_index(make_job):
    job = make_job()
    for index in [(10,), (2,), (1, 1), (1, 0), (0,)]:
        write_segment(job, index, size=7)
    write_segment(make_job(session_id="other"), (0,))

    segments = Segmenter(ffmpeg_binary="ffmpeg").list_segments(job)

    assert [s.index for s in segments] == [(0,), (1, 0), (1, 1), (2,), (10,)]
    assert [s.label for s in segments] == ["0", "1.0", "1.1", "2", "10"]
    assert all(s.size_bytes == 7 for s in segments)


def test_list_segments_without_directory(make_job, tmp_path):
    job = make_job()
    job.work_dir = str(tmp_path / "missing")
    assert Segmenter(ffmpeg_binary="ffmpeg").list_segments(job) == []


@pytest.mark.asyncio
async def test_missing_ffmpeg_binary(make_job):
    job = make_job()
    segmenter = Segmenter(ffmpeg_binary="ffmpeg-that-does-not-exist")
    with pytest.raises(MissingDependencyError):
        await segmenter.split(job)


@pytest.mark.asyncio
@pytest.mark.skipif(shutil.which("false") is None, reason="needs the false binary")
async def test_nonzero_exit_is_a_split_error(make_job):
    job = make_job()
    segmenter = Segmenter(ffmpeg_binary=shutil.which("false"))
    with pytest.raises(SplitError, match="exited with code 1"):
        await segmenter.split(job)
