import pytest

from core.errors import RepairExhaustedError, SplitError
from worker.repair import OversizeRepair
from worker.segmenter import parse_segment_index

from fakes import FakeSegmenter, session_files, write_segment


@pytest.mark.asyncio
async def test_no_oversized_segments_is_a_noop(make_job):
    job = make_job(segment_duration=10)
    write_segment(job, (0,), size=100)
    write_segment(job, (1,), size=40)
    segmenter = FakeSegmenter(bytes_per_second=10)

    repaired = await OversizeRepair(segmenter, hard_limit_bytes=100).run(job)

    assert repaired == 0
    assert segmenter.calls == []


@pytest.mark.asyncio
async def test_oversized_segment_is_split_in_place(make_job):
    job = make_job(segment_duration=20)
    write_segment(job, (0,), size=200)
    write_segment(job, (1,), size=50)
    segmenter = FakeSegmenter(bytes_per_second=10)

    repaired = await OversizeRepair(segmenter, hard_limit_bytes=100).run(job)

    assert repaired == 1
    assert segmenter.calls[0][1] == 10
    indices = [segment.index for segment in segmenter.list_segments(job)]
    assert indices == [(0, 0), (0, 1), (1,)]
    assert all(size <= 100 for size in session_files(job).values())


@pytest.mark.asyncio
async def test_repair_halves_until_every_segment_fits(make_job):
    job = make_job(segment_duration=40)
    write_segment(job, (0,), size=50)
    write_segment(job, (1,), size=400)
    write_segment(job, (2,), size=50)
    segmenter = FakeSegmenter(bytes_per_second=10)

    repaired = await OversizeRepair(segmenter, hard_limit_bytes=100).run(job)

    # 40s -> 20s (200 bytes each) -> 10s (100 bytes each)
    assert repaired == 3
    segments = segmenter.list_segments(job)
    assert [s.index for s in segments] == [
        (0,),
        (1, 0, 0),
        (1, 0, 1),
        (1, 1, 0),
        (1, 1, 1),
        (2,),
    ]
    assert all(s.size_bytes <= 100 for s in segments)
    # no temporary repair files are left behind
    assert all(parse_segment_index(job, name) for name in session_files(job))


@pytest.mark.asyncio
async def test_segment_too_large_at_one_second_fails(make_job):
    job = make_job(segment_duration=2)
    write_segment(job, (0,), size=2000)
    segmenter = FakeSegmenter(bytes_per_second=1000)

    with pytest.raises(RepairExhaustedError):
        await OversizeRepair(segmenter, hard_limit_bytes=100).run(job)


@pytest.mark.asyncio
async def test_pass_limit_is_enforced(make_job):
    job = make_job(segment_duration=64)
    write_segment(job, (0,), size=640)
    segmenter = FakeSegmenter(bytes_per_second=10)

    with pytest.raises(RepairExhaustedError):
        await OversizeRepair(segmenter, hard_limit_bytes=100, max_passes=2).run(job)


@pytest.mark.asyncio
async def test_failed_resplit_removes_partial_pieces(make_job):
    job = make_job(segment_duration=20)
    original = write_segment(job, (0,), size=200)
    segmenter = FakeSegmenter(bytes_per_second=10, fail_after=1)

    with pytest.raises(SplitError):
        await OversizeRepair(segmenter, hard_limit_bytes=100).run(job)

    # the oversized original is kept, the partial piece is gone
    assert list(session_files(job)) == [original.rsplit("/", 1)[-1]]
