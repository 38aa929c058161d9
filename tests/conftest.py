import pytest

from domain.entities import Job


@pytest.fixture
def make_job(tmp_path):
    """Build a Job whose source file and segments live under tmp_path."""

    def _make_job(session_id="session-1", extension=".mp3", source_bytes=b"source", segment_duration=600):
        source = tmp_path / f"upload{extension}"
        source.write_bytes(source_bytes)
        work_dir = tmp_path / "chunks"
        work_dir.mkdir(exist_ok=True)
        return Job(
            session_id=session_id,
            source_path=str(source),
            original_filename=f"meeting{extension}",
            size_bytes=len(source_bytes),
            work_dir=str(work_dir),
            extension=extension,
            duration_seconds=3600.0,
            segment_duration=segment_duration,
        )

    return _make_job
