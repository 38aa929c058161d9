"""
Media probing: duration and size of a source file via ffprobe.
"""

import asyncio
import os
import warnings
from functools import partial

# Suppress pydub ffmpeg warning - availability is checked at startup
with warnings.catch_warnings():
    warnings.filterwarnings("ignore", message=".*ffmpeg.*", category=RuntimeWarning)
    warnings.filterwarnings("ignore", message=".*avconv.*", category=RuntimeWarning)
    from pydub.utils import mediainfo_json

from core.errors import MissingDependencyError, ProbeError
from core.logger import logger, format_exception_short
from domain.entities import MediaInfo


def _read_media_info(audio_path: str) -> MediaInfo:
    """Blocking ffprobe call. Runs in an executor."""
    if not os.path.isfile(audio_path):
        raise ProbeError(f"Audio file not found: {audio_path}")

    size_bytes = os.path.getsize(audio_path)
    if size_bytes <= 0:
        raise ProbeError(f"Audio file is empty: {audio_path}")

    try:
        info = mediainfo_json(audio_path)
    except FileNotFoundError as e:
        if "ffprobe" in str(e) or "avprobe" in str(e):
            raise MissingDependencyError(
                "ffprobe not installed. Install with: brew install ffmpeg (macOS) or apt-get install ffmpeg (Linux)"
            ) from e
        raise ProbeError(f"Audio file not readable: {e}") from e
    except Exception as e:
        # ffprobe prints nothing parsable for corrupted containers
        raise ProbeError(f"Could not parse media container: {e}") from e

    container = info.get("format") or {}
    try:
        duration = float(container.get("duration", 0))
    except (TypeError, ValueError):
        duration = 0.0

    if duration <= 0:
        raise ProbeError(f"Could not determine a positive duration for {audio_path}")

    return MediaInfo(
        duration_seconds=duration,
        size_bytes=size_bytes,
        format_name=container.get("format_name", ""),
    )


async def probe_media(audio_path: str) -> MediaInfo:
    """
    Probe a media file for its duration and size.

    Args:
        audio_path: Path to the source file

    Returns:
        MediaInfo with positive duration and size

    Raises:
        ProbeError: File missing, empty, unparsable or zero-duration
        MissingDependencyError: ffprobe is not installed
    """
    logger.debug(f"Probing media file: {audio_path}")
    loop = asyncio.get_running_loop()
    try:
        info = await loop.run_in_executor(None, partial(_read_media_info, audio_path))
    except (ProbeError, MissingDependencyError) as e:
        logger.error(format_exception_short(e, "Media probe failed"))
        raise

    logger.info(
        f"Probed {os.path.basename(audio_path)}: duration={info.duration_seconds:.2f}s, "
        f"size={info.size_bytes / (1024 * 1024):.2f}MB, format={info.format_name}"
    )
    return info
