"""
System dependency checks (ffmpeg / ffprobe).
"""

import shutil
from typing import Dict

from .config import get_settings
from .errors import MissingDependencyError
from .logger import logger


def check_ffmpeg() -> Dict[str, bool]:
    """
    Check whether the ffmpeg and ffprobe binaries are on PATH.

    Returns:
        Mapping of binary name to availability
    """
    settings = get_settings()
    status = {
        "ffmpeg": shutil.which(settings.ffmpeg_binary) is not None,
        "ffprobe": shutil.which("ffprobe") is not None,
    }
    logger.debug(f"ffmpeg availability: {status}")
    return status


def validate_dependencies(require_ffmpeg: bool = True) -> None:
    """
    Validate system dependencies required for segmentation.

    Args:
        require_ffmpeg: Whether to require ffmpeg/ffprobe

    Raises:
        MissingDependencyError: If a required binary is missing
    """
    if not require_ffmpeg:
        return

    status = check_ffmpeg()
    missing = [name for name, available in status.items() if not available]
    if missing:
        error_msg = (
            f"Missing binaries: {', '.join(missing)}. Install with: "
            "brew install ffmpeg (macOS) or apt-get install ffmpeg (Linux)"
        )
        logger.error(error_msg)
        raise MissingDependencyError(error_msg)

    logger.info("ffmpeg and ffprobe available")
