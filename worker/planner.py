"""
Segment duration planning from an estimated average bitrate.
"""

import math

from core.logger import logger

MB = 1024 * 1024


def compute_segment_duration(
    size_bytes: int,
    duration_seconds: float,
    target_segment_bytes: int,
    min_seconds: int,
    max_seconds: int,
) -> int:
    """
    Pick a segment duration that keeps each segment near the target size.

    Bitrate is assumed uniform across the file, so the estimate can be off for
    VBR sources; oversized results are fixed afterwards by OversizeRepair.

    Args:
        size_bytes: Source file size
        duration_seconds: Source duration
        target_segment_bytes: Desired segment size (below the hard limit)
        min_seconds: Lower clamp
        max_seconds: Upper clamp

    Returns:
        Segment duration in whole seconds within [min_seconds, max_seconds]

    Raises:
        ValueError: Non-positive size or duration, or an empty clamp range
    """
    if duration_seconds <= 0:
        raise ValueError(f"duration_seconds must be positive, got {duration_seconds}")
    if size_bytes <= 0:
        raise ValueError(f"size_bytes must be positive, got {size_bytes}")
    if min_seconds > max_seconds:
        raise ValueError(f"min_seconds ({min_seconds}) > max_seconds ({max_seconds})")

    estimated_bitrate = size_bytes / duration_seconds  # bytes per second
    optimal_duration = math.floor(target_segment_bytes / estimated_bitrate)
    clamped_duration = max(min_seconds, min(max_seconds, optimal_duration))

    logger.info(
        f"File analysis: {size_bytes / MB:.1f}MB, estimated bitrate: {estimated_bitrate / 1024:.1f}KB/s"
    )
    logger.info(
        f"Segment duration: {clamped_duration}s (optimal={optimal_duration}s, "
        f"bounds=[{min_seconds}, {max_seconds}])"
    )
    return clamped_duration
