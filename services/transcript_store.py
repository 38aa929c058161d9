"""
Filesystem-backed transcript persistence.
"""

import os
import re
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.config import get_settings
from core.logger import logger
from ports.storage import TranscriptStorePort

SAFE_NAME = re.compile(r"^[\w.\- ]+\.txt$")


class FileTranscriptStore(TranscriptStorePort):
    """Stores each transcript as <timestamp>_<original stem>.txt."""

    def __init__(self, directory: Optional[str] = None):
        self.directory = Path(directory or get_settings().transcriptions_dir)
        self.directory.mkdir(parents=True, exist_ok=True)

    def save(self, text: str, original_filename: str) -> Optional[str]:
        """
        Save a transcript.

        Returns:
            Saved filename, or None if writing failed (the transcript is still returned to the caller)
        """
        timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S-%f")
        stem = re.sub(r"[^\w.\- ]", "_", Path(original_filename).stem) or "audio"
        filename = f"{timestamp}_{stem}.txt"

        try:
            (self.directory / filename).write_text(text, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to save transcription {filename}: {e}")
            return None

        logger.info(f"Transcription saved: {filename}")
        return filename

    def list(self) -> List[Dict[str, Any]]:
        entries = []
        for path in self.directory.glob("*.txt"):
            try:
                stats = path.stat()
            except FileNotFoundError:
                continue
            entries.append(
                {
                    "filename": path.name,
                    "created": datetime.fromtimestamp(stats.st_mtime),
                    "size": stats.st_size,
                }
            )
        entries.sort(key=lambda entry: entry["created"], reverse=True)
        return entries

    def read(self, filename: str) -> Optional[str]:
        if not SAFE_NAME.match(filename) or os.path.basename(filename) != filename:
            return None
        path = self.directory / filename
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")


@lru_cache()
def get_transcript_store() -> FileTranscriptStore:
    """Get the process-wide transcript store."""
    return FileTranscriptStore()
