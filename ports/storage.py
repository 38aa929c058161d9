"""
Transcript Storage Port.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class TranscriptStorePort(ABC):
    """Abstract interface for persisting finished transcripts."""

    @abstractmethod
    def save(self, text: str, original_filename: str) -> Optional[str]:
        """Persist a transcript and return its saved identifier."""
        pass

    @abstractmethod
    def list(self) -> List[Dict[str, Any]]:
        """List saved transcripts, newest first."""
        pass

    @abstractmethod
    def read(self, filename: str) -> Optional[str]:
        """Return the content of a saved transcript, or None if unknown."""
        pass
