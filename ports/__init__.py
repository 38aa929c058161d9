"""
Ports (abstract interfaces) for external collaborators.
"""

from .storage import TranscriptStorePort
from .transcriber import TranscriberPort

__all__ = [
    "TranscriberPort",
    "TranscriptStorePort",
]
