from .transcriber import OpenAITranscriber

__all__ = ["OpenAITranscriber"]
