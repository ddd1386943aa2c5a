"""Abstract interfaces for infrastructure dependencies."""

from .dependency_source import DependencySource
from .transcoder import Transcoder
from .transcription_service import TranscriptionService

__all__ = ["DependencySource", "Transcoder", "TranscriptionService"]
