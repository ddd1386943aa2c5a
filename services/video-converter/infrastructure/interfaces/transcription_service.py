"""Abstract interface for transcription service operations."""

from abc import ABC, abstractmethod
from pathlib import Path

from domain.models import TranscriptSegment


class TranscriptionService(ABC):
    """Abstract base class for speech recognition backends."""

    @abstractmethod
    async def transcribe(self, audio_path: Path) -> list[TranscriptSegment]:
        """
        Transcribes an audio file into timestamped segments.

        The spoken language is detected automatically.

        Args:
            audio_path: Mono 16 kHz PCM WAV file.

        Returns:
            Ordered list of recognized segments, possibly empty.

        Raises:
            TranscriptionError: If the recognition engine fails.
        """
