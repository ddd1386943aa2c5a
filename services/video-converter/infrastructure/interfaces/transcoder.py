"""Abstract interface for media transcoding."""

from abc import ABC, abstractmethod
from pathlib import Path

from domain.formats import AudioProfile
from domain.models import ToolInvocationResult


class Transcoder(ABC):
    """Abstract base class for out-of-process media transcoders."""

    @abstractmethod
    async def transcode(
        self, input_path: Path, output_path: Path, profile: AudioProfile
    ) -> ToolInvocationResult:
        """
        Extracts the audio stream of a video into the given profile.

        Args:
            input_path: Video file to read.
            output_path: File to write; its extension matches the profile.
            profile: Codec and bitrate to encode with.

        Returns:
            The result of the single transcoder run.
        """

    @abstractmethod
    async def extract_speech_audio(
        self, input_path: Path, output_path: Path
    ) -> ToolInvocationResult:
        """
        Extracts mono 16 kHz PCM audio suitable for speech recognition.

        Args:
            input_path: Video file to read.
            output_path: WAV file to write.

        Returns:
            The result of the single transcoder run.
        """

    @abstractmethod
    async def is_available(self) -> bool:
        """Returns True when the transcoder binary can be started."""
