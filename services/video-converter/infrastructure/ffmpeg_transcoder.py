"""ffmpeg implementation of the Transcoder interface."""

from collections.abc import Callable
from pathlib import Path

from converter_common import setup_logging

from domain.formats import (
    SPEECH_CHANNELS,
    SPEECH_CODEC,
    SPEECH_SAMPLE_RATE,
    AudioProfile,
)
from domain.models import ToolInvocationResult

from .interfaces import Transcoder
from .tool_invoker import ExternalToolInvoker

logger = setup_logging()


class FFmpegTranscoder(Transcoder):
    """Builds ffmpeg command lines and runs them through the tool invoker."""

    def __init__(
        self,
        invoker: ExternalToolInvoker,
        binary_locator: Callable[[], str],
        timeout: float | None = None,
    ):
        self._invoker = invoker
        self._binary_locator = binary_locator
        self._timeout = timeout

    @property
    def binary(self) -> str:
        """The ffmpeg executable currently in use."""
        return self._binary_locator()

    async def transcode(
        self, input_path: Path, output_path: Path, profile: AudioProfile
    ) -> ToolInvocationResult:
        args = self._base_args(input_path)
        args += ["-c:a", profile.codec]
        if not profile.lossless:
            args += ["-b:a", f"{profile.bitrate_kbps}k"]
        args += ["-threads", "0", str(output_path)]

        logger.info(
            "Transcoding audio",
            extra={
                "input": str(input_path),
                "format": profile.format.value,
                "codec": profile.codec,
            },
        )
        return await self._invoker.run(self.binary, args, timeout=self._timeout)

    async def extract_speech_audio(
        self, input_path: Path, output_path: Path
    ) -> ToolInvocationResult:
        args = self._base_args(input_path)
        args += [
            "-c:a",
            SPEECH_CODEC,
            "-ar",
            str(SPEECH_SAMPLE_RATE),
            "-ac",
            str(SPEECH_CHANNELS),
            "-threads",
            "0",
            str(output_path),
        ]

        logger.info("Extracting speech audio", extra={"input": str(input_path)})
        return await self._invoker.run(self.binary, args, timeout=self._timeout)

    async def is_available(self) -> bool:
        return await self._invoker.probe(self.binary)

    @staticmethod
    def _base_args(input_path: Path) -> list[str]:
        # -y: the output path already exists as an empty temp file
        return ["-hide_banner", "-nostdin", "-y", "-i", str(input_path), "-vn"]
