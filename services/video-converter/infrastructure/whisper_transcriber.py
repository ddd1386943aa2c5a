"""faster-whisper implementation of the TranscriptionService interface."""

import asyncio
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from pathlib import Path
from typing import Any

from converter_common import setup_logging

from domain.models import TranscriptSegment
from exceptions import TranscriptionError

from .interfaces import TranscriptionService

logger = setup_logging()


class WhisperTranscriber(TranscriptionService):
    """
    Handles speech recognition with a local faster-whisper model.

    The model is loaded on first use from the directory the dependency
    bootstrapper installed it into and then reused by every request.
    Inference runs on its own pool of `max_workers` threads, separate from
    the default executor that file copies and downloads use.
    """

    def __init__(
        self,
        model_path: Path,
        device: str = "cpu",
        compute_type: str = "int8",
        beam_size: int = 5,
        max_workers: int = 1,
        model_factory: Callable[..., Any] | None = None,
    ):
        self._model_path = model_path
        self._device = device
        self._compute_type = compute_type
        self._beam_size = beam_size
        self._model_factory = model_factory
        self._model = None
        self._model_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers), thread_name_prefix="whisper"
        )

    async def transcribe(self, audio_path: Path) -> list[TranscriptSegment]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, self._transcribe_sync, audio_path
        )

    def close(self) -> None:
        """Stops the recognition pool without waiting for running jobs."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _transcribe_sync(self, audio_path: Path) -> list[TranscriptSegment]:
        logger.info("Starting speech recognition", extra={"audio_file": str(audio_path)})
        try:
            model = self._load_model()
            # language=None lets whisper detect the spoken language
            raw_segments, info = model.transcribe(
                str(audio_path), language=None, beam_size=self._beam_size
            )
            segments = [
                TranscriptSegment(
                    start=timedelta(seconds=s.start),
                    end=timedelta(seconds=s.end),
                    text=s.text,
                )
                for s in raw_segments
            ]
        except Exception as e:
            logger.exception(
                "Speech recognition failed", extra={"audio_file": str(audio_path)}
            )
            raise TranscriptionError(audio_path.name, e) from e

        logger.info(
            "Speech recognition completed",
            extra={
                "segment_count": len(segments),
                "language": getattr(info, "language", None),
            },
        )
        return segments

    def _load_model(self):
        with self._model_lock:
            if self._model is None:
                factory = self._model_factory
                if factory is None:
                    from faster_whisper import WhisperModel

                    factory = WhisperModel
                logger.info(
                    "Loading whisper model",
                    extra={
                        "model_path": str(self._model_path),
                        "device": self._device,
                        "compute_type": self._compute_type,
                    },
                )
                self._model = factory(
                    str(self._model_path),
                    device=self._device,
                    compute_type=self._compute_type,
                )
            return self._model
