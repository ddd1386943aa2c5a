"""Orchestrates one uploaded video into one converted artifact."""

import asyncio
import shutil
from pathlib import Path

from converter_common import setup_logging

from domain import (
    AudioArtifact,
    ConversionFailure,
    ConversionOutcome,
    ConversionRequest,
    FailureKind,
    OutputKind,
    TempAssetKind,
    ToolInvocationResult,
    TranscriptBuilder,
)
from domain.formats import (
    SUPPORTED_AUDIO_FORMATS,
    derive_output_name,
    get_audio_profile,
    is_valid_video_file,
    parse_audio_format,
)
from exceptions import TranscriptionError
from infrastructure.dependency_bootstrapper import (
    SPEECH_MODEL,
    TRANSCODER,
    BootstrapState,
    DependencyBootstrapper,
)
from infrastructure.interfaces import Transcoder, TranscriptionService
from infrastructure.resource_guard import ResourceGuard

logger = setup_logging()

NO_FILE_MESSAGE = "No video file provided."
INVALID_VIDEO_MESSAGE = "Invalid video file format."
INVALID_FORMAT_MESSAGE = (
    f"Invalid audio format. Supported: {', '.join(SUPPORTED_AUDIO_FORMATS)}"
)
INTERNAL_FAULT_MESSAGE = "An unexpected error occurred while processing the video."


class ConversionPipeline:
    """
    Validates an upload, runs the transcoder (and the recognizer for text),
    and packages the result.

    Every temporary file a run creates lives inside one ResourceGuard scope,
    so it is removed whether the run succeeds, fails, times out or is
    cancelled. Expected failures are returned as ConversionFailure values;
    unexpected exceptions are logged and turned into INTERNAL_FAULT.
    """

    def __init__(
        self,
        transcoder: Transcoder,
        transcription_service: TranscriptionService,
        bootstrapper: DependencyBootstrapper,
        transcript_builder: TranscriptBuilder | None = None,
        temp_dir: Path | None = None,
        timeout: float | None = None,
    ):
        self._transcoder = transcoder
        self._transcription_service = transcription_service
        self._bootstrapper = bootstrapper
        self._transcript_builder = transcript_builder or TranscriptBuilder()
        self._temp_dir = temp_dir
        self._timeout = timeout

    async def convert(self, request: ConversionRequest) -> ConversionOutcome:
        """Dispatches on the requested output kind."""
        if request.output_kind is OutputKind.TEXT:
            return await self.convert_to_text(request)
        return await self.convert_to_audio(request)

    async def convert_to_audio(self, request: ConversionRequest) -> ConversionOutcome:
        """
        Extracts the audio track of the uploaded video in the requested format.

        Returns:
            AudioArtifact on success, ConversionFailure otherwise.
        """
        failure = self._validate(request)
        if failure:
            return failure
        audio_format = parse_audio_format(request.audio_format)
        if audio_format is None:
            return _invalid(INVALID_FORMAT_MESSAGE)

        return await self._run(request, self._convert_to_audio(request, audio_format))

    async def convert_to_text(self, request: ConversionRequest) -> ConversionOutcome:
        """
        Transcribes the speech in the uploaded video.

        Returns:
            Transcript on success (the no-speech sentinel when nothing was
            said), ConversionFailure otherwise.
        """
        failure = self._validate(request)
        if failure:
            return failure

        return await self._run(request, self._convert_to_text(request))

    async def _convert_to_audio(self, request, audio_format) -> ConversionOutcome:
        profile = get_audio_profile(audio_format)

        failure = await self._require(TRANSCODER)
        if failure:
            return failure

        with ResourceGuard(self._temp_dir) as guard:
            video = guard.acquire(TempAssetKind.INPUT, _video_suffix(request.file_name))
            await _persist(request, video.path)

            logger.info(
                "Converting video to audio",
                extra={"file_name": request.file_name, "format": audio_format.value},
            )

            output = guard.acquire(TempAssetKind.OUTPUT, profile.extension)
            result = await self._transcoder.transcode(video.path, output.path, profile)
            if not _produced_output(result, output.path):
                _log_tool_failure("Audio conversion failed", request, result)
                return ConversionFailure(
                    kind=FailureKind.CONVERSION_FAILED, message="Conversion failed"
                )

            data = await asyncio.to_thread(output.path.read_bytes)

        logger.info(
            "Audio conversion completed",
            extra={"file_name": request.file_name, "size": len(data)},
        )
        return AudioArtifact(
            data=data,
            content_type=profile.content_type,
            file_name=derive_output_name(request.file_name, audio_format.value),
        )

    async def _convert_to_text(self, request) -> ConversionOutcome:
        failure = await self._require(TRANSCODER)
        if failure:
            return failure

        with ResourceGuard(self._temp_dir) as guard:
            video = guard.acquire(TempAssetKind.INPUT, _video_suffix(request.file_name))
            await _persist(request, video.path)

            logger.info("Converting video to text", extra={"file_name": request.file_name})

            speech = guard.acquire(TempAssetKind.INTERMEDIATE_AUDIO, ".wav")
            result = await self._transcoder.extract_speech_audio(video.path, speech.path)
            if not _produced_output(result, speech.path):
                _log_tool_failure("Audio extraction failed", request, result)
                return ConversionFailure(
                    kind=FailureKind.AUDIO_EXTRACTION_FAILED,
                    message="Audio extraction failed",
                )

            failure = await self._require(SPEECH_MODEL)
            if failure:
                return failure

            try:
                segments = await self._transcription_service.transcribe(speech.path)
            except TranscriptionError:
                logger.exception(
                    "Speech-to-text conversion failed",
                    extra={"file_name": request.file_name},
                )
                return ConversionFailure(
                    kind=FailureKind.TRANSCRIPTION_FAILED,
                    message="Speech-to-text conversion failed",
                )

        transcript = self._transcript_builder.build(segments, request.file_name)
        if not transcript.segment_count:
            logger.warning(
                "Transcription is empty, no speech detected",
                extra={"file_name": request.file_name},
            )
        logger.info(
            "Transcription completed",
            extra={
                "file_name": request.file_name,
                "segment_count": transcript.segment_count,
                "word_count": transcript.word_count,
            },
        )
        return transcript

    async def _run(self, request: ConversionRequest, work) -> ConversionOutcome:
        try:
            return await asyncio.wait_for(work, self._timeout)
        except asyncio.TimeoutError:
            logger.error(
                "Conversion timed out",
                extra={"file_name": request.file_name, "timeout": self._timeout},
            )
            return ConversionFailure(
                kind=FailureKind.TIMED_OUT,
                message="Video processing took too long and was stopped",
            )
        except Exception:
            logger.exception(
                "Unexpected error during conversion",
                extra={"file_name": request.file_name},
            )
            return ConversionFailure(
                kind=FailureKind.INTERNAL_FAULT, message=INTERNAL_FAULT_MESSAGE
            )

    async def _require(self, dependency: str) -> ConversionFailure | None:
        state = await self._bootstrapper.ensure_ready(dependency)
        if state is BootstrapState.READY:
            return None
        logger.error(
            "Required dependency unavailable",
            extra={"dependency": dependency, "state": state.value},
        )
        return ConversionFailure(
            kind=FailureKind.DEPENDENCY_UNAVAILABLE,
            message=(
                f"The service could not set up '{dependency}'. "
                "This is a server problem, not a problem with your file."
            ),
        )

    @staticmethod
    def _validate(request: ConversionRequest) -> ConversionFailure | None:
        if request.source is None or request.size <= 0:
            return _invalid(NO_FILE_MESSAGE)
        if not is_valid_video_file(request.file_name):
            return _invalid(INVALID_VIDEO_MESSAGE)
        return None


def _invalid(message: str) -> ConversionFailure:
    return ConversionFailure(kind=FailureKind.INVALID_INPUT, message=message)


def _video_suffix(file_name: str) -> str:
    return Path(file_name).suffix.lower()


async def _persist(request: ConversionRequest, path: Path) -> None:
    """Writes the uploaded bytes into the input temp file."""
    source = request.source
    if isinstance(source, (bytes, bytearray)):
        await asyncio.to_thread(path.write_bytes, bytes(source))
        return

    def _copy() -> None:
        if hasattr(source, "seek"):
            source.seek(0)
        with open(path, "wb") as f:
            shutil.copyfileobj(source, f)

    await asyncio.to_thread(_copy)


def _produced_output(result: ToolInvocationResult, path: Path) -> bool:
    if not result.succeeded:
        return False
    try:
        return path.stat().st_size > 0
    except OSError:
        return False


def _log_tool_failure(message: str, request: ConversionRequest, result) -> None:
    logger.error(
        message,
        extra={
            "file_name": request.file_name,
            "exit_code": result.exit_code,
            "timed_out": result.timed_out,
            "error": result.error,
            "stderr": result.stderr[-4000:],
        },
    )
