"""Video conversion endpoints."""

import asyncio
import os
from collections.abc import Awaitable
from datetime import datetime, timezone
from typing import Annotated
from urllib.parse import quote

from converter_common import setup_logging
from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Request,
    Response,
    UploadFile,
)

from config import AppConfig
from dependencies import get_bootstrapper, get_config, get_pipeline, get_transcoder
from domain import (
    ALLOWED_VIDEO_EXTENSIONS,
    SUPPORTED_AUDIO_FORMATS,
    TEXT_OUTPUT_FORMATS,
    AudioArtifact,
    ConversionFailure,
    ConversionRequest,
    FailureKind,
    OutputKind,
    Transcript,
)
from handlers import ConversionPipeline
from infrastructure import SPEECH_MODEL, TRANSCODER, DependencyBootstrapper
from infrastructure.interfaces import Transcoder
from response_models import (
    EndpointMap,
    ServiceInfoResponse,
    StatusResponse,
    TranscriptionResponse,
)

logger = setup_logging()

SERVICE_NAME = "Video to Audio/Text Converter API"
SERVICE_VERSION = "1.0.0"
DISCONNECT_POLL_SECONDS = 0.5
CLIENT_CLOSED_REQUEST = 499

router = APIRouter(prefix="/api/videoconverter", tags=["videoconverter"])

ConfigDep = Annotated[AppConfig, Depends(get_config)]
PipelineDep = Annotated[ConversionPipeline, Depends(get_pipeline)]
TranscoderDep = Annotated[Transcoder, Depends(get_transcoder)]
BootstrapperDep = Annotated[DependencyBootstrapper, Depends(get_bootstrapper)]
VideoFileDep = Annotated[UploadFile | None, File(alias="videoFile")]

FAILURE_STATUS = {
    FailureKind.INVALID_INPUT: 400,
    FailureKind.CONVERSION_FAILED: 500,
    FailureKind.AUDIO_EXTRACTION_FAILED: 500,
    FailureKind.TRANSCRIPTION_FAILED: 500,
    FailureKind.DEPENDENCY_UNAVAILABLE: 500,
    FailureKind.TIMED_OUT: 504,
    FailureKind.INTERNAL_FAULT: 500,
}


@router.get("", response_model=ServiceInfoResponse)
def get_info() -> ServiceInfoResponse:
    """Returns service metadata and the endpoint map."""
    return ServiceInfoResponse(
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        endpoints=EndpointMap(
            video_to_audio=f"{router.prefix}/audio",
            video_to_text=f"{router.prefix}/text",
            status=f"{router.prefix}/status",
        ),
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(
    transcoder: TranscoderDep, bootstrapper: BootstrapperDep
) -> StatusResponse:
    """Reports whether ffmpeg can be started and which formats are supported."""
    return StatusResponse(
        tool_available=await transcoder.is_available(),
        transcoder_ready=bootstrapper.is_ready(TRANSCODER),
        speech_model_ready=bootstrapper.is_ready(SPEECH_MODEL),
        supported_input_extensions=list(ALLOWED_VIDEO_EXTENSIONS),
        supported_audio_outputs=list(SUPPORTED_AUDIO_FORMATS),
        supported_text_outputs=list(TEXT_OUTPUT_FORMATS),
    )


@router.post("/audio")
async def convert_to_audio(
    http_request: Request,
    pipeline: PipelineDep,
    config: ConfigDep,
    video_file: VideoFileDep = None,
    format: Annotated[str, Form()] = "mp3",
) -> Response:
    """
    Converts an uploaded video to audio.

    Responds with the audio bytes as an attachment named after the video.
    """
    request = _build_request(video_file, config, OutputKind.AUDIO, format)
    outcome = await _run_while_connected(
        http_request, pipeline.convert_to_audio(request), request
    )

    if isinstance(outcome, ConversionFailure):
        _raise_for_failure(outcome, request)
    if not isinstance(outcome, AudioArtifact):
        _raise_unexpected(outcome, request)

    return Response(
        content=outcome.data,
        media_type=outcome.content_type,
        headers={"Content-Disposition": _content_disposition(outcome.file_name)},
    )


@router.post("/text", response_model=TranscriptionResponse)
async def convert_to_text(
    http_request: Request,
    pipeline: PipelineDep,
    config: ConfigDep,
    video_file: VideoFileDep = None,
) -> TranscriptionResponse:
    """Transcribes the speech in an uploaded video."""
    request = _build_request(video_file, config, OutputKind.TEXT)
    outcome = await _run_while_connected(
        http_request, pipeline.convert_to_text(request), request
    )

    if isinstance(outcome, ConversionFailure):
        _raise_for_failure(outcome, request)
    if not isinstance(outcome, Transcript):
        _raise_unexpected(outcome, request)

    return TranscriptionResponse(
        file_name=outcome.file_name,
        transcription=outcome.text,
        word_count=outcome.word_count,
        processed_at=datetime.now(timezone.utc),
    )


def _build_request(
    video_file: UploadFile | None,
    config: AppConfig,
    output_kind: OutputKind,
    audio_format: str = "mp3",
) -> ConversionRequest:
    if video_file is None:
        return ConversionRequest(
            file_name="", source=None, size=0, output_kind=output_kind
        )

    size = _upload_size(video_file)
    if size > config.limits.max_upload_bytes:
        logger.warning(
            "Upload rejected, file too large",
            extra={"file_name": video_file.filename, "size": size},
        )
        raise HTTPException(status_code=413, detail="Video file is too large.")

    logger.info(
        "Received conversion request",
        extra={
            "file_name": video_file.filename,
            "size": size,
            "output_kind": output_kind.value,
            "format": audio_format,
        },
    )
    return ConversionRequest(
        file_name=video_file.filename or "",
        source=video_file.file,
        size=size,
        output_kind=output_kind,
        audio_format=audio_format,
    )


async def _run_while_connected(
    http_request: Request, work: Awaitable, request: ConversionRequest
):
    """
    Awaits `work` while polling the client connection.

    When the client goes away the pipeline task is cancelled, which kills
    any running ffmpeg process and releases the request's temp files.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await http_request.is_disconnected():
                break
    finally:
        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    logger.warning(
        "Client disconnected, conversion cancelled",
        extra={"file_name": request.file_name},
    )
    raise HTTPException(status_code=CLIENT_CLOSED_REQUEST, detail="Client closed request")


def _upload_size(video_file: UploadFile) -> int:
    if video_file.size is not None:
        return video_file.size
    stream = video_file.file
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def _raise_for_failure(failure: ConversionFailure, request: ConversionRequest):
    status_code = FAILURE_STATUS.get(failure.kind, 500)
    logger.info(
        "Conversion request failed",
        extra={
            "file_name": request.file_name,
            "kind": failure.kind.value,
            "status_code": status_code,
        },
    )
    raise HTTPException(status_code=status_code, detail=failure.message)


def _raise_unexpected(outcome, request: ConversionRequest):
    logger.error(
        "Pipeline returned an unexpected outcome",
        extra={"file_name": request.file_name, "outcome": type(outcome).__name__},
    )
    raise HTTPException(status_code=500, detail="Internal server error")


def _content_disposition(file_name: str) -> str:
    quoted = quote(file_name)
    if quoted == file_name:
        return f'attachment; filename="{file_name}"'
    return f"attachment; filename*=utf-8''{quoted}"
