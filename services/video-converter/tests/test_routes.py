"""Tests for the /api/videoconverter endpoints."""

import asyncio
import io
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI, HTTPException, UploadFile
from fastapi.testclient import TestClient

from config import BootstrapConfig, LimitsConfig, load_config
from dependencies import get_bootstrapper, get_config, get_pipeline, get_transcoder
from domain import (
    NO_SPEECH_TEXT,
    AudioArtifact,
    ConversionFailure,
    FailureKind,
    OutputKind,
    ToolInvocationResult,
    Transcript,
)
from handlers import ConversionPipeline
from infrastructure import TRANSCODER, Dependency, DependencyBootstrapper
from infrastructure.interfaces import DependencySource, Transcoder, TranscriptionService
from routes import converter, converter_router


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

@pytest.fixture
def pipeline() -> MagicMock:
    mock = MagicMock()
    mock.convert_to_audio = AsyncMock()
    mock.convert_to_text = AsyncMock()
    return mock


@pytest.fixture
def transcoder() -> MagicMock:
    mock = MagicMock()
    mock.is_available = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def bootstrapper() -> MagicMock:
    mock = MagicMock()
    mock.is_ready.return_value = True
    return mock


@pytest.fixture
def config():
    return load_config().model_copy(
        update={"limits": LimitsConfig(max_upload_bytes=1024)}
    )


@pytest.fixture
def client(pipeline, transcoder, bootstrapper, config) -> TestClient:
    app = FastAPI()
    app.include_router(converter_router)
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    app.dependency_overrides[get_transcoder] = lambda: transcoder
    app.dependency_overrides[get_bootstrapper] = lambda: bootstrapper
    app.dependency_overrides[get_config] = lambda: config
    return TestClient(app)


def _video(name: str = "trip.mp4", data: bytes = b"fake mp4 bytes"):
    return {"videoFile": (name, data, "video/mp4")}


# ---------------------------------------------------------------
# Metadata endpoints
# ---------------------------------------------------------------

def test_info_lists_endpoints(client) -> None:
    response = client.get("/api/videoconverter")

    assert response.status_code == 200
    body = response.json()
    assert body["service"] == "Video to Audio/Text Converter API"
    assert body["version"] == "1.0.0"
    assert body["endpoints"] == {
        "videoToAudio": "/api/videoconverter/audio",
        "videoToText": "/api/videoconverter/text",
        "status": "/api/videoconverter/status",
    }


def test_status_reports_tool_and_formats(client, transcoder) -> None:
    transcoder.is_available.return_value = False

    response = client.get("/api/videoconverter/status")

    assert response.status_code == 200
    body = response.json()
    assert body["toolAvailable"] is False
    assert ".mp4" in body["supportedInputExtensions"]
    assert body["supportedAudioOutputs"] == ["mp3", "wav", "aac", "flac", "ogg"]
    assert body["supportedTextOutputs"] == ["txt"]
    assert body["speechModelReady"] is True


# ---------------------------------------------------------------
# POST /audio
# ---------------------------------------------------------------

def test_audio_returns_attachment(client, pipeline) -> None:
    pipeline.convert_to_audio.return_value = AudioArtifact(
        data=b"RIFF....WAVEfmt ", content_type="audio/wav", file_name="trip.wav"
    )

    response = client.post(
        "/api/videoconverter/audio", files=_video(), data={"format": "wav"}
    )

    assert response.status_code == 200
    assert response.content == b"RIFF....WAVEfmt "
    assert response.headers["content-type"] == "audio/wav"
    assert response.headers["content-disposition"] == 'attachment; filename="trip.wav"'

    request = pipeline.convert_to_audio.await_args.args[0]
    assert request.file_name == "trip.mp4"
    assert request.audio_format == "wav"
    assert request.output_kind is OutputKind.AUDIO
    assert request.size == len(b"fake mp4 bytes")


def test_audio_format_defaults_to_mp3(client, pipeline) -> None:
    pipeline.convert_to_audio.return_value = AudioArtifact(
        data=b"ID3", content_type="audio/mpeg", file_name="trip.mp3"
    )

    client.post("/api/videoconverter/audio", files=_video())

    request = pipeline.convert_to_audio.await_args.args[0]
    assert request.audio_format == "mp3"


def test_missing_file_is_bad_request(client, pipeline) -> None:
    pipeline.convert_to_audio.return_value = ConversionFailure(
        kind=FailureKind.INVALID_INPUT, message="No video file provided."
    )

    response = client.post("/api/videoconverter/audio", data={"format": "mp3"})

    assert response.status_code == 400
    assert response.json()["detail"] == "No video file provided."
    request = pipeline.convert_to_audio.await_args.args[0]
    assert request.size == 0


def test_oversized_upload_is_rejected_before_pipeline(client, pipeline) -> None:
    response = client.post(
        "/api/videoconverter/audio", files=_video(data=b"x" * 2048)
    )

    assert response.status_code == 413
    pipeline.convert_to_audio.assert_not_awaited()


@pytest.mark.parametrize(
    "kind, status_code",
    [
        (FailureKind.INVALID_INPUT, 400),
        (FailureKind.CONVERSION_FAILED, 500),
        (FailureKind.DEPENDENCY_UNAVAILABLE, 500),
        (FailureKind.INTERNAL_FAULT, 500),
        (FailureKind.TIMED_OUT, 504),
    ],
)
def test_audio_failures_map_to_status_codes(client, pipeline, kind, status_code) -> None:
    pipeline.convert_to_audio.return_value = ConversionFailure(kind=kind, message="nope")

    response = client.post("/api/videoconverter/audio", files=_video())

    assert response.status_code == status_code
    assert response.json()["detail"] == "nope"


# ---------------------------------------------------------------
# POST /text
# ---------------------------------------------------------------

def test_text_returns_transcript_json(client, pipeline) -> None:
    pipeline.convert_to_text.return_value = Transcript(
        file_name="talk.mov",
        text="[00:00:00 - 00:00:04] Thanks for coming.",
        segment_count=1,
        word_count=6,
    )

    response = client.post("/api/videoconverter/text", files=_video("talk.mov"))

    assert response.status_code == 200
    body = response.json()
    assert body["fileName"] == "talk.mov"
    assert body["transcription"].startswith("[00:00:00 - 00:00:04]")
    assert body["wordCount"] == 6
    assert "processedAt" in body
    request = pipeline.convert_to_text.await_args.args[0]
    assert request.output_kind is OutputKind.TEXT


def test_text_with_no_speech(client, pipeline) -> None:
    pipeline.convert_to_text.return_value = Transcript(
        file_name="quiet.mp4", text=NO_SPEECH_TEXT, segment_count=0, word_count=7
    )

    response = client.post("/api/videoconverter/text", files=_video("quiet.mp4"))

    assert response.status_code == 200
    assert response.json()["transcription"] == NO_SPEECH_TEXT


def test_text_extraction_failure_is_server_error(client, pipeline) -> None:
    pipeline.convert_to_text.return_value = ConversionFailure(
        kind=FailureKind.AUDIO_EXTRACTION_FAILED, message="Audio extraction failed"
    )

    response = client.post("/api/videoconverter/text", files=_video())

    assert response.status_code == 500
    assert response.json()["detail"] == "Audio extraction failed"


@pytest.mark.parametrize(
    "path, converter_name",
    [
        ("/api/videoconverter/audio", "convert_to_audio"),
        ("/api/videoconverter/text", "convert_to_text"),
    ],
)
def test_zero_byte_upload_is_bad_request(client, pipeline, path, converter_name) -> None:
    getattr(pipeline, converter_name).return_value = ConversionFailure(
        kind=FailureKind.INVALID_INPUT, message="No video file provided."
    )

    response = client.post(path, files=_video(data=b""))

    assert response.status_code == 400
    assert response.json()["detail"] == "No video file provided."
    request = getattr(pipeline, converter_name).await_args.args[0]
    assert request.file_name == "trip.mp4"
    assert request.size == 0


# ---------------------------------------------------------------
# Client disconnect
# ---------------------------------------------------------------

class HangingTranscoder(Transcoder):
    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = False

    async def _hang(self) -> ToolInvocationResult:
        self.started.set()
        try:
            await asyncio.sleep(30)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        return ToolInvocationResult(exit_code=0, succeeded=True)

    async def transcode(self, input_path, output_path, profile):
        return await self._hang()

    async def extract_speech_audio(self, input_path, output_path):
        return await self._hang()

    async def is_available(self) -> bool:
        return True


class UnusedSource(DependencySource):
    def fetch(self, target_path) -> None:
        raise AssertionError("should not fetch")


class UnusedTranscriber(TranscriptionService):
    async def transcribe(self, audio_path):
        raise AssertionError("should not transcribe")


def _disconnecting_request(transcoder: HangingTranscoder) -> MagicMock:
    async def is_disconnected() -> bool:
        return transcoder.started.is_set()

    http_request = MagicMock()
    http_request.is_disconnected = is_disconnected
    return http_request


def test_client_disconnect_cancels_running_conversion(
    tmp_path, config, monkeypatch
) -> None:
    monkeypatch.setattr(converter, "DISCONNECT_POLL_SECONDS", 0.05)
    scratch = tmp_path / "scratch"
    transcoder = HangingTranscoder()
    bootstrapper = DependencyBootstrapper(
        [
            Dependency(
                name=TRANSCODER,
                target_path=tmp_path / "ffmpeg",
                source=UnusedSource(),
                skip_when_local=True,
            )
        ],
        BootstrapConfig(cloud=False),
    )
    real_pipeline = ConversionPipeline(
        transcoder=transcoder,
        transcription_service=UnusedTranscriber(),
        bootstrapper=bootstrapper,
        temp_dir=scratch,
        timeout=60,
    )
    video = UploadFile(file=io.BytesIO(b"fake mp4 bytes"), filename="trip.mp4", size=14)

    async def scenario():
        await converter.convert_to_audio(
            http_request=_disconnecting_request(transcoder),
            pipeline=real_pipeline,
            config=config,
            video_file=video,
            format="mp3",
        )

    with pytest.raises(HTTPException) as excinfo:
        asyncio.run(asyncio.wait_for(scenario(), timeout=5))

    assert excinfo.value.status_code == converter.CLIENT_CLOSED_REQUEST
    assert transcoder.cancelled
    assert list(scratch.iterdir()) == []
