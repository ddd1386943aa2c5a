"""Dependency injection configuration for the video-converter service."""

from converter_common import setup_logging

from config import AppConfig, load_config
from domain import TranscriptBuilder
from handlers import ConversionPipeline
from infrastructure import (
    SPEECH_MODEL,
    TRANSCODER,
    Dependency,
    DependencyBootstrapper,
    ExternalToolInvoker,
    FFmpegTranscoder,
    WhisperTranscriber,
)
from infrastructure.dependency_sources import (
    MODEL_COMPLETE_MARKER,
    FFmpegBinarySource,
    HuggingFaceModelSource,
)
from infrastructure.interfaces import Transcoder

logger = setup_logging()

_config = load_config()

# Dependencies acquired once per process
_bootstrapper = DependencyBootstrapper(
    [
        Dependency(
            name=SPEECH_MODEL,
            target_path=_config.whisper.model_path / MODEL_COMPLETE_MARKER,
            source=HuggingFaceModelSource(_config.whisper.model_repo),
        ),
        Dependency(
            name=TRANSCODER,
            target_path=_config.transcoder.bootstrapped_binary,
            source=FFmpegBinarySource(),
            skip_when_local=True,
        ),
    ],
    _config.bootstrap,
)


def _locate_ffmpeg() -> str:
    """Uses the bootstrapped binary in cloud deployments, the configured one otherwise."""
    if _config.bootstrap.cloud and _bootstrapper.is_ready(TRANSCODER):
        return str(_config.transcoder.bootstrapped_binary)
    return _config.transcoder.binary


_invoker = ExternalToolInvoker(probe_timeout=_config.transcoder.probe_timeout_seconds)
_transcoder = FFmpegTranscoder(_invoker, _locate_ffmpeg)
_transcriber = WhisperTranscriber(
    model_path=_config.whisper.model_path,
    device=_config.whisper.device,
    compute_type=_config.whisper.compute_type,
    beam_size=_config.whisper.beam_size,
    max_workers=_config.whisper.max_workers,
)
_pipeline = ConversionPipeline(
    transcoder=_transcoder,
    transcription_service=_transcriber,
    bootstrapper=_bootstrapper,
    transcript_builder=TranscriptBuilder(),
    temp_dir=_config.limits.temp_dir,
    timeout=_config.limits.request_timeout_seconds,
)


def get_config() -> AppConfig:
    """Returns the loaded application configuration."""
    return _config


def get_bootstrapper() -> DependencyBootstrapper:
    """Returns the process-wide dependency bootstrapper."""
    return _bootstrapper


def get_transcoder() -> Transcoder:
    """Returns the configured transcoder."""
    return _transcoder


def get_pipeline() -> ConversionPipeline:
    """Returns the conversion pipeline."""
    return _pipeline


def get_transcriber() -> WhisperTranscriber:
    """Returns the speech recognizer."""
    return _transcriber
