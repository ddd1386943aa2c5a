"""Infrastructure implementations."""

from .dependency_bootstrapper import (
    SPEECH_MODEL,
    TRANSCODER,
    BootstrapState,
    Dependency,
    DependencyBootstrapper,
)
from .ffmpeg_transcoder import FFmpegTranscoder
from .resource_guard import ResourceGuard
from .tool_invoker import ExternalToolInvoker
from .whisper_transcriber import WhisperTranscriber

__all__ = [
    "SPEECH_MODEL",
    "TRANSCODER",
    "BootstrapState",
    "Dependency",
    "DependencyBootstrapper",
    "ExternalToolInvoker",
    "FFmpegTranscoder",
    "ResourceGuard",
    "WhisperTranscriber",
]
