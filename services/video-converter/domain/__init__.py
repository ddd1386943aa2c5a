"""Domain layer containing business logic and models."""

from .formats import (
    ALLOWED_VIDEO_EXTENSIONS,
    AUDIO_PROFILES,
    SUPPORTED_AUDIO_FORMATS,
    TEXT_OUTPUT_FORMATS,
    AudioProfile,
)
from .models import (
    AudioArtifact,
    AudioFormat,
    ConversionFailure,
    ConversionOutcome,
    ConversionRequest,
    FailureKind,
    OutputKind,
    TempAsset,
    TempAssetKind,
    ToolInvocationResult,
    Transcript,
    TranscriptSegment,
)
from .transcript_builder import NO_SPEECH_TEXT, TranscriptBuilder

__all__ = [
    "ALLOWED_VIDEO_EXTENSIONS",
    "AUDIO_PROFILES",
    "SUPPORTED_AUDIO_FORMATS",
    "TEXT_OUTPUT_FORMATS",
    "NO_SPEECH_TEXT",
    "AudioArtifact",
    "AudioFormat",
    "AudioProfile",
    "ConversionFailure",
    "ConversionOutcome",
    "ConversionRequest",
    "FailureKind",
    "OutputKind",
    "TempAsset",
    "TempAssetKind",
    "ToolInvocationResult",
    "Transcript",
    "TranscriptBuilder",
    "TranscriptSegment",
]
