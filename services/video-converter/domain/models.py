"""Domain models for the video converter service."""

from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field


class AudioFormat(str, Enum):
    """Audio containers the converter can produce."""

    MP3 = "mp3"
    WAV = "wav"
    AAC = "aac"
    FLAC = "flac"
    OGG = "ogg"


class OutputKind(str, Enum):
    """What a conversion request asks for."""

    AUDIO = "audio"
    TEXT = "text"


class ConversionRequest(BaseModel):
    """
    An accepted upload waiting to be converted.

    `source` is either the raw bytes or a readable binary stream positioned
    at the start of the upload. `audio_format` is kept as received and is
    validated by the pipeline.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    file_name: str
    source: Any = Field(repr=False)
    size: int
    output_kind: OutputKind = OutputKind.AUDIO
    audio_format: str = AudioFormat.MP3.value


class TempAssetKind(str, Enum):
    """Role of a temporary file within one pipeline run."""

    INPUT = "input"
    INTERMEDIATE_AUDIO = "intermediate_audio"
    OUTPUT = "output"


class TempAsset(BaseModel, frozen=True):
    """A temporary file owned by a single pipeline run."""

    path: Path
    kind: TempAssetKind


class ToolInvocationResult(BaseModel, frozen=True):
    """Outcome of one external process run."""

    exit_code: int | None
    stdout: str = ""
    stderr: str = ""
    succeeded: bool
    timed_out: bool = False
    error: str | None = None


class TranscriptSegment(BaseModel, frozen=True):
    """A single recognized speech span."""

    start: timedelta
    end: timedelta
    text: str


class FailureKind(str, Enum):
    """Why a conversion did not produce an artifact."""

    INVALID_INPUT = "invalid_input"
    CONVERSION_FAILED = "conversion_failed"
    AUDIO_EXTRACTION_FAILED = "audio_extraction_failed"
    TRANSCRIPTION_FAILED = "transcription_failed"
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"
    TIMED_OUT = "timed_out"
    INTERNAL_FAULT = "internal_fault"


class AudioArtifact(BaseModel, frozen=True):
    """Converted audio ready to be returned to the caller."""

    data: bytes = Field(repr=False)
    content_type: str
    file_name: str


class Transcript(BaseModel, frozen=True):
    """Text produced from the speech in a video."""

    file_name: str
    text: str
    segment_count: int
    word_count: int


class ConversionFailure(BaseModel, frozen=True):
    """A conversion that ended without an artifact."""

    kind: FailureKind
    message: str


ConversionOutcome = Union[AudioArtifact, Transcript, ConversionFailure]
