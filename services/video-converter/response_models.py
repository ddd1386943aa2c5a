"""Response models for the video-converter API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serializes field names in camelCase, as existing clients expect."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EndpointMap(CamelModel):
    video_to_audio: str
    video_to_text: str
    status: str


class ServiceInfoResponse(CamelModel):
    """Returned by the service root."""

    service: str
    version: str
    endpoints: EndpointMap


class StatusResponse(CamelModel):
    """Tool availability and supported formats."""

    tool_available: bool
    transcoder_ready: bool
    speech_model_ready: bool
    supported_input_extensions: list[str]
    supported_audio_outputs: list[str]
    supported_text_outputs: list[str]


class TranscriptionResponse(CamelModel):
    """Returned after a successful video-to-text conversion."""

    file_name: str
    transcription: str
    word_count: int
    processed_at: datetime
