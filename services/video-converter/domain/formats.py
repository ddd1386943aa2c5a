"""Supported inputs and per-format encoding profiles."""

import os

from pydantic import BaseModel

from .models import AudioFormat

ALLOWED_VIDEO_EXTENSIONS = (".mp4", ".avi", ".mkv", ".mov", ".wmv", ".flv", ".webm")
TEXT_OUTPUT_FORMATS = ("txt",)

SPEECH_SAMPLE_RATE = 16000
SPEECH_CHANNELS = 1
SPEECH_CODEC = "pcm_s16le"


class AudioProfile(BaseModel, frozen=True):
    """How to encode one output format."""

    format: AudioFormat
    codec: str
    bitrate_kbps: int | None
    content_type: str

    @property
    def extension(self) -> str:
        return f".{self.format.value}"

    @property
    def lossless(self) -> bool:
        return self.bitrate_kbps is None


AUDIO_PROFILES: dict[AudioFormat, AudioProfile] = {
    AudioFormat.MP3: AudioProfile(
        format=AudioFormat.MP3,
        codec="libmp3lame",
        bitrate_kbps=320,
        content_type="audio/mpeg",
    ),
    AudioFormat.WAV: AudioProfile(
        format=AudioFormat.WAV,
        codec="pcm_s16le",
        bitrate_kbps=None,
        content_type="audio/wav",
    ),
    AudioFormat.AAC: AudioProfile(
        format=AudioFormat.AAC,
        codec="aac",
        bitrate_kbps=128,
        content_type="audio/aac",
    ),
    AudioFormat.FLAC: AudioProfile(
        format=AudioFormat.FLAC,
        codec="flac",
        bitrate_kbps=None,
        content_type="audio/flac",
    ),
    AudioFormat.OGG: AudioProfile(
        format=AudioFormat.OGG,
        codec="libvorbis",
        bitrate_kbps=192,
        content_type="audio/ogg",
    ),
}

SUPPORTED_AUDIO_FORMATS = tuple(f.value for f in AudioFormat)


def is_valid_video_file(file_name: str | None) -> bool:
    """Checks the upload's extension against the video allow-list."""
    if not file_name:
        return False
    return os.path.splitext(file_name)[1].lower() in ALLOWED_VIDEO_EXTENSIONS


def parse_audio_format(value: str | None) -> AudioFormat | None:
    """Returns the matching format (case-insensitive) or None."""
    try:
        return AudioFormat((value or "").strip().lower())
    except ValueError:
        return None


def get_audio_profile(audio_format: AudioFormat) -> AudioProfile:
    return AUDIO_PROFILES[audio_format]


def derive_output_name(file_name: str, extension: str) -> str:
    """Keeps the original base name and swaps the extension."""
    base = os.path.splitext(os.path.basename(file_name))[0]
    return f"{base}.{extension.lstrip('.')}"
