"""Application configuration loaded from environment variables."""

import os
import tempfile
from pathlib import Path

from pydantic import BaseModel

MAX_UPLOAD_BYTES = 500 * 1024 * 1024


class ServerConfig(BaseModel, frozen=True):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class TranscoderConfig(BaseModel, frozen=True):
    """ffmpeg location and probing configuration."""

    binary: str = "ffmpeg"
    binary_dir: Path
    probe_timeout_seconds: float = 5.0

    @property
    def bootstrapped_binary(self) -> Path:
        name = "ffmpeg.exe" if os.name == "nt" else "ffmpeg"
        return self.binary_dir / name


class WhisperConfig(BaseModel, frozen=True):
    """Speech recognition model configuration."""

    model_repo: str = "Systran/faster-whisper-base"
    model_dir: Path
    device: str = "cpu"
    compute_type: str = "int8"
    beam_size: int = 5
    max_workers: int = 1

    @property
    def model_path(self) -> Path:
        return self.model_dir / self.model_repo.rsplit("/", 1)[-1]


class BootstrapConfig(BaseModel, frozen=True):
    """Retry policy for dependency acquisition."""

    cloud: bool = False
    max_attempts: int = 3
    retry_delay_seconds: float = 5.0


class LimitsConfig(BaseModel, frozen=True):
    """Per-request limits."""

    max_upload_bytes: int = MAX_UPLOAD_BYTES
    request_timeout_seconds: float = 600.0
    temp_dir: Path | None = None


class AppConfig(BaseModel, frozen=True):
    """Root application configuration."""

    server: ServerConfig
    transcoder: TranscoderConfig
    whisper: WhisperConfig
    bootstrap: BootstrapConfig
    limits: LimitsConfig


def load_config() -> AppConfig:
    """Loads configuration from environment variables."""
    temp_dir = os.getenv("TEMP_DIR")
    return AppConfig(
        server=ServerConfig(
            port=int(os.getenv("PORT", "8000")),
        ),
        transcoder=TranscoderConfig(
            binary=os.getenv("FFMPEG_BINARY", "ffmpeg"),
            binary_dir=Path(
                os.getenv("FFMPEG_DIR", os.path.join(tempfile.gettempdir(), "ffmpeg"))
            ),
            probe_timeout_seconds=float(
                os.getenv("FFMPEG_PROBE_TIMEOUT_SECONDS", "5")
            ),
        ),
        whisper=WhisperConfig(
            model_repo=os.getenv("WHISPER_MODEL_REPO", "Systran/faster-whisper-base"),
            model_dir=Path(
                os.getenv("WHISPER_MODEL_DIR", str(Path.home() / ".whisper-models"))
            ),
            device=os.getenv("WHISPER_DEVICE", "cpu"),
            compute_type=os.getenv("WHISPER_COMPUTE_TYPE", "int8"),
            max_workers=int(os.getenv("WHISPER_MAX_WORKERS", "1")),
        ),
        bootstrap=BootstrapConfig(
            # Azure App Service sets WEBSITE_SITE_NAME
            cloud=bool(os.getenv("WEBSITE_SITE_NAME")),
            max_attempts=int(os.getenv("BOOTSTRAP_MAX_ATTEMPTS", "3")),
            retry_delay_seconds=float(os.getenv("BOOTSTRAP_RETRY_DELAY_SECONDS", "5")),
        ),
        limits=LimitsConfig(
            max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(MAX_UPLOAD_BYTES))),
            request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "600")),
            temp_dir=Path(temp_dir) if temp_dir else None,
        ),
    )
