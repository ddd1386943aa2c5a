"""Concrete sources for the dependencies the service bootstraps."""

import os
import shutil
import stat
from pathlib import Path

import imageio_ffmpeg
from converter_common import setup_logging
from huggingface_hub import snapshot_download

from .interfaces import DependencySource

logger = setup_logging()

MODEL_COMPLETE_MARKER = ".complete"


class HuggingFaceModelSource(DependencySource):
    """
    Downloads a faster-whisper model repository from the Hugging Face Hub.

    `target_path` is a marker file inside the model directory. It is only
    written after the whole snapshot has arrived, so a download that dies
    halfway never looks installed to a later process.
    """

    def __init__(self, repo_id: str):
        self._repo_id = repo_id

    def fetch(self, target_path: Path) -> None:
        model_dir = target_path.parent
        model_dir.mkdir(parents=True, exist_ok=True)
        target_path.unlink(missing_ok=True)
        logger.info(
            "Downloading speech model",
            extra={"repo_id": self._repo_id, "model_dir": str(model_dir)},
        )
        snapshot_download(repo_id=self._repo_id, local_dir=str(model_dir))
        target_path.write_text(self._repo_id, encoding="utf-8")


class FFmpegBinarySource(DependencySource):
    """Installs the ffmpeg build bundled with imageio-ffmpeg into a stable directory."""

    def fetch(self, target_path: Path) -> None:
        target_path.parent.mkdir(parents=True, exist_ok=True)
        source = imageio_ffmpeg.get_ffmpeg_exe()
        logger.info(
            "Installing ffmpeg binary",
            extra={"source": source, "target": str(target_path)},
        )
        # copy to a sibling first so a half-written binary never looks installed
        partial = target_path.with_name(target_path.name + ".partial")
        shutil.copy2(source, partial)
        mode = os.stat(partial).st_mode
        os.chmod(partial, mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        os.replace(partial, target_path)
