"""Scoped ownership of the temporary files used by one conversion."""

import os
import tempfile
from pathlib import Path

from converter_common import setup_logging

from domain.models import TempAsset, TempAssetKind

logger = setup_logging()


class ResourceGuard:
    """
    Hands out temporary files and deletes all of them when the scope ends.

    Meant to be used as a context manager around a whole pipeline run:

        with ResourceGuard() as guard:
            video = guard.acquire(TempAssetKind.INPUT, ".mp4")
            ...

    Deletion is best-effort; a file that cannot be removed is logged and
    never replaces the exception (or result) of the guarded block.
    """

    def __init__(self, temp_dir: Path | None = None, prefix: str = "videoconv-"):
        self._temp_dir = temp_dir
        self._prefix = prefix
        self._assets: list[TempAsset] = []

    @property
    def assets(self) -> list[TempAsset]:
        return list(self._assets)

    def acquire(self, kind: TempAssetKind, suffix: str = "") -> TempAsset:
        """
        Allocates a new, empty, uniquely named file.

        Args:
            kind: Role of the file within the run.
            suffix: File extension including the dot, e.g. ".wav".

        Returns:
            The TempAsset, tracked for release when the scope ends.
        """
        if self._temp_dir is not None:
            os.makedirs(self._temp_dir, exist_ok=True)
        fd, path = tempfile.mkstemp(
            suffix=suffix, prefix=f"{self._prefix}{kind.value}-", dir=self._temp_dir
        )
        os.close(fd)
        asset = TempAsset(path=Path(path), kind=kind)
        self._assets.append(asset)
        return asset

    def release(self, asset: TempAsset) -> None:
        """Deletes the asset's file if it still exists."""
        try:
            asset.path.unlink(missing_ok=True)
        except OSError:
            logger.warning(
                "Temporary file cleanup failed",
                exc_info=True,
                extra={"path": str(asset.path), "kind": asset.kind.value},
            )
        if asset in self._assets:
            self._assets.remove(asset)

    def release_all(self) -> None:
        for asset in list(self._assets):
            self.release(asset)

    def __enter__(self) -> "ResourceGuard":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.release_all()
        return False
