from pathlib import Path
from typing import BinaryIO

from common.logging import Logger, NullLogger

from .models import BeatmapSet


class HashedFileStore:
    """
    Read access to a content-addressed file store.

    Blobs are stored under ``files/<h>/<hh>/<hash>`` relative to the store root,
    the layout used by osu!lazer. The store is read-only for the lifetime of a run.
    """

    def __init__(self, root: Path | str, logger: Logger | None = None) -> None:
        """
        Args:
            root: Directory that contains the ``files`` folder.
            logger: Optional logger for lookups that fail.
        """
        self.root = Path(root)
        self._logger = logger or NullLogger()

    def path_for(self, file_hash: str) -> Path:
        """Location of the blob for ``file_hash``, whether or not it exists."""
        return self.root / "files" / file_hash[:1] / file_hash[:2] / file_hash

    def open_hashed_file(self, file_hash: str) -> BinaryIO | None:
        """
        Open a blob by content hash.

        Returns:
            A binary stream the caller must close, or None if the blob is missing.
        """
        path = self.path_for(file_hash)
        if not path.is_file():
            self._logger.debug(f"Blob {file_hash} not found at {path}")
            return None
        return open(path, "rb")

    def open_named_file(self, beatmap_set: BeatmapSet, filename: str) -> BinaryIO | None:
        """
        Open a file of a beatmap set by its name inside the set.

        Returns:
            A binary stream, or None if the set has no such file or its blob is missing.
        """
        named = beatmap_set.find_file(filename)
        if named is None:
            return None
        return self.open_hashed_file(named.hash)
