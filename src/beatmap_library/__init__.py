"""
In-memory model of a beatmap library and access to its content-addressed files.

A library is a list of beatmap sets, each holding difficulty variants (beatmaps)
and the named files that make up the set, plus user-defined collections that
group beatmaps by hash. The blobs behind every file are kept in a
``HashedFileStore`` and looked up by content hash.

Usage:
    from beatmap_library import HashedFileStore

    store = HashedFileStore(Path("~/.local/share/osu").expanduser())
    with store.open_hashed_file(named_file.hash) as f:
        data = f.read()
"""

from .file_store import HashedFileStore
from .models import (
    Beatmap,
    BeatmapCollection,
    BeatmapMetadata,
    BeatmapSet,
    NamedFile,
    Score,
    sanitize_filename,
)

__all__ = [
    "Beatmap",
    "BeatmapCollection",
    "BeatmapMetadata",
    "BeatmapSet",
    "HashedFileStore",
    "NamedFile",
    "Score",
    "sanitize_filename",
]
