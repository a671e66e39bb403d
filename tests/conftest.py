from __future__ import annotations

import hashlib
import struct
import zlib
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from beatmap_export import BeatmapExporter, ExporterConfiguration
from beatmap_library import (
    Beatmap,
    BeatmapCollection,
    BeatmapMetadata,
    BeatmapSet,
    HashedFileStore,
    NamedFile,
    Score,
)


def add_blob(store: HashedFileStore, data: bytes) -> str:
    """Write ``data`` into the store and return its hash."""
    file_hash = hashlib.sha256(data).hexdigest()
    path = store.path_for(file_hash)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return file_hash


def oversized_png_header(width: int = 30000, height: int = 30000) -> bytes:
    """A PNG that declares far more pixels than Pillow agrees to open."""

    def chunk(kind: bytes, data: bytes) -> bytes:
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data))

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IDAT", b"")


@dataclass
class Diff:
    """Shorthand for one difficulty in ``make_set``."""
    name: str
    audio: str = "audio.mp3"
    background: str | None = "bg.jpg"
    md5: str | None = None
    scores: list[Score] = field(default_factory=list)


def make_set(
    store: HashedFileStore,
    set_id: str,
    online_id: int,
    diffs: list[Diff],
    *,
    title: str = "Song",
    artist: str = "Artist",
    tags: str = "tag1 tag2",
    blobs: dict[str, bytes] | None = None,
) -> BeatmapSet:
    """
    Build a beatmap set whose files all exist in ``store``.

    Audio and background files are shared by name between difficulties. ``blobs``
    overrides the content written for a given file name.
    """
    blobs = blobs or {}
    files: dict[str, NamedFile] = {}

    def file_for(filename: str) -> NamedFile:
        if filename not in files:
            data = blobs.get(filename, f"{set_id}/{filename}".encode())
            files[filename] = NamedFile(filename, add_blob(store, data))
        return files[filename]

    beatmaps = []
    for diff in diffs:
        osu = file_for(f"{artist} - {title} ({diff.name}).osu")
        file_for(diff.audio)
        if diff.background:
            file_for(diff.background)
        beatmaps.append(
            Beatmap(
                id=f"{set_id}-{diff.name}",
                hash=osu.hash,
                md5_hash=diff.md5 or f"md5-{set_id}-{diff.name}",
                metadata=BeatmapMetadata(
                    title=title,
                    artist=artist,
                    audio_file=diff.audio,
                    background_file=diff.background,
                    tags=tags,
                ),
                difficulty_name=diff.name,
                scores=diff.scores,
            )
        )
    return BeatmapSet(id=set_id, online_id=online_id, beatmaps=beatmaps, files=list(files.values()))


class FakeTranscoder:
    """Stands in for ffmpeg: 'transcodes' by prefixing the source bytes."""

    def __init__(self, available: bool = True, error: Exception | None = None):
        self.available = available
        self.error = error
        self.calls: list[Path] = []

    def transcode_to_mp3(self, source, dest: Path, source_name: str = "audio") -> None:
        self.calls.append(Path(dest))
        if self.error is not None:
            raise self.error
        with open(dest, "xb") as f:
            f.write(b"MP3:" + source.read())


@pytest.fixture
def store(tmp_path: Path) -> HashedFileStore:
    return HashedFileStore(tmp_path / "lazer")


@pytest.fixture
def export_dir(tmp_path: Path) -> Path:
    path = tmp_path / "export"
    path.mkdir()
    return path


def make_exporter(
    store: HashedFileStore,
    sets: list[BeatmapSet],
    export_dir: Path,
    collections: list[BeatmapCollection] | None = None,
    filters: list | None = None,
    transcoder: FakeTranscoder | None = None,
) -> BeatmapExporter:
    configuration = ExporterConfiguration(export_path=export_dir, compression="optimal", filters=filters or [])
    return BeatmapExporter(
        store,
        sets,
        collections or [],
        configuration,
        transcoder=transcoder or FakeTranscoder(),
    )
