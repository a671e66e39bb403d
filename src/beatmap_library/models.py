"""
Data classes describing a beatmap library.

Beatmap sets own their difficulties and the named files that make up the set.
Metadata is owned by a single beatmap, but two beatmaps of the same set usually
point at the same audio and background file names.
"""

import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath

_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_filename(name: str) -> str:
    """Strip characters that are not allowed in file names on common filesystems."""
    cleaned = _INVALID_FILENAME_CHARS.sub("", name)
    return cleaned.strip().rstrip(".")


@dataclass(frozen=True)
class NamedFile:
    """
    A file belonging to a beatmap set.

    Attributes:
        filename: Relative path of the file inside the set (may contain sub-directories).
        hash: Content hash used to locate the blob in the file store.
    """

    filename: str
    hash: str


@dataclass
class BeatmapMetadata:
    """
    Descriptive metadata of a single beatmap difficulty.

    Attributes:
        title: Romanised song title.
        title_unicode: Song title in its original script (may be empty).
        artist: Romanised artist name.
        artist_unicode: Artist name in its original script (may be empty).
        audio_file: Name of the audio file inside the set.
        background_file: Name of the background image inside the set, if any.
        tags: Free-text, space separated search tags.
    """

    title: str
    artist: str
    audio_file: str
    title_unicode: str = ""
    artist_unicode: str = ""
    background_file: str | None = None
    tags: str = ""

    @property
    def display_title(self) -> str:
        return self.title_unicode or self.title

    @property
    def display_artist(self) -> str:
        return self.artist_unicode or self.artist

    def output_audio_filename(self, online_id: int, index: int) -> str:
        """Readable name for an exported audio track, e.g. ``Title (Artist) [123].mp3``."""
        suffix = f" {index}" if index > 0 else ""
        name = f"{self.title} ({self.artist}) [{online_id}]{suffix}"
        return f"{sanitize_filename(name)}.mp3"

    def output_background_filename(self, online_id: int, index: int) -> str:
        """Readable name for an exported background, keeping the original extension."""
        extension = PurePosixPath(self.background_file or "").suffix
        suffix = f" {index}" if index > 0 else ""
        name = f"{online_id} {self.title} ({self.artist}){suffix}"
        return f"{sanitize_filename(name)}{extension}"


@dataclass
class Score:
    """A player score; its first file is the replay."""

    id: str
    user: str
    total_score: int = 0
    files: list[NamedFile] = field(default_factory=list)
    beatmap: "Beatmap | None" = field(default=None, repr=False, compare=False)

    def output_replay_filename(self) -> str:
        if self.beatmap is None:
            name = f"{self.user} ({self.id})"
        else:
            name = (
                f"{self.user} - {self.beatmap.metadata.title} "
                f"[{self.beatmap.difficulty_name}] ({self.id})"
            )
        return f"{sanitize_filename(name)}.osr"


@dataclass
class Beatmap:
    """
    A single difficulty of a beatmap set.

    Attributes:
        id: Opaque identity of the difficulty.
        hash: Content hash of the difficulty's .osu file (also listed in the set files).
        md5_hash: Hash that collections use to refer to this difficulty.
        metadata: Title, artist, audio and background references.
        difficulty_name: Display name of the difficulty.
        scores: Scores (with replays) set on this difficulty.
    """

    id: str
    hash: str
    md5_hash: str
    metadata: BeatmapMetadata
    difficulty_name: str = ""
    scores: list[Score] = field(default_factory=list)
    beatmap_set: "BeatmapSet | None" = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        for score in self.scores:
            score.beatmap = self


@dataclass
class BeatmapSet:
    """
    A beatmap set: difficulties plus every physical file they share.

    ``online_id`` is not unique across sets (unsubmitted sets share -1 or 0), so
    ``id`` is the identity used for lookups.
    """

    id: str
    online_id: int
    beatmaps: list[Beatmap] = field(default_factory=list)
    files: list[NamedFile] = field(default_factory=list)

    def __post_init__(self):
        for beatmap in self.beatmaps:
            beatmap.beatmap_set = self

    def find_file(self, filename: str) -> NamedFile | None:
        return next((f for f in self.files if f.filename == filename), None)

    def archive_filename(self) -> str:
        """File name of the .osz archive this set is exported to."""
        if not self.beatmaps:
            return f"{self.online_id}.osz"
        metadata = self.beatmaps[0].metadata
        name = f"{self.online_id} {metadata.artist} - {metadata.title}"
        return f"{sanitize_filename(name)}.osz"


@dataclass(frozen=True)
class BeatmapCollection:
    """A user-defined, named group of beatmaps, referenced by their md5 hashes."""

    name: str
    beatmap_md5_hashes: frozenset[str] = frozenset()
