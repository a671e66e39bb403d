"""
Media manifest: a JSON listing of the selected audio tracks and their
backgrounds, pointing straight into the file store so an external player can
use the library without exporting any file.
"""

import json
from dataclasses import asdict, dataclass
from pathlib import Path, PurePosixPath

from beatmap_library import HashedFileStore

from .selector import Selection
from .tasks import extract_audio


@dataclass(frozen=True)
class MediaEntry:
    title: str
    artist: str
    online_id: int
    audio_hash: str | None
    audio_path: str | None
    audio_extension: str
    background_path: str | None
    background_extension: str | None


def build_media_manifest(selection: Selection, file_store: HashedFileStore) -> list[MediaEntry]:
    """One entry per distinct audio file among the selected difficulties."""
    entries: list[MediaEntry] = []
    for set_selection in selection.selected_sets:
        beatmap_set = set_selection.beatmap_set
        for task in extract_audio(set_selection):
            metadata = task.metadata
            audio = beatmap_set.find_file(metadata.audio_file)
            background = (
                beatmap_set.find_file(metadata.background_file)
                if metadata.background_file
                else None
            )
            entries.append(
                MediaEntry(
                    title=metadata.display_title,
                    artist=metadata.display_artist,
                    online_id=beatmap_set.online_id,
                    audio_hash=audio.hash if audio else None,
                    audio_path=str(file_store.path_for(audio.hash)) if audio else None,
                    audio_extension=PurePosixPath(metadata.audio_file).suffix,
                    background_path=str(file_store.path_for(background.hash)) if background else None,
                    background_extension=PurePosixPath(background.filename).suffix if background else None,
                )
            )
    return entries


def write_media_manifest(entries: list[MediaEntry], path: Path) -> Path:
    """Write the manifest as indented JSON."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([asdict(e) for e in entries], f, indent=2, ensure_ascii=False)
    return path
