"""
Export task generation.

Tasks are produced lazily per selected beatmap set. Only selected difficulties
are looked at, and difficulties sharing an audio or background file produce a
single task for that file.
"""

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterator

from beatmap_library import BeatmapMetadata, BeatmapSet

from .selector import SetSelection


@dataclass(frozen=True)
class AudioExportTask:
    """
    One audio track to export.

    Attributes:
        origin_set: The set the audio file belongs to.
        metadata: Metadata of the first selected difficulty using this audio file.
        transcode_from: Source extension (lower case, without dot) when the file is not mp3.
        output_filename: Name of the exported file in the export directory.
    """

    origin_set: BeatmapSet
    metadata: BeatmapMetadata
    transcode_from: str | None
    output_filename: str


@dataclass(frozen=True)
class BackgroundExportTask:
    origin_set: BeatmapSet
    metadata: BeatmapMetadata
    output_filename: str


def audio_extension(filename: str) -> str:
    return PurePosixPath(filename).suffix.lstrip(".").lower()


def extract_audio(set_selection: SetSelection) -> Iterator[AudioExportTask]:
    """Yield one task per distinct audio file among the selected difficulties."""
    beatmap_set = set_selection.beatmap_set
    seen: set[str] = set()
    index = 0
    for beatmap in set_selection.selected:
        metadata = beatmap.metadata
        if metadata.audio_file in seen:
            continue
        seen.add(metadata.audio_file)

        extension = audio_extension(metadata.audio_file)
        transcode_from = None if extension == "mp3" else extension
        output_filename = metadata.output_audio_filename(beatmap_set.online_id, index)
        index += 1
        yield AudioExportTask(beatmap_set, metadata, transcode_from, output_filename)


def extract_backgrounds(set_selection: SetSelection) -> Iterator[BackgroundExportTask]:
    """Yield one task per distinct background image among the selected difficulties."""
    beatmap_set = set_selection.beatmap_set
    seen: set[str] = set()
    index = 0
    for beatmap in set_selection.selected:
        metadata = beatmap.metadata
        if metadata.background_file is None or metadata.background_file in seen:
            continue
        seen.add(metadata.background_file)

        output_filename = metadata.output_background_filename(beatmap_set.online_id, index)
        index += 1
        yield BackgroundExportTask(beatmap_set, metadata, output_filename)
