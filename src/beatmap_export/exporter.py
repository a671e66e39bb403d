"""
BeatmapExporter - selection state and the physical export operations.

The exporter owns the library, the collection index, the configuration and the
current ``Selection``. Every export method handles exactly one unit (one set
archive, one audio track, one background, one replay, one file) and raises on
failure; looping over units and collecting failures is the job of
``ExportWorker``.
"""

import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Callable, Iterable, Iterator

from beatmap_library import (
    Beatmap,
    BeatmapCollection,
    BeatmapSet,
    HashedFileStore,
    NamedFile,
    Score,
)
from common.logging import Logger, NullLogger

from .collection_index import CollectionIndex
from .config import ExporterConfiguration
from .exceptions import DestinationExistsError, NotFoundError, TaggingError
from .selector import Selection, SetSelection, resolve_collection_filters, select, select_all
from .tagging import tag_audio_file
from .tasks import AudioExportTask, BackgroundExportTask, extract_audio, extract_backgrounds
from .transcoder import FfmpegTranscoder


@dataclass(frozen=True)
class FilterDetail:
    """Summary of one active filter and how many difficulties it matches on its own."""

    id: int
    description: str
    beatmap_count: int


@dataclass(frozen=True)
class AudioExportResult:
    """
    Outcome of a single audio export.

    Attributes:
        output_path: Where the track was (or would have been) written.
        transcoded: The track was converted to mp3.
        skipped: Transcoding was needed but no transcoder is available; nothing was written.
        tagging_error: Set when the file was exported but its tags could not be written.
    """

    output_path: Path
    transcoded: bool = False
    skipped: bool = False
    tagging_error: TaggingError | None = None


def create_new(path: Path) -> BinaryIO:
    """Open ``path`` for writing, refusing to replace an existing file."""
    try:
        return open(path, "xb")
    except FileExistsError:
        raise DestinationExistsError(path) from None


class BeatmapExporter:
    """
    Selects beatmaps from a library and exports them.

    Example:
        exporter = BeatmapExporter(store, beatmap_sets, collections, configuration)
        exporter.update_selection(on_collection_failure=print)
        exporter.setup_export()
        for set_selection in exporter.selection.selected_sets:
            exporter.export_beatmap(set_selection)
    """

    def __init__(
        self,
        file_store: HashedFileStore,
        beatmap_sets: Iterable[BeatmapSet],
        collections: Iterable[BeatmapCollection] = (),
        configuration: ExporterConfiguration | None = None,
        transcoder: FfmpegTranscoder | None = None,
        logger: Logger | None = None,
    ) -> None:
        """
        Args:
            file_store: Store the set files are read from.
            beatmap_sets: All sets in the library. Sets without difficulties are ignored.
            collections: All collections in the library, in discovery order.
            configuration: Export settings and filters; defaults are used when omitted.
            transcoder: Audio transcoder; an ffmpeg transcoder is created when omitted.
            logger: Optional logger instance (defaults to NullLogger).
        """
        self._logger = logger or NullLogger()
        self.file_store = file_store
        self.configuration = configuration or ExporterConfiguration()
        self.transcoder = transcoder or FfmpegTranscoder(logger=self._logger)

        # sorted() is stable, so sets sharing an online ID keep their discovery order
        self.all_beatmap_sets: list[BeatmapSet] = sorted(
            (s for s in beatmap_sets if s.beatmaps), key=lambda s: s.online_id
        )
        self._all_beatmaps: list[Beatmap] = [b for s in self.all_beatmap_sets for b in s.beatmaps]

        self.collections = CollectionIndex(collections, self._all_beatmaps)
        self.selection: Selection = select_all(self.all_beatmap_sets)

        self._logger.info(
            f"Loaded {self.total_beatmap_set_count} beatmap sets "
            f"({self.total_beatmap_count} difficulties), {self.collection_count} collections"
        )

    @property
    def total_beatmap_set_count(self) -> int:
        return len(self.all_beatmap_sets)

    @property
    def total_beatmap_count(self) -> int:
        return len(self._all_beatmaps)

    @property
    def collection_count(self) -> int:
        return self.collections.count

    @property
    def transcode_available(self) -> bool:
        return self.transcoder.available

    # === Selection ===

    def update_selection(self, on_collection_failure: Callable[[str], None] | None = None) -> Selection:
        """
        Resolve collection filters and recompute the selection from scratch.

        Args:
            on_collection_failure: Called with every collection reference that matched nothing.

        Returns:
            The new selection, which also replaces ``self.selection``.
        """
        filters = self.configuration.filters
        resolve_collection_filters(filters, self.collections, on_collection_failure, self._logger)
        self.selection = select(self.all_beatmap_sets, filters)
        self._logger.info(
            f"Selected {self.selection.selected_beatmap_count} difficulties in "
            f"{self.selection.selected_set_count} sets using {len(filters)} filter(s)"
        )
        return self.selection

    def filter_details(self) -> list[FilterDetail]:
        """Each active filter with the number of difficulties it matches by itself."""
        listed = [f for f in self.configuration.filters if not f.is_collection_filter]
        return [
            FilterDetail(i, f.description, sum(1 for b in self._all_beatmaps if f.includes(b)))
            for i, f in enumerate(listed, 1)
        ]

    def setup_export(self) -> Path:
        """Create the export directory."""
        export_path = self.configuration.export_path
        export_path.mkdir(parents=True, exist_ok=True)
        return export_path

    def _output_path(self, filename: str) -> Path:
        return self.configuration.export_path / filename

    # === Beatmap archives ===

    def export_beatmap(self, set_selection: SetSelection) -> Path:
        """
        Export a set as an .osz archive containing only its selected difficulties.

        Shared files (audio, backgrounds, storyboards) are always included; the
        .osu files of unselected difficulties are left out.

        Raises:
            DestinationExistsError: If the archive already exists.
            NotFoundError: If a file of the set is missing from the store.
        """
        beatmap_set = set_selection.beatmap_set
        excluded = set_selection.excluded_hashes()
        output_path = self._output_path(beatmap_set.archive_filename())
        method, level = self.configuration.zip_compression()

        with create_new(output_path) as export:
            try:
                with zipfile.ZipFile(export, "w", compression=method, compresslevel=level) as osz:
                    for named_file in beatmap_set.files:
                        if named_file.hash in excluded:
                            continue
                        self._write_entry(osz, beatmap_set, named_file)
            except BaseException:
                export.close()
                output_path.unlink(missing_ok=True)
                raise

        self._logger.debug(
            f"Exported {output_path.name} ({len(set_selection.selected)}/"
            f"{len(beatmap_set.beatmaps)} difficulties)"
        )
        return output_path

    def _write_entry(self, osz: zipfile.ZipFile, beatmap_set: BeatmapSet, named_file: NamedFile) -> None:
        source = self.file_store.open_hashed_file(named_file.hash)
        if source is None:
            raise NotFoundError(
                f"File {named_file.filename} not found in beatmap {beatmap_set.archive_filename()}",
                named_file.filename,
            )
        with source, osz.open(named_file.filename, "w") as entry:
            shutil.copyfileobj(source, entry)

    # === Audio ===

    def extract_audio(self, set_selection: SetSelection) -> Iterator[AudioExportTask]:
        return extract_audio(set_selection)

    def export_audio(
        self,
        task: AudioExportTask,
        on_tagging_failure: Callable[[TaggingError], None] | None = None,
    ) -> AudioExportResult:
        """
        Export one audio track as mp3, transcoding when needed, then tag it.

        When transcoding is needed and no transcoder is available the task is
        skipped without error. Tagging problems never fail the export; they are
        returned in the result and passed to ``on_tagging_failure``.

        Raises:
            NotFoundError: If the audio file is missing from the set.
            DestinationExistsError: If the output file already exists.
            TranscodeError: If transcoding fails.
        """
        beatmap_set, metadata = task.origin_set, task.metadata
        output_path = self._output_path(task.output_filename)

        audio = self.file_store.open_named_file(beatmap_set, metadata.audio_file)
        if audio is None:
            raise NotFoundError(
                f"Audio file {metadata.audio_file} not found in beatmap {beatmap_set.archive_filename()}",
                metadata.audio_file,
            )

        with audio:
            if task.transcode_from is not None:
                if not self.transcode_available:
                    self._logger.debug(f"Skipping {metadata.audio_file}: transcoder not available")
                    return AudioExportResult(output_path, skipped=True)
                self.transcoder.transcode_to_mp3(audio, output_path, metadata.audio_file)
            else:
                with create_new(output_path) as output:
                    shutil.copyfileobj(audio, output)

        tagging_error = tag_audio_file(
            output_path,
            metadata,
            comment=f"{beatmap_set.online_id} {metadata.tags}",
            load_cover=lambda: self._read_background(beatmap_set, metadata.background_file),
        )
        if tagging_error is not None:
            self._logger.warning(str(tagging_error))
            if on_tagging_failure:
                on_tagging_failure(tagging_error)

        return AudioExportResult(
            output_path,
            transcoded=task.transcode_from is not None,
            tagging_error=tagging_error,
        )

    def _read_background(self, beatmap_set: BeatmapSet, filename: str | None) -> bytes | None:
        if filename is None:
            return None
        background = self.file_store.open_named_file(beatmap_set, filename)
        if background is None:
            return None
        with background:
            return background.read()

    # === Backgrounds ===

    def extract_backgrounds(self, set_selection: SetSelection) -> Iterator[BackgroundExportTask]:
        return extract_backgrounds(set_selection)

    def export_background(self, task: BackgroundExportTask) -> Path:
        """
        Copy one background image to the export directory.

        Raises:
            NotFoundError: If the image is missing from the set.
            DestinationExistsError: If the output file already exists.
        """
        beatmap_set, filename = task.origin_set, task.metadata.background_file
        output_path = self._output_path(task.output_filename)

        background = self.file_store.open_named_file(beatmap_set, filename) if filename else None
        if background is None:
            raise NotFoundError(
                f"Background file {filename} not found in beatmap {beatmap_set.archive_filename()}",
                filename,
            )
        with background, create_new(output_path) as output:
            shutil.copyfileobj(background, output)
        return output_path

    # === Replays ===

    def selected_replays(self) -> Iterator[Score]:
        """Scores on every selected difficulty."""
        for beatmap in self.selection.selected_beatmaps():
            yield from beatmap.scores

    def export_replay(self, score: Score) -> Path:
        """
        Copy a score's replay file to the export directory.

        Raises:
            NotFoundError: If the score has no replay file or it is missing from the store.
            DestinationExistsError: If the output file already exists.
        """
        output_path = self._output_path(score.output_replay_filename())

        replay = self.file_store.open_hashed_file(score.files[0].hash) if score.files else None
        if replay is None:
            raise NotFoundError(f"Replay file for {output_path.name} does not exist.")
        with replay, create_new(output_path) as output:
            shutil.copyfileobj(replay, output)
        return output_path

    # === Single files ===

    def export_single_file(self, named_file: NamedFile) -> Path:
        """
        Copy one file under its base name, without the set's sub-directories.

        Raises:
            NotFoundError: If the file is missing from the store.
            DestinationExistsError: If the output file already exists.
        """
        output_path = self._output_path(PurePosixPath(named_file.filename).name)

        source = self.file_store.open_hashed_file(named_file.hash)
        if source is None:
            raise NotFoundError(f"File {named_file.filename} not found in the file store", named_file.filename)
        with source, create_new(output_path) as output:
            shutil.copyfileobj(source, output)
        return output_path
