"""
Beatmap selection and export for Beatmap Exporter.

This package selects beatmaps from a library with user-defined filters and
exports the selection as .osz archives, mp3 tracks, background images and
replays.

Key Features:
- Filters by artist, title, tags, set ID, replays and collections
- Collections referenced by name, by ``#<id>`` or all at once with ``-all``
- Archives that contain only the selected difficulties
- Audio transcoding to mp3 with FFmpeg and non-destructive ID3 tagging
- Per-unit failure handling: one broken set never aborts a whole export

Usage:
    from beatmap_export import BeatmapExporter, ExportWorker, load_configuration
    from logtools import get_logger, setup_logging

    setup_logging("logs")
    logger = get_logger("beatmap_export")
    configuration = load_configuration(Path("export.yml"))
    exporter = BeatmapExporter(store, beatmap_sets, collections, configuration, logger=logger)
    exporter.update_selection(on_collection_failure=lambda ref: print(f"unknown: {ref}"))
    exporter.setup_export()

    report = ExportWorker(exporter, logger=logger).export_audio()
    for failure in report.failed:
        print(failure)
"""

from .config import ExporterConfiguration, load_configuration
from .exceptions import (
    CollectionResolutionError,
    ConfigurationError,
    DestinationExistsError,
    ExporterError,
    NotFoundError,
    TaggingError,
    TranscodeError,
)
from .exporter import AudioExportResult, BeatmapExporter, FilterDetail
from .filters import BeatmapFilter, FilterTemplate, build_filter
from .manifest import build_media_manifest, write_media_manifest
from .selector import Selection, SetSelection
from .tasks import AudioExportTask, BackgroundExportTask
from .transcoder import FfmpegTranscoder
from .worker import ExportReport, ExportWorker

__version__ = "1.0.0"

__all__ = [
    "AudioExportResult",
    "AudioExportTask",
    "BackgroundExportTask",
    "BeatmapExporter",
    "BeatmapFilter",
    "CollectionResolutionError",
    "ConfigurationError",
    "DestinationExistsError",
    "ExportReport",
    "ExportWorker",
    "ExporterConfiguration",
    "ExporterError",
    "FfmpegTranscoder",
    "FilterDetail",
    "FilterTemplate",
    "NotFoundError",
    "Selection",
    "SetSelection",
    "TaggingError",
    "TranscodeError",
    "build_filter",
    "build_media_manifest",
    "load_configuration",
    "write_media_manifest",
]
