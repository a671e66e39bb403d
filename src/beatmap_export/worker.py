"""
Whole-library export runs.

Each run walks the current selection and exports unit by unit. A failing unit
is logged and recorded in the run's ``ExportReport``; the run always continues
with the next unit. Audio tracks are exported on a thread pool since
transcoding dominates the run time.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from common.logging import Logger, NullLogger

from .exporter import BeatmapExporter

ProgressCallback = Callable[[int, int], None]


@dataclass
class UnitFailure:
    unit: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.unit}: {self.error}"


@dataclass
class ExportReport:
    """
    Results of one export run.

    Attributes:
        succeeded: Paths of files written.
        failed: Units that could not be exported, with the error.
        skipped: Units intentionally not exported (e.g. no transcoder available).
        warnings: Non-fatal problems with exported units (e.g. tagging failures).
    """

    succeeded: list[Path] = field(default_factory=list)
    failed: list[UnitFailure] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed) + len(self.skipped)


class ExportWorker:
    """
    Runs exports over the exporter's current selection.

    Call ``exporter.update_selection()`` before starting a run; the worker never
    changes the selection.
    """

    def __init__(
        self,
        exporter: BeatmapExporter,
        logger: Logger | None = None,
        max_workers: int = 4,
    ):
        """
        Args:
            exporter: Exporter holding the selection and performing single-unit exports.
            logger: Optional logger for tracking operations.
            max_workers: Maximum number of parallel audio exports.
        """
        self.exporter = exporter
        self.logger = logger or NullLogger()
        self.max_workers = max_workers

    def _record_failure(self, report: ExportReport, unit: str, error: Exception) -> None:
        report.failed.append(UnitFailure(unit, error))
        self.logger.error(f"Failed to export {unit}: {error}")

    def export_beatmaps(self, progress_callback: ProgressCallback | None = None) -> ExportReport:
        """Export every selected set as an .osz archive."""
        report = ExportReport()
        selected_sets = self.exporter.selection.selected_sets
        total = len(selected_sets)
        self.logger.info(f"Exporting {total} beatmap sets")

        for idx, set_selection in enumerate(selected_sets, 1):
            unit = set_selection.beatmap_set.archive_filename()
            try:
                report.succeeded.append(self.exporter.export_beatmap(set_selection))
            except Exception as e:
                self._record_failure(report, unit, e)
            if progress_callback:
                progress_callback(idx, total)

        self.logger.info(f"Exported {len(report.succeeded)}/{total} beatmap sets")
        return report

    def export_audio(self, progress_callback: ProgressCallback | None = None) -> ExportReport:
        """Export the audio of every selected set, in parallel."""
        report = ExportReport()
        tasks = [
            task
            for set_selection in self.exporter.selection.selected_sets
            for task in self.exporter.extract_audio(set_selection)
        ]
        total = len(tasks)
        if total == 0:
            self.logger.info("No audio tracks to export")
            return report

        if any(t.transcode_from for t in tasks) and not self.exporter.transcode_available:
            self.logger.warning("Transcoder not available; non-mp3 audio will be skipped")

        self.logger.info(
            f"Exporting {total} audio tracks (max workers: {self.max_workers})"
        )
        completed = 0
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_task = {
                executor.submit(self.exporter.export_audio, task): task for task in tasks
            }
            for future in as_completed(future_to_task):
                task = future_to_task[future]
                completed += 1
                try:
                    result = future.result()
                except Exception as e:
                    self._record_failure(report, task.output_filename, e)
                else:
                    if result.skipped:
                        report.skipped.append(task.output_filename)
                    else:
                        report.succeeded.append(result.output_path)
                    if result.tagging_error is not None:
                        report.warnings.append(str(result.tagging_error))
                if progress_callback:
                    progress_callback(completed, total)

        self.logger.info(
            f"Exported {len(report.succeeded)}/{total} audio tracks "
            f"({len(report.skipped)} skipped, {len(report.failed)} failed)"
        )
        return report

    def export_backgrounds(self, progress_callback: ProgressCallback | None = None) -> ExportReport:
        """Export the background images of every selected set."""
        report = ExportReport()
        tasks = [
            task
            for set_selection in self.exporter.selection.selected_sets
            for task in self.exporter.extract_backgrounds(set_selection)
        ]
        total = len(tasks)
        for idx, task in enumerate(tasks, 1):
            try:
                report.succeeded.append(self.exporter.export_background(task))
            except Exception as e:
                self._record_failure(report, task.output_filename, e)
            if progress_callback:
                progress_callback(idx, total)

        self.logger.info(f"Exported {len(report.succeeded)}/{total} backgrounds")
        return report

    def export_replays(self, progress_callback: ProgressCallback | None = None) -> ExportReport:
        """Export the replays of every score on a selected difficulty."""
        report = ExportReport()
        scores = list(self.exporter.selected_replays())
        total = len(scores)
        for idx, score in enumerate(scores, 1):
            try:
                report.succeeded.append(self.exporter.export_replay(score))
            except Exception as e:
                self._record_failure(report, score.output_replay_filename(), e)
            if progress_callback:
                progress_callback(idx, total)

        self.logger.info(f"Exported {len(report.succeeded)}/{total} replays")
        return report
