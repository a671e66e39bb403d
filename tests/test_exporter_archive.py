from __future__ import annotations

import zipfile
from pathlib import Path

import pytest

from beatmap_export import DestinationExistsError, FilterTemplate, NotFoundError, build_filter
from beatmap_export.selector import SetSelection
from beatmap_library import NamedFile, Score
from tests.conftest import Diff, add_blob, make_exporter, make_set


def test_archive_contains_only_selected_difficulties(store, export_dir: Path) -> None:
    beatmap_set = make_set(
        store, "s1", 100,
        [
            Diff("Easy", audio="audio.mp3", background="shared.jpg"),
            Diff("Hard", audio="audio.mp3", background="hard.jpg"),
        ],
    )
    easy, hard = beatmap_set.beatmaps
    exporter = make_exporter(store, [beatmap_set], export_dir)

    path = exporter.export_beatmap(SetSelection(beatmap_set, (easy,)))

    with zipfile.ZipFile(path) as osz:
        names = set(osz.namelist())
        assert "Artist - Song (Easy).osu" in names
        assert "Artist - Song (Hard).osu" not in names
        # files of unselected difficulties that are not difficulty files stay in
        assert {"audio.mp3", "shared.jpg", "hard.jpg"} <= names
        assert osz.read("audio.mp3") == b"s1/audio.mp3"
    assert path.name == "100 Artist - Song.osz"


def test_file_shared_with_selected_difficulty_is_kept(store, export_dir: Path) -> None:
    same = b"[General]\nAudioFilename: audio.mp3\n"
    beatmap_set = make_set(
        store, "s1", 1, [Diff("Easy"), Diff("Hard")],
        blobs={"Artist - Song (Easy).osu": same, "Artist - Song (Hard).osu": same},
    )
    easy, hard = beatmap_set.beatmaps
    assert easy.hash == hard.hash
    exporter = make_exporter(store, [beatmap_set], export_dir)

    path = exporter.export_beatmap(SetSelection(beatmap_set, (easy,)))

    with zipfile.ZipFile(path) as osz:
        assert osz.read("Artist - Song (Easy).osu") == same


def test_archive_keeps_sub_directories(store, export_dir: Path) -> None:
    beatmap_set = make_set(store, "s1", 1, [Diff("Easy")])
    beatmap_set.files.append(NamedFile("sb/spark.png", add_blob(store, b"spark")))
    exporter = make_exporter(store, [beatmap_set], export_dir)

    path = exporter.export_beatmap(exporter.selection.for_set(beatmap_set))

    with zipfile.ZipFile(path) as osz:
        assert osz.read("sb/spark.png") == b"spark"


def test_existing_archive_is_not_overwritten(store, export_dir: Path) -> None:
    beatmap_set = make_set(store, "s1", 100, [Diff("Easy")])
    exporter = make_exporter(store, [beatmap_set], export_dir)
    existing = export_dir / beatmap_set.archive_filename()
    existing.write_bytes(b"previous export")

    with pytest.raises(DestinationExistsError):
        exporter.export_beatmap(exporter.selection.for_set(beatmap_set))

    assert existing.read_bytes() == b"previous export"


def test_missing_blob_fails_and_leaves_no_partial_archive(store, export_dir: Path) -> None:
    beatmap_set = make_set(store, "s1", 100, [Diff("Easy")])
    beatmap_set.files.append(NamedFile("gone.wav", "deadbeef"))
    exporter = make_exporter(store, [beatmap_set], export_dir)

    with pytest.raises(NotFoundError):
        exporter.export_beatmap(exporter.selection.for_set(beatmap_set))

    assert not (export_dir / beatmap_set.archive_filename()).exists()


def test_no_compression_stores_entries(store, export_dir: Path) -> None:
    beatmap_set = make_set(store, "s1", 100, [Diff("Easy")])
    exporter = make_exporter(store, [beatmap_set], export_dir)
    exporter.configuration.compression = "none"

    path = exporter.export_beatmap(exporter.selection.for_set(beatmap_set))

    with zipfile.ZipFile(path) as osz:
        assert {info.compress_type for info in osz.infolist()} == {zipfile.ZIP_STORED}


def test_export_background(store, export_dir: Path) -> None:
    beatmap_set = make_set(store, "s1", 5, [Diff("Easy", background="bg.png")])
    exporter = make_exporter(store, [beatmap_set], export_dir)
    (task,) = exporter.extract_backgrounds(exporter.selection.for_set(beatmap_set))

    path = exporter.export_background(task)

    assert path == export_dir / "5 Song (Artist).png"
    assert path.read_bytes() == b"s1/bg.png"
    with pytest.raises(DestinationExistsError):
        exporter.export_background(task)


def test_export_background_missing_file(store, export_dir: Path) -> None:
    beatmap_set = make_set(store, "s1", 5, [Diff("Easy", background="bg.png")])
    beatmap_set.files = [f for f in beatmap_set.files if f.filename != "bg.png"]
    exporter = make_exporter(store, [beatmap_set], export_dir)
    (task,) = exporter.extract_backgrounds(exporter.selection.for_set(beatmap_set))

    with pytest.raises(NotFoundError):
        exporter.export_background(task)


def test_export_replay_uses_first_score_file(store, export_dir: Path) -> None:
    replay = NamedFile("replay.osr", add_blob(store, b"replay data"))
    other = NamedFile("other.osr", add_blob(store, b"other"))
    score = Score("42", "player", files=[replay, other])
    beatmap_set = make_set(store, "s1", 5, [Diff("Hard", scores=[score])])
    exporter = make_exporter(store, [beatmap_set], export_dir)

    (selected_score,) = exporter.selected_replays()
    path = exporter.export_replay(selected_score)

    assert path.name == "player - Song [Hard] (42).osr"
    assert path.read_bytes() == b"replay data"


def test_export_replay_without_file_fails(store, export_dir: Path) -> None:
    beatmap_set = make_set(store, "s1", 5, [Diff("Hard", scores=[Score("42", "player")])])
    exporter = make_exporter(store, [beatmap_set], export_dir)

    with pytest.raises(NotFoundError):
        exporter.export_replay(beatmap_set.beatmaps[0].scores[0])


def test_selected_replays_follow_the_selection(store, export_dir: Path) -> None:
    beatmap_set = make_set(
        store, "s1", 5,
        [Diff("Easy", scores=[Score("1", "a")]), Diff("Hard", scores=[Score("2", "b")])],
    )
    exporter = make_exporter(
        store, [beatmap_set], export_dir,
        filters=[build_filter(FilterTemplate.BEATMAP_SET_ID, ["6"])],
    )
    exporter.update_selection()

    assert list(exporter.selected_replays()) == []


def test_export_single_file_strips_directories(store, export_dir: Path) -> None:
    named = NamedFile("storyboard/layer/spark.png", add_blob(store, b"spark"))
    exporter = make_exporter(store, [], export_dir)

    path = exporter.export_single_file(named)

    assert path == export_dir / "spark.png"
    assert path.read_bytes() == b"spark"
    with pytest.raises(DestinationExistsError):
        exporter.export_single_file(named)


def test_setup_export_creates_directory(store, tmp_path: Path) -> None:
    exporter = make_exporter(store, [], tmp_path / "nested" / "out")

    assert exporter.setup_export().is_dir()
