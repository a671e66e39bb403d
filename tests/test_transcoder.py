from __future__ import annotations

import io
import subprocess
from pathlib import Path

import pytest

from beatmap_export import DestinationExistsError, FfmpegTranscoder, TranscodeError
from beatmap_export import transcoder as transcoder_module


@pytest.fixture
def ffmpeg_found(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(transcoder_module.shutil, "which", lambda name: f"/usr/bin/{name}")


def test_unavailable_when_executable_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    lookups = []

    def which(name):
        lookups.append(name)
        return None

    monkeypatch.setattr(transcoder_module.shutil, "which", which)
    transcoder = FfmpegTranscoder()

    assert not transcoder.available
    assert not transcoder.available
    assert lookups == ["ffmpeg"]


def test_command_reads_stdin_and_never_overwrites(ffmpeg_found, tmp_path: Path) -> None:
    transcoder = FfmpegTranscoder(bitrate="192k")
    assert transcoder.available

    command = transcoder.build_command(tmp_path / "out.mp3")

    assert command[0] == "/usr/bin/ffmpeg"
    assert command[command.index("-i") + 1] == "pipe:0"
    assert command[command.index("-b:a") + 1] == "192k"
    assert "-n" in command
    assert command[-1] == str(tmp_path / "out.mp3")


def test_successful_transcode_pipes_source(ffmpeg_found, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    seen = {}

    def fake_run(command, **kwargs):
        seen.update(kwargs)
        Path(command[-1]).write_bytes(b"mp3 data")
        return subprocess.CompletedProcess(command, 0, b"", b"")

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)
    dest = tmp_path / "out.mp3"

    FfmpegTranscoder().transcode_to_mp3(io.BytesIO(b"ogg data"), dest, "audio.ogg")

    assert dest.read_bytes() == b"mp3 data"
    assert seen["input"] == b"ogg data"
    assert seen["check"] is True


def test_failed_transcode_removes_partial_output(
    ffmpeg_found, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    def fake_run(command, **kwargs):
        Path(command[-1]).write_bytes(b"half")
        raise subprocess.CalledProcessError(1, command, b"", b"Invalid data found")

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)
    dest = tmp_path / "out.mp3"

    with pytest.raises(TranscodeError, match="Invalid data found"):
        FfmpegTranscoder().transcode_to_mp3(io.BytesIO(b"junk"), dest, "audio.ogg")

    assert not dest.exists()


def test_timeout_is_a_transcode_error(ffmpeg_found, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(command, **kwargs):
        raise subprocess.TimeoutExpired(command, kwargs["timeout"])

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)

    with pytest.raises(TranscodeError, match="timed out after 5s"):
        FfmpegTranscoder(timeout=5).transcode_to_mp3(io.BytesIO(b""), tmp_path / "out.mp3")


def test_missing_binary_is_a_transcode_error(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(command, **kwargs):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)

    with pytest.raises(TranscodeError):
        FfmpegTranscoder(executable="no-such-ffmpeg").transcode_to_mp3(io.BytesIO(b""), tmp_path / "out.mp3")


def test_existing_destination_is_refused(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(command, **kwargs):
        raise AssertionError("ffmpeg must not run")

    monkeypatch.setattr(transcoder_module.subprocess, "run", fake_run)
    dest = tmp_path / "out.mp3"
    dest.write_bytes(b"existing")

    with pytest.raises(DestinationExistsError):
        FfmpegTranscoder().transcode_to_mp3(io.BytesIO(b"ogg"), dest)

    assert dest.read_bytes() == b"existing"
