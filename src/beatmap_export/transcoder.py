"""
Audio transcoding to mp3 with FFmpeg.

The source is piped into ffmpeg's stdin, so blobs from the file store never need
a temporary copy with a proper extension.
"""

import shutil
import subprocess
from pathlib import Path
from typing import BinaryIO

from common.logging import Logger, NullLogger

from .exceptions import DestinationExistsError, TranscodeError

DEFAULT_BITRATE = "320k"


class FfmpegTranscoder:
    """
    Converts audio streams to mp3 files.

    ``available`` is False when no ffmpeg executable can be found; callers are
    expected to check it and skip transcoding instead of failing.
    """

    def __init__(
        self,
        executable: str = "ffmpeg",
        bitrate: str = DEFAULT_BITRATE,
        timeout: int = 600,
        logger: Logger | None = None,
    ):
        """
        Args:
            executable: Name or path of the ffmpeg binary.
            bitrate: Target mp3 bitrate.
            timeout: Seconds before a single transcode is abandoned.
            logger: Optional logger for tracking operations.
        """
        self.executable = executable
        self.bitrate = bitrate
        self.timeout = timeout
        self.logger = logger or NullLogger()
        self._resolved: str | None = None
        self._checked = False

    @property
    def available(self) -> bool:
        if not self._checked:
            self._resolved = shutil.which(self.executable)
            self._checked = True
            if self._resolved is None:
                self.logger.info(f"{self.executable} not found; audio transcoding disabled")
        return self._resolved is not None

    def build_command(self, dest: Path) -> list[str]:
        return [
            self._resolved or self.executable,
            "-hide_banner",
            "-loglevel", "error",
            "-i", "pipe:0",
            "-vn",  # drop embedded cover streams
            "-codec:a", "libmp3lame",
            "-b:a", self.bitrate,
            "-f", "mp3",
            "-n",  # never overwrite
            str(dest),
        ]

    def transcode_to_mp3(self, source: BinaryIO, dest: Path, source_name: str = "audio") -> None:
        """
        Transcode ``source`` into a new mp3 file at ``dest``.

        Raises:
            DestinationExistsError: If ``dest`` already exists.
            TranscodeError: If ffmpeg is missing, fails, or times out. Partial output is removed.
        """
        dest = Path(dest)
        if dest.exists():
            raise DestinationExistsError(dest)

        self.logger.info(f"Transcoding {source_name} to {dest.name} ({self.bitrate})")
        try:
            subprocess.run(
                self.build_command(dest),
                input=source.read(),
                capture_output=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            stderr_text = e.stderr.decode("utf-8", errors="ignore").strip() if e.stderr else ""
            self._remove_partial(dest)
            raise TranscodeError(source_name, stderr_text or f"ffmpeg exited with {e.returncode}") from e
        except subprocess.TimeoutExpired as e:
            self._remove_partial(dest)
            raise TranscodeError(source_name, f"timed out after {self.timeout}s") from e
        except OSError as e:
            self._remove_partial(dest)
            raise TranscodeError(source_name, str(e)) from e

        self.logger.debug(f"Transcoded {source_name} -> {dest}")

    def _remove_partial(self, dest: Path) -> None:
        if dest.exists():
            dest.unlink()
