"""
ID3 tagging of exported audio files.

Tagging never overwrites information already present in the file, except for
the comment, which always carries the set's online ID and tags. Failures are
returned as a ``TaggingError`` value: the audio file itself is already
exported at this point and stays valid without tags.
"""

import io
from pathlib import Path
from typing import Callable

from mutagen import MutagenError
from mutagen.id3 import APIC, COMM, ID3, TIT2, TPE1, TXXX, ID3NoHeaderError, PictureType
from PIL import Image, UnidentifiedImageError

from beatmap_library import BeatmapMetadata

from .exceptions import TaggingError

CoverLoader = Callable[[], bytes | None]

DESCRIPTION_KEY = "TXXX:Description"


def _is_empty(tags: ID3, key: str) -> bool:
    frame = tags.get(key)
    return frame is None or not any(str(text).strip() for text in frame.text)


def guess_image_mime(data: bytes) -> str:
    """MIME type of an image, falling back to JPEG when Pillow cannot identify it."""
    try:
        with Image.open(io.BytesIO(data)) as image:
            return Image.MIME.get(image.format, "image/jpeg")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return "image/jpeg"


def load_tags(path: Path) -> ID3:
    try:
        return ID3(path)
    except ID3NoHeaderError:
        return ID3()


def tag_audio_file(
    path: Path,
    metadata: BeatmapMetadata,
    comment: str,
    load_cover: CoverLoader | None = None,
) -> TaggingError | None:
    """
    Fill in ID3 tags of an exported track.

    Title, artist and description are set only when empty, the comment is always
    replaced, and the cover is embedded only when the file has none.

    Args:
        path: The exported audio file.
        metadata: Metadata of the difficulty the track came from.
        comment: Value for the comment frame.
        load_cover: Returns the cover image bytes, or None when there is no cover.

    Returns:
        None on success, otherwise the TaggingError describing what went wrong.
    """
    path = Path(path)
    try:
        tags = load_tags(path)

        if _is_empty(tags, "TIT2"):
            tags.setall("TIT2", [TIT2(encoding=3, text=[metadata.display_title])])
        if _is_empty(tags, "TPE1"):
            tags.setall("TPE1", [TPE1(encoding=3, text=[metadata.display_artist])])
        if _is_empty(tags, DESCRIPTION_KEY):
            tags.setall(DESCRIPTION_KEY, [TXXX(encoding=3, desc="Description", text=[metadata.tags])])

        tags.delall("COMM")
        tags.add(COMM(encoding=3, lang="eng", desc="", text=[comment]))

        if not tags.getall("APIC") and load_cover is not None:
            image = load_cover()
            if image:
                tags.add(
                    APIC(
                        encoding=3,
                        mime=guess_image_mime(image),
                        type=PictureType.COVER_FRONT,
                        desc="Background",
                        data=image,
                    )
                )

        tags.save(path)
    except MutagenError as e:
        return TaggingError(path, str(e))
    except Exception as e:
        return TaggingError(path, f"{type(e).__name__}: {e}")
    return None
