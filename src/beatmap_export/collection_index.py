from dataclasses import dataclass, field
from typing import Iterable, Iterator

from beatmap_library import Beatmap, BeatmapCollection


@dataclass
class MapCollection:
    """
    A collection with its assigned ID and the beatmaps it resolved to.

    Attributes:
        collection_id: Dense, 1-based ID in discovery order.
        name: The collection's user-facing name.
        beatmaps: Library beatmaps whose md5 hash is listed in the collection.
    """

    collection_id: int
    name: str
    beatmaps: list[Beatmap] = field(default_factory=list)


class CollectionIndex:
    """
    Lookup of collections by name and by ID.

    IDs are assigned once, at construction, in the order the collections are
    discovered. A collection whose name repeats an earlier one replaces it under
    that name; the ID counter still advances so the remaining IDs do not shift.
    """

    def __init__(self, collections: Iterable[BeatmapCollection], all_beatmaps: list[Beatmap]) -> None:
        self._by_name: dict[str, MapCollection] = {}
        self.count = 0
        for collection in collections:
            self.count += 1
            members = [b for b in all_beatmaps if b.md5_hash in collection.beatmap_md5_hashes]
            self._by_name[collection.name] = MapCollection(self.count, collection.name, members)

    def get(self, name: str) -> MapCollection | None:
        return self._by_name.get(name)

    def name_for_id(self, collection_id: int) -> str | None:
        """Name of the collection that was assigned ``collection_id``, if it still exists."""
        return next(
            (name for name, coll in self._by_name.items() if coll.collection_id == collection_id),
            None,
        )

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[MapCollection]:
        return iter(self._by_name.values())

    def __len__(self) -> int:
        return len(self._by_name)
