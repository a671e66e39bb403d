"""
Beatmap selection.

Selection runs in two steps: collection filters are resolved against the
collection index and merged into a single synthesized filter, then every
beatmap set is evaluated against the full filter list. The result is an
immutable ``Selection`` value; nothing on the library objects is mutated.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Sequence

from beatmap_library import Beatmap, BeatmapSet
from common.logging import Logger, NullLogger

from .collection_index import CollectionIndex
from .exceptions import CollectionResolutionError
from .filters import BeatmapFilter, FilterTemplate

ALL_COLLECTIONS = "-all"

_ID_REFERENCE = re.compile(r"#([0-9]+)")


def resolve_reference(reference: str, index: CollectionIndex) -> str | None:
    """
    Resolve one collection reference to a collection name.

    ``#<digits>`` selects by assigned ID, ``-all`` stands for every collection,
    anything else must be the exact name of a collection.
    """
    if reference == ALL_COLLECTIONS:
        return ALL_COLLECTIONS
    match = _ID_REFERENCE.fullmatch(reference)
    if match:
        return index.name_for_id(int(match.group(1)))
    return reference if reference in index else None


def resolve_collection_filters(
    filters: list[BeatmapFilter],
    index: CollectionIndex,
    on_failure: Callable[[str], None] | None = None,
    logger: Logger | None = None,
) -> None:
    """
    Replace all collection filters in ``filters`` with one synthesized filter.

    The list is modified in place. Resolved names from every collection filter
    are pooled and matched with OR semantics. Only the negation flag of the last
    collection filter survives. A previously synthesized filter is folded back
    in, so running this repeatedly never stacks synthesized filters.

    Args:
        filters: The configuration's filter list.
        index: Collections available for resolution.
        on_failure: Called with each reference that matched no collection.
        logger: Optional logger.
    """
    logger = logger or NullLogger()

    plain_filters: list[BeatmapFilter] = []
    names: list[str] = []
    negated = False
    found_collection_filter = False

    for f in filters:
        if f.collections is None:
            plain_filters.append(f)
            continue

        found_collection_filter = True
        negated = f.negated
        if f.synthesized:
            # already resolved names; resolving again could read a name like "#2" as an ID
            names.extend(f.collections)
            continue
        for reference in f.collections:
            name = resolve_reference(reference, index)
            if name is None:
                logger.warning(str(CollectionResolutionError(reference)))
                if on_failure:
                    on_failure(reference)
                continue
            names.append(name)

    if found_collection_filter and not names:
        logger.warning("No collection references could be resolved; collection filter dropped")

    if names:
        plain_filters.append(_build_collection_filter(names, negated, index))

    filters[:] = plain_filters


def _build_collection_filter(names: list[str], negated: bool, index: CollectionIndex) -> BeatmapFilter:
    if ALL_COLLECTIONS in names:
        matched = list(index)
    else:
        wanted = {n.casefold() for n in names}
        matched = [c for c in index if c.name.casefold() in wanted]

    included_ids = {b.id for coll in matched for b in coll.beatmaps}
    return BeatmapFilter(
        description=", ".join(names),
        negated=negated,
        predicate=lambda b: b.id in included_ids,
        template=FilterTemplate.COLLECTIONS,
        collections=list(names),
        synthesized=True,
    )


@dataclass(frozen=True)
class SetSelection:
    """The selected difficulties of one beatmap set."""

    beatmap_set: BeatmapSet
    selected: tuple[Beatmap, ...]

    @property
    def is_selected(self) -> bool:
        return len(self.selected) > 0

    def excluded_hashes(self) -> set[str]:
        """Hashes of unselected difficulties that no selected difficulty shares."""
        kept = {b.hash for b in self.selected}
        return {b.hash for b in self.beatmap_set.beatmaps} - kept


@dataclass(frozen=True)
class Selection:
    """
    Result of applying filters to a whole library.

    Attributes:
        set_selections: One entry per library set, in library order, selected or not.
        selected_sets: Only the entries with at least one selected difficulty.
    """

    set_selections: tuple[SetSelection, ...]
    selected_sets: tuple[SetSelection, ...] = field(init=False)
    _by_set_id: dict[str, SetSelection] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(
            self, "selected_sets", tuple(s for s in self.set_selections if s.is_selected)
        )
        object.__setattr__(
            self, "_by_set_id", {s.beatmap_set.id: s for s in self.set_selections}
        )

    @property
    def selected_set_count(self) -> int:
        return len(self.selected_sets)

    @property
    def selected_beatmap_count(self) -> int:
        return sum(len(s.selected) for s in self.selected_sets)

    def for_set(self, beatmap_set: BeatmapSet) -> SetSelection | None:
        return self._by_set_id.get(beatmap_set.id)

    def selected_beatmaps(self) -> Iterable[Beatmap]:
        for set_selection in self.selected_sets:
            yield from set_selection.selected


def select_all(beatmap_sets: Sequence[BeatmapSet]) -> Selection:
    """A selection with every difficulty of every set selected."""
    return Selection(tuple(SetSelection(s, tuple(s.beatmaps)) for s in beatmap_sets))


def select(beatmap_sets: Sequence[BeatmapSet], filters: Sequence[BeatmapFilter]) -> Selection:
    """
    Apply ``filters`` to every set and return the resulting selection.

    A difficulty is selected when every filter includes it. Collection filters
    must already be resolved.
    """
    set_selections = []
    for beatmap_set in beatmap_sets:
        selected = tuple(
            b for b in beatmap_set.beatmaps if all(f.includes(b) for f in filters)
        )
        set_selections.append(SetSelection(beatmap_set, selected))
    return Selection(tuple(set_selections))
