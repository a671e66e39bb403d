"""
Beatmap filters.

A filter is either a plain predicate over a single beatmap, or a pending list of
collection references that the selector resolves into one predicate filter
before any beatmap is evaluated.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from beatmap_library import Beatmap

BeatmapPredicate = Callable[[Beatmap], bool]


class FilterTemplate(Enum):
    """The kind of rule a filter was built from, used for grouping and reporting."""
    ARTIST = "artist"
    TITLE = "title"
    TAGS = "tags"
    BEATMAP_SET_ID = "id"
    HAS_REPLAY = "replay"
    COLLECTIONS = "collection"


@dataclass
class BeatmapFilter:
    """
    A single selection rule.

    A plain filter has a ``predicate``; a collection filter has ``collections``
    and cannot be evaluated until the selector has replaced it with a predicate.
    The synthesized filter keeps both: its predicate and the names it was built from.

    Attributes:
        description: Human-readable summary, shown in filter listings.
        negated: Invert this filter's verdict.
        predicate: Function deciding whether a beatmap matches.
        template: The rule kind this filter was built from.
        collections: Collection references (names, ``#<id>`` or ``-all``).
        synthesized: True for the filter the selector built out of collection filters.
    """

    description: str
    negated: bool = False
    predicate: BeatmapPredicate | None = None
    template: FilterTemplate | None = None
    collections: list[str] | None = None
    synthesized: bool = False

    def __post_init__(self):
        if self.predicate is None and self.collections is None:
            raise ValueError(
                f"Filter '{self.description}' needs either a predicate or collection references"
            )
        if self.predicate is not None and self.collections is not None and not self.synthesized:
            raise ValueError(
                f"Filter '{self.description}' cannot have both a predicate and collection references"
            )

    @property
    def is_collection_filter(self) -> bool:
        """True while this filter still holds collection references to resolve."""
        return self.collections is not None and self.predicate is None

    def includes(self, beatmap: Beatmap) -> bool:
        if self.predicate is None:
            raise RuntimeError(f"Collection filter '{self.description}' has not been resolved")
        return self.predicate(beatmap) != self.negated


def _text_predicate(values: Sequence[str], fields: Callable[[Beatmap], Sequence[str]]) -> BeatmapPredicate:
    needles = [v.lower() for v in values]

    def matches(beatmap: Beatmap) -> bool:
        haystack = [f.lower() for f in fields(beatmap) if f]
        return any(needle in text for needle in needles for text in haystack)

    return matches


def build_filter(template: FilterTemplate, args: Sequence[str], negated: bool = False) -> BeatmapFilter:
    """
    Build a filter from a template and its arguments.

    Text templates match if any argument is a case-insensitive substring of the
    field. ``BEATMAP_SET_ID`` matches exact online IDs, ``HAS_REPLAY`` ignores its
    arguments and ``COLLECTIONS`` keeps the arguments as unresolved references.

    Raises:
        ValueError: If the template needs arguments and none are given, or an ID is not numeric.
    """
    args = [str(a) for a in args]
    description = f"{template.value}: {', '.join(args)}" if args else template.value
    if negated:
        description = f"not {description}"

    if template is FilterTemplate.HAS_REPLAY:
        return BeatmapFilter(description, negated, lambda b: len(b.scores) > 0, template)

    if not args:
        raise ValueError(f"Filter template '{template.value}' requires at least one argument")

    if template is FilterTemplate.COLLECTIONS:
        return BeatmapFilter(description, negated, template=template, collections=list(args))

    if template is FilterTemplate.BEATMAP_SET_ID:
        try:
            ids = {int(a) for a in args}
        except ValueError:
            raise ValueError(f"Beatmap set IDs must be numeric: {', '.join(args)}") from None
        return BeatmapFilter(
            description,
            negated,
            lambda b: b.beatmap_set is not None and b.beatmap_set.online_id in ids,
            template,
        )

    if template is FilterTemplate.ARTIST:
        fields = lambda b: (b.metadata.artist, b.metadata.artist_unicode)
    elif template is FilterTemplate.TITLE:
        fields = lambda b: (b.metadata.title, b.metadata.title_unicode)
    else:
        fields = lambda b: (b.metadata.tags,)
    return BeatmapFilter(description, negated, _text_predicate(args, fields), template)
