from dataclasses import dataclass
from itertools import islice
from pprint import pformat
from typing import (
    Iterable,
    Iterator,
    Mapping,
    MutableMapping,
    MutableSequence,
    Optional,
    Sequence,
    Tuple,
)

from ..consts import DEBUG_METRICS
from ..shared.logging import log
from ..shared.timeit import timeit
from ..shared.types import Context, Entry
from .comparators import Comparator, sort_entries
from .sources import Source


@dataclass(frozen=True)
class Aggregation:
    group_index: int
    offset: int
    entries: Sequence[Entry]


def _groups(sources: Iterable[Source]) -> Iterator[Tuple[int, Sequence[Source]]]:
    acc: MutableMapping[int, MutableSequence[Source]] = {}
    for source in sources:
        group_index = source.get_config().group_index
        acc.setdefault(group_index, []).append(source)

    for group_index in sorted(acc):
        yield group_index, acc[group_index]


def _fetch(
    context: Context, group: Sequence[Source]
) -> Iterator[Tuple[int, Source, Sequence[Entry]]]:
    for idx, source in enumerate(group):
        try:
            entries = source.get_entries(context)
        except Exception as e:
            log.exception("%s", f"SOURCE FAULT -- {source.name} :: {e}")
        else:
            yield idx, source, entries


def priority_bonus(
    source: Source, group_size: int, idx: int, priority_weight: float
) -> float:
    if (priority := source.get_config().priority) is not None:
        return priority
    else:
        return (group_size - idx) * priority_weight


def _debug_log(group_index: int, entries: Sequence[Entry]) -> None:
    rows = tuple(
        (entry.source, entry.word, entry.score, entry.offset)
        for entry in islice(entries, 20)
    )
    log.debug("%s", f"GROUP -- {group_index}\n{pformat(rows)}")


def aggregate(
    context: Context,
    sources: Iterable[Source],
    comparators: Sequence[Comparator],
    priority_weight: float,
) -> Optional[Aggregation]:
    with timeit("AGGREGATE"):
        for group_index, group in _groups(sources):
            fetched = tuple(_fetch(context, group=group))
            by_symbol = any(
                source.is_triggered_by_symbol and entries
                for _, source, entries in fetched
            )

            acc: MutableSequence[Entry] = []
            offset = context.col
            for idx, source, entries in fetched:
                if source.offset > offset:
                    continue
                elif by_symbol and not source.is_triggered_by_symbol:
                    continue
                else:
                    config = source.get_config()
                    bonus = priority_bonus(
                        source,
                        group_size=len(group),
                        idx=idx,
                        priority_weight=priority_weight,
                    )
                    limited = (
                        entries[: config.max_item_count]
                        if config.max_item_count is not None
                        else entries
                    )
                    for entry in limited:
                        entry.score += bonus
                        acc.append(entry)
                        offset = min(offset, entry.offset)

            if acc:
                ordered = sort_entries(comparators, entries=acc)
                if DEBUG_METRICS:
                    _debug_log(group_index, entries=ordered)
                return Aggregation(
                    group_index=group_index, offset=offset, entries=ordered
                )
        else:
            return None


def counts(aggregation: Optional[Aggregation]) -> Mapping[str, int]:
    acc: MutableMapping[str, int] = {}
    for entry in aggregation.entries if aggregation else ():
        acc[entry.source] = acc.get(entry.source, 0) + 1
    return acc
