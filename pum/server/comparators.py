from enum import IntEnum
from functools import cmp_to_key
from itertools import count
from typing import (
    Any,
    Callable,
    Iterable,
    Mapping,
    MutableMapping,
    Optional,
    Sequence,
    Tuple,
)

from ..shared.types import Entry


class Ordering(IntEnum):
    less = -1
    unknown = 0
    greater = 1


Comparator = Callable[[Entry, Entry], Ordering]

# LSP CompletionItemKind, 1 based
KINDS = (
    "Text",
    "Method",
    "Function",
    "Constructor",
    "Field",
    "Variable",
    "Class",
    "Interface",
    "Module",
    "Property",
    "Unit",
    "Value",
    "Enum",
    "Keyword",
    "Snippet",
    "Color",
    "File",
    "Reference",
    "Folder",
    "EnumMember",
    "Constant",
    "Struct",
    "Event",
    "Operator",
    "TypeParameter",
)
_KIND_RANKS: Mapping[str, int] = {kind: idx for idx, kind in enumerate(KINDS, start=1)}


def _cmp(lhs: Any, rhs: Any) -> Ordering:
    if lhs < rhs:
        return Ordering.less
    elif lhs > rhs:
        return Ordering.greater
    else:
        return Ordering.unknown


def tristate(pred: Callable[[Entry, Entry], Optional[bool]]) -> Comparator:
    """
    True -> e1 first, False -> e2 first, None -> no opinion
    """

    def cont(e1: Entry, e2: Entry) -> Ordering:
        ret = pred(e1, e2)
        if ret is None:
            return Ordering.unknown
        else:
            return Ordering.less if ret else Ordering.greater

    return cont


def offset(e1: Entry, e2: Entry) -> Ordering:
    return _cmp(e1.offset, e2.offset)


def exact(e1: Entry, e2: Entry) -> Ordering:
    if e1.exact != e2.exact:
        return Ordering.less if e1.exact else Ordering.greater
    else:
        return Ordering.unknown


def score(e1: Entry, e2: Entry) -> Ordering:
    return _cmp(e2.score, e1.score)


def _kind_rank(kind: str) -> int:
    if not kind or kind == "Text":
        return 100
    else:
        return _KIND_RANKS.get(kind, 99)


def kind(e1: Entry, e2: Entry) -> Ordering:
    k1, k2 = _kind_rank(e1.kind), _kind_rank(e2.kind)
    if k1 == k2:
        return Ordering.unknown
    elif e1.kind == "Snippet":
        return Ordering.less
    elif e2.kind == "Snippet":
        return Ordering.greater
    else:
        return _cmp(k1, k2)


def sort_text(e1: Entry, e2: Entry) -> Ordering:
    if e1.sort_text is not None and e2.sort_text is not None:
        return _cmp(e1.sort_text.casefold(), e2.sort_text.casefold())
    else:
        return Ordering.unknown


def length(e1: Entry, e2: Entry) -> Ordering:
    return _cmp(len(e1.word), len(e2.word))


def order(e1: Entry, e2: Entry) -> Ordering:
    return _cmp(e1.id, e2.id)


class RecentlyUsed:
    def __init__(self) -> None:
        self._clock = count()
        self._records: MutableMapping[str, int] = {}

    def add_entry(self, entry: Entry) -> None:
        self._records[entry.word] = next(self._clock)

    def __call__(self, e1: Entry, e2: Entry) -> Ordering:
        t1, t2 = self._records.get(e1.word), self._records.get(e2.word)
        if t1 is not None and t2 is not None:
            return _cmp(t2, t1)
        elif t1 is not None:
            return Ordering.less
        elif t2 is not None:
            return Ordering.greater
        else:
            return Ordering.unknown


def builtins(recents: RecentlyUsed) -> Mapping[str, Comparator]:
    return {
        "offset": offset,
        "exact": exact,
        "score": score,
        "recently_used": recents,
        "kind": kind,
        "sort_text": sort_text,
        "length": length,
        "order": order,
    }


def chain(comparators: Iterable[Comparator]) -> Comparator:
    fns = tuple(comparators)

    def cont(e1: Entry, e2: Entry) -> Ordering:
        for fn in fns:
            if (diff := fn(e1, e2)) is not Ordering.unknown:
                return diff
        else:
            return Ordering.unknown

    return cont


def sort_entries(
    comparators: Iterable[Comparator], entries: Iterable[Entry]
) -> Sequence[Entry]:
    """
    First decisive comparator wins,
    when every comparator abstains, buffer position decides
    """

    cmp = chain(comparators)

    def key_by(lhs: Tuple[int, Entry], rhs: Tuple[int, Entry]) -> int:
        (i1, e1), (i2, e2) = lhs, rhs
        if (diff := cmp(e1, e2)) is not Ordering.unknown:
            return diff
        else:
            return i1 - i2

    ordered = sorted(enumerate(entries), key=cmp_to_key(key_by))
    return tuple(entry for _, entry in ordered)
