from asyncio import Task, create_task, shield
from dataclasses import dataclass
from enum import Enum
from itertools import count
from typing import Awaitable, Callable, Iterator, Optional, Sequence, Tuple

from .logging import log

# (row, col), both 0 based
Cursor = Tuple[int, int]


class ContextReason(Enum):
    auto = "auto"
    manual = "manual"
    trigger_only = "triggerOnly"
    none = "none"


class SelectBehavior(Enum):
    insert = "insert"
    select = "select"


class PreselectMode(Enum):
    item = "item"
    none = "none"


@dataclass(frozen=True)
class Context:
    """
    |...        line_before           🐭          ...|
    """

    cursor: Cursor
    line_before: str = ""
    reason: ContextReason = ContextReason.auto
    filetype: str = ""

    @property
    def col(self) -> int:
        _, col = self.cursor
        return col

    @property
    def manual(self) -> bool:
        return self.reason is ContextReason.manual


@dataclass(frozen=True)
class Doc:
    text: str
    syntax: str


@dataclass(frozen=True)
class Edit:
    new_text: str


@dataclass(frozen=True)
class RangeEdit(Edit):
    """
    End exclusve, like LSP
    """

    begin: Cursor
    end: Cursor


@dataclass(frozen=True)
class Detail:
    doc: Optional[Doc] = None
    additional_edits: Sequence[RangeEdit] = ()
    commit_characters: Sequence[str] = ()


class ResolutionFault(Exception):
    ...


Resolver = Callable[["Entry"], Awaitable[Optional[Detail]]]

_IDS = count()


def _retrieve(task: "Task[None]") -> None:
    # consumes faults no waiter is left to see
    if not task.cancelled() and (e := task.exception()):
        log.debug("%s", f"RESOLVE DONE -- {e}")


class Entry:
    """
    One candidate, alive for a single open / close cycle of the menu

    `score` is bumped in place by the aggregator,
    `detail` is filled in by `resolve()`.
    """

    def __init__(
        self,
        word: str,
        source: str = "",
        label: Optional[str] = None,
        kind: str = "",
        sort_text: Optional[str] = None,
        score: float = 0,
        offset: int = 0,
        exact: bool = False,
        preselect: bool = False,
        commit_characters: Sequence[str] = (),
        doc: Optional[Doc] = None,
        resolver: Optional[Resolver] = None,
    ) -> None:
        self.id = next(_IDS)
        self.word, self.source = word, source
        self.label = word if label is None else label
        self.kind, self.sort_text = kind, sort_text
        self.score, self.offset = score, offset
        self.exact, self.preselect = exact, preselect
        self.doc = doc

        self._commit_characters = tuple(commit_characters)
        self._resolver = resolver
        self._resolving: Optional[Task] = None

        self.detail: Optional[Detail] = None
        self.resolved = resolver is None

    def __repr__(self) -> str:
        return f"Entry({self.source}:{self.word}, score={self.score})"

    @property
    def documentation(self) -> Optional[Doc]:
        if self.detail and self.detail.doc:
            return self.detail.doc
        else:
            return self.doc

    @property
    def commit_characters(self) -> Sequence[str]:
        def cont() -> Iterator[str]:
            seen = set()
            extra = self.detail.commit_characters if self.detail else ()
            for char in (*self._commit_characters, *extra):
                if char not in seen:
                    seen.add(char)
                    yield char

        return tuple(cont())

    async def _resolve(self) -> None:
        if not self._resolver:
            raise ResolutionFault(self.word)
        try:
            detail = await self._resolver(self)
        except Exception as e:
            self._resolving = None
            raise ResolutionFault(self.word) from e
        else:
            self.detail = detail or Detail()
            self.resolved = True

    async def resolve(self) -> "Entry":
        if self.resolved:
            return self
        else:
            if not self._resolving or self._resolving.cancelled():
                self._resolving = create_task(self._resolve())
                self._resolving.add_done_callback(_retrieve)
            await shield(self._resolving)
            return self
