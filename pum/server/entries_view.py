from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Protocol, Sequence

from ..shared.event import Event
from ..shared.types import Entry, PreselectMode, SelectBehavior

CHANGE = "change"


@dataclass(frozen=True)
class EntriesInfo:
    row: int
    col: int
    width: int
    height: int
    scrollbar: bool


class PumRenderer(Protocol):
    """
    The editor's own popup menu, it owns the selection while shown
    """

    def ready(self) -> bool: ...

    def complete(self, offset: int, entries: Sequence[Entry]) -> None: ...

    def select(self, index: int, insert: bool) -> None: ...

    def selected(self) -> int: ...

    def abort(self) -> None: ...

    def info(self) -> Optional[EntriesInfo]: ...


class MenuRenderer(Protocol):
    def ready(self) -> bool: ...

    def open(self, offset: int, entries: Sequence[Entry]) -> None: ...

    def draw(self, index: int, insert: bool) -> None: ...

    def close(self) -> None: ...

    def abort(self) -> None: ...

    def info(self) -> Optional[EntriesInfo]: ...


class EntriesView(ABC):
    def __init__(self, preselect: PreselectMode) -> None:
        self.event = Event()
        self.preselect = preselect
        self.offset = -1
        self.entries: Sequence[Entry] = ()
        self._selected: Optional[int] = None

    @abstractmethod
    def ready(self) -> bool: ...

    @abstractmethod
    def on_change(self) -> None: ...

    @abstractmethod
    def info(self) -> Optional[EntriesInfo]: ...

    @abstractmethod
    def get_active_entry(self) -> Optional[Entry]: ...

    @abstractmethod
    def _render_open(self) -> None: ...

    @abstractmethod
    def _render_select(self, index: Optional[int], insert: bool) -> None: ...

    @abstractmethod
    def _render_close(self) -> None: ...

    @abstractmethod
    def _render_abort(self) -> None: ...

    def visible(self) -> bool:
        return bool(self.entries)

    def _reselect(
        self, prev: Optional[Entry], entries: Iterable[Entry]
    ) -> Optional[int]:
        preselected: Optional[int] = None
        for idx, entry in enumerate(entries):
            if prev and (entry.source, entry.word) == (prev.source, prev.word):
                return idx
            elif (
                preselected is None
                and self.preselect is PreselectMode.item
                and entry.preselect
            ):
                preselected = idx
        else:
            return preselected

    def open(self, offset: int, entries: Sequence[Entry]) -> None:
        prev = self.get_selected_entry()
        self.offset, self.entries = offset, tuple(entries)
        self._selected = self._reselect(prev, entries=self.entries)
        self._render_open()
        self.event.emit(CHANGE)

    def _reset(self) -> None:
        self.offset, self.entries, self._selected = -1, (), None

    def close(self) -> None:
        if self.visible():
            self._render_close()
            self._reset()
            self.event.emit(CHANGE)

    def abort(self) -> None:
        if self.visible():
            self._render_abort()
            self._reset()
            self.event.emit(CHANGE)

    def _select(self, slot: int, behavior: SelectBehavior) -> None:
        # slot 0 is the original text, slot n + 1 is entries[n]
        self._selected = slot - 1 if slot else None
        self._render_select(self._selected, insert=behavior is SelectBehavior.insert)
        self.event.emit(CHANGE)

    def _slot(self) -> int:
        return 0 if self._selected is None else self._selected + 1

    def select_next_item(self, behavior: SelectBehavior) -> None:
        if self.visible():
            slot = (self._slot() + 1) % (len(self.entries) + 1)
            self._select(slot, behavior=behavior)

    def select_prev_item(self, behavior: SelectBehavior) -> None:
        if self.visible():
            slot = (self._slot() - 1) % (len(self.entries) + 1)
            self._select(slot, behavior=behavior)

    def get_first_entry(self) -> Optional[Entry]:
        return self.entries[0] if self.entries else None

    def get_selected_entry(self) -> Optional[Entry]:
        if self.visible() and self._selected is not None:
            return self.entries[self._selected]
        else:
            return None


class NativeEntriesView(EntriesView):
    def __init__(self, preselect: PreselectMode, renderer: PumRenderer) -> None:
        super().__init__(preselect)
        self._renderer = renderer

    def ready(self) -> bool:
        return self._renderer.ready()

    def on_change(self) -> None:
        if self.visible():
            idx = self._renderer.selected()
            selected = idx if 0 <= idx < len(self.entries) else None
            if selected != self._selected:
                self._selected = selected
                self.event.emit(CHANGE)

    def info(self) -> Optional[EntriesInfo]:
        return self._renderer.info() if self.visible() else None

    def get_active_entry(self) -> Optional[Entry]:
        return self.get_selected_entry()

    def _render_open(self) -> None:
        self._renderer.complete(self.offset, self.entries)
        if self._selected is not None:
            self._renderer.select(self._selected, insert=False)

    def _render_select(self, index: Optional[int], insert: bool) -> None:
        self._renderer.select(-1 if index is None else index, insert=insert)

    def _render_close(self) -> None:
        self._renderer.complete(self.offset, ())

    def _render_abort(self) -> None:
        self._renderer.abort()


class CustomEntriesView(EntriesView):
    def __init__(self, preselect: PreselectMode, renderer: MenuRenderer) -> None:
        super().__init__(preselect)
        self._renderer = renderer

    def ready(self) -> bool:
        return self._renderer.ready()

    def on_change(self) -> None:
        if self.visible():
            self._renderer.draw(
                -1 if self._selected is None else self._selected, insert=False
            )

    def info(self) -> Optional[EntriesInfo]:
        return self._renderer.info() if self.visible() else None

    def get_active_entry(self) -> Optional[Entry]:
        return self.get_selected_entry() or self.get_first_entry()

    def _render_open(self) -> None:
        self._renderer.open(self.offset, self.entries)
        self._renderer.draw(
            -1 if self._selected is None else self._selected, insert=False
        )

    def _render_select(self, index: Optional[int], insert: bool) -> None:
        self._renderer.draw(-1 if index is None else index, insert=insert)

    def _render_close(self) -> None:
        self._renderer.close()

    def _render_abort(self) -> None:
        self._renderer.abort()
