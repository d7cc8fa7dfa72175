from asyncio import Task
from enum import Enum, auto
from typing import Callable, Iterable, Optional, Sequence, Tuple

from ..consts import INSERT_MODE
from ..shared.aio import AsyncDedup, AsyncThrottle, with_timeout
from ..shared.event import Event, Subscription
from ..shared.logging import log, suppress_and_log
from ..shared.settings import Settings
from ..shared.types import Context, Entry, ResolutionFault, SelectBehavior
from .aggregator import Aggregation, aggregate, counts
from .comparators import Comparator, RecentlyUsed
from .entries_view import CHANGE, EntriesView
from .sources import Source
from .surfaces import DocumentationSurface, KeymapListener, PreviewSurface

KEYMAP = "keymap"

CommitPolicy = Callable[[Sequence[str]], Sequence[str]]


class ViewState(Enum):
    closed = auto()
    open_no_selection = auto()
    open_selected = auto()
    resolving = auto()


def all_chars(chars: Sequence[str]) -> Sequence[str]:
    return chars


class ViewOrchestrator:
    def __init__(
        self,
        settings: Settings,
        native: EntriesView,
        custom: EntriesView,
        docs: DocumentationSurface,
        preview: PreviewSurface,
        keymap: KeymapListener,
        comparators: Sequence[Comparator],
        recents: RecentlyUsed,
        commit_characters: CommitPolicy = all_chars,
    ) -> None:
        self.settings = settings
        self.event = Event()
        self._native, self._custom = native, custom
        self._docs, self._preview, self._keymap = docs, preview, keymap
        self._comparators, self._recents = comparators, recents
        self._commit_characters = commit_characters

        self._resolve_dedup = AsyncDedup()
        self._resolve_docs = self._resolve_dedup.wrap(
            self._resolve, cont=self._show_docs
        )
        self._on_entry_change = AsyncThrottle(
            self._entry_changed, delay=settings.documentation.delay
        )
        self._bound: Optional[Tuple[EntriesView, Subscription]] = None
        self._resolving: Optional[Task] = None
        self._entries_view()

    def _entries_view(self) -> EntriesView:
        view = self._native if self.settings.menu.native else self._custom
        if self._bound:
            prev, sub = self._bound
            if prev is view:
                return view
            else:
                prev.event.off(sub)
                self._bound = None
                prev.close()

        assert self._bound is None
        view.preselect = self.settings.preselect
        sub = view.event.on(CHANGE, self._changed)
        self._bound = (view, sub)
        return view

    def _changed(self) -> None:
        self._resolve_dedup.invalidate()
        self._on_entry_change.delay = self.settings.documentation.delay
        self._on_entry_change.stop()
        self._on_entry_change()

    @property
    def state(self) -> ViewState:
        if not self.visible():
            return ViewState.closed
        elif self._resolving and not self._resolving.done():
            return ViewState.resolving
        elif self.get_selected_entry():
            return ViewState.open_selected
        else:
            return ViewState.open_no_selection

    def ready(self) -> bool:
        return self._entries_view().ready()

    def on_change(self) -> None:
        self._entries_view().on_change()

    def open(
        self, context: Context, sources: Iterable[Source]
    ) -> Optional[Aggregation]:
        aggregation = aggregate(
            context,
            sources=sources,
            comparators=self._comparators,
            priority_weight=self.settings.sorting.priority_weight,
        )
        if aggregation:
            msg = f"OPEN -- {aggregation.group_index} {counts(aggregation)}"
            log.debug("%s", msg)
            self._entries_view().open(aggregation.offset, aggregation.entries)
        else:
            self.close()
        return aggregation

    def _dismiss(self) -> None:
        self._on_entry_change.stop()
        self._resolve_dedup.invalidate()
        self._keymap.clear()
        self._docs.close()
        self._preview.hide()

    def close(self) -> None:
        self._entries_view().close()
        self._dismiss()

    def abort(self) -> None:
        self._entries_view().abort()
        self._dismiss()

    def visible(self) -> bool:
        return self._entries_view().visible()

    def scroll_docs(self, delta: int) -> None:
        self._docs.scroll(delta)

    def select_next_item(
        self, behavior: SelectBehavior = SelectBehavior.insert
    ) -> None:
        self._entries_view().select_next_item(behavior)

    def select_prev_item(
        self, behavior: SelectBehavior = SelectBehavior.insert
    ) -> None:
        self._entries_view().select_prev_item(behavior)

    def get_first_entry(self) -> Optional[Entry]:
        return self._entries_view().get_first_entry()

    def get_selected_entry(self) -> Optional[Entry]:
        return self._entries_view().get_selected_entry()

    def get_active_entry(self) -> Optional[Entry]:
        return self._entries_view().get_active_entry()

    def confirmed(self, entry: Entry) -> None:
        self._recents.add_entry(entry)

    def _chars(self, entry: Entry) -> Sequence[str]:
        if self.settings.confirmation.commit_characters:
            return self._commit_characters(entry.commit_characters)
        else:
            return ()

    def _on_key(self, char: str) -> None:
        entry = self.get_selected_entry()
        if self.visible() and entry and char in self._chars(entry):
            self.event.emit(KEYMAP, char, entry)

    def _listen(self, entry: Entry) -> None:
        for char in self._chars(entry):
            self._keymap.listen(INSERT_MODE, char, self._on_key)

    async def _resolve(self, entry: Entry) -> Tuple[Entry, bool]:
        try:
            ret = await with_timeout(
                self.settings.documentation.resolve_timeout, entry.resolve()
            )
        except ResolutionFault as e:
            log.warning("%s", f"RESOLVE FAULT -- {e} :: {e.__cause__}")
            return entry, False
        else:
            return entry, ret is not None and entry.resolved

    def _show_docs(self, resolution: Tuple[Entry, bool]) -> None:
        entry, resolved = resolution
        if not self.visible() or self.get_selected_entry() is not entry:
            return

        with suppress_and_log():
            self._listen(entry)
            if (
                resolved
                and self.settings.documentation.enabled
                and entry.documentation
            ):
                self._docs.open(entry, self._entries_view().info())
            else:
                self._docs.close()

    def _entry_changed(self) -> None:
        if not self.visible():
            return

        entry = self.get_selected_entry()
        if entry:
            self._listen(entry)
            self._resolving = self._resolve_docs(entry)
        else:
            self._docs.close()

        preview = entry or self.get_first_entry()
        if preview and self.settings.menu.ghost_text.enabled:
            self._preview.show(preview)
        else:
            self._preview.hide()
