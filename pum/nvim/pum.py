from contextlib import suppress
from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional, Sequence

from pynvim import Nvim
from pynvim.api.common import NvimError

from ..server.entries_view import EntriesInfo
from ..shared.types import Entry


@dataclass(frozen=True)
class VimCompletion:
    user_data: int
    word: str
    abbr: str
    menu: str
    kind: str = ""
    equal: int = 1
    dup: int = 1
    empty: int = 1


def _vcmp(entry: Entry) -> VimCompletion:
    return VimCompletion(
        user_data=entry.id,
        word=entry.word,
        abbr=entry.label,
        menu=f"[{entry.source}]" if entry.source else "",
        kind=entry.kind,
    )


def _info(pos: Mapping[str, Any]) -> Optional[EntriesInfo]:
    if not pos:
        return None
    else:
        return EntriesInfo(
            row=int(pos["row"]),
            col=int(pos["col"]),
            width=int(pos["width"]),
            height=int(pos["height"]),
            scrollbar=bool(pos["scrollbar"]),
        )


class NvimPum:
    def __init__(self, nvim: Nvim) -> None:
        self._nvim = nvim

    def ready(self) -> bool:
        return not self._nvim.funcs.pumvisible()

    def complete(self, offset: int, entries: Sequence[Entry]) -> None:
        if offset < 0:
            _, col = self._nvim.current.window.cursor
        else:
            col = offset
        items = tuple(asdict(_vcmp(entry)) for entry in entries)
        with suppress(NvimError):
            self._nvim.funcs.complete(col + 1, items)

    def select(self, index: int, insert: bool) -> None:
        with suppress(NvimError):
            self._nvim.api.select_popupmenu_item(index, insert, False, {})

    def selected(self) -> int:
        info = self._nvim.funcs.complete_info(["selected"])
        return int(info.get("selected", -1))

    def abort(self) -> None:
        with suppress(NvimError):
            self._nvim.api.select_popupmenu_item(-1, True, True, {})

    def info(self) -> Optional[EntriesInfo]:
        return _info(self._nvim.funcs.pum_getpos())
