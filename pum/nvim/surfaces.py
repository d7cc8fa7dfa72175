from contextlib import suppress
from dataclasses import dataclass
from html import unescape
from itertools import chain
from math import ceil
from os import linesep
from typing import (
    Any,
    Callable,
    Iterator,
    MutableMapping,
    MutableSet,
    Optional,
    Sequence,
    Tuple,
)
from unicodedata import east_asian_width

from pynvim import Nvim
from pynvim.api.buffer import Buffer
from pynvim.api.common import NvimError
from pynvim.api.window import Window

from ..server.entries_view import EntriesInfo
from ..server.surfaces import KeyHandler
from ..shared.logging import log, suppress_and_log
from ..shared.settings import DocumentationConfig, GhostText
from ..shared.types import Doc, Entry

KEYMAP_EVENT = "PumKeymap"

_NS = "pum_ghost_text"


@dataclass(frozen=True)
class _Pos:
    row: int
    col: int
    height: int
    width: int


def _clamp(hi: int) -> Callable[[int], int]:
    return lambda i: max(1, min(i, hi))


def display_width(text: str) -> int:
    return sum(2 if east_asian_width(char) in {"W", "F"} else 1 for char in text)


def border_w_h(border: Sequence[str]) -> Tuple[int, int]:
    if len(border) != 8:
        return 0, 0
    else:
        _, top, _, right, _, bottom, _, left = border
        return bool(left) + bool(right), bool(top) + bool(bottom)


def preprocess(doc: Doc) -> Doc:
    sep = "```"
    if doc.syntax == "markdown":
        esc_text = unescape(doc.text)
        split = esc_text.splitlines()

        if (
            split
            and split[0].startswith(sep)
            and split[-1].startswith(sep)
            and not sum(line.startswith(sep) for line in split[1:-1])
        ):
            text = linesep.join(split[1:-1])
            ft = split[0][len(sep) :].strip()
            return Doc(text=text, syntax=ft if ft.isalnum() else doc.syntax)
        else:
            return Doc(text=esc_text, syntax=doc.syntax)
    else:
        return doc


def positions(
    config: DocumentationConfig,
    info: EntriesInfo,
    lines: Sequence[str],
    screen: Tuple[int, int],
) -> Iterator[_Pos]:
    """
    East of the menu first, then west
    """

    scr_width, scr_height = screen
    top, left, right = info.row, info.col, info.col + info.width + info.scrollbar
    dls = tuple(display_width(line) for line in lines)
    limit_w = _clamp(min(config.max_width, max(chain((0,), dls))))
    limit_h = _clamp(
        min(config.max_height, sum(ceil((dl or 1) / config.max_width) for dl in dls))
    )
    b_width, _ = border_w_h(config.border)
    height = limit_h(scr_height - top - 2)

    e_width = limit_w(scr_width - right - 2 - b_width)
    if right + 1 + e_width + b_width <= scr_width:
        yield _Pos(row=top, col=right + 1, height=height, width=e_width)

    w_width = limit_w(left - 2 - b_width)
    w_col = left - 2 - w_width - b_width
    if w_col >= 0:
        yield _Pos(row=top, col=w_col, height=height, width=w_width)


class NvimDocs:
    """
    Floating window beside the menu
    """

    def __init__(self, nvim: Nvim, config: DocumentationConfig) -> None:
        self._nvim = nvim
        self._config = config
        self._win: Optional[Window] = None

    def _screen(self) -> Tuple[int, int]:
        return int(self._nvim.options["columns"]), int(self._nvim.options["lines"])

    def _win_opts(self, lines: Sequence[str], info: Optional[EntriesInfo]) -> Any:
        base = {
            "anchor": "NW",
            "style": "minimal",
            "noautocmd": True,
            "focusable": False,
            "border": list(self._config.border),
        }
        if info:
            for pos in positions(
                self._config, info=info, lines=lines, screen=self._screen()
            ):
                return {
                    **base,
                    "relative": "editor",
                    "row": pos.row,
                    "col": pos.col,
                    "height": pos.height,
                    "width": pos.width,
                }
            else:
                return None
        else:
            width = max(chain((1,), (display_width(line) for line in lines)))
            return {
                **base,
                "relative": "cursor",
                "row": 1,
                "col": 0,
                "height": max(1, min(self._config.max_height, len(lines))),
                "width": min(self._config.max_width, width),
            }

    def open(self, entry: Entry, info: Optional[EntriesInfo]) -> None:
        self.close()
        if not entry.documentation:
            return

        doc = preprocess(entry.documentation)
        lines = doc.text.splitlines()
        if opts := self._win_opts(lines, info=info):
            api = self._nvim.api
            buf: Buffer = api.create_buf(False, True)
            api.buf_set_lines(buf, 0, -1, True, lines)
            api.set_option_value("bufhidden", "wipe", {"buf": buf.handle})
            api.set_option_value("syntax", doc.syntax, {"buf": buf.handle})
            self._win = api.open_win(buf, False, opts)
            api.set_option_value("wrap", True, {"win": self._win.handle})
        else:
            log.debug("%s", f"NO ROOM -- {entry}")

    def close(self) -> None:
        if win := self._win:
            self._win = None
            if self._nvim.api.win_is_valid(win):
                self._nvim.api.win_close(win, True)

    def scroll(self, delta: int) -> None:
        if delta and (win := self._win) and self._nvim.api.win_is_valid(win):
            # <c-e> / <c-y>
            key = "\x05" if delta > 0 else "\x19"
            self._nvim.funcs.win_execute(win.handle, f"normal! {abs(delta)}{key}")


class NvimGhostText:
    """
    Rest of the active word, drawn after the cursor as virtual text
    """

    def __init__(self, nvim: Nvim, config: GhostText) -> None:
        self._nvim = nvim
        self._config = config
        self._ns = nvim.api.create_namespace(_NS)

    def show(self, entry: Entry) -> None:
        self.hide()
        row, col = self._nvim.current.window.cursor
        line: str = self._nvim.current.line
        typed = line.encode("UTF-8")[entry.offset : col].decode("UTF-8", "ignore")

        if entry.word.startswith(typed) and (rest := entry.word[len(typed) :]):
            overlay, *_ = rest.splitlines() or ("",)
            self._nvim.api.buf_set_extmark(
                self._nvim.current.buffer,
                self._ns,
                row - 1,
                col,
                {
                    "virt_text": [[overlay, self._config.highlight_group]],
                    "virt_text_pos": "overlay",
                    "hl_mode": "combine",
                },
            )

    def hide(self) -> None:
        self._nvim.api.buf_clear_namespace(self._nvim.current.buffer, self._ns, 0, -1)


_LUA_MAP = """
(function(buf, mode, lhs, chan, event, char)
  vim.api.nvim_buf_set_keymap(buf, mode, lhs, "", {
    expr = true,
    noremap = true,
    nowait = true,
    callback = function()
      local ok, ret =
        pcall(vim.rpcrequest, chan, event, mode, vim.fn.char2nr(char))
      if ok and type(ret) == "string" then
        return ret
      else
        return char
      end
    end
  })
end)(...)
"""


class NvimKeymap:
    """
    Buffer local `<expr>` insert mappings, answered over `rpcrequest`

    Vim blocks on `(mode, ord(char))` until `request` returns the text to insert,
    so typed keys keep their order. When the host is gone the char is inserted as is.
    """

    def __init__(self, nvim: Nvim) -> None:
        self._nvim = nvim
        self._handlers: MutableMapping[Tuple[str, str], KeyHandler] = {}
        self._mapped: MutableSet[Tuple[int, str, str]] = set()

    def _lhs(self, char: str) -> str:
        specials = {"<": "<lt>", "|": "<Bar>", "\\": "<Bslash>", " ": "<Space>"}
        return specials.get(char, char)

    def listen(self, mode: str, char: str, handler: KeyHandler) -> None:
        self._handlers[(mode, char)] = handler
        buf: Buffer = self._nvim.current.buffer
        if (buf.number, mode, char) not in self._mapped:
            self._nvim.exec_lua(
                _LUA_MAP,
                buf.number,
                mode,
                self._lhs(char),
                self._nvim.channel_id,
                KEYMAP_EVENT,
                char,
            )
            self._mapped.add((buf.number, mode, char))

    def request(self, mode: str, code: int) -> str:
        char = chr(code)
        if handler := self._handlers.get((mode, char)):
            with suppress_and_log():
                handler(char)
        return char

    def clear(self) -> None:
        for bufnr, mode, char in self._mapped:
            with suppress(NvimError):
                self._nvim.api.buf_del_keymap(bufnr, mode, self._lhs(char))
        self._mapped.clear()
        self._handlers.clear()
