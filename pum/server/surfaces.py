from typing import Callable, Optional, Protocol

from ..shared.types import Entry
from .entries_view import EntriesInfo

KeyHandler = Callable[[str], None]


class DocumentationSurface(Protocol):
    def open(self, entry: Entry, info: Optional[EntriesInfo]) -> None: ...

    def close(self) -> None: ...

    def scroll(self, delta: int) -> None: ...


class PreviewSurface(Protocol):
    def show(self, entry: Entry) -> None: ...

    def hide(self) -> None: ...


class KeymapListener(Protocol):
    def listen(self, mode: str, char: str, handler: KeyHandler) -> None: ...

    def clear(self) -> None: ...
