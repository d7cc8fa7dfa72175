from typing import Optional, Protocol, Sequence

from ..shared.settings import SourceConfig
from ..shared.types import Context, Entry


class Source(Protocol):
    @property
    def name(self) -> str: ...

    @property
    def offset(self) -> int: ...

    @property
    def is_triggered_by_symbol(self) -> bool: ...

    def get_config(self) -> SourceConfig: ...

    def get_entries(self, context: Context) -> Sequence[Entry]: ...


class ListSource:
    """
    Holds what a provider produced for the current cycle
    """

    def __init__(self, config: SourceConfig) -> None:
        self._config = config
        self._entries: Sequence[Entry] = ()
        self._offset = 0
        self._by_symbol = False

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def is_triggered_by_symbol(self) -> bool:
        return self._by_symbol

    def get_config(self) -> SourceConfig:
        return self._config

    def complete(
        self,
        context: Context,
        entries: Sequence[Entry],
        offset: Optional[int] = None,
        triggered_by_symbol: bool = False,
    ) -> None:
        for entry in entries:
            entry.source = entry.source or self.name
        self._entries = tuple(entries)
        self._by_symbol = triggered_by_symbol
        self._offset = (
            offset
            if offset is not None
            else min((entry.offset for entry in entries), default=context.col)
        )

    def reset(self) -> None:
        self._entries, self._offset, self._by_symbol = (), 0, False

    def get_entries(self, context: Context) -> Sequence[Entry]:
        return self._entries
