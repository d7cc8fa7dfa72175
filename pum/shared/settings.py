from dataclasses import dataclass
from typing import Optional, Sequence

from .types import PreselectMode


@dataclass(frozen=True)
class SourceConfig:
    name: str
    group_index: int = 0
    priority: Optional[float] = None
    max_item_count: Optional[int] = None


@dataclass(frozen=True)
class SortingConfig:
    priority_weight: float
    comparators: Sequence[str]


@dataclass(frozen=True)
class DocumentationConfig:
    enabled: bool
    delay: float
    resolve_timeout: float
    max_width: int
    max_height: int
    border: Sequence[str]


@dataclass(frozen=True)
class ConfirmationConfig:
    commit_characters: bool


@dataclass(frozen=True)
class GhostText:
    enabled: bool
    highlight_group: str


@dataclass(frozen=True)
class MenuConfig:
    native: bool
    ghost_text: GhostText


@dataclass(frozen=True)
class Settings:
    preselect: PreselectMode
    sorting: SortingConfig
    documentation: DocumentationConfig
    confirmation: ConfirmationConfig
    menu: MenuConfig
    sources: Sequence[SourceConfig]
