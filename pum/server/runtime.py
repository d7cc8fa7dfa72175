from typing import Any, Mapping, Optional, Sequence

from pydantic import TypeAdapter
from yaml import safe_load

from ..consts import CONFIG_YML
from ..shared.settings import Settings, SourceConfig
from .comparators import Comparator, RecentlyUsed, builtins
from .entries_view import (
    CustomEntriesView,
    MenuRenderer,
    NativeEntriesView,
    PumRenderer,
)
from .sources import ListSource
from .surfaces import DocumentationSurface, KeymapListener, PreviewSurface
from .view import CommitPolicy, ViewOrchestrator, all_chars


class ValidationError(Exception): ...


_DECODER = TypeAdapter(Settings)


def merge(lhs: Any, rhs: Any) -> Any:
    if isinstance(lhs, Mapping) and isinstance(rhs, Mapping):
        acc = {**lhs}
        for key, val in rhs.items():
            acc[key] = merge(acc[key], val) if key in acc else val
        return acc
    else:
        return rhs


def load_settings(user_config: Optional[Mapping[str, Any]] = None) -> Settings:
    yml = safe_load(CONFIG_YML.read_text("UTF-8"))
    merged = merge(yml, user_config or {})
    config = _DECODER.validate_python(merged)

    if config.documentation.delay < 0:
        raise ValidationError("documentation.delay < 0")
    if config.documentation.resolve_timeout <= 0:
        raise ValidationError("documentation.resolve_timeout <= 0")
    if config.sorting.priority_weight < 0:
        raise ValidationError("sorting.priority_weight < 0")
    if unknown := {*config.sorting.comparators} - {*builtins(RecentlyUsed())}:
        raise ValidationError(f"sorting.comparators :: {sorted(unknown)}")
    for source in config.sources:
        if source.max_item_count is not None and source.max_item_count < 0:
            raise ValidationError(f"sources.{source.name}.max_item_count < 0")

    return config


def comparators(settings: Settings, recents: RecentlyUsed) -> Sequence[Comparator]:
    table = builtins(recents)
    return tuple(table[name] for name in settings.sorting.comparators)


def source_config(settings: Settings, name: str) -> SourceConfig:
    for config in settings.sources:
        if config.name == name:
            return config
    else:
        return SourceConfig(name=name)


def new_source(settings: Settings, name: str) -> ListSource:
    return ListSource(source_config(settings, name=name))


def orchestrator(
    settings: Settings,
    pum: PumRenderer,
    menu: MenuRenderer,
    docs: DocumentationSurface,
    preview: PreviewSurface,
    keymap: KeymapListener,
    commit_characters: CommitPolicy = all_chars,
) -> ViewOrchestrator:
    recents = RecentlyUsed()
    return ViewOrchestrator(
        settings,
        native=NativeEntriesView(settings.preselect, renderer=pum),
        custom=CustomEntriesView(settings.preselect, renderer=menu),
        docs=docs,
        preview=preview,
        keymap=keymap,
        comparators=comparators(settings, recents=recents),
        recents=recents,
        commit_characters=commit_characters,
    )
