from dataclasses import dataclass
from string import Template
from textwrap import dedent
from typing import Any, Optional, Sequence

from pydantic import ValidationError as DecodeError
from pynvim import Nvim

from ..consts import DEBUG, SETTINGS_VAR
from ..server.entries_view import MenuRenderer
from ..server.runtime import ValidationError, load_settings, orchestrator
from ..server.view import CommitPolicy, ViewOrchestrator, all_chars
from ..shared.logging import log, setup
from ..shared.settings import Settings
from .pum import NvimPum
from .surfaces import KEYMAP_EVENT, NvimDocs, NvimGhostText, NvimKeymap


@dataclass(frozen=True)
class Client:
    settings: Settings
    view: ViewOrchestrator
    keymap: NvimKeymap


def _settings(nvim: Nvim) -> Optional[Settings]:
    try:
        return load_settings(nvim.vars.get(SETTINGS_VAR, {}))
    except (DecodeError, ValidationError) as e:
        tpl = """
            Invalid `g:${var}`


            ⚠️  ${e}
            """
        msg = Template(dedent(tpl)).substitute(var=SETTINGS_VAR, e=e)
        nvim.err_write(msg + "\n")
        return None


def attach(
    nvim: Nvim,
    menu: MenuRenderer,
    commit_characters: CommitPolicy = all_chars,
    level: str = "INFO",
) -> Optional[Client]:
    setup(nvim, level="DEBUG" if DEBUG else level)
    if settings := _settings(nvim):
        keymap = NvimKeymap(nvim)
        view = orchestrator(
            settings,
            pum=NvimPum(nvim),
            menu=menu,
            docs=NvimDocs(nvim, config=settings.documentation),
            preview=NvimGhostText(nvim, config=settings.menu.ghost_text),
            keymap=keymap,
            commit_characters=commit_characters,
        )
        return Client(settings=settings, view=view, keymap=keymap)
    else:
        return None


def on_request(client: Client, name: str, args: Sequence[Any]) -> Any:
    """
    Hook for `nvim.run_loop`, `None` for requests this client does not own
    """

    if name == KEYMAP_EVENT:
        mode, code = args
        return client.keymap.request(mode, code)
    else:
        log.debug("%s", f"IGNORED -- {name}")
        return None
