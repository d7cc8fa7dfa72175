from contextlib import contextmanager
from logging import (
    DEBUG,
    ERROR,
    FATAL,
    INFO,
    WARN,
    Formatter,
    Handler,
    LogRecord,
    StreamHandler,
    getLevelName,
    getLogger,
)
from typing import Iterator, Mapping

from pynvim import Nvim

from ..consts import LOGGER_NAME

LOG_FMT = """
--  {name}    {levelname}    {asctime}
module:   {module}
line:     {lineno}
function: {funcName}
message:  |-
{message}
"""

DATE_FMT = "%Y-%m-%d %H:%M:%S"

LEVELS: Mapping[str, int] = {
    getLevelName(lv): lv for lv in (DEBUG, INFO, WARN, ERROR, FATAL)
}


log = getLogger(LOGGER_NAME)


class NvimHandler(Handler):
    def __init__(self, nvim: Nvim) -> None:
        super().__init__()
        self._nvim = nvim

    def emit(self, record: LogRecord) -> None:
        msg = self.format(record) + "\n"
        if record.levelno >= ERROR:
            self._nvim.async_call(self._nvim.err_write, msg)
        else:
            self._nvim.async_call(self._nvim.out_write, msg)


def setup(nvim: Nvim, level: str) -> None:
    log.setLevel(LEVELS.get(level, DEBUG))
    formatter = Formatter(fmt=LOG_FMT, datefmt=DATE_FMT, style="{")
    handlers = (StreamHandler(), NvimHandler(nvim))
    for handler in handlers:
        handler.setFormatter(formatter)
        log.addHandler(handler)


@contextmanager
def suppress_and_log() -> Iterator[None]:
    try:
        yield None
    except Exception as e:
        log.exception("%s", e)
