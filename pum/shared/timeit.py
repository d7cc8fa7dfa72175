from contextlib import contextmanager
from time import monotonic
from typing import Iterator

from ..consts import DEBUG
from .logging import log


def _fmt(seconds: float) -> str:
    if seconds >= 1:
        return f"{seconds:.2f}s"
    elif seconds >= 1e-3:
        return f"{seconds * 1e3:.0f}ms"
    else:
        return f"{seconds * 1e6:.0f}µs"


@contextmanager
def timeit(name: str) -> Iterator[None]:
    if DEBUG:
        t1 = monotonic()
        try:
            yield None
        finally:
            log.debug("%s", f"TIME -- {name} :: {_fmt(monotonic() - t1)}")
    else:
        yield None
