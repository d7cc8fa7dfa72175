from asyncio import (
    Future,
    Task,
    TimerHandle,
    create_task,
    gather,
    get_running_loop,
    wait,
)
from inspect import isawaitable
from itertools import count
from typing import (
    Any,
    Awaitable,
    Callable,
    Coroutine,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
)

from .logging import log, suppress_and_log

_T = TypeVar("_T")


async def cancel(*futs: Future) -> None:
    for fut in futs:
        fut.cancel()
    await gather(*futs, return_exceptions=True)


async def supervise(aw: Awaitable[Any]) -> None:
    with suppress_and_log():
        await aw


async def with_timeout(timeout: float, co: Coroutine[Any, Any, _T]) -> Optional[_T]:
    done, not_done = await wait((create_task(co),), timeout=timeout)
    await cancel(*not_done)
    return (await done.pop()) if done else None


class AsyncDedup:
    """
    Newest request wins

    Every request takes a token from a monotonic counter,
    results are only delivered while their token is still the latest.
    Superseded work is not cancelled, its delivery is dropped.
    """

    def __init__(self) -> None:
        self._tokens = count(1)
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def invalidate(self) -> None:
        self._latest = next(self._tokens)

    def __call__(self, cont: Callable[..., None]) -> Callable[..., bool]:
        self._latest = token = next(self._tokens)

        def guarded(*args: Any, **kwargs: Any) -> bool:
            if token != self._latest:
                log.debug("%s", f"STALE -- {token} < {self._latest}")
                return False
            else:
                cont(*args, **kwargs)
                return True

        return guarded

    def run(
        self, aw: Awaitable[_T], cont: Callable[[_T], None]
    ) -> Coroutine[Any, Any, bool]:
        guarded = self(cont)

        async def deliver() -> bool:
            ret = await aw
            return guarded(ret)

        return deliver()

    def wrap(
        self, fn: Callable[..., Awaitable[_T]], cont: Callable[[_T], None]
    ) -> Callable[..., "Task[bool]"]:
        def wrapped(*args: Any, **kwargs: Any) -> "Task[bool]":
            return create_task(self.run(fn(*args, **kwargs), cont=cont))

        return wrapped


class AsyncThrottle:
    """
    Runs `fn` once, `delay` seconds after the last call of a burst
    """

    def __init__(self, fn: Callable[..., Any], delay: float) -> None:
        self.delay = delay
        self._fn = fn
        self._handle: Optional[TimerHandle] = None
        self._task: Optional[Task] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def stop(self) -> None:
        if handle := self._handle:
            self._handle = None
            handle.cancel()

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self.stop()
        loop = get_running_loop()
        self._handle = loop.call_later(max(0, self.delay), self._fire, args, kwargs)

    def _fire(self, args: Sequence[Any], kwargs: Mapping[str, Any]) -> None:
        self._handle = None
        with suppress_and_log():
            ret = self._fn(*args, **kwargs)
            if isawaitable(ret):
                self._task = create_task(supervise(ret))
