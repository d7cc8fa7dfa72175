from dataclasses import dataclass, field
from typing import Any, Callable, MutableMapping, MutableSequence
from uuid import UUID, uuid4

from .logging import suppress_and_log

Handler = Callable[..., None]


@dataclass(frozen=True)
class Subscription:
    name: str
    handler: Handler
    uid: UUID = field(default_factory=uuid4)


class Event:
    def __init__(self) -> None:
        self._handlers: MutableMapping[str, MutableSequence[Subscription]] = {}

    def on(self, name: str, handler: Handler) -> Subscription:
        sub = Subscription(name=name, handler=handler)
        self._handlers.setdefault(name, []).append(sub)
        return sub

    def off(self, sub: Subscription) -> bool:
        subs = self._handlers.get(sub.name, [])
        if sub in subs:
            subs.remove(sub)
            return True
        else:
            return False

    def count(self, name: str) -> int:
        return len(self._handlers.get(name, ()))

    def emit(self, name: str, *args: Any) -> None:
        for sub in tuple(self._handlers.get(name, ())):
            with suppress_and_log():
                sub.handler(*args)
