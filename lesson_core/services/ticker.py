import asyncio
from typing import Callable, List, Optional, Protocol

TickCallback = Callable[[], None]

class TickSubscription(Protocol):
    def cancel(self) -> None: ...

class Ticker(Protocol):
    def subscribe(self, callback: TickCallback) -> TickSubscription: ...

class _AsyncioSubscription:
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: TickCallback) -> None:
        self._loop = loop
        self._interval = interval
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False
        self._schedule()

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._callback()
        if not self._cancelled:
            self._schedule()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

class AsyncioTicker:
    """Fires subscribed callbacks once per interval on the running event loop."""

    def __init__(self, interval: float = 1.0) -> None:
        self.interval = interval

    def subscribe(self, callback: TickCallback) -> TickSubscription:
        return _AsyncioSubscription(asyncio.get_running_loop(), self.interval, callback)

class _ManualSubscription:
    def __init__(self, owner: "ManualTicker", callback: TickCallback) -> None:
        self._owner = owner
        self.callback = callback

    def cancel(self) -> None:
        if self in self._owner._subscriptions:
            self._owner._subscriptions.remove(self)

class ManualTicker:
    """Host-driven ticker: time only passes when `advance` is called."""

    def __init__(self) -> None:
        self._subscriptions: List[_ManualSubscription] = []

    def subscribe(self, callback: TickCallback) -> TickSubscription:
        subscription = _ManualSubscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def active_subscriptions(self) -> int:
        return len(self._subscriptions)

    def advance(self, seconds: int = 1) -> None:
        for _ in range(seconds):
            for subscription in list(self._subscriptions):
                if subscription in self._subscriptions:
                    subscription.callback()
