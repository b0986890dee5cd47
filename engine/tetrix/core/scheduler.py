"""
Delayed callbacks for the clear animation window.

A game session never sleeps. When a placement completes lines it asks its
scheduler to call back after a short delay, and keeps the returned handle
so restart() can cancel it. Hosts pick the scheduler matching their event
loop:

  - ManualScheduler: nothing fires until the host calls advance() or
    run_pending(). Used by tests and the terminal client.
  - ThreadingScheduler: threading.Timer per callback.
  - AsyncioScheduler: loop.call_later on a running asyncio loop.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol
import asyncio
import threading


class TimerHandle(Protocol):
    """Handle to a scheduled callback."""
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Anything that can run a callback after a delay (seconds)."""
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        ...


@dataclass
class ManualTimer:
    """A callback waiting in a ManualScheduler."""
    due: float
    callback: Callable[[], None]
    cancelled: bool = False
    fired: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualScheduler:
    """
    Scheduler driven by explicit calls instead of wall-clock time.

    Attributes:
        now: Virtual clock in seconds.
        timers: Timers scheduled and not yet fired or cancelled.
    """
    now: float = 0.0
    timers: list[ManualTimer] = field(default_factory=list)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(due=self.now + max(0.0, delay), callback=callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    def advance(self, seconds: float) -> int:
        """Move the clock forward and fire every timer now due. Returns count fired."""
        self.now += seconds
        return self._fire(lambda t: t.due <= self.now)

    def run_pending(self) -> int:
        """Fire every pending timer regardless of due time."""
        if self.pending:
            self.now = max(self.now, max(t.due for t in self.pending))
        return self._fire(lambda t: True)

    def _fire(self, is_due: Callable[[ManualTimer], bool]) -> int:
        fired = 0
        for timer in sorted(self.pending, key=lambda t: t.due):
            if timer.cancelled or not is_due(timer):
                continue
            timer.fired = True
            fired += 1
            timer.callback()
        self.timers = self.pending
        return fired


class ThreadingScheduler:
    """Runs callbacks on threading.Timer threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class AsyncioScheduler:
    """Runs callbacks on an asyncio event loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self.loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = self.loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)
