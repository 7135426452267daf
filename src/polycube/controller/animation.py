"""
Animation (Tweens)
==================
Frame-driven interpolation of scene-node properties.

Why is this file needed?
------------------------
1. Staggered transitions: every slice of a cube moves to its new layout after
   its own delay. The tweens are sampled once per render tick, there is no
   background thread.
2. Cancellation: each tween is keyed by (node uid, property). Starting a new
   tween on the same key cancels the running one, so overlapping transitions
   never fight over the same slice.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

import numpy as np
import numpy.typing as npt

from polycube import config

logger = logging.getLogger(__name__)

Easing = Callable[[float], float]
TweenKey = Tuple[Hashable, str]


def linear(t: float) -> float:
    return t


def cubic_in_out(t: float) -> float:
    if t < 0.5:
        return 4.0 * t * t * t
    return 1.0 - ((-2.0 * t + 2.0) ** 3) / 2.0


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass(eq=False)
class Tween:
    target: Any
    prop: str
    end_value: npt.NDArray[np.float64]
    start_time: float
    duration: float = config.TRANSITION_DURATION_MS
    easing: Easing = cubic_in_out
    on_update: Optional[Callable[[Any], None]] = None
    on_complete: Optional[Callable[[Any], None]] = None
    start_value: Optional[npt.NDArray[np.float64]] = None
    finished: bool = False
    cancelled: bool = False

    @property
    def key(self) -> TweenKey:
        return (getattr(self.target, "uid", id(self.target)), self.prop)

    def sample(self, now: float) -> bool:
        """
        Advance to ``now``. Returns True while the tween is still running.
        Nothing happens before ``start_time`` (the delay).
        """
        if self.finished or self.cancelled:
            return False
        if now < self.start_time:
            return True

        # Start value is taken when the delay elapses, not when the tween is created
        if self.start_value is None:
            self.start_value = np.asarray(getattr(self.target, self.prop), dtype=np.float64).copy()

        t = 1.0 if self.duration <= 0 else min(max((now - self.start_time) / self.duration, 0.0), 1.0)
        k = self.easing(t)
        value = self.start_value + (self.end_value - self.start_value) * k
        setattr(self.target, self.prop, value)
        if self.on_update is not None:
            self.on_update(self.target)

        if t >= 1.0:
            setattr(self.target, self.prop, self.end_value.copy())
            self.finished = True
            if self.on_complete is not None:
                self.on_complete(self.target)
            return False
        return True


class Animator:
    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._clock: Callable[[], float] = clock or monotonic_ms
        self._tweens: Dict[TweenKey, Tween] = {}

    def now(self) -> float:
        return self._clock()

    def animate(
        self,
        target: Any,
        prop: str,
        to,
        duration: float = config.TRANSITION_DURATION_MS,
        delay: float = 0.0,
        easing: Easing = cubic_in_out,
        on_update: Optional[Callable[[Any], None]] = None,
        on_complete: Optional[Callable[[Any], None]] = None,
    ) -> Tween:
        """
        Schedule ``target.prop`` to move to ``to``. Any running tween on the
        same (target, prop) is cancelled first; its on_complete is not called.
        """
        tween = Tween(
            target=target,
            prop=prop,
            end_value=np.asarray(to, dtype=np.float64).copy(),
            start_time=self.now() + delay,
            duration=duration,
            easing=easing,
            on_update=on_update,
            on_complete=on_complete,
        )
        previous = self._tweens.get(tween.key)
        if previous is not None:
            previous.cancelled = True
            logger.debug(f"Cancelled running tween on {tween.key}.")
        self._tweens[tween.key] = tween
        return tween

    def tick(self, now: Optional[float] = None) -> bool:
        """Sample every running tween. Returns True if any is still running."""
        if not self._tweens:
            return False
        now = self.now() if now is None else now
        for key, tween in list(self._tweens.items()):
            running = tween.sample(now)
            if not running and self._tweens.get(key) is tween:
                del self._tweens[key]
        return bool(self._tweens)

    def finish_all(self) -> None:
        """Jump every tween to its end state, running callbacks in order."""
        while self._tweens:
            pending = sorted(self._tweens.values(), key=lambda tw: tw.start_time)
            self.tick(now=pending[-1].start_time + max(tw.duration for tw in pending))

    def cancel(self, target: Any, prop: Optional[str] = None) -> None:
        uid = getattr(target, "uid", id(target))
        for key in [k for k in self._tweens if k[0] == uid and (prop is None or k[1] == prop)]:
            self._tweens.pop(key).cancelled = True

    def cancel_all(self) -> None:
        for tween in self._tweens.values():
            tween.cancelled = True
        self._tweens.clear()

    @property
    def active(self) -> List[Tween]:
        return list(self._tweens.values())

    def is_animating(self, target: Any) -> bool:
        uid = getattr(target, "uid", id(target))
        return any(k[0] == uid for k in self._tweens)
