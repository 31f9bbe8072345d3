from __future__ import annotations

from contextvars import ContextVar, Token


class _DbTimer:
    __slots__ = ("elapsed_ms",)

    def __init__(self) -> None:
        self.elapsed_ms = 0.0


# the timer object is shared with the worker threads and tasks a request spawns,
# so accumulate on it instead of re-setting the variable
_db_timer: ContextVar[_DbTimer | None] = ContextVar("salestrack_db_timer", default=None)


def start_db_timer() -> Token:
    return _db_timer.set(_DbTimer())


def stop_db_timer(token: Token) -> float | None:
    timer = _db_timer.get()
    _db_timer.reset(token)
    return timer.elapsed_ms if timer is not None else None


def add_db_time(delta_ms: float) -> None:
    timer = _db_timer.get()
    if timer is not None:
        timer.elapsed_ms += delta_ms


def is_db_timer_active() -> bool:
    return _db_timer.get() is not None
