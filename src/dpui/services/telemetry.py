"""Timing spans for store actions, shown with ``dpui --verbose``.

Store actions decorated with :func:`traced` open a span; displayplacer
calls and preset-file reads inside them open child spans through
:func:`trace_span`. The outermost action gets the whole tree in
``ServiceResult.meta["telemetry"]`` and logs it through structlog.
With verbose mode off, every entry point costs one ContextVar lookup.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from dpui.services.result import ServiceResult

_verbose_enabled: ContextVar[bool] = ContextVar("_verbose_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)

_log = structlog.get_logger("dpui.telemetry")


@dataclass
class Span:
    """One timed step of a store action."""

    name: str
    children: list[Span] = field(default_factory=list)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None
    failed: bool = False

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.failed:
            data["failed"] = True
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data


@contextmanager
def _open_span(name: str, *, root_allowed: bool) -> Generator[Span | None]:
    parent = _current_span.get()
    if not _verbose_enabled.get() or (parent is None and not root_allowed):
        yield None
        return

    span = Span(name=name)
    if parent is not None:
        parent.children.append(span)
    token = _current_span.set(span)
    try:
        yield span
    except Exception:
        span.failed = True
        raise
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Time a step inside a traced store action.

    Yields None outside verbose mode or when no action span is open.
    """
    with _open_span(name, root_allowed=False) as span:
        yield span


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a store action; the outermost one carries the span tree.

    ``apply_preset`` calling ``apply_config`` yields a single tree rooted
    at ``apply_preset``. Only that root result gets ``meta["telemetry"]``.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        is_root = _current_span.get() is None
        with _open_span(func.__qualname__, root_allowed=True) as span:
            result = func(*args, **kwargs)

        if span is None or not isinstance(result, ServiceResult):
            return result
        span.failed = not result.ok
        if not is_root:
            return result

        _log.debug(
            "span.complete",
            span_name=span.name,
            duration_ms=round(span.duration_ms, 2),
            ok=result.ok,
            children=len(span.children),
        )
        meta = {**(result.meta or {}), "telemetry": span.to_dict()}
        return result.model_copy(update={"meta": meta})  # type: ignore[return-value]

    return wrapper


def enable_telemetry() -> None:
    """Turn on span collection for the current context (``--verbose``)."""
    _verbose_enabled.set(True)


def disable_telemetry() -> None:
    _verbose_enabled.set(False)
