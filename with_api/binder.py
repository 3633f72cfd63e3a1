"""Bind a produced value for the duration of one block call.

Each entry point evaluates its producer once, binds the result under an
ownership mode, calls the block once and releases the binding before the
block's result (or exception) reaches the caller::

    bind_mut(lambda: mutex.lock(), lambda db: db.update({42: "meaning of life"}))

Values implementing the context-manager protocol are entered and exited
around the block, so a lock guard is held only while the block runs.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Literal, TypeVar, overload

from with_api.config import get_settings
from with_api.logging import get_logger
from with_api.models import MODES, Binding, Mode, is_mode
from with_api.types import ScopedResource
from with_api.views import MutableView, ReadOnlyView

T = TypeVar("T")
R = TypeVar("R")

_logger = get_logger(__name__)


def _label(producer: Callable[[], object]) -> str:
    return getattr(producer, "__qualname__", None) or type(producer).__name__


def _tracing() -> bool:
    return get_settings().trace and _logger.isEnabledFor(logging.DEBUG)


def _release(
    binding: Binding,
    resource: ScopedResource[object] | None,
    exc: BaseException | None,
    trace: bool,
) -> None:
    # Views go first so none outlives the resource they point into.
    binding.release()
    if trace:
        _logger.debug(
            "binding released",
            extra={
                "mode": binding.mode,
                "label": binding.label,
                "outcome": "ok" if exc is None else "error",
            },
        )
    if resource is None:
        return
    if exc is None:
        resource.__exit__(None, None, None)
    else:
        # Exit status is ignored: there is no block result to return instead.
        resource.__exit__(type(exc), exc, exc.__traceback__)


def _run(mode: Mode, producer: Callable[[], object], block: Callable[..., R]) -> R:
    binding = Binding(mode, _label(producer))
    value = producer()
    resource: ScopedResource[object] | None = None
    bound: object = value
    if isinstance(value, ScopedResource):
        resource = value
        bound = value.__enter__()

    # Everything after acquisition runs under the release handler.
    trace = False
    try:
        trace = _tracing()
        if trace:
            _logger.debug(
                "binding acquired", extra={"mode": mode, "label": binding.label}
            )

        arg: object
        if mode == "ref":
            arg = ReadOnlyView(bound, binding)
        elif mode == "mut":
            arg = MutableView(bound, binding)
        else:
            arg = bound

        result = block(arg)
    except BaseException as exc:
        _release(binding, resource, exc, trace)
        raise
    _release(binding, resource, None, trace)
    return result


@overload
def bind_owned(producer: Callable[[], ScopedResource[T]], block: Callable[[T], R]) -> R: ...


@overload
def bind_owned(producer: Callable[[], T], block: Callable[[T], R]) -> R: ...


def bind_owned(producer: Callable[[], object], block: Callable[..., R]) -> R:
    """Bind the produced value itself; the block owns it.

    The value is the caller's once the block returns, so returning it from the
    block is allowed. A context-manager value is still exited after the block.
    """
    return _run("owned", producer, block)


@overload
def bind_ref(
    producer: Callable[[], ScopedResource[T]], block: Callable[[ReadOnlyView[T]], R]
) -> R: ...


@overload
def bind_ref(producer: Callable[[], T], block: Callable[[ReadOnlyView[T]], R]) -> R: ...


def bind_ref(producer: Callable[[], object], block: Callable[..., R]) -> R:
    """Bind a read-only view of the produced value.

    Writes through the view raise `ReadOnlyViewError`; the view is revoked
    when the block finishes.
    """
    return _run("ref", producer, block)


@overload
def bind_mut(
    producer: Callable[[], ScopedResource[T]], block: Callable[[MutableView[T]], R]
) -> R: ...


@overload
def bind_mut(producer: Callable[[], T], block: Callable[[MutableView[T]], R]) -> R: ...


def bind_mut(producer: Callable[[], object], block: Callable[..., R]) -> R:
    """Bind an exclusive mutable view of the produced value.

    Mutations land on the value itself and stay visible through its other
    aliases. Keeping the view exclusive is up to the caller.
    """
    return _run("mut", producer, block)


@overload
def bind(
    mode: Literal["owned"], producer: Callable[[], T], block: Callable[[T], R]
) -> R: ...


@overload
def bind(
    mode: Literal["ref"],
    producer: Callable[[], T],
    block: Callable[[ReadOnlyView[T]], R],
) -> R: ...


@overload
def bind(
    mode: Literal["mut"],
    producer: Callable[[], T],
    block: Callable[[MutableView[T]], R],
) -> R: ...


@overload
def bind(mode: str, producer: Callable[[], T], block: Callable[..., R]) -> R: ...


def bind(mode: str, producer: Callable[[], object], block: Callable[..., R]) -> R:
    """Bind under a mode chosen at the call site."""
    if not is_mode(mode):
        raise ValueError(f"Invalid mode {mode!r}; expected one of {', '.join(MODES)}")
    return _run(mode, producer, block)
