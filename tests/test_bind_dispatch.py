from __future__ import annotations

import threading
from collections.abc import Iterator
from types import TracebackType

import pytest

from with_api import (
    MODES,
    MutableView,
    ReadOnlyView,
    bind,
    bind_mut,
    bind_owned,
    bind_ref,
    is_mode,
    view_binding,
)


class _RecorderStub:
    """Context manager recording enter/exit; `swallow` makes __exit__ truthy."""

    def __init__(self, *, swallow: bool = False, fail_exit: bool = False) -> None:
        self.events: list[str] = []
        self.exit_types: list[type[BaseException] | None] = []
        self._swallow = swallow
        self._fail_exit = fail_exit

    def __enter__(self) -> list[str]:
        self.events.append("enter")
        return self.events

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool:
        self.events.append("exit")
        self.exit_types.append(exc_type)
        if self._fail_exit:
            raise OSError("exit failed")
        return self._swallow


@pytest.mark.parametrize("mode", list(MODES))
def test_bind_dispatches_every_mode(mode: str) -> None:
    calls: list[int] = []

    def producer() -> list[int]:
        calls.append(1)
        return [1, 2, 3]

    assert bind(mode, producer, len) == 3
    assert calls == [1]


def test_bind_passes_mode_specific_binding() -> None:
    seen: list[object] = []
    bind("owned", lambda: [1], seen.append)
    bind("ref", lambda: [1], seen.append)
    bind("mut", lambda: [1], seen.append)

    assert seen[0] == [1] and type(seen[0]) is list
    assert isinstance(seen[1], ReadOnlyView)
    assert isinstance(seen[2], MutableView)


def test_bind_rejects_unknown_mode_before_producing() -> None:
    calls: list[int] = []

    def producer() -> int:
        calls.append(1)
        return 1

    with pytest.raises(ValueError, match="Invalid mode 'borrow'"):
        bind("borrow", producer, str)
    assert calls == []
    assert is_mode("ref") and not is_mode("borrow")


def test_context_exit_sees_block_exception() -> None:
    recorder = _RecorderStub()

    def block(events: MutableView[list[str]]) -> None:
        events.append("block")
        raise KeyError("missing")

    with pytest.raises(KeyError):
        bind_mut(lambda: recorder, block)
    assert recorder.events == ["enter", "block", "exit"]
    assert recorder.exit_types == [KeyError]


def test_truthy_exit_does_not_swallow_block_error() -> None:
    recorder = _RecorderStub(swallow=True)

    def block(events: list[str]) -> str:
        raise RuntimeError("still raised")

    with pytest.raises(RuntimeError, match="still raised"):
        bind_owned(lambda: recorder, block)
    assert recorder.events == ["enter", "exit"]


def test_exit_failure_propagates_chained_to_block_error() -> None:
    recorder = _RecorderStub(fail_exit=True)

    def block(events: list[str]) -> str:
        raise RuntimeError("block failed")

    with pytest.raises(OSError, match="exit failed") as info:
        bind_owned(lambda: recorder, block)
    assert isinstance(info.value.__context__, RuntimeError)


def test_enter_failure_skips_block_and_exit() -> None:
    class _BrokenStub:
        exited = False

        def __enter__(self) -> int:
            raise ConnectionError("refused")

        def __exit__(self, *exc_info: object) -> None:
            self.exited = True

    broken = _BrokenStub()
    calls: list[int] = []

    with pytest.raises(ConnectionError):
        bind_owned(lambda: broken, calls.append)
    assert calls == []
    assert broken.exited is False


def test_views_are_revoked_before_context_exit() -> None:
    kept: list[ReadOnlyView[dict[str, int]]] = []
    states: list[bool] = []

    class _ExitWatcherStub:
        def __enter__(self) -> dict[str, int]:
            return {"k": 1}

        def __exit__(self, *exc_info: object) -> None:
            states.append(view_binding(kept[0]).active)

    def block(view: ReadOnlyView[dict[str, int]]) -> None:
        kept.append(view)

    bind_ref(lambda: _ExitWatcherStub(), block)
    assert states == [False]


def test_nested_binders_release_innermost_first() -> None:
    outer_lock = threading.Lock()
    inner_lock = threading.Lock()

    def outer(_: MutableView[bool]) -> tuple[bool, bool]:
        inner_held = bind_ref(lambda: inner_lock, lambda _: inner_lock.locked())
        return inner_held, inner_lock.locked() or not outer_lock.locked()

    assert bind_mut(lambda: outer_lock, outer) == (True, False)
    assert not outer_lock.locked()


def test_nested_bindings_are_independent() -> None:
    def outer(o: ReadOnlyView[dict[str, int]]) -> int:
        inner = bind_owned(lambda: {"m": 2}, lambda i: i["m"])
        return int(str(o["n"])) + inner

    assert bind_ref(lambda: {"n": 1}, outer) == 3


def _count_up() -> Iterator[int]:
    n = 0
    while True:
        n += 1
        yield n


def test_producer_is_never_memoised() -> None:
    counter = _count_up()

    first = bind_owned(lambda: next(counter), str)
    second = bind_owned(lambda: next(counter), str)

    assert (first, second) == ("1", "2")


def test_resource_is_exited_when_setup_after_enter_fails(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    import with_api.binder as binder_mod

    def _broken_tracing() -> bool:
        raise RuntimeError("settings unavailable")

    monkeypatch.setattr(binder_mod, "_tracing", _broken_tracing)
    recorder = _RecorderStub()
    calls: list[object] = []

    with pytest.raises(RuntimeError, match="settings unavailable"):
        bind_mut(lambda: recorder, calls.append)

    assert calls == []
    assert recorder.events == ["enter", "exit"]
    assert recorder.exit_types == [RuntimeError]
