from __future__ import annotations

import threading
from collections import OrderedDict, deque
from collections.abc import Callable
from types import TracebackType

import pytest

from with_api import ReadOnlyView, ReadOnlyViewError, bind_ref


class _GuardStub:
    def __init__(self, mutex: _MutexStub) -> None:
        self._mutex = mutex

    def __enter__(self) -> dict[str, str]:
        return self._mutex.data

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self._mutex.lock_obj.release()


class _MutexStub:
    def __init__(self, data: dict[str, str]) -> None:
        self.data = data
        self.lock_obj = threading.Lock()

    def lock(self) -> _GuardStub:
        self.lock_obj.acquire()
        return _GuardStub(self)


def test_borrowed_lookup_through_mutex() -> None:
    db = _MutexStub({"key": "value"})

    assert bind_ref(db.lock, lambda view: view.get("key")) == "value"
    assert bind_ref(db.lock, lambda view: view["key"]) == "value"
    assert not db.lock_obj.locked()


def test_item_assignment_is_rejected_and_lock_released() -> None:
    db = _MutexStub({"key": "value"})

    def block(view: ReadOnlyView[dict[str, str]]) -> None:
        view["other"] = "x"

    with pytest.raises(ReadOnlyViewError, match="assign item"):
        bind_ref(db.lock, block)

    assert db.data == {"key": "value"}
    assert not db.lock_obj.locked()


@pytest.mark.parametrize("method", ["pop", "update", "clear", "setdefault", "popitem"])
def test_mutating_methods_are_rejected(method: str) -> None:
    data = {"key": "value"}

    def block(view: ReadOnlyView[dict[str, str]]) -> object:
        return getattr(view, method)

    with pytest.raises(ReadOnlyViewError, match=method):
        bind_ref(lambda: data, block)
    assert data == {"key": "value"}


def test_read_only_error_is_a_type_error() -> None:
    def block(view: ReadOnlyView[list[int]]) -> None:
        del view[0]

    with pytest.raises(TypeError):
        bind_ref(lambda: [1, 2], block)


def test_reads_reflect_current_state() -> None:
    data = {"a": 1}

    def block(view: ReadOnlyView[dict[str, int]]) -> list[int]:
        before = len(view)
        data["b"] = 2
        return [before, len(view), int("b" in view)]

    assert bind_ref(lambda: data, block) == [1, 2, 1]


def test_nested_containers_are_read_only() -> None:
    data = {"xs": [1, 2]}

    def block(view: ReadOnlyView[dict[str, list[int]]]) -> None:
        inner = view["xs"]
        assert inner == [1, 2]
        assert list(inner) == [1, 2]
        getattr(inner, "append")(3)

    with pytest.raises(ReadOnlyViewError):
        bind_ref(lambda: data, block)
    assert data == {"xs": [1, 2]}


def test_destructuring_through_view() -> None:
    def block(view: ReadOnlyView[tuple[str, int]]) -> bool:
        description, value = view
        return description == "meaning of life" and value == 42

    assert bind_ref(lambda: ("meaning of life", 42), block) is True


@pytest.mark.parametrize(
    ("make", "method", "args"),
    [
        (lambda: deque([1]), "appendleft", (0,)),
        (lambda: deque([1]), "extendleft", ([0],)),
        (lambda: deque([1, 2]), "popleft", ()),
        (lambda: deque([1, 2]), "rotate", (1,)),
        (lambda: OrderedDict(a=1, b=2), "move_to_end", ("a",)),
        (lambda: {"a": 1}, "__ior__", ({"b": 2},)),
        (lambda: [1], "__iadd__", ([2],)),
        (lambda: [1], "__imul__", (2,)),
        (lambda: {1}, "__iand__", ({2},)),
    ],
)
def test_container_mutators_are_rejected(
    make: Callable[[], object], method: str, args: tuple[object, ...]
) -> None:
    target = make()

    def block(view: ReadOnlyView[object]) -> object:
        return getattr(view, method)(*args)

    with pytest.raises(ReadOnlyViewError, match=method):
        bind_ref(lambda: target, block)
    assert target == make()


def test_inplace_operator_on_read_only_container_is_rejected() -> None:
    items = [1]

    def block(xs: ReadOnlyView[list[int]]) -> None:
        xs += [2]

    with pytest.raises(ReadOnlyViewError, match="__iadd__"):
        bind_ref(lambda: items, block)
    assert items == [1]


def test_inplace_operator_on_read_only_scalar_rebinds_locally() -> None:
    def block(n: ReadOnlyView[int]) -> object:
        n += 1
        return n

    assert bind_ref(lambda: 41, block) == 42
