"""Proxies handed to a block in the view binding modes.

A view forwards to its live target, so reads always see the target's current
state. Every operation first checks that the owning binding is still active;
once the binder releases it the view refuses all use.

Operators are looked up on the proxy's type, never through ``__getattr__``,
so each one is forwarded explicitly below.
"""
from __future__ import annotations

import operator
from collections.abc import Callable, Container, Iterable, Iterator, Reversible, Sized
from typing import Final, Generic, SupportsFloat, SupportsIndex, SupportsInt, TypeVar

from with_api.errors import BindingReleasedError, ReadOnlyViewError
from with_api.models import Binding

T = TypeVar("T")

# Values returned through a read-only view as-is; everything else is wrapped.
_ATOMS: Final = (str, bytes, int, float, complex, type(None))

MUTATING_METHODS: Final[frozenset[str]] = frozenset(
    {
        "append",
        "appendleft",
        "extend",
        "extendleft",
        "insert",
        "remove",
        "pop",
        "popleft",
        "popitem",
        "clear",
        "update",
        "setdefault",
        "sort",
        "reverse",
        "rotate",
        "move_to_end",
        "add",
        "discard",
        "difference_update",
        "intersection_update",
        "symmetric_difference_update",
        "write",
        "writelines",
        "truncate",
    }
)

# In-place operator name -> operator applying it.
INPLACE_OPERATORS: Final[dict[str, Callable[..., object]]] = {
    "__iadd__": operator.iadd,
    "__isub__": operator.isub,
    "__imul__": operator.imul,
    "__imatmul__": operator.imatmul,
    "__itruediv__": operator.itruediv,
    "__ifloordiv__": operator.ifloordiv,
    "__imod__": operator.imod,
    "__ipow__": operator.ipow,
    "__ilshift__": operator.ilshift,
    "__irshift__": operator.irshift,
    "__iand__": operator.iand,
    "__ixor__": operator.ixor,
    "__ior__": operator.ior,
}


def _unwrap(value: object) -> object:
    if isinstance(value, _View):
        return value._live()
    return value


def _forward(op: Callable[..., object]) -> Callable[[_View[T], object], object]:
    def method(self: _View[T], other: object) -> object:
        return self._read(op(self._live(), _unwrap(other)))

    return method


def _reflect(op: Callable[..., object]) -> Callable[[_View[T], object], object]:
    def method(self: _View[T], other: object) -> object:
        return self._read(op(_unwrap(other), self._live()))

    return method


def _unary(op: Callable[..., object]) -> Callable[[_View[T]], object]:
    def method(self: _View[T]) -> object:
        return self._read(op(self._live()))

    return method


def _apply_inplace(name: str) -> Callable[[MutableView[T], object], MutableView[T]]:
    op = INPLACE_OPERATORS[name]

    def method(self: MutableView[T], other: object) -> MutableView[T]:
        target = self._live()
        result = op(target, _unwrap(other))
        # Immutable targets hand back a new object; only this view sees it.
        if result is not target:
            object.__setattr__(self, "_target", result)
        return self

    return method


def _refuse_inplace(name: str) -> Callable[[ReadOnlyView[T], object], object]:
    def method(self: ReadOnlyView[T], other: object) -> object:
        target = self._live()
        if hasattr(type(target), name):
            raise ReadOnlyViewError(self._binding, f"apply {name}")
        # No in-place form: Python falls back to the plain operator and
        # rebinds the caller's name, leaving the target untouched.
        return NotImplemented

    return method


class _View(Generic[T]):
    __slots__ = ("_target", "_binding")

    _target: T
    _binding: Binding

    def __init__(self, target: T, binding: Binding) -> None:
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_binding", binding)

    def _live(self) -> T:
        if not self._binding.active:
            raise BindingReleasedError(self._binding)
        return self._target

    def _read(self, value: object) -> object:
        return value

    def __getitem__(self, key: object) -> object:
        target = self._live()
        getter = getattr(target, "__getitem__", None)
        if getter is None:
            raise TypeError(f"{type(target).__name__!r} object is not subscriptable")
        return self._read(getter(key))

    def __iter__(self) -> Iterator[object]:
        target = self._live()
        if not isinstance(target, Iterable):
            raise TypeError(f"{type(target).__name__!r} object is not iterable")
        return (self._read(item) for item in target)

    def __reversed__(self) -> Iterator[object]:
        target = self._live()
        if not isinstance(target, Reversible):
            raise TypeError(f"{type(target).__name__!r} object is not reversible")
        return (self._read(item) for item in reversed(target))

    def __len__(self) -> int:
        target = self._live()
        if not isinstance(target, Sized):
            raise TypeError(f"object of type {type(target).__name__!r} has no len()")
        return len(target)

    def __contains__(self, item: object) -> bool:
        target = self._live()
        if isinstance(target, Container):
            return _unwrap(item) in target
        return any(x == item for x in self)

    def __bool__(self) -> bool:
        return bool(self._live())

    def __eq__(self, other: object) -> bool:
        return bool(self._live() == _unwrap(other))

    def __ne__(self, other: object) -> bool:
        return not self == other

    def __hash__(self) -> int:
        return hash(self._live())

    __lt__ = _forward(operator.lt)
    __le__ = _forward(operator.le)
    __gt__ = _forward(operator.gt)
    __ge__ = _forward(operator.ge)

    __add__ = _forward(operator.add)
    __sub__ = _forward(operator.sub)
    __mul__ = _forward(operator.mul)
    __matmul__ = _forward(operator.matmul)
    __truediv__ = _forward(operator.truediv)
    __floordiv__ = _forward(operator.floordiv)
    __mod__ = _forward(operator.mod)
    __divmod__ = _forward(divmod)
    __pow__ = _forward(operator.pow)
    __lshift__ = _forward(operator.lshift)
    __rshift__ = _forward(operator.rshift)
    __and__ = _forward(operator.and_)
    __xor__ = _forward(operator.xor)
    __or__ = _forward(operator.or_)

    __radd__ = _reflect(operator.add)
    __rsub__ = _reflect(operator.sub)
    __rmul__ = _reflect(operator.mul)
    __rmatmul__ = _reflect(operator.matmul)
    __rtruediv__ = _reflect(operator.truediv)
    __rfloordiv__ = _reflect(operator.floordiv)
    __rmod__ = _reflect(operator.mod)
    __rdivmod__ = _reflect(divmod)
    __rpow__ = _reflect(operator.pow)
    __rlshift__ = _reflect(operator.lshift)
    __rrshift__ = _reflect(operator.rshift)
    __rand__ = _reflect(operator.and_)
    __rxor__ = _reflect(operator.xor)
    __ror__ = _reflect(operator.or_)

    __neg__ = _unary(operator.neg)
    __pos__ = _unary(operator.pos)
    __abs__ = _unary(operator.abs)
    __invert__ = _unary(operator.invert)

    def __int__(self) -> int:
        target = self._live()
        if not isinstance(target, SupportsInt):
            raise TypeError(f"int() argument must not be {type(target).__name__!r}")
        return int(target)

    def __float__(self) -> float:
        target = self._live()
        if not isinstance(target, SupportsFloat):
            raise TypeError(f"float() argument must not be {type(target).__name__!r}")
        return float(target)

    def __index__(self) -> int:
        target = self._live()
        if not isinstance(target, SupportsIndex):
            raise TypeError(
                f"{type(target).__name__!r} object cannot be interpreted as an integer"
            )
        return operator.index(target)

    def __format__(self, format_spec: str) -> str:
        return format(self._live(), format_spec)

    def __str__(self) -> str:
        return str(self._live())

    def __repr__(self) -> str:
        name = type(self).__name__
        if not self._binding.active:
            return f"{name}(<released {self._binding.label}>)"
        return f"{name}({self._target!r})"


class ReadOnlyView(_View[T]):
    """Read-only proxy; nested non-atomic values come back as read-only views too.

    In-place operators raise `ReadOnlyViewError` when the target supports
    them (``xs += [1]`` on a list). On targets without an in-place form
    (``n += 1`` on an int) the caller's name is rebound to a new value.
    """

    __slots__ = ()

    def _read(self, value: object) -> object:
        if isinstance(value, _ATOMS):
            return value
        return ReadOnlyView(value, self._binding)

    def __getattr__(self, name: str) -> object:
        target = self._live()
        if name in MUTATING_METHODS or name in INPLACE_OPERATORS:
            raise ReadOnlyViewError(self._binding, f"call {name}()")
        attr = getattr(target, name)
        if callable(attr):
            return self._guarded(attr)
        return self._read(attr)

    def _guarded(self, method: Callable[..., object]) -> Callable[..., object]:
        def call(*args: object, **kwargs: object) -> object:
            self._live()
            return self._read(method(*args, **kwargs))

        return call

    def __setattr__(self, name: str, value: object) -> None:
        self._live()
        raise ReadOnlyViewError(self._binding, f"assign attribute {name!r}")

    def __delattr__(self, name: str) -> None:
        self._live()
        raise ReadOnlyViewError(self._binding, f"delete attribute {name!r}")

    def __setitem__(self, key: object, value: object) -> None:
        self._live()
        raise ReadOnlyViewError(self._binding, "assign item")

    def __delitem__(self, key: object) -> None:
        self._live()
        raise ReadOnlyViewError(self._binding, "delete item")

    __iadd__ = _refuse_inplace("__iadd__")
    __isub__ = _refuse_inplace("__isub__")
    __imul__ = _refuse_inplace("__imul__")
    __imatmul__ = _refuse_inplace("__imatmul__")
    __itruediv__ = _refuse_inplace("__itruediv__")
    __ifloordiv__ = _refuse_inplace("__ifloordiv__")
    __imod__ = _refuse_inplace("__imod__")
    __ipow__ = _refuse_inplace("__ipow__")
    __ilshift__ = _refuse_inplace("__ilshift__")
    __irshift__ = _refuse_inplace("__irshift__")
    __iand__ = _refuse_inplace("__iand__")
    __ixor__ = _refuse_inplace("__ixor__")
    __ior__ = _refuse_inplace("__ior__")


class MutableView(_View[T]):
    """Exclusive read/write proxy. Writes land on the target itself.

    In-place operators mutate the target and keep the view (``xs += [1]``
    extends the shared list). An immutable target (``n += 1`` on an int)
    yields a new object: the view is repointed at it, but other aliases of
    the original value do not see the change.
    """

    __slots__ = ()

    def __getattr__(self, name: str) -> object:
        return getattr(self._live(), name)

    def __setattr__(self, name: str, value: object) -> None:
        setattr(self._live(), name, value)

    def __delattr__(self, name: str) -> None:
        delattr(self._live(), name)

    def __setitem__(self, key: object, value: object) -> None:
        target = self._live()
        setter = getattr(target, "__setitem__", None)
        if setter is None:
            raise TypeError(
                f"{type(target).__name__!r} object does not support item assignment"
            )
        setter(key, value)

    def __delitem__(self, key: object) -> None:
        target = self._live()
        deleter = getattr(target, "__delitem__", None)
        if deleter is None:
            raise TypeError(
                f"{type(target).__name__!r} object does not support item deletion"
            )
        deleter(key)

    __iadd__ = _apply_inplace("__iadd__")
    __isub__ = _apply_inplace("__isub__")
    __imul__ = _apply_inplace("__imul__")
    __imatmul__ = _apply_inplace("__imatmul__")
    __itruediv__ = _apply_inplace("__itruediv__")
    __ifloordiv__ = _apply_inplace("__ifloordiv__")
    __imod__ = _apply_inplace("__imod__")
    __ipow__ = _apply_inplace("__ipow__")
    __ilshift__ = _apply_inplace("__ilshift__")
    __irshift__ = _apply_inplace("__irshift__")
    __iand__ = _apply_inplace("__iand__")
    __ixor__ = _apply_inplace("__ixor__")
    __ior__ = _apply_inplace("__ior__")


def view_binding(view: _View[T]) -> Binding:
    """Return the binding a view belongs to; works after release."""
    return view._binding
