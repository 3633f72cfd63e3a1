from __future__ import annotations

from types import TracebackType
from typing import Protocol, TypeVar, runtime_checkable

T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class ScopedResource(Protocol[T_co]):
    """Value whose lifetime is closed explicitly: lock guards, files, sessions."""

    def __enter__(self) -> T_co: ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> bool | None: ...
