from __future__ import annotations

from typing import Final, Literal, TypeGuard

Mode = Literal["owned", "ref", "mut"]

MODES: Final[tuple[Mode, ...]] = ("owned", "ref", "mut")


def is_mode(value: str) -> TypeGuard[Mode]:
    return value in MODES


class Binding:
    """Transient record for one binder call.

    Views check `active` on every access; `release()` is idempotent.
    """

    def __init__(self, mode: Mode, label: str) -> None:
        self.mode: Mode = mode
        self.label = label
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def release(self) -> None:
        self._active = False

    def __repr__(self) -> str:
        state = "active" if self._active else "released"
        return f"Binding(mode={self.mode!r}, label={self.label!r}, {state})"
