from __future__ import annotations

from with_api.models import Binding


class BindingError(Exception):
    """Base class for misuse of a view handed out by the binder."""


class ReadOnlyViewError(BindingError, TypeError):
    """Raised when a write is attempted through a read-only view."""

    def __init__(self, binding: Binding, operation: str) -> None:
        super().__init__(
            f"cannot {operation} through read-only view of {binding.label}"
        )
        self.binding = binding
        self.operation = operation


class BindingReleasedError(BindingError, RuntimeError):
    """Raised when a view is used after its binding was released.

    A view that escapes its block (returned, stored on an outer object, or
    captured by a closure) stays revoked; only owned values outlive the call.
    """

    def __init__(self, binding: Binding) -> None:
        super().__init__(
            f"{binding.mode} binding of {binding.label} used after release"
        )
        self.binding = binding
