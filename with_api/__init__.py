"""Scoped value binding helpers.

Bind the value a producer returns to a short-lived name, run a block against
it, and release the binding (and any context the value opened, such as a lock
guard or a file) the moment the block returns or raises.
"""
from __future__ import annotations

from with_api.binder import bind, bind_mut, bind_owned, bind_ref
from with_api.config import Settings, get_settings
from with_api.errors import BindingError, BindingReleasedError, ReadOnlyViewError
from with_api.logging import setup_logging
from with_api.models import MODES, Binding, Mode, is_mode
from with_api.views import MutableView, ReadOnlyView, view_binding

__all__ = [
    "MODES",
    "Binding",
    "BindingError",
    "BindingReleasedError",
    "Mode",
    "MutableView",
    "ReadOnlyView",
    "ReadOnlyViewError",
    "Settings",
    "bind",
    "bind_mut",
    "bind_owned",
    "bind_ref",
    "get_settings",
    "is_mode",
    "setup_logging",
    "view_binding",
]
