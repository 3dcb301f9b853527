"""Diagnostic scope and its mirror into the crash handler."""
from __future__ import annotations

from .models import Breadcrumb, Level, User
from .scope import Scope
from .synchronizer import ScopeSynchronizer
from .values import Value, encode, normalize

__all__ = [
    "Scope",
    "ScopeSynchronizer",
    "Breadcrumb",
    "Level",
    "User",
    "Value",
    "encode",
    "normalize",
]
