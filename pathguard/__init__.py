"""
Pathguard: permission-guarded hierarchical key-value store.

Provides the path algebra, JSON flattening, the per-key permission
model, and the Store engine that ties them together.
"""

from . import json_types
from . import path
from . import permissions
from . import store
from .store import AccessDeniedError, InvalidPathError, Store, StoreError

__version__ = "1.0.0"

__all__ = [
    "json_types",
    "path",
    "permissions",
    "store",
    "AccessDeniedError",
    "InvalidPathError",
    "Store",
    "StoreError",
]
