"""
Pathguard store engine.

A Store is a node in a tree of key-value stores addressed by
colon-delimited paths. Every key is guarded by a permission policy;
multi-segment paths are resolved by delegating to child stores, which
enforce their own policies. Composite JSON values written into a store
are expanded into child stores, and intermediate stores are created on
demand when a write descends past existing structure.

Store types declare their permission schema as a class attribute::

    class AdminStore(Store):
        permissions = {"name": "r", "token": "none"}
        default_permission = "rw"
"""

from __future__ import annotations

import logging
from typing import Any, Callable, ClassVar, Mapping, Optional, Union

from . import path as path_module
from .json_types import JSONArray, JSONObject, JSONPrimitive, flatten, is_composite, is_primitive
from .permissions import READ_WRITE, PermissionTable, normalize_policy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Error classes
# ---------------------------------------------------------------------------

class StoreError(Exception):
    """Base class for errors raised by store operations."""


class InvalidPathError(StoreError, ValueError):
    """Raised when a path is missing, malformed, or does not resolve."""

    def __init__(self, message: str, path: Any = None):
        self.path = path
        super().__init__(message)

    def __reduce__(self):
        return (type(self), (str(self), self.path))


class AccessDeniedError(StoreError, PermissionError):
    """Raised when a key's policy forbids the attempted operation."""

    def __init__(self, key: str, operation: str, policy: str):
        self.key = key
        self.operation = operation  # "read" or "write"
        self.policy = policy
        super().__init__(f"{operation.capitalize()} access denied for property: {key}")

    def __reduce__(self):
        return (type(self), (self.key, self.operation, self.policy))


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------

StoreResult = Union["Store", JSONPrimitive]
DeferredValue = Callable[[], StoreResult]
StoreValue = Union[StoreResult, DeferredValue, JSONObject, JSONArray]


def _is_deferred(value: Any) -> bool:
    return callable(value) and not isinstance(value, Store)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class Store:
    """A permission-guarded node of a hierarchical key-value tree.

    Class attributes form the schema of a store type and are consulted
    once, at construction:

    - ``permissions``: key to policy table. Tables are merged along the
      class hierarchy, subclasses overriding their bases.
    - ``default_permission``: initial ``default_policy`` of instances.
    - ``strict_traversal``: when True, a multi-segment read also needs
      read permission on every key it passes through. Otherwise only the
      key read at the end of the path is checked.

    Child stores created while writing come from :meth:`create_instance`,
    so a tree is made of a single concrete store type.
    """

    permissions: ClassVar[Mapping[str, str]] = {}
    default_permission: ClassVar[str] = READ_WRITE
    strict_traversal: ClassVar[bool] = False

    def __init__(
        self,
        permissions: Optional[Mapping[str, str]] = None,
        default_policy: Optional[str] = None,
    ) -> None:
        overrides = self.declared_permissions()
        overrides.update(permissions or {})
        self.permission_table = PermissionTable.from_mapping(
            overrides,
            default_policy if default_policy is not None else self.default_permission,
        )
        self._entries: dict[str, Any] = {}

    @classmethod
    def declared_permissions(cls) -> dict[str, str]:
        """Return the merged permission schema of this store type."""
        table: dict[str, str] = {}
        for klass in reversed(cls.__mro__):
            table.update(vars(klass).get("permissions") or {})
        return table

    def create_instance(self) -> "Store":
        """Create an empty store of the same concrete type as this one.

        Subclasses whose constructor takes required arguments must
        override this.
        """
        return type(self)()

    # -- permissions --------------------------------------------------------

    @property
    def default_policy(self) -> str:
        return self.permission_table.default_policy

    @default_policy.setter
    def default_policy(self, policy: str) -> None:
        self.permission_table.default_policy = normalize_policy(policy)

    def get_permission(self, key: str) -> str:
        return self.permission_table.policy_for(key)

    def set_permission(self, key: str, policy: str) -> None:
        self.permission_table.set_override(key, policy)

    def allowed_to_read(self, key: str) -> bool:
        return self.permission_table.allows_read(key)

    def allowed_to_write(self, key: str) -> bool:
        return self.permission_table.allows_write(key)

    def _require(self, operation: str, key: str) -> None:
        if operation == "read":
            allowed = self.allowed_to_read(key)
        else:
            allowed = self.allowed_to_write(key)
        if not allowed:
            policy = self.get_permission(key)
            logger.debug(f"{operation} denied on {key!r} (policy {policy!r}) in {type(self).__name__}")
            raise AccessDeniedError(key, operation, policy)

    # -- read ---------------------------------------------------------------

    def read(self, path: str) -> StoreResult:
        """Read the value stored at ``path``.

        Deferred values are evaluated on every read. A key that was never
        written reads as None.

        Raises:
            InvalidPathError: When the path is null or malformed, or an
                intermediate segment does not resolve to a store.
            AccessDeniedError: When the final key is not readable (or,
                with ``strict_traversal``, any key along the path).
        """
        _check_path(path)
        head, rest = path_module.head_and_rest(path)

        if rest is None:
            self._require("read", head)
            entry = self._entries.get(head)
            return entry() if _is_deferred(entry) else entry

        if self.strict_traversal:
            self._require("read", head)
        entry = self._entries.get(head)
        if _is_deferred(entry):
            entry = entry()
        if not isinstance(entry, Store):
            raise InvalidPathError("The path given is incorrect", path)
        return entry.read(rest)

    # -- write --------------------------------------------------------------

    def write(self, path: str, value: StoreValue) -> StoreValue:
        """Write ``value`` at ``path`` and return it.

        Primitives, store references and deferred values (zero-argument
        callables) are stored as given. Objects and arrays are expanded
        into a new child store that replaces whatever was stored before.
        Missing intermediate stores are created if the key that will hold
        them is writable.

        Raises:
            InvalidPathError: When the path is null or malformed.
            AccessDeniedError: When the written key, or a missing
                intermediate key, is not writable.
            TypeError: When the value is not a storable kind.
            ValueError: When a store would become part of its own subtree,
                or is already held under another key of this tree.
        """
        _check_path(path)
        head, rest = path_module.head_and_rest(path)

        if rest is not None:
            child = self._entries.get(head)
            if not isinstance(child, Store):
                self._require("write", head)
                child = self.create_instance()
                logger.debug(f"Created {type(child).__name__} at {head!r}")
            self._check_placement(path, value)
            child.write(rest, value)
            self._entries[head] = child
            return value

        self._require("write", head)
        self._check_placement(path, value)
        if _is_deferred(value) or isinstance(value, Store) or is_primitive(value):
            self._entries[head] = value
        elif is_composite(value):
            self._entries[head] = self._expand(head, value)
        else:
            raise TypeError(
                f"write(): cannot store value of type {type(value).__name__} at {path!r}"
            )
        return value

    def _expand(self, key: str, value: Union[JSONObject, JSONArray]) -> "Store":
        child = self.create_instance()
        leaves = flatten(value)
        logger.debug(f"Expanding composite at {key!r} into {len(leaves)} leaves")
        for leaf_path, leaf in leaves.items():
            child.write(leaf_path, leaf)
        return child

    def write_entries(self, entries: JSONObject) -> None:
        """Write every top-level pair of ``entries``, in order.

        Not transactional: the first failing key aborts the batch and
        keys written before it keep their new values.
        """
        for key, value in entries.items():
            self.write(key, value)

    # -- serialize ----------------------------------------------------------

    def entries(self) -> JSONObject:
        """Serialize the readable part of the tree to a JSON object.

        Keys this store may not read are left out, and every child store
        applies its own policies. Deferred values are evaluated; None
        values are omitted.
        """
        result: JSONObject = {}
        for key, value in self._entries.items():
            if not self.allowed_to_read(key):
                continue
            if _is_deferred(value):
                value = value()
            if isinstance(value, Store):
                result[key] = value.entries()
            elif value is not None:
                result[key] = value
        return result

    # -- helpers ------------------------------------------------------------

    def _check_placement(self, path: str, value: Any) -> None:
        if not isinstance(value, Store):
            return
        if value._subtree_contains(self):
            raise ValueError("A store cannot be written inside its own subtree")
        held_at = self._locate(value)
        if held_at is not None and held_at != path_module.split(path):
            raise ValueError(f"Store is already held at {path_module.join(held_at)!r}")

    def _locate(self, target: "Store") -> Optional[list[str]]:
        """Return the segments leading to ``target`` inside this tree."""
        for key, value in self._entries.items():
            if value is target:
                return [key]
            if isinstance(value, Store):
                found = value._locate(target)
                if found is not None:
                    return [key, *found]
        return None

    def _subtree_contains(self, target: "Store") -> bool:
        if self is target:
            return True
        return any(
            isinstance(value, Store) and value._subtree_contains(target)
            for value in self._entries.values()
        )

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keys={list(self._entries)!r})"


def _check_path(path: Any) -> None:
    problem = path_module.validate(path)
    if problem is not None:
        raise InvalidPathError(problem, path)
