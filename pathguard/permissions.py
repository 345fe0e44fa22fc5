"""
Pathguard permission model.

Each store owns a PermissionTable: per-key policy overrides plus a
default policy for every key without one. The table only ever inspects a
single path segment; deeper levels are enforced by the child stores'
own tables as a path is walked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional

# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------

READ_ONLY = "r"
WRITE_ONLY = "w"
READ_WRITE = "rw"
NONE = "none"

VALID_POLICIES = frozenset([READ_ONLY, WRITE_ONLY, READ_WRITE, NONE])

_LONG_NAMES = {
    "read-only": READ_ONLY,
    "write-only": WRITE_ONLY,
    "read-write": READ_WRITE,
}


def normalize_policy(policy: str) -> str:
    """Return the short form of a policy.

    Accepts "r", "w", "rw", "none" and the long spellings "read-only",
    "write-only", "read-write".

    Raises:
        ValueError: When the policy is not one of the above.
    """
    if policy in VALID_POLICIES:
        return policy
    short = _LONG_NAMES.get(policy) if isinstance(policy, str) else None
    if short is None:
        raise ValueError(
            f"Invalid permission policy {policy!r}; expected one of "
            f"{sorted(VALID_POLICIES)}"
        )
    return short


def allows_read(policy: str) -> bool:
    return policy in (READ_ONLY, READ_WRITE)


def allows_write(policy: str) -> bool:
    return policy in (WRITE_ONLY, READ_WRITE)


# ---------------------------------------------------------------------------
# Permission table
# ---------------------------------------------------------------------------

@dataclass
class PermissionTable:
    """Key to policy overrides with a fallback default policy."""
    default_policy: str = READ_WRITE
    overrides: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.default_policy = normalize_policy(self.default_policy)
        self.overrides = {
            key: normalize_policy(policy) for key, policy in self.overrides.items()
        }

    @classmethod
    def from_mapping(
        cls,
        overrides: Optional[Mapping[str, str]] = None,
        default_policy: str = READ_WRITE,
    ) -> "PermissionTable":
        return cls(default_policy=default_policy, overrides=dict(overrides or {}))

    def policy_for(self, key: str) -> str:
        """Return the override for ``key``, else the default policy."""
        return self.overrides.get(key, self.default_policy)

    def set_override(self, key: str, policy: str) -> None:
        self.overrides[key] = normalize_policy(policy)

    def allows_read(self, key: str) -> bool:
        return allows_read(self.policy_for(key))

    def allows_write(self, key: str) -> bool:
        return allows_write(self.policy_for(key))
