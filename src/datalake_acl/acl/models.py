"""POSIX ACL data models for Data Lake Storage Gen2 paths."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from datalake_acl.identity.models import ObjectType


class AclScope(str, Enum):
    ACCESS = "Access"
    DEFAULT = "Default"


class PrincipalType(str, Enum):
    USER = "user"
    GROUP = "group"
    OTHER = "other"
    MASK = "mask"


class AccessControlType(str, Enum):
    """Caller-facing access level. Maps to a fixed rwx triplet."""

    READ = "Read"
    WRITE = "Write"

    @property
    def permissions(self) -> str:
        return _PERMISSIONS[self]

    @classmethod
    def parse(cls, value: str | AccessControlType) -> AccessControlType:
        if isinstance(value, AccessControlType):
            return value
        for member in cls:
            if member.value.lower() == str(value).lower():
                return member
        raise ValueError(f"Access control type must be Read or Write, got: {value!r}")


_PERMISSIONS = {
    AccessControlType.READ: "r-x",
    AccessControlType.WRITE: "rwx",
}


class PropagationScope(str, Enum):
    """Where an ACL change is written: the target only, or its whole subtree."""

    SINGLE_NODE = "SingleNode"
    RECURSIVE = "Recursive"


def store_principal_type(object_type: ObjectType) -> str:
    """Map a directory object type onto the store's ACL principal vocabulary.

    The store only distinguishes user/group/other, so service principals are
    ACL'd as users. Unknown types map to an empty (invalid) principal type.
    """
    match object_type:
        case ObjectType.USER | ObjectType.SERVICE_PRINCIPAL:
            return PrincipalType.USER.value
        case ObjectType.GROUP:
            return PrincipalType.GROUP.value
        case _:
            return ""


@dataclass(frozen=True)
class AccessControlEntry:
    """One ACL entry, e.g. ``default:user:<oid>:r-x``."""

    scope: AclScope
    principal_type: PrincipalType
    principal_id: str | None
    permissions: str

    @property
    def key(self) -> tuple[AclScope, PrincipalType, str | None]:
        return (self.scope, self.principal_type, self.principal_id)

    @property
    def is_default(self) -> bool:
        return self.scope is AclScope.DEFAULT

    def with_permissions(self, permissions: str) -> AccessControlEntry:
        return replace(self, permissions=permissions)

    @classmethod
    def parse(cls, text: str) -> AccessControlEntry:
        parts = text.strip().split(":")
        scope = AclScope.ACCESS
        if parts and parts[0] == "default":
            scope = AclScope.DEFAULT
            parts = parts[1:]
        if len(parts) != 3:
            raise ValueError(f"Malformed ACL entry: {text!r}")
        principal_type, principal_id, permissions = parts
        return cls(
            scope=scope,
            principal_type=PrincipalType(principal_type),
            principal_id=principal_id or None,
            permissions=permissions,
        )

    def to_removal_spec(self) -> str:
        """Entry without permissions, as the recursive remove call expects."""
        prefix = "default:" if self.is_default else ""
        return f"{prefix}{self.principal_type.value}:{self.principal_id or ''}"

    def __str__(self) -> str:
        return f"{self.to_removal_spec()}:{self.permissions}"


@dataclass(frozen=True)
class AclEntryView:
    """An ACL entry enriched with directory details, as returned by get_acl."""

    display_name: str
    object_id: str
    object_type: ObjectType | None
    permissions: str
    default_scope: bool

    def to_dict(self) -> dict[str, object]:
        return {
            "display_name": self.display_name,
            "object_id": self.object_id,
            "object_type": self.object_type.value if self.object_type else "Unknown",
            "permissions": self.permissions,
            "default_scope": self.default_scope,
        }


@dataclass(frozen=True)
class AclChangeSummary:
    """Counters reported by a recursive ACL operation."""

    directories_successful: int = 0
    files_successful: int = 0
    failure_count: int = 0
    failed_entries: tuple[dict[str, object], ...] = ()
