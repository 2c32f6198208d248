"""Pure operations on ACL entry lists."""

from __future__ import annotations

from collections.abc import Iterable

from datalake_acl.acl.models import AccessControlEntry, AclScope, PrincipalType


def parse_acl(acl: str | None) -> list[AccessControlEntry]:
    """Parse the store's comma-separated ACL string."""
    if not acl:
        return []
    return [AccessControlEntry.parse(item) for item in acl.split(",") if item.strip()]


def format_acl(entries: Iterable[AccessControlEntry]) -> str:
    return ",".join(str(entry) for entry in entries)


def upsert_entry(
    entries: list[AccessControlEntry],
    entry: AccessControlEntry,
) -> list[AccessControlEntry]:
    """Replace the entry with the same key in place, or append it."""
    updated: list[AccessControlEntry] = []
    replaced = False
    for existing in entries:
        if existing.key == entry.key:
            if not replaced:
                updated.append(entry)
                replaced = True
            continue
        updated.append(existing)
    if not replaced:
        updated.append(entry)
    return updated


def upsert_entries(
    entries: list[AccessControlEntry],
    changes: Iterable[AccessControlEntry],
) -> list[AccessControlEntry]:
    for change in changes:
        entries = upsert_entry(entries, change)
    return entries


def grant_entries(
    principal_type: PrincipalType,
    principal_id: str,
    permissions: str,
    include_default_scope: bool = False,
    mask: str = "rwx",
) -> list[AccessControlEntry]:
    """Entries that grant ``permissions`` to one principal.

    Each scope gets a mask entry first so the named entry is not filtered
    by a narrower existing mask.
    """
    scopes = [AclScope.ACCESS]
    if include_default_scope:
        scopes.append(AclScope.DEFAULT)

    grants: list[AccessControlEntry] = []
    for scope in scopes:
        grants.append(AccessControlEntry(scope, PrincipalType.MASK, None, mask))
        grants.append(AccessControlEntry(scope, principal_type, principal_id, permissions))
    return grants


def entries_for_principal(
    entries: Iterable[AccessControlEntry],
    principal_type: PrincipalType,
    principal_id: str,
) -> list[AccessControlEntry]:
    return [
        entry for entry in entries
        if entry.principal_type == principal_type and entry.principal_id == principal_id
    ]


def remove_principal(
    entries: Iterable[AccessControlEntry],
    principal_type: PrincipalType,
    principal_id: str,
) -> list[AccessControlEntry]:
    """Drop every entry for the principal, in any scope."""
    return [
        entry for entry in entries
        if not (entry.principal_type == principal_type and entry.principal_id == principal_id)
    ]
