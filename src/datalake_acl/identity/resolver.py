"""Translate human-readable identity names into directory object references."""

from __future__ import annotations

from typing import Any

import structlog

from datalake_acl.auth.graph_client import GraphClient
from datalake_acl.errors import IdentityNotFoundError, NotFoundError
from datalake_acl.identity.models import IdentityReference, ObjectType

logger = structlog.get_logger()

# First match wins. A name that is both a UPN and a group display name is a user.
LOOKUP_ORDER: tuple[tuple[ObjectType, str], ...] = (
    (ObjectType.USER, "find_users"),
    (ObjectType.GROUP, "find_groups"),
    (ObjectType.SERVICE_PRINCIPAL, "find_service_principals"),
)


class IdentityResolver:
    """Resolves identities against Entra ID. Results are never cached."""

    def __init__(self, graph_client: GraphClient):
        self._graph_client = graph_client

    def resolve(self, identity: str) -> IdentityReference:
        """Resolve a user principal name, group name or service principal name.

        Args:
            identity: UPN (``alice@example.com``) or display name.

        Returns:
            IdentityReference of the first lookup that matched.

        Raises:
            IdentityNotFoundError: no user, group or service principal matched.
            AuthenticationRequiredError: the directory rejected the session.
        """
        for object_type, lookup in LOOKUP_ORDER:
            matches = getattr(self._graph_client, lookup)(identity)
            if matches:
                match = matches[0]
                reference = IdentityReference(
                    object_id=match["id"],
                    object_type=object_type,
                    display_name=_display_name(match, identity),
                )
                logger.info(
                    "identity_resolved",
                    identity=identity,
                    object_id=reference.object_id,
                    object_type=object_type.value,
                )
                return reference

        logger.warning("identity_not_found", identity=identity)
        raise IdentityNotFoundError(
            f"Identity '{identity}' was not found as a user, group or service principal",
            operation="ResolveIdentity",
            identity=identity,
        )

    def describe(self, object_id: str) -> IdentityReference:
        """Reverse lookup of a directory object id."""
        try:
            data = self._graph_client.get_directory_object(object_id)
        except NotFoundError as exc:
            raise IdentityNotFoundError(
                f"Directory object '{object_id}' was not found",
                operation="DescribeIdentity",
                identity=object_id,
                inner=exc,
            ) from exc

        object_type = ObjectType.from_odata_type(data.get("@odata.type"))
        if object_type is None:
            raise IdentityNotFoundError(
                f"Directory object '{object_id}' has unsupported type {data.get('@odata.type')!r}",
                operation="DescribeIdentity",
                identity=object_id,
            )
        return IdentityReference(
            object_id=data.get("id", object_id),
            object_type=object_type,
            display_name=_display_name(data, object_id),
        )


def _display_name(item: dict[str, Any], fallback: str) -> str:
    return item.get("displayName") or item.get("userPrincipalName") or fallback
