"""Microsoft Graph API client using app-only authentication."""

from __future__ import annotations

from typing import Any

from datalake_acl.auth.credential import GRAPH_SCOPE, MsalCredential
from datalake_acl.auth.rest_client import RestClient


def escape_odata_literal(value: str) -> str:
    """Escape a value for use inside a single-quoted OData string literal."""
    return value.replace("'", "''")


class GraphClient(RestClient):
    """Microsoft Graph API client using app-only (client credentials) auth.

    Requires admin-consented application permissions:
    - User.Read.All
    - Group.Read.All
    - Application.Read.All
    """

    GRAPH_API_BASE = "https://graph.microsoft.com/v1.0"

    def __init__(
        self,
        credential: MsalCredential,
        base_url: str = GRAPH_API_BASE,
        timeout: float = 30.0,
    ):
        super().__init__(credential, base_url, GRAPH_SCOPE, timeout=timeout)

    def _filter_eq(
        self,
        collection: str,
        attribute: str,
        value: str,
        select: str,
    ) -> list[dict[str, Any]]:
        params = {
            "$filter": f"{attribute} eq '{escape_odata_literal(value)}'",
            "$select": select,
        }
        return list(self._paginate(collection, params, operation=f"Get{collection}"))

    def find_users(self, user_principal_name: str) -> list[dict[str, Any]]:
        return self._filter_eq(
            "users", "userPrincipalName", user_principal_name,
            "id,displayName,userPrincipalName",
        )

    def find_groups(self, display_name: str) -> list[dict[str, Any]]:
        return self._filter_eq("groups", "displayName", display_name, "id,displayName")

    def find_service_principals(self, display_name: str) -> list[dict[str, Any]]:
        return self._filter_eq(
            "servicePrincipals", "displayName", display_name,
            "id,displayName,appId",
        )

    def get_directory_object(self, object_id: str) -> dict[str, Any]:
        """Fetch any directory object (user, group, service principal) by id."""
        return self._get(
            f"directoryObjects/{object_id}",
            operation="GetDirectoryObject",
        )
