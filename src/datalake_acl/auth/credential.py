"""MSAL-backed token credential shared by Graph, ARM and the storage SDK."""

from __future__ import annotations

import time

import structlog
from azure.core.credentials import AccessToken
from msal import ConfidentialClientApplication

from datalake_acl.errors import AuthenticationRequiredError

logger = structlog.get_logger()

GRAPH_SCOPE = "https://graph.microsoft.com/.default"
ARM_SCOPE = "https://management.azure.com/.default"
STORAGE_SCOPE = "https://storage.azure.com/.default"


class MsalCredential:
    """App-only (client credentials) credential.

    Implements the azure-core ``TokenCredential`` protocol so the same object
    can be handed to ``DataLakeServiceClient`` and used for raw REST calls.
    MSAL keeps its own in-memory token cache per application instance.
    """

    def __init__(self, client_id: str, client_secret: str, authority: str):
        self._msal_app = ConfidentialClientApplication(
            client_id=client_id,
            client_credential=client_secret,
            authority=authority,
        )

    def get_token(self, *scopes: str, **kwargs) -> AccessToken:
        result = self._msal_app.acquire_token_for_client(scopes=list(scopes))
        if "access_token" not in result:
            error = result.get("error_description") or result.get("error", "Unknown error")
            logger.warning("token_acquisition_failed", scopes=list(scopes), error=result.get("error"))
            raise AuthenticationRequiredError(
                f"Failed to acquire token for {', '.join(scopes)}: {error}",
                operation="AcquireToken",
            )
        expires_on = int(time.time()) + int(result.get("expires_in", 3600))
        return AccessToken(result["access_token"], expires_on)

    def bearer_header(self, scope: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.get_token(scope).token}"}
