"""Azure Resource Manager lookups for subscriptions and storage accounts."""

from __future__ import annotations

import structlog

from datalake_acl.auth.credential import ARM_SCOPE, MsalCredential
from datalake_acl.auth.rest_client import RestClient
from datalake_acl.errors import NotFoundError
from datalake_acl.storage.models import StorageAccountInfo, SubscriptionInfo

logger = structlog.get_logger()


class ArmClient(RestClient):
    """Read-only ARM client. Requires Reader on the target subscriptions."""

    ARM_API_BASE = "https://management.azure.com"
    SUBSCRIPTIONS_API_VERSION = "2022-12-01"
    STORAGE_API_VERSION = "2023-01-01"

    def __init__(
        self,
        credential: MsalCredential,
        base_url: str = ARM_API_BASE,
        timeout: float = 30.0,
    ):
        super().__init__(credential, base_url, ARM_SCOPE, timeout=timeout)

    def list_subscriptions(self) -> list[SubscriptionInfo]:
        params = {"api-version": self.SUBSCRIPTIONS_API_VERSION}
        return [
            SubscriptionInfo(
                subscription_id=item.get("subscriptionId", ""),
                display_name=item.get("displayName", ""),
                tenant_id=item.get("tenantId", ""),
                state=item.get("state", "Unknown"),
            )
            for item in self._paginate("subscriptions", params, operation="GetSubscription")
        ]

    def get_subscription(self, subscription: str) -> SubscriptionInfo:
        """Find a subscription by display name or subscription id."""
        wanted = subscription.strip().lower()
        for info in self.list_subscriptions():
            if wanted in (info.display_name.lower(), info.subscription_id.lower()):
                logger.debug(
                    "subscription_resolved",
                    subscription=subscription,
                    subscription_id=info.subscription_id,
                )
                return info
        raise NotFoundError(
            f"Subscription '{subscription}' was not found or is not accessible",
            operation="GetSubscription",
        )

    def get_storage_account(
        self,
        subscription_id: str,
        resource_group: str,
        account_name: str,
    ) -> StorageAccountInfo:
        path = (
            f"subscriptions/{subscription_id}/resourceGroups/{resource_group}"
            f"/providers/Microsoft.Storage/storageAccounts/{account_name}"
        )
        try:
            data = self._get(
                path,
                {"api-version": self.STORAGE_API_VERSION},
                operation="GetStorageAccount",
            )
        except NotFoundError as exc:
            raise NotFoundError(
                f"Storage account '{account_name}' was not found in resource group "
                f"'{resource_group}' of subscription '{subscription_id}'",
                operation="GetStorageAccount",
                storage_account=account_name,
                inner=exc,
            ) from exc

        properties = data.get("properties", {})
        endpoints = properties.get("primaryEndpoints", {})
        return StorageAccountInfo(
            name=data.get("name", account_name),
            resource_group=resource_group,
            subscription_id=subscription_id,
            location=data.get("location", ""),
            dfs_endpoint=endpoints.get("dfs") or f"https://{account_name}.dfs.core.windows.net/",
            is_hns_enabled=bool(properties.get("isHnsEnabled", False)),
        )
