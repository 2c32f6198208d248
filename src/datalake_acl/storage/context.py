"""Per-call storage context: resolved account plus a Data Lake service client."""

from __future__ import annotations

import structlog
from azure.core.exceptions import AzureError
from azure.storage.filedatalake import (
    DataLakeDirectoryClient,
    DataLakeServiceClient,
    FileSystemClient,
)

from datalake_acl.auth.credential import MsalCredential
from datalake_acl.errors import (
    AuthenticationRequiredError,
    DataLakeAclError,
    GenericProviderError,
    wrap_provider_error,
)
from datalake_acl.storage.arm_client import ArmClient
from datalake_acl.storage.models import (
    StorageAccountInfo,
    SubscriptionInfo,
    normalize_folder_path,
)

logger = structlog.get_logger()

ROOT_DIRECTORY = "/"

# The SDK calls MsalCredential.get_token mid-request, so token failures surface
# from storage calls next to azure-core errors.
STORAGE_ERRORS = (AzureError, AuthenticationRequiredError)


class StorageContext:
    """Data Lake clients bound to one storage account."""

    def __init__(
        self,
        account: StorageAccountInfo,
        service_client: DataLakeServiceClient,
        subscription: SubscriptionInfo | None = None,
    ):
        self.account = account
        self.subscription = subscription
        self._service_client = service_client

    @property
    def account_name(self) -> str:
        return self.account.name

    def file_system(self, container: str) -> FileSystemClient:
        return self._service_client.get_file_system_client(container)

    def directory(self, container: str, path: str | None) -> DataLakeDirectoryClient:
        """Directory client for ``path``; an empty path is the container root."""
        normalized = normalize_folder_path(path)
        return self.file_system(container).get_directory_client(normalized or ROOT_DIRECTORY)

    def folder_exists(self, container: str, path: str | None) -> bool:
        if not normalize_folder_path(path):
            return self.file_system(container).exists()
        return self.directory(container, path).exists()

    def wrap(
        self,
        exc: BaseException,
        operation: str,
        container: str | None = None,
        path: str | None = None,
        identity: str | None = None,
    ) -> DataLakeAclError:
        return wrap_provider_error(
            exc,
            operation=operation,
            storage_account=self.account_name,
            container=container,
            path=path,
            identity=identity,
        )

    def close(self) -> None:
        self._service_client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class StorageContextFactory:
    """Resolves subscription and storage account, then opens a context."""

    def __init__(self, arm_client: ArmClient, credential: MsalCredential):
        self._arm_client = arm_client
        self._credential = credential

    def connect(
        self,
        subscription: str,
        resource_group: str,
        storage_account: str,
    ) -> StorageContext:
        subscription_info = self._arm_client.get_subscription(subscription)
        account = self._arm_client.get_storage_account(
            subscription_info.subscription_id, resource_group, storage_account
        )
        if not account.is_hns_enabled:
            raise GenericProviderError(
                f"Storage account '{storage_account}' does not have hierarchical namespace enabled",
                operation="Connect",
                storage_account=storage_account,
            )

        service_client = DataLakeServiceClient(
            account_url=account.dfs_endpoint,
            credential=self._credential,
        )
        logger.debug(
            "storage_context_opened",
            storage_account=account.name,
            subscription_id=subscription_info.subscription_id,
        )
        return StorageContext(account, service_client, subscription_info)
