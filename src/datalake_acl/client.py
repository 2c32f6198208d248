"""Library entry point: one method per public operation."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from datalake_acl.acl.models import (
    AccessControlType,
    AclChangeSummary,
    AclEntryView,
    PropagationScope,
)
from datalake_acl.acl.service import AclOperations
from datalake_acl.auth.credential import MsalCredential
from datalake_acl.auth.graph_client import GraphClient
from datalake_acl.config import Settings
from datalake_acl.identity.models import IdentityReference
from datalake_acl.identity.resolver import IdentityResolver
from datalake_acl.storage.arm_client import ArmClient
from datalake_acl.storage.context import StorageContext, StorageContextFactory
from datalake_acl.storage.folders import FolderOperations
from datalake_acl.storage.models import FolderHandle, SubscriptionInfo


class DataLakeAclClient:
    """Folder and ACL management for Data Lake Storage Gen2 accounts.

    Every call resolves its own subscription, storage account and ACL snapshot
    and closes its HTTP clients before returning. Nothing is shared between
    calls except the MSAL token cache.
    """

    def __init__(self, settings: Settings, credential: MsalCredential | None = None):
        self._settings = settings
        self._credential = credential or MsalCredential(
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            authority=settings.authority,
        )

    def _graph(self) -> GraphClient:
        return GraphClient(
            self._credential,
            base_url=self._settings.graph_api_base,
            timeout=self._settings.http_timeout,
        )

    def _arm(self) -> ArmClient:
        return ArmClient(
            self._credential,
            base_url=self._settings.arm_api_base,
            timeout=self._settings.http_timeout,
        )

    @contextmanager
    def _storage(
        self,
        subscription: str,
        resource_group: str,
        storage_account: str,
    ) -> Iterator[StorageContext]:
        with self._arm() as arm_client:
            context = StorageContextFactory(arm_client, self._credential).connect(
                subscription, resource_group, storage_account
            )
        with context:
            yield context

    @contextmanager
    def _acl(
        self,
        subscription: str,
        resource_group: str,
        storage_account: str,
    ) -> Iterator[AclOperations]:
        with self._storage(subscription, resource_group, storage_account) as context, \
                self._graph() as graph_client:
            yield AclOperations(
                context,
                IdentityResolver(graph_client),
                batch_size=self._settings.acl_batch_size,
                max_batches=self._settings.acl_max_batches,
                continue_on_failure=self._settings.acl_continue_on_failure,
            )

    def resolve_identity(self, identity: str) -> IdentityReference:
        with self._graph() as graph_client:
            return IdentityResolver(graph_client).resolve(identity)

    def get_subscription_info(self, subscription: str) -> SubscriptionInfo:
        with self._arm() as arm_client:
            return arm_client.get_subscription(subscription)

    def create_folder(
        self,
        subscription: str,
        resource_group: str,
        storage_account: str,
        container: str,
        path: str,
        error_if_exists: bool = False,
    ) -> FolderHandle:
        with self._storage(subscription, resource_group, storage_account) as context:
            return FolderOperations(context).create(container, path, error_if_exists=error_if_exists)

    def delete_folder(
        self,
        subscription: str,
        resource_group: str,
        storage_account: str,
        container: str,
        path: str,
        error_if_missing: bool = False,
    ) -> None:
        with self._storage(subscription, resource_group, storage_account) as context:
            FolderOperations(context).delete(container, path, error_if_missing=error_if_missing)

    def move_folder(
        self,
        subscription: str,
        resource_group: str,
        storage_account: str,
        source_container: str,
        source_path: str,
        dest_path: str,
        dest_container: str | None = None,
    ) -> FolderHandle:
        with self._storage(subscription, resource_group, storage_account) as context:
            return FolderOperations(context).move(
                source_container, source_path, dest_path, dest_container=dest_container
            )

    def set_folder_acl(
        self,
        subscription: str,
        resource_group: str,
        storage_account: str,
        container: str,
        path: str,
        identity: str,
        access_type: AccessControlType | str,
        include_default_scope: bool = False,
        set_container_acl: bool = False,
        propagation: PropagationScope = PropagationScope.RECURSIVE,
    ) -> AclChangeSummary:
        with self._acl(subscription, resource_group, storage_account) as acl:
            return acl.set_acl(
                container,
                path,
                identity,
                access_type,
                include_default_scope=include_default_scope,
                set_container_acl=set_container_acl,
                propagation=propagation,
            )

    def get_folder_acl(
        self,
        subscription: str,
        resource_group: str,
        storage_account: str,
        container: str,
        path: str = "",
    ) -> list[AclEntryView]:
        with self._acl(subscription, resource_group, storage_account) as acl:
            return acl.get_acl(container, path)

    def remove_folder_acl(
        self,
        subscription: str,
        resource_group: str,
        storage_account: str,
        container: str,
        identity: str,
        path: str = "",
        propagation: PropagationScope = PropagationScope.RECURSIVE,
    ) -> AclChangeSummary:
        with self._acl(subscription, resource_group, storage_account) as acl:
            return acl.remove_acl(container, identity, path, propagation=propagation)
