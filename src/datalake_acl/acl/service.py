"""Set, get and remove folder ACL entries for directory identities."""

from __future__ import annotations

import structlog
from azure.storage.filedatalake import DataLakeDirectoryClient

from datalake_acl.acl.entries import (
    entries_for_principal,
    format_acl,
    grant_entries,
    parse_acl,
    remove_principal,
    upsert_entries,
)
from datalake_acl.acl.models import (
    AccessControlEntry,
    AccessControlType,
    AclChangeSummary,
    AclEntryView,
    AclScope,
    PrincipalType,
    PropagationScope,
    store_principal_type,
)
from datalake_acl.errors import DataLakeAclError, NotFoundError, PartialFailureError
from datalake_acl.identity.models import IdentityReference
from datalake_acl.identity.resolver import IdentityResolver
from datalake_acl.storage.context import STORAGE_ERRORS, StorageContext
from datalake_acl.storage.models import normalize_folder_path

logger = structlog.get_logger()

CONTAINER_PERMISSIONS = "r-x"


class AclOperations:
    """ACL operations for one storage account.

    Recursive writes go through the SDK's recursive ACL calls, which walk the
    subtree server-side in batches. Nothing is retried; the first failed write
    is raised and later steps are skipped. A walk that stops early, for example
    after ``max_batches``, raises ``PartialFailureError`` with the continuation
    token of the unprocessed part.
    """

    def __init__(
        self,
        context: StorageContext,
        resolver: IdentityResolver,
        batch_size: int = 2000,
        max_batches: int | None = None,
        continue_on_failure: bool = False,
    ):
        self._context = context
        self._resolver = resolver
        self._batch_size = batch_size
        self._max_batches = max_batches or None
        self._continue_on_failure = continue_on_failure

    def _require_folder(self, container: str, path: str, operation: str) -> None:
        try:
            exists = self._context.folder_exists(container, path)
        except STORAGE_ERRORS as exc:
            raise self._context.wrap(exc, operation, container, path) from exc
        if not exists:
            raise NotFoundError(
                f"Folder '{path or '/'}' does not exist in container '{container}'",
                operation=operation,
                storage_account=self._context.account_name,
                container=container,
                path=path,
            )

    def _resolve(self, identity: str) -> tuple[IdentityReference, PrincipalType]:
        try:
            reference = self._resolver.resolve(identity)
        except DataLakeAclError as exc:
            exc.storage_account = exc.storage_account or self._context.account_name
            raise
        principal_type = store_principal_type(reference.object_type)
        if not principal_type:
            raise ValueError(f"Identity '{identity}' has no ACL principal type")
        return reference, PrincipalType(principal_type)

    def _read_acl(
        self,
        client: DataLakeDirectoryClient,
        operation: str,
        container: str,
        path: str,
    ) -> list[AccessControlEntry]:
        try:
            access_control = client.get_access_control()
        except STORAGE_ERRORS as exc:
            raise self._context.wrap(exc, operation, container, path) from exc
        return parse_acl(access_control.get("acl"))

    def _write_acl(
        self,
        client: DataLakeDirectoryClient,
        entries: list[AccessControlEntry],
        propagation: PropagationScope,
        operation: str,
        container: str,
        path: str,
        identity: str,
    ) -> AclChangeSummary:
        acl = format_acl(entries)
        failures: list[dict[str, object]] = []
        try:
            if propagation is PropagationScope.SINGLE_NODE:
                client.set_access_control(acl=acl)
                return AclChangeSummary(directories_successful=1)
            result = client.update_access_control_recursive(
                acl=acl,
                progress_hook=_failure_collector(failures),
                **self._recursive_options(),
            )
        except STORAGE_ERRORS as exc:
            raise self._context.wrap(exc, operation, container, path, identity) from exc
        return self._summarize(result, failures, operation, container, path, identity)

    def _recursive_options(self) -> dict[str, object]:
        return {
            "batch_size": self._batch_size,
            "max_batches": self._max_batches,
            "continue_on_failure": self._continue_on_failure,
        }

    def _summarize(
        self,
        result,
        failures: list[dict[str, object]],
        operation: str,
        container: str,
        path: str,
        identity: str,
    ) -> AclChangeSummary:
        counters = result.counters
        summary = AclChangeSummary(
            directories_successful=counters.directories_successful,
            files_successful=counters.files_successful,
            failure_count=counters.failure_count,
            failed_entries=tuple(failures),
        )
        continuation = getattr(result, "continuation", None)
        if summary.failure_count or continuation:
            logger.error(
                "acl_partial_failure",
                storage_account=self._context.account_name,
                container=container,
                path=path,
                failure_count=summary.failure_count,
                incomplete=bool(continuation),
            )
            if summary.failure_count:
                reason = f"failed for {summary.failure_count} path(s)"
            else:
                reason = "stopped before reaching every path"
            raise PartialFailureError(
                f"{operation} {reason} under '{container}/{path}' on storage account "
                f"'{self._context.account_name}'",
                failure_count=summary.failure_count,
                failed_entries=list(failures),
                continuation=continuation,
                operation=operation,
                storage_account=self._context.account_name,
                container=container,
                path=path,
                identity=identity,
            )
        return summary

    def _grant_container(
        self,
        container: str,
        principal_type: PrincipalType,
        object_id: str,
        identity: str,
    ) -> None:
        """Give the identity read/traverse on the container root itself."""
        client = self._context.directory(container, "")
        current = self._read_acl(client, "SetContainerAcl", container, "")
        updated = upsert_entries(
            current,
            grant_entries(principal_type, object_id, CONTAINER_PERMISSIONS, mask=CONTAINER_PERMISSIONS),
        )
        self._write_acl(
            client, updated, PropagationScope.SINGLE_NODE,
            "SetContainerAcl", container, "", identity,
        )
        logger.info(
            "container_acl_set",
            storage_account=self._context.account_name,
            container=container,
            object_id=object_id,
        )

    def set_acl(
        self,
        container: str,
        path: str,
        identity: str,
        access_type: AccessControlType | str,
        include_default_scope: bool = False,
        set_container_acl: bool = False,
        propagation: PropagationScope = PropagationScope.RECURSIVE,
    ) -> AclChangeSummary:
        """Grant ``identity`` Read (r-x) or Write (rwx) on a folder.

        Args:
            container: File system (container) name.
            path: Folder path; empty for the container root.
            identity: UPN, group display name or service principal display name.
            access_type: Read or Write.
            include_default_scope: Also set the default ACL so new children inherit.
            set_container_acl: Also grant r-x on the container root first.
            propagation: Write to the folder only, or to its whole subtree.

        Returns:
            Counters of the write.
        """
        access_type = AccessControlType.parse(access_type)
        path = normalize_folder_path(path)
        self._require_folder(container, path, "SetFolderAcl")
        reference, principal_type = self._resolve(identity)

        if set_container_acl:
            self._grant_container(container, principal_type, reference.object_id, identity)

        client = self._context.directory(container, path)
        current = self._read_acl(client, "SetFolderAcl", container, path)
        updated = upsert_entries(
            current,
            grant_entries(
                principal_type,
                reference.object_id,
                access_type.permissions,
                include_default_scope=include_default_scope,
            ),
        )
        summary = self._write_acl(
            client, updated, propagation, "SetFolderAcl", container, path, identity,
        )
        logger.info(
            "acl_entry_set",
            storage_account=self._context.account_name,
            container=container,
            path=path,
            object_id=reference.object_id,
            permissions=access_type.permissions,
            default_scope=include_default_scope,
            propagation=propagation.value,
        )
        return summary

    def remove_acl(
        self,
        container: str,
        identity: str,
        path: str = "",
        propagation: PropagationScope = PropagationScope.RECURSIVE,
    ) -> AclChangeSummary:
        """Remove every ACL entry (access and default) of ``identity``."""
        path = normalize_folder_path(path)
        self._require_folder(container, path, "RemoveFolderAcl")
        reference, principal_type = self._resolve(identity)

        client = self._context.directory(container, path)
        current = self._read_acl(client, "RemoveFolderAcl", container, path)
        matching = entries_for_principal(current, principal_type, reference.object_id)
        if not matching:
            logger.info(
                "acl_entry_absent",
                container=container,
                path=path,
                object_id=reference.object_id,
            )

        if propagation is PropagationScope.SINGLE_NODE:
            summary = self._write_acl(
                client,
                remove_principal(current, principal_type, reference.object_id),
                propagation,
                "RemoveFolderAcl",
                container,
                path,
                identity,
            )
        else:
            summary = self._remove_recursive(
                client, principal_type, reference.object_id,
                container, path, identity,
            )

        logger.info(
            "acl_entry_removed",
            storage_account=self._context.account_name,
            container=container,
            path=path,
            object_id=reference.object_id,
            removed=len(matching),
            propagation=propagation.value,
        )
        return summary

    def _remove_recursive(
        self,
        client: DataLakeDirectoryClient,
        principal_type: PrincipalType,
        object_id: str,
        container: str,
        path: str,
        identity: str,
    ) -> AclChangeSummary:
        # Both scopes always: descendants may carry entries the target lacks
        specs = [
            AccessControlEntry(scope, principal_type, object_id, "---").to_removal_spec()
            for scope in (AclScope.ACCESS, AclScope.DEFAULT)
        ]

        failures: list[dict[str, object]] = []
        try:
            result = client.remove_access_control_recursive(
                acl=",".join(specs),
                progress_hook=_failure_collector(failures),
                **self._recursive_options(),
            )
        except STORAGE_ERRORS as exc:
            raise self._context.wrap(exc, "RemoveFolderAcl", container, path, identity) from exc
        return self._summarize(result, failures, "RemoveFolderAcl", container, path, identity)

    def get_acl(self, container: str, path: str = "") -> list[AclEntryView]:
        """List the named ACL entries of a folder with directory details.

        Owner, owning group, other and mask entries are skipped. An entry whose
        principal cannot be looked up is still listed with an empty display
        name and unknown type.
        """
        path = normalize_folder_path(path)
        self._require_folder(container, path, "GetFolderAcl")
        client = self._context.directory(container, path)
        entries = self._read_acl(client, "GetFolderAcl", container, path)

        views: list[AclEntryView] = []
        for entry in entries:
            if not entry.principal_id:
                continue
            try:
                reference = self._resolver.describe(entry.principal_id)
                display_name, object_type = reference.display_name, reference.object_type
            except DataLakeAclError as exc:
                logger.warning(
                    "acl_principal_lookup_failed",
                    object_id=entry.principal_id,
                    error=str(exc),
                )
                display_name, object_type = "", None
            views.append(
                AclEntryView(
                    display_name=display_name,
                    object_id=entry.principal_id,
                    object_type=object_type,
                    permissions=entry.permissions,
                    default_scope=entry.is_default,
                )
            )
        return views


def _failure_collector(failures: list[dict[str, object]]):
    def hook(changes) -> None:
        for failure in changes.batch_failures or []:
            failures.append({
                "name": failure.name,
                "is_directory": failure.is_directory,
                "error_message": failure.error_message,
            })

    return hook
