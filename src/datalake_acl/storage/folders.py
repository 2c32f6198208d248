"""Folder create, delete and move on a hierarchical namespace container."""

from __future__ import annotations

import structlog

from datalake_acl.errors import AlreadyExistsError, NotFoundError
from datalake_acl.storage.context import STORAGE_ERRORS, StorageContext
from datalake_acl.storage.models import FolderHandle, normalize_folder_path

logger = structlog.get_logger()


class FolderOperations:
    """Folder lifecycle operations for one storage account."""

    def __init__(self, context: StorageContext):
        self._context = context

    def _require_path(self, path: str | None) -> str:
        normalized = normalize_folder_path(path)
        if not normalized:
            raise ValueError("A folder path below the container root is required")
        return normalized

    def _handle(self, container: str, path: str, client, properties=None) -> FolderHandle:
        return FolderHandle(
            storage_account=self._context.account_name,
            container=container,
            path=path,
            url=client.url,
            etag=_property(properties, "etag"),
            last_modified=_property(properties, "last_modified"),
        )

    def create(self, container: str, path: str, error_if_exists: bool = False) -> FolderHandle:
        """Create ``path`` and any missing parents.

        An existing folder is returned as-is unless ``error_if_exists`` is set.
        """
        path = self._require_path(path)
        client = self._context.directory(container, path)
        try:
            if client.exists():
                if error_if_exists:
                    raise AlreadyExistsError(
                        f"Folder '{path}' already exists in container '{container}'",
                        operation="CreateFolder",
                        storage_account=self._context.account_name,
                        container=container,
                        path=path,
                    )
                logger.info("folder_exists", container=container, path=path)
                return self._handle(container, path, client, client.get_directory_properties())

            properties = client.create_directory()
        except STORAGE_ERRORS as exc:
            raise self._context.wrap(exc, "CreateFolder", container, path) from exc

        logger.info(
            "folder_created",
            storage_account=self._context.account_name,
            container=container,
            path=path,
        )
        return self._handle(container, path, client, properties)

    def delete(self, container: str, path: str, error_if_missing: bool = False) -> None:
        """Delete ``path`` and everything below it. Missing folders are a no-op
        unless ``error_if_missing`` is set."""
        path = self._require_path(path)
        client = self._context.directory(container, path)
        try:
            if not client.exists():
                if error_if_missing:
                    raise NotFoundError(
                        f"Folder '{path}' does not exist in container '{container}'",
                        operation="DeleteFolder",
                        storage_account=self._context.account_name,
                        container=container,
                        path=path,
                    )
                logger.info("folder_absent", container=container, path=path)
                return

            client.delete_directory()
        except STORAGE_ERRORS as exc:
            raise self._context.wrap(exc, "DeleteFolder", container, path) from exc

        logger.info(
            "folder_deleted",
            storage_account=self._context.account_name,
            container=container,
            path=path,
        )

    def move(
        self,
        source_container: str,
        source_path: str,
        dest_path: str,
        dest_container: str | None = None,
    ) -> FolderHandle:
        """Move a folder, overwriting the destination if it exists."""
        source_path = self._require_path(source_path)
        dest_path = self._require_path(dest_path)
        dest_container = dest_container or source_container

        client = self._context.directory(source_container, source_path)
        try:
            if not client.exists():
                raise NotFoundError(
                    f"Folder '{source_path}' does not exist in container '{source_container}'",
                    operation="MoveFolder",
                    storage_account=self._context.account_name,
                    container=source_container,
                    path=source_path,
                )
            moved = client.rename_directory(new_name=f"{dest_container}/{dest_path}")
        except STORAGE_ERRORS as exc:
            raise self._context.wrap(exc, "MoveFolder", source_container, source_path) from exc

        logger.info(
            "folder_moved",
            storage_account=self._context.account_name,
            source=f"{source_container}/{source_path}",
            destination=f"{dest_container}/{dest_path}",
        )
        return self._handle(dest_container, dest_path, moved)


def _property(properties, name: str):
    if properties is None:
        return None
    if isinstance(properties, dict):
        return properties.get(name)
    return getattr(properties, name, None)
