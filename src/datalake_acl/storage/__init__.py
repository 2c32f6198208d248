"""Data Lake Storage Gen2 access."""

from datalake_acl.storage.arm_client import ArmClient
from datalake_acl.storage.context import StorageContext, StorageContextFactory
from datalake_acl.storage.folders import FolderOperations
from datalake_acl.storage.models import (
    FolderHandle,
    StorageAccountInfo,
    SubscriptionInfo,
    normalize_folder_path,
)

__all__ = [
    "ArmClient",
    "FolderHandle",
    "FolderOperations",
    "StorageAccountInfo",
    "StorageContext",
    "StorageContextFactory",
    "SubscriptionInfo",
    "normalize_folder_path",
]
