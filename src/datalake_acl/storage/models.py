"""Storage-side data models."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime


@dataclass(frozen=True)
class SubscriptionInfo:
    subscription_id: str
    display_name: str
    tenant_id: str
    state: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


@dataclass(frozen=True)
class StorageAccountInfo:
    name: str
    resource_group: str
    subscription_id: str
    location: str
    dfs_endpoint: str
    is_hns_enabled: bool


@dataclass(frozen=True)
class FolderHandle:
    """A folder that exists in a container."""

    storage_account: str
    container: str
    path: str
    url: str
    etag: str | None = None
    last_modified: datetime | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "storage_account": self.storage_account,
            "container": self.container,
            "path": self.path,
            "url": self.url,
            "etag": self.etag,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
        }


def normalize_folder_path(path: str | None) -> str:
    """Normalize a folder path to ``/``-joined segments.

    Accepts ``/`` or ``\\`` separators and strips a single leading separator.
    An empty result denotes the container root.
    """
    if not path:
        return ""
    normalized = path.replace("\\", "/")
    if normalized.startswith("/"):
        normalized = normalized[1:]
    return normalized.rstrip("/")
