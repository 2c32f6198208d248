"""Pytest fixtures for datalake-acl tests."""

import os
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import pytest
from azure.core.exceptions import ResourceNotFoundError

from datalake_acl.acl.entries import format_acl, parse_acl, remove_principal, upsert_entries
from datalake_acl.auth.credential import MsalCredential
from datalake_acl.config import Settings
from datalake_acl.errors import IdentityNotFoundError
from datalake_acl.identity.models import IdentityReference, ObjectType
from datalake_acl.storage.context import StorageContext
from datalake_acl.storage.models import StorageAccountInfo

ALICE_ID = "aaaaaaaa-1111-2222-3333-444444444444"
BOB_ID = "bbbbbbbb-1111-2222-3333-444444444444"
ENGINEERS_ID = "eeeeeeee-1111-2222-3333-444444444444"
PIPELINE_SP_ID = "55555555-1111-2222-3333-444444444444"

BASE_ACL = "user::rwx,group::r-x,other::---"


@pytest.fixture
def mock_env_vars():
    """Mock environment variables for testing."""
    env_vars = {
        "AZURE_TENANT_ID": "test-tenant-id",
        "AZURE_CLIENT_ID": "test-client-id",
        "AZURE_CLIENT_SECRET": "test-client-secret",
        "LOG_LEVEL": "DEBUG",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture
def settings(mock_env_vars) -> Settings:
    """Create Settings instance with mocked environment."""
    return Settings(_env_file=None)


@pytest.fixture
def mock_msal_app():
    """Mock MSAL ConfidentialClientApplication."""
    with patch(
        "datalake_acl.auth.credential.ConfidentialClientApplication"
    ) as mock_cls:
        mock_app = MagicMock()
        mock_app.acquire_token_for_client.return_value = {
            "access_token": "fake-token-123",
            "expires_in": 3599,
        }
        mock_cls.return_value = mock_app
        yield mock_app


@pytest.fixture
def credential(mock_msal_app) -> MsalCredential:
    return MsalCredential(
        client_id="test-client-id",
        client_secret="test-secret",
        authority="https://login.microsoftonline.com/test-tenant-id",
    )


def json_response(status_code: int, payload, url: str = "http://test") -> httpx.Response:
    return httpx.Response(
        status_code,
        json=payload,
        request=httpx.Request("GET", url),
    )


@pytest.fixture
def mock_http():
    """httpx.Client stand-in; set ``get.side_effect`` to canned responses."""
    client = MagicMock(spec=httpx.Client)
    client.is_closed = False
    return client


class FakeLake:
    """In-memory hierarchical namespace: containers, folders and ACL strings."""

    def __init__(self, containers=("raw",)):
        self.folders: dict[str, set[str]] = {name: set() for name in containers}
        self.acls: dict[tuple[str, str], str] = {(name, ""): BASE_ACL for name in containers}
        self.calls: list[tuple[str, str, str]] = []
        self.write_error: BaseException | None = None
        self.failure_count = 0
        self.continuation: str | None = None

    def add_folder(self, container: str, path: str, acl: str = BASE_ACL) -> None:
        segments = path.split("/")
        for i in range(1, len(segments) + 1):
            parent = "/".join(segments[:i])
            if parent not in self.folders[container]:
                self.folders[container].add(parent)
                self.acls[(container, parent)] = BASE_ACL
        self.acls[(container, path)] = acl

    def subtree(self, container: str, path: str) -> list[str]:
        if not path:
            return [""] + sorted(self.folders[container])
        return [p for p in sorted(self.folders[container]) if p == path or p.startswith(path + "/")]

    def check_write(self) -> None:
        if self.write_error is not None:
            raise self.write_error


class FakeDirectoryClient:
    def __init__(self, lake: FakeLake, container: str, path: str):
        self._lake = lake
        self.container = container
        self.path = "" if path == "/" else path

    @property
    def url(self) -> str:
        return f"https://acct.dfs.core.windows.net/{self.container}/{self.path}"

    def _missing(self):
        return ResourceNotFoundError(message="The specified path does not exist.")

    def exists(self) -> bool:
        if self.container not in self._lake.folders:
            return False
        return not self.path or self.path in self._lake.folders[self.container]

    def create_directory(self):
        if self.container not in self._lake.folders:
            raise ResourceNotFoundError(message="The specified filesystem does not exist.")
        self._lake.add_folder(self.container, self.path)
        return {"etag": '"0x8D"', "last_modified": datetime(2026, 1, 1, tzinfo=timezone.utc)}

    def get_directory_properties(self):
        return SimpleNamespace(etag='"0x8D"', last_modified=datetime(2026, 1, 1, tzinfo=timezone.utc))

    def delete_directory(self):
        for path in self._lake.subtree(self.container, self.path):
            self._lake.folders[self.container].discard(path)
            self._lake.acls.pop((self.container, path), None)

    def rename_directory(self, new_name: str):
        dest_container, _, dest_path = new_name.partition("/")
        moved = self._lake.subtree(self.container, self.path)
        for path in moved:
            suffix = path[len(self.path):]
            acl = self._lake.acls.pop((self.container, path))
            self._lake.folders[self.container].discard(path)
            self._lake.add_folder(dest_container, dest_path + suffix, acl)
        return FakeDirectoryClient(self._lake, dest_container, dest_path)

    def get_access_control(self):
        if not self.exists():
            raise self._missing()
        return {
            "owner": "$superuser",
            "group": "$superuser",
            "permissions": "rwxr-x---",
            "acl": self._lake.acls[(self.container, self.path)],
        }

    def set_access_control(self, acl: str):
        self._lake.check_write()
        self._lake.calls.append(("set", self.path, acl))
        self._lake.acls[(self.container, self.path)] = acl

    def _recursive_result(self, count: int):
        counters = SimpleNamespace(
            directories_successful=count - self._lake.failure_count,
            files_successful=0,
            failure_count=self._lake.failure_count,
        )
        return SimpleNamespace(counters=counters, continuation=self._lake.continuation)

    def update_access_control_recursive(self, acl: str, progress_hook=None, **kwargs):
        self._lake.check_write()
        self._lake.calls.append(("update_recursive", self.path, acl))
        changes = parse_acl(acl)
        paths = self._lake.subtree(self.container, self.path)
        for path in paths:
            current = parse_acl(self._lake.acls[(self.container, path)])
            self._lake.acls[(self.container, path)] = format_acl(upsert_entries(current, changes))
        if progress_hook and self._lake.failure_count:
            failure = SimpleNamespace(name="raw/locked.csv", is_directory=False, error_message="Forbidden")
            progress_hook(SimpleNamespace(batch_failures=[failure]))
        return self._recursive_result(len(paths))

    def remove_access_control_recursive(self, acl: str, progress_hook=None, **kwargs):
        self._lake.check_write()
        self._lake.calls.append(("remove_recursive", self.path, acl))
        paths = self._lake.subtree(self.container, self.path)
        for spec in acl.split(","):
            parts = spec.split(":")
            default = parts[0] == "default"
            principal_type, principal_id = parts[-2], parts[-1]
            for path in paths:
                current = parse_acl(self._lake.acls[(self.container, path)])
                kept = [
                    e for e in current
                    if not (e.is_default == default
                            and e.principal_type.value == principal_type
                            and e.principal_id == principal_id)
                ]
                self._lake.acls[(self.container, path)] = format_acl(kept)
        return self._recursive_result(len(paths))


class FakeFileSystemClient:
    def __init__(self, lake: FakeLake, container: str):
        self._lake = lake
        self._container = container

    def exists(self) -> bool:
        return self._container in self._lake.folders

    def get_directory_client(self, path: str) -> FakeDirectoryClient:
        return FakeDirectoryClient(self._lake, self._container, path)


class FakeServiceClient:
    def __init__(self, lake: FakeLake):
        self._lake = lake
        self.closed = False

    def get_file_system_client(self, container: str) -> FakeFileSystemClient:
        return FakeFileSystemClient(self._lake, container)

    def close(self) -> None:
        self.closed = True


class FakeResolver:
    """IdentityResolver stand-in backed by a dict of known identities."""

    def __init__(self, identities: dict[str, IdentityReference]):
        self._identities = identities
        self._by_id = {ref.object_id: ref for ref in identities.values()}

    def resolve(self, identity: str) -> IdentityReference:
        if identity not in self._identities:
            raise IdentityNotFoundError(f"Identity '{identity}' was not found", identity=identity)
        return self._identities[identity]

    def describe(self, object_id: str) -> IdentityReference:
        if object_id not in self._by_id:
            raise IdentityNotFoundError(f"Directory object '{object_id}' was not found")
        return self._by_id[object_id]


@pytest.fixture
def lake() -> FakeLake:
    return FakeLake(containers=("raw", "curated"))


@pytest.fixture
def account_info() -> StorageAccountInfo:
    return StorageAccountInfo(
        name="acct",
        resource_group="rg-data",
        subscription_id="sub-123",
        location="westeurope",
        dfs_endpoint="https://acct.dfs.core.windows.net/",
        is_hns_enabled=True,
    )


@pytest.fixture
def storage_context(lake, account_info) -> StorageContext:
    return StorageContext(account_info, FakeServiceClient(lake))


@pytest.fixture
def identities() -> dict[str, IdentityReference]:
    return {
        "alice@example.com": IdentityReference(ALICE_ID, ObjectType.USER, "Alice"),
        "bob@example.com": IdentityReference(BOB_ID, ObjectType.USER, "Bob"),
        "Engineers": IdentityReference(ENGINEERS_ID, ObjectType.GROUP, "Engineers"),
        "ingest-pipeline": IdentityReference(
            PIPELINE_SP_ID, ObjectType.SERVICE_PRINCIPAL, "ingest-pipeline"
        ),
    }


@pytest.fixture
def resolver(identities) -> FakeResolver:
    return FakeResolver(identities)
