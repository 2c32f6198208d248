"""Tests for folder create, delete and move."""

import pytest
from azure.core.exceptions import HttpResponseError

from datalake_acl.errors import (
    AlreadyExistsError,
    AuthenticationRequiredError,
    GenericProviderError,
    NotFoundError,
    ResourceLockedError,
)
from datalake_acl.storage.folders import FolderOperations
from datalake_acl.storage.models import normalize_folder_path
from conftest import FakeDirectoryClient


@pytest.fixture
def folders(storage_context):
    return FolderOperations(storage_context)


class TestNormalizeFolderPath:
    @pytest.mark.parametrize("raw, expected", [
        ("dataset1/sampleA", "dataset1/sampleA"),
        ("/dataset1/sampleA", "dataset1/sampleA"),
        ("\\dataset1\\sampleA", "dataset1/sampleA"),
        ("dataset1\\sampleA/", "dataset1/sampleA"),
        ("/", ""),
        ("", ""),
        (None, ""),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_folder_path(raw) == expected

    def test_only_one_leading_separator_is_stripped(self):
        assert normalize_folder_path("//dataset1") == "/dataset1"


class TestCreate:
    def test_creates_intermediate_folders(self, folders, lake):
        handle = folders.create("raw", "dataset1/sampleA")

        assert handle.container == "raw"
        assert handle.path == "dataset1/sampleA"
        assert handle.storage_account == "acct"
        assert handle.etag == '"0x8D"'
        assert {"dataset1", "dataset1/sampleA"} <= lake.folders["raw"]

    def test_create_twice_is_idempotent(self, folders, lake):
        first = folders.create("raw", "dataset1/sampleA")
        second = folders.create("raw", "dataset1/sampleA")

        assert second.path == first.path
        assert second.url == first.url
        assert lake.folders["raw"] == {"dataset1", "dataset1/sampleA"}

    def test_create_twice_with_error_if_exists_raises(self, folders):
        folders.create("raw", "dataset1/sampleA", error_if_exists=True)

        with pytest.raises(AlreadyExistsError) as exc_info:
            folders.create("raw", "dataset1/sampleA", error_if_exists=True)
        assert exc_info.value.storage_account == "acct"
        assert exc_info.value.path == "dataset1/sampleA"

    def test_accepts_backslash_paths(self, folders, lake):
        folders.create("raw", "\\dataset2\\part1")
        assert "dataset2/part1" in lake.folders["raw"]

    def test_missing_container_is_not_found(self, folders):
        with pytest.raises(NotFoundError, match="storage account 'acct'"):
            folders.create("missing", "dataset1")

    def test_root_path_is_rejected(self, folders):
        with pytest.raises(ValueError):
            folders.create("raw", "/")


class TestDelete:
    def test_deletes_subtree(self, folders, lake):
        lake.add_folder("raw", "dataset1/sampleA/part1")
        lake.add_folder("raw", "dataset2")

        folders.delete("raw", "dataset1")

        assert lake.folders["raw"] == {"dataset2"}

    def test_missing_folder_is_noop(self, folders):
        folders.delete("raw", "nope")  # Should not raise

    def test_missing_folder_with_error_if_missing_raises(self, folders):
        with pytest.raises(NotFoundError, match="'nope' does not exist"):
            folders.delete("raw", "nope", error_if_missing=True)

    def test_lock_failure_is_classified(self, folders, lake, monkeypatch):
        lake.add_folder("raw", "dataset1")

        def locked(self):
            raise HttpResponseError(message="Code: ScopeLocked. The scope is locked.")

        monkeypatch.setattr(FakeDirectoryClient, "delete_directory", locked)

        with pytest.raises(ResourceLockedError) as exc_info:
            folders.delete("raw", "dataset1")
        assert exc_info.value.operation == "DeleteFolder"


class TestMove:
    def test_move_within_container(self, folders, lake):
        lake.add_folder("raw", "staging/dataset1/sampleA")

        handle = folders.move("raw", "staging/dataset1", "archive/dataset1")

        assert handle.container == "raw"
        assert handle.path == "archive/dataset1"
        assert "archive/dataset1/sampleA" in lake.folders["raw"]
        assert "staging/dataset1" not in lake.folders["raw"]

    def test_move_to_other_container(self, folders, lake):
        lake.add_folder("raw", "dataset1")

        handle = folders.move("raw", "dataset1", "dataset1", dest_container="curated")

        assert handle.container == "curated"
        assert "dataset1" in lake.folders["curated"]
        assert "dataset1" not in lake.folders["raw"]

    def test_missing_source_raises(self, folders):
        with pytest.raises(NotFoundError):
            folders.move("raw", "nope", "elsewhere")

    def test_transport_failure_surfaces_provider_message(self, folders, lake, monkeypatch):
        lake.add_folder("raw", "dataset1")

        def broken(self, new_name):
            raise HttpResponseError(message="The source path for a rename operation is invalid.")

        monkeypatch.setattr(FakeDirectoryClient, "rename_directory", broken)

        with pytest.raises(GenericProviderError, match="source path for a rename operation is invalid"):
            folders.move("raw", "dataset1", "dataset2")


class TestTokenFailures:
    def test_token_failure_names_folder(self, folders, monkeypatch):
        def no_token(self):
            raise AuthenticationRequiredError(
                "Failed to acquire token for https://storage.azure.com/.default: invalid_client",
                operation="AcquireToken",
            )

        monkeypatch.setattr(FakeDirectoryClient, "exists", no_token)

        with pytest.raises(AuthenticationRequiredError) as exc_info:
            folders.create("raw", "dataset1")

        error = exc_info.value
        assert error.operation == "CreateFolder"
        assert error.storage_account == "acct"
        assert error.container == "raw"
        assert error.path == "dataset1"
        assert isinstance(error.inner, AuthenticationRequiredError)
