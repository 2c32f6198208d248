"""Error taxonomy and best-effort classification of provider failures.

Every failure raised to callers is a ``DataLakeAclError`` subclass carrying the
operation context (storage account, container, path, identity) it happened in.
Provider exceptions (azure-core, httpx) are mapped onto the taxonomy by
``classify_error`` using an ordered rule table:

1. structural error codes (``ScopeLocked``, ``AuthorizationPermissionMismatch``)
2. HTTP status codes
3. exception types raised by azure-core
4. message patterns, as a last resort

Callers can pass their own rule table to ``classify_error`` and
``wrap_provider_error`` without touching any call site.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import httpx
from azure.core.exceptions import (
    ClientAuthenticationError,
    ResourceNotFoundError,
)


class DataLakeAclError(Exception):
    """Base class for all errors surfaced by this package."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        storage_account: str | None = None,
        container: str | None = None,
        path: str | None = None,
        identity: str | None = None,
        inner: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.storage_account = storage_account
        self.container = container
        self.path = path
        self.identity = identity
        self.inner = inner

    @property
    def context(self) -> dict[str, str]:
        fields = {
            "operation": self.operation,
            "storage_account": self.storage_account,
            "container": self.container,
            "path": self.path,
            "identity": self.identity,
        }
        return {key: value for key, value in fields.items() if value}


class NotFoundError(DataLakeAclError):
    """Subscription, storage account, container or folder does not exist."""


class AlreadyExistsError(DataLakeAclError):
    """Folder already exists and the caller asked for strict creation."""


class IdentityNotFoundError(NotFoundError):
    """Identity matched no user, group or service principal."""


class AuthenticationRequiredError(DataLakeAclError):
    """No valid session for the directory or the store."""


class ResourceLockedError(DataLakeAclError):
    """A provider-level lock prevents mutation."""


class AuthorizationError(DataLakeAclError):
    """Caller is authenticated but lacks permission."""


class PartialFailureError(DataLakeAclError):
    """Recursive ACL write did not reach every path.

    Either some paths failed (``failure_count``) or the walk stopped early and
    ``continuation`` marks where the unprocessed part of the subtree starts.
    """

    def __init__(
        self,
        message: str,
        *,
        failure_count: int,
        failed_entries: list[dict[str, Any]] | None = None,
        continuation: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.failure_count = failure_count
        self.failed_entries = failed_entries or []
        self.continuation = continuation


class GenericProviderError(DataLakeAclError):
    """Any other failure from the store or the directory."""


@dataclass(frozen=True)
class ErrorRule:
    """Maps provider failures onto one error type."""

    error_type: type[DataLakeAclError]
    codes: frozenset[str] = frozenset()
    exception_types: tuple[type[BaseException], ...] = ()
    statuses: frozenset[int] = frozenset()
    patterns: tuple[re.Pattern[str], ...] = ()


DEFAULT_RULES: tuple[ErrorRule, ...] = (
    ErrorRule(
        AuthenticationRequiredError,
        codes=frozenset({
            "InvalidAuthenticationInfo",
            "NoAuthenticationInformation",
            "InvalidAuthenticationToken",
            "InvalidAuthenticationTokenTenant",
            "ExpiredAuthenticationToken",
            "AuthenticationFailed",
            "InvalidAuthenticationTokenAudience",
        }),
        exception_types=(ClientAuthenticationError,),
        statuses=frozenset({401}),
        patterns=(
            re.compile(r"\bUnauthorized\b"),
            re.compile(r"authentication (is )?required", re.IGNORECASE),
        ),
    ),
    ErrorRule(
        ResourceLockedError,
        codes=frozenset({"ScopeLocked"}),
        patterns=(
            re.compile(r"ScopeLocked"),
            re.compile(r"scope\(s\) (are|is) locked", re.IGNORECASE),
        ),
    ),
    ErrorRule(
        AuthorizationError,
        codes=frozenset({
            "AuthorizationPermissionMismatch",
            "AuthorizationFailure",
            "AuthorizationFailed",
            "InsufficientAccountPermissions",
            "Authorization_RequestDenied",
            "Forbidden",
        }),
        statuses=frozenset({403}),
        patterns=(
            re.compile(r"Forbidden"),
            re.compile(r"\b403\b"),
        ),
    ),
    ErrorRule(
        NotFoundError,
        codes=frozenset({
            "PathNotFound",
            "FilesystemNotFound",
            "ContainerNotFound",
            "ResourceNotFound",
            "ResourceGroupNotFound",
            "SubscriptionNotFound",
            "StorageAccountNotFound",
            "Request_ResourceNotFound",
        }),
        exception_types=(ResourceNotFoundError,),
        statuses=frozenset({404}),
    ),
    ErrorRule(
        AlreadyExistsError,
        codes=frozenset({"PathAlreadyExists", "FilesystemAlreadyExists"}),
    ),
)


def _error_code(exc: BaseException) -> str | None:
    code = getattr(exc, "error_code", None)
    if code:
        return str(code)
    error = _error_body(exc)
    if error and error.get("code"):
        return str(error["code"])
    return None


def _error_body(exc: BaseException) -> dict[str, Any] | None:
    if not isinstance(exc, httpx.HTTPStatusError):
        return None
    try:
        body = exc.response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    return error if isinstance(error, dict) else None


def _status_code(exc: BaseException) -> int | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    status = getattr(exc, "status_code", None)
    return status if isinstance(status, int) else None


def classify_error(
    exc: BaseException,
    rules: tuple[ErrorRule, ...] = DEFAULT_RULES,
) -> type[DataLakeAclError]:
    """Pick the error type for a provider failure.

    Rules are tried pass by pass (code, status, exception type, message) so a
    structural signal always beats a text match. Unmatched failures are
    ``GenericProviderError``.
    """
    if isinstance(exc, DataLakeAclError):
        return type(exc)

    code = _error_code(exc)
    if code:
        for rule in rules:
            if code in rule.codes:
                return rule.error_type

    status = _status_code(exc)
    if status is not None:
        for rule in rules:
            if status in rule.statuses:
                return rule.error_type

    for rule in rules:
        if rule.exception_types and isinstance(exc, rule.exception_types):
            return rule.error_type

    text = str(exc)
    for rule in rules:
        if any(pattern.search(text) for pattern in rule.patterns):
            return rule.error_type

    return GenericProviderError


def _inner_text(exc: BaseException) -> str | None:
    inner = getattr(exc, "inner_exception", None) or exc.__cause__
    return str(inner) if inner is not None else None


def _describe_failure(
    operation: str,
    storage_account: str | None,
    container: str | None,
    path: str | None,
    identity: str | None,
    provider_message: str,
) -> str:
    details = {
        "container": container,
        "path": path,
        "identity": identity,
    }
    context = ", ".join(f"{key}={value!r}" for key, value in details.items() if value)
    message = f"{operation} failed"
    if storage_account:
        message += f" on storage account '{storage_account}'"
    if context:
        message += f" ({context})"
    return f"{message}: {provider_message}"


def wrap_provider_error(
    exc: BaseException,
    *,
    operation: str,
    storage_account: str | None = None,
    container: str | None = None,
    path: str | None = None,
    identity: str | None = None,
    rules: tuple[ErrorRule, ...] = DEFAULT_RULES,
) -> DataLakeAclError:
    """Classify ``exc`` and enrich it with the operation context.

    Errors that are already classified keep their type. They are returned
    unchanged when they already name a storage account or when there is no
    storage account to add. Otherwise they are re-raised with the context of
    the storage call they escaped from, such as a token failure raised from
    inside the storage SDK.
    """
    if isinstance(exc, DataLakeAclError):
        if exc.storage_account or not storage_account or isinstance(exc, PartialFailureError):
            return exc
        return type(exc)(
            _describe_failure(operation, storage_account, container, path, identity, exc.message),
            operation=operation,
            storage_account=storage_account,
            container=container,
            path=path,
            identity=identity,
            inner=exc,
        )

    error_type = classify_error(exc, rules)
    error = _error_body(exc)
    if error and error.get("message"):
        provider_message = f"{error['message']} ({exc.response.status_code})"
    else:
        provider_message = getattr(exc, "message", None) or str(exc)

    message = _describe_failure(
        operation, storage_account, container, path, identity, provider_message,
    )
    inner_text = _inner_text(exc)
    if inner_text and inner_text != provider_message:
        message += f" Inner error: {inner_text}"

    return error_type(
        message,
        operation=operation,
        storage_account=storage_account,
        container=container,
        path=path,
        identity=identity,
        inner=exc,
    )
