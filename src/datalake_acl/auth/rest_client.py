"""Bearer-authenticated JSON REST client used for Graph and ARM calls."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import httpx
import structlog

from datalake_acl.auth.credential import MsalCredential
from datalake_acl.errors import GenericProviderError, wrap_provider_error

logger = structlog.get_logger()


class RestClient:
    """Synchronous JSON client over ``httpx.Client``.

    Every request carries a fresh bearer token for ``scope``. HTTP failures are
    classified through ``wrap_provider_error`` so callers only ever see the
    package error taxonomy.
    """

    def __init__(
        self,
        credential: MsalCredential,
        base_url: str,
        scope: str,
        timeout: float = 30.0,
    ):
        self._credential = credential
        self._base_url = base_url.rstrip("/")
        self._scope = scope
        self._timeout = timeout
        self._http_client: httpx.Client | None = None

    def _get_http_client(self) -> httpx.Client:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.Client(timeout=self._timeout)
        return self._http_client

    def _url(self, path: str) -> str:
        if path.startswith(("https://", "http://")):
            return path
        return f"{self._base_url}/{path.lstrip('/')}"

    def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        operation: str,
    ) -> dict[str, Any]:
        headers = self._credential.bearer_header(self._scope)
        client = self._get_http_client()
        try:
            response = client.get(self._url(path), params=params, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("rest_request_failed", operation=operation, error=str(exc))
            raise wrap_provider_error(exc, operation=operation) from exc

        data = response.json()
        if not isinstance(data, dict):
            raise GenericProviderError(
                f"{operation} failed: expected a JSON object, got {type(data).__name__}",
                operation=operation,
            )
        return data

    def _paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        *,
        operation: str,
    ) -> Iterator[dict[str, Any]]:
        url: str | None = path
        next_params = dict(params or {})

        while url:
            data = self._get(url, next_params or None, operation=operation)
            for item in data.get("value", []):
                if isinstance(item, dict):
                    yield item
            # Graph uses @odata.nextLink, ARM uses nextLink; both carry the query
            url = data.get("@odata.nextLink") or data.get("nextLink")
            next_params = {}

    def close(self) -> None:
        if self._http_client and not self._http_client.is_closed:
            self._http_client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
