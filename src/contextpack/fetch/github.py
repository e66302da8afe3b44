"""GitHub contents API source.

GET /repos/{owner}/{repo}/contents/{path}?ref={ref}

- file: base64 ``content`` is decoded; when GitHub omits it for large files
  (``encoding: none``) the ``download_url`` is fetched instead
- directory: a JSON array of entries
- symlink / submodule: rejected as UnsupportedFileType
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import time
from typing import Any
from urllib.parse import quote

import httpx

from contextpack.fetch.types import DirectoryEntry, FetchResult
from contextpack.foundation.errors import (
    ContextPackError,
    FetchError,
    InvalidPathError,
    NotFoundError,
    RateLimitError,
    SizeLimitExceeded,
    UnsupportedFileType,
)
from contextpack.foundation.types.config import FetchConfig, GitHubConfig, MiB
from contextpack.paths.types import PathSpec

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"


def _retry_after(response: httpx.Response) -> float | None:
    """Seconds to wait from Retry-After or x-ratelimit-reset, if present."""
    header = response.headers.get("retry-after")
    if header:
        try:
            return max(0.0, float(header))
        except ValueError:
            return None
    reset = response.headers.get("x-ratelimit-reset")
    if reset:
        try:
            return max(0.0, float(reset) - time.time())
        except ValueError:
            return None
    return None


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("message", ""))
    return ""


class GitHubContentsSource:
    """Fetch files and directory listings from GitHub repositories.

    Uses an optional token for higher rate limits (60 vs 5000 requests/hour).
    Transient failures (transport errors, 5xx, rate limiting) are raised for
    the caller to retry; everything else maps onto the error taxonomy.
    """

    name = "github"

    def __init__(
        self,
        token: str | None = None,
        *,
        api_base: str = GITHUB_API_BASE,
        api_version: str = "2022-11-28",
        timeout: float = 10.0,
        connect_timeout: float = 5.0,
        max_file_bytes: int = 10 * MiB,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize with optional GitHub token.

        Args:
            token: GitHub personal access token. If not provided, uses the
                   GITHUB_TOKEN environment variable.
            transport: Custom httpx transport (tests use httpx.MockTransport).
        """
        self._token = token or os.environ.get("GITHUB_TOKEN")
        self.api_base = api_base
        self.api_version = api_version
        self.max_file_bytes = max_file_bytes
        self._timeout = httpx.Timeout(timeout, connect=connect_timeout)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_config(
        cls,
        github: GitHubConfig,
        fetch: FetchConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> GitHubContentsSource:
        return cls(
            token=os.environ.get(github.token_env),
            api_base=github.api_base,
            api_version=github.api_version,
            timeout=fetch.per_fetch_timeout,
            connect_timeout=github.connect_timeout,
            max_file_bytes=fetch.max_file_bytes,
            transport=transport,
        )

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": self.api_version,
            }
            if self._token:
                headers["Authorization"] = f"Bearer {self._token}"

            self._client = httpx.AsyncClient(
                base_url=self.api_base,
                headers=headers,
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def _check_response(self, response: httpx.Response, spec: PathSpec) -> None:
        """Map a non-2xx response onto the error taxonomy.

        5xx responses raise httpx.HTTPStatusError so the fetcher retries them.
        """
        status = response.status_code
        if status < 400:
            return

        message = _error_message(response)
        where = f"{spec.full_name}:{spec.file_path}" + (f"@{spec.ref}" if spec.ref else "")

        if status == 404:
            raise NotFoundError(f"Not found on GitHub: {where}", spec=spec.key)
        if status in (400, 422):
            raise InvalidPathError(f"GitHub rejected {where}: {message}", spec=spec.key)
        if status == 429 or (
            status == 403
            and (
                response.headers.get("x-ratelimit-remaining") == "0"
                or "rate limit" in message.lower()
            )
        ):
            raise RateLimitError(
                f"GitHub rate limit hit for {where}",
                spec=spec.key,
                retry_after=_retry_after(response),
            )
        if status == 401:
            raise FetchError(
                f"GitHub authentication failed for {where}; check GITHUB_TOKEN",
                spec=spec.key,
            )
        if status == 403:
            raise FetchError(f"GitHub denied access to {where}: {message}", spec=spec.key)
        if status >= 500:
            response.raise_for_status()
        raise FetchError(f"GitHub returned {status} for {where}: {message}", spec=spec.key)

    def _entry(self, spec: PathSpec, item: dict[str, Any]) -> DirectoryEntry:
        kind = item.get("type", "file")
        name = item["name"]
        child = spec.child(name)
        if kind == "dir":
            child = child.with_path(child.file_path + "/")
        return DirectoryEntry(
            spec=child,
            kind=kind if kind in ("file", "dir", "symlink", "submodule") else "file",
            size=int(item.get("size") or 0),
            sha=item.get("sha"),
        )

    async def _download(self, spec: PathSpec, url: str) -> bytes:
        client = await self._get_client()
        response = await client.get(url, headers={"Accept": "application/vnd.github.raw"})
        self._check_response(response, spec)
        return response.content

    async def fetch(self, spec: PathSpec) -> FetchResult:
        client = await self._get_client()
        url = f"/repos/{spec.owner}/{spec.repo}/contents/{quote(spec.api_path, safe='/')}"
        params = {"ref": spec.ref} if spec.ref else None

        logger.debug("GET %s ref=%s", url, spec.ref or "<default>")
        response = await client.get(url, params=params)
        self._check_response(response, spec)
        try:
            data = response.json()
        except ValueError as err:
            raise FetchError(
                f"GitHub returned a non-JSON body for {spec.key}", spec=spec.key, cause=err
            ) from err

        if isinstance(data, list):
            try:
                entries = [self._entry(spec, item) for item in data]
            except ContextPackError:
                raise
            except (AttributeError, KeyError, TypeError, ValueError) as err:
                raise FetchError(
                    f"Malformed directory listing for {spec.key}: {err!r}",
                    spec=spec.key,
                    cause=err,
                ) from err
            logger.debug("Listed %s: %d entries", spec.key, len(entries))
            return FetchResult.directory(spec, entries)

        if not isinstance(data, dict):
            raise FetchError(
                f"Unexpected {type(data).__name__} payload for {spec.key}", spec=spec.key
            )

        kind = data.get("type")
        if kind in ("symlink", "submodule"):
            raise UnsupportedFileType(f"{spec.key} is a {kind}", spec=spec.key)
        if kind != "file":
            raise FetchError(f"Unexpected content type {kind!r} for {spec.key}", spec=spec.key)

        try:
            size = int(data.get("size") or 0)
        except (TypeError, ValueError) as err:
            raise FetchError(
                f"Malformed size {data.get('size')!r} for {spec.key}", spec=spec.key, cause=err
            ) from err
        if size > self.max_file_bytes:
            raise SizeLimitExceeded(
                f"{spec.key} is {size} bytes, above the {self.max_file_bytes} byte file limit",
                spec=spec.key,
                size=size,
                limit=self.max_file_bytes,
            )

        sha = data.get("sha")
        encoded = data.get("content")
        if data.get("encoding") == "base64" and encoded is not None:
            try:
                content = base64.b64decode(encoded)
            except (binascii.Error, ValueError) as err:
                raise FetchError(
                    f"Malformed base64 content for {spec.key}", spec=spec.key, cause=err
                ) from err
        elif data.get("download_url"):
            logger.debug("Content omitted for %s (%d bytes), using download_url", spec.key, size)
            content = await self._download(spec, data["download_url"])
        elif size == 0:
            content = b""
        else:
            raise FetchError(f"No content or download_url for {spec.key}", spec=spec.key)

        return FetchResult.file(spec, content, sha=sha)

    async def stat(self, spec: PathSpec) -> int | None:
        # Sizes for remote files come from directory listings; no extra call.
        return None

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> GitHubContentsSource:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
