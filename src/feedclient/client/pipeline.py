"""Authenticated request pipeline -- the one path every backend call takes.

This module provides :class:`RequestPipeline`, which wraps
:class:`httpx.AsyncClient` and layers on:

- **Read-through cache** -- cacheable descriptors are answered from
  :class:`~feedclient.cache.ResponseCache` while fresh; successful reads are
  stored, successful mutations invalidate their declared key prefixes before
  :meth:`~RequestPipeline.send` returns.
- **Credential attachment** -- the stored access token is sent as an
  ``Authorization: Bearer`` header.
- **Token renewal** -- a 401 triggers the single-flight
  :class:`~feedclient.auth.RefreshFlow` and the request is replayed exactly
  once with the renewed token. A second 401 ends the session.
- **Error mapping** -- every other failure becomes a typed
  :class:`~feedclient.exceptions.FeedClientError`. Nothing is retried.

File-bearing descriptors are sent as ``multipart/form-data``; everything else
as JSON.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from feedclient.auth.credential_store import CredentialStore
from feedclient.auth.refresh import RefreshFlow, TokenPair
from feedclient.cache.cache import ResponseCache
from feedclient.client.response import (
    error_message,
    extract_response_data,
    restore_response,
    snapshot_response,
)
from feedclient.exceptions import HttpError, NetworkError, ReauthenticationRequired
from feedclient.models import ClientConfig, RequestDescriptor

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh-token"


class RequestPipeline:
    """Asynchronous pipeline for backend calls.

    Must be used as an async context manager so that the underlying
    transport is properly opened and closed.

    Args:
        config: Client configuration (``base_url``, timeout, SSL verify).
        credentials: Opened credential store, read for the bearer token.
        cache: Response cache consulted and maintained by :meth:`send`.
        transport: Optional httpx transport (e.g. :class:`httpx.MockTransport`
            in tests).

    Example::

        async with RequestPipeline(config, store, cache) as pipeline:
            response = await pipeline.send(
                RequestDescriptor(method="GET", path="/posts", cacheable=True)
            )
    """

    def __init__(
        self,
        config: ClientConfig,
        credentials: CredentialStore,
        cache: ResponseCache,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config
        self._credentials = credentials
        self._cache = cache
        self._transport = transport
        self._refresh = RefreshFlow(credentials, self._exchange_refresh_token)
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> RequestPipeline:
        request_config = self._config.request
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=request_config.timeout,
            verify=request_config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def refresh_flow(self) -> RefreshFlow:
        return self._refresh

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    async def send(self, descriptor: RequestDescriptor) -> httpx.Response:
        """Send *descriptor* through cache, auth, renewal, and error mapping.

        Returns:
            The :class:`httpx.Response` from the server, or one rebuilt from
            the cache for a fresh cacheable read.

        Raises:
            ReauthenticationRequired: The session expired and could not be
                renewed, or the renewed token was rejected too.
            HttpError: Any other non-2xx status.
            NetworkError: Transport failure (timeout, DNS, refused connection).
        """
        client = self._require_client()

        # Cache lookup
        if descriptor.cacheable:
            entry = self._cache.lookup(descriptor.cache_key)
            if entry is not None:
                logger.debug("Cache hit: %s", descriptor.cache_key)
                request = client.build_request(
                    descriptor.method.value, descriptor.path, params=descriptor.params or None
                )
                return restore_response(entry.value, request)

        # Attach credentials and dispatch
        generation = self._cache.generation
        token = self._credentials.access_token if descriptor.authenticated else None
        response = await self._dispatch(descriptor, token)

        # One renewal, one replay
        if response.status_code == 401 and descriptor.authenticated:
            logger.debug("HTTP 401 on %s %s, renewing access token", descriptor.method.value, descriptor.path)
            token = await self._refresh.refresh(token)
            response = await self._dispatch(descriptor, token)
            if response.status_code == 401:
                if self._credentials.access_token == token:
                    logger.debug("Renewed token rejected, ending session")
                    self._credentials.clear()
                raise ReauthenticationRequired()

        # Error mapping
        if response.status_code >= 400:
            raise self._map_response_error(response)

        # Cache store / invalidation
        self._record_success(descriptor, response, generation)
        return response

    def end_session(self) -> None:
        """Drop the stored credentials and every cached response."""
        self._credentials.clear()
        self._cache.clear()

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _require_client(self) -> httpx.AsyncClient:
        assert self._client is not None, "Pipeline not initialised -- use as async context manager"
        return self._client

    async def _dispatch(self, descriptor: RequestDescriptor, token: Optional[str]) -> httpx.Response:
        """Send one HTTP request for *descriptor* with *token* as bearer credential."""
        client = self._require_client()

        headers: dict[str, str] = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        kwargs: dict[str, Any] = {
            "method": descriptor.method.value,
            "url": descriptor.path,
            "headers": headers,
            "params": descriptor.params or None,
        }
        if descriptor.is_multipart:
            kwargs["files"] = _multipart_fields(descriptor)
        elif descriptor.json_body is not None:
            kwargs["json"] = descriptor.json_body

        try:
            return await client.request(**kwargs)
        except httpx.TransportError as exc:
            raise NetworkError(f"Connection failed: {exc}") from exc

    def _record_success(
        self, descriptor: RequestDescriptor, response: httpx.Response, generation: int
    ) -> None:
        """Store a cacheable 2xx read, or apply a mutation's invalidations.

        A read is stored only if no matching invalidation ran after
        *generation*, the cache generation seen before it was dispatched.
        """
        if not response.is_success:
            return
        if descriptor.cacheable:
            self._cache.store(
                descriptor.cache_key,
                snapshot_response(response),
                descriptor.cache_ttl,
                since=generation,
            )
            return
        for prefix in descriptor.invalidates:
            self._cache.invalidate(prefix)

    def _map_response_error(self, response: httpx.Response) -> HttpError:
        """Build the typed error for an error HTTP status."""
        return HttpError(
            response.status_code,
            error_message(response),
            extract_response_data(response),
        )

    async def _exchange_refresh_token(self, refresh_token: str) -> TokenPair:
        """Trade *refresh_token* for a new access token.

        Goes straight to the transport: the exchange is never cached, never
        carries the expired bearer token, and never triggers another renewal.
        """
        client = self._require_client()
        try:
            response = await client.post(
                REFRESH_PATH,
                json={"refreshToken": refresh_token},
                headers={"Accept": "application/json"},
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"Connection failed: {exc}") from exc

        if response.status_code >= 400:
            raise self._map_response_error(response)

        data = extract_response_data(response)
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise HttpError(response.status_code, "Refresh response did not include a token", data)
        rotated = data.get("refreshToken")
        return token, rotated if isinstance(rotated, str) and rotated else None


def _multipart_fields(descriptor: RequestDescriptor) -> list[tuple[str, Any]]:
    """Encode form fields and files as httpx multipart parts, in order.

    Text fields are sent as parts without a filename so the body is
    ``multipart/form-data`` even when no file is attached.
    """
    parts: list[tuple[str, Any]] = [
        (name, (None, value.encode("utf-8"))) for name, value in descriptor.form
    ]
    parts.extend(
        (name, (upload.filename, upload.content, upload.content_type))
        for name, upload in descriptor.files
    )
    return parts
