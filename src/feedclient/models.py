"""Canonical Pydantic models shared across all feedclient modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`CacheConfig`, and :class:`ClientConfig`.

**Pipeline models** -- built per call or owned by one of the stores:
    :class:`HTTPMethod`, :class:`Credential`, :class:`UploadFile`, and
    :class:`RequestDescriptor`.

Cache keys are plain strings produced by :func:`cache_key`. They are kept
human-readable (rather than hashed) so that a mutation can invalidate a
whole family of reads by key prefix, see :func:`resource_prefix`.
"""

from __future__ import annotations

import enum
from typing import Any, Optional
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP transport settings applied to every backend call."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class CacheConfig(BaseModel):
    """Response cache settings."""

    enabled: bool = Field(default=True, description="Enable response caching")
    ttl_seconds: float = Field(default=300, gt=0, description="Default cache TTL in seconds")
    feed_ttl_seconds: float = Field(
        default=120, gt=0, description="Cache TTL for the paginated post feed"
    )


class ClientConfig(BaseModel):
    """Client configuration persisted at ``~/.config/feedclient/config.json``.

    Loaded by :func:`~feedclient.config.load_config` and overridden by
    environment variables and CLI flags in
    :func:`~feedclient.config.resolve_config`.
    """

    base_url: str = Field(
        default="http://localhost:8081/api", description="Backend API root"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    credentials_dir: Optional[str] = Field(
        default=None,
        description="Directory for the durable credential store (default: XDG data dir)",
    )


# --- Pipeline models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods the pipeline dispatches."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


class Credential(BaseModel):
    """The access/refresh token pair of the current session.

    Owned by :class:`~feedclient.auth.credential_store.CredentialStore`;
    written by login and refresh, destroyed by logout or a failed refresh.

    Attributes:
        access_token: Short-lived token attached as a bearer credential.
        refresh_token: Longer-lived token used only to obtain a new access token.
        subject: Id of the logged-in user, when known.
    """

    access_token: str = Field(min_length=1)
    refresh_token: str = Field(min_length=1)
    subject: Optional[str] = None


class UploadFile(BaseModel):
    """An in-memory file destined for a multipart upload."""

    filename: str
    content_type: str
    content: bytes

    @property
    def size(self) -> int:
        """Size of the payload in bytes."""
        return len(self.content)


def _param_str(value: Any) -> str:
    # Same rendering httpx uses on the wire.
    if value is True:
        return "true"
    if value is False:
        return "false"
    if value is None:
        return ""
    return str(value)


def cache_key(method: str, path: str, params: Optional[dict[str, Any]] = None) -> str:
    """Build the deterministic cache key for a request.

    The key is ``"<METHOD> <path>?<sorted query>"``. The ``?`` separator is
    always present so that ``"GET /posts?"`` is a prefix of every feed page
    but not of ``"GET /posts/42?"``.

    Example::

        >>> cache_key("get", "/posts", {"page": 2, "limit": 10})
        'GET /posts?limit=10&page=2'
    """
    query = ""
    if params:
        query = urlencode(sorted((k, _param_str(v)) for k, v in params.items()))
    return f"{method.upper()} {path}?{query}"


def resource_prefix(path: str, method: str = "GET") -> str:
    """Return the invalidation prefix matching every cached read of *path*."""
    return f"{method.upper()} {path}?"


class RequestDescriptor(BaseModel):
    """Closed description of one backend call.

    Built per call by the domain services and consumed by
    :meth:`~feedclient.client.pipeline.RequestPipeline.send`. Instances are
    immutable and checked at construction:

    * only ``GET`` requests may be cacheable;
    * a ``GET`` carries no body, form fields or files;
    * a JSON body and multipart fields are mutually exclusive;
    * cacheable reads do not declare invalidation prefixes.

    Attributes:
        method: HTTP method.
        path: Path relative to the configured base URL (starts with ``/``).
        params: Query parameters.
        json_body: JSON-serialisable request body.
        form: Multipart text fields, in order.
        files: Multipart file fields, in order.
        cacheable: Serve from / store into the response cache.
        cache_ttl: TTL override in seconds; ``None`` uses the cache default.
        invalidates: Cache-key prefixes cleared after a successful response.
        authenticated: Attach the bearer token and renew it on 401.
    """

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    path: str
    params: dict[str, Any] = Field(default_factory=dict)
    json_body: Any = None
    form: list[tuple[str, str]] = Field(default_factory=list)
    files: list[tuple[str, UploadFile]] = Field(default_factory=list)
    cacheable: bool = False
    cache_ttl: Optional[float] = Field(default=None, gt=0)
    invalidates: tuple[str, ...] = ()
    authenticated: bool = True

    @field_validator("path")
    @classmethod
    def _path_is_relative(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("path must start with '/'")
        return value

    @model_validator(mode="after")
    def _check_shape(self) -> RequestDescriptor:
        is_get = self.method == HTTPMethod.GET
        if self.cacheable and not is_get:
            raise ValueError("only GET requests can be cacheable")
        if is_get and (self.json_body is not None or self.form or self.files):
            raise ValueError("GET requests cannot carry a body")
        if self.json_body is not None and (self.form or self.files):
            raise ValueError("json_body and multipart fields are mutually exclusive")
        if self.cacheable and self.invalidates:
            raise ValueError("cacheable requests cannot declare invalidations")
        return self

    @property
    def is_multipart(self) -> bool:
        """Whether the body is sent as ``multipart/form-data``."""
        return bool(self.form or self.files)

    @property
    def cache_key(self) -> str:
        """The :func:`cache_key` of this request."""
        return cache_key(self.method.value, self.path, self.params)
