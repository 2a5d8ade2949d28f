"""Per-session wiring of stores, pipeline, and domain services.

A :class:`FeedSession` is built once per application session. It owns the
lifecycles of the durable :class:`~feedclient.auth.CredentialStore`, the
in-memory :class:`~feedclient.cache.ResponseCache`, and the
:class:`~feedclient.client.RequestPipeline`, and exposes the domain services
that UI code is meant to call. Nothing outside this package needs to touch
the stores or the pipeline directly.
"""

from __future__ import annotations

from typing import Optional

import httpx

from feedclient.auth.credential_store import CredentialStore
from feedclient.cache.cache import ResponseCache
from feedclient.client.pipeline import RequestPipeline
from feedclient.models import ClientConfig
from feedclient.services import AuthService, CommentService, PostService, UserService


class FeedSession:
    """Async context manager exposing ``auth``, ``users``, ``posts``, and ``comments``.

    Args:
        config: Client configuration; defaults to
            :func:`~feedclient.config.resolve_config`.
        credentials: Credential store to use instead of the one under
            :func:`~feedclient.config.get_credentials_dir`.
        cache: Response cache to use instead of a fresh one.
        transport: Optional httpx transport for the pipeline.

    Example::

        async with FeedSession() as session:
            await session.auth.login("ada@example.com", "hunter2")
            page = await session.posts.get_all_posts(page=1)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        credentials: Optional[CredentialStore] = None,
        cache: Optional[ResponseCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if config is None:
            from feedclient.config import resolve_config

            config = resolve_config()
        if credentials is None:
            from feedclient.config import get_credentials_dir

            credentials = CredentialStore(get_credentials_dir(config))

        self.config = config
        self.credentials = credentials
        self.cache = cache if cache is not None else ResponseCache(config.cache)
        self.pipeline = RequestPipeline(config, self.credentials, self.cache, transport=transport)

        self.auth = AuthService(self.pipeline)
        self.users = UserService(self.pipeline)
        self.posts = PostService(self.pipeline, feed_ttl=config.cache.feed_ttl_seconds)
        self.comments = CommentService(self.pipeline)

    async def __aenter__(self) -> FeedSession:
        self.credentials.init()
        try:
            await self.pipeline.__aenter__()
        except BaseException:
            self.credentials.close()
            raise
        return self

    async def __aexit__(self, *args: object) -> None:
        try:
            await self.pipeline.__aexit__(*args)
        finally:
            self.credentials.close()
