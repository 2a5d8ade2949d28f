"""feedclient -- asynchronous client library for the social-feed backend.

This package mediates all network access between a feed application and its
backend service. The core is an authenticated request pipeline that attaches
bearer credentials, renews an expired access token transparently (once, and
single-flight across concurrent callers), and serves idempotent reads from a
short-lived response cache that mutations invalidate by key prefix.

Typical usage::

    from feedclient import FeedSession

    async with FeedSession() as session:
        await session.auth.login("ada@example.com", "hunter2")
        feed = await session.posts.get_all_posts(page=1)

Modules:
    session: Wires the stores, the pipeline and the domain services together.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Typed failure taxonomy with exit-code mapping.
    exit_codes: Numeric exit codes used by the CLI.
    output: stdout/stderr formatting system with Rich support.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from feedclient.session import FeedSession  # noqa: E402

__all__ = ["FeedSession", "__version__"]
