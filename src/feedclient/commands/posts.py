"""Post commands -- browse the feed and act on single posts."""

from __future__ import annotations

from typing import Any

import typer

from feedclient.commands import run_session
from feedclient.output import OutputFormat, format_response, get_output, info, success


posts_app = typer.Typer(no_args_is_help=True)


def _author(post: dict[str, Any]) -> str:
    user = post.get("user")
    if isinstance(user, dict):
        return str(user.get("username") or user.get("_id") or "")
    return str(user or "")


def _count(value: Any) -> str:
    return str(len(value)) if isinstance(value, list) else str(value or 0)


@posts_app.command("feed")
def posts_feed(
    ctx: typer.Context,
    page: int = typer.Option(1, "--page", min=1, help="Page number (1-based)."),
    limit: int = typer.Option(10, "--limit", min=1, max=100, help="Posts per page."),
) -> None:
    """Show one page of the feed.

    Example::

        feedclient posts feed --page 2 --limit 20
    """
    result = run_session(ctx, lambda session: session.posts.get_all_posts(page=page, limit=limit))
    posts = result["posts"]

    output = get_output()
    if output.format == OutputFormat.JSON:
        format_response(result)
        return

    if not posts:
        info("No posts on this page.")
        return

    rows = [
        [
            str(post.get("_id", "")),
            _author(post),
            str(post.get("content", "")),
            _count(post.get("likes")),
            _count(post.get("comments")),
        ]
        for post in posts
        if isinstance(post, dict)
    ]
    output.print_table(["ID", "Author", "Content", "Likes", "Comments"], rows, title=f"Feed, page {page}")
    if result["hasMore"]:
        info(f"More posts: feedclient posts feed --page {page + 1}")


@posts_app.command("show")
def posts_show(
    ctx: typer.Context,
    post_id: str = typer.Argument(help="Post id."),
) -> None:
    """Show a single post."""
    format_response(run_session(ctx, lambda session: session.posts.get_post(post_id)))


@posts_app.command("like")
def posts_like(
    ctx: typer.Context,
    post_id: str = typer.Argument(help="Post id."),
) -> None:
    """Like or unlike a post."""
    data = run_session(ctx, lambda session: session.posts.toggle_like(post_id))
    success(f"Toggled like on post {post_id}.")
    if data is not None:
        format_response(data)


@posts_app.command("delete")
def posts_delete(
    ctx: typer.Context,
    post_id: str = typer.Argument(help="Post id."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete one of your posts."""
    if not yes and not typer.confirm(f"Delete post {post_id}?"):
        raise typer.Exit()
    run_session(ctx, lambda session: session.posts.delete_post(post_id))
    success(f"Deleted post {post_id}.")
