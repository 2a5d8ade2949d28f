"""Comment commands."""

from __future__ import annotations

import typer

from feedclient.commands import run_session
from feedclient.output import OutputFormat, format_response, get_output, info, success


comments_app = typer.Typer(no_args_is_help=True)


@comments_app.command("list")
def comments_list(
    ctx: typer.Context,
    post_id: str = typer.Argument(help="Post id."),
) -> None:
    """List the comments on a post."""
    comments = run_session(ctx, lambda session: session.comments.get_comments(post_id))

    output = get_output()
    if output.format == OutputFormat.JSON or not isinstance(comments, list):
        format_response(comments)
        return
    if not comments:
        info("No comments yet.")
        return

    rows = []
    for comment in comments:
        if not isinstance(comment, dict):
            continue
        user = comment.get("user")
        author = user.get("username", "") if isinstance(user, dict) else str(user or "")
        rows.append([str(comment.get("_id", "")), str(author), str(comment.get("text", ""))])
    output.print_table(["ID", "Author", "Text"], rows, title=f"Comments on {post_id}")


@comments_app.command("add")
def comments_add(
    ctx: typer.Context,
    post_id: str = typer.Argument(help="Post id."),
    text: str = typer.Argument(help="Comment text."),
) -> None:
    """Add a comment to a post."""
    data = run_session(ctx, lambda session: session.comments.add_comment(post_id, text))
    success("Comment added.")
    if data is not None:
        format_response(data)
