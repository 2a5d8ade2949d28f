"""Comments on posts."""

from __future__ import annotations

from typing import Any

from feedclient.models import HTTPMethod
from feedclient.services.base import BaseService
from feedclient.services.posts import comments_prefix, post_prefix
from feedclient.services.validation import require_id, require_text


class CommentService(BaseService):
    """Comment reads are cached per post; every comment mutation drops that
    post's comment list and its detail entry (which carries the comment count).
    """

    async def get_comments(self, post_id: str) -> Any:
        pid = require_id(post_id, "post_id")
        return await self._call(
            self._descriptor(
                method=HTTPMethod.GET, path=f"/posts/{pid}/comments", cacheable=True
            )
        )

    async def add_comment(self, post_id: str, text: str) -> Any:
        pid = require_id(post_id, "post_id")
        require_text(text, "text")
        return await self._call(
            self._descriptor(
                method=HTTPMethod.POST,
                path=f"/posts/{pid}/comments",
                json_body={"text": text},
                invalidates=_invalidations(pid),
            )
        )

    async def delete_comment(self, post_id: str, comment_id: str) -> None:
        pid = require_id(post_id, "post_id")
        cid = require_id(comment_id, "comment_id")
        await self._call(
            self._descriptor(
                method=HTTPMethod.DELETE,
                path=f"/posts/{pid}/comments/{cid}",
                invalidates=_invalidations(pid),
            )
        )

    async def toggle_comment_like(self, post_id: str, comment_id: str) -> Any:
        pid = require_id(post_id, "post_id")
        cid = require_id(comment_id, "comment_id")
        return await self._call(
            self._descriptor(
                method=HTTPMethod.POST,
                path=f"/posts/{pid}/comments/{cid}/like",
                invalidates=_invalidations(pid),
            )
        )


def _invalidations(post_id: str) -> tuple[str, ...]:
    return (comments_prefix(post_id), post_prefix(post_id))
