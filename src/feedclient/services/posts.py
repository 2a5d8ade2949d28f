"""Post feed, post CRUD and likes.

Cache layout touched here::

    GET /posts?limit=..&page=..   feed pages        (FEED_PREFIX)
    GET /posts/<id>?              post detail       (post_prefix)
    GET /posts/<id>/comments?     post comments     (comments_prefix)
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from feedclient.client.pipeline import RequestPipeline
from feedclient.models import HTTPMethod, UploadFile, resource_prefix
from feedclient.services.base import BaseService
from feedclient.services.validation import (
    require_id,
    require_positive_int,
    require_text,
    validate_image_count,
    validate_post_images,
)

FEED_PREFIX = resource_prefix("/posts")
MAX_PAGE_SIZE = 100


def post_prefix(post_id: str) -> str:
    return resource_prefix(f"/posts/{post_id}")


def comments_prefix(post_id: str) -> str:
    return resource_prefix(f"/posts/{post_id}/comments")


class PostService(BaseService):
    """Posts and likes.

    Args:
        pipeline: The session's request pipeline.
        feed_ttl: Cache TTL in seconds for feed pages; ``None`` uses the
            cache default.
    """

    def __init__(self, pipeline: RequestPipeline, feed_ttl: Optional[float] = None) -> None:
        super().__init__(pipeline)
        self._feed_ttl = feed_ttl

    async def get_all_posts(self, page: int = 1, limit: int = 10) -> dict[str, Any]:
        """Return one feed page as ``{"posts": [...], "hasMore": bool}``."""
        require_positive_int(page, "page")
        require_positive_int(limit, "limit", MAX_PAGE_SIZE)

        data = await self._call(
            self._descriptor(
                method=HTTPMethod.GET,
                path="/posts",
                params={"page": page, "limit": limit},
                cacheable=True,
                cache_ttl=self._feed_ttl,
            )
        )
        if not isinstance(data, dict):
            data = {}
        return {
            "posts": data.get("posts") or [],
            "hasMore": bool(data.get("hasMore", False)),
        }

    async def get_post(self, post_id: str) -> Any:
        pid = require_id(post_id, "post_id")
        return await self._call(
            self._descriptor(method=HTTPMethod.GET, path=f"/posts/{pid}", cacheable=True)
        )

    async def create_post(self, content: str, images: Iterable[UploadFile]) -> Any:
        """Publish a post with 1-5 images (JPEG, PNG, or GIF, at most 10MB each)."""
        require_text(content, "content")
        files = validate_post_images(images)
        validate_image_count(len(files))

        return await self._call(
            self._descriptor(
                method=HTTPMethod.POST,
                path="/posts",
                form=[("content", content)],
                files=[("images", image) for image in files],
                invalidates=(FEED_PREFIX,),
            )
        )

    async def update_post(
        self,
        post_id: str,
        content: str,
        images: Iterable[UploadFile] = (),
        keep_images: Iterable[str] = (),
    ) -> Any:
        """Edit a post's text and images.

        Args:
            post_id: The post to edit.
            content: New text.
            images: Newly attached images.
            keep_images: Paths of existing images to keep. Kept and new
                images together must number 1-5.
        """
        pid = require_id(post_id, "post_id")
        require_text(content, "content")
        files = validate_post_images(images)
        kept = [require_text(path, "keep_images") for path in keep_images]
        validate_image_count(len(files) + len(kept))

        return await self._call(
            self._descriptor(
                method=HTTPMethod.PUT,
                path=f"/posts/{pid}",
                form=[("content", content)] + [("keepImages", path) for path in kept],
                files=[("images", image) for image in files],
                invalidates=(post_prefix(pid), FEED_PREFIX),
            )
        )

    async def delete_post(self, post_id: str) -> None:
        pid = require_id(post_id, "post_id")
        await self._call(
            self._descriptor(
                method=HTTPMethod.DELETE,
                path=f"/posts/{pid}",
                invalidates=(post_prefix(pid), comments_prefix(pid), FEED_PREFIX),
            )
        )

    async def toggle_like(self, post_id: str) -> Any:
        pid = require_id(post_id, "post_id")
        return await self._call(
            self._descriptor(
                method=HTTPMethod.POST,
                path=f"/posts/{pid}/like",
                invalidates=(post_prefix(pid), FEED_PREFIX),
            )
        )
