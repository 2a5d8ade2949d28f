"""Tests for PostService: feed paging, validation, and cache invalidation."""

from __future__ import annotations

import pytest

from feedclient.exceptions import ValidationError
from feedclient.models import HTTPMethod
from feedclient.services.validation import MB

FEED = {"posts": [{"_id": "p1", "content": "hello"}], "hasMore": True}


class TestFeed:
    @pytest.mark.asyncio
    async def test_feed_is_cached(self, make_session, backend, logged_in) -> None:
        backend.route("GET", "/posts", FEED)
        async with make_session() as session:
            first = await session.posts.get_all_posts(page=1, limit=10)
            second = await session.posts.get_all_posts(page=1, limit=10)

        assert first == second == {"posts": FEED["posts"], "hasMore": True}
        assert backend.calls("GET", "/posts") == 1
        params = backend.requests[0].url.params
        assert params["page"] == "1" and params["limit"] == "10"

    @pytest.mark.asyncio
    async def test_feed_uses_feed_ttl(self, make_session, backend, logged_in, cache, clock) -> None:
        backend.route("GET", "/posts", FEED)
        async with make_session() as session:
            await session.posts.get_all_posts()
            assert cache.lookup("GET /posts?limit=10&page=1").ttl == 120
            clock.advance(120)
            await session.posts.get_all_posts()
        assert backend.calls("GET", "/posts") == 2

    @pytest.mark.asyncio
    async def test_missing_fields_default(self, make_session, backend, logged_in) -> None:
        backend.route("GET", "/posts", {})
        async with make_session() as session:
            assert await session.posts.get_all_posts() == {"posts": [], "hasMore": False}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101), (True, 10)])
    async def test_bad_paging(self, make_session, backend, logged_in, page, limit) -> None:
        async with make_session() as session:
            with pytest.raises(ValidationError):
                await session.posts.get_all_posts(page=page, limit=limit)
        assert backend.requests == []


class TestCreatePost:
    @pytest.mark.asyncio
    async def test_create_invalidates_feed(
        self, make_session, backend, logged_in, make_image
    ) -> None:
        backend.route("GET", "/posts", FEED)
        backend.route("POST", "/posts", {"_id": "p2"}, status=201)
        async with make_session() as session:
            await session.posts.get_all_posts()
            created = await session.posts.create_post("new post", [make_image()])
            await session.posts.get_all_posts()

        assert created == {"_id": "p2"}
        assert backend.calls("GET", "/posts") == 2

    @pytest.mark.asyncio
    async def test_author_posts_fresh_after_create(
        self, make_session, backend, logged_in, cache, make_image
    ) -> None:
        backend.route("GET", "/users/u1/posts", [])
        backend.route("POST", "/posts", {"_id": "p2"}, status=201)
        async with make_session() as session:
            await session.users.get_user_posts("u1")
            await session.posts.create_post("new post", [make_image()])
            await session.users.get_user_posts("u1")

        assert backend.calls("GET", "/users/u1/posts") == 2
        assert cache.lookup("GET /users/u1/posts?") is None

    @pytest.mark.asyncio
    async def test_no_images(self, make_session, backend, logged_in) -> None:
        async with make_session() as session:
            with pytest.raises(ValidationError) as exc_info:
                await session.posts.create_post("text", [])
        assert exc_info.value.field == "images"
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_too_many_images(self, make_session, backend, logged_in, make_image) -> None:
        async with make_session() as session:
            with pytest.raises(ValidationError, match="up to 5"):
                await session.posts.create_post("text", [make_image() for _ in range(6)])
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_oversized_image(self, make_session, backend, logged_in, make_image) -> None:
        images = [make_image(), make_image(size=10 * MB + 1)]
        async with make_session() as session:
            with pytest.raises(ValidationError) as exc_info:
                await session.posts.create_post("text", images)
        assert exc_info.value.field == "images[2]"
        assert "10MB" in exc_info.value.reason
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_wrong_type(self, make_session, backend, logged_in, make_image) -> None:
        image = make_image(name="doc.pdf", content_type="application/pdf")
        async with make_session() as session:
            with pytest.raises(ValidationError, match="JPEG, PNG, or GIF"):
                await session.posts.create_post("text", [image])
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_blank_content(self, make_session, backend, logged_in, make_image) -> None:
        async with make_session() as session:
            with pytest.raises(ValidationError) as exc_info:
                await session.posts.create_post("   ", [make_image()])
        assert exc_info.value.field == "content"


class TestUpdatePost:
    @pytest.mark.asyncio
    async def test_update_invalidates_detail_and_feed(
        self, make_session, backend, logged_in, cache, make_image
    ) -> None:
        backend.route("GET", "/posts", FEED)
        backend.route("GET", "/posts/p1", {"_id": "p1"})
        backend.route("GET", "/posts/p1/comments", [])
        backend.route("PUT", "/posts/p1", {"_id": "p1", "content": "edited"})
        async with make_session() as session:
            await session.posts.get_all_posts()
            await session.posts.get_all_posts(page=2)
            await session.posts.get_post("p1")
            await session.comments.get_comments("p1")

            await session.posts.update_post(
                "p1", "edited", images=[make_image()], keep_images=["uploads/a.png"]
            )

            assert cache.lookup("GET /posts?limit=10&page=1") is None
            assert cache.lookup("GET /posts?limit=10&page=2") is None
            assert cache.lookup("GET /posts/p1?") is None
            assert cache.lookup("GET /posts/p1/comments?") is not None

        body = backend.requests[-1].content
        assert b'name="keepImages"' in body and b"uploads/a.png" in body

    @pytest.mark.asyncio
    async def test_kept_images_count_toward_limit(
        self, make_session, backend, logged_in, make_image
    ) -> None:
        async with make_session() as session:
            with pytest.raises(ValidationError, match="up to 5"):
                await session.posts.update_post(
                    "p1", "text", images=[make_image()], keep_images=[f"k{i}" for i in range(5)]
                )
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_only_kept_images_is_fine(self, make_session, backend, logged_in) -> None:
        backend.route("PUT", "/posts/p1", {"_id": "p1"})
        async with make_session() as session:
            await session.posts.update_post("p1", "text", keep_images=["uploads/a.png"])
        assert backend.calls("PUT", "/posts/p1") == 1


class TestDeleteAndLike:
    @pytest.mark.asyncio
    async def test_delete_drops_post_comments_and_feed(
        self, make_session, backend, logged_in, cache
    ) -> None:
        backend.route("GET", "/posts", FEED)
        backend.route("GET", "/posts/p1", {"_id": "p1"})
        backend.route("GET", "/posts/p1/comments", [])
        backend.route("DELETE", "/posts/p1", {"message": "deleted"})
        async with make_session() as session:
            await session.posts.get_all_posts()
            await session.posts.get_post("p1")
            await session.comments.get_comments("p1")
            await session.posts.delete_post("p1")
            assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_like_refetches_post(self, make_session, backend, logged_in) -> None:
        backend.route("GET", "/posts/p1", {"_id": "p1"})
        backend.route("POST", "/posts/p1/like", {"likes": ["u1"]})
        async with make_session() as session:
            await session.posts.get_post("p1")
            await session.posts.toggle_like("p1")
            await session.posts.get_post("p1")
        assert backend.calls("GET", "/posts/p1") == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("post_id", ["", "a/b", "x?y"])
    async def test_bad_id(self, make_session, backend, logged_in, post_id) -> None:
        async with make_session() as session:
            with pytest.raises(ValidationError):
                await session.posts.get_post(post_id)
        assert backend.requests == []


@pytest.mark.asyncio
async def test_login_feed_post_feed_scenario(make_session, backend, make_image) -> None:
    backend.route(
        "POST",
        "/auth/login",
        {"token": "access-0", "refreshToken": "refresh-0", "user": {"_id": "u1"}},
        protected=False,
    )
    backend.route("GET", "/posts", FEED)
    backend.route("POST", "/posts", {"_id": "p2"}, status=201)

    async with make_session() as session:
        await session.auth.login("ada@example.com", "hunter2")
        await session.posts.get_all_posts(page=1)
        await session.posts.get_all_posts(page=1)
        assert backend.calls("GET", "/posts") == 1

        await session.posts.create_post("fresh", [make_image()])
        await session.posts.get_all_posts(page=1)
        assert backend.calls("GET", "/posts") == 2


@pytest.mark.asyncio
async def test_expired_token_mid_session(make_session, backend, logged_in) -> None:
    backend.route("GET", "/posts", FEED)
    async with make_session() as session:
        await session.posts.get_all_posts(page=1)
        backend.valid_token = "rotated-server-side"
        result = await session.posts.get_all_posts(page=2)
        assert result["hasMore"] is True
        assert session.credentials.access_token == "access-1"
    assert backend.exchanges == 1


class TestDescriptorErrors:
    @pytest.mark.asyncio
    async def test_field_error_is_validation_error(self, make_session, logged_in) -> None:
        async with make_session() as session:
            with pytest.raises(ValidationError) as exc_info:
                session.posts._descriptor(method=HTTPMethod.GET, path="posts")
        assert exc_info.value.field == "path"
        assert "must start with '/'" in exc_info.value.reason
        assert exc_info.value.exit_code == 2

    @pytest.mark.asyncio
    async def test_shape_error_is_validation_error(self, make_session, logged_in) -> None:
        async with make_session() as session:
            with pytest.raises(ValidationError) as exc_info:
                session.posts._descriptor(method=HTTPMethod.GET, path="/posts", json_body={"a": 1})
        assert exc_info.value.field == "request"
        assert "cannot carry a body" in exc_info.value.reason
