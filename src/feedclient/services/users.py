"""User profile operations."""

from __future__ import annotations

from typing import Any

from feedclient.auth.credential_store import user_id as extract_user_id
from feedclient.exceptions import ValidationError
from feedclient.models import HTTPMethod, UploadFile, resource_prefix
from feedclient.services.base import BaseService
from feedclient.services.validation import (
    MAX_PROFILE_PICTURE_SIZE,
    require_id,
    require_text,
    validate_image,
)

MY_PROFILE_PATH = "/users/me"


class UserService(BaseService):
    """Profile reads are cached with the default TTL; profile writes invalidate them."""

    async def get_my_profile(self) -> Any:
        return await self._call(
            self._descriptor(method=HTTPMethod.GET, path=MY_PROFILE_PATH, cacheable=True)
        )

    async def get_user_profile(self, user_id: str) -> Any:
        uid = require_id(user_id, "user_id")
        return await self._call(
            self._descriptor(method=HTTPMethod.GET, path=f"/users/{uid}", cacheable=True)
        )

    async def update_profile(self, user_data: dict[str, Any]) -> Any:
        """Update the logged-in user's profile fields.

        The returned user replaces the stored snapshot when it describes the
        logged-in user.
        """
        if not isinstance(user_data, dict) or not user_data:
            raise ValidationError("user_data", "must be a non-empty mapping")

        data = await self._call(
            self._descriptor(
                method=HTTPMethod.PUT,
                path=MY_PROFILE_PATH,
                json_body=user_data,
                invalidates=self._profile_prefixes(),
            )
        )
        self._remember(data)
        return data

    async def update_profile_picture(self, file: UploadFile) -> Any:
        """Upload a new profile picture (JPEG, PNG, or GIF, at most 5MB)."""
        image = validate_image(file, MAX_PROFILE_PICTURE_SIZE, "image")
        data = await self._call(
            self._descriptor(
                method=HTTPMethod.PUT,
                path=f"{MY_PROFILE_PATH}/profile-picture",
                files=[("image", image)],
                invalidates=self._profile_prefixes(),
            )
        )
        self._remember(data)
        return data

    async def get_user_posts(self, user_id: str) -> Any:
        uid = require_id(user_id, "user_id")
        return await self._call(
            self._descriptor(method=HTTPMethod.GET, path=f"/users/{uid}/posts")
        )

    async def search_users(self, query: str) -> Any:
        require_text(query, "query")
        return await self._call(
            self._descriptor(
                method=HTTPMethod.GET, path="/users/search", params={"query": query.strip()}
            )
        )

    def _profile_prefixes(self) -> tuple[str, ...]:
        prefixes = [resource_prefix(MY_PROFILE_PATH)]
        subject = self._subject()
        if subject:
            prefixes.append(resource_prefix(f"/users/{subject}"))
        return tuple(prefixes)

    def _remember(self, data: Any) -> None:
        if not isinstance(data, dict):
            return
        subject = self._subject()
        if subject and extract_user_id(data) == subject:
            self._pipeline.credentials.set_user(data)
