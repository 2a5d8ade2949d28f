"""Login, registration and logout."""

from __future__ import annotations

import logging
from typing import Any, Optional

from feedclient.auth.credential_store import user_id
from feedclient.client.response import extract_response_data
from feedclient.exceptions import HttpError, ReauthenticationRequired, ValidationError
from feedclient.models import Credential, HTTPMethod
from feedclient.services.base import BaseService
from feedclient.services.validation import require_text

logger = logging.getLogger(__name__)

REGISTER_FIELDS = ("username", "email", "password")


class AuthService(BaseService):
    """Session lifecycle operations.

    Login and registration are sent without a bearer token and never trigger
    a token renewal: a 401 from ``/auth/login`` means bad credentials and is
    surfaced as :class:`~feedclient.exceptions.HttpError`.
    """

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Log in and persist the returned token pair and user snapshot.

        The response cache is cleared, since cached reads may belong to a
        previous user.

        Returns:
            The login response (``token``, ``refreshToken``, ``user``).

        Raises:
            ValidationError: *email* or *password* is blank.
            HttpError: Bad credentials, or the response lacks a token pair.
        """
        require_text(email, "email")
        require_text(password, "password")

        descriptor = self._descriptor(
            method=HTTPMethod.POST,
            path="/auth/login",
            json_body={"email": email, "password": password},
            invalidates=("",),
            authenticated=False,
        )
        response = await self._pipeline.send(descriptor)
        data = extract_response_data(response)
        if not isinstance(data, dict) or not data.get("token") or not data.get("refreshToken"):
            raise HttpError(response.status_code, "Login response did not include a token pair", data)

        user = data.get("user") if isinstance(data.get("user"), dict) else None
        self._pipeline.credentials.set(
            Credential(
                access_token=data["token"],
                refresh_token=data["refreshToken"],
                subject=user_id(user) if user else None,
            ),
            user=user,
        )
        logger.debug("Logged in as %s", email)
        return data

    async def register(self, user_data: dict[str, Any]) -> Any:
        """Create an account. Does not log in.

        Raises:
            ValidationError: One of ``username``, ``email``, ``password`` is
                missing or blank.
        """
        if not isinstance(user_data, dict):
            raise ValidationError("user_data", "must be a mapping")
        for field in REGISTER_FIELDS:
            require_text(user_data.get(field), field)

        return await self._call(
            self._descriptor(
                method=HTTPMethod.POST,
                path="/auth/register",
                json_body=user_data,
                authenticated=False,
            )
        )

    async def logout(self) -> None:
        """Tell the backend, then drop credentials and cached reads regardless of the outcome."""
        try:
            if self._pipeline.credentials.access_token:
                await self._call(self._descriptor(method=HTTPMethod.POST, path="/auth/logout"))
        except ReauthenticationRequired:
            logger.debug("Session had already expired at logout")
        finally:
            self._pipeline.end_session()

    def current_user(self) -> Optional[dict[str, Any]]:
        """The advisory user snapshot stored at login, or ``None``."""
        return self._pipeline.credentials.get_user()

    def is_authenticated(self) -> bool:
        """Whether a token pair is stored. Says nothing about its validity."""
        return self._pipeline.credentials.get() is not None
