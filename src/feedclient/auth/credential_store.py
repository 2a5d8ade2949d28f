"""Durable credential store for the current session.

Credentials live in a :class:`diskcache.Cache` directory, by default
``~/.local/share/feedclient/credentials/`` (XDG) or the platform-equivalent
directory, so a session survives process restarts. Three fixed slots are
used:

* ``"token"`` -- the access token attached to every authenticated request;
* ``"refreshToken"`` -- the token exchanged for a new access token on 401;
* ``"user"`` -- a JSON snapshot of the logged-in user for fast bootstrap.

The user snapshot is advisory: nothing in the request pipeline reads it to
make an authorization decision. Every multi-slot write and the full clear run
inside :meth:`diskcache.Cache.transact`, so other readers of the directory
never observe a half-written or half-cleared session.

See Also:
    :class:`~feedclient.auth.refresh.RefreshFlow` -- renews the access token.
    :class:`~feedclient.services.auth.AuthService` -- login and logout.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import diskcache

from feedclient.models import Credential

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "token"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"


class CredentialStore:
    """Read/write the session credentials.

    Must be opened with :meth:`init` (or used as a context manager) before
    any other call, and released with :meth:`close`.

    Args:
        directory: Directory holding the underlying :class:`diskcache.Cache`.

    Example::

        store = CredentialStore("/tmp/feed-creds")
        store.init()
        store.set(Credential(access_token="a", refresh_token="r", subject="u1"))
        assert store.get().access_token == "a"
        store.clear()
        store.close()
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._cache: Optional[diskcache.Cache] = None

    def __enter__(self) -> CredentialStore:
        self.init()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def directory(self) -> Path:
        """The filesystem directory backing this store."""
        return self._directory

    def init(self) -> None:
        """Open the backing store. Calling it twice is a no-op."""
        if self._cache is None:
            self._directory.mkdir(parents=True, exist_ok=True)
            self._cache = diskcache.Cache(str(self._directory))

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def _store(self) -> diskcache.Cache:
        if self._cache is None:
            raise RuntimeError("Credential store not initialised -- call init() first")
        return self._cache

    # ------------------------------------------------------------------ #
    # Tokens
    # ------------------------------------------------------------------ #

    def get(self) -> Optional[Credential]:
        """Return the stored credential, or ``None`` when there is no session.

        Both token slots must hold a non-empty value; the subject is taken
        from the user snapshot when one is present.
        """
        cache = self._store()
        with cache.transact():
            access = cache.get(ACCESS_TOKEN_KEY)
            refresh = cache.get(REFRESH_TOKEN_KEY)
            user = self._load_user(cache.get(USER_KEY))
        if not access or not refresh:
            return None
        return Credential(
            access_token=access,
            refresh_token=refresh,
            subject=user_id(user) if user else None,
        )

    @property
    def access_token(self) -> Optional[str]:
        """The current access token, or ``None``."""
        return self._store().get(ACCESS_TOKEN_KEY) or None

    @property
    def refresh_token(self) -> Optional[str]:
        """The current refresh token, or ``None``."""
        return self._store().get(REFRESH_TOKEN_KEY) or None

    def set(self, credential: Credential, user: Optional[dict[str, Any]] = None) -> None:
        """Replace the stored session with *credential* (and optionally a user snapshot).

        When *user* is omitted and the credential carries a subject, a minimal
        snapshot ``{"id": subject}`` is written so that :meth:`get` can report
        the subject after a restart.
        """
        if user is None and credential.subject is not None:
            user = {"id": credential.subject}
        cache = self._store()
        with cache.transact():
            cache.set(ACCESS_TOKEN_KEY, credential.access_token)
            cache.set(REFRESH_TOKEN_KEY, credential.refresh_token)
            if user is not None:
                cache.set(USER_KEY, json.dumps(user))
            else:
                cache.delete(USER_KEY)
        logger.debug("Stored credentials for subject %s", credential.subject)

    def update_access_token(self, access_token: str, refresh_token: Optional[str] = None) -> None:
        """Write a renewed access token, and a rotated refresh token if given."""
        cache = self._store()
        with cache.transact():
            cache.set(ACCESS_TOKEN_KEY, access_token)
            if refresh_token:
                cache.set(REFRESH_TOKEN_KEY, refresh_token)

    def clear(self) -> None:
        """Remove all three slots in one transaction. No-op when already empty."""
        cache = self._store()
        with cache.transact():
            for key in (ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY):
                cache.delete(key)
        logger.debug("Cleared stored credentials")

    # ------------------------------------------------------------------ #
    # User snapshot
    # ------------------------------------------------------------------ #

    def get_user(self) -> Optional[dict[str, Any]]:
        """Return the advisory user snapshot, or ``None`` if absent or unreadable."""
        return self._load_user(self._store().get(USER_KEY))

    def set_user(self, user: dict[str, Any]) -> None:
        """Overwrite the user snapshot, e.g. after a profile update."""
        self._store().set(USER_KEY, json.dumps(user))

    @staticmethod
    def _load_user(raw: Any) -> Optional[dict[str, Any]]:
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return None
        return data if isinstance(data, dict) else None


def user_id(user: dict[str, Any]) -> Optional[str]:
    """Extract the id of a user object (``_id`` or ``id``) as a string."""
    value = user.get("_id", user.get("id"))
    return str(value) if value is not None else None
