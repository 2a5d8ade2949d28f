"""Single-flight access-token renewal.

:class:`RefreshFlow` is an explicit state machine::

    IDLE --> REFRESHING --> SUCCEEDED --> IDLE
                       \\-> FAILED    --> IDLE

Entering ``REFRESHING`` is a check-and-set with no ``await`` in between, so
two requests that hit a 401 at the same time can never start two exchanges:
the second one awaits the task the first one created. Waiters await the
shared task through :func:`asyncio.shield`, so a caller that gives up only
abandons its own wait.

On failure the credential store is cleared, unless a different session was
stored while the exchange was in flight, and every waiter receives
:class:`~feedclient.exceptions.ReauthenticationRequired`. Navigation back to
a login screen is left to whoever catches it. Renewal is strictly reactive:
there is no background timer.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Optional

from feedclient.auth.credential_store import CredentialStore
from feedclient.exceptions import HttpError, NetworkError, ReauthenticationRequired

logger = logging.getLogger(__name__)

TokenPair = tuple[str, Optional[str]]
"""A new access token plus the rotated refresh token, if the backend sent one."""

TokenExchange = Callable[[str], Awaitable[TokenPair]]


class RefreshState(str, enum.Enum):
    """States of the :class:`RefreshFlow` machine."""

    IDLE = "idle"
    REFRESHING = "refreshing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


_TRANSITIONS: dict[RefreshState, frozenset[RefreshState]] = {
    RefreshState.IDLE: frozenset({RefreshState.REFRESHING}),
    RefreshState.REFRESHING: frozenset({RefreshState.SUCCEEDED, RefreshState.FAILED}),
    RefreshState.SUCCEEDED: frozenset({RefreshState.IDLE}),
    RefreshState.FAILED: frozenset({RefreshState.IDLE}),
}


class RefreshFlow:
    """Coalesces concurrent token renewals onto one exchange call.

    Args:
        credentials: Store read for the refresh token and written with the
            renewed access token (or cleared on failure).
        exchange: Coroutine function that trades a refresh token for a
            :data:`TokenPair`. It raises
            :class:`~feedclient.exceptions.HttpError` or
            :class:`~feedclient.exceptions.NetworkError` on failure.
    """

    def __init__(self, credentials: CredentialStore, exchange: TokenExchange) -> None:
        self._credentials = credentials
        self._exchange = exchange
        self._state = RefreshState.IDLE
        self._last_outcome: Optional[RefreshState] = None
        self._inflight: Optional[asyncio.Task[str]] = None
        self._exchange_count = 0

    @property
    def state(self) -> RefreshState:
        """Current state of the machine."""
        return self._state

    @property
    def last_outcome(self) -> Optional[RefreshState]:
        """``SUCCEEDED`` or ``FAILED`` for the most recent refresh, ``None`` before any."""
        return self._last_outcome

    @property
    def exchange_count(self) -> int:
        """Number of token exchanges sent to the backend so far."""
        return self._exchange_count

    async def refresh(self, stale_token: Optional[str]) -> str:
        """Return a renewed access token, starting an exchange only if none is running.

        Args:
            stale_token: The access token the backend just rejected. When the
                store already holds a different token, another caller has
                renewed it in the meantime and that token is returned as is.

        Raises:
            ReauthenticationRequired: The refresh token is missing or was
                rejected (the store is cleared), or another session was
                stored while the exchange ran (the store is kept).
        """
        if self._state is RefreshState.IDLE:
            current = self._credentials.access_token
            if current and current != stale_token:
                return current
            self._inflight = asyncio.get_running_loop().create_task(self._run())
            self._inflight.add_done_callback(_consume_exception)
            self._transition(RefreshState.REFRESHING)
        else:
            logger.debug("Joining in-flight token refresh")
        assert self._inflight is not None
        return await asyncio.shield(self._inflight)

    def _transition(self, new: RefreshState) -> None:
        if new not in _TRANSITIONS[self._state]:
            raise RuntimeError(f"Illegal refresh transition {self._state.value} -> {new.value}")
        logger.debug("Refresh state %s -> %s", self._state.value, new.value)
        self._state = new

    def _finish(self, outcome: RefreshState) -> None:
        self._transition(outcome)
        self._last_outcome = outcome
        self._inflight = None
        self._transition(RefreshState.IDLE)

    async def _run(self) -> str:
        refresh_token = self._credentials.refresh_token
        try:
            token = await self._renew(refresh_token)
        except ReauthenticationRequired:
            if self._credentials.refresh_token == refresh_token:
                self._credentials.clear()
            else:
                logger.debug("Session replaced during refresh, keeping stored credentials")
            self._finish(RefreshState.FAILED)
            raise
        except BaseException:
            self._finish(RefreshState.FAILED)
            raise
        self._finish(RefreshState.SUCCEEDED)
        return token

    async def _renew(self, refresh_token: Optional[str]) -> str:
        if not refresh_token:
            raise ReauthenticationRequired("No refresh token available, please log in again")

        self._exchange_count += 1
        try:
            access_token, rotated = await self._exchange(refresh_token)
        except (HttpError, NetworkError) as exc:
            logger.warning("Token refresh failed: %s", exc)
            raise ReauthenticationRequired() from exc

        if self._credentials.refresh_token != refresh_token:
            # Logged out, or logged in again, while the exchange was in flight.
            raise ReauthenticationRequired()
        self._credentials.update_access_token(access_token, rotated)
        logger.debug("Access token renewed")
        return access_token


def _consume_exception(task: asyncio.Task[str]) -> None:
    # Retrieves the failure when no waiter is left to await it.
    if not task.cancelled():
        task.exception()
