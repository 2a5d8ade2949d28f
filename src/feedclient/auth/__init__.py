"""Session credentials and their renewal.

The main entry points are:

- :class:`CredentialStore` -- durable storage of the access token, refresh
  token, and user snapshot.
- :class:`RefreshFlow` -- single-flight state machine that renews the access
  token after a 401.
"""

from feedclient.auth.credential_store import CredentialStore, user_id
from feedclient.auth.refresh import RefreshFlow, RefreshState, TokenPair

__all__ = [
    "CredentialStore",
    "RefreshFlow",
    "RefreshState",
    "TokenPair",
    "user_id",
]
