"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a failure category of the request pipeline and is
referenced by the corresponding :class:`~feedclient.exceptions.FeedClientError`
subclass. Shell wrappers can inspect the exit code of the ``feedclient`` CLI
to tell a rejected session apart from a network outage without parsing
stderr.

Example::

    $ feedclient posts feed
    $ echo $?
    3   # EXIT_REAUTHENTICATE -- the session expired, log in again
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_VALIDATION_ERROR = 2
"""Arguments failed local validation; nothing was sent."""

EXIT_REAUTHENTICATE = 3
"""The session expired and could not be renewed."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_HTTP_ERROR = 5
"""The backend answered with an error status."""

EXIT_NETWORK_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
