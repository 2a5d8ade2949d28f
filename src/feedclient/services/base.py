"""Common plumbing for the domain services."""

from __future__ import annotations

from typing import Any, Optional

import pydantic

from feedclient.client.pipeline import RequestPipeline
from feedclient.client.response import extract_response_data
from feedclient.exceptions import ValidationError
from feedclient.models import RequestDescriptor


class BaseService:
    """Base class for the thin typed wrappers around :class:`RequestPipeline`.

    Subclasses validate their arguments, build a
    :class:`~feedclient.models.RequestDescriptor` with :meth:`_descriptor`,
    and hand it to :meth:`_call`, which returns the decoded response body.

    Args:
        pipeline: The session's request pipeline.
    """

    def __init__(self, pipeline: RequestPipeline) -> None:
        self._pipeline = pipeline

    def _descriptor(self, **kwargs: Any) -> RequestDescriptor:
        """Build a :class:`RequestDescriptor`, reporting bad fields as :class:`ValidationError`."""
        try:
            return RequestDescriptor(**kwargs)
        except pydantic.ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "request"
            raise ValidationError(field, first["msg"]) from exc

    async def _call(self, descriptor: RequestDescriptor) -> Any:
        response = await self._pipeline.send(descriptor)
        return extract_response_data(response)

    def _subject(self) -> Optional[str]:
        """Id of the logged-in user, if there is a session."""
        credential = self._pipeline.credentials.get()
        return credential.subject if credential else None
