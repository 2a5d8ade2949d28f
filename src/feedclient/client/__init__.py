"""HTTP layer for feedclient.

:class:`RequestPipeline` is the single path every backend call takes; the
helpers in :mod:`feedclient.client.response` turn its responses into plain
values.
"""

from feedclient.client.pipeline import RequestPipeline
from feedclient.client.response import error_message, extract_response_data

__all__ = ["RequestPipeline", "error_message", "extract_response_data"]
