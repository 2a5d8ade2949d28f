"""Domain operations built on :class:`~feedclient.client.RequestPipeline`.

Each service method validates its arguments locally, builds a
:class:`~feedclient.models.RequestDescriptor` declaring its cacheability or
the cache prefixes it invalidates, and returns the decoded response body.
"""

from feedclient.services.auth import AuthService
from feedclient.services.comments import CommentService
from feedclient.services.posts import PostService
from feedclient.services.users import UserService

__all__ = ["AuthService", "CommentService", "PostService", "UserService"]
