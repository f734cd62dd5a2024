"""Merge request backends.

The orchestrator depends only on MergeRequestBackend; concrete backends are
chosen at configuration time by create_backend().
"""

from multimr.core.backend.abc import CreatedRequest, MergeRequestBackend, parse_request_url
from multimr.core.backend.factory import create_backend
from multimr.core.backend.fake import FakeBackend
from multimr.core.backend.gh import GhBackend
from multimr.core.backend.gitlab_api import GitLabApiBackend
from multimr.core.backend.glab import GlabBackend

__all__ = [
    "CreatedRequest",
    "FakeBackend",
    "GhBackend",
    "GitLabApiBackend",
    "GlabBackend",
    "MergeRequestBackend",
    "create_backend",
    "parse_request_url",
]
