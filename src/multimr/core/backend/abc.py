"""Abstract base class for merge request backends.

A backend is whatever actually opens the request on the hosting provider:
a CLI such as glab or gh, or a native API client. The orchestrator only ever
talks to this interface.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from multimr.core.types import MergeRequestSpec

# https://gitlab.example.com/group/sub/project/-/merge_requests/42
# https://github.com/owner/repo/pull/42
REQUEST_URL_PATTERN = re.compile(r"https?://\S+?/(?:-/merge_requests|pull)/\d+")


@dataclass(frozen=True)
class CreatedRequest:
    """A request the backend opened."""

    url: str
    output: str = ""  # captured backend output, rendered after the run


def parse_request_url(output: str) -> str | None:
    """Return the last merge/pull request URL found in backend output."""
    matches = REQUEST_URL_PATTERN.findall(output)
    if not matches:
        return None
    return matches[-1]


class MergeRequestBackend(ABC):
    """Abstract interface for request creation.

    All implementations (subprocess, native API and fake) must implement this
    interface. Implementations capture all output; none may write to the
    terminal.
    """

    name: str = "backend"

    def prerequisite_error(self) -> str | None:
        """Describe what prevents this backend from running, or None if ready.

        Checked once per live run, before any repository is touched.
        """
        return None

    @abstractmethod
    def create_request(
        self,
        repo_root: Path,
        spec: MergeRequestSpec,
        *,
        source_branch: str,
        target_branch: str,
        timeout: float,
    ) -> CreatedRequest:
        """Open a merge/pull request from source_branch into target_branch.

        Args:
            repo_root: Repository the request belongs to
            spec: Title, description, assignee, reviewers, labels and draft flag
            source_branch: Branch carrying the change
            target_branch: Branch to merge into
            timeout: Seconds before the operation is abandoned

        Returns:
            CreatedRequest with the request URL and the captured output

        Raises:
            BackendError: On non-zero exit, timeout, HTTP failure, or output
                without a request URL
        """
        ...

    @abstractmethod
    def find_existing_request(
        self, repo_root: Path, *, source_branch: str, timeout: float
    ) -> str | None:
        """Return the URL of an open request for source_branch, if any.

        Raises:
            BackendError: If the backend cannot be queried
        """
        ...
