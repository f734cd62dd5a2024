"""Fake merge request backend for testing.

FakeBackend is an in-memory implementation that accepts pre-configured state
in its constructor. Construct instances directly with keyword arguments.
"""

from pathlib import Path

from multimr.core.backend.abc import CreatedRequest, MergeRequestBackend
from multimr.core.errors import BackendError
from multimr.core.types import MergeRequestSpec


class FakeBackend(MergeRequestBackend):
    """In-memory fake implementation of request creation.

    Requests it creates are remembered as open, so a later
    find_existing_request() for the same branch finds them.
    """

    name = "fake"

    def __init__(
        self,
        *,
        existing_requests: dict[tuple[Path, str], str] | None = None,
        failures: dict[Path, str] | None = None,
        prerequisite: str | None = None,
        url_template: str = "https://gitlab.example.com/group/{repo}/-/merge_requests/{number}",
    ) -> None:
        """Create FakeBackend with pre-configured state.

        Args:
            existing_requests: Mapping of (repo root, source branch) -> open request URL
            failures: Mapping of repo root -> error message raised as BackendError
            prerequisite: Value returned by prerequisite_error()
            url_template: Format for URLs of created requests ({repo}, {number})
        """
        self._existing_requests = dict(existing_requests or {})
        self._failures = failures or {}
        self._prerequisite = prerequisite
        self._url_template = url_template
        self._created: list[tuple[Path, MergeRequestSpec, str, str]] = []
        self._lookups: list[tuple[Path, str]] = []

    @property
    def created_requests(self) -> list[tuple[Path, MergeRequestSpec, str, str]]:
        """(repo root, spec, source branch, target branch) per create_request() call."""
        return self._created

    @property
    def lookups(self) -> list[tuple[Path, str]]:
        return self._lookups

    @property
    def call_count(self) -> int:
        return len(self._created) + len(self._lookups)

    def prerequisite_error(self) -> str | None:
        return self._prerequisite

    def create_request(
        self,
        repo_root: Path,
        spec: MergeRequestSpec,
        *,
        source_branch: str,
        target_branch: str,
        timeout: float,
    ) -> CreatedRequest:
        self._created.append((repo_root, spec, source_branch, target_branch))
        if repo_root in self._failures:
            raise BackendError(self._failures[repo_root])

        url = self._url_template.format(repo=repo_root.name, number=len(self._created))
        self._existing_requests[(repo_root, source_branch)] = url
        return CreatedRequest(url=url, output=f"Creating merge request for {source_branch}\n{url}")

    def find_existing_request(
        self, repo_root: Path, *, source_branch: str, timeout: float
    ) -> str | None:
        self._lookups.append((repo_root, source_branch))
        return self._existing_requests.get((repo_root, source_branch))
