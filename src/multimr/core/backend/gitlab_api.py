"""Native GitLab REST API backend.

This wraps a requests.Session so that no external CLI is needed. The
project is derived from the repository's remote URL; usernames are resolved
to user ids because the merge request endpoint only accepts ids.
"""

import logging
import re
from pathlib import Path
from typing import Any
from urllib.parse import quote, urlparse

import requests

from multimr.core.backend.abc import CreatedRequest, MergeRequestBackend
from multimr.core.errors import BackendError
from multimr.core.git.abc import Git
from multimr.core.types import MergeRequestSpec

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "GITLAB_TOKEN"

# git@gitlab.com:group/sub/project.git
_SCP_LIKE = re.compile(r"^[\w.-]+@[\w.-]+:(?P<path>[^/].*)$")


def project_path_from_remote(url: str) -> str | None:
    """Extract 'group/sub/project' from an https, ssh or scp-like remote URL."""
    url = url.strip()
    match = _SCP_LIKE.match(url)
    if match:
        path = match.group("path")
    else:
        parsed = urlparse(url)
        if not parsed.scheme or not parsed.path:
            return None
        path = parsed.path

    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    if "/" not in path:
        return None
    return path


class GitLabApiBackend(MergeRequestBackend):
    """Backend talking to the GitLab REST API (v4) directly."""

    name = "gitlab-api"

    def __init__(
        self,
        *,
        git: Git,
        token: str | None,
        base_url: str = "https://gitlab.com",
        remote: str = "origin",
        session: requests.Session | None = None,
    ) -> None:
        self._git = git
        self._token = token
        self._remote = remote
        self._api_url = base_url.rstrip("/") + "/api/v4"
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json", "User-Agent": "multimr"})
        if token:
            self._session.headers["PRIVATE-TOKEN"] = token
        self._user_ids: dict[str, int] = {}

    def prerequisite_error(self) -> str | None:
        """Require an API token."""
        if not self._token:
            return f"{TOKEN_ENV_VAR} is not set; the gitlab-api backend needs a personal token."
        return None

    def _project_url(self, repo_root: Path) -> str:
        remote_url = self._git.get_remote_url(repo_root, self._remote)
        if remote_url is None:
            raise BackendError(f"Remote '{self._remote}' is not configured in {repo_root}")
        path = project_path_from_remote(remote_url)
        if path is None:
            raise BackendError(f"Cannot derive a GitLab project from remote URL '{remote_url}'")
        return f"{self._api_url}/projects/{quote(path, safe='')}"

    def _request(self, method: str, url: str, *, timeout: float, **kwargs: Any) -> Any:
        logger.debug("GitLab API %s %s", method, url)
        try:
            resp = self._session.request(method, url, timeout=timeout, **kwargs)
        except requests.RequestException as e:
            raise BackendError(f"GitLab API request failed: {method} {url}: {e}") from e

        if resp.status_code >= 400:
            raise BackendError(
                f"GitLab API returned {resp.status_code} for {method} {url}: {resp.text.strip()}"
            )
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"GitLab API returned non-JSON body for {method} {url}") from e

    def _user_id(self, username: str, *, timeout: float) -> int:
        if username in self._user_ids:
            return self._user_ids[username]

        data = self._request(
            "GET", f"{self._api_url}/users", timeout=timeout, params={"username": username}
        )
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise BackendError(f"GitLab user '{username}' not found")
        user_id = data[0].get("id")
        if not isinstance(user_id, int):
            raise BackendError(f"GitLab user '{username}' has no id")

        self._user_ids[username] = user_id
        return user_id

    def create_request(
        self,
        repo_root: Path,
        spec: MergeRequestSpec,
        *,
        source_branch: str,
        target_branch: str,
        timeout: float,
    ) -> CreatedRequest:
        """Create a merge request through the REST API."""
        project_url = self._project_url(repo_root)

        title = spec.title
        if spec.draft and not title.startswith("Draft:"):
            title = f"Draft: {title}"

        payload: dict[str, Any] = {
            "source_branch": source_branch,
            "target_branch": target_branch,
            "title": title,
            "description": spec.description,
            "assignee_id": self._user_id(spec.assignee, timeout=timeout),
        }
        if spec.reviewers:
            payload["reviewer_ids"] = [self._user_id(r, timeout=timeout) for r in spec.reviewers]
        if spec.labels:
            payload["labels"] = ",".join(spec.labels)

        data = self._request(
            "POST", f"{project_url}/merge_requests", timeout=timeout, json=payload
        )
        url = data.get("web_url") if isinstance(data, dict) else None
        if not isinstance(url, str) or not url:
            raise BackendError(f"GitLab API response has no web_url: {data!r}")

        iid = data.get("iid")
        return CreatedRequest(url=url, output=f"Created merge request !{iid}: {url}")

    def find_existing_request(
        self, repo_root: Path, *, source_branch: str, timeout: float
    ) -> str | None:
        """Look up an open merge request for source_branch."""
        project_url = self._project_url(repo_root)
        data = self._request(
            "GET",
            f"{project_url}/merge_requests",
            timeout=timeout,
            params={"source_branch": source_branch, "state": "opened"},
        )
        if isinstance(data, list):
            for item in data:
                if isinstance(item, dict) and isinstance(item.get("web_url"), str):
                    return item["web_url"]
        return None
