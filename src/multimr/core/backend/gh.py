"""GitHub backend using the gh CLI."""

import json
import logging
import shutil
from pathlib import Path

from multimr.core.backend.abc import CreatedRequest, MergeRequestBackend, parse_request_url
from multimr.core.errors import BackendError
from multimr.core.subprocess import CommandError, run_subprocess_with_context
from multimr.core.types import MergeRequestSpec

logger = logging.getLogger(__name__)


def build_gh_create_command(
    spec: MergeRequestSpec, *, source_branch: str, target_branch: str
) -> list[str]:
    """Build the `gh pr create` argument list for a request."""
    cmd = [
        "gh",
        "pr",
        "create",
        "--head",
        source_branch,
        "--base",
        target_branch,
        "--title",
        spec.title,
        "--body",
        spec.description,
        "--assignee",
        spec.assignee,
    ]
    for reviewer in spec.reviewers:
        cmd.extend(["--reviewer", reviewer])
    for label in spec.labels:
        cmd.extend(["--label", label])
    if spec.draft:
        cmd.append("--draft")
    return cmd


class GhBackend(MergeRequestBackend):
    """Production backend shelling out to gh.

    Requires gh to be installed and authenticated.
    """

    name = "gh"

    def prerequisite_error(self) -> str | None:
        """Require the gh executable on PATH."""
        if shutil.which("gh") is None:
            return "GitHub CLI `gh` is not installed. Install it from https://cli.github.com"
        return None

    def create_request(
        self,
        repo_root: Path,
        spec: MergeRequestSpec,
        *,
        source_branch: str,
        target_branch: str,
        timeout: float,
    ) -> CreatedRequest:
        """Create a pull request with gh."""
        cmd = build_gh_create_command(
            spec, source_branch=source_branch, target_branch=target_branch
        )
        try:
            result = run_subprocess_with_context(
                cmd,
                operation_context=f"create pull request for '{source_branch}'",
                cwd=repo_root,
                timeout=timeout,
            )
        except CommandError as e:
            raise BackendError(str(e)) from e

        # URL format: https://github.com/owner/repo/pull/123
        output = "\n".join(part for part in (result.stdout, result.stderr) if part).strip()
        url = parse_request_url(output)
        if url is None:
            raise BackendError(f"gh output did not contain a pull request URL:\n{output}")

        logger.debug("gh created %s", url)
        return CreatedRequest(url=url, output=output)

    def find_existing_request(
        self, repo_root: Path, *, source_branch: str, timeout: float
    ) -> str | None:
        """Look up an open pull request for source_branch with gh."""
        try:
            result = run_subprocess_with_context(
                ["gh", "pr", "list", "--head", source_branch, "--state", "open", "--json", "url"],
                operation_context=f"list pull requests for '{source_branch}'",
                cwd=repo_root,
                timeout=timeout,
            )
        except CommandError as e:
            raise BackendError(str(e)) from e

        try:
            data = json.loads(result.stdout or "[]")
        except json.JSONDecodeError as e:
            raise BackendError(f"Unparsable gh pr list output: {result.stdout!r}") from e

        if isinstance(data, list) and data:
            first = data[0]
            if isinstance(first, dict) and isinstance(first.get("url"), str):
                return first["url"]
        return None
