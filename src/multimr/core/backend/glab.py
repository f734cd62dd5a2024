"""GitLab backend using the glab CLI.

Runs `glab mr create` as a bounded subprocess with fully captured output and
parses the created merge request URL from it.
"""

import json
import logging
import shutil
from pathlib import Path

from multimr.core.backend.abc import CreatedRequest, MergeRequestBackend, parse_request_url
from multimr.core.errors import BackendError
from multimr.core.subprocess import CommandError, run_subprocess_with_context
from multimr.core.types import MergeRequestSpec

logger = logging.getLogger(__name__)


def build_glab_create_command(
    spec: MergeRequestSpec, *, source_branch: str, target_branch: str
) -> list[str]:
    """Build the `glab mr create` argument list for a request."""
    cmd = [
        "glab",
        "mr",
        "create",
        "--source-branch",
        source_branch,
        "--target-branch",
        target_branch,
        "--title",
        spec.title,
        "--description",
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
    # Never prompt: the terminal belongs to the display
    cmd.append("--yes")
    return cmd


class GlabBackend(MergeRequestBackend):
    """Production backend shelling out to glab.

    Requires glab to be installed and authenticated for the repository's host.
    """

    name = "glab"

    def prerequisite_error(self) -> str | None:
        """Require the glab executable on PATH."""
        if shutil.which("glab") is None:
            return (
                "GitLab CLI `glab` is not installed. "
                "Install it from https://gitlab.com/gitlab-org/cli or set backend in multimr.toml."
            )
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
        """Create a merge request with glab."""
        cmd = build_glab_create_command(
            spec, source_branch=source_branch, target_branch=target_branch
        )
        try:
            result = run_subprocess_with_context(
                cmd,
                operation_context=f"create merge request for '{source_branch}'",
                cwd=repo_root,
                timeout=timeout,
            )
        except CommandError as e:
            raise BackendError(str(e)) from e

        output = "\n".join(part for part in (result.stdout, result.stderr) if part).strip()
        url = parse_request_url(output)
        if url is None:
            raise BackendError(f"glab output did not contain a merge request URL:\n{output}")

        logger.debug("glab created %s", url)
        return CreatedRequest(url=url, output=output)

    def find_existing_request(
        self, repo_root: Path, *, source_branch: str, timeout: float
    ) -> str | None:
        """Look up an open merge request for source_branch with glab."""
        try:
            result = run_subprocess_with_context(
                ["glab", "mr", "list", "--source-branch", source_branch, "--output", "json"],
                operation_context=f"list merge requests for '{source_branch}'",
                cwd=repo_root,
                timeout=timeout,
            )
        except CommandError as e:
            raise BackendError(str(e)) from e

        try:
            data = json.loads(result.stdout or "[]")
        except json.JSONDecodeError:
            # Older glab releases only print a table
            return parse_request_url(result.stdout)

        if isinstance(data, list):
            for item in data:
                if isinstance(item, dict) and isinstance(item.get("web_url"), str):
                    return item["web_url"]
        return None
