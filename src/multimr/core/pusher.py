"""Idempotent push of the planned branch."""

import logging
from pathlib import Path

from multimr.core.errors import PushError
from multimr.core.git.abc import Git
from multimr.core.subprocess import CommandError

logger = logging.getLogger(__name__)


def push_branch(git: Git, repo_root: Path, branch: str, remote: str) -> bool:
    """Push `branch` to `remote` unless the remote already has the local tip.

    The comparison uses the local remote-tracking ref, so an up-to-date branch
    costs no network round trip.

    Returns:
        True if a push happened, False if the remote already matched

    Raises:
        PushError: If the branch is missing locally or the push fails
    """
    local_tip = git.get_branch_head(repo_root, f"refs/heads/{branch}")
    if local_tip is None:
        raise PushError(f"Branch '{branch}' does not exist in {repo_root}")

    remote_tip = git.get_branch_head(repo_root, f"refs/remotes/{remote}/{branch}")
    if remote_tip == local_tip:
        logger.debug("%s: '%s' already at %s on %s", repo_root.name, branch, local_tip, remote)
        return False

    try:
        git.push_branch(repo_root, remote, branch, set_upstream=True)
    except CommandError as e:
        raise PushError(f"Push of '{branch}' to '{remote}' failed:\n{e.output or e}") from e
    return True
