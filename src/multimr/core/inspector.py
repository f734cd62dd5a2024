"""Workspace inspection: read one repository's state without changing it."""

import logging
from pathlib import Path

from multimr.core.errors import RepoAccessError
from multimr.core.git.abc import Git
from multimr.core.subprocess import CommandError
from multimr.core.types import RepositoryState

logger = logging.getLogger(__name__)


def inspect_repository(git: Git, path: Path) -> RepositoryState:
    """Snapshot the current branch, dirty state and tracking status of a repository.

    Args:
        git: Git gateway (read-only operations only are used)
        path: Repository root

    Returns:
        RepositoryState for the repository

    Raises:
        RepoAccessError: If the path is missing, not a directory, not the root
            of a git work tree, or git cannot read it
    """
    try:
        if not git.path_exists(path):
            raise RepoAccessError(f"Path does not exist: {path}")
        if not git.is_dir(path):
            raise RepoAccessError(f"Not a directory: {path}")
    except PermissionError as e:
        raise RepoAccessError(f"Cannot access {path}: {e}") from e

    toplevel = git.get_toplevel(path)
    if toplevel is None:
        raise RepoAccessError(f"Not a git repository: {path}")
    if toplevel != path.resolve():
        raise RepoAccessError(f"{path} is inside the repository at {toplevel}, not its root")

    try:
        current_branch = git.get_current_branch(path)
        staged, modified, untracked = git.get_file_status(path)
        local_branches = tuple(git.list_local_branches(path))
        upstream = git.get_upstream(path, current_branch) if current_branch else None
        ahead, behind = git.get_ahead_behind(path, current_branch) if upstream else (0, 0)
        trunk_branch = git.get_trunk_branch(path)
    except (CommandError, OSError) as e:
        raise RepoAccessError(f"Cannot read repository {path}: {e}") from e

    state = RepositoryState(
        path=path,
        name=path.name,
        current_branch=current_branch,
        dirty=bool(staged or modified or untracked),
        ahead=ahead,
        behind=behind,
        upstream=upstream,
        trunk_branch=trunk_branch,
        local_branches=local_branches,
    )
    logger.debug("Inspected %s: %s", path, state)
    return state
