"""Stage and commit pending changes, tolerating formatting pre-commit hooks."""

import logging

from multimr.core.errors import HookFailure, RepoAccessError
from multimr.core.git.abc import Git
from multimr.core.subprocess import CommandError
from multimr.core.types import MergeRequestSpec, RepositoryState

logger = logging.getLogger(__name__)


def commit_changes(git: Git, state: RepositoryState, spec: MergeRequestSpec) -> bool:
    """Commit everything pending in the repository with the request title as message.

    A pre-commit hook that rewrites files (formatters) makes the first commit
    fail and leaves the rewritten files unstaged. In that case the files are
    re-staged and the commit is retried exactly once.

    Returns:
        True if a commit was created, False if there was nothing to commit

    Raises:
        RepoAccessError: If the changes cannot be staged
        HookFailure: If the commit fails without the hook touching files, or
            fails again after the retry
    """
    if not state.dirty:
        return False

    _stage(git, state)
    try:
        git.commit(state.path, spec.title)
        return True
    except CommandError as first:
        try:
            _, modified, untracked = git.get_file_status(state.path)
        except CommandError as e:
            raise RepoAccessError(f"Cannot read status of {state.path}: {e}") from e

        if not (modified or untracked):
            raise HookFailure(f"Commit rejected in {state.name}:\n{first.output}") from first

        logger.debug(
            "%s: commit hook modified %d file(s); re-staging and retrying once",
            state.name,
            len(modified) + len(untracked),
        )

    _stage(git, state)
    try:
        git.commit(state.path, spec.title)
    except CommandError as second:
        raise HookFailure(
            f"Commit rejected twice in {state.name} (after re-staging hook changes):\n"
            f"{second.output}"
        ) from second
    return True


def _stage(git: Git, state: RepositoryState) -> None:
    try:
        git.stage_all(state.path)
    except CommandError as e:
        raise RepoAccessError(f"Cannot stage changes in {state.path}: {e}") from e
