"""Dry-run Git wrapper.

This module provides a Git wrapper that prevents execution of mutating
operations while delegating read-only operations to the wrapped implementation.
"""

import logging
from pathlib import Path

from multimr.core.git.abc import Git

logger = logging.getLogger(__name__)

# ============================================================================
# Dry-run Wrapper
# ============================================================================


class DryRunGit(Git):
    """No-op wrapper that prevents execution of mutating operations.

    Read-only operations are delegated to the wrapped implementation so that
    inspection and planning see the same state as a live run. Mutating
    operations are logged and recorded instead of executed.

    Usage:
        real_ops = RealGit()
        dry_run_ops = DryRunGit(real_ops)

        # Logs "[DRY RUN] Would run: git push ..." instead of pushing
        dry_run_ops.push_branch(repo_root, "origin", "feature", set_upstream=True)
    """

    def __init__(self, wrapped: Git) -> None:
        """Create a dry-run wrapper around a Git implementation.

        Args:
            wrapped: The Git implementation to wrap (usually RealGit or FakeGit)
        """
        self._wrapped = wrapped
        self._would_run: list[str] = []

    @property
    def would_run(self) -> list[str]:
        """Commands that were suppressed, in call order."""
        return list(self._would_run)

    def _skip(self, cwd: Path, command: str) -> None:
        self._would_run.append(command)
        logger.info("[DRY RUN] Would run in %s: %s", cwd, command)

    # Read-only operations: delegate to wrapped implementation

    def path_exists(self, path: Path) -> bool:
        return self._wrapped.path_exists(path)

    def is_dir(self, path: Path) -> bool:
        return self._wrapped.is_dir(path)

    def get_toplevel(self, cwd: Path) -> Path | None:
        return self._wrapped.get_toplevel(cwd)

    def get_current_branch(self, cwd: Path) -> str | None:
        return self._wrapped.get_current_branch(cwd)

    def get_trunk_branch(self, repo_root: Path) -> str:
        return self._wrapped.get_trunk_branch(repo_root)

    def list_local_branches(self, repo_root: Path) -> list[str]:
        return self._wrapped.list_local_branches(repo_root)

    def get_file_status(self, cwd: Path) -> tuple[list[str], list[str], list[str]]:
        return self._wrapped.get_file_status(cwd)

    def get_upstream(self, cwd: Path, branch: str) -> str | None:
        return self._wrapped.get_upstream(cwd, branch)

    def get_ahead_behind(self, cwd: Path, branch: str) -> tuple[int, int]:
        return self._wrapped.get_ahead_behind(cwd, branch)

    def get_branch_head(self, repo_root: Path, ref: str) -> str | None:
        return self._wrapped.get_branch_head(repo_root, ref)

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        return self._wrapped.is_ancestor(repo_root, ancestor, descendant)

    def get_remote_url(self, repo_root: Path, remote: str) -> str | None:
        return self._wrapped.get_remote_url(repo_root, remote)

    # Mutating operations: record and log instead of executing

    def create_and_checkout_branch(self, cwd: Path, branch: str) -> None:
        self._skip(cwd, f"git switch -c {branch}")

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        self._skip(cwd, f"git switch {branch}")

    def stage_all(self, cwd: Path) -> None:
        self._skip(cwd, "git add --all")

    def commit(self, cwd: Path, message: str) -> None:
        self._skip(cwd, f'git commit -m "{message}"')

    def push_branch(self, repo_root: Path, remote: str, branch: str, *, set_upstream: bool) -> None:
        flag = "--set-upstream " if set_upstream else ""
        self._skip(repo_root, f"git push {flag}{remote} {branch}")
