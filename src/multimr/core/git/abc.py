"""High-level git operations interface.

This module provides a clean abstraction over git subprocess calls, making the
workflow components testable and keeping dry-run enforcement in one place.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess
- DryRunGit: Wrapper that delegates reads and turns writes into no-ops

Every method takes the repository path explicitly; no implementation may
depend on the process-wide current directory.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real, dry-run and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    # Read-only operations

    @abstractmethod
    def path_exists(self, path: Path) -> bool:
        """Check if a path exists on the filesystem."""
        ...

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory."""
        ...

    @abstractmethod
    def get_toplevel(self, cwd: Path) -> Path | None:
        """Get the root of the work tree containing cwd.

        Returns:
            Resolved work tree root, or None if cwd is not inside a git work tree
            or cannot be read
        """
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch (None for detached HEAD)."""
        ...

    @abstractmethod
    def get_trunk_branch(self, repo_root: Path) -> str:
        """Get the trunk branch name for the repository.

        Detects trunk by checking git's remote HEAD reference. Falls back to
        checking for existence of common trunk branch names if detection fails.

        Returns:
            Trunk branch name (e.g., 'main', 'master')
        """
        ...

    @abstractmethod
    def list_local_branches(self, repo_root: Path) -> list[str]:
        """List all local branch names in the repository."""
        ...

    @abstractmethod
    def get_file_status(self, cwd: Path) -> tuple[list[str], list[str], list[str]]:
        """Get lists of staged, modified, and untracked files.

        Returns:
            Tuple of (staged, modified, untracked) file lists
        """
        ...

    @abstractmethod
    def get_upstream(self, cwd: Path, branch: str) -> str | None:
        """Get the upstream ref of a branch (e.g. 'origin/feature'), or None."""
        ...

    @abstractmethod
    def get_ahead_behind(self, cwd: Path, branch: str) -> tuple[int, int]:
        """Get number of commits ahead and behind tracking branch.

        Returns:
            Tuple of (ahead, behind) counts, (0, 0) without an upstream
        """
        ...

    @abstractmethod
    def get_branch_head(self, repo_root: Path, ref: str) -> str | None:
        """Get the commit SHA a ref points to, or None if it doesn't exist."""
        ...

    @abstractmethod
    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        """Check whether ancestor is reachable from descendant."""
        ...

    @abstractmethod
    def get_remote_url(self, repo_root: Path, remote: str) -> str | None:
        """Get the fetch URL of a remote, or None if the remote is not configured."""
        ...

    # Mutating operations

    @abstractmethod
    def create_and_checkout_branch(self, cwd: Path, branch: str) -> None:
        """Create a new branch at HEAD and switch to it, keeping working tree changes."""
        ...

    @abstractmethod
    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Switch to an existing branch, keeping working tree changes."""
        ...

    @abstractmethod
    def stage_all(self, cwd: Path) -> None:
        """Stage tracked modifications, deletions and untracked files."""
        ...

    @abstractmethod
    def commit(self, cwd: Path, message: str) -> None:
        """Commit the index with the given message.

        Raises:
            CommandError: If git commit fails (e.g. a pre-commit hook rejects it)
        """
        ...

    @abstractmethod
    def push_branch(self, repo_root: Path, remote: str, branch: str, *, set_upstream: bool) -> None:
        """Push a branch to a remote.

        Raises:
            CommandError: If the push is rejected or the remote is unreachable
        """
        ...
