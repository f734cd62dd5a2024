"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess. Output is always captured, never streamed.
"""

import subprocess
from pathlib import Path

from multimr.core.git.abc import Git
from multimr.core.subprocess import run_subprocess_with_context

# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def __init__(self, *, push_timeout: float | None = 120.0) -> None:
        self._push_timeout = push_timeout

    def path_exists(self, path: Path) -> bool:
        """Check if a path exists on the filesystem."""
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        """Check if a path is a directory."""
        return path.is_dir()

    def get_toplevel(self, cwd: Path) -> Path | None:
        """Get the root of the work tree containing cwd."""
        try:
            result = subprocess.run(
                ["git", "rev-parse", "--show-toplevel"],
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError:
            # Unreadable or vanished directory
            return None
        if result.returncode != 0:
            return None

        toplevel = result.stdout.strip()
        if not toplevel:
            return None
        return Path(toplevel).resolve()

    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch."""
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            # Unborn branch (no commits yet): fall back to the symbolic ref
            result = subprocess.run(
                ["git", "symbolic-ref", "--short", "-q", "HEAD"],
                cwd=cwd,
                capture_output=True,
                text=True,
                check=False,
            )
            if result.returncode != 0:
                return None

        branch = result.stdout.strip()
        if branch == "HEAD" or not branch:
            return None

        return branch

    def get_trunk_branch(self, repo_root: Path) -> str:
        """Get the trunk branch name for the repository.

        Detects trunk by checking git's remote HEAD reference. Falls back to
        checking for existence of common trunk branch names if detection fails.
        """
        # 1. Try git symbolic-ref to detect default branch
        result = subprocess.run(
            ["git", "symbolic-ref", "refs/remotes/origin/HEAD"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode == 0:
            # Parse "refs/remotes/origin/master" -> "master"
            ref = result.stdout.strip()
            if ref.startswith("refs/remotes/origin/"):
                return ref.replace("refs/remotes/origin/", "")

        # 2. Fallback: try 'main' then 'master', use first that exists
        for candidate in ["main", "master"]:
            result = subprocess.run(
                ["git", "show-ref", "--verify", f"refs/heads/{candidate}"],
                cwd=repo_root,
                capture_output=True,
                check=False,
            )
            if result.returncode == 0:
                return candidate

        # 3. Final fallback: 'main'
        return "main"

    def list_local_branches(self, repo_root: Path) -> list[str]:
        """List all local branch names in the repository."""
        result = run_subprocess_with_context(
            ["git", "branch", "--format=%(refname:short)"],
            operation_context="list local branches",
            cwd=repo_root,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def get_file_status(self, cwd: Path) -> tuple[list[str], list[str], list[str]]:
        """Get lists of staged, modified, and untracked files."""
        result = run_subprocess_with_context(
            ["git", "status", "--porcelain", "--untracked-files=all"],
            operation_context="get file status",
            cwd=cwd,
        )

        staged = []
        modified = []
        untracked = []

        for line in result.stdout.splitlines():
            if not line:
                continue

            status_code = line[:2]
            filename = line[3:]

            if status_code == "??":
                untracked.append(filename)
                continue

            # First column: index, second column: work tree
            if status_code[0] != " ":
                staged.append(filename)
            if status_code[1] != " ":
                modified.append(filename)

        return staged, modified, untracked

    def get_upstream(self, cwd: Path, branch: str) -> str | None:
        """Get the upstream ref of a branch."""
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", f"{branch}@{{upstream}}"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        upstream = result.stdout.strip()
        return upstream or None

    def get_ahead_behind(self, cwd: Path, branch: str) -> tuple[int, int]:
        """Get number of commits ahead and behind tracking branch."""
        upstream = self.get_upstream(cwd, branch)
        if upstream is None:
            return 0, 0

        result = run_subprocess_with_context(
            ["git", "rev-list", "--left-right", "--count", f"{upstream}...{branch}"],
            operation_context=f"get ahead/behind counts for branch '{branch}'",
            cwd=cwd,
        )

        parts = result.stdout.strip().split()
        if len(parts) == 2:
            behind = int(parts[0])
            ahead = int(parts[1])
            return ahead, behind

        return 0, 0

    def get_branch_head(self, repo_root: Path, ref: str) -> str | None:
        """Get the commit SHA a ref points to."""
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        return result.stdout.strip()

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        """Check whether ancestor is reachable from descendant."""
        result = subprocess.run(
            ["git", "merge-base", "--is-ancestor", ancestor, descendant],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        # 0: ancestor, 1: not an ancestor, anything else: unknown ref
        return result.returncode == 0

    def get_remote_url(self, repo_root: Path, remote: str) -> str | None:
        """Get the fetch URL of a remote."""
        result = subprocess.run(
            ["git", "remote", "get-url", remote],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def create_and_checkout_branch(self, cwd: Path, branch: str) -> None:
        """Create a new branch at HEAD and switch to it."""
        run_subprocess_with_context(
            ["git", "switch", "-c", branch],
            operation_context=f"create and switch to branch '{branch}'",
            cwd=cwd,
        )

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        """Switch to an existing branch."""
        run_subprocess_with_context(
            ["git", "switch", branch],
            operation_context=f"switch to branch '{branch}'",
            cwd=cwd,
        )

    def stage_all(self, cwd: Path) -> None:
        """Stage tracked modifications, deletions and untracked files."""
        run_subprocess_with_context(
            ["git", "add", "--all"],
            operation_context="stage changes",
            cwd=cwd,
        )

    def commit(self, cwd: Path, message: str) -> None:
        """Commit the index with the given message."""
        run_subprocess_with_context(
            ["git", "commit", "-m", message],
            operation_context="commit changes",
            cwd=cwd,
        )

    def push_branch(self, repo_root: Path, remote: str, branch: str, *, set_upstream: bool) -> None:
        """Push a branch to a remote."""
        cmd = ["git", "push"]
        if set_upstream:
            cmd.append("--set-upstream")
        cmd.extend([remote, branch])

        run_subprocess_with_context(
            cmd,
            operation_context=f"push branch '{branch}' to remote '{remote}'",
            cwd=repo_root,
            timeout=self._push_timeout,
        )
