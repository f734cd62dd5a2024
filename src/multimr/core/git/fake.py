"""Fake git operations for testing.

FakeGit is an in-memory implementation that accepts pre-configured state
in its constructor. Construct instances directly with keyword arguments.
Mutating operations update the in-memory state so that a second run over the
same FakeGit sees what the first run left behind.
"""

from pathlib import Path

from multimr.core.git.abc import Git
from multimr.core.subprocess import CommandError


def _failure(cmd: list[str], stderr: str) -> CommandError:
    return CommandError(
        f"Failed to run {' '.join(cmd)}\nstderr: {stderr}",
        cmd=cmd,
        returncode=1,
        stdout="",
        stderr=stderr,
    )


class FakeGit(Git):
    """In-memory fake implementation of git operations.

    This class has NO public setup methods. All state is provided via constructor
    using keyword arguments with sensible defaults (empty dicts).

    Every path listed in ``current_branches`` is a repository root. Paths in
    ``plain_dirs`` exist but are not repositories.
    """

    def __init__(
        self,
        *,
        current_branches: dict[Path, str | None] | None = None,
        trunk_branches: dict[Path, str] | None = None,
        local_branches: dict[Path, list[str]] | None = None,
        file_statuses: dict[Path, tuple[list[str], list[str], list[str]]] | None = None,
        upstreams: dict[Path, dict[str, str]] | None = None,
        ahead_behind: dict[Path, tuple[int, int]] | None = None,
        branch_heads: dict[Path, dict[str, str]] | None = None,
        diverged_branches: dict[Path, set[str]] | None = None,
        remote_urls: dict[tuple[Path, str], str] | None = None,
        plain_dirs: set[Path] | None = None,
        unreadable_paths: set[Path] | None = None,
        commit_hook_rewrites: dict[Path, list[list[str]]] | None = None,
        push_failures: dict[Path, str] | None = None,
    ) -> None:
        """Create FakeGit with pre-configured state.

        Args:
            current_branches: Mapping of repo root -> checked-out branch (None for detached)
            trunk_branches: Mapping of repo root -> trunk branch (default "main")
            local_branches: Mapping of repo root -> local branches
                (default: trunk plus current branch)
            file_statuses: Mapping of repo root -> (staged, modified, untracked)
            upstreams: Mapping of repo root -> {branch: upstream ref}
            ahead_behind: Mapping of repo root -> (ahead, behind)
            branch_heads: Mapping of repo root -> {full ref: sha}; local branches
                without an entry get a generated sha
            diverged_branches: Mapping of repo root -> branches that do not
                descend from any other branch
            remote_urls: Mapping of (repo root, remote) -> URL
            plain_dirs: Existing directories that are not git repositories
            unreadable_paths: Paths whose access raises PermissionError
            commit_hook_rewrites: Mapping of repo root -> queue of hook results,
                one per commit attempt. Each entry lists the files the hook
                rewrites while rejecting the commit; an empty list rejects the
                commit without touching files. An exhausted queue accepts.
            push_failures: Mapping of repo root -> stderr of a rejected push
        """
        self._current_branches = dict(current_branches or {})
        self._trunk_branches = trunk_branches or {}
        self._file_statuses = {
            path: (list(staged), list(modified), list(untracked))
            for path, (staged, modified, untracked) in (file_statuses or {}).items()
        }
        self._upstreams = {path: dict(m) for path, m in (upstreams or {}).items()}
        self._ahead_behind = ahead_behind or {}
        self._diverged_branches = diverged_branches or {}
        self._remote_urls = remote_urls or {}
        self._plain_dirs = plain_dirs or set()
        self._unreadable_paths = unreadable_paths or set()
        self._commit_hook_rewrites = {
            path: list(queue) for path, queue in (commit_hook_rewrites or {}).items()
        }
        self._push_failures = push_failures or {}

        self._local_branches: dict[Path, list[str]] = {}
        for path, current in self._current_branches.items():
            if local_branches is not None and path in local_branches:
                branches = list(local_branches[path])
            else:
                branches = [self._trunk_branches.get(path, "main")]
                if current is not None and current not in branches:
                    branches.append(current)
            self._local_branches[path] = branches

        self._branch_heads: dict[Path, dict[str, str]] = {}
        for path, branches in self._local_branches.items():
            heads = dict((branch_heads or {}).get(path, {}))
            for branch in branches:
                heads.setdefault(f"refs/heads/{branch}", f"{branch}-0")
            self._branch_heads[path] = heads

        self._commit_counter = 0
        self._created_branches: list[tuple[Path, str]] = []
        self._checked_out_branches: list[tuple[Path, str]] = []
        self._staged_paths: list[Path] = []
        self._commits: list[tuple[Path, str]] = []
        self._commit_attempts: list[tuple[Path, str]] = []
        self._pushed_branches: list[tuple[Path, str, str]] = []

    # Read-only operations

    def _check_readable(self, path: Path) -> None:
        if path in self._unreadable_paths:
            raise PermissionError(f"Permission denied: '{path}'")

    def path_exists(self, path: Path) -> bool:
        self._check_readable(path)
        return path in self._current_branches or path in self._plain_dirs

    def is_dir(self, path: Path) -> bool:
        self._check_readable(path)
        return self.path_exists(path)

    def get_toplevel(self, cwd: Path) -> Path | None:
        if cwd in self._current_branches:
            return cwd
        for root in self._current_branches:
            if root in cwd.parents:
                return root
        return None

    def get_current_branch(self, cwd: Path) -> str | None:
        return self._current_branches.get(cwd)

    def get_trunk_branch(self, repo_root: Path) -> str:
        return self._trunk_branches.get(repo_root, "main")

    def list_local_branches(self, repo_root: Path) -> list[str]:
        return list(self._local_branches.get(repo_root, []))

    def get_file_status(self, cwd: Path) -> tuple[list[str], list[str], list[str]]:
        staged, modified, untracked = self._file_statuses.get(cwd, ([], [], []))
        return list(staged), list(modified), list(untracked)

    def get_upstream(self, cwd: Path, branch: str) -> str | None:
        return self._upstreams.get(cwd, {}).get(branch)

    def get_ahead_behind(self, cwd: Path, branch: str) -> tuple[int, int]:
        return self._ahead_behind.get(cwd, (0, 0))

    def get_branch_head(self, repo_root: Path, ref: str) -> str | None:
        return self._branch_heads.get(repo_root, {}).get(ref)

    def is_ancestor(self, repo_root: Path, ancestor: str, descendant: str) -> bool:
        if ancestor == descendant:
            return True
        return descendant not in self._diverged_branches.get(repo_root, set())

    def get_remote_url(self, repo_root: Path, remote: str) -> str | None:
        return self._remote_urls.get((repo_root, remote))

    # Mutating operations

    def create_and_checkout_branch(self, cwd: Path, branch: str) -> None:
        branches = self._local_branches.setdefault(cwd, [])
        if branch in branches:
            raise _failure(
                ["git", "switch", "-c", branch], f"fatal: a branch named '{branch}' already exists"
            )
        current = self._current_branches.get(cwd)
        heads = self._branch_heads.setdefault(cwd, {})
        heads[f"refs/heads/{branch}"] = heads.get(f"refs/heads/{current}", f"{branch}-0")
        branches.append(branch)
        self._current_branches[cwd] = branch
        self._created_branches.append((cwd, branch))

    def checkout_branch(self, cwd: Path, branch: str) -> None:
        if branch not in self._local_branches.get(cwd, []):
            raise _failure(["git", "switch", branch], f"fatal: invalid reference: {branch}")
        self._current_branches[cwd] = branch
        self._checked_out_branches.append((cwd, branch))

    def stage_all(self, cwd: Path) -> None:
        staged, modified, untracked = self._file_statuses.get(cwd, ([], [], []))
        self._file_statuses[cwd] = (staged + modified + untracked, [], [])
        self._staged_paths.append(cwd)

    def commit(self, cwd: Path, message: str) -> None:
        self._commit_attempts.append((cwd, message))
        queue = self._commit_hook_rewrites.get(cwd)
        if queue:
            rewritten = queue.pop(0)
            staged, modified, untracked = self._file_statuses.get(cwd, ([], [], []))
            self._file_statuses[cwd] = (staged, modified + rewritten, untracked)
            raise _failure(["git", "commit", "-m", message], "pre-commit hook failed")

        self._file_statuses[cwd] = ([], [], [])
        self._commit_counter += 1
        branch = self._current_branches.get(cwd)
        self._branch_heads.setdefault(cwd, {})[f"refs/heads/{branch}"] = (
            f"{branch}-{self._commit_counter}"
        )
        self._commits.append((cwd, message))

    def push_branch(self, repo_root: Path, remote: str, branch: str, *, set_upstream: bool) -> None:
        if repo_root in self._push_failures:
            raise _failure(
                ["git", "push", remote, branch], self._push_failures[repo_root]
            )
        heads = self._branch_heads.setdefault(repo_root, {})
        heads[f"refs/remotes/{remote}/{branch}"] = heads[f"refs/heads/{branch}"]
        if set_upstream:
            self._upstreams.setdefault(repo_root, {})[branch] = f"{remote}/{branch}"
        self._pushed_branches.append((repo_root, remote, branch))

    # Recorded calls, for test assertions

    @property
    def created_branches(self) -> list[tuple[Path, str]]:
        """(repo root, branch) for each create_and_checkout_branch() call."""
        return self._created_branches

    @property
    def checked_out_branches(self) -> list[tuple[Path, str]]:
        return self._checked_out_branches

    @property
    def staged_paths(self) -> list[Path]:
        return self._staged_paths

    @property
    def commits(self) -> list[tuple[Path, str]]:
        """(repo root, message) for each successful commit."""
        return self._commits

    @property
    def commit_attempts(self) -> list[tuple[Path, str]]:
        return self._commit_attempts

    @property
    def pushed_branches(self) -> list[tuple[Path, str, str]]:
        """(repo root, remote, branch) for each successful push."""
        return self._pushed_branches

    @property
    def mutation_count(self) -> int:
        """Total number of mutating calls that reached this fake."""
        return (
            len(self._created_branches)
            + len(self._checked_out_branches)
            + len(self._staged_paths)
            + len(self._commit_attempts)
            + len(self._pushed_branches)
        )
