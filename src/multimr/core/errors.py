"""Error taxonomy for multimr runs.

Every error raised on purpose by a workflow component derives from
MultimrError and carries a ``kind`` that ends up in the run summary.

Propagation:
- ConfigError is run-wide: it is raised before any repository is touched
  and aborts the whole run.
- Everything else is repository-scoped: the orchestrator catches it at the
  repository boundary and records Failed(kind, message) for that repository
  only.
- RepositorySkipped and Cancelled are converted to Skipped, not Failed.
"""

from typing import Literal

ErrorKind = Literal[
    "RepoAccessError",
    "BranchConflict",
    "HookFailure",
    "PushError",
    "BackendError",
    "ConfigError",
    "Cancelled",
    "Unexpected",
]


class MultimrError(Exception):
    """Base class for all multimr specific errors."""

    kind: ErrorKind = "Unexpected"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class RepoAccessError(MultimrError):
    """Path is missing, unreadable or not a git repository."""

    kind: ErrorKind = "RepoAccessError"


class BranchConflict(MultimrError):
    """Planned branch exists locally but does not descend from the base."""

    kind: ErrorKind = "BranchConflict"


class HookFailure(MultimrError):
    """Commit failed, including after one re-stage and retry."""

    kind: ErrorKind = "HookFailure"


class PushError(MultimrError):
    """Push was rejected or the remote could not be reached."""

    kind: ErrorKind = "PushError"


class BackendError(MultimrError):
    """Request backend failed or returned output without a request URL."""

    kind: ErrorKind = "BackendError"


class ConfigError(MultimrError):
    """Run-wide configuration problem detected before any repository work."""

    kind: ErrorKind = "ConfigError"


class Cancelled(MultimrError):
    """Run was cancelled before this repository started."""

    kind: ErrorKind = "Cancelled"


class RepositorySkipped(MultimrError):
    """Nothing to do for this repository; recorded as Skipped(reason)."""
