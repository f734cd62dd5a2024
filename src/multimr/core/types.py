"""Data structures shared across the multimr workflow.

These strongly-typed structures flow between the workflow components:
Inspector -> RepositoryState -> Planner -> BranchPlan -> ... -> ExecutionResult,
and finally into the RunSummary consumed by the display layer.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from multimr.core.errors import ErrorKind


class WorkflowMode(Enum):
    """Branch-planning policy, set once per run."""

    FROM_MAIN = "from-main"
    FROM_FEATURE = "from-feature"


class Step(Enum):
    """Per-repository pipeline position, in order."""

    PENDING = "pending"
    INSPECTED = "inspected"
    PLANNED = "planned"
    COMMITTED = "committed"
    PUSHED = "pushed"
    REQUEST_CREATED = "request-created"


@dataclass(frozen=True)
class RepositoryState:
    """Snapshot of one repository, taken once per run."""

    path: Path
    name: str
    current_branch: str | None  # None for detached HEAD
    dirty: bool
    ahead: int
    behind: int
    upstream: str | None
    trunk_branch: str
    local_branches: tuple[str, ...] = ()

    def has_branch(self, branch: str) -> bool:
        return branch in self.local_branches


@dataclass(frozen=True)
class BranchPlan:
    """Where the request's commits live and where they merge into.

    Attributes:
        target_branch: Branch that carries the change (request source)
        base_branch: Branch the request merges into
        create_new: True when target_branch must be created
        checkout: True when target_branch is not the current branch
    """

    target_branch: str
    base_branch: str
    create_new: bool
    checkout: bool


@dataclass(frozen=True)
class MergeRequestSpec:
    """Everything the backend needs to open one request.

    Identical for every repository of a run.
    """

    title: str
    description: str
    assignee: str
    reviewers: tuple[str, ...] = ()
    labels: tuple[str, ...] = ()
    draft: bool = False
    dry_run: bool = False


@dataclass(frozen=True)
class Created:
    """Request opened (or, in dry-run, simulated)."""

    branch: str
    request_url: str | None
    simulated: bool = False
    output: str = ""


@dataclass(frozen=True)
class Skipped:
    """Repository deliberately left alone."""

    reason: str


@dataclass(frozen=True)
class Failed:
    """Repository pipeline stopped at ``step`` with an error of ``kind``."""

    kind: ErrorKind
    message: str
    step: Step = Step.PENDING


ExecutionResult = Created | Skipped | Failed


@dataclass(frozen=True)
class RepoOutcome:
    """Completion event for one repository."""

    repository: str
    path: Path
    result: ExecutionResult


@dataclass(frozen=True)
class RunSummary:
    """Outcomes of a run, in input order."""

    outcomes: tuple[RepoOutcome, ...] = field(default_factory=tuple)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not any(isinstance(o.result, Failed) for o in self.outcomes)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def created(self) -> list[RepoOutcome]:
        return [o for o in self.outcomes if isinstance(o.result, Created)]

    @property
    def skipped(self) -> list[RepoOutcome]:
        return [o for o in self.outcomes if isinstance(o.result, Skipped)]

    @property
    def failed(self) -> list[RepoOutcome]:
        return [o for o in self.outcomes if isinstance(o.result, Failed)]

    def result_for(self, repository: str) -> ExecutionResult | None:
        for outcome in self.outcomes:
            if outcome.repository == repository:
                return outcome.result
        return None
