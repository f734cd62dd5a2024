"""Run the merge request workflow across many repositories.

Per repository, independently:

    inspect -> plan -> checkout -> commit -> push -> request

Run-wide validation happens first and raises ConfigError before any
repository is touched. After that every error is contained at the repository
boundary and recorded as that repository's Failed result, so one broken
repository never changes another's outcome.

Repositories are processed by a bounded thread pool. Worker threads only
compute results; collecting them (and calling ``on_outcome``) happens in the
calling thread.
"""

import logging
import threading
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from multimr.core.committer import commit_changes
from multimr.core.config import FileConfig
from multimr.core.context import MultimrContext
from multimr.core.errors import Cancelled, ConfigError, MultimrError, RepositorySkipped
from multimr.core.inspector import inspect_repository
from multimr.core.naming import derive_branch_name
from multimr.core.planner import apply_branch_plan, plan_branch
from multimr.core.pusher import push_branch
from multimr.core.request_creator import create_request
from multimr.core.types import (
    ExecutionResult,
    Failed,
    MergeRequestSpec,
    RepoOutcome,
    RunSummary,
    Skipped,
    Step,
    WorkflowMode,
)

logger = logging.getLogger(__name__)

OutcomeCallback = Callable[[RepoOutcome], None]


@dataclass(frozen=True)
class RunRequest:
    """What the user asked for on the command line.

    Empty ``reviewers`` means "use the configured reviewers"; ``label_keys``
    are keys of the configured ``[labels]`` table.
    """

    title: str
    description: str = ""
    branch: str | None = None
    base: str | None = None
    mode: WorkflowMode = WorkflowMode.FROM_MAIN
    assignee: str | None = None
    reviewers: tuple[str, ...] = ()
    label_keys: tuple[str, ...] = ()
    draft: bool = False
    jobs: int = 1


def _unique(values: Sequence[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(v.strip() for v in values if v.strip()))


def build_merge_request_spec(
    config: FileConfig, request: RunRequest, *, dry_run: bool
) -> MergeRequestSpec:
    """Combine file configuration with run-time overrides.

    An explicit override always wins over the configured default.

    Raises:
        ConfigError: If no assignee is available, the title is blank, or a
            label key is not configured
    """
    title = request.title.strip()
    if not title:
        raise ConfigError("A non-empty --title is required")

    assignee = (request.assignee or "").strip() or config.assignee
    if not assignee:
        raise ConfigError(
            "No assignee: pass --assignee or set 'assignee' in the configuration file"
        )

    labels_by_key = config.labels.as_mapping()
    labels: list[str] = []
    for key in request.label_keys:
        if key not in labels_by_key:
            available = ", ".join(sorted(labels_by_key)) or "none configured"
            raise ConfigError(f"Unknown label '{key}' (available: {available})")
        labels.append(labels_by_key[key])

    reviewers = request.reviewers if request.reviewers else tuple(config.reviewers)

    return MergeRequestSpec(
        title=title,
        description=request.description,
        assignee=assignee,
        reviewers=_unique(reviewers),
        labels=_unique(labels),
        draft=request.draft,
        dry_run=dry_run,
    )


def validate_run(
    ctx: MultimrContext, repositories: Sequence[Path], request: RunRequest
) -> MergeRequestSpec:
    """Check run-wide prerequisites and build the shared MergeRequestSpec.

    Nothing is inspected or mutated here.

    Raises:
        ConfigError: On any run-wide problem
    """
    spec = build_merge_request_spec(ctx.config.file, request, dry_run=ctx.dry_run)

    if not repositories:
        raise ConfigError(f"No repositories to process in {ctx.config.working_dir}")
    if request.jobs < 1:
        raise ConfigError(f"--jobs must be at least 1, got {request.jobs}")

    if request.branch is not None and not request.branch.strip():
        raise ConfigError("--branch cannot be empty")

    if not ctx.dry_run:
        problem = ctx.backend.prerequisite_error()
        if problem is not None:
            raise ConfigError(problem)

    return spec


def process_repository(
    ctx: MultimrContext,
    path: Path,
    spec: MergeRequestSpec,
    request: RunRequest,
    branch_name: str,
    cancel: threading.Event,
) -> ExecutionResult:
    """Run the full pipeline for one repository and return its result.

    Never raises for repository-scoped problems.
    """
    file_config = ctx.config.file
    step = Step.PENDING
    try:
        if cancel.is_set():
            raise Cancelled("Cancelled")

        state = inspect_repository(ctx.git, path)
        step = Step.INSPECTED

        plan = plan_branch(
            ctx.git, request.mode, state, branch_name, request.base or file_config.base_branch
        )
        if plan.create_new and not state.dirty and state.ahead == 0:
            raise RepositorySkipped(f"no changes on '{plan.base_branch}'")
        step = Step.PLANNED
        logger.debug("%s: %s", state.name, plan)

        if ctx.dry_run:
            return create_request(ctx.backend, path, spec, plan, timeout=file_config.timeout)

        apply_branch_plan(ctx.git, state, plan)
        committed = commit_changes(ctx.git, state, spec)
        step = Step.COMMITTED

        pushed = push_branch(ctx.git, path, plan.target_branch, file_config.remote)
        step = Step.PUSHED

        if not plan.create_new:
            # A reused branch may already carry an open request from an earlier run
            existing = ctx.backend.find_existing_request(
                path, source_branch=plan.target_branch, timeout=file_config.timeout
            )
            if existing is not None:
                if committed or pushed:
                    return Skipped(f"pushed new commits to open merge request: {existing}")
                return Skipped(f"merge request already open: {existing}")

        result = create_request(ctx.backend, path, spec, plan, timeout=file_config.timeout)
        step = Step.REQUEST_CREATED
        return result

    except (RepositorySkipped, Cancelled) as e:
        return Skipped(e.message)
    except MultimrError as e:
        logger.debug("%s failed after %s: %s", path, step.value, e.message)
        return Failed(kind=e.kind, message=e.message, step=step)
    except Exception as e:
        logger.debug("Unexpected error in %s", path, exc_info=True)
        return Failed(kind="Unexpected", message=f"{type(e).__name__}: {e}", step=step)


def run_multi_mr(
    ctx: MultimrContext,
    repositories: Sequence[Path],
    request: RunRequest,
    *,
    on_outcome: OutcomeCallback | None = None,
    cancel: threading.Event | None = None,
) -> RunSummary:
    """Create the same merge request in every repository.

    Args:
        ctx: Application context (git, backend, config, dry-run flag)
        repositories: Repository roots, in the order the summary reports them
        request: Title, branch, mode and overrides for this run
        on_outcome: Called in the calling thread as each repository finishes
        cancel: Once set, repositories that have not started are Skipped

    Returns:
        RunSummary with one outcome per repository, in input order

    Raises:
        ConfigError: If run-wide validation fails (nothing is touched)
    """
    spec = validate_run(ctx, repositories, request)
    branch_name = request.branch.strip() if request.branch else derive_branch_name(spec.title)
    cancel_event = cancel if cancel is not None else threading.Event()
    logger.debug("Run: %d repositories, branch %s, %s", len(repositories), branch_name, spec)

    outcomes: dict[int, RepoOutcome] = {}
    with ThreadPoolExecutor(
        max_workers=min(request.jobs, len(repositories)), thread_name_prefix="multimr"
    ) as pool:
        futures: dict[Future[ExecutionResult], int] = {
            pool.submit(
                process_repository, ctx, path, spec, request, branch_name, cancel_event
            ): index
            for index, path in enumerate(repositories)
        }
        remaining = set(futures)
        while remaining:
            try:
                for future in as_completed(remaining):
                    index = futures[future]
                    outcome = _outcome(repositories[index], future)
                    outcomes[index] = outcome
                    remaining.discard(future)
                    if on_outcome is not None:
                        on_outcome(outcome)
            except KeyboardInterrupt:
                if cancel_event.is_set():
                    raise
                cancel_event.set()
                ctx.feedback.warning("Cancelling: waiting for running repositories to finish")

    return RunSummary(
        outcomes=tuple(outcomes[index] for index in range(len(repositories))),
        dry_run=ctx.dry_run,
    )


def _outcome(path: Path, future: Future[ExecutionResult]) -> RepoOutcome:
    return RepoOutcome(repository=path.name, path=path, result=future.result())
