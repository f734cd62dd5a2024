"""Branch planning: decide which branch carries the request.

Planning only reads repository state, so a dry run computes exactly the same
BranchPlan as a live run. Applying the plan (the checkout) is a separate step
the orchestrator runs in live mode only.
"""

import logging

from multimr.core.errors import BranchConflict, RepositorySkipped
from multimr.core.git.abc import Git
from multimr.core.subprocess import CommandError
from multimr.core.types import BranchPlan, RepositoryState, WorkflowMode

logger = logging.getLogger(__name__)


def resolve_base_branch(state: RepositoryState, configured: str | None) -> str:
    """An explicitly configured base always wins over the detected trunk."""
    if configured:
        return configured
    return state.trunk_branch


def plan_branch(
    git: Git,
    mode: WorkflowMode,
    state: RepositoryState,
    branch_name: str,
    base_branch: str | None,
) -> BranchPlan:
    """Compute the BranchPlan for one repository.

    Args:
        git: Git gateway, used for read-only ancestry checks
        mode: Run-wide workflow mode
        state: Inspected repository state
        branch_name: Branch to create when starting from the base branch
        base_branch: Configured base branch, or None to use the detected trunk

    Returns:
        Immutable BranchPlan

    Raises:
        BranchConflict: On detached HEAD, a branch name equal to the base, or an
            existing local branch with the planned name that does not descend
            from the base
        RepositorySkipped: In from-feature mode while on the base branch
    """
    base = resolve_base_branch(state, base_branch)
    current = state.current_branch
    if current is None:
        raise BranchConflict(f"{state.name} is on a detached HEAD; check out a branch first")

    if mode is WorkflowMode.FROM_FEATURE:
        if current == base:
            raise RepositorySkipped(
                f"on base branch '{base}'; from-feature mode expects a feature branch"
            )
        return BranchPlan(target_branch=current, base_branch=base, create_new=False, checkout=False)

    if current != base:
        # Already off the base (e.g. a previous run created the branch): keep it
        logger.debug("%s: reusing current branch '%s'", state.name, current)
        return BranchPlan(target_branch=current, base_branch=base, create_new=False, checkout=False)

    if branch_name == base:
        raise BranchConflict(f"Branch name '{branch_name}' is the base branch itself")

    if state.has_branch(branch_name):
        if not git.is_ancestor(state.path, base, branch_name):
            raise BranchConflict(
                f"Branch '{branch_name}' already exists in {state.name} "
                f"but does not descend from '{base}'; refusing to overwrite it"
            )
        logger.debug("%s: reusing existing branch '%s'", state.name, branch_name)
        return BranchPlan(
            target_branch=branch_name, base_branch=base, create_new=False, checkout=True
        )

    return BranchPlan(target_branch=branch_name, base_branch=base, create_new=True, checkout=True)


def apply_branch_plan(git: Git, state: RepositoryState, plan: BranchPlan) -> None:
    """Check out the planned branch, creating it if needed.

    Working tree changes are carried over to the target branch.

    Raises:
        BranchConflict: If git refuses the switch
    """
    try:
        if plan.create_new:
            git.create_and_checkout_branch(state.path, plan.target_branch)
        elif plan.checkout:
            git.checkout_branch(state.path, plan.target_branch)
    except CommandError as e:
        raise BranchConflict(f"Cannot switch to '{plan.target_branch}': {e}") from e
