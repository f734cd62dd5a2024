"""Tests for branch planning."""

import pytest

from multimr.core.errors import BranchConflict, RepositorySkipped
from multimr.core.git.dry_run import DryRunGit
from multimr.core.git.fake import FakeGit
from multimr.core.inspector import inspect_repository
from multimr.core.planner import apply_branch_plan, plan_branch, resolve_base_branch
from multimr.core.types import BranchPlan, WorkflowMode
from tests.test_utils.context_builders import repo_path

REPO = repo_path("api")


def test_from_main_on_main_creates_new_branch() -> None:
    git = FakeGit(current_branches={REPO: "main"})
    state = inspect_repository(git, REPO)

    plan = plan_branch(git, WorkflowMode.FROM_MAIN, state, "bump-ruff", None)

    assert plan == BranchPlan(
        target_branch="bump-ruff", base_branch="main", create_new=True, checkout=True
    )


def test_from_feature_on_feature_reuses_current_branch() -> None:
    git = FakeGit(current_branches={REPO: "ft/foo"})
    state = inspect_repository(git, REPO)

    plan = plan_branch(git, WorkflowMode.FROM_FEATURE, state, "ignored", None)

    assert plan.target_branch == "ft/foo"
    assert plan.create_new is False
    assert plan.checkout is False


def test_from_feature_on_base_is_skipped() -> None:
    git = FakeGit(current_branches={REPO: "main"})
    state = inspect_repository(git, REPO)

    with pytest.raises(RepositorySkipped, match="on base branch 'main'"):
        plan_branch(git, WorkflowMode.FROM_FEATURE, state, "bump-ruff", None)


def test_from_main_off_base_reuses_current_branch() -> None:
    git = FakeGit(current_branches={REPO: "bump-ruff"})
    state = inspect_repository(git, REPO)

    plan = plan_branch(git, WorkflowMode.FROM_MAIN, state, "other-name", None)

    assert plan == BranchPlan(
        target_branch="bump-ruff", base_branch="main", create_new=False, checkout=False
    )


def test_existing_branch_descending_from_base_is_reused() -> None:
    git = FakeGit(
        current_branches={REPO: "main"},
        local_branches={REPO: ["main", "bump-ruff"]},
    )
    state = inspect_repository(git, REPO)

    plan = plan_branch(git, WorkflowMode.FROM_MAIN, state, "bump-ruff", None)

    assert plan.create_new is False
    assert plan.checkout is True


def test_existing_diverged_branch_is_a_conflict() -> None:
    git = FakeGit(
        current_branches={REPO: "main"},
        local_branches={REPO: ["main", "bump-ruff"]},
        diverged_branches={REPO: {"bump-ruff"}},
    )
    state = inspect_repository(git, REPO)

    with pytest.raises(BranchConflict, match="does not descend from 'main'"):
        plan_branch(git, WorkflowMode.FROM_MAIN, state, "bump-ruff", None)


def test_detached_head_is_a_conflict() -> None:
    git = FakeGit(current_branches={REPO: None})
    state = inspect_repository(git, REPO)

    with pytest.raises(BranchConflict, match="detached HEAD"):
        plan_branch(git, WorkflowMode.FROM_MAIN, state, "bump-ruff", None)


def test_branch_named_like_base_is_a_conflict() -> None:
    git = FakeGit(current_branches={REPO: "main"})
    state = inspect_repository(git, REPO)

    with pytest.raises(BranchConflict):
        plan_branch(git, WorkflowMode.FROM_MAIN, state, "main", None)


def test_configured_base_overrides_detected_trunk() -> None:
    git = FakeGit(current_branches={REPO: "develop"}, trunk_branches={REPO: "main"})
    state = inspect_repository(git, REPO)

    assert resolve_base_branch(state, None) == "main"
    assert resolve_base_branch(state, "develop") == "develop"

    plan = plan_branch(git, WorkflowMode.FROM_MAIN, state, "bump-ruff", "develop")
    assert plan.base_branch == "develop"
    assert plan.create_new is True


def test_dry_run_planning_matches_live_planning() -> None:
    git = FakeGit(
        current_branches={REPO: "main"},
        local_branches={REPO: ["main", "bump-ruff"]},
    )
    dry_git = DryRunGit(git)

    live = plan_branch(
        git, WorkflowMode.FROM_MAIN, inspect_repository(git, REPO), "bump-ruff", None
    )
    dry = plan_branch(
        dry_git, WorkflowMode.FROM_MAIN, inspect_repository(dry_git, REPO), "bump-ruff", None
    )

    assert dry == live


def test_apply_plan_creates_new_branch() -> None:
    git = FakeGit(current_branches={REPO: "main"})
    state = inspect_repository(git, REPO)
    plan = plan_branch(git, WorkflowMode.FROM_MAIN, state, "bump-ruff", None)

    apply_branch_plan(git, state, plan)

    assert git.created_branches == [(REPO, "bump-ruff")]
    assert git.get_current_branch(REPO) == "bump-ruff"


def test_apply_plan_checks_out_existing_branch() -> None:
    git = FakeGit(
        current_branches={REPO: "main"},
        local_branches={REPO: ["main", "bump-ruff"]},
    )
    state = inspect_repository(git, REPO)
    plan = plan_branch(git, WorkflowMode.FROM_MAIN, state, "bump-ruff", None)

    apply_branch_plan(git, state, plan)

    assert git.created_branches == []
    assert git.checked_out_branches == [(REPO, "bump-ruff")]


def test_apply_plan_reports_git_refusal_as_conflict() -> None:
    git = FakeGit(current_branches={REPO: "main"})
    state = inspect_repository(git, REPO)
    plan = BranchPlan(target_branch="missing", base_branch="main", create_new=False, checkout=True)

    with pytest.raises(BranchConflict, match="Cannot switch to 'missing'"):
        apply_branch_plan(git, state, plan)


def test_apply_plan_without_checkout_does_nothing() -> None:
    git = FakeGit(current_branches={REPO: "ft/foo"})
    state = inspect_repository(git, REPO)
    plan = plan_branch(git, WorkflowMode.FROM_FEATURE, state, "ignored", None)

    apply_branch_plan(git, state, plan)

    assert git.mutation_count == 0
