"""Tests for the multi-repository workflow orchestrator."""

import threading
from concurrent.futures import as_completed, wait
from pathlib import Path

import pytest

from multimr.core.backend.abc import CreatedRequest
from multimr.core.backend.fake import FakeBackend
from multimr.core.config import FileConfig, LabelConfig
from multimr.core.errors import ConfigError
from multimr.core.git.fake import FakeGit
from multimr.core.orchestrator import RunRequest, build_merge_request_spec, run_multi_mr
from multimr.core.types import (
    Created,
    Failed,
    MergeRequestSpec,
    RepoOutcome,
    Skipped,
    Step,
    WorkflowMode,
)
from tests.test_utils.context_builders import build_test_context, repo_path

A = repo_path("a")
B = repo_path("b")
C = repo_path("c")

REQUEST = RunRequest(title="Bump ruff to 0.5")


def dirty_repos_git(*paths: Path, **kwargs) -> FakeGit:
    """FakeGit where every path is on main with one modified file."""
    return FakeGit(
        current_branches={path: "main" for path in paths},
        file_statuses={path: ([], ["pyproject.toml"], []) for path in paths},
        **kwargs,
    )


def test_every_dirty_repository_gets_a_request() -> None:
    git = dirty_repos_git(A, B, C)
    backend = FakeBackend()
    ctx = build_test_context(git=git, backend=backend)

    summary = run_multi_mr(ctx, [A, B, C], REQUEST)

    assert summary.success
    assert summary.exit_code == 0
    assert [o.repository for o in summary.outcomes] == ["a", "b", "c"]
    for outcome in summary.outcomes:
        assert isinstance(outcome.result, Created)
        assert outcome.result.branch == "bump-ruff-to-0.5"
        assert outcome.result.request_url is not None

    assert git.created_branches == [(path, "bump-ruff-to-0.5") for path in (A, B, C)]
    assert len(git.commits) == 3
    assert len(git.pushed_branches) == 3
    specs = {spec for _, spec, _, _ in backend.created_requests}
    assert len(specs) == 1


def test_dry_run_plans_like_live_run_without_side_effects() -> None:
    live_git = dirty_repos_git(A, B)
    live = run_multi_mr(build_test_context(git=live_git), [A, B], REQUEST)

    dry_git = dirty_repos_git(A, B)
    dry_backend = FakeBackend()
    dry = run_multi_mr(
        build_test_context(git=dry_git, backend=dry_backend, dry_run=True), [A, B], REQUEST
    )

    assert dry.dry_run is True
    for live_outcome, dry_outcome in zip(live.outcomes, dry.outcomes, strict=True):
        assert isinstance(live_outcome.result, Created)
        assert isinstance(dry_outcome.result, Created)
        assert dry_outcome.result.branch == live_outcome.result.branch
        assert dry_outcome.result.simulated is True
        assert dry_outcome.result.request_url is None

    assert dry_git.mutation_count == 0
    assert dry_backend.call_count == 0


def test_dry_run_ignores_backend_prerequisites() -> None:
    backend = FakeBackend(prerequisite="glab is not installed")
    ctx = build_test_context(git=dirty_repos_git(A), backend=backend, dry_run=True)

    summary = run_multi_mr(ctx, [A], REQUEST)

    assert summary.success


def test_live_run_checks_backend_prerequisites_first() -> None:
    git = dirty_repos_git(A)
    backend = FakeBackend(prerequisite="glab is not installed")
    ctx = build_test_context(git=git, backend=backend)

    with pytest.raises(ConfigError, match="glab is not installed"):
        run_multi_mr(ctx, [A], REQUEST)

    assert git.mutation_count == 0


def test_push_failure_is_isolated_to_its_repository() -> None:
    git = dirty_repos_git(A, B, C, push_failures={B: "fatal: unable to access remote"})
    ctx = build_test_context(git=git)

    summary = run_multi_mr(ctx, [A, B, C], REQUEST)

    result_b = summary.result_for("b")
    assert isinstance(summary.result_for("a"), Created)
    assert isinstance(summary.result_for("c"), Created)
    assert isinstance(result_b, Failed)
    assert result_b.kind == "PushError"
    assert result_b.step == Step.COMMITTED
    assert summary.exit_code == 1


def test_second_run_with_nothing_new_is_skipped_without_push() -> None:
    git = dirty_repos_git(A, B)
    backend = FakeBackend()
    ctx = build_test_context(git=git, backend=backend)

    first = run_multi_mr(ctx, [A, B], REQUEST)
    pushes_after_first = len(git.pushed_branches)
    second = run_multi_mr(ctx, [A, B], REQUEST)

    assert all(isinstance(o.result, Created) for o in first.outcomes)
    assert len(git.pushed_branches) == pushes_after_first
    assert len(backend.created_requests) == 2
    for outcome in second.outcomes:
        assert isinstance(outcome.result, Skipped)
        assert "already open" in outcome.result.reason
    assert second.exit_code == 0


def test_new_commits_update_an_open_request_instead_of_creating_one() -> None:
    git = FakeGit(
        current_branches={A: "bump-ruff"},
        file_statuses={A: ([], ["app.py"], [])},
        branch_heads={
            A: {"refs/heads/bump-ruff": "abc", "refs/remotes/origin/bump-ruff": "abc"}
        },
    )
    open_url = "https://gitlab.example.com/a/-/merge_requests/7"
    backend = FakeBackend(existing_requests={(A, "bump-ruff"): open_url})
    ctx = build_test_context(git=git, backend=backend)

    summary = run_multi_mr(ctx, [A], RunRequest(title="Bump ruff"))

    result = summary.result_for("a")
    assert git.pushed_branches == [(A, "origin", "bump-ruff")]
    assert isinstance(result, Skipped)
    assert result.reason == f"pushed new commits to open merge request: {open_url}"
    assert backend.created_requests == []


def test_assignee_override_wins_over_config() -> None:
    backend = FakeBackend()
    ctx = build_test_context(git=dirty_repos_git(A), backend=backend, assignee="configured")

    run_multi_mr(ctx, [A], RunRequest(title="Bump ruff", assignee="override"))

    [(_, spec, _, _)] = backend.created_requests
    assert spec.assignee == "override"


def test_missing_assignee_fails_before_any_repository_work() -> None:
    git = dirty_repos_git(A, B)
    backend = FakeBackend()
    ctx = build_test_context(git=git, backend=backend, assignee=None)
    seen: list[RepoOutcome] = []

    with pytest.raises(ConfigError, match="No assignee"):
        run_multi_mr(ctx, [A, B], REQUEST, on_outcome=seen.append)

    assert seen == []
    assert git.mutation_count == 0
    assert backend.call_count == 0


def test_no_repositories_is_config_error() -> None:
    with pytest.raises(ConfigError, match="No repositories"):
        run_multi_mr(build_test_context(), [], REQUEST)


def test_end_to_end_mixed_repositories() -> None:
    repo1, repo2, repo3 = repo_path("repo1"), repo_path("repo2"), repo_path("repo3")
    git = FakeGit(
        current_branches={repo1: "main", repo2: "ft/foo"},
        file_statuses={repo1: ([], ["README.md"], [])},
    )
    ctx = build_test_context(git=git)

    summary = run_multi_mr(ctx, [repo1, repo2, repo3], RunRequest(title="Shared CI cache"))

    result1, result2, result3 = (o.result for o in summary.outcomes)
    assert isinstance(result1, Created)
    assert result1.branch == "shared-ci-cache"
    assert isinstance(result2, Created)
    assert result2.branch == "ft/foo"
    assert isinstance(result3, Failed)
    assert result3.kind == "RepoAccessError"
    assert result3.step == Step.PENDING
    assert summary.exit_code == 1


def test_from_feature_mode_reuses_feature_branch_and_skips_base() -> None:
    git = FakeGit(current_branches={A: "ft/foo", B: "main"})
    ctx = build_test_context(git=git)
    request = RunRequest(title="Shared CI cache", mode=WorkflowMode.FROM_FEATURE)

    summary = run_multi_mr(ctx, [A, B], request)

    result_a = summary.result_for("a")
    assert isinstance(result_a, Created)
    assert result_a.branch == "ft/foo"
    assert isinstance(summary.result_for("b"), Skipped)
    assert git.created_branches == []
    assert summary.exit_code == 0


def test_clean_repository_on_base_is_skipped() -> None:
    git = FakeGit(current_branches={A: "main"})
    ctx = build_test_context(git=git)

    summary = run_multi_mr(ctx, [A], REQUEST)

    result = summary.result_for("a")
    assert isinstance(result, Skipped)
    assert "no changes" in result.reason
    assert git.mutation_count == 0


def test_unpushed_commits_on_clean_base_get_a_request() -> None:
    git = FakeGit(
        current_branches={A: "main"},
        upstreams={A: {"main": "origin/main"}},
        ahead_behind={A: (2, 0)},
    )
    backend = FakeBackend()
    ctx = build_test_context(git=git, backend=backend)

    summary = run_multi_mr(ctx, [A], REQUEST)

    result = summary.result_for("a")
    assert isinstance(result, Created)
    assert git.created_branches == [(A, result.branch)]
    assert git.commits == []
    assert git.pushed_branches == [(A, "origin", result.branch)]
    assert len(backend.created_requests) == 1


def test_diverged_existing_branch_fails_with_branch_conflict() -> None:
    git = dirty_repos_git(
        A,
        local_branches={A: ["main", "bump-ruff-to-0.5"]},
        diverged_branches={A: {"bump-ruff-to-0.5"}},
    )
    ctx = build_test_context(git=git)

    summary = run_multi_mr(ctx, [A], REQUEST)

    result = summary.result_for("a")
    assert isinstance(result, Failed)
    assert result.kind == "BranchConflict"
    assert result.step == Step.INSPECTED
    assert git.mutation_count == 0


def test_explicit_branch_and_base_are_used() -> None:
    git = FakeGit(
        current_branches={A: "develop"},
        file_statuses={A: ([], ["app.py"], [])},
    )
    backend = FakeBackend()
    ctx = build_test_context(git=git, backend=backend)

    run_multi_mr(ctx, [A], RunRequest(title="Anything", branch="ft/ci", base="develop"))

    assert backend.created_requests[0][2:] == ("ft/ci", "develop")


def test_unexpected_exception_is_contained() -> None:
    class ExplodingBackend(FakeBackend):
        def create_request(self, repo_root, spec, *, source_branch, target_branch, timeout):
            raise RuntimeError("boom")

    ctx = build_test_context(git=dirty_repos_git(A, B), backend=ExplodingBackend())

    summary = run_multi_mr(ctx, [A, B], REQUEST)

    for outcome in summary.outcomes:
        assert isinstance(outcome.result, Failed)
        assert outcome.result.kind == "Unexpected"
        assert outcome.result.step == Step.PUSHED
        assert "RuntimeError: boom" in outcome.result.message


def test_outcomes_reported_once_each_and_summary_in_input_order() -> None:
    paths = [repo_path(f"r{i}") for i in range(6)]
    ctx = build_test_context(git=dirty_repos_git(*paths))
    seen: list[RepoOutcome] = []

    summary = run_multi_mr(ctx, paths, RunRequest(title="Bump", jobs=3), on_outcome=seen.append)

    assert sorted(o.repository for o in seen) == sorted(p.name for p in paths)
    assert [o.path for o in summary.outcomes] == paths


def test_cancel_before_start_skips_everything() -> None:
    git = dirty_repos_git(A, B)
    cancel = threading.Event()
    cancel.set()

    summary = run_multi_mr(build_test_context(git=git), [A, B], REQUEST, cancel=cancel)

    for outcome in summary.outcomes:
        assert outcome.result == Skipped("Cancelled")
    assert git.mutation_count == 0
    assert summary.exit_code == 0


def test_cancel_during_run_skips_unstarted_repositories() -> None:
    cancel = threading.Event()

    class CancellingBackend(FakeBackend):
        def create_request(self, repo_root, spec, *, source_branch, target_branch, timeout):
            created = super().create_request(
                repo_root,
                spec,
                source_branch=source_branch,
                target_branch=target_branch,
                timeout=timeout,
            )
            cancel.set()
            return CreatedRequest(url=created.url, output=created.output)

    ctx = build_test_context(git=dirty_repos_git(A, B, C), backend=CancellingBackend())

    summary = run_multi_mr(ctx, [A, B, C], REQUEST, cancel=cancel)

    assert isinstance(summary.result_for("a"), Created)
    assert summary.result_for("b") == Skipped("Cancelled")
    assert summary.result_for("c") == Skipped("Cancelled")


def test_labels_resolved_from_configured_keys() -> None:
    config = FileConfig(
        assignee="tester", labels=LabelConfig(feat="type::feature", fix="type::bug")
    )

    spec = build_merge_request_spec(
        config, RunRequest(title="Fix it", label_keys=("fix", "fix")), dry_run=False
    )

    assert spec.labels == ("type::bug",)


def test_unknown_label_key_is_config_error() -> None:
    config = FileConfig(assignee="tester", labels=LabelConfig(feat="type::feature"))

    with pytest.raises(ConfigError, match="Unknown label 'fix'"):
        build_merge_request_spec(config, RunRequest(title="x", label_keys=("fix",)), dry_run=False)


def test_reviewer_override_replaces_configured_reviewers() -> None:
    config = FileConfig(assignee="tester", reviewers=["alice", "bob"])

    default = build_merge_request_spec(config, RunRequest(title="x"), dry_run=False)
    override = build_merge_request_spec(
        config, RunRequest(title="x", reviewers=("carol", "carol", "dave")), dry_run=True
    )

    assert default.reviewers == ("alice", "bob")
    assert override == MergeRequestSpec(
        title="x",
        description="",
        assignee="tester",
        reviewers=("carol", "dave"),
        labels=(),
        draft=False,
        dry_run=True,
    )


def test_blank_title_is_config_error() -> None:
    with pytest.raises(ConfigError, match="title"):
        build_merge_request_spec(FileConfig(assignee="x"), RunRequest(title="  "), dry_run=False)


def test_interrupt_while_collecting_keeps_every_outcome(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[int] = []

    def interrupted_once(futures):
        calls.append(len(futures))
        if len(calls) == 1:
            wait(futures)
            raise KeyboardInterrupt
        return as_completed(futures)

    monkeypatch.setattr("multimr.core.orchestrator.as_completed", interrupted_once)
    ctx = build_test_context(git=dirty_repos_git(A, B, C))

    summary = run_multi_mr(ctx, [A, B, C], RunRequest(title="Bump", jobs=3))

    assert [o.path for o in summary.outcomes] == [A, B, C]
    assert all(isinstance(o.result, Created) for o in summary.outcomes)
    assert ctx.feedback.of_level("warning") == [
        "Cancelling: waiting for running repositories to finish"
    ]


def test_interrupt_in_progress_callback_still_reports_every_repository() -> None:
    seen: list[RepoOutcome] = []

    def interrupt_first(outcome: RepoOutcome) -> None:
        seen.append(outcome)
        if len(seen) == 1:
            raise KeyboardInterrupt

    ctx = build_test_context(git=dirty_repos_git(A, B, C))

    summary = run_multi_mr(ctx, [A, B, C], REQUEST, on_outcome=interrupt_first)

    assert [o.path for o in summary.outcomes] == [A, B, C]
    assert len(seen) == 3
    assert isinstance(summary.result_for("a"), Created)
