"""Tests for the dry-run git wrapper."""

from pathlib import Path

from multimr.core.git.dry_run import DryRunGit
from multimr.core.git.fake import FakeGit

REPO = Path("/repos/api")


def test_reads_are_delegated() -> None:
    fake = FakeGit(
        current_branches={REPO: "main"},
        file_statuses={REPO: ([], ["app.py"], [])},
        remote_urls={(REPO, "origin"): "git@gitlab.com:group/api.git"},
    )
    git = DryRunGit(fake)

    assert git.get_current_branch(REPO) == "main"
    assert git.get_file_status(REPO) == ([], ["app.py"], [])
    assert git.get_remote_url(REPO, "origin") == "git@gitlab.com:group/api.git"
    assert git.get_branch_head(REPO, "refs/heads/main") == "main-0"


def test_writes_are_recorded_not_executed() -> None:
    fake = FakeGit(current_branches={REPO: "main"})
    git = DryRunGit(fake)

    git.create_and_checkout_branch(REPO, "feature")
    git.checkout_branch(REPO, "feature")
    git.stage_all(REPO)
    git.commit(REPO, "Add feature")
    git.push_branch(REPO, "origin", "feature", set_upstream=True)

    assert fake.mutation_count == 0
    assert fake.get_current_branch(REPO) == "main"
    assert git.would_run == [
        "git switch -c feature",
        "git switch feature",
        "git add --all",
        'git commit -m "Add feature"',
        "git push --set-upstream origin feature",
    ]
