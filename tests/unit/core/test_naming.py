"""Tests for branch name derivation."""

import pytest

from multimr.core.naming import MAX_BRANCH_LENGTH, derive_branch_name


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Bump ruff to 0.5", "bump-ruff-to-0.5"),
        ("ft/Shared CI  cache", "ft/shared-ci-cache"),
        ("Fix: handle ~ and ^ in refs!", "fix-handle-and-in-refs"),
        ("Crème brûlée", "creme-brulee"),
        ("--leading and trailing--", "leading-and-trailing"),
        ("a//b", "a/b"),
        ("release..notes", "release.notes"),
        ("config.lock", "config"),
    ],
)
def test_derive_branch_name(title: str, expected: str) -> None:
    assert derive_branch_name(title) == expected


def test_empty_result_falls_back() -> None:
    assert derive_branch_name("!!!") == "multimr"


def test_long_titles_are_truncated_to_a_valid_name() -> None:
    name = derive_branch_name(
        "Update the shared continuous integration cache configuration everywhere"
    )

    assert len(name) <= MAX_BRANCH_LENGTH
    assert not name.endswith("-")
    assert name.startswith("update-the-shared-continuous-integration")
