"""Git operations subpackage.

This subpackage provides abstractions over git operations with support for
testing via fakes and dry-run via wrappers.
"""

from multimr.core.git.abc import Git
from multimr.core.git.dry_run import DryRunGit
from multimr.core.git.fake import FakeGit
from multimr.core.git.real import RealGit

__all__ = [
    "Git",
    "RealGit",
    "DryRunGit",
    "FakeGit",
]
