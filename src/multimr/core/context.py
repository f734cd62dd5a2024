"""Application context with dependency injection."""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from multimr.core.backend.abc import MergeRequestBackend
from multimr.core.backend.factory import create_backend
from multimr.core.config import FileConfig, MultimrConfig, load_config
from multimr.core.git.abc import Git
from multimr.core.git.dry_run import DryRunGit
from multimr.core.git.real import RealGit
from multimr.core.user_feedback import InteractiveFeedback, SuppressedFeedback, UserFeedback


@dataclass(frozen=True)
class MultimrContext:
    """Immutable context holding all dependencies for a multimr run.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime; worker threads
    share it read-only.
    """

    git: Git
    backend: MergeRequestBackend
    feedback: UserFeedback
    cwd: Path  # Current working directory at CLI invocation
    config: MultimrConfig
    dry_run: bool

    @property
    def working_dir(self) -> Path:
        return self.config.working_dir

    @staticmethod
    def for_test(
        git: Git | None = None,
        backend: MergeRequestBackend | None = None,
        feedback: UserFeedback | None = None,
        cwd: Path | None = None,
        config: MultimrConfig | None = None,
        dry_run: bool = False,
    ) -> "MultimrContext":
        """Create test context with optional pre-configured integration classes.

        Args:
            git: Optional Git implementation. If None, creates empty FakeGit.
            backend: Optional backend. If None, creates empty FakeBackend.
            feedback: Optional UserFeedback. If None, creates FakeUserFeedback.
            cwd: Optional invocation directory. If None, uses Path("/test/default/cwd").
            config: Optional MultimrConfig. If None, uses defaults with
                assignee "tester" and working_dir equal to cwd.
            dry_run: Whether to enable dry-run mode (default False).

        Returns:
            MultimrContext configured with provided values and test defaults

        Example:
            >>> git = FakeGit(current_branches={Path("/repos/a"): "main"})
            >>> ctx = MultimrContext.for_test(git=git, dry_run=True)
        """
        from tests.fakes.user_feedback import FakeUserFeedback

        from multimr.core.backend.fake import FakeBackend
        from multimr.core.git.fake import FakeGit

        if git is None:
            git = FakeGit()

        if backend is None:
            backend = FakeBackend()

        if feedback is None:
            feedback = FakeUserFeedback()

        if cwd is None:
            cwd = Path("/test/default/cwd")

        if config is None:
            config = MultimrConfig(
                file=FileConfig(assignee="tester"),
                working_dir=cwd,
                source=None,
            )

        # Apply dry-run wrapper if needed (matching production behavior)
        if dry_run:
            git = DryRunGit(git)

        return MultimrContext(
            git=git,
            backend=backend,
            feedback=feedback,
            cwd=cwd,
            config=config,
            dry_run=dry_run,
        )


def safe_cwd() -> tuple[Path | None, str | None]:
    """Get current working directory, detecting if it no longer exists.

    Returns:
        tuple[Path | None, str | None]: (path, error_message)
        - If successful: (Path, None)
        - If directory deleted: (None, error_message)
    """
    try:
        return (Path.cwd(), None)
    except (FileNotFoundError, OSError):
        return (None, "Current working directory no longer exists")


def create_context(
    *,
    cwd: Path,
    dry_run: bool,
    quiet: bool = False,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> MultimrContext:
    """Create production context with real implementations.

    Called at CLI entry point to create the context for the entire run.

    Args:
        cwd: Invocation directory; relative config paths resolve against it
        dry_run: If True, wrap git in DryRunGit so mutating commands are
                 logged instead of executed
        quiet: If True, use SuppressedFeedback (errors only)
        config_path: Explicit config file, or None for `<cwd>/multimr.toml`
        env: Environment for backend credentials (defaults to os.environ)

    Returns:
        MultimrContext with real implementations

    Raises:
        ConfigError: If the configuration cannot be loaded
    """
    config = load_config(cwd, config_path)

    git: Git = RealGit(push_timeout=config.file.timeout)
    backend = create_backend(config.file, git, env)
    if dry_run:
        git = DryRunGit(git)

    feedback: UserFeedback = SuppressedFeedback() if quiet else InteractiveFeedback()

    return MultimrContext(
        git=git,
        backend=backend,
        feedback=feedback,
        cwd=cwd,
        config=config,
        dry_run=dry_run,
    )
