"""Repository selection.

Turns the REPOS arguments (or their absence) into the ordered list of
repository paths a run works on. Paths are not validated here; a missing or
unreadable repository is reported by the inspector as a per-repository
failure instead of aborting the run. Only an unreadable working directory
is a run-wide ConfigError.
"""

import logging
from collections.abc import Sequence
from pathlib import Path

from multimr.core.errors import ConfigError

logger = logging.getLogger(__name__)


def discover_repositories(working_dir: Path) -> list[Path]:
    """List immediate subdirectories of `working_dir` that contain `.git`.

    `.git` may be a directory or a file (worktrees, submodules). Hidden
    directories are ignored. Results are sorted by name.
    """
    if not working_dir.is_dir():
        return []

    try:
        children = sorted(working_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise ConfigError(f"Cannot list repositories in {working_dir}: {e}") from e

    repositories = [
        child
        for child in children
        if child.is_dir() and not child.name.startswith(".") and (child / ".git").exists()
    ]
    logger.debug("Discovered %d repositories in %s", len(repositories), working_dir)
    return repositories


def resolve_repositories(working_dir: Path, names: Sequence[str]) -> list[Path]:
    """Resolve REPOS arguments against `working_dir`, keeping order.

    Absolute paths are kept as given. Duplicates (after resolution) are
    dropped so no repository is processed twice in one run.
    """
    resolved: list[Path] = []
    seen: set[Path] = set()
    for name in names:
        path = Path(name).expanduser()
        if not path.is_absolute():
            path = working_dir / path
        path = path.resolve()
        if path in seen:
            continue
        seen.add(path)
        resolved.append(path)
    return resolved


def select_repositories(working_dir: Path, names: Sequence[str]) -> list[Path]:
    """Repositories named on the command line, or all discovered ones."""
    if names:
        return resolve_repositories(working_dir, names)
    return discover_repositories(working_dir)
