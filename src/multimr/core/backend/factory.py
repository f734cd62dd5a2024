"""Backend selection from configuration."""

import os
from collections.abc import Mapping

from multimr.core.backend.abc import MergeRequestBackend
from multimr.core.backend.gh import GhBackend
from multimr.core.backend.gitlab_api import TOKEN_ENV_VAR, GitLabApiBackend
from multimr.core.backend.glab import GlabBackend
from multimr.core.config import FileConfig
from multimr.core.git.abc import Git


def create_backend(
    config: FileConfig, git: Git, env: Mapping[str, str] | None = None
) -> MergeRequestBackend:
    """Create the backend named by `config.backend`."""
    if config.backend == "glab":
        return GlabBackend()
    if config.backend == "gh":
        return GhBackend()

    environ = env if env is not None else os.environ
    return GitLabApiBackend(
        git=git,
        token=environ.get(TOKEN_ENV_VAR),
        base_url=config.gitlab_url,
        remote=config.remote,
    )
