"""Open the merge request through the configured backend."""

import logging
from pathlib import Path

from multimr.core.backend.abc import MergeRequestBackend
from multimr.core.types import BranchPlan, Created, MergeRequestSpec

logger = logging.getLogger(__name__)


def create_request(
    backend: MergeRequestBackend,
    repo_root: Path,
    spec: MergeRequestSpec,
    plan: BranchPlan,
    *,
    timeout: float,
) -> Created:
    """Create the request for `plan.target_branch` into `plan.base_branch`.

    In dry-run mode the backend is not invoked; a simulated Created result
    without a URL is returned instead.

    Raises:
        BackendError: Propagated from the backend
    """
    if spec.dry_run:
        logger.info(
            "[DRY RUN] Would create request '%s' in %s: %s -> %s",
            spec.title,
            repo_root,
            plan.target_branch,
            plan.base_branch,
        )
        return Created(branch=plan.target_branch, request_url=None, simulated=True)

    created = backend.create_request(
        repo_root,
        spec,
        source_branch=plan.target_branch,
        target_branch=plan.base_branch,
        timeout=timeout,
    )
    return Created(branch=plan.target_branch, request_url=created.url, output=created.output)
