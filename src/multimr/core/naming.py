"""Naming utilities for request branches.

Pure functions (no I/O) that turn a request title into a branch name that
git accepts as a ref.
"""

import re
import unicodedata

MAX_BRANCH_LENGTH = 60


def derive_branch_name(title: str) -> str:
    """Derive a branch name from a request title.

    - Normalizes unicode and drops characters without an ASCII form
    - Lowercases input
    - Keeps `/` so prefixes like `ft/` survive
    - Replaces characters outside `[a-z0-9._/-]` with `-`
    - Collapses consecutive `-` and `/`
    - Strips leading/trailing `-`, `/` and `.` from every path component
    - Truncates to 60 characters
    Returns `"multimr"` if the result is empty.

    Examples:
        >>> derive_branch_name("Bump ruff to 0.5")
        'bump-ruff-to-0.5'
        >>> derive_branch_name("ft/Shared CI  cache")
        'ft/shared-ci-cache'
    """
    normalized = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    lowered = normalized.strip().lower()
    replaced = re.sub(r"[^a-z0-9._/-]+", "-", lowered)
    collapsed = re.sub(r"-+", "-", replaced)
    collapsed = re.sub(r"/+", "/", collapsed)
    # git refuses ".." anywhere in a ref
    collapsed = re.sub(r"\.{2,}", ".", collapsed)

    components = [_clean_component(part) for part in collapsed.split("/")]
    result = "/".join(part for part in components if part)

    if len(result) > MAX_BRANCH_LENGTH:
        result = "/".join(
            part for part in (_clean_component(p) for p in result[:MAX_BRANCH_LENGTH].split("/"))
            if part
        )

    return result or "multimr"


def _clean_component(part: str) -> str:
    cleaned = part.strip("-.")
    # git refuses components ending in ".lock"
    if cleaned.endswith(".lock"):
        cleaned = cleaned[: -len(".lock")].rstrip("-.")
    return cleaned
