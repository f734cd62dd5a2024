"""Configuration loading for multimr.

Configuration is read once from a `multimr.toml` file at the CLI entry point
and stored, frozen, in MultimrContext. Unknown fields are rejected.

Example config:
    assignee = "wmeijer"
    working_dir = "../repos"
    reviewers = ["alice", "bob"]

    [labels]
    feat = "type::feature"
    fix = "type::bug"
"""

import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from multimr.core.errors import ConfigError

CONFIG_FILE = "multimr.toml"

BackendName = Literal["glab", "gh", "gitlab-api"]


class LabelConfig(BaseModel):
    """Label values selectable by key with `--label`."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    feat: str | None = None
    fix: str | None = None

    def as_mapping(self) -> dict[str, str]:
        return {key: value for key, value in self.model_dump().items() if value}


class FileConfig(BaseModel):
    """Contents of `multimr.toml`, as written by the user."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    assignee: str | None = None
    working_dir: str = "."
    reviewers: list[str] = Field(default_factory=list)
    labels: LabelConfig = Field(default_factory=LabelConfig)
    base_branch: str | None = None
    remote: str = "origin"
    backend: BackendName = "glab"
    gitlab_url: str = "https://gitlab.com"
    timeout: float = Field(default=120.0, gt=0)

    @field_validator("assignee", "base_branch")
    @classmethod
    def blank_is_unset(cls, v: str | None) -> str | None:
        """Treat empty strings as not configured."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("reviewers")
    @classmethod
    def validate_reviewers(cls, v: list[str]) -> list[str]:
        """Reject empty reviewer names."""
        for reviewer in v:
            if not reviewer.strip():
                msg = "reviewer names cannot be empty"
                raise ValueError(msg)
        return v


class MultimrConfig(BaseModel):
    """Resolved configuration: file values plus the resolved working directory."""

    model_config = ConfigDict(frozen=True)

    file: FileConfig
    working_dir: Path
    source: Path | None  # config file the values came from, None for defaults


def resolve_working_dir(raw: str, cwd: Path) -> Path:
    """Resolve `working_dir` against the explicit invocation directory."""
    path = Path(raw).expanduser()
    if not path.is_absolute():
        path = cwd / path
    return path.resolve()


def load_config(cwd: Path, config_path: Path | None = None) -> MultimrConfig:
    """Load configuration from `config_path` or `<cwd>/multimr.toml`.

    A missing default config file yields defaults; an explicitly requested
    file must exist.

    Raises:
        ConfigError: If the file is missing (explicit path only), is not valid
            TOML, or violates the schema (including unknown fields)
    """
    explicit = config_path is not None
    path = config_path if config_path is not None else cwd / CONFIG_FILE
    if not path.is_absolute():
        path = cwd / path

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        file_config = FileConfig()
        return MultimrConfig(
            file=file_config,
            working_dir=resolve_working_dir(file_config.working_dir, cwd),
            source=None,
        )

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    return parse_config(data, cwd=cwd, source=path)


def parse_config(data: dict, *, cwd: Path, source: Path | None = None) -> MultimrConfig:
    """Validate raw TOML data into a MultimrConfig."""
    try:
        file_config = FileConfig.model_validate(data)
    except ValidationError as e:
        where = f" in {source}" if source is not None else ""
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration{where}: {problems}") from e

    return MultimrConfig(
        file=file_config,
        working_dir=resolve_working_dir(file_config.working_dir, cwd),
        source=source,
    )
