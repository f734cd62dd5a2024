import dataclasses
import logging
import os
import threading
from pathlib import Path

import click

from multimr.cli.ensure import Ensure
from multimr.cli.rendering import OutputFormat, get_renderer
from multimr.core.config import resolve_working_dir
from multimr.core.context import MultimrContext, create_context, safe_cwd
from multimr.core.errors import ConfigError
from multimr.core.git.dry_run import DryRunGit
from multimr.core.orchestrator import RunRequest, run_multi_mr
from multimr.core.repo_discovery import select_repositories
from multimr.core.types import WorkflowMode

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags

DEBUG_ENV_VAR = "MULTIMR_DEBUG"
LOG_FORMAT = "[DEBUG %(name)s:%(lineno)d] %(message)s"


def configure_logging(verbose: bool) -> None:
    """Enable debug logging for --verbose or MULTIMR_DEBUG=1."""
    if verbose or os.getenv(DEBUG_ENV_VAR):
        logging.basicConfig(level=logging.DEBUG, format=LOG_FORMAT)


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="multimr")
@click.argument("repos", nargs=-1)
@click.option(
    "-t", "--title", required=True, help="Title of the merge request (also the commit message)."
)
@click.option("-d", "--description", default="", help="Description of the merge request.")
@click.option("--branch", default=None, help="Branch to create. Derived from the title by default.")
@click.option("--base", default=None, help="Branch to merge into. Overrides config and detection.")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in WorkflowMode]),
    default=WorkflowMode.FROM_MAIN.value,
    show_default=True,
    help="from-main creates a branch off the base; from-feature uses the current branch.",
)
@click.option("--assignee", default=None, help="Assignee. Overrides the configured assignee.")
@click.option(
    "--reviewer",
    "reviewers",
    multiple=True,
    help="Reviewer (repeatable). Replaces the configured reviewers.",
)
@click.option(
    "--label",
    "label_keys",
    multiple=True,
    help="Key of a configured label, e.g. feat or fix (repeatable).",
)
@click.option("--draft", is_flag=True, help="Open the requests as drafts.")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Plan every repository but change nothing and create no requests.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: ./multimr.toml).",
)
@click.option(
    "--working-dir",
    default=None,
    help="Directory holding the repositories. Overrides the configured working_dir.",
)
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Repositories processed in parallel.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format for the run summary.",
)
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and backend output.")
@click.option("-q", "--quiet", is_flag=True, help="Only print errors and the summary.")
@click.pass_context
def cli(
    ctx: click.Context,
    repos: tuple[str, ...],
    title: str,
    description: str,
    branch: str | None,
    base: str | None,
    mode: str,
    assignee: str | None,
    reviewers: tuple[str, ...],
    label_keys: tuple[str, ...],
    draft: bool,
    dry_run: bool,
    config_path: Path | None,
    working_dir: str | None,
    jobs: int,
    output_format: OutputFormat,
    verbose: bool,
    quiet: bool,
) -> None:
    """Create the same merge request in several repositories.

    REPOS are paths relative to the working directory. Without REPOS every
    immediate subdirectory of the working directory that is a git repository
    is used.

    \b
    Example:
      mmr -t "Bump ruff to 0.5" --label feat api web worker
    """
    Ensure.invariant(not (verbose and quiet), "--verbose and --quiet cannot be combined")
    configure_logging(verbose)

    # Only create context if not already provided (e.g., by tests)
    if ctx.obj is None:
        cwd_path, cwd_error = safe_cwd()
        cwd = Ensure.not_none(cwd_path, cwd_error or "Cannot determine working directory")
        try:
            ctx.obj = create_context(
                cwd=cwd,
                dry_run=dry_run,
                quiet=quiet,
                config_path=config_path,
            )
        except ConfigError as e:
            Ensure.config_error(e)

    mctx: MultimrContext = ctx.obj
    if dry_run and not mctx.dry_run:
        mctx = dataclasses.replace(mctx, git=DryRunGit(mctx.git), dry_run=True)
    if working_dir is not None:
        config = mctx.config.model_copy(
            update={"working_dir": resolve_working_dir(working_dir, mctx.cwd)}
        )
        mctx = dataclasses.replace(mctx, config=config)

    try:
        repositories = select_repositories(mctx.working_dir, repos)
    except ConfigError as e:
        Ensure.config_error(e)
    logger.debug("Selected repositories: %s", [str(p) for p in repositories])
    request = RunRequest(
        title=title,
        description=description,
        branch=branch,
        base=base,
        mode=WorkflowMode(mode),
        assignee=assignee,
        reviewers=reviewers,
        label_keys=label_keys,
        draft=draft,
        jobs=jobs,
    )

    if mctx.dry_run:
        mctx.feedback.warning("Dry run: nothing will be changed and no requests will be created")
    mctx.feedback.info(f"Processing {len(repositories)} repositories in {mctx.working_dir}")

    renderer = get_renderer(output_format)
    try:
        summary = run_multi_mr(
            mctx,
            repositories,
            request,
            on_outcome=None if quiet else renderer.render_outcome,
            cancel=threading.Event(),
        )
    except ConfigError as e:
        Ensure.config_error(e)

    renderer.render_summary(summary, verbose=verbose)
    raise SystemExit(summary.exit_code)


def main() -> None:
    """CLI entry point used by the `mmr` and `multimr` console scripts."""
    cli()
