"""Output rendering for a multimr run.

A renderer receives every RepoOutcome as it completes and the RunSummary at
the end. The text renderer writes to stderr via user_output() and rich; the
JSON renderer writes one document to stdout via machine_output() so the run
can be piped.
"""

from abc import ABC, abstractmethod
from typing import Literal

import click
from pydantic import BaseModel, ConfigDict
from rich.console import Console
from rich.table import Table
from rich.text import Text

from multimr.cli.output import machine_output, user_output
from multimr.core.types import Created, ExecutionResult, Failed, RepoOutcome, RunSummary, Skipped

OutputFormat = Literal["text", "json"]

DRY_RUN_TAG = "(dry run)"


def describe_result(result: ExecutionResult) -> str:
    """One-line, unstyled description of a result."""
    if isinstance(result, Created):
        if result.simulated:
            return f"would create request from '{result.branch}' {DRY_RUN_TAG}"
        return f"created {result.request_url}"
    if isinstance(result, Skipped):
        return f"skipped: {result.reason}"
    return f"{result.kind} ({result.step.value}): {_first_line(result.message)}"


def _first_line(message: str) -> str:
    lines = message.strip().splitlines()
    return lines[0] if lines else ""


def format_outcome_line(outcome: RepoOutcome) -> str:
    """Styled progress line printed as a repository finishes."""
    result = outcome.result
    if isinstance(result, Created):
        marker = click.style("✓", fg="green")
    elif isinstance(result, Skipped):
        marker = click.style("-", fg="yellow")
    else:
        marker = click.style("✗", fg="red")
    name = click.style(outcome.repository, fg="cyan", bold=True)
    return f"{marker} {name}: {describe_result(result)}"


def build_summary_table(summary: RunSummary) -> Table:
    """Rich table with one row per repository, in input order."""
    title = f"Merge requests {DRY_RUN_TAG}" if summary.dry_run else "Merge requests"
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("repository", style="cyan", no_wrap=True)
    table.add_column("status", no_wrap=True)
    table.add_column("branch", no_wrap=True)
    table.add_column("details")

    for outcome in summary.outcomes:
        result = outcome.result
        if isinstance(result, Created):
            status = Text("dry run" if result.simulated else "created", style="green")
            details = (
                f"[link={result.request_url}]{result.request_url}[/link]"
                if result.request_url
                else ""
            )
            table.add_row(outcome.repository, status, result.branch, details)
        elif isinstance(result, Skipped):
            table.add_row(
                outcome.repository, Text("skipped", style="yellow"), "", Text(result.reason)
            )
        else:
            table.add_row(
                outcome.repository,
                Text(result.kind, style="red"),
                "",
                Text(f"{result.step.value}: {_first_line(result.message)}"),
            )
    return table


def format_totals(summary: RunSummary) -> str:
    text = (
        f"{len(summary.created)} created, {len(summary.skipped)} skipped, "
        f"{len(summary.failed)} failed"
    )
    if summary.dry_run:
        text += f" {DRY_RUN_TAG}"
    return click.style(text, fg="green" if summary.success else "red", bold=True)


class RunRenderer(ABC):
    """Presents the progress and results of a run."""

    @abstractmethod
    def render_outcome(self, outcome: RepoOutcome) -> None:
        """Called once per repository, in completion order."""

    @abstractmethod
    def render_summary(self, summary: RunSummary, *, verbose: bool) -> None:
        """Called once after every repository finished."""


class TextRenderer(RunRenderer):
    """Human-readable output on stderr."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console if console is not None else Console(stderr=True)

    def render_outcome(self, outcome: RepoOutcome) -> None:
        user_output(format_outcome_line(outcome))

    def render_summary(self, summary: RunSummary, *, verbose: bool) -> None:
        user_output("")
        self._console.print(build_summary_table(summary))
        user_output(format_totals(summary))

        for outcome in summary.failed:
            result = outcome.result
            assert isinstance(result, Failed)
            if "\n" in result.message.strip():
                user_output("")
                user_output(click.style(f"{outcome.repository}:", fg="red", bold=True))
                user_output(result.message.strip())

        if verbose:
            for outcome in summary.created:
                result = outcome.result
                assert isinstance(result, Created)
                if result.output.strip():
                    user_output("")
                    user_output(click.style(f"{outcome.repository} backend output:", bold=True))
                    user_output(result.output.strip())


class OutcomeReport(BaseModel):
    """JSON shape of one repository's outcome."""

    model_config = ConfigDict(frozen=True)

    repository: str
    path: str
    status: Literal["created", "skipped", "failed"]
    branch: str | None = None
    request_url: str | None = None
    simulated: bool = False
    reason: str | None = None
    kind: str | None = None
    step: str | None = None
    message: str | None = None


class RunReport(BaseModel):
    """JSON shape of a whole run."""

    model_config = ConfigDict(frozen=True)

    dry_run: bool
    success: bool
    outcomes: list[OutcomeReport]


def outcome_report(outcome: RepoOutcome) -> OutcomeReport:
    result = outcome.result
    base = {"repository": outcome.repository, "path": str(outcome.path)}
    if isinstance(result, Created):
        return OutcomeReport(
            **base,
            status="created",
            branch=result.branch,
            request_url=result.request_url,
            simulated=result.simulated,
        )
    if isinstance(result, Skipped):
        return OutcomeReport(**base, status="skipped", reason=result.reason)
    return OutcomeReport(
        **base,
        status="failed",
        kind=result.kind,
        step=result.step.value,
        message=result.message,
    )


def run_report(summary: RunSummary) -> RunReport:
    return RunReport(
        dry_run=summary.dry_run,
        success=summary.success,
        outcomes=[outcome_report(o) for o in summary.outcomes],
    )


class JsonRenderer(RunRenderer):
    """A single JSON document on stdout; progress lines are not printed."""

    def render_outcome(self, outcome: RepoOutcome) -> None:
        pass

    def render_summary(self, summary: RunSummary, *, verbose: bool) -> None:
        machine_output(run_report(summary).model_dump_json(indent=2))


def get_renderer(output_format: OutputFormat) -> RunRenderer:
    if output_format == "json":
        return JsonRenderer()
    return TextRenderer()
