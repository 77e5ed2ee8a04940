"""CLI interface for prmerge."""

from __future__ import annotations

import asyncio
import logging
import re
import shlex
from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from prmerge import __version__
from prmerge.config import Config, temp_branch_name
from prmerge.core.cleanup import CleanupRegistry
from prmerge.core.merger import Merger
from prmerge.core.messages import PHASES, WARNING_BOX, interpolate, usage
from prmerge.core.models import ErrorCode, MergeInput
from prmerge.core.runner import MergeAborted, PhaseRunner
from prmerge.runners.cla import ClaChecker
from prmerge.runners.command import CommandRunner
from prmerge.runners.git import GitClient
from prmerge.ui.prompt import ConsolePrompter
from prmerge.ui.reporter import ConsoleReporter

PROGRAM = "prmerge"

app = typer.Typer(
    name=PROGRAM,
    help="Merge a GitHub pull request locally, with clean-up on failure.",
    add_completion=False,
)
console = Console(highlight=False)


class InputError(Exception):
    """Invalid command-line input."""

    def __init__(self, code: ErrorCode) -> None:
        super().__init__(code.value)
        self.code = code


def remove_surrounding_quotes(value: str) -> str:
    """Strip one pair of matching surrounding quotes (some shells keep them)."""
    match = re.fullmatch(r'"([^"]*)"', value) or re.fullmatch(r"'([^']*)'", value)
    return match.group(1) if match else value


def get_and_validate_input(
    pr_no: str | None,
    repo: str | None,
    branch: str | None,
    config: Config,
) -> MergeInput:
    """Build the merge input from CLI values, falling back to config defaults.

    Raises:
        InputError: If the repo or PR number is missing or malformed
    """
    repo = remove_surrounding_quotes(repo) if repo else config.repo
    branch = remove_surrounding_quotes(branch) if branch else config.branch

    if "/" not in repo:
        raise InputError(ErrorCode.INVALID_REPO)
    if not pr_no:
        raise InputError(ErrorCode.MISSING_PR_NO)

    pr_no = remove_surrounding_quotes(pr_no).lstrip("#")
    if not pr_no.isdecimal() or int(pr_no) <= 0:
        raise InputError(ErrorCode.INVALID_PR_NO)

    number = int(pr_no)
    return MergeInput(
        repo=repo,
        branch=branch,
        pr_no=number,
        temp_branch=temp_branch_name(number),
        pr_url=config.patch_url(repo, number),
    )


def _display_warning() -> None:
    console.print(f"\n[yellow]{WARNING_BOX}[/yellow]\n")


def _display_header(merge_input: MergeInput) -> None:
    _display_warning()
    console.print(
        f"[bold blue]MERGING PR #{merge_input.pr_no} (to '{escape(merge_input.repo)}#{escape(merge_input.branch)}'):[/bold blue]"
    )


def _display_usage(usage_text: str) -> None:
    first, _, rest = usage_text.partition("\n")
    _display_warning()
    console.print(f"[bold]{escape(first)}[/bold]\n[dim]{escape(rest)}[/dim]")


def _display_instructions(merge_input: MergeInput, config: Config) -> None:
    """Print the manual steps of every phase, rendered for this PR."""
    data = merge_input.template_data()
    data["ciCommand"] = shlex.join(config.ci_command)
    data["claLabel"] = config.cla_label

    console.print(
        f"\n[bold blue]Instructions for merging PR #{merge_input.pr_no} "
        f"to '{escape(merge_input.repo)}#{escape(merge_input.branch)}':[/bold blue]"
    )

    for phase in PHASES.values():
        if not phase.instructions:
            continue

        console.print(f"\n\n[bold cyan]  PHASE {phase.id} - {escape(phase.description)}[/bold cyan]\n")
        for instruction in phase.instructions:
            text = escape(interpolate(instruction, data))
            text = re.sub(r"`([^`]+)`", r"[green on black]\1[/green on black]", text)
            console.print(f"    - {text}")


def _the_end(changes_pushed: bool) -> None:
    console.print("\n[bold green]  OPERATION COMPLETED SUCCESSFULLY![/bold green]")
    if not changes_pushed:
        console.print("[bold yellow]  (Don't forget to manually push the changes.)[/bold yellow]")


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{PROGRAM} {__version__}")
        raise typer.Exit()


async def _run_merge(merger: Merger, phase_runner: PhaseRunner) -> bool:
    try:
        return await merger.merge()
    except MergeAborted:
        raise
    except Exception as e:
        await phase_runner.report_fatal_error(ErrorCode.UNEXPECTED, error=e)


@app.command()
def merge(
    pr_no: Annotated[
        str | None,
        typer.Argument(help="Number of the pull request to merge", show_default=False),
    ] = None,
    repo: Annotated[
        str | None,
        typer.Option("--repo", "-r", help="Repository in owner/name format (default from config)"),
    ] = None,
    branch: Annotated[
        str | None,
        typer.Option("--branch", "-b", help="Branch to merge into (default from config)"),
    ] = None,
    instructions: Annotated[
        bool,
        typer.Option("--instructions", "-i", help="Only print the manual steps, don't execute anything"),
    ] = False,
    show_usage: Annotated[
        bool,
        typer.Option("--usage", help="Show usage and exit"),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a config YAML (default: .prmerge/config.yaml)"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit"),
    ] = None,
) -> None:
    """Merge a pull request into the target branch, phase by phase."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)

    try:
        config = Config.load(config_path)
    except (ValidationError, yaml.YAMLError) as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(1) from e

    usage_text = usage(PROGRAM, config.repo, config.branch)
    if show_usage:
        _display_usage(usage_text)
        return

    reporter = ConsoleReporter(console)
    prompter = ConsolePrompter(console)
    cleanup = CleanupRegistry()
    phase_runner = PhaseRunner(cleanup, prompter, reporter, usage_text=usage_text)

    try:
        try:
            merge_input = get_and_validate_input(pr_no, repo, branch, config)
        except InputError as e:
            asyncio.run(phase_runner.report_fatal_error(e.code, skip_cleanup=True))

        if instructions:
            _display_instructions(merge_input, config)
            return

        command_runner = CommandRunner()
        merger = Merger(
            merge_input=merge_input,
            config=config,
            cleanup=cleanup,
            phase_runner=phase_runner,
            git=GitClient(command_runner, cleanup, timeout=config.http_timeout),
            cla_checker=ClaChecker(merge_input.repo, config),
            command_runner=command_runner,
            prompter=prompter,
            reporter=reporter,
        )

        _display_header(merge_input)
        changes_pushed = asyncio.run(_run_merge(merger, phase_runner))
    except MergeAborted as e:
        raise typer.Exit(e.exit_code) from e

    _the_end(changes_pushed)
