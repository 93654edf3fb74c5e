"""Click-based CLI for redraft."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console

from redraft import __version__
from redraft.config import PROFILES, RedraftConfig, load_config
from redraft.core.errors import RedraftError
from redraft.humanizer.styles import Tone

if TYPE_CHECKING:
    from redraft.services.backend import OllamaServices

logger = logging.getLogger("redraft")

# A comma starts a new parameter only when a "key=" follows it.
_PARAM_SPLIT_RE = re.compile(r",\s*(?=[A-Za-z_]\w*\s*=)")


def _open_services(config: RedraftConfig) -> OllamaServices:
    """Create the Ollama-backed collaborators for a command."""
    from redraft.services.backend import OllamaServices

    return OllamaServices.from_config(config)


def _parse_step(step: str) -> tuple[str, dict[str, str]]:
    """Parse ``action[:key=value,key=value]`` into an action id and parameters.

    Values may contain commas (``research:query=cats, dogs``).
    """
    action, _, raw_params = step.partition(":")
    params: dict[str, str] = {}
    if raw_params.strip():
        for pair in _PARAM_SPLIT_RE.split(raw_params):
            key, sep, value = pair.partition("=")
            if not sep or not key.strip():
                raise click.BadParameter(
                    f"Expected key=value in {step!r}, got {pair!r}", param_hint="--step"
                )
            params[key.strip()] = value.strip()
    return action.strip(), params


def _read_input(input_path: Path | None) -> str:
    if input_path is None:
        return ""
    return input_path.read_text(encoding="utf-8")


@click.group()
@click.version_option(version=__version__, prog_name="redraft")
@click.option(
    "--profile",
    type=click.Choice(list(PROFILES)),
    default=None,
    help="Quality profile (overrides config file).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to user config TOML file.",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose output.")
@click.option("-q", "--quiet", is_flag=True, default=False, help="Suppress all output.")
@click.pass_context
def main(
    ctx: click.Context,
    profile: str | None,
    config_path: Path | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """redraft -- adaptive rewriting with detector feedback."""
    ctx.ensure_object(dict)
    cfg = load_config(profile=profile, user_config_path=config_path)
    ctx.obj = {
        "config": cfg,
        "config_path": config_path,
        "verbose": verbose,
        "quiet": quiet,
    }

    level = getattr(logging, cfg.general.log_level.upper(), logging.WARNING)
    if verbose:
        level = logging.DEBUG
    if quiet:
        level = logging.CRITICAL
    logging.basicConfig(level=level, format="%(name)s: %(message)s", stream=sys.stderr)


@main.command()
@click.argument("input_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--tone",
    type=click.Choice([t.value for t in Tone]),
    default=Tone.NEUTRAL.value,
    help="Tone of the rewrite.",
)
@click.option(
    "--level",
    type=click.IntRange(1, 100),
    default=50,
    show_default=True,
    help="Starting intensity; escalates until the score drops below the threshold.",
)
@click.option(
    "--output-format",
    type=click.Choice(["diff", "text", "json"]),
    default="diff",
    help="Show tracked changes, plain text, or a JSON report.",
)
@click.option("-o", "--output", "output_path", type=click.Path(path_type=Path), default=None)
@click.pass_context
def humanize(
    ctx: click.Context,
    input_path: Path,
    tone: str,
    level: int,
    output_format: str,
    output_path: Path | None,
) -> None:
    """Rewrite a document until it scores as human-written."""
    from redraft.humanizer.optimizer import Optimizer
    from redraft.markup import plain_text
    from redraft.output import OutputFormatter
    from redraft.progress import ProgressReporter

    obj = ctx.obj
    config: RedraftConfig = obj["config"]
    console = Console(stderr=True, quiet=obj["quiet"])
    reporter = ProgressReporter(console, verbose=obj["verbose"], quiet=obj["quiet"])
    text = _read_input(input_path)

    async def run() -> Any:
        async with _open_services(config) as services:
            if config.ollama.health_check_on_start:
                await services.check_ready()
            optimizer = Optimizer(services, services, config.optimizer)
            return await optimizer.humanize(
                text, Tone(tone), level, progress_callback=reporter.callback
            )

    try:
        result = asyncio.run(run())
    except RedraftError as exc:
        raise click.ClickException(str(exc)) from exc

    formatter = OutputFormatter()
    final_text = plain_text(result.markup)
    if output_path is not None:
        output_path.write_text(final_text, encoding="utf-8")
        click.echo(f"Output: {output_path}")

    if output_format == "json":
        click.echo(formatter.format_optimization_json(result, config))
    elif output_format == "text":
        click.echo(final_text)
    else:
        Console(quiet=obj["quiet"]).print(formatter.render_markup(result.markup))

    if result.score >= config.optimizer.threshold:
        console.print(
            f"[yellow]Best score {result.score:g} did not reach the threshold "
            f"{config.optimizer.threshold:g}.[/yellow]"
        )


@main.command()
@click.argument("input_path", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output-format",
    type=click.Choice(["json", "text"]),
    default="text",
    help="Report output format.",
)
@click.pass_context
def detect(ctx: click.Context, input_path: Path, output_format: str) -> None:
    """Score a document for AI-generated content."""
    from redraft.output import OutputFormatter

    config: RedraftConfig = ctx.obj["config"]
    text = _read_input(input_path)

    async def run() -> Any:
        async with _open_services(config) as services:
            if config.ollama.health_check_on_start:
                await services.check_ready()
            return await services.score(text)

    try:
        scored = asyncio.run(run())
    except RedraftError as exc:
        raise click.ClickException(str(exc)) from exc

    if output_format == "json":
        click.echo(json.dumps(scored.to_dict(), indent=2))
    else:
        click.echo(OutputFormatter().format_detection_text(scored))


@main.command()
@click.argument("input_path", required=False, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--step",
    "steps",
    multiple=True,
    required=True,
    help="Action to apply, e.g. 'paraphrase:mode=Formal'. Repeat to chain.",
)
@click.option(
    "--output-format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Print the final document or a JSON session report.",
)
@click.option("-o", "--output", "output_path", type=click.Path(path_type=Path), default=None)
@click.pass_context
def flow(
    ctx: click.Context,
    input_path: Path | None,
    steps: tuple[str, ...],
    output_format: str,
    output_path: Path | None,
) -> None:
    """Apply a chain of actions to a document and show the history."""
    from redraft.flow import FlowOrchestrator, FlowServices
    from redraft.output import OutputFormatter
    from redraft.progress import ProgressReporter

    obj = ctx.obj
    config: RedraftConfig = obj["config"]
    console = Console(stderr=True, quiet=obj["quiet"])
    reporter = ProgressReporter(console, verbose=obj["verbose"], quiet=obj["quiet"])
    parsed = [_parse_step(s) for s in steps]

    async def run() -> tuple[FlowOrchestrator, RedraftError | None]:
        async with _open_services(config) as services:
            if config.ollama.health_check_on_start:
                await services.check_ready()
            orchestrator = FlowOrchestrator.from_config(
                FlowServices.from_backend(services), config, progress_callback=reporter.callback
            )
            orchestrator.set_document(_read_input(input_path))
            for step, (action, params) in zip(steps, parsed, strict=True):
                try:
                    orchestrator.select_action(action)
                    for key, value in params.items():
                        orchestrator.set_parameter(key, value)
                    entry = await orchestrator.apply()
                except RedraftError as exc:
                    console.print(
                        f"[red]Step {step!r} failed; keeping "
                        f"{len(orchestrator.get_history())} committed step(s).[/red]"
                    )
                    return orchestrator, exc
                console.print(f"[green]{entry.sequence_number}. {entry.action_label}[/green]")
                logger.debug("Result of %s:\n%s", entry.action_id, entry.result_summary)
            return orchestrator, None

    try:
        orchestrator, failure = asyncio.run(run())
    except RedraftError as exc:
        raise click.ClickException(str(exc)) from exc

    document = orchestrator.get_document()
    if output_path is not None:
        output_path.write_text(document, encoding="utf-8")
        click.echo(f"Output: {output_path}")

    if output_format == "json":
        click.echo(OutputFormatter().format_history_json(document, orchestrator.get_history()))
    else:
        reporter.history_table(orchestrator.get_history(), limit=config.flow.history_preview)
        click.echo(document)

    if failure is not None:
        raise click.ClickException(str(failure)) from failure


@main.command(name="actions")
@click.pass_context
def actions_cmd(ctx: click.Context) -> None:
    """List the actions available to ``flow --step``."""
    from rich.table import Table

    from redraft.flow import ActionRegistry

    console = Console(quiet=ctx.obj["quiet"])
    table = Table(title="Actions", show_header=True)
    table.add_column("Id", style="cyan")
    table.add_column("Label", style="green")
    table.add_column("Needs text", style="blue")
    table.add_column("Parameters")

    for definition in ActionRegistry():
        params = ", ".join(
            f"{name}={getattr(spec.default, 'value', spec.default)!s}"
            + (" (required)" if spec.required else "")
            for name, spec in definition.parameter_schema.items()
        )
        table.add_row(
            definition.id.value,
            definition.label,
            "yes" if definition.requires_input_text else "no",
            params or "-",
        )
    console.print(table)


@main.command(name="config")
@click.option("--set", "set_kv", nargs=2, multiple=True, help="Set KEY VALUE.")
@click.pass_context
def config_cmd(ctx: click.Context, set_kv: tuple[tuple[str, str], ...]) -> None:
    """View the resolved configuration."""
    from rich.syntax import Syntax

    obj = ctx.obj
    config: RedraftConfig = obj["config"]
    console = Console(quiet=obj["quiet"])

    if set_kv:
        config = load_config(
            profile=config.general.profile,
            user_config_path=obj["config_path"],
            cli_overrides=dict(set_kv),
        )

    syntax = Syntax(json.dumps(config.to_dict(), indent=2), "json", theme="monokai")
    console.print(syntax)
