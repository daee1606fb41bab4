"""Command-line interface for safeshell."""

import sys

import click
from rich.console import Console

from safeshell import __version__
from safeshell.command import validate_program
from safeshell.config import load_config
from safeshell.exceptions import InvalidProgramName, PipelineError
from safeshell.executor import ShellExecutor, set_executor
from safeshell.logging import (
    configure_logging,
    get_level_from_name,
    get_level_from_verbosity,
    get_logger,
)
from safeshell.pipeline import (
    JsonPipelineReporter,
    TextPipelineReporter,
    format_summary_table,
    load_pipeline,
    run_pipeline,
)
from safeshell.quoting import escape_args

logger = get_logger("safeshell.cli")

# Exit code for usage errors, matching click's
USAGE_ERROR = 2


def _executor(ctx: click.Context) -> ShellExecutor:
    return ctx.obj["executor"]


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version and exit")
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v, -vv, -vvv)")
@click.option("--log-level", help="Log level name (overrides -v)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Config file (default: ~/.safeshell/config.yml)")
@click.pass_context
def cli(
    ctx: click.Context,
    version: bool,
    verbose: int,
    log_level: str | None,
    config_path: str | None,
) -> None:
    """safeshell - Build and run shell commands without injection."""
    if version:
        click.echo(f"safeshell {__version__}")
        ctx.exit(0)

    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    if log_level:
        try:
            level = get_level_from_name(log_level)
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint="--log-level") from e
    elif verbose:
        level = get_level_from_verbosity(verbose)
    else:
        level = config.level
    configure_logging(level=level)

    # An executor passed in through ctx.obj takes precedence over config
    ctx.ensure_object(dict)
    executor = ctx.obj.get("executor") or ShellExecutor.from_config(config)
    set_executor(executor)
    ctx.obj.update(config=config, executor=executor)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("quote")
@click.argument("args", nargs=-1)
def quote(args: tuple[str, ...]) -> None:
    """Print ARGS escaped and joined for a POSIX shell."""
    click.echo(escape_args(list(args)))


@cli.command("check")
@click.argument("program")
@click.option("--strict", is_flag=True, help="Also apply the path-like allowlist")
@click.pass_context
def check(ctx: click.Context, program: str, strict: bool) -> None:
    """Check whether PROGRAM is an acceptable program name."""
    strict = strict or _executor(ctx).strict_programs
    ok, err = validate_program(program, strict=strict)
    if ok:
        click.echo(f"ok: {program}")
        return
    click.echo(f"invalid: {err}", err=True)
    ctx.exit(1)


@cli.command("build")
@click.argument("program")
@click.argument("args", nargs=-1)
@click.option("--strict", is_flag=True, help="Also apply the path-like allowlist")
@click.pass_context
def build(ctx: click.Context, program: str, args: tuple[str, ...], strict: bool) -> None:
    """Print the command string for PROGRAM and ARGS without running it."""
    executor = _executor(ctx)
    if strict:
        executor = ShellExecutor(executor.backend, strict_programs=True)
    try:
        click.echo(executor.build(program, list(args)))
    except InvalidProgramName as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(USAGE_ERROR)


@cli.command("run", context_settings={"ignore_unknown_options": True})
@click.argument("program")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run(ctx: click.Context, program: str, args: tuple[str, ...]) -> None:
    """Run PROGRAM with ARGS and exit with its exit code."""
    try:
        result = _executor(ctx).execute(program, list(args))
    except InvalidProgramName as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(USAGE_ERROR)
    if result.success:
        ctx.exit(0)
    ctx.exit(result.code if isinstance(result.code, int) and result.code > 0 else 1)


@cli.command("capture", context_settings={"ignore_unknown_options": True})
@click.argument("program")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def capture(ctx: click.Context, program: str, args: tuple[str, ...]) -> None:
    """Run PROGRAM with ARGS and print its captured standard output."""
    try:
        result = _executor(ctx).capture(program, list(args))
    except InvalidProgramName as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(USAGE_ERROR)
    if not result.success:
        click.echo(f"Error: could not capture output of {program}", err=True)
        ctx.exit(1)
    click.echo(result.output, nl=False)


@cli.command("pipeline")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--dry-run", is_flag=True, help="Show the commands without running them")
@click.option("--format", "-f", "output_format", type=click.Choice(["text", "json", "table"]),
              default="text", help="Output format")
@click.pass_context
def pipeline(ctx: click.Context, path: str, dry_run: bool, output_format: str) -> None:
    """Run the steps defined in a YAML pipeline file, halting on failure."""
    executor = _executor(ctx)
    try:
        steps = load_pipeline(path, strict=executor.strict_programs)
    except PipelineError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(USAGE_ERROR)

    if output_format == "json":
        reporter = JsonPipelineReporter(output=sys.stderr)
    elif output_format == "text":
        reporter = TextPipelineReporter(output=sys.stdout)
    else:
        reporter = None

    result = run_pipeline(steps, executor=executor, dry_run=dry_run, reporter=reporter)

    if output_format == "json":
        click.echo(result.format_json())
    elif output_format == "table":
        Console().print(format_summary_table(result))

    if not result.success:
        ctx.exit(1)


def main() -> None:
    """Entry point for the safeshell console script."""
    cli()


if __name__ == "__main__":
    main()
