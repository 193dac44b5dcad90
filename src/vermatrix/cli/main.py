"""CLI entry point for vermatrix."""
from __future__ import annotations

import logging
import sys
from typing import Optional, Tuple

import click

from vermatrix import __version__, bootstrap
from vermatrix.errors import VermatrixError
from vermatrix.plan import PlanOptions, load_plan, run_plan
from vermatrix.suites import registry

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class CliState:
    """Holds global CLI state."""

    def __init__(self, verbose: bool) -> None:
        self.verbose = verbose


def _print_version(_: click.Context, __: click.Parameter, value: bool) -> None:
    if not value or click.get_current_context().resilient_parsing:
        return
    click.echo(f"vermatrix {__version__}")
    raise click.exceptions.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=LOG_FORMAT)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option("--verbose", is_flag=True, help="Enable verbose logging output.")
@click.option(
    "--version",
    is_flag=True,
    callback=_print_version,
    expose_value=False,
    is_eager=True,
    help="Show the vermatrix version and exit.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Run regression suites across application versions."""

    _configure_logging(verbose)
    bootstrap()
    ctx.obj = CliState(verbose=verbose)


@cli.command()
@click.option(
    "--plan",
    "--config",
    "plan_path",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="YAML matrix plan file.",
)
@click.option(
    "--report",
    "report_format",
    type=click.Choice(["markdown", "json"]),
    default="markdown",
    show_default=True,
    help="Report format written alongside terminal output.",
)
@click.option("--report-path", type=str, help="Write the report to this path instead of the plan default.")
@click.option(
    "--repeat-reference/--no-repeat-reference",
    default=None,
    help="Append the reference column again after the candidates (overrides the plan).",
)
@click.option("--data-set", "data_sets", multiple=True, help="Only run the named test data set (repeatable).")
@click.option("--list", "list_only", is_flag=True, help="List cases, data sets and versions without running.")
@click.option("--no-color", is_flag=True, help="Disable ANSI colors in terminal output.")
@click.pass_obj
def run(
    state: CliState,
    plan_path: str,
    report_format: str,
    report_path: Optional[str],
    repeat_reference: Optional[bool],
    data_sets: Tuple[str, ...],
    list_only: bool,
    no_color: bool,
) -> None:
    """Execute a matrix plan against every configured version."""

    options = PlanOptions(
        report_format=report_format,
        report_path=report_path,
        repeat_reference=repeat_reference,
        data_sets=tuple(data_sets),
        list_only=list_only,
        use_color=not no_color,
    )
    try:
        plan = load_plan(plan_path)
        exit_code = run_plan(plan, options)
    except (VermatrixError, OSError, ValueError) as exc:
        if state.verbose:
            logging.getLogger(__name__).exception("run failed")
        raise click.ClickException(str(exc)) from exc
    raise click.exceptions.Exit(exit_code)


@cli.command()
def suites() -> None:
    """List registered suites."""

    for name in sorted(registry.names()):
        suite = registry.create(name)
        click.echo(f"{name}: {suite.description or suite.name} ({len(suite)} cases)")


def main(argv: Optional[list[str]] = None) -> int:
    """Program entry point for console_scripts shim."""

    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=argv, prog_name="vermatrix", standalone_mode=True)
    except click.ClickException as err:  # pragma: no cover - click handles display
        err.show()
        return err.exit_code
    except SystemExit as exc:
        return int(exc.code or 0)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
