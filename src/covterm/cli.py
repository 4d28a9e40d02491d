"""Definition of the command line interface."""

from __future__ import annotations

import dataclasses
import logging
import sys
from pathlib import Path
from typing import Annotated, NoReturn

import colorama
import typer
from typer.main import get_command

from covterm import __version__, logger
from covterm.config import LOG_FORMAT, TerminalConfig
from covterm.coverage import load_coverage, resolve_coverage_path
from covterm.errors import ConfigurationError, CoverageDataError, CoverageDataNotFoundError
from covterm.explain import render_rule_table
from covterm.highlight import PlainHighlighter
from covterm.mapping import resolve
from covterm.model import RunState
from covterm.report import TerminalFormatter

EXIT_OK = 0
EXIT_GENERIC = 1
EXIT_DATAERR = 65
EXIT_NOINPUT = 66
EXIT_CONFIG = 78


@dataclasses.dataclass(slots=True)
class GlobalOptions:
    """Flags of the root command shared by every sub-command."""

    debug: bool = False
    quiet: bool = False
    verbose: bool = False


def _configure_runtime(*, quiet: bool, verbose: bool, debug: bool) -> None:
    """Configure logging based on *quiet*/*verbose*."""
    level = logging.ERROR if quiet else (logging.DEBUG if verbose else logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    colorama.just_fix_windows_console()

    if debug:
        logger.debug("debug mode active")


def _abort(opts: GlobalOptions, exc: Exception, code: int) -> NoReturn:
    typer.echo(f"ERROR: {exc}", err=True)
    if opts.debug:
        raise exc
    raise typer.Exit(code=code) from exc


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"covterm {__version__}")
        raise typer.Exit


def _options(ctx: typer.Context) -> GlobalOptions:
    return ctx.obj if isinstance(ctx.obj, GlobalOptions) else GlobalOptions()


def register_report(app: typer.Typer) -> None:
    @app.command("report")
    def report_cmd(
        ctx: typer.Context,
        coverage_file: Annotated[
            Path | None,
            typer.Argument(help="SimpleCov .resultset.json or Cobertura XML file (discovered if omitted)."),
        ] = None,
        test_files: Annotated[
            list[str] | None,
            typer.Option("--test-file", "-t", help="Test file that was executed (repeatable)."),
        ] = None,
        failed: Annotated[
            bool,
            typer.Option("--failed", help="A test failed during the run."),
        ] = False,
        run_state: Annotated[
            Path | None,
            typer.Option("--run-state", help="Run snapshot written by the pytest plugin."),
        ] = None,
        highlight: Annotated[
            bool,
            typer.Option("--highlight/--no-highlight", help="Syntax-highlight the source lines."),
        ] = True,
        project_root: Annotated[
            Path | None,
            typer.Option("--project-root", help="Directory that mapped paths are relative to."),
        ] = None,
    ) -> None:
        """Print coverage of the application file targeted by a single test file."""
        opts = _options(ctx)
        root = project_root or Path.cwd()

        try:
            config = TerminalConfig.load(project_root=root)
            if config.disabled:
                raise typer.Exit(code=EXIT_OK)

            if run_state is not None:
                state = RunState.load(run_state)
            else:
                state = RunState(executed_test_files=tuple(test_files) if test_files else None, failure_occurred=failed)

            result = load_coverage(resolve_coverage_path(coverage_file, cwd=root))
            formatter = TerminalFormatter(config, state, highlighter=None if highlight else PlainHighlighter())
            report = formatter.format(result)
        except ConfigurationError as exc:
            _abort(opts, exc, EXIT_CONFIG)
        except CoverageDataNotFoundError as exc:
            _abort(opts, exc, EXIT_NOINPUT)
        except CoverageDataError as exc:
            _abort(opts, exc, EXIT_DATAERR)
        except OSError as exc:
            _abort(opts, exc, EXIT_GENERIC)

        if report.text:
            typer.echo(report.text, color=True)


def register_map(app: typer.Typer) -> None:
    @app.command("map")
    def map_cmd(
        ctx: typer.Context,
        test_file: Annotated[str, typer.Argument(help="Test file path, relative to the project root.")],
        explain: Annotated[
            bool,
            typer.Option("--explain", help="Show the rule table and which rule matched."),
        ] = False,
        project_root: Annotated[
            Path | None,
            typer.Option("--project-root", help="Directory holding pyproject.toml."),
        ] = None,
    ) -> None:
        """Print the application file a test file maps to."""
        opts = _options(ctx)
        try:
            config = TerminalConfig.load(project_root=project_root or Path.cwd())
            if explain:
                typer.echo(render_rule_table(config.rule_set, test_file, color=sys.stdout.isatty()))
            target = resolve(test_file, config.rule_set, override=config.target_file_override)
        except ConfigurationError as exc:
            _abort(opts, exc, EXIT_CONFIG)

        if target is None:
            typer.echo(f"{test_file} is unmappable")
        else:
            typer.echo(target)


def create_app() -> typer.Typer:
    app = typer.Typer(help="Annotated terminal coverage for the file a single test file exercises.")

    @app.callback()
    def _root(
        ctx: typer.Context,
        *,
        version: Annotated[
            bool,
            typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
        ] = False,
        debug: Annotated[bool, typer.Option("--debug", help="Show full tracebacks for errors")] = False,
        quiet: Annotated[bool, typer.Option("-q", "--quiet", help="Suppress INFO logs, emit only errors")] = False,
        verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Emit diagnostic logging")] = False,
    ) -> None:
        ctx.obj = GlobalOptions(debug=debug, quiet=quiet, verbose=verbose)
        _configure_runtime(quiet=quiet, verbose=verbose, debug=debug)

    register_report(app)
    register_map(app)

    return app


def main() -> None:
    app = create_app()
    get_command(app)()


# Click-compatible object for tooling that imports it
cli = get_command(create_app())

__all__ = [
    "EXIT_CONFIG",
    "EXIT_DATAERR",
    "EXIT_GENERIC",
    "EXIT_NOINPUT",
    "EXIT_OK",
    "cli",
    "create_app",
    "main",
]
