"""Command runner -- the entry orchestrator of mythix-cli.

Parses the global options, dispatches the built-in ``create`` command or
loads the host application and dispatches one of its commands, then
executes it and stops the application.

Run directly with ``python -m mythix_cli.runner`` or through the
``mythix-cli`` launcher.
"""

from __future__ import annotations

import argparse
import asyncio
import re
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from mythix_cli import __version__
from mythix_cli.application import (
    ConfigurationError,
    create_application,
    load_command_list,
    resolve_application_class,
    stop_application,
)
from mythix_cli.config import CLIConfig, DEFAULT_TEMPLATE, ProjectConfig
from mythix_cli.dispatch import (
    ArgumentContext,
    ArgumentError,
    DispatchResult,
    Dispatcher,
    HelpDocument,
    HelpPrinter,
    SCOPES_KEY,
    MatchResult,
    SimpleCommand,
    build_registry,
    dispatch,
)
from mythix_cli.scaffolder import CreateOptions, ProjectCreator, ScaffoldError
from mythix_cli.utils import console, print_error

APP_NAME_PATTERN = re.compile(r".+")

GLOBAL_HELP: HelpDocument = {
    "@usage": "mythix-cli [command] [options]",
    "@title": "Run a CLI command",
    "--config={config file path} | --config {config file path}": (
        'Specify the path to ".mythix-config.json". Default = "{CWD}/.mythix-config.json".'
    ),
    "-e={environment} | -e {environment} | --env={environment} | --env {environment}": (
        'Specify the default environment to use. Default = "development".'
    ),
    "--runtime={runtime} | --runtime {runtime}": (
        "Specify the Python interpreter used to launch the command. "
        "Default = the current interpreter."
    ),
    "--verbose": "Show full tracebacks for unexpected errors.",
    "--version": "Print the mythix-cli version and exit.",
}

CREATE_HELP: HelpDocument = {
    "@usage": "mythix-cli create [app name] [options]",
    "@title": "Initialize a blank mythix application",
    "@see": "See: 'mythix-cli create --help' for more help",
    "-d={path} | -d {path} | --dir={path} | --dir {path}": (
        'Specify directory to create new application in. Default = "./"'
    ),
    "-t={url} | -t {url} | --template={url} | --template {url}": (
        "Specify a git repository URL to use for a template to create the application with. "
        f'Append "#<branch or tag>" to select a ref. Default = "{DEFAULT_TEMPLATE}".'
    ),
}


def build_parser() -> argparse.ArgumentParser:
    """Parser for the options that apply to every command."""
    parser = argparse.ArgumentParser(
        prog="mythix-cli",
        add_help=False,
        allow_abbrev=False,
        exit_on_error=False,
    )
    parser.add_argument("--config", default=None)
    parser.add_argument("--runtime", default=None)
    parser.add_argument("-e", "--env", dest="environment", default=None)
    parser.add_argument("--version", action="store_true")
    parser.add_argument("--help", action="store_true")
    parser.add_argument("--verbose", action="store_true")
    return parser


def build_global_help() -> HelpDocument:
    """Global help before any application command is known."""
    return {**GLOBAL_HELP, "create": dict(CREATE_HELP)}


# ---------------------------------------------------------------------------
# Built-in commands
# ---------------------------------------------------------------------------


def builtin_commands(cli_config: CLIConfig) -> dict[str, SimpleCommand]:
    """Commands available without a host application."""

    async def create_runner(context: ArgumentContext, parser_result: MatchResult) -> bool:
        context.option(
            "--dir", "-d",
            name="dir",
            default=cli_config.cwd,
            convert=lambda value: (cli_config.cwd / value).resolve(),
        )
        context.option("--template", "-t", name="template", default=DEFAULT_TEMPLATE)

        def store_app_name(ctx: ArgumentContext, result: MatchResult) -> bool:
            ctx.store(app_name=result.token)
            return True

        return await context.match(APP_NAME_PATTERN, store_app_name)

    async def create_handler(application: Any, arguments: dict[str, Any]) -> int:
        scope = arguments.get(SCOPES_KEY, {}).get("create", {})
        options = CreateOptions(
            app_name=scope["app_name"],
            directory=Path(scope["dir"]),
            template=scope["template"],
        )
        await ProjectCreator().create(options)
        return 0

    return {
        "create": SimpleCommand(
            "create",
            help=dict(CREATE_HELP),
            runner=create_runner,
            handler=create_handler,
        ),
    }


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def _exit_code(result: Any) -> int:
    if isinstance(result, int) and not isinstance(result, bool):
        return result
    return 0


async def run_builtin(
    cli_config: CLIConfig,
    context: ArgumentContext,
    printer: HelpPrinter,
) -> int | None:
    """Dispatch the built-in commands.

    Returns:
        The exit code when a built-in command handled the invocation,
        ``None`` when none matched.
    """
    commands = builtin_commands(cli_config)
    result = await Dispatcher(commands, show_help=printer).run(context)
    if result is DispatchResult.NO_MATCH:
        return None
    if result is DispatchResult.SHOW_HELP:
        return 1

    descriptor = commands[context.selected_command]
    try:
        return _exit_code(await descriptor.execute(None, context.snapshot()))
    except ScaffoldError as exc:
        print_error(f"ERROR: {exc}")
        return 1


async def run_application(
    cli_config: CLIConfig,
    context: ArgumentContext,
    printer: HelpPrinter,
) -> int:
    """Load the host application, dispatch one of its commands and run it."""
    try:
        project_config = ProjectConfig.load(cli_config.config_path)
        application_class = resolve_application_class(project_config, cli_config.project_dir)
    except (ConfigurationError, ValidationError) as exc:
        print_error(f"Error: {exc}")
        printer.show()
        return 1

    application = await create_application(application_class, cli_config, project_config)
    try:
        commands = await load_command_list(application_class)
        registry = await build_registry(commands, application, base_help=printer.document)
        printer.document = registry.help

        context.store(application=application)
        if not await dispatch(registry.handlers, context, printer, application):
            printer.show()
            return 1

        descriptor = registry.handlers[context.selected_command]
        return _exit_code(await descriptor.execute(application, context.snapshot()))
    finally:
        await stop_application(application)


async def run(argv: Sequence[str] | None = None) -> int:
    """Run one CLI invocation and return its exit code."""
    tokens = [token for token in (sys.argv[1:] if argv is None else argv) if token != "--"]

    try:
        options, remaining = build_parser().parse_known_args(tokens)
    except argparse.ArgumentError as exc:
        print_error(f"Error: {exc}")
        return 1

    if options.version:
        console.print(__version__)
        return 0

    cli_config = CLIConfig.from_env(
        config_path=options.config,
        environment=options.environment,
        runtime=options.runtime,
    )
    printer = HelpPrinter(build_global_help())

    context = ArgumentContext(remaining)
    context.store(
        help=options.help,
        config=cli_config.config_path,
        environment=cli_config.environment,
    )

    try:
        exit_code = await run_builtin(cli_config, context, printer)
        if exit_code is not None:
            return exit_code
        return await run_application(cli_config, context, printer)
    except ArgumentError as exc:
        print_error(f"Error: {exc}")
        return 1
    except Exception as exc:
        if options.verbose:
            console.print_exception()
        else:
            print_error(f"Error: {exc}")
        return 1


def main() -> None:
    """CLI entry point for ``python -m mythix_cli.runner``."""
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
