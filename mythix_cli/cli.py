"""``mythix-cli`` launcher.

Commands normally run in-process.  When a runtime is configured (through
``--runtime`` or ``"runtime"`` in ``.mythix-config.json``), the command
runner is started under that interpreter instead, e.g. the Python of a
project virtualenv, and its exit code is passed through.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Sequence

from pydantic import ValidationError

from mythix_cli.config import CLIConfig, ProjectConfig
from mythix_cli.runner import run
from mythix_cli.utils import print_error, run_command

RUNNER_MODULE = "mythix_cli.runner"


def runtime_candidates(runtime: str, platform: str | None = None) -> list[str]:
    """Executables to try for *runtime*, in order.

    On Windows a ``.cmd`` shim is tried when the bare name is not found.
    """
    platform = platform or sys.platform
    candidates = [runtime]
    if platform == "win32" and not runtime.lower().endswith(".cmd"):
        candidates.append(f"{runtime}.cmd")
    return candidates


async def launch(cli_config: CLIConfig, argv: Sequence[str]) -> int:
    """Run the command runner under ``cli_config.runtime``.

    Raises:
        ValueError: If no runtime is configured.
    """
    if not cli_config.runtime:
        raise ValueError("launch requires a configured runtime")

    candidates = runtime_candidates(cli_config.runtime)
    for position, executable in enumerate(candidates, start=1):
        cmd = [executable, *cli_config.runtime_args, "-m", RUNNER_MODULE, *argv]
        try:
            returncode, _stdout, _stderr = await run_command(
                cmd, cwd=cli_config.cwd, capture=False
            )
        except FileNotFoundError:
            if position < len(candidates):
                continue
            print_error(f"Error: runtime not found: {cli_config.runtime}")
            return 1
        return returncode

    return 1


def resolve_cli_config(argv: Sequence[str]) -> CLIConfig:
    """Work out the runtime settings for *argv* without parsing commands."""
    parser = argparse.ArgumentParser(add_help=False, allow_abbrev=False, exit_on_error=False)
    parser.add_argument("--config", default=None)
    parser.add_argument("--runtime", default=None)
    try:
        options, _ = parser.parse_known_args(list(argv))
    except argparse.ArgumentError:
        # The runner reports malformed options itself.
        options = argparse.Namespace(config=None, runtime=None)

    cli_config = CLIConfig.from_env(config_path=options.config, runtime=options.runtime)
    try:
        project_config = ProjectConfig.load(cli_config.config_path)
    except ValidationError:
        # Reported by the runner once it loads the application.
        return cli_config
    return cli_config.with_project(project_config)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``mythix-cli``."""
    args = list(sys.argv[1:] if argv is None else argv)
    cli_config = resolve_cli_config(args)

    if not cli_config.runtime:
        sys.exit(asyncio.run(run(args)))
    sys.exit(asyncio.run(launch(cli_config, args)))


if __name__ == "__main__":
    main()
