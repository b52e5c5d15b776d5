"""Shared utility functions for mythix-cli.

Provides async command execution, sync-or-async call helpers, application
name formatting, random token generation and Rich-based console output.
"""

from __future__ import annotations

import asyncio
import hashlib
import inspect
import os
import re
import secrets
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: float | None = None,
    capture: bool = True,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits for the process to exit on its own.
        capture: Whether to capture stdout/stderr (if ``False`` they inherit
            the parent's streams).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  If *capture* is ``False``
        the stdout/stderr strings will be empty.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    stdout_pipe = asyncio.subprocess.PIPE if capture else None
    stderr_pipe = asyncio.subprocess.PIPE if capture else None

    if isinstance(cmd, list):
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=stdout_pipe,
            stderr=stderr_pipe,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )
    else:
        process = await asyncio.create_subprocess_shell(
            cmd,
            stdout=stdout_pipe,
            stderr=stderr_pipe,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (
            -1,
            "",
            f"Command timed out after {timeout}s: {cmd if isinstance(cmd, str) else ' '.join(cmd)}",
        )

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


async def maybe_await(value: Any) -> Any:
    """Return *value*, awaiting it first when it is awaitable.

    Host applications may implement any of their hooks either as plain
    functions or as coroutines; every call site funnels the result through
    here.
    """
    if inspect.isawaitable(value):
        return await value
    return value


# ---------------------------------------------------------------------------
# String / name helpers
# ---------------------------------------------------------------------------


def format_app_name(name: str) -> str:
    """Convert a user supplied application name into a directory-safe name.

    Examples::

        format_app_name("My Cool App!") -> "my-cool-app"
        format_app_name("  __demo__  ") -> "demo"
    """
    result = re.sub(r"[^\w-]+", "-", name.strip())
    result = re.sub(r"^[^a-zA-Z0-9]+", "", result)
    result = re.sub(r"[^a-zA-Z0-9]+$", "", result)
    return result.lower()


def format_app_display_name(name: str) -> str:
    """Human friendly variant of :func:`format_app_name`.

    Examples::

        format_app_display_name("my-cool_app") -> "My Cool App"
    """
    words = re.sub(r"[^a-zA-Z0-9]+", " ", format_app_name(name)).split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def random_hash(algorithm: str = "sha256", length: int = 128) -> str:
    """Hex digest of *length* cryptographically random bytes."""
    digest = hashlib.new(algorithm)
    digest.update(secrets.token_bytes(length))
    return digest.hexdigest()


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")


def print_next_steps(title: str, steps: list[str]) -> None:
    """Print a numbered list of follow-up steps inside a panel.

    Args:
        title: Panel title.
        steps: One line of text per step, rendered in order.
    """
    body = "\n".join(f"  {index}) {step}" for index, step in enumerate(steps, start=1))
    console.print(Panel(escape(body), title=title, title_align="left", border_style="cyan"))
