"""Command descriptors and the command registry.

Host applications expose their commands as a mapping of command name to
command class.  At load time every entry is wrapped in a
``CommandDescriptor`` whose capabilities (help, runner, executor) are fixed
flags, so nothing downstream needs to probe the host objects again.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from mythix_cli.utils import maybe_await

from .context import ArgumentContext, MatchResult
from .help import HelpDocument

CLI_NAME = "mythix-cli"

HELP_MODE = "help"
RUNNER_MODE = "runner"

Runner = Callable[[ArgumentContext, MatchResult], Any]
Handler = Callable[[Any, dict[str, Any]], Any]


class CommandExecutionError(Exception):
    """Raised when a selected command cannot be executed."""


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------


class CommandDescriptor:
    """Declaration of one invocable command.

    Subclasses set the capability flags and override the matching methods.
    """

    has_help: bool = False
    has_runner: bool = False
    has_executor: bool = False

    def __init__(self, name: str) -> None:
        self.name = name

    async def describe_help(self, application: Any = None) -> HelpDocument | None:
        """Return this command's help fragment, if it has one."""
        return None

    async def resolve_runner(self, application: Any = None) -> Runner | None:
        """Return the pre-check run when this command is matched, if any."""
        return None

    async def execute(self, application: Any, arguments: dict[str, Any]) -> Any:
        """Run the command with the collected arguments."""
        raise CommandExecutionError(f'Command "{self.name}" has no executor')

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class SimpleCommand(CommandDescriptor):
    """Descriptor assembled from explicit help, runner and handler values."""

    def __init__(
        self,
        name: str,
        help: HelpDocument | None = None,
        runner: Runner | None = None,
        handler: Handler | None = None,
    ) -> None:
        super().__init__(name)
        self.help = help
        self.runner = runner
        self.handler = handler
        self.has_help = help is not None
        self.has_runner = runner is not None
        self.has_executor = handler is not None

    async def describe_help(self, application: Any = None) -> HelpDocument | None:
        return self.help

    async def resolve_runner(self, application: Any = None) -> Runner | None:
        return self.runner

    async def execute(self, application: Any, arguments: dict[str, Any]) -> Any:
        if self.handler is None:
            return await super().execute(application, arguments)
        return await maybe_await(self.handler(application, arguments))


class CommandClassDescriptor(CommandDescriptor):
    """Wraps a host application's command class.

    The class may define ``command_arguments(application, mode)`` returning
    ``{"help": ..., "runner": ...}`` for *mode* ``"help"`` or ``"runner"``,
    and is executed as ``command_class(application, arguments).execute(arguments)``.
    Either hook may be a coroutine function.
    """

    def __init__(self, name: str, command_class: Any) -> None:
        super().__init__(name)
        self.command_class = command_class
        self._command_arguments = getattr(command_class, "command_arguments", None)
        self.has_help = self.has_runner = callable(self._command_arguments)
        self.has_executor = callable(getattr(command_class, "execute", None))

    async def _arguments_for(self, application: Any, mode: str) -> Mapping[str, Any]:
        if not callable(self._command_arguments):
            return {}
        result = await maybe_await(self._command_arguments(application, mode))
        return result or {}

    async def describe_help(self, application: Any = None) -> HelpDocument | None:
        return (await self._arguments_for(application, HELP_MODE)).get("help")

    async def resolve_runner(self, application: Any = None) -> Runner | None:
        return (await self._arguments_for(application, RUNNER_MODE)).get("runner")

    async def execute(self, application: Any, arguments: dict[str, Any]) -> Any:
        if not self.has_executor:
            return await super().execute(application, arguments)
        command = self.command_class(application, arguments)
        return await maybe_await(command.execute(arguments))


def as_descriptors(commands: Mapping[str, Any]) -> dict[str, CommandDescriptor]:
    """Wrap a host command mapping, keeping its registration order."""
    descriptors: dict[str, CommandDescriptor] = {}
    for name, command in commands.items():
        if isinstance(command, CommandDescriptor):
            descriptors[name] = command
        else:
            descriptors[name] = CommandClassDescriptor(name, command)
    return descriptors


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def default_help(name: str) -> HelpDocument:
    """Help fragment for a command that does not describe itself."""
    return {
        "@usage": f"{CLI_NAME} {name}",
        "@title": f'Invoke the "{name}" command',
        "@see": f"See: '{CLI_NAME} {name} --help' for more help",
    }


@dataclass
class CommandRegistry:
    """The global help document plus the ordered dispatch table."""

    help: HelpDocument
    handlers: dict[str, CommandDescriptor]


async def build_registry(
    commands: Mapping[str, Any],
    application: Any = None,
    base_help: Mapping[str, Any] | None = None,
) -> CommandRegistry:
    """Build the help document and dispatch table for *commands*.

    Args:
        commands: Command name to descriptor (or host command class).
        application: Passed to help producers.
        base_help: Top-level document (usage, title, global options) the
            command sections are added to.  It is copied, never modified.
    """
    document: HelpDocument = copy.deepcopy(dict(base_help or {}))
    handlers = as_descriptors(commands)

    for name, descriptor in handlers.items():
        fragment = None
        if descriptor.has_help:
            fragment = await descriptor.describe_help(application)

        section = copy.deepcopy(dict(fragment)) if fragment else default_help(name)
        if not section.get("@see"):
            section["@see"] = f"See: '{CLI_NAME} {name} --help' for more help"

        document[name] = section

    return CommandRegistry(help=document, handlers=handlers)
