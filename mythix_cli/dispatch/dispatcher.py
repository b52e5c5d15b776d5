"""Scoped command dispatcher.

Candidate command names are tried in registration order against the next
positional token.  Once a name matches, the dispatcher records it as the
selected command, enters a scope named after it and decides inside that
scope whether the command may run:

* its runner (pre-check) may decline, which shows the command's help;
* a ``help`` flag visible from the scope shows the command's help;
* otherwise the command is matched.

A matched literal is final: the dispatcher never falls through to later
candidates, even when the runner declines.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from .context import ArgumentContext, MatchResult
from .registry import CommandDescriptor, as_descriptors

ShowHelp = Callable[[str | None], Any]


class RunnerOutcome(Enum):
    """Decision returned by a command runner."""

    PROCEED = "proceed"
    DECLINE = "decline"
    PENDING = "pending"

    @classmethod
    def of(cls, value: Any) -> "RunnerOutcome":
        """Classify a raw runner result.

        Awaitables are ``PENDING`` until awaited; any other value is judged
        by its truthiness.
        """
        if isinstance(value, RunnerOutcome):
            return value
        if inspect.isawaitable(value):
            return cls.PENDING
        return cls.PROCEED if value else cls.DECLINE


class DispatchResult(Enum):
    """Outcome of trying to dispatch a command."""

    MATCHED = "matched"
    SHOW_HELP = "show_help"
    NO_MATCH = "no_match"


async def resolve_outcome(value: Any) -> RunnerOutcome:
    """Await a runner result until it is either PROCEED or DECLINE."""
    outcome = RunnerOutcome.of(value)
    while outcome is RunnerOutcome.PENDING:
        value = await value
        outcome = RunnerOutcome.of(value)
    return outcome


def _no_help(target: str | None = None) -> None:
    return None


class Dispatcher:
    """Selects exactly one command from the leftover command-line tokens."""

    def __init__(
        self,
        commands: Mapping[str, Any],
        application: Any = None,
        show_help: ShowHelp | None = None,
    ) -> None:
        self.commands = as_descriptors(commands)
        self.application = application
        self.show_help = show_help or _no_help

    async def run(self, context: ArgumentContext) -> DispatchResult:
        """Try every command in registration order and stop at the first match."""
        for name in self.commands:
            result = await self.match_command(name, context)
            if result is not DispatchResult.NO_MATCH:
                return result
        return DispatchResult.NO_MATCH

    async def match_command(self, name: str, context: ArgumentContext) -> DispatchResult:
        """Attempt a single command.  A miss leaves *context* untouched."""
        descriptor = self.commands[name]

        async def on_match(ctx: ArgumentContext, parser_result: MatchResult) -> DispatchResult:
            ctx.store(command=name)
            return await ctx.scope(
                name, lambda scoped: self._enter(descriptor, scoped, parser_result)
            )

        result = await context.match(name, on_match)
        if not isinstance(result, DispatchResult):
            return DispatchResult.NO_MATCH
        return result

    async def _enter(
        self,
        descriptor: CommandDescriptor,
        context: ArgumentContext,
        parser_result: MatchResult,
    ) -> DispatchResult:
        if descriptor.has_runner:
            runner = await descriptor.resolve_runner(self.application)
            if runner is not None:
                outcome = await resolve_outcome(runner(context, parser_result))
                if outcome is RunnerOutcome.DECLINE:
                    self.show_help(descriptor.name)
                    return DispatchResult.SHOW_HELP

        if context.fetch("help", False):
            self.show_help(descriptor.name)
            return DispatchResult.SHOW_HELP

        return DispatchResult.MATCHED


async def dispatch(
    commands: Mapping[str, Any],
    context: ArgumentContext,
    show_help: ShowHelp | None = None,
    application: Any = None,
) -> bool:
    """Dispatch *context* over *commands*.

    Returns:
        ``True`` if a command matched and may be executed; the selected name
        is then available as ``context.selected_command``.
    """
    result = await Dispatcher(commands, application, show_help).run(context)
    return result is DispatchResult.MATCHED
