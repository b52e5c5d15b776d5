"""mythix-cli command dispatch.

Key classes:
    ArgumentContext   - Command-line tokens plus a stack of immutable scopes
    CommandDescriptor - One invocable command (help, runner, executor)
    CommandRegistry   - Global help document and ordered dispatch table
    Dispatcher        - Selects the command to run from the context
    HelpPrinter       - Renders help at most once per invocation
"""

from .context import SCOPES_KEY, ArgumentContext, ArgumentError, Frame, MatchResult
from .dispatcher import (
    DispatchResult,
    Dispatcher,
    RunnerOutcome,
    dispatch,
    resolve_outcome,
)
from .help import HelpDocument, HelpPrinter, render_help
from .registry import (
    CommandClassDescriptor,
    CommandDescriptor,
    CommandExecutionError,
    CommandRegistry,
    SimpleCommand,
    as_descriptors,
    build_registry,
    default_help,
)

__all__ = [
    # Argument context
    "ArgumentContext",
    "ArgumentError",
    "Frame",
    "MatchResult",
    "SCOPES_KEY",
    # Dispatch
    "DispatchResult",
    "Dispatcher",
    "RunnerOutcome",
    "dispatch",
    "resolve_outcome",
    # Help
    "HelpDocument",
    "HelpPrinter",
    "render_help",
    # Registry
    "CommandClassDescriptor",
    "CommandDescriptor",
    "CommandExecutionError",
    "CommandRegistry",
    "SimpleCommand",
    "as_descriptors",
    "build_registry",
    "default_help",
]
