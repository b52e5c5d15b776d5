"""Help document rendering.

A help document is a nested mapping.  The reserved keys ``@usage``,
``@title`` and ``@see`` hold metadata; string values are option
descriptions keyed by their usage line; mapping values are the documents of
sub-commands keyed by command name.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.table import Table
from rich.text import Text

from mythix_cli.utils import console as default_console

HelpDocument = dict[str, Any]

METADATA_KEYS = ("@usage", "@title", "@see")


def render_help(document: Mapping[str, Any], console: Console | None = None) -> None:
    """Print a help document.

    Args:
        document: The document to render.
        console: Target console.  Defaults to the shared mythix-cli console.
    """
    out = console or default_console

    usage = document.get("@usage")
    title = document.get("@title")
    see = document.get("@see")

    if usage:
        out.print(Text.assemble(("Usage: ", "bold"), str(usage)))
    if title:
        out.print(Text(str(title)))

    options = [
        (key, value)
        for key, value in document.items()
        if key not in METADATA_KEYS and not isinstance(value, Mapping)
    ]
    commands = [
        (key, value)
        for key, value in document.items()
        if key not in METADATA_KEYS and isinstance(value, Mapping)
    ]

    if options:
        out.print()
        out.print(Text("Options:", style="bold"))
        table = Table.grid(padding=(0, 2))
        table.add_column(style="cyan")
        table.add_column()
        for key, value in options:
            table.add_row(Text("  " + key), Text(str(value)))
        out.print(table)

    if commands:
        out.print()
        out.print(Text("Commands:", style="bold"))
        table = Table.grid(padding=(0, 2))
        table.add_column(style="green", no_wrap=True)
        table.add_column()
        for key, value in commands:
            table.add_row(Text("  " + key), Text(str(value.get("@title", ""))))
        out.print(table)

    if see:
        out.print()
        out.print(Text(str(see), style="dim"))


class HelpPrinter:
    """Shows help at most once per invocation.

    Both a declining command and the global fallback may ask for help during
    the same run; only the first request is rendered.
    """

    def __init__(self, document: Mapping[str, Any], console: Console | None = None) -> None:
        self.document = document
        self.console = console
        self.shown = False

    def resolve(self, target: str | Mapping[str, Any] | None = None) -> Mapping[str, Any]:
        """Pick the document to show for *target*.

        ``None`` selects the whole document, a command name selects that
        command's section (the whole document when unknown), and a mapping is
        used as-is.
        """
        if target is None:
            return self.document
        if isinstance(target, Mapping):
            return target
        section = self.document.get(target)
        if isinstance(section, Mapping):
            return section
        return self.document

    def show(self, target: str | Mapping[str, Any] | None = None) -> bool:
        """Render help unless it was already shown.

        Returns:
            ``True`` if help was rendered by this call.
        """
        if self.shown:
            return False
        self.shown = True
        render_help(self.resolve(target), self.console)
        return True

    __call__ = show
