"""Scoped argument context.

The context owns the command-line tokens left over after global option
parsing and a stack of named frames.  Frames are immutable: ``store``
replaces the innermost frame with an updated copy, and ``fetch`` searches
from the innermost frame outwards.  Entering a scope pushes a frame; leaving
it pops the frame and records its values in the parent frame's ``scopes``
mapping, so ``scope_values("create")`` returns what the ``create`` scope
collected without shadowing any key stored in the parent.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from mythix_cli.utils import maybe_await

MISSING: Any = object()
SCOPES_KEY = "scopes"


class ArgumentError(ValueError):
    """Raised when a command-line option is malformed."""


@dataclass(frozen=True)
class Frame:
    """One named level of the argument context."""

    name: str
    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def with_values(self, updates: Mapping[str, Any]) -> "Frame":
        """Return a copy of this frame with *updates* applied."""
        return Frame(self.name, MappingProxyType({**self.values, **updates}))


@dataclass(frozen=True)
class MatchResult:
    """A positional token consumed by :meth:`ArgumentContext.match`."""

    token: str
    index: int
    groups: tuple[str | None, ...] = ()
    named: Mapping[str, str | None] = field(default_factory=dict)


def _option_key(names: Sequence[str]) -> str:
    longest = max(names, key=len)
    return longest.lstrip("-").replace("-", "_")


def _is_option(token: str) -> bool:
    return token.startswith("-") and token != "-"


class ArgumentContext:
    """Token stream plus a stack of immutable frames."""

    def __init__(self, tokens: Sequence[str] = ()) -> None:
        self._tokens: list[str] = list(tokens)
        self._consumed: set[int] = set()
        self._frames: tuple[Frame, ...] = (Frame(""),)

    # -- Frames ------------------------------------------------------------

    @property
    def frames(self) -> tuple[Frame, ...]:
        return self._frames

    @property
    def scope_path(self) -> tuple[str, ...]:
        """Names of the entered scopes, outermost first."""
        return tuple(frame.name for frame in self._frames[1:])

    @property
    def selected_command(self) -> str | None:
        return self.fetch("command")

    def store(self, mapping: Mapping[str, Any] | None = None, **values: Any) -> None:
        """Store values in the current scope (visible to nested scopes)."""
        updates = {**(mapping or {}), **values}
        self._frames = self._frames[:-1] + (self._frames[-1].with_values(updates),)

    def fetch(self, key: str, default: Any = None) -> Any:
        """Read the value of *key* from the nearest enclosing scope."""
        for frame in reversed(self._frames):
            if key in frame.values:
                return frame.values[key]
        return default

    def scope_values(self, name: str) -> Mapping[str, Any]:
        """Values collected by the most recently exited scope named *name*."""
        return self.fetch(SCOPES_KEY, {}).get(name, MappingProxyType({}))

    def snapshot(self) -> dict[str, Any]:
        """All visible values merged, inner scopes overriding outer ones."""
        merged: dict[str, Any] = {}
        for frame in self._frames:
            merged.update(frame.values)
        return merged

    async def scope(self, name: str, body: Callable[["ArgumentContext"], Any]) -> Any:
        """Run *body* inside a new frame named *name*."""
        depth = len(self._frames)
        self._frames = self._frames + (Frame(name),)
        try:
            return await maybe_await(body(self))
        finally:
            frame = self._frames[depth]
            self._frames = self._frames[:depth]
            scopes = self._frames[-1].values.get(SCOPES_KEY, {})
            self.store({SCOPES_KEY: MappingProxyType({**scopes, name: frame.values})})

    # -- Tokens ------------------------------------------------------------

    def remaining(self) -> list[str]:
        """Tokens nothing has consumed yet."""
        return [token for _index, token in self._unconsumed()]

    async def match(
        self,
        pattern: str | re.Pattern[str],
        body: Callable[["ArgumentContext", MatchResult], Any] | None = None,
    ) -> Any:
        """Try to consume the next positional token.

        A string *pattern* must equal the token; a compiled pattern must
        match all of it.  On a match the token is consumed and *body* is
        called with this context and a ``MatchResult``; its result is
        returned (``True`` without a body).  Otherwise nothing changes and
        ``False`` is returned.
        """
        position = self._next_positional()
        if position is None:
            return False

        index, token = position
        if isinstance(pattern, re.Pattern):
            found = pattern.fullmatch(token)
            if found is None:
                return False
            result = MatchResult(token, index, found.groups(), found.groupdict())
        else:
            if token != pattern:
                return False
            result = MatchResult(token, index)

        self._consumed.add(index)
        if body is None:
            return True
        return await maybe_await(body(self, result))

    def option(
        self,
        *names: str,
        name: str | None = None,
        default: Any = MISSING,
        convert: Callable[[str], Any] | None = None,
    ) -> bool:
        """Consume a valued option such as ``--dir path`` or ``--dir=path``.

        The value is stored in the current scope under *name* (derived from
        the longest option name when omitted).  When the option is absent
        *default* is stored instead, if one was given.

        Returns:
            ``True`` if the option was present on the command line.

        Raises:
            ArgumentError: If the option is present without a value.
        """
        key = name or _option_key(names)

        for index, token in self._unconsumed():
            for option_name in names:
                if token == option_name:
                    value_index = index + 1
                    if value_index >= len(self._tokens) or value_index in self._consumed:
                        raise ArgumentError(f"Option {option_name} expects a value")
                    self._consumed.update((index, value_index))
                    raw = self._tokens[value_index]
                elif token.startswith(option_name + "="):
                    self._consumed.add(index)
                    raw = token[len(option_name) + 1:]
                else:
                    continue

                self.store({key: convert(raw) if convert else raw})
                return True

        if default is not MISSING:
            self.store({key: default})
        return False

    def flag(self, *names: str, name: str | None = None) -> bool:
        """Consume a boolean switch such as ``--force``; stores ``True`` if present."""
        key = name or _option_key(names)
        for index, token in self._unconsumed():
            if token in names:
                self._consumed.add(index)
                self.store({key: True})
                return True
        return False

    # -- Internal helpers --------------------------------------------------

    def _unconsumed(self) -> Iterator[tuple[int, str]]:
        for index, token in enumerate(self._tokens):
            if index not in self._consumed:
                yield index, token

    def _next_positional(self) -> tuple[int, str] | None:
        for index, token in self._unconsumed():
            if not _is_option(token):
                return index, token
        return None
