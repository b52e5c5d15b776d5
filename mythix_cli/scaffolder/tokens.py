"""Token substitution for template projects.

Template repositories mark the places that depend on the new application
with named tokens.  Two grammars exist:

* ``__NAME__`` inside file and directory names.
* ``<<<NAME>>>`` inside file contents.

Token names match ``[A-Z0-9_-]+`` and are resolved through a *token
context*: a read-only mapping from token name to a zero-argument producer.
"""

from __future__ import annotations

import importlib.util
import re
from collections.abc import Callable, Mapping
from pathlib import Path
from types import MappingProxyType

from mythix_cli.utils import (
    format_app_display_name,
    format_app_name,
    print_warning,
    random_hash,
)

TokenContext = Mapping[str, Callable[[], object]]

FILE_NAME_TOKEN = re.compile(r"\b__([A-Z0-9_-]+?)__\b")
CONTENT_TOKEN = re.compile(r"<<<([A-Z0-9_-]+)>>>")

# Position markers left behind once real tokens are resolved.  Lowercase
# dunder names (``__init__.py``) never match.
_FILE_NAME_MARKER = re.compile(r"__([A-Z0-9_-]*?)__")
_TOKEN_NAME = re.compile(r"^[A-Z0-9_-]+$")

HELPERS_FILE_NAME = "mythix-cli-template-helpers.py"


def _resolve(context: TokenContext, name: str, missing: str) -> str:
    producer = context.get(name)
    if not callable(producer):
        return missing
    return str(producer())


def substitute_file_name(file_name: str, context: TokenContext) -> str:
    """Expand ``__NAME__`` tokens in a file or directory base name.

    Unknown tokens are replaced by their bare name so they stay visible in
    the resulting file name.
    """
    expanded = FILE_NAME_TOKEN.sub(
        lambda match: _resolve(context, match.group(1), match.group(1)),
        file_name,
    )
    return _FILE_NAME_MARKER.sub(r"\1", expanded)


def substitute_content(content: str, context: TokenContext) -> str:
    """Expand ``<<<NAME>>>`` tokens in text content.

    Unknown tokens are removed.  Producer output is never re-scanned.
    """
    return CONTENT_TOKEN.sub(
        lambda match: _resolve(context, match.group(1), ""),
        content,
    )


# ---------------------------------------------------------------------------
# Context construction
# ---------------------------------------------------------------------------


def load_template_helpers(project_path: str | Path) -> dict[str, Callable[[], object]]:
    """Load extra token producers shipped by a template repository.

    The template may carry a ``mythix-cli-template-helpers.py`` module at its
    root.  Every module-level callable whose name is a valid token name
    becomes a producer.  The helper file is removed from the project once it
    has been loaded, since it is not part of the generated application.
    """
    helpers_path = Path(project_path) / HELPERS_FILE_NAME
    if not helpers_path.is_file():
        return {}

    try:
        spec = importlib.util.spec_from_file_location(
            "mythix_cli_template_helpers", helpers_path
        )
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot build an import spec for {helpers_path}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    except Exception as exc:
        print_warning(f"Unable to import template helpers from {helpers_path}: {exc}")
        return {}

    helpers = {
        name: value
        for name, value in vars(module).items()
        if _TOKEN_NAME.match(name) and callable(value)
    }
    helpers_path.unlink()
    return helpers


def build_token_context(project_path: str | Path, app_name: str) -> TokenContext:
    """Build the token context for a freshly cloned template project.

    Built-in tokens take precedence over template helpers:

    * ``APP_NAME`` -- directory-safe application name.
    * ``APP_DISPLAY_NAME`` -- capitalised, human friendly name.
    * ``RANDOM_SHA256`` -- a new random hex digest on every use.
    """
    name = format_app_name(app_name)
    display_name = format_app_display_name(app_name)

    context: dict[str, Callable[[], object]] = dict(load_template_helpers(project_path))
    context["APP_NAME"] = lambda: name
    context["APP_DISPLAY_NAME"] = lambda: display_name
    context["RANDOM_SHA256"] = lambda: random_hash("sha256")
    return MappingProxyType(context)
