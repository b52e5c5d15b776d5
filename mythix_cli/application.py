"""Loading and lifecycle of the host application.

The project configuration names the application class as
``"package.module:ClassName"``.  The class provides the command list
(``get_command_list()``) and instances are released with ``stop()``.  Any of
these hooks may be coroutine functions.
"""

from __future__ import annotations

import importlib
import inspect
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from mythix_cli.config import CONFIG_FILE_NAME, CLIConfig, ProjectConfig
from mythix_cli.utils import maybe_await


class ConfigurationError(Exception):
    """Raised when the host application cannot be resolved."""


def resolve_application_class(project_config: ProjectConfig, project_dir: str | Path) -> type:
    """Import the application class named by the project configuration.

    *project_dir* is put on ``sys.path`` first so project-local packages
    can be imported.

    Raises:
        ConfigurationError: If no class is configured, the module cannot be
            imported, or the named object is not a class.
    """
    target = project_config.application
    if not target:
        raise ConfigurationError(
            f'No application class configured. Set "application" in {CONFIG_FILE_NAME} '
            'to "package.module:ClassName".'
        )

    module_name, _, attribute_path = target.partition(":")
    if not module_name or not attribute_path:
        raise ConfigurationError(
            f'Invalid application path "{target}"; expected "package.module:ClassName".'
        )

    project_path = str(Path(project_dir).resolve())
    if project_path not in sys.path:
        sys.path.insert(0, project_path)

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f'Unable to import "{module_name}": {exc}') from exc

    for attribute in attribute_path.split("."):
        try:
            obj = getattr(obj, attribute)
        except AttributeError as exc:
            raise ConfigurationError(
                f'"{module_name}" has no attribute "{attribute_path}"'
            ) from exc

    if not inspect.isclass(obj):
        raise ConfigurationError(
            f'Expected "{target}" to be an application class, but found {type(obj).__name__}.'
        )
    return obj


async def create_application(
    application_class: type,
    cli_config: CLIConfig,
    project_config: ProjectConfig,
) -> Any:
    """Construct the application for command-line use.

    Network-facing subsystems are disabled; commands that need them enable
    them on their own.  A ``create`` classmethod, when present, is used as
    the factory instead of the constructor.
    """
    options: dict[str, Any] = {
        "cli": True,
        "database": False,
        "http_server": False,
        "environment": cli_config.environment,
        **project_config.application_options,
    }

    factory = getattr(application_class, "create", None)
    if callable(factory):
        return await maybe_await(factory(**options))
    return application_class(**options)


async def load_command_list(application_class: type) -> Mapping[str, Any]:
    """Return the application's command mapping, in registration order."""
    get_command_list = getattr(application_class, "get_command_list", None)
    if not callable(get_command_list):
        raise ConfigurationError(
            f"{application_class.__name__} does not define get_command_list()"
        )
    return (await maybe_await(get_command_list())) or {}


async def stop_application(application: Any) -> None:
    """Release whatever the application acquired while it was constructed."""
    stop = getattr(application, "stop", None)
    if callable(stop):
        await maybe_await(stop())
