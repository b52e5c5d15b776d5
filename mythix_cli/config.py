"""mythix-cli configuration.

Two Pydantic v2 models:

* ``CLIConfig`` -- process-level settings (working directory, config file
  location, environment, runtime).  Built once at the entry point from the
  command line and the process environment, then passed down explicitly.
* ``ProjectConfig`` -- the contents of the project-local
  ``.mythix-config.json`` file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

CONFIG_FILE_NAME = ".mythix-config.json"
DEFAULT_ENVIRONMENT = "development"
DEFAULT_TEMPLATE = "https://github.com/th317erd/mythix-app-template.git"


class ProjectConfig(BaseModel):
    """Project-local configuration read from ``.mythix-config.json``."""

    application: str | None = Field(
        default=None,
        description='Import path of the application class, e.g. "app.application:Application"',
    )
    runtime: str | None = Field(
        default=None, description="Interpreter used to launch the command runner"
    )
    runtime_args: list[str] = Field(default_factory=list)
    application_options: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keyword arguments passed to the application constructor",
    )

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "ProjectConfig":
        """Load a project configuration file.

        A missing file yields the defaults.  Malformed JSON or invalid values
        raise ``pydantic.ValidationError``.
        """
        config_path = Path(path)
        if not config_path.is_file():
            return cls()
        raw = config_path.read_text(encoding="utf-8")
        return cls.model_validate_json(raw)


class CLIConfig(BaseModel):
    """Process-level settings for a single CLI invocation."""

    cwd: Path = Field(default_factory=Path.cwd)
    config_path: Path
    environment: str = Field(default=DEFAULT_ENVIRONMENT)
    runtime: str | None = Field(default=None)
    runtime_args: list[str] = Field(default_factory=list)

    @property
    def project_dir(self) -> Path:
        """Directory holding the project configuration file."""
        return self.config_path.parent

    @classmethod
    def from_env(
        cls,
        config_path: str | Path | None = None,
        environment: str | None = None,
        runtime: str | None = None,
        cwd: str | Path | None = None,
    ) -> "CLIConfig":
        """Build a ``CLIConfig`` from explicit values and environment variables.

        Explicit arguments always win.  Recognised variables (all optional):
            PWD, MYTHIX_CONFIG_PATH, MYTHIX_ENV.
        """
        if cwd is None:
            cwd = os.environ.get("PWD") or os.getcwd()
        working_dir = Path(cwd).resolve()

        if config_path:
            resolved_config = Path(config_path)
        elif os.environ.get("MYTHIX_CONFIG_PATH"):
            resolved_config = Path(os.environ["MYTHIX_CONFIG_PATH"])
        else:
            resolved_config = working_dir / CONFIG_FILE_NAME

        if not resolved_config.is_absolute():
            resolved_config = working_dir / resolved_config

        return cls(
            cwd=working_dir,
            config_path=resolved_config.resolve(),
            environment=environment or os.environ.get("MYTHIX_ENV") or DEFAULT_ENVIRONMENT,
            runtime=runtime,
        )

    def with_project(self, project: ProjectConfig) -> "CLIConfig":
        """Fill runtime settings the command line left unset from *project*."""
        return self.model_copy(
            update={
                "runtime": self.runtime or project.runtime,
                "runtime_args": self.runtime_args or list(project.runtime_args),
            }
        )
