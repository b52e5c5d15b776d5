"""Create a new application from a template repository.

The steps run strictly in sequence:

1. ``git clone`` the template into ``<directory>/<app name>``.
2. Drop the template's git history.
3. Apply the template engine (file renames + content tokens).
4. Install the project's dependencies.
"""

from __future__ import annotations

import asyncio
import shutil
import sys
from pathlib import Path

from pydantic import BaseModel, Field

from mythix_cli.config import DEFAULT_TEMPLATE
from mythix_cli.utils import (
    format_app_name,
    print_next_steps,
    print_success,
    print_warning,
    run_command,
)

from .engine import TemplateEngine, TemplateReport
from .tokens import build_token_context


class ScaffoldError(Exception):
    """Raised when creating a project from a template fails."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


class CreateOptions(BaseModel):
    """Arguments of the ``create`` command."""

    app_name: str = Field(..., min_length=1, description="Name of the new application")
    directory: Path = Field(
        default_factory=Path.cwd, description="Parent directory of the new project"
    )
    template: str = Field(
        default=DEFAULT_TEMPLATE,
        description='Git URL of the template, optionally suffixed with "#<branch or tag>"',
    )

    @property
    def project_path(self) -> Path:
        return Path(self.directory).resolve() / format_app_name(self.app_name)


def parse_template_url(template: str) -> tuple[str, str | None]:
    """Split ``"<url>#<ref>"`` into its URL and optional branch/tag.

    Examples::

        parse_template_url("https://host/repo.git")        -> ("https://host/repo.git", None)
        parse_template_url("https://host/repo.git#v1.2.0") -> ("https://host/repo.git", "v1.2.0")
    """
    if "#" not in template:
        return template, None
    url, ref = template.rsplit("#", 1)
    ref = ref.strip()
    return url, (ref or None)


def install_command(project_path: Path) -> list[str] | None:
    """Pick the dependency install command for a project, if any."""
    if (project_path / "package.json").is_file():
        return ["npm", "install"]
    if (project_path / "pyproject.toml").is_file() or (project_path / "setup.py").is_file():
        return [sys.executable, "-m", "pip", "install", "-e", "."]
    return None


class ProjectCreator:
    """Clones, templates and installs a new application project."""

    def __init__(self, git: str = "git") -> None:
        self.git = git

    # -- Public API --------------------------------------------------------

    async def create(self, options: CreateOptions) -> Path:
        """Create a project and return its root directory.

        Raises:
            ScaffoldError: On any failure.  A partially created project is
                left in place for the user to inspect.
        """
        if not format_app_name(options.app_name):
            raise ScaffoldError(
                f"Application name '{options.app_name}' produces an empty project name."
            )

        project_path = options.project_path
        if project_path.exists():
            raise ScaffoldError(f"Destination already exists: {project_path}")

        url, ref = parse_template_url(options.template)
        await self.clone(url, project_path, ref=ref)
        await asyncio.to_thread(shutil.rmtree, project_path / ".git", ignore_errors=True)

        self.render(project_path, options.app_name)
        await self.install(project_path)

        self._print_summary(project_path)
        return project_path

    async def clone(self, url: str, destination: Path, ref: str | None = None) -> None:
        """Clone *url* into *destination*, optionally at branch/tag *ref*."""
        cmd = [self.git, "clone"]
        if ref:
            cmd += ["-b", ref]
        cmd += [url, str(destination)]
        await self._run_step(cmd, capture=True)

    def render(self, project_path: Path, app_name: str) -> TemplateReport:
        """Apply the template engine to a cloned project."""
        try:
            context = build_token_context(project_path, app_name)
            return TemplateEngine(context).apply(project_path)
        except (OSError, UnicodeError) as exc:
            raise ScaffoldError(f"Failed to template project at {project_path}: {exc}") from exc

    async def install(self, project_path: Path) -> None:
        """Install the project's dependencies once templating has finished."""
        cmd = install_command(project_path)
        if cmd is None:
            print_warning(
                f"No package manifest found in {project_path}; skipping dependency install."
            )
            return

        await self._run_step(
            cmd,
            cwd=project_path,
            env={"PWD": str(project_path)},
        )

    # -- Internal helpers --------------------------------------------------

    async def _run_step(
        self,
        cmd: list[str],
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
        capture: bool = False,
    ) -> None:
        cmd_str = " ".join(cmd)
        try:
            returncode, _stdout, stderr = await run_command(
                cmd, cwd=cwd, capture=capture, env=env
            )
        except OSError as exc:
            raise ScaffoldError(f"Unable to run {cmd_str}: {exc}", command=cmd_str) from exc

        if returncode != 0:
            raise ScaffoldError(
                f"Process {cmd[0]} exited with non-zero code ({returncode}): {cmd_str}",
                command=cmd_str,
                stderr=stderr,
            )

    def _print_summary(self, project_path: Path) -> None:
        print_success(f"Mythix application created at {project_path}")
        print_next_steps(
            "To finalize setup you need to",
            [
                f"Update the configuration files in {project_path / 'app' / 'config'}",
                "Define the models for your application",
                "Run migrations: `mythix-cli migrate`",
                "Finally run your application: `mythix-cli serve`",
            ],
        )
