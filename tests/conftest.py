"""Shared pytest fixtures for the mythix-cli test suite.

Provides reusable fixtures for:
- Temporary project directories and template trees
- Mock subprocess helpers
- A fake host application package with a project configuration file
- A recording Rich console
"""

from __future__ import annotations

import io
import json
import sys
import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from rich.console import Console


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Temporary directory for generated projects (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def template_tree(tmp_project_dir: Path) -> Path:
    """A cloned template project carrying file-name and content tokens.

    Layout::

        __APP_NAME__.config.js              content token APP_NAME
        README.md                           APP_DISPLAY_NAME + unknown token
        LICENSE                             no tokens
        app/__init__.py                     lowercase dunder, never renamed
        app/__APP_NAME__/base.py            token directory
        node_modules/__APP_NAME__/index.js  dependency directory, pruned
    """
    files: dict[str, str] = {
        "__APP_NAME__.config.js": 'module.exports = { name: "<<<APP_NAME>>>" };\n',
        "README.md": "# <<<APP_DISPLAY_NAME>>>\n\nBuilt with <<<UNKNOWN_TOKEN>>>mythix.\n",
        "LICENSE": "MIT License\n",
        "app/__init__.py": "",
        "app/__APP_NAME__/base.py": "APP = '<<<APP_NAME>>>'\n",
        "node_modules/__APP_NAME__/index.js": "// <<<APP_NAME>>>\n",
    }

    for rel_path, content in files.items():
        file_path = tmp_project_dir / rel_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")

    return tmp_project_dir


# ---------------------------------------------------------------------------
# Subprocess Mocking
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


# ---------------------------------------------------------------------------
# Console capture
# ---------------------------------------------------------------------------

@pytest.fixture
def recording_console() -> Console:
    """A wide, colourless Rich console writing into memory."""
    return Console(file=io.StringIO(), width=200, color_system=None, record=True)


# ---------------------------------------------------------------------------
# Fake host application
# ---------------------------------------------------------------------------

DEMO_APPLICATION_SOURCE = textwrap.dedent(
    '''
    import re

    EVENTS = []
    INSTANCES = []


    class ServeCommand:
        def __init__(self, application, arguments):
            self.application = application

        def execute(self, arguments):
            EVENTS.append(("serve", arguments["command"]))
            return 0


    class MigrateCommand:
        @classmethod
        def command_arguments(cls, application, mode):
            def store_revision(context, result):
                context.store(revision=result.token)
                return True

            async def runner(context, parser_result):
                return await context.match(re.compile(r"\\d+"), store_revision)

            return {
                "help": {
                    "@usage": "mythix-cli migrate [revision]",
                    "@title": "Run database migrations",
                },
                "runner": runner,
            }

        def __init__(self, application, arguments):
            self.application = application

        async def execute(self, arguments):
            EVENTS.append(("migrate", arguments["scopes"]["migrate"]["revision"]))
            return 0


    class FailCommand:
        def __init__(self, application, arguments):
            pass

        def execute(self, arguments):
            raise RuntimeError("command exploded")


    class ExitCodeCommand:
        def __init__(self, application, arguments):
            pass

        def execute(self, arguments):
            return 3


    class Application:
        def __init__(self, **options):
            self.options = options
            self.stopped = False
            INSTANCES.append(self)

        @classmethod
        def get_command_list(cls):
            return {
                "serve": ServeCommand,
                "migrate": MigrateCommand,
                "fail": FailCommand,
                "exit-code": ExitCodeCommand,
            }

        async def stop(self):
            self.stopped = True


    NOT_A_CLASS = object()
    '''
)


@pytest.fixture
def demo_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory holding a fake host application and its config.

    The application lives in ``demo_app/application.py`` and is named in
    ``.mythix-config.json``.  ``sys.path`` and ``sys.modules`` are restored
    after the test.
    """
    project_dir = tmp_path / "demo-project"
    package_dir = project_dir / "demo_app"
    package_dir.mkdir(parents=True)
    (package_dir / "__init__.py").write_text("", encoding="utf-8")
    (package_dir / "application.py").write_text(DEMO_APPLICATION_SOURCE, encoding="utf-8")
    (project_dir / ".mythix-config.json").write_text(
        json.dumps({"application": "demo_app.application:Application"}),
        encoding="utf-8",
    )

    monkeypatch.setattr(sys, "path", list(sys.path))
    monkeypatch.setenv("PWD", str(project_dir))
    monkeypatch.delenv("MYTHIX_CONFIG_PATH", raising=False)
    monkeypatch.delenv("MYTHIX_ENV", raising=False)

    yield project_dir

    for name in list(sys.modules):
        if name == "demo_app" or name.startswith("demo_app."):
            del sys.modules[name]
