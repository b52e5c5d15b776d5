"""mythix-cli scaffolder -- creates applications from template repositories.

A template repository is an ordinary project whose file names carry
``__NAME__`` tokens and whose file contents carry ``<<<NAME>>>`` tokens.

Quick usage::

    from mythix_cli.scaffolder import CreateOptions, ProjectCreator

    options = CreateOptions(app_name="My App", directory="/tmp")
    project_path = await ProjectCreator().create(options)
"""

from mythix_cli.scaffolder.creator import (
    CreateOptions,
    ProjectCreator,
    ScaffoldError,
    parse_template_url,
)
from mythix_cli.scaffolder.engine import (
    DEPENDENCY_DIRS,
    TemplateEngine,
    TemplateReport,
    apply_template,
)
from mythix_cli.scaffolder.tokens import (
    TokenContext,
    build_token_context,
    substitute_content,
    substitute_file_name,
)
from mythix_cli.scaffolder.walker import FileNode, walk_dir

__all__ = [
    "CreateOptions",
    "DEPENDENCY_DIRS",
    "FileNode",
    "ProjectCreator",
    "ScaffoldError",
    "TemplateEngine",
    "TemplateReport",
    "TokenContext",
    "apply_template",
    "build_token_context",
    "parse_template_url",
    "substitute_content",
    "substitute_file_name",
    "walk_dir",
]
