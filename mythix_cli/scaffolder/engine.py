"""Template engine for freshly cloned projects.

Walks a project tree, renames every file and directory whose base name
carries ``__NAME__`` tokens, and rewrites file contents carrying
``<<<NAME>>>`` tokens.  Dependency directories are never entered.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from stat import S_ISDIR

from .tokens import TokenContext, substitute_content, substitute_file_name
from .walker import FileNode, walk_dir

DEPENDENCY_DIRS: frozenset[str] = frozenset({"node_modules", ".venv"})


@dataclass
class TemplateReport:
    """What a single templating pass changed on disk."""

    renamed: list[tuple[Path, Path]] = field(default_factory=list)
    rewritten: list[Path] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.renamed or self.rewritten)


class TemplateEngine:
    """Applies a token context to every entry of a project tree.

    The engine assumes exclusive ownership of the tree for the duration of
    :meth:`apply`.  Any rename, read or write failure propagates and leaves
    the tree partially templated.
    """

    def __init__(
        self,
        context: TokenContext,
        excluded_dirs: Iterable[str] = DEPENDENCY_DIRS,
        encoding: str = "utf-8",
    ) -> None:
        self.context = context
        self.excluded_dirs = frozenset(excluded_dirs)
        self.encoding = encoding

    # -- Public API --------------------------------------------------------

    def apply(self, project_path: str | Path) -> TemplateReport:
        """Template the whole tree rooted at *project_path*.

        Returns:
            A ``TemplateReport`` listing renamed entries and rewritten files.
        """
        report = TemplateReport()
        walk_dir(
            project_path,
            filter=self._include,
            visit=lambda node: self._visit(node, report),
        )
        return report

    def render_file(self, file_path: str | Path) -> bool:
        """Rewrite the tokens in a single file.

        The file is only written when substitution changed its content.
        Bytes that are not valid in the engine's encoding are carried through
        unchanged, so binary files without tokens are never touched.

        Returns:
            ``True`` if the file was rewritten.
        """
        path = Path(file_path)
        content = path.read_bytes().decode(self.encoding, errors="surrogateescape")
        new_content = substitute_content(content, self.context)
        if new_content == content:
            return False

        path.write_bytes(new_content.encode(self.encoding, errors="surrogateescape"))
        return True

    # -- Internal helpers --------------------------------------------------

    def _include(
        self,
        path: Path,
        name: str,
        stat: os.stat_result,
        parent: Path,
        depth: int,
    ) -> bool:
        return not (name in self.excluded_dirs and S_ISDIR(stat.st_mode))

    def _visit(self, node: FileNode, report: TemplateReport) -> None:
        path = node.path

        new_name = substitute_file_name(node.name, self.context)
        if new_name != node.name:
            target = node.parent / new_name
            path.rename(target)
            report.renamed.append((path, target))
            path = target

        if node.is_file and self.render_file(path):
            report.rewritten.append(path)


def apply_template(project_path: str | Path, context: TokenContext) -> TemplateReport:
    """Run a single templating pass with the default exclusions."""
    return TemplateEngine(context).apply(project_path)
