"""Collect static import edges from TypeScript and JavaScript sources."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

from .config import PACKAGE_STORE_DIRECTORIES, should_skip_directory
from .logging_utils import log_event
from .types import ImportEdge
from .utils import blank_comments

logger = logging.getLogger("zonefence.core.import_collector")

SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mts", ".cts", ".mjs", ".cjs")
RESOLVE_EXTENSIONS = (
    ".ts",
    ".tsx",
    ".d.ts",
    ".js",
    ".jsx",
    ".mts",
    ".cts",
    ".mjs",
    ".cjs",
)
# `./foo.js` in TypeScript sources refers to `./foo.ts` on disk.
_EMITTED_TO_SOURCE = {
    ".js": (".ts", ".tsx"),
    ".jsx": (".tsx",),
    ".mjs": (".mts",),
    ".cjs": (".cts",),
}

# `import x from "m"`, `import "m"`, `export { x } from "m"`, `export * from "m"`.
_STATEMENT_RE = re.compile(
    r"""^[ \t]*(?P<keyword>import|export)\b\s*"""
    r"""(?:(?:(?!\b(?:import|export)\b)[^;'"`()=])*?\bfrom\s*)?"""
    r"""(?P<quote>['"])(?P<specifier>[^'"\n]+)(?P=quote)""",
    re.MULTILINE,
)


def is_external_import(module_specifier: str, resolved_path: Optional[str]) -> bool:
    if module_specifier.startswith(".") or module_specifier.startswith("/"):
        return False
    if resolved_path is not None:
        parts = resolved_path.replace("\\", "/").split("/")
        return any(part in PACKAGE_STORE_DIRECTORIES for part in parts)
    return True


def _package_parts(module_specifier: str) -> tuple[str, str]:
    parts = module_specifier.split("/")
    if module_specifier.startswith("@") and len(parts) >= 2:
        return "/".join(parts[:2]), "/".join(parts[2:])
    return parts[0], "/".join(parts[1:])


class ModuleResolver:
    """Resolve module specifiers to files on disk.

    `paths_mapping` uses targets relative to `root_dir`, as produced by
    `zonefence.core.project.load_paths_mapping`.
    """

    def __init__(
        self,
        root_dir: str,
        paths_mapping: Optional[Mapping[str, Sequence[str]]] = None,
    ) -> None:
        self.root_dir = os.path.abspath(root_dir)
        self.paths_mapping = dict(paths_mapping or {})

    def resolve(self, module_specifier: str, source_file: str) -> Optional[str]:
        if module_specifier.startswith("node:"):
            return None
        if module_specifier.startswith(".") or module_specifier.startswith("/"):
            base = os.path.join(os.path.dirname(source_file), module_specifier)
            return self._probe(base)
        aliased = self._resolve_alias(module_specifier)
        if aliased is not None:
            return aliased
        return self._resolve_package(module_specifier, source_file)

    def _resolve_alias(self, module_specifier: str) -> Optional[str]:
        for alias, targets in self.paths_mapping.items():
            if alias.endswith("*"):
                prefix = alias[:-1]
                if not module_specifier.startswith(prefix):
                    continue
                remainder = module_specifier[len(prefix) :]
            elif module_specifier == alias:
                remainder = ""
            else:
                continue
            for target in targets:
                substituted = target.replace("*", remainder, 1)
                resolved = self._probe(os.path.join(self.root_dir, substituted))
                if resolved is not None:
                    return resolved
        return None

    def _resolve_package(self, module_specifier: str, source_file: str) -> Optional[str]:
        package, subpath = _package_parts(module_specifier)
        start = Path(os.path.abspath(source_file)).parent
        for directory in (start, *start.parents):
            for store in sorted(PACKAGE_STORE_DIRECTORIES):
                package_dir = directory / store / package
                if not package_dir.is_dir():
                    continue
                if subpath:
                    resolved = self._probe(str(package_dir / subpath))
                    if resolved is not None:
                        return resolved
                resolved = self._probe(str(package_dir / "index"))
                return resolved if resolved is not None else str(package_dir)
        return None

    def _probe(self, base: str) -> Optional[str]:
        base = os.path.normpath(base)
        stem, ext = os.path.splitext(base)
        for replacement in _EMITTED_TO_SOURCE.get(ext, ()):
            if os.path.isfile(stem + replacement):
                return stem + replacement
        if os.path.isfile(base):
            return base
        for extension in RESOLVE_EXTENSIONS:
            candidate = base + extension
            if os.path.isfile(candidate):
                return candidate
        if os.path.isdir(base):
            for extension in RESOLVE_EXTENSIONS:
                candidate = os.path.join(base, "index" + extension)
                if os.path.isfile(candidate):
                    return candidate
        return None


def _line_and_column(text: str, offset: int) -> tuple[int, int]:
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    return line, offset - line_start


def collect_imports_from_source(
    source_file: str,
    text: str,
    resolver: Optional[ModuleResolver] = None,
) -> List[ImportEdge]:
    """Extract import and re-export statements in source order."""
    edges: List[ImportEdge] = []
    scannable = blank_comments(text, blank_templates=True)
    for match in _STATEMENT_RE.finditer(scannable):
        specifier = match.group("specifier")
        resolved = (
            resolver.resolve(specifier, source_file) if resolver is not None else None
        )
        line, column = _line_and_column(scannable, match.start("keyword"))
        edges.append(
            ImportEdge(
                source_file=source_file,
                module_specifier=specifier,
                resolved_path=resolved,
                is_external=is_external_import(specifier, resolved),
                line=line,
                column=column,
            )
        )
    return edges


def _iter_dir(directory: Path) -> Iterable[Path]:
    try:
        entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        logger.warning("Failed to list directory %s: %s", directory, exc)
        return
    subdirs = []
    for entry in entries:
        if entry.is_dir() and not entry.is_symlink():
            if not should_skip_directory(entry.name):
                subdirs.append(entry)
        elif entry.suffix in SOURCE_EXTENSIONS and entry.is_file():
            yield entry
    for subdir in subdirs:
        yield from _iter_dir(subdir)


def iter_source_files(root_dir: str) -> Iterable[str]:
    for path in _iter_dir(Path(root_dir)):
        yield str(path)


def collect_imports(
    root_dir: str, resolver: Optional[ModuleResolver] = None
) -> List[ImportEdge]:
    root = os.path.abspath(root_dir)
    if resolver is None:
        resolver = ModuleResolver(root)
    edges: List[ImportEdge] = []
    files = 0
    for source_file in iter_source_files(root):
        try:
            text = Path(source_file).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            log_event(
                logger,
                logging.WARNING,
                "imports.read_failed",
                source_file=source_file,
                exc=exc,
            )
            continue
        files += 1
        file_edges = collect_imports_from_source(source_file, text, resolver)
        for edge in file_edges:
            log_event(logger, logging.DEBUG, "imports.edge", **edge.to_dict())
        edges.extend(file_edges)
    log_event(
        logger,
        logging.INFO,
        "imports.collected",
        root=root,
        files=files,
        imports=len(edges),
    )
    return edges


__all__ = [
    "ModuleResolver",
    "SOURCE_EXTENSIONS",
    "collect_imports",
    "collect_imports_from_source",
    "is_external_import",
    "iter_source_files",
]
