"""Project scanning and shared primitives."""

from .config import ConfigError, TsconfigError
from .import_collector import ModuleResolver, collect_imports, is_external_import
from .project import Project, ProjectOptions, create_project, find_tsconfig
from .types import ImportEdge

__all__ = [
    "ConfigError",
    "TsconfigError",
    "ImportEdge",
    "ModuleResolver",
    "collect_imports",
    "is_external_import",
    "Project",
    "ProjectOptions",
    "create_project",
    "find_tsconfig",
]
