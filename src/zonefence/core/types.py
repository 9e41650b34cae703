"""Core type definitions shared by the collector and the evaluator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ImportEdge:
    """One observed import statement.

    `resolved_path` is the absolute path the specifier resolves to, or None
    when it could not be resolved statically. `line` is 1-based and
    `column` is 0-based, both pointing at the start of the statement.
    """

    source_file: str
    module_specifier: str
    resolved_path: Optional[str]
    is_external: bool
    line: int
    column: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_file": self.source_file,
            "module_specifier": self.module_specifier,
            "resolved_path": self.resolved_path,
            "is_external": self.is_external,
            "line": self.line,
            "column": self.column,
        }


__all__ = ["ImportEdge"]
