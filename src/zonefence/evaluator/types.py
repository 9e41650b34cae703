from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

IMPORT_BOUNDARY_RULE = "import-boundary"

# Alias prefix -> filesystem prefixes, e.g. {"@/*": ["./src/*"]}.
PathsMapping = Mapping[str, Sequence[str]]


@dataclass(frozen=True)
class Violation:
    source_file: str
    module_specifier: str
    line: int
    column: int
    message: str
    rule_file_path: str
    rule: str = IMPORT_BOUNDARY_RULE
    design_intent: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "source_file": self.source_file,
            "module_specifier": self.module_specifier,
            "line": self.line,
            "column": self.column,
            "rule": self.rule,
            "message": self.message,
            "rule_file_path": self.rule_file_path,
        }
        if self.design_intent is not None:
            payload["design_intent"] = self.design_intent
        if self.suggestion is not None:
            payload["suggestion"] = self.suggestion
        return payload


@dataclass(frozen=True)
class EvaluationResult:
    violations: tuple[Violation, ...]
    files_checked: int
    imports_checked: int

    @property
    def ok(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "violations": [violation.to_dict() for violation in self.violations],
            "files_checked": self.files_checked,
            "imports_checked": self.imports_checked,
        }


@dataclass(frozen=True)
class EvaluateOptions:
    paths_mapping: Optional[PathsMapping] = None
