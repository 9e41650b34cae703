"""Import boundary evaluation."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Set

from ..core.logging_utils import log_event
from ..core.types import ImportEdge
from ..rules.types import ResolvedRule
from .import_boundary import evaluate_import_boundary
from .types import EvaluateOptions, EvaluationResult, PathsMapping, Violation

logger = logging.getLogger("zonefence.evaluator")


def evaluate(
    imports: Iterable[ImportEdge],
    rules: Sequence[ResolvedRule],
    root_dir: str,
    options: Optional[EvaluateOptions] = None,
) -> EvaluationResult:
    violations: List[Violation] = []
    checked_files: Set[str] = set()
    imports_checked = 0

    for import_edge in imports:
        imports_checked += 1
        checked_files.add(import_edge.source_file)
        violation = evaluate_import_boundary(import_edge, rules, root_dir, options)
        if violation is not None:
            violations.append(violation)

    result = EvaluationResult(
        violations=tuple(violations),
        files_checked=len(checked_files),
        imports_checked=imports_checked,
    )
    log_event(
        logger,
        logging.INFO,
        "evaluate.complete",
        root=root_dir,
        imports_checked=result.imports_checked,
        files_checked=result.files_checked,
        violations=len(result.violations),
    )
    return result


__all__ = [
    "EvaluateOptions",
    "EvaluationResult",
    "PathsMapping",
    "Violation",
    "evaluate",
    "evaluate_import_boundary",
]
