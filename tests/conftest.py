"""Test harness configuration.

This repo uses a `src/` layout. Ensure tests always import the in-repo code
rather than an older installed `zonefence` package.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict

import pytest

DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS = 60

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


def pytest_configure() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    src_dir = repo_root / "src"
    src_path = str(src_dir)
    if sys.path[:1] != [src_path] and src_path not in sys.path:
        sys.path.insert(0, src_path)


def pytest_collection_modifyitems(
    session: pytest.Session, config: pytest.Config, items: list[pytest.Item]
) -> None:
    """
    Apply a default per-test timeout to non-integration tests.

    This relies on `pytest-timeout` when installed; if it isn't installed, the
    marker is inert but still documents the intent.
    """
    _ = session, config
    for item in items:
        if item.get_closest_marker("integration") is not None:
            continue
        item.add_marker(pytest.mark.timeout(DEFAULT_NON_INTEGRATION_TIMEOUT_SECONDS))


@pytest.fixture()
def write_tree(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Write `{relative_path: content}` under a fresh project root."""

    root = tmp_path / "project"
    root.mkdir()

    def _write(files: Dict[str, str]) -> Path:
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _write


@pytest.fixture()
def colocation_root() -> Path:
    return FIXTURES_DIR / "colocation"
