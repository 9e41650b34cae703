import json
from pathlib import Path

from typer.testing import CliRunner

from zonefence.cli import app

runner = CliRunner()

DOMAIN_RULES = """\
version: 1
description: Domain logic stays independent of infrastructure
imports:
  allow:
    - "./**"
  deny:
    - from: axios
      message: Domain code must not perform HTTP calls
"""

USER_TS = """\
import { validateEmail } from "./validation";
import axios from "axios";
import { db } from "../infrastructure/database";

export const user = { validateEmail, axios, db };
"""


def _project(write_tree) -> Path:
    return write_tree(
        {
            "tsconfig.json": "{}",
            "src/domain/.zonefence.yaml": DOMAIN_RULES,
            "src/domain/user.ts": USER_TS,
            "src/domain/validation.ts": "export const validateEmail = () => true;\n",
            "src/infrastructure/database.ts": "export const db = {};\n",
        }
    ).resolve()


def test_version_flag():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.startswith("zonefence ")


def test_check_reports_violations(write_tree):
    root = _project(write_tree)

    result = runner.invoke(app, ["check", str(root), "--no-color"])

    assert result.exit_code == 1, result.output
    assert f"Checking import boundaries in: {root}" in result.output
    assert "2:0  error  Domain code must not perform HTTP calls  (import-boundary)" in (
        result.output
    )
    assert (
        'Import from "../infrastructure/database" is not in the allow list'
        in result.output
    )
    assert (
        "Design intent: Domain logic stays independent of infrastructure"
        in result.output
    )
    assert "Rule: " in result.output
    assert "✖ 2 errors in 1 file" in result.output


def test_check_json_output(write_tree):
    root = _project(write_tree)

    result = runner.invoke(app, ["check", str(root), "--json"])

    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert payload["files_checked"] == 1
    assert payload["imports_checked"] == 3
    assert [item["line"] for item in payload["violations"]] == [2, 3]
    assert payload["violations"][0]["rule_file_path"] == str(
        root / "src" / "domain" / ".zonefence.yaml"
    )


def test_check_clean_project(write_tree):
    root = write_tree(
        {
            "tsconfig.json": "{}",
            "src/.zonefence.yaml": "version: 1\nimports:\n  deny: [axios]\n",
            "src/a.ts": "import { b } from './b';\n",
            "src/b.ts": "export const b = 1;\n",
        }
    ).resolve()

    result = runner.invoke(app, ["check", str(root), "--no-color"])

    assert result.exit_code == 0, result.output
    assert "✓ No import boundary violations found" in result.output
    assert "Checked 1 imports across 1 files" in result.output


def test_check_without_imports(write_tree):
    root = write_tree({"tsconfig.json": "{}", "src/a.ts": "export const a = 1;\n"})

    result = runner.invoke(app, ["check", str(root)])

    assert result.exit_code == 0
    assert "No imports found to check." in result.output


def test_check_invalid_rule_file_exits_with_error(write_tree):
    root = write_tree(
        {
            "tsconfig.json": "{}",
            "src/.zonefence.yaml": "version: 1\nimports:\n  mode: sometimes\n",
            "src/a.ts": "import x from 'x';\n",
        }
    )

    result = runner.invoke(app, ["check", str(root)])

    assert result.exit_code == 1
    assert "imports.mode must be one of" in result.output


def test_check_missing_tsconfig_option(write_tree):
    root = write_tree({"src/a.ts": "import x from 'x';\n"})

    result = runner.invoke(
        app, ["check", str(root), "--config", str(root / "missing.json")]
    )

    assert result.exit_code == 1
    assert "tsconfig not found" in result.output


def test_check_rejects_non_directory(tmp_path: Path):
    result = runner.invoke(app, ["check", str(tmp_path / "nope")])
    assert result.exit_code == 1
    assert "is not a directory" in result.output


def test_check_uses_tsconfig_aliases(write_tree):
    root = write_tree(
        {
            "tsconfig.json": json.dumps(
                {"compilerOptions": {"baseUrl": ".", "paths": {"@/*": ["./src/*"]}}}
            ),
            "src/ui/.zonefence.yaml": (
                "version: 1\nimports:\n  deny:\n    - from: '@/db/**'\n"
                "      message: UI must go through the api layer\n"
            ),
            "src/ui/page.ts": "import { query } from '../db/query';\n",
            "src/db/query.ts": "export const query = 1;\n",
        }
    ).resolve()

    result = runner.invoke(app, ["check", str(root), "--no-color"])

    assert result.exit_code == 1, result.output
    assert "UI must go through the api layer" in result.output


def test_rules_command_lists_resolved_rules(colocation_root: Path):
    result = runner.invoke(app, ["rules", str(colocation_root)])

    assert result.exit_code == 0, result.output
    assert "src/pages/home/containers" in result.output
    assert "pattern: **/containers (priority 0, from src/pages/.zonefence.yaml)" in (
        result.output
    )
    assert "exclude: **/*.test.tsx" in result.output


def test_rules_command_json(colocation_root: Path):
    result = runner.invoke(app, ["rules", str(colocation_root), "--json"])

    assert result.exit_code == 0
    payload = json.loads(result.output)
    directories = [Path(item["directory"]).name for item in payload]
    assert directories.count("containers") == 2
    assert all("**/*.test.tsx" in item["exclude_patterns"] for item in payload)


def test_repeated_invocations_in_one_process(colocation_root: Path):
    first = runner.invoke(app, ["rules", str(colocation_root)])
    second = runner.invoke(app, ["rules", str(colocation_root), "--verbose"])
    third = runner.invoke(app, ["check", str(colocation_root), "--json"])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert second.exception is None
    assert third.exit_code == 1, third.output
    assert json.loads(third.stdout)["files_checked"] == 5
