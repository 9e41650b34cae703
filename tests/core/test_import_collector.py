import json
import logging
from pathlib import Path

import pytest

from zonefence.core.import_collector import (
    ModuleResolver,
    collect_imports,
    collect_imports_from_source,
    is_external_import,
    iter_source_files,
)


class TestIsExternalImport:
    @pytest.mark.parametrize(
        "specifier, resolved",
        [
            ("./utils", None),
            ("./utils", "/project/src/utils.ts"),
            ("../utils", None),
            ("../utils", "/project/utils.ts"),
            ("/absolute/path", None),
        ],
    )
    def test_relative_and_absolute_are_local(self, specifier, resolved):
        assert is_external_import(specifier, resolved) is False

    @pytest.mark.parametrize(
        "specifier, resolved",
        [
            ("lodash", None),
            ("@types/node", None),
            ("lodash", "/project/node_modules/lodash/index.js"),
            ("some-dep", "/project/node_modules/parent/node_modules/some-dep/index.js"),
            ("node:fs", None),
            ("@/utils", None),
        ],
    )
    def test_packages_and_unresolved_bare_specifiers_are_external(
        self, specifier, resolved
    ):
        assert is_external_import(specifier, resolved) is True

    def test_aliases_resolved_locally_are_internal(self):
        assert is_external_import("@/utils", "/project/src/utils.ts") is False
        assert is_external_import("~/components", "/project/src/components/index.ts") is False


class TestCollectImportsFromSource:
    def test_statement_kinds_and_positions(self):
        source = "\n".join(
            [
                'import React from "react";',
                "import { a, b } from './local';",
                'import "./styles.css";',
                "  export * from '../shared';",
                'export { x as y } from "@/lib/x";',
                "import type { User } from './types';",
                "export const value = 1;",
                'const lazy = import("./lazy");',
            ]
        )
        edges = collect_imports_from_source("/project/src/index.ts", source)

        assert [(e.module_specifier, e.line, e.column) for e in edges] == [
            ("react", 1, 0),
            ("./local", 2, 0),
            ("./styles.css", 3, 0),
            ("../shared", 4, 2),
            ("@/lib/x", 5, 0),
            ("./types", 6, 0),
        ]
        assert [e.is_external for e in edges] == [True, False, False, False, True, False]
        assert all(e.resolved_path is None for e in edges)

    def test_multiline_import(self):
        source = "// header\nimport {\n  first,\n  second,\n} from 'pkg';\n"
        edges = collect_imports_from_source("/p/a.ts", source)
        assert [(e.module_specifier, e.line) for e in edges] == [("pkg", 2)]

    def test_commented_imports_are_ignored(self):
        source = "// import x from 'a';\n/* import y from 'b'; */\nconst url = 'http://x';\n"
        assert collect_imports_from_source("/p/a.ts", source) == []

    def test_template_literal_contents_are_ignored(self):
        source = "\n".join(
            [
                "const generated = `",
                'import fake from "codegen-only";',
                "export * from '${name}';",
                "`;",
                'const nested = `${cond ? `a` : "b"}`;',
                'import real from "real";',
            ]
        )
        edges = collect_imports_from_source("/p/gen.ts", source)
        assert [(e.module_specifier, e.line) for e in edges] == [("real", 6)]

    def test_string_contents_still_match_specifiers(self):
        source = "const s = \"`\";\nimport a from 'a';\n"
        edges = collect_imports_from_source("/p/a.ts", source)
        assert [(e.module_specifier, e.line) for e in edges] == [("a", 2)]


class TestModuleResolver:
    def test_relative_resolution(self, write_tree):
        root = write_tree(
            {
                "src/index.ts": "",
                "src/utils.ts": "",
                "src/components/index.tsx": "",
                "src/esm.ts": "",
            }
        ).resolve()
        resolver = ModuleResolver(str(root))
        source = str(root / "src" / "index.ts")

        assert resolver.resolve("./utils", source) == str(root / "src" / "utils.ts")
        assert resolver.resolve("./components", source) == str(
            root / "src" / "components" / "index.tsx"
        )
        assert resolver.resolve("./esm.js", source) == str(root / "src" / "esm.ts")
        assert resolver.resolve("./missing", source) is None

    def test_alias_resolution(self, write_tree):
        root = write_tree({"src/index.ts": "", "src/lib/format.ts": ""}).resolve()
        resolver = ModuleResolver(str(root), {"@/*": ["./src/*"]})
        assert resolver.resolve("@/lib/format", str(root / "src" / "index.ts")) == str(
            root / "src" / "lib" / "format.ts"
        )

    def test_package_resolution(self, write_tree):
        root = write_tree(
            {
                "src/index.ts": "",
                "node_modules/lodash/index.js": "",
                "node_modules/@scope/pkg/package.json": "{}",
            }
        ).resolve()
        resolver = ModuleResolver(str(root))
        source = str(root / "src" / "index.ts")

        assert resolver.resolve("lodash", source) == str(
            root / "node_modules" / "lodash" / "index.js"
        )
        assert resolver.resolve("@scope/pkg", source) == str(
            root / "node_modules" / "@scope" / "pkg"
        )
        assert resolver.resolve("missing-pkg", source) is None
        assert resolver.resolve("node:fs", source) is None


def test_collect_imports_walks_sources(write_tree):
    root = write_tree(
        {
            "src/a.ts": "import { b } from './b';\nimport lodash from 'lodash';\n",
            "src/b.tsx": "export const b = 1;\n",
            "src/c.mjs": "import './a.js';\n",
            "src/readme.md": "import x from 'ignored';\n",
            "dist/out.js": "import y from 'ignored';\n",
            "node_modules/lodash/index.js": "import z from 'ignored';\n",
        }
    ).resolve()

    edges = collect_imports(str(root))

    assert [(Path(e.source_file).name, e.module_specifier) for e in edges] == [
        ("a.ts", "./b"),
        ("a.ts", "lodash"),
        ("c.mjs", "./a.js"),
    ]
    assert edges[0].resolved_path == str(root / "src" / "b.tsx")
    assert edges[1].is_external is True
    assert edges[1].resolved_path == str(root / "node_modules" / "lodash" / "index.js")
    assert edges[2].resolved_path == str(root / "src" / "a.ts")


def test_iter_source_files_orders_files_before_subdirectories(write_tree):
    root = write_tree(
        {
            "b.ts": "",
            "a/z.tsx": "",
            "a/nested/y.ts": "",
            "a/types.d.ts": "",
            ".cache/hidden.ts": "",
            "coverage/report.js": "",
            "notes.txt": "",
        }
    )
    found = [Path(path).relative_to(root).as_posix() for path in iter_source_files(str(root))]
    assert found == ["b.ts", "a/types.d.ts", "a/z.tsx", "a/nested/y.ts"]


def test_collect_imports_logs_each_edge(write_tree):
    root = write_tree({"src/a.ts": "import lodash from 'lodash';\n"}).resolve()
    records: list = []
    handler = logging.Handler(level=logging.DEBUG)
    handler.emit = records.append
    logger = logging.getLogger("zonefence.core.import_collector")
    previous = logger.level
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        edges = collect_imports(str(root))
    finally:
        logger.removeHandler(handler)
        logger.setLevel(previous)

    payloads = [json.loads(record.getMessage()) for record in records]
    edge_events = [p for p in payloads if p["event"] == "imports.edge"]
    assert edge_events == [{"event": "imports.edge", **edges[0].to_dict()}]
    assert edge_events[0]["module_specifier"] == "lodash"
    assert edge_events[0]["is_external"] is True
