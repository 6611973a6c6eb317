"""Tests for primer.prioritizer."""

from __future__ import annotations

import pytest

from primer.models import FileSignatures, SignatureEntry
from primer.prioritizer import (
    BARREL_PRIORITY,
    CONFIG_PRIORITY,
    ENTRY_PRIORITY,
    TYPES_PRIORITY,
    declaration_density,
    file_priority,
    is_barrel,
    sort_by_priority,
)


def _sig(kind: str, name: str = "x") -> SignatureEntry:
    return SignatureEntry(kind=kind, name=name, signature=f"{kind} {name}", exported=True, line=1)


def _reexport(source: str) -> SignatureEntry:
    return SignatureEntry(
        kind="const",
        name=f"re-export {source}",
        signature=f'export * from "{source}"',
        exported=True,
        line=1,
    )


def test_barrel_ranks_lowest_even_for_index_files() -> None:
    signatures = [_reexport("./a"), _reexport("./b"), _sig("function")]
    assert is_barrel(signatures)
    assert file_priority("src/index.ts", signatures) == BARREL_PRIORITY


def test_half_reexports_is_not_a_barrel() -> None:
    assert not is_barrel([_reexport("./a"), _sig("function")])
    assert not is_barrel([])


@pytest.mark.parametrize(
    "path",
    ["src/index.ts", "main.go", "mod.ts", "src/lib.rs", "pkg/__main__.py", "app.py", "Program.cs", "cmd/api/server.go", "bin/cli.js"],
)
def test_entry_points(path: str) -> None:
    assert file_priority(path, [_sig("function")]) == ENTRY_PRIORITY


@pytest.mark.parametrize("path", ["src/types.ts", "src/api.d.ts", "typings.ts", "pkg/types.py"])
def test_type_files(path: str) -> None:
    assert file_priority(path, [_sig("function")]) == TYPES_PRIORITY


def test_all_type_signatures_make_a_type_file() -> None:
    assert file_priority("src/shapes.ts", [_sig("interface"), _sig("type")]) == TYPES_PRIORITY


@pytest.mark.parametrize("path", ["src/config.ts", "schema.py", "lib/constants.js", "env.ts", "app/settings.py"])
def test_config_files(path: str) -> None:
    assert file_priority(path, [_sig("function")]) == CONFIG_PRIORITY


def test_default_priority_prefers_shallow_dense_files() -> None:
    shallow = file_priority("src/service.ts", [_sig("function"), _sig("const")])
    deep = file_priority("src/a/b/c/d/service.ts", [_sig("function"), _sig("const")])
    assert shallow == 3 + 3 * 0.5 + 0.5
    assert deep == 3 + 0.5
    for value in (shallow, deep):
        assert 3 <= value <= 6


def test_declaration_density() -> None:
    assert declaration_density([]) == 0.0
    assert declaration_density([_sig("function"), _sig("class"), _sig("const"), _sig("type")]) == 0.5


def test_sort_by_priority_breaks_ties_by_density_then_order() -> None:
    sparse = FileSignatures(path="src/a.ts", language="typescript", signatures=[_sig("const")])
    dense = FileSignatures(path="src/b.ts", language="typescript", signatures=[_sig("function")])
    first_entry = FileSignatures(path="index.ts", language="typescript", signatures=[_sig("const")])
    second_entry = FileSignatures(path="main.ts", language="typescript", signatures=[_sig("const")])

    ordered = sort_by_priority([sparse, dense, first_entry, second_entry])

    assert [file.path for file in ordered] == ["index.ts", "main.ts", "src/b.ts", "src/a.ts"]
