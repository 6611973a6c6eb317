from __future__ import annotations

from pathlib import Path

from primer.walker import load_ignore_rules, matches_glob, should_ignore, walk_project


def _touch(root: Path, *paths: str) -> None:
    for relative in paths:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x", encoding="utf-8")


def test_default_ignores(tmp_path: Path) -> None:
    _touch(
        tmp_path,
        "src/app.py",
        "src/__pycache__/app.cpython-312.pyc",
        "node_modules/react/index.js",
        ".git/HEAD",
        ".env",
        ".env.local",
        "stale.pyc",
    )

    assert walk_project(tmp_path) == ["src/app.py"]


def test_gitignore_with_negation(tmp_path: Path) -> None:
    _touch(tmp_path, "debug.log", "keep.log", "secret/key.txt", "main.go")
    (tmp_path / ".gitignore").write_text("# logs\n*.log\n!keep.log\nsecret/\n", encoding="utf-8")

    assert walk_project(tmp_path) == [".gitignore", "keep.log", "main.go"]


def test_configured_ignore_patterns(tmp_path: Path) -> None:
    _touch(tmp_path, "docs/guide.md", "src/generated/api.ts", "src/app.ts")

    files = walk_project(tmp_path, ignore=["docs", "src/generated"])

    assert files == ["src/app.ts"]


def test_anchored_pattern_only_matches_at_root(tmp_path: Path) -> None:
    _touch(tmp_path, "out/a.txt", "src/out/b.txt")

    assert walk_project(tmp_path, ignore=["/out"]) == ["src/out/b.txt"]


def test_max_depth_stops_descent(tmp_path: Path) -> None:
    _touch(tmp_path, "top.txt", "a/x.txt", "a/b/c.txt")

    assert walk_project(tmp_path, max_depth=1) == ["a/x.txt", "top.txt"]


def test_directory_only_rule_skips_files() -> None:
    rules = load_ignore_rules(Path("/nonexistent"), ["cache/"])

    assert should_ignore("cache", True, rules)
    assert should_ignore("cache/data.bin", False, rules)
    assert not should_ignore("cache", False, rules)


def test_matches_glob() -> None:
    assert matches_glob("src/a.ts", ["src/**/*.ts"])
    assert matches_glob("src/x/y/a.ts", ["src/**/*.ts"])
    assert not matches_glob("lib/a.ts", ["src/**/*.ts"])
    assert not matches_glob("docs/a.md", ["*.md"])
    assert matches_glob("docs/a.md", ["docs/?.md"])
    assert not matches_glob("anything", [""])
