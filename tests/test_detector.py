"""Tests for primer.detector and primer.manifests."""

from __future__ import annotations

import json

import pytest

from primer.detector import detect_monorepo, detect_project, detect_runtime, readme_description
from primer.models import ProjectOverrides
from tests._fixtures.repo_builder import RepoBuilder


@pytest.mark.parametrize(
    ("files", "expected"),
    [
        ({"package.json": "{}", "bun.lockb": ""}, "bun"),
        ({"deno.json": "{}", "package.json": "{}"}, "deno"),
        ({"package.json": "{}"}, "node"),
        ({"Cargo.toml": "[package]\n"}, "rust"),
        ({"requirements.txt": "flask\n"}, "python"),
        ({"go.mod": "module x\n"}, "go"),
        ({"pom.xml": "<project/>"}, "java"),
        ({"Gemfile": ""}, "ruby"),
        ({"App.csproj": "<Project/>"}, "dotnet"),
        ({"composer.json": "{}"}, "php"),
        ({"notes.txt": "hi"}, "unknown"),
    ],
)
def test_detect_runtime_marker_order(repo_builder: RepoBuilder, files, expected) -> None:
    repo_builder.write(files)
    runtime, _ = detect_runtime(repo_builder.path())
    assert runtime == expected


def test_detect_project_reads_package_json(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "package.json": json.dumps(
                {
                    "name": "storefront",
                    "description": "Online shop",
                    "dependencies": {"next": "14", "react": "18"},
                    "devDependencies": {"vitest": "1", "typescript": "5"},
                }
            ),
            "tsconfig.json": "{}",
            "Dockerfile": "FROM node:20\n",
        }
    )

    project = detect_project(repo_builder.path())

    assert project.name == "storefront"
    assert project.runtime == "node"
    assert project.description == "Online shop"
    assert project.frameworks[:2] == ["Next.js", "React"]
    assert "TypeScript" in project.tooling
    assert "Vitest" in project.tooling
    assert "Docker" in project.tooling
    assert project.config_file == "package.json"


def test_detect_project_python_frameworks_and_tool_sections(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "pyproject.toml": """
                [project]
                name = "ledger"
                description = "Double-entry bookkeeping"
                dependencies = ["fastapi>=0.110", "pydantic"]

                [tool.ruff]
                line-length = 100
            """,
        }
    )

    project = detect_project(repo_builder.path())

    assert project.name == "ledger"
    assert project.runtime == "python"
    assert project.description == "Double-entry bookkeeping"
    assert project.frameworks == ["FastAPI"]
    assert "Ruff" in project.tooling


def test_overrides_take_precedence(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"package.json": json.dumps({"name": "detected"})})
    overrides = ProjectOverrides(type="bun", name="custom", body="notes")

    project = detect_project(repo_builder.path(), overrides)

    assert project.runtime == "bun"
    assert project.name == "custom"
    assert project.overrides is overrides


def test_name_falls_back_to_cargo_scan_then_basename(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"Cargo.toml": '[package]\nname = "engine"\nversion = "0.1.0"\n'})
    assert detect_project(repo_builder.path()).name == "engine"

    (repo_builder.path() / "Cargo.toml").unlink()
    assert detect_project(repo_builder.path()).name == repo_builder.path().name


def test_malformed_manifests_never_raise(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"package.json": "{not json", "pyproject.toml": "[[[broken"})
    project = detect_project(repo_builder.path())
    assert project.runtime == "node"
    assert project.name == repo_builder.path().name


def test_readme_prefers_bold_tagline() -> None:
    text = "# Tool\n\n[![ci](badge.svg)](ci)\n\n**Fast builds for everyone.**\n\nSome prose.\n"
    assert readme_description(text) == "Fast builds for everyone."


def test_readme_uses_overview_section_before_first_paragraph() -> None:
    text = (
        "# Tool\n\nIntro paragraph.\n\n## Install\n\nnpm i tool\n\n"
        "## Overview\n\nTool compiles things\nquickly.\n\n## Usage\n"
    )
    assert readme_description(text) == "Tool compiles things quickly."


def test_readme_skips_badges_images_and_tables() -> None:
    text = "# Tool\n\n![logo](logo.png)\n| a | b |\n\nThe real description.\n"
    assert readme_description(text) == "The real description."


def test_readme_description_used_when_manifests_lack_one(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"go.mod": "module x\n", "README.md": "# x\n\nA Go service.\n"})
    assert detect_project(repo_builder.path()).description == "A Go service."


def test_pnpm_monorepo_resolves_workspaces(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "package.json": json.dumps({"name": "root"}),
            "pnpm-workspace.yaml": "packages:\n  - 'apps/*'\n  - 'packages/*'\n",
            "apps/web/package.json": json.dumps(
                {"name": "@acme/web", "dependencies": {"react": "18"}}
            ),
            "packages/ui/package.json": json.dumps({"name": "@acme/ui", "description": "Shared UI"}),
            "apps/.hidden/package.json": "{}",
        }
    )

    monorepo = detect_monorepo(repo_builder.path())

    assert monorepo is not None
    assert monorepo.tool == "pnpm workspaces"
    by_path = {workspace.path: workspace for workspace in monorepo.workspaces}
    assert set(by_path) == {"apps/web", "packages/ui"}
    assert by_path["apps/web"].name == "@acme/web"
    assert by_path["apps/web"].type == "app"
    assert by_path["packages/ui"].type == "package"
    assert by_path["packages/ui"].description == "Shared UI"

    project = detect_project(repo_builder.path())
    assert "React" in project.frameworks


def test_package_workspaces_with_yarn_lock(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "package.json": json.dumps({"name": "root", "workspaces": ["api-server"]}),
            "yarn.lock": "",
            "api-server/package.json": json.dumps({"name": "api-server"}),
        }
    )

    monorepo = detect_monorepo(repo_builder.path())

    assert monorepo is not None
    assert monorepo.tool == "Yarn workspaces"
    assert monorepo.workspaces[0].type == "server"


def test_malformed_pnpm_workspace_means_no_monorepo(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"package.json": "{}", "pnpm-workspace.yaml": "packages: [unclosed\n"})
    assert detect_monorepo(repo_builder.path()) is None


def test_tauri_detection(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"package.json": "{}", "src-tauri/tauri.conf.json": "{}"})
    assert "Tauri" in detect_project(repo_builder.path()).frameworks
