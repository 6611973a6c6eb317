"""End-to-end tests for the context compiler."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from primer.compiler import ContextCompiler, build_code_map, build_key_files, build_overview, compile_context
from primer.config import ContextConfig
from primer.grammars import GrammarCache
from primer.models import ContextResult, FileSignatures, MonorepoInfo, ProjectInfo, SignatureEntry, Workspace
from primer.tree import build_tree


def _compile(builder, **kwargs) -> ContextResult:
    kwargs.setdefault("dry_run", True)
    return ContextCompiler(grammars=GrammarCache([])).compile(builder.path(), **kwargs)


def _section(result: ContextResult, key: str) -> str:
    section = result.section(key)
    assert section is not None, f"section {key} missing"
    return section.content


def _write_app(builder) -> None:
    builder.write(
        {
            "package.json": json.dumps(
                {"name": "demo-app", "description": "A demo app", "dependencies": {"react": "^18"}}
            ),
            "src/greet.ts": """
                export function greet(name: string): string {
                  return `hi ${name}`;
                }
            """,
            "src/internal.ts": """
                function hidden() {}
            """,
        }
    )


def test_compile_builds_sections(repo_builder) -> None:
    _write_app(repo_builder)

    result = _compile(repo_builder)

    assert result.markdown.startswith("# demo-app\n")
    ids = [section.id for section in result.sections]
    assert ids[:2] == ["overview", "structure"]
    assert "codeMap" in ids
    assert "keyFiles" not in ids

    overview = _section(result, "overview")
    assert overview.startswith("A demo app\n\n- **Runtime**: node")
    assert "- **Frameworks**: React" in overview

    structure = _section(result, "structure")
    assert structure.startswith("repo/\n")
    assert "greet.ts" in structure
    assert "package.json # project manifest" in structure

    code_map = _section(result, "codeMap")
    assert "### src/greet.ts" in code_map
    assert "export function greet(name: string): string" in code_map
    assert "hidden" not in code_map
    assert "## Code Map" in result.markdown


def test_dry_run_writes_nothing(repo_builder) -> None:
    _write_app(repo_builder)

    result = _compile(repo_builder)

    assert result.output_path is None
    assert not (repo_builder.path() / ".primer" / "CONTEXT.md").exists()


def test_compile_writes_default_output(repo_builder) -> None:
    _write_app(repo_builder)

    result = _compile(repo_builder, dry_run=False)

    target = repo_builder.path() / ".primer" / "CONTEXT.md"
    assert result.output_path == target.resolve()
    assert target.read_text(encoding="utf-8") == result.markdown

    again = _compile(repo_builder, dry_run=False)
    assert "CONTEXT.md" not in _section(again, "structure")
    assert ".primer" not in _section(again, "structure")


def test_compile_writes_explicit_output(repo_builder, tmp_path: Path) -> None:
    _write_app(repo_builder)
    target = tmp_path / "out" / "context.md"

    result = _compile(repo_builder, output=str(target), dry_run=False)

    assert result.output_path == target.resolve()
    assert target.read_text(encoding="utf-8").startswith("# demo-app")


def test_key_files_from_config(repo_builder) -> None:
    _write_app(repo_builder)
    repo_builder.write(
        {
            ".primer.yml": """
                context:
                  key_files: ["README.md"]
            """,
            "README.md": "Run `pnpm dev` to start.\n",
        }
    )

    result = _compile(repo_builder)

    key_files = _section(result, "keyFiles")
    assert key_files == "### README.md\n\n```md\nRun `pnpm dev` to start.\n\n```"


def test_knowledge_notes_order(repo_builder) -> None:
    _write_app(repo_builder)
    repo_builder.write(
        {
            ".primer.yml": """
                context:
                  auto_knowledge: false
            """,
            "PRIMER.md": "Use pnpm.\n",
            ".primer/knowledge/deploy.md": "Deploy via CI.\n",
            ".primer/knowledge/api.md": "REST only.\n",
        }
    )

    result = _compile(repo_builder)

    assert _section(result, "knowledge") == (
        "### Project Notes\n\nUse pnpm.\n\n### api\n\nREST only.\n\n### deploy\n\nDeploy via CI."
    )


def test_auto_knowledge_is_included(repo_builder) -> None:
    _write_app(repo_builder)

    result = _compile(repo_builder)

    assert "### Conventions (auto)" in _section(result, "knowledge")


def test_malformed_config_falls_back_to_defaults(repo_builder, caplog) -> None:
    _write_app(repo_builder)
    repo_builder.write({".primer.yml": "context: [unclosed\n"})

    with caplog.at_level(logging.WARNING, logger="primer"):
        result = _compile(repo_builder)

    assert "Ignoring .primer.yml" in caplog.text
    assert sum(result.allocation.values()) > 0
    assert result.markdown.startswith("# demo-app")


def test_override_excludes_hide_files(repo_builder) -> None:
    _write_app(repo_builder)
    repo_builder.write(
        {
            "PRIMER.md": """
                ---
                excludes: ["src/internal.ts"]
                annotations:
                  src: application code
                ---
            """,
        }
    )

    result = _compile(repo_builder)

    structure = _section(result, "structure")
    assert "internal.ts" not in structure
    assert "src/ # application code" in structure


def test_small_budget_truncates_code_map(repo_builder) -> None:
    files = {"package.json": json.dumps({"name": "big"})}
    for index in range(30):
        body = "".join(
            f"export function handler{index}_{j}(request: RequestPayload, options: HandlerOptions): Promise<void> {{}}\n"
            for j in range(20)
        )
        files[f"src/handlers{index:02d}.ts"] = body
    repo_builder.write(files)

    result = _compile(repo_builder, budget=1000)

    assert result.truncated
    assert result.allocation["codeMap"] > 400
    for section in result.sections:
        assert section.tokens <= result.allocation[section.id]


def test_compile_context_function(repo_builder) -> None:
    _write_app(repo_builder)

    result = compile_context(repo_builder.path(), dry_run=True, grammars=GrammarCache([]))

    assert result.total_tokens > 0
    assert result.output_path is None


def _sig(name: str, signature: str, exported: bool = True) -> SignatureEntry:
    return SignatureEntry(kind="interface", name=name, signature=signature, exported=exported, line=1)


def test_code_map_signature_depth_and_format() -> None:
    file = FileSignatures(
        path="src/types.ts",
        language="typescript",
        signatures=[
            _sig("User", "export interface User {\n  id: string;\n}"),
            _sig("Hidden", "interface Hidden {}", exported=False),
        ],
    )

    exports_only = build_code_map([file], 1000)
    assert exports_only.content == "### src/types.ts\n```typescript\nexport interface User {\n  id: string;\n}\n```"

    everything = build_code_map([file], 1000, signature_depth="all", code_map_format="signatures")
    assert everything.content == "### src/types.ts\n```typescript\nexport interface User {\ninterface Hidden {}\n```"


def test_code_map_collapses_oversized_bodies() -> None:
    body = "\n".join(f"  field{i}: string;" for i in range(40))
    file = FileSignatures(
        path="src/models.ts",
        language="typescript",
        signatures=[_sig(f"M{i}", f"export interface M{i} {{\n{body}\n}}") for i in range(3)],
    )

    draft = build_code_map([file], 200)

    assert "export interface M0 { ... }" in draft.content
    assert "field0" not in draft.content
    assert draft.truncated == []


def test_key_files_cut_at_budget(tmp_path: Path) -> None:
    (tmp_path / "a.md").write_text("a" * 1000, encoding="utf-8")
    (tmp_path / "b.md").write_text("b" * 40, encoding="utf-8")

    draft = build_key_files(tmp_path, ["a.md", "b.md"], ["*.md"], 150)

    assert draft.content == "### a.md\n\n```md\n" + "a" * 600 + "\n...(truncated)\n```"
    assert draft.truncated == ["a.md", "b.md"]
    assert draft.tokens == 150
    assert draft.demand == 260


def test_code_map_first_line_skips_decorators() -> None:
    file = FileSignatures(
        path="api.py",
        language="python",
        signatures=[
            SignatureEntry(
                kind="function",
                name="list_users",
                signature='@app.get("/users")\nasync def list_users(limit: int) -> list[User]:',
                exported=True,
                line=1,
                is_async=True,
            ),
            SignatureEntry(
                kind="class",
                name="UsersController",
                signature="[ApiController]\n[Route(\"users\")]\npublic class UsersController {\n  public IActionResult Get()\n}",
                exported=True,
                line=5,
            ),
        ],
    )

    draft = build_code_map([file], 4000, code_map_format="signatures")

    assert draft.content == (
        "### api.py\n```python\n"
        "async def list_users(limit: int) -> list[User]:\n"
        "public class UsersController {\n```"
    )


def test_code_map_collapse_keeps_annotated_declaration() -> None:
    members = "\n".join(f"  public void handle{i}(Request request);" for i in range(60))
    file = FileSignatures(
        path="src/Users.java",
        language="java",
        signatures=[_sig("Users", f"@Service\n@Transactional\npublic class Users {{\n{members}\n}}")],
    )

    draft = build_code_map([file], 200)

    assert draft.content == "### src/Users.java\n```java\npublic class Users { ... }\n```"


def test_module_style_extensions_are_compiled(repo_builder) -> None:
    _write_app(repo_builder)
    repo_builder.write(
        {
            "lib/mod.mts": """
                export function typed(value: number): number {
                  return value;
                }
            """,
            "lib/util.cjs": """
                const helper = require("./helper");
                module.exports = helper;
            """,
        }
    )

    result = _compile(repo_builder)
    inputs = ContextCompiler(grammars=GrammarCache([])).gather(
        repo_builder.path().resolve(), ContextConfig(root=repo_builder.path().resolve())
    )

    assert "export function typed(value: number): number" in _section(result, "codeMap")
    assert {"lib/mod.mts", "lib/util.cjs"} <= {file.path for file in inputs.signatures}


def test_extract_all_keeps_input_order_across_batches(tmp_path: Path) -> None:
    sources = []
    expected = []
    for index in range(45):
        relative = f"src/m{index:02d}.ts"
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if index % 7 == 3:
            path.write_bytes(b"\xff\xfe export const broken = 1;\n")
        elif index % 5 == 4:
            path.write_text("// nothing exported\n", encoding="utf-8")
        else:
            path.write_text(f"export const value{index} = {index};\n", encoding="utf-8")
            expected.append(relative)
        sources.append(relative)
    sources.insert(21, "src/missing.ts")

    extracted = ContextCompiler(grammars=GrammarCache([])).extract_all(tmp_path, sources)

    assert len(expected) > 20
    assert [file.path for file in extracted] == expected
    assert all(file.signatures for file in extracted)


def test_project_tree_is_scanned_once_per_compile(repo_builder, monkeypatch) -> None:
    _write_app(repo_builder)
    calls = []

    def counting_build_tree(*args, **kwargs):
        calls.append(args[0])
        return build_tree(*args, **kwargs)

    monkeypatch.setattr("primer.compiler.build_tree", counting_build_tree)

    result = _compile(repo_builder, budget=1000)

    assert len(calls) == 1
    assert _section(result, "structure").startswith("repo/\n")


def test_overview_lists_workspaces() -> None:
    project = ProjectInfo(
        name="shop",
        runtime="node",
        root="/tmp/shop",
        monorepo=MonorepoInfo(
            tool="Turborepo",
            workspaces=[
                Workspace(name="storefront", path="apps/web", type="app", description="Customer site"),
                Workspace(name="ui", path="packages/ui"),
            ],
        ),
    )

    assert build_overview(project) == (
        "- **Runtime**: node\n"
        "- **Monorepo**: Turborepo\n"
        "- **Workspaces**:\n"
        "  - `apps/web` (storefront) [app] - Customer site\n"
        "  - `packages/ui`"
    )
