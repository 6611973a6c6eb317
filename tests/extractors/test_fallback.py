"""Tests for the regex extractor used when no JavaScript-family grammar loads."""

from __future__ import annotations

from primer.extractors import extract_signatures
from primer.extractors.fallback import extract_with_regex
from primer.grammars import GrammarCache

SOURCE = '''
import { x } from "./x";
export * from "./models";
export { a, b } from "./util";
/**
 * Loads a user.
 */
export async function load(id: string): Promise<User> {
  return db.get(id);
}
export class Service extends Base {
  run() {}
}
export interface User {
  id: string;
}
export type Id = string | number;
export enum Color { Red, Green }
export const add = (a: number, b: number): number => a + b;
export const VERSION: string = "1.0";
const internal = 5;
function helper() {}
'''


def _by_name(entries):
    return {entry.name: entry for entry in entries}


def test_regex_extractor_recognises_top_level_declarations() -> None:
    entries = _by_name(extract_with_regex(SOURCE))

    assert set(entries) == {
        "re-export ./models",
        "re-export ./util",
        "load",
        "Service",
        "User",
        "Id",
        "Color",
        "add",
        "VERSION",
        "helper",
    }

    load = entries["load"]
    assert load.kind == "function"
    assert load.is_async is True
    assert load.exported is True
    assert load.signature == "export async function load(id: string): Promise<User>"

    assert entries["Service"].signature == "export class Service extends Base { }"
    assert entries["User"].signature == "export interface User {\n  id: string;\n}"
    assert entries["Id"].signature == "export type Id = string | number"
    assert entries["add"].signature == "export const add = (a: number, b: number): number =>"
    assert entries["VERSION"].signature == "export const VERSION: string"
    assert entries["helper"].exported is False
    assert entries["re-export ./models"].exported is True


def test_regex_extractor_ignores_indented_and_commented_code() -> None:
    source = "// export function commented() {}\n  export function indented() {}\n"
    assert extract_with_regex(source) == []


def test_multiline_union_type_is_kept_whole() -> None:
    source = "export type State =\n  | 'idle'\n  | 'busy';\nexport const ready = true;\n"
    entries = _by_name(extract_with_regex(source))
    assert entries["State"].signature == "export type State =\n  | 'idle'\n  | 'busy'"
    assert "ready" in entries


def test_dispatch_uses_regex_when_no_grammar_loads() -> None:
    grammars = GrammarCache([])
    entries = extract_signatures('export { a } from "./a";\n', "typescript", grammars)
    assert len(entries) == 1
    assert entries[0].name == "re-export ./a"
    assert entries[0].exported is True


def test_languages_without_fallback_yield_nothing_without_grammar() -> None:
    grammars = GrammarCache([])
    assert extract_signatures("def f():\n    pass\n", "python", grammars) == []
