"""Best-effort import graph helpers.

Resolution here is plain string arithmetic on paths, not a module resolver:
aliases, package exports and search paths are ignored, so callers must accept
both missed and spurious edges.
"""

from __future__ import annotations

import posixpath
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from ..models import FileSignatures, ImportEntry

_SOURCE_ROOTS = ("src", "app", "lib", "packages")
_RESOLVE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py", ".go", ".rs")
_INDEX_FILES = ("/index.ts", "/index.tsx", "/index.js")

NODE_BUILTINS = frozenset(
    {
        "assert", "async_hooks", "buffer", "child_process", "cluster", "console",
        "constants", "crypto", "dgram", "diagnostics_channel", "dns", "domain",
        "events", "fs", "http", "http2", "https", "inspector", "module", "net",
        "os", "path", "perf_hooks", "process", "punycode", "querystring",
        "readline", "repl", "stream", "string_decoder", "sys", "timers", "tls",
        "trace_events", "tty", "url", "util", "v8", "vm", "wasi",
        "worker_threads", "zlib",
    }
)

PYTHON_BUILTINS = frozenset(
    {
        "__future__", "abc", "argparse", "array", "ast", "asyncio", "base64",
        "bisect", "builtins", "calendar", "collections", "concurrent",
        "contextlib", "copy", "csv", "dataclasses", "datetime", "decimal",
        "difflib", "enum", "errno", "fnmatch", "fractions", "functools", "gc",
        "getpass", "glob", "gzip", "hashlib", "heapq", "hmac", "html", "http",
        "importlib", "inspect", "io", "ipaddress", "itertools", "json",
        "logging", "math", "mimetypes", "multiprocessing", "operator", "os",
        "pathlib", "pickle", "platform", "pprint", "queue", "random", "re",
        "secrets", "select", "shlex", "shutil", "signal", "socket", "sqlite3",
        "ssl", "stat", "statistics", "string", "struct", "subprocess", "sys",
        "tempfile", "textwrap", "threading", "time", "tomllib", "traceback",
        "types", "typing", "unittest", "urllib", "uuid", "warnings", "weakref",
        "xml", "zipfile", "zoneinfo",
    }
)

RUST_BUILTINS = frozenset({"std", "core", "alloc"})
JVM_BUILTINS = frozenset({"java", "javax", "System", "Microsoft"})

# Bare words that show up as import sources but never name a real package.
FALSE_POSITIVES = frozenset({"module", "source", "type", "types", "pkg"})

_RUNTIME_PREFIXES = ("node:", "bun:")


def top_level_dir(path: str) -> Optional[str]:
    """Coarse directory bucket of a file: ``src/routes`` for source roots, else the first segment."""
    parts = path.split("/")
    if len(parts) < 2:
        return None
    if parts[0] in _SOURCE_ROOTS:
        return f"{parts[0]}/{parts[1]}" if len(parts) >= 3 else parts[0]
    return parts[0]


def import_path(entry: ImportEntry, language: str) -> Optional[str]:
    """The relative import as a slash path, or None when it has no path meaning."""
    if not entry.is_relative:
        return None
    source = entry.source
    if language == "python":
        stripped = source.lstrip(".")
        dots = len(source) - len(stripped)
        prefix = "./" if dots <= 1 else "../" * (dots - 1)
        return prefix + stripped.replace(".", "/") if stripped else prefix.rstrip("/")
    if language == "ruby" and not source.startswith("."):
        return f"./{source}"
    if source.startswith(".") or "/" in source:
        return source
    return None


def resolve_relative(from_path: str, source: str) -> Optional[str]:
    """Walk ``.``/``..`` segments of ``source`` against the importer's directory."""
    resolved = [part for part in posixpath.dirname(from_path).split("/") if part]
    for part in source.split("/"):
        if part == "..":
            if resolved:
                resolved.pop()
        elif part and part != ".":
            resolved.append(part)
    return "/".join(resolved) if resolved else None


def resolve_import_dir(from_path: str, source: str) -> Optional[str]:
    """Coarse target directory of a relative import."""
    resolved = resolve_relative(from_path, source)
    if resolved is None:
        return None
    parts = resolved.split("/")
    if "." in parts[-1]:
        parts.pop()
    if not parts:
        return None
    return top_level_dir("/".join(parts) + "/_")


def directory_flow(files: Sequence[FileSignatures]) -> Dict[str, List[str]]:
    """Map of importer directory -> directories it imports, in discovery order."""
    flow: Dict[str, Dict[str, None]] = {}
    for file in files:
        from_dir = top_level_dir(file.path)
        if from_dir is None:
            continue
        for entry in file.imports:
            source = import_path(entry, file.language)
            if source is None:
                continue
            target = resolve_import_dir(file.path, source)
            if target and target != from_dir:
                flow.setdefault(from_dir, {})[target] = None
    return {key: list(targets) for key, targets in flow.items()}


def match_file(target: str, known: Set[str]) -> Optional[str]:
    """Find the file an import points at: raw path, source extensions, then index files."""
    if target in known:
        return target
    for ext in _RESOLVE_EXTENSIONS:
        if target + ext in known:
            return target + ext
    for index in _INDEX_FILES:
        if target + index in known:
            return target + index
    return None


def find_hub_files(files: Sequence[FileSignatures], minimum: int = 2) -> List[Tuple[str, int]]:
    """Files targeted by at least ``minimum`` resolved imports, most imported first."""
    counts: Counter[str] = Counter()
    for file in files:
        for entry in file.imports:
            source = import_path(entry, file.language)
            if source is None:
                continue
            resolved = resolve_relative(file.path, source)
            if resolved:
                counts[resolved] += 1

    known = {file.path for file in files}
    hubs: Dict[str, int] = {}
    for target, count in counts.items():
        if count < minimum:
            continue
        match = match_file(target, known)
        if match is not None:
            hubs[match] = hubs.get(match, 0) + count
    return sorted(hubs.items(), key=lambda item: -item[1])


def package_name(entry: ImportEntry, language: str) -> Optional[str]:
    """Top-level external package of a non-relative import, or None for built-ins."""
    source = entry.source.strip()
    if entry.is_relative or not source or source.startswith(_RUNTIME_PREFIXES):
        return None

    if language == "python":
        name = source.split(".")[0]
        return None if name in PYTHON_BUILTINS else name
    if language == "go":
        parts = source.split("/")
        if "." not in parts[0]:
            return None
        return "/".join(parts[:3])
    if language == "rust":
        name = source.split("::")[0]
        return None if name in RUST_BUILTINS else name
    if language in ("java", "csharp"):
        parts = source.split(".")
        if parts[0] in JVM_BUILTINS:
            return None
        return ".".join(parts[:2])
    if language == "php":
        return source.split("\\")[0]

    if source.startswith("@"):
        parts = source.split("/")
        return f"{parts[0]}/{parts[1]}" if len(parts) >= 2 else None
    name = source.split("/")[0]
    return None if name in NODE_BUILTINS else name


def collect_external_deps(files: Iterable[FileSignatures]) -> List[str]:
    deps: Set[str] = set()
    for file in files:
        for entry in file.imports:
            name = package_name(entry, file.language)
            if name and len(name) > 1 and name not in FALSE_POSITIVES:
                deps.add(name)
    return sorted(deps)


__all__ = [
    "FALSE_POSITIVES",
    "collect_external_deps",
    "directory_flow",
    "find_hub_files",
    "import_path",
    "match_file",
    "package_name",
    "resolve_import_dir",
    "resolve_relative",
    "top_level_dir",
]
