"""Dependencies analyzer: directory import flow, hub files and external packages."""

from __future__ import annotations

from typing import List

from .base import AnalysisContext, KnowledgeAnalyzer, add_block
from .graph import collect_external_deps, directory_flow, find_hub_files

MAX_FLOW_TARGETS = 6
MAX_HUBS = 5
MAX_EXTERNAL = 10


class DependencyAnalyzer(KnowledgeAnalyzer):
    title = "Dependencies (auto)"

    def lines(self, context: AnalysisContext) -> List[str]:
        files = [file for file in context.signatures if file.imports]
        if not files:
            return []

        lines: List[str] = []

        flow = directory_flow(files)
        if flow:
            block = ["**Internal deps:**"]
            for source_dir, targets in flow.items():
                block.append(f"- `{source_dir}/` → {{{', '.join(targets[:MAX_FLOW_TARGETS])}}}")
            add_block(lines, block)

        hubs = find_hub_files(files)
        if hubs:
            block = ["**Hub files** (most imported):"]
            block.extend(f"- `{path}` ({count} imports)" for path, count in hubs[:MAX_HUBS])
            add_block(lines, block)

        external = collect_external_deps(files)
        if external:
            add_block(lines, [f"**External deps:** {', '.join(external[:MAX_EXTERNAL])}"])

        return lines
