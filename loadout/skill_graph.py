"""Skill dependency graph: networkx wrapper over extracted cross-references.

Nodes are skill names; an edge A -> B means A's SKILL.md references B.
Targets with no matching skill still become nodes ("phantom" nodes), so
the node set is always every map key plus every referenced target.

Analysis computed at construction:
- clusters: strongly connected components with two or more skills
- roots:    skills nothing references (in-degree 0)
- leaves:   skills referencing nothing (out-degree 0)
- bridges:  skills with both incoming and outgoing edges. This is a cheap
            stand-in for articulation points, not the real thing; JSON and
            DOT consumers rely on exactly this definition.

Usage:
    from loadout.skill_graph import OutputFormat, SkillGraph

    graph = SkillGraph.from_crossrefs(crossrefs)
    print(graph.export(OutputFormat.MERMAID))
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Any

import networkx as nx

from loadout.crossref import CrossRef

logger = logging.getLogger(__name__)

ROOT_COLOR = "lightblue"
LEAF_COLOR = "lightgreen"
BRIDGE_COLOR = "orange"
DEFAULT_COLOR = "white"


class OutputFormat(StrEnum):
    DOT = "dot"
    TEXT = "text"
    JSON = "json"
    MERMAID = "mermaid"

    @classmethod
    def parse(cls, value: str) -> OutputFormat:
        """Parse a format name case-insensitively.

        Raises:
            ValueError: For unknown format names.
        """
        try:
            return cls(value.lower())
        except ValueError:
            choices = ", ".join(f.value for f in cls)
            raise ValueError(f"Unknown graph format '{value}' (expected one of: {choices})") from None


class SkillGraph:
    """Directed reference graph between skills plus its structural analysis."""

    def __init__(self, graph: nx.DiGraph):
        self._graph = graph
        self.clusters: list[list[str]] = _detect_clusters(graph)
        self.roots: list[str] = sorted(n for n in graph.nodes if graph.in_degree(n) == 0)
        self.leaves: list[str] = sorted(n for n in graph.nodes if graph.out_degree(n) == 0)
        self.bridges: list[str] = sorted(
            n for n in graph.nodes if graph.in_degree(n) > 0 and graph.out_degree(n) > 0
        )

    @classmethod
    def from_crossrefs(cls, crossrefs: Mapping[str, Iterable[CrossRef]]) -> SkillGraph:
        """Build the graph from a skill name -> references map.

        Repeated references between the same pair collapse into one edge.
        """
        graph = nx.DiGraph()
        for source, refs in crossrefs.items():
            graph.add_node(source)
            for ref in refs:
                graph.add_edge(source, ref.target)

        logger.info(
            "Skill graph built: %d nodes, %d edges",
            graph.number_of_nodes(),
            graph.number_of_edges(),
        )
        return cls(graph)

    @property
    def graph(self) -> nx.DiGraph:
        """The underlying networkx DiGraph."""
        return self._graph

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    @property
    def nodes(self) -> list[str]:
        return sorted(self._graph.nodes)

    @property
    def edges(self) -> list[tuple[str, str]]:
        return sorted(self._graph.edges)

    def neighbors(self, name: str) -> list[str]:
        """Skills referenced by ``name``, sorted. Empty for unknown names."""
        if name not in self._graph:
            return []
        return sorted(self._graph.successors(name))

    def backlinks(self, name: str) -> list[str]:
        """Skills that reference ``name``, sorted. Empty for unknown names."""
        if name not in self._graph:
            return []
        return sorted(self._graph.predecessors(name))

    def role_color(self, name: str) -> str:
        if name in self.roots:
            return ROOT_COLOR
        if name in self.leaves:
            return LEAF_COLOR
        if name in self.bridges:
            return BRIDGE_COLOR
        return DEFAULT_COLOR

    # ── Export ───────────────────────────────────────────────────────

    def to_text(self) -> str:
        """Human-readable summary and adjacency list."""
        lines = [
            "# Skill Dependency Graph",
            "",
            f"Skills: {self.node_count}",
            f"Clusters: {len(self.clusters)}",
            f"Roots: {len(self.roots)}",
            f"Leaves: {len(self.leaves)}",
            f"Bridges: {len(self.bridges)}",
            "",
            "## Dependencies",
            "",
        ]
        for name in self.nodes:
            targets = self.neighbors(name)
            lines.append(f"{name}: {', '.join(targets) if targets else '(none)'}")

        return "\n".join(lines) + "\n"

    def to_dot(self) -> str:
        """Graphviz DOT, left-to-right, nodes colored by role."""
        lines = [
            "digraph SkillGraph {",
            "  rankdir=LR;",
            "  node [shape=box, style=rounded];",
            "",
        ]
        for name in self.nodes:
            lines.append(f'  "{name}" [fillcolor={self.role_color(name)}, style="rounded,filled"];')

        lines.append("")
        for source, target in self.edges:
            lines.append(f'  "{source}" -> "{target}";')

        lines.append("}")
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [
                {
                    "id": name,
                    "is_root": name in self.roots,
                    "is_leaf": name in self.leaves,
                    "is_bridge": name in self.bridges,
                }
                for name in self.nodes
            ],
            "edges": [{"source": source, "target": target} for source, target in self.edges],
            "clusters": self.clusters,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))

    def to_mermaid(self) -> str:
        """Mermaid flowchart. Identifiers swap '-' for '_', labels keep the name."""
        lines = ["graph LR"]
        for source, target in self.edges:
            lines.append(
                f"  {_mermaid_id(source)}[{source}] --> {_mermaid_id(target)}[{target}]"
            )
        return "\n".join(lines) + "\n"

    def export(self, fmt: OutputFormat) -> str:
        exporters = {
            OutputFormat.DOT: self.to_dot,
            OutputFormat.TEXT: self.to_text,
            OutputFormat.JSON: self.to_json,
            OutputFormat.MERMAID: self.to_mermaid,
        }
        return exporters[fmt]()

    def stats(self) -> dict[str, int]:
        return {
            "skills": self.node_count,
            "edges": self.edge_count,
            "clusters": len(self.clusters),
            "roots": len(self.roots),
            "leaves": len(self.leaves),
            "bridges": len(self.bridges),
        }


def _detect_clusters(graph: nx.DiGraph) -> list[list[str]]:
    """Strongly connected components of size >= 2, each sorted, ordered by first member."""
    clusters = [
        sorted(component)
        for component in nx.strongly_connected_components(graph)
        if len(component) > 1
    ]
    clusters.sort(key=lambda members: members[0])
    return clusters


def _mermaid_id(name: str) -> str:
    return name.replace("-", "_")
