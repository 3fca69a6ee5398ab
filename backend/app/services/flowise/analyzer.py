"""
Structural analysis of normalized Flowise workflows.

Two unrelated complexity measures live here:

- the complexity *bucket* (simple/medium/complex), a threshold table over
  node/edge counts and the set of node categories;
- the complexity *score*, a capped weighted sum over nodes, edges and node
  kinds, stored as workflow metadata.

They can disagree for the same workflow and are kept separate on purpose.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from app.services.flowise.normalizer import DEFAULT_CATEGORY, DEFAULT_EDGE_TYPE


MAX_COMPLEXITY_SCORE = 100
NODE_WEIGHT = 10
EDGE_WEIGHT = 5

# (substring of the lowercased node kind, bonus); first match wins
NODE_KIND_BONUSES = (
    ("condition", 20),
    ("parallel", 25),
    ("custom", 15),
)
DEFAULT_NODE_KIND_BONUS = 5


class Complexity(str, Enum):
    SIMPLE = "simple"
    MEDIUM = "medium"
    COMPLEX = "complex"


class Pattern(str, Enum):
    CUSTOM_NODE_BASED = "custom-node-based"
    CHAT_FLOW = "chat-flow"
    AGENT_BASED = "agent-based"
    WITH_MEMORY = "with-memory"
    WITH_TOOLS = "with-tools"
    HIGHLY_CONNECTED = "highly-connected"


@dataclass(frozen=True)
class StructuralAnalysis:
    """Read-only summary of a workflow graph."""

    total_nodes: int
    total_edges: int
    node_types: Dict[str, int]
    edge_types: Dict[str, int]
    categories: Dict[str, int]
    input_params: Dict[str, List[Any]]
    output_anchors: Dict[str, List[Any]]
    complexity: Complexity
    patterns: List[str] = field(default_factory=list)
    complexity_score: int = 0

    def has_pattern(self, pattern: Pattern) -> bool:
        return pattern.value in self.patterns

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalNodes": self.total_nodes,
            "totalEdges": self.total_edges,
            "nodeTypes": dict(self.node_types),
            "edgeTypes": dict(self.edge_types),
            "categories": dict(self.categories),
            "inputParams": dict(self.input_params),
            "outputAnchors": dict(self.output_anchors),
            "complexity": self.complexity.value,
            "patterns": list(self.patterns),
            "complexityScore": self.complexity_score,
        }


def _contains_any(label: str, needles: Sequence[str]) -> bool:
    lowered = (label or "").lower()
    return any(needle in lowered for needle in needles)


def determine_complexity(node_count: int, edge_count: int, categories: Iterable[str]) -> Complexity:
    """
    Bucket a workflow by size and by the kinds of categories it uses.

    Rules are evaluated in order:
    simple  -> at most 3 nodes and 2 edges, no tool/agent or memory categories
    medium  -> at most 6 nodes and 5 edges, a tool/agent category, at most one LLM-like category
    complex -> everything else
    """
    labels = set(categories)
    has_tools = any(_contains_any(label, ("tool", "agent")) for label in labels)
    has_memory = any(_contains_any(label, ("memory",)) for label in labels)
    llm_like = [label for label in labels if _contains_any(label, ("chat", "llm"))]
    has_multiple_llms = len(llm_like) > 1

    if node_count <= 3 and edge_count <= 2 and not has_tools and not has_memory:
        return Complexity.SIMPLE
    if node_count <= 6 and edge_count <= 5 and has_tools and not has_multiple_llms:
        return Complexity.MEDIUM
    return Complexity.COMPLEX


def identify_patterns(
    node_types: Mapping[str, int],
    categories: Mapping[str, int],
    node_count: int,
    edge_count: int,
) -> List[str]:
    """Tag recognizable structures. Tags are independent and emitted in a fixed order."""
    patterns: List[str] = []

    if any("customnode" in kind.lower() for kind in node_types):
        patterns.append(Pattern.CUSTOM_NODE_BASED.value)

    if node_types.get("chatInput") and node_types.get("chatOutput"):
        patterns.append(Pattern.CHAT_FLOW.value)

    if any(_contains_any(category, ("agent",)) for category in categories):
        patterns.append(Pattern.AGENT_BASED.value)

    if any(_contains_any(category, ("memory",)) for category in categories):
        patterns.append(Pattern.WITH_MEMORY.value)

    if any(_contains_any(category, ("tool",)) for category in categories):
        patterns.append(Pattern.WITH_TOOLS.value)

    if edge_count > node_count:
        patterns.append(Pattern.HIGHLY_CONNECTED.value)

    return patterns


def node_kind_bonus(kind: str) -> int:
    lowered = (kind or "").lower()
    for needle, bonus in NODE_KIND_BONUSES:
        if needle in lowered:
            return bonus
    return DEFAULT_NODE_KIND_BONUS


def calculate_complexity_score(node_kinds: Sequence[str], edge_count: int) -> int:
    """Weighted sum of nodes, edges and per-kind bonuses, capped at 100."""
    score = len(node_kinds) * NODE_WEIGHT
    score += edge_count * EDGE_WEIGHT
    score += sum(node_kind_bonus(kind) for kind in node_kinds)
    return min(score, MAX_COMPLEXITY_SCORE)


def analyze(nodes: Sequence[Dict[str, Any]], edges: Sequence[Dict[str, Any]]) -> StructuralAnalysis:
    """
    Compute histograms, the complexity bucket, pattern tags and the complexity
    score over a normalized node/edge set in one pass.
    """
    node_types: Counter = Counter()
    categories: Counter = Counter()
    input_params: Dict[str, List[Any]] = {}
    output_anchors: Dict[str, List[Any]] = {}

    for node in nodes:
        data = node.get("data") or {}
        node_types[node.get("type")] += 1
        categories[data.get("category") or DEFAULT_CATEGORY] += 1
        input_params[node["id"]] = data.get("inputParams") or []
        output_anchors[node["id"]] = data.get("outputAnchors") or []

    edge_types = Counter(edge.get("type") or DEFAULT_EDGE_TYPE for edge in edges)

    node_count = len(nodes)
    edge_count = len(edges)

    return StructuralAnalysis(
        total_nodes=node_count,
        total_edges=edge_count,
        node_types=dict(node_types),
        edge_types=dict(edge_types),
        categories=dict(categories),
        input_params=input_params,
        output_anchors=output_anchors,
        complexity=determine_complexity(node_count, edge_count, categories.keys()),
        patterns=identify_patterns(node_types, categories, node_count, edge_count),
        complexity_score=calculate_complexity_score(
            [node.get("type") or "" for node in nodes], edge_count
        ),
    )
