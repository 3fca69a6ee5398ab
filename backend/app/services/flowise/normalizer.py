"""
Normalization of loosely-typed Flowise export JSON.

Flowise exports do not guarantee that optional node fields are present.
Everything downstream (analysis, mapping, persistence) works on the
normalized shape produced here, where every optional field exists.
"""

from __future__ import annotations

from typing import Any, Dict, List, Tuple

from app.utils.exceptions import TemplateImportError


DEFAULT_CATEGORY = "Unknown"
DEFAULT_EDGE_TYPE = "default"
DEFAULT_VIEWPORT = {"x": 0, "y": 0, "zoom": 1}

REQUIRED_NODE_FIELDS = ("id", "type", "position", "data")
REQUIRED_NODE_DATA_FIELDS = ("id", "name")

# Optional top-level node attributes copied only when the export has them
OPTIONAL_NODE_FIELDS = ("positionAbsolute", "width", "height", "selected", "dragging")

KNOWN_DATA_FIELDS = frozenset({
    "id", "label", "version", "name", "type", "baseClasses",
    "category", "description", "inputParams", "inputAnchors",
    "inputs", "outputAnchors", "outputs", "selected",
})


def normalize_node(node: Dict[str, Any], index: int = 0) -> Dict[str, Any]:
    """
    Normalize a single Flowise node.

    Args:
        node: Raw node object from a Flowise export
        index: Position of the node in the export, used in error messages

    Returns:
        Node dict with every optional ``data`` field populated

    Raises:
        TemplateImportError: If a required field is missing
    """
    if not isinstance(node, dict):
        raise TemplateImportError(f"node #{index} must be an object")

    for field in REQUIRED_NODE_FIELDS:
        if field not in node or node[field] is None:
            raise TemplateImportError(f"node #{index} is missing required field '{field}'")

    if not isinstance(node["type"], str):
        raise TemplateImportError(f"node #{index} field 'type' must be a string")

    data = node["data"]
    if not isinstance(data, dict):
        raise TemplateImportError(f"node #{index} field 'data' must be an object")
    for field in REQUIRED_NODE_DATA_FIELDS:
        if data.get(field) is None:
            raise TemplateImportError(f"node #{index} is missing required field 'data.{field}'")

    normalized: Dict[str, Any] = {
        "id": node["id"],
        "type": node["type"],
        "position": node["position"],
    }
    for field in OPTIONAL_NODE_FIELDS:
        if field in node:
            normalized[field] = node[field]

    normalized_data: Dict[str, Any] = {
        "id": data["id"],
        "label": data.get("label"),
        "version": data.get("version"),
        "name": data["name"],
        "type": data.get("type"),
        "baseClasses": data.get("baseClasses") or [],
        "category": _category(data.get("category")),
        "description": data.get("description") or "",
        "inputParams": data.get("inputParams") or [],
        "inputAnchors": data.get("inputAnchors") or [],
        "inputs": data.get("inputs") or {},
        "outputAnchors": data.get("outputAnchors") or [],
        "outputs": data.get("outputs") or {},
        "selected": data.get("selected") or False,
    }
    normalized_data.update(extract_additional_data(data))
    normalized["data"] = normalized_data
    return normalized


def normalize_edge(edge: Dict[str, Any], index: int = 0) -> Dict[str, Any]:
    """Normalize a single Flowise edge. Dangling references are kept as-is."""
    if not isinstance(edge, dict):
        raise TemplateImportError(f"edge #{index} must be an object")

    edge_type = edge.get("type")

    return {
        "id": edge.get("id"),
        "source": edge.get("source"),
        "target": edge.get("target"),
        "sourceHandle": edge.get("sourceHandle"),
        "targetHandle": edge.get("targetHandle"),
        "type": edge_type if isinstance(edge_type, str) else None,
        "data": edge.get("data") or {},
    }


def _category(value: Any) -> str:
    # Non-string categories from hand-edited exports fall back to the default
    if isinstance(value, str) and value:
        return value
    return DEFAULT_CATEGORY


def extract_additional_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return the ``data`` keys that the normalized shape does not name explicitly."""
    return {key: value for key, value in data.items() if key not in KNOWN_DATA_FIELDS}


def parse_flow(template_data: Any) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]], Dict[str, Any]]:
    """
    Validate the top-level shape of a Flowise export and normalize it.

    Returns:
        Tuple of (nodes, edges, viewport)

    Raises:
        TemplateImportError: If ``nodes`` or ``edges`` is missing or not a list
    """
    if not isinstance(template_data, dict):
        raise TemplateImportError("template must be a JSON object")

    raw_nodes = template_data.get("nodes")
    if not isinstance(raw_nodes, list):
        raise TemplateImportError("must contain an array of nodes")

    raw_edges = template_data.get("edges")
    if not isinstance(raw_edges, list):
        raise TemplateImportError("must contain an array of edges")

    nodes = [normalize_node(node, i) for i, node in enumerate(raw_nodes)]
    edges = [normalize_edge(edge, i) for i, edge in enumerate(raw_edges)]
    viewport = template_data.get("viewport") or dict(DEFAULT_VIEWPORT)

    return nodes, edges, viewport
