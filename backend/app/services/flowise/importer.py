"""
Import of Flowise templates.

Parses a Flowise export, analyzes its structure and derives the Zanai
mapping used to pre-fill the agent creation form.
"""

from __future__ import annotations

import asyncio
import json
import secrets
import string
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger

from app.schemas.flowise_workflow import GeneratedEdge, GeneratedNode, GeneratedWorkflow
from app.services.flowise.analyzer import StructuralAnalysis, analyze
from app.services.flowise.converter import FLOWISE_TYPE_MAPPING
from app.services.flowise.mapping import (
    TemplateType,
    ZanaiMapping,
    determine_template_type,
    extract_template_description,
    extract_template_name,
    generate_mapping,
)
from app.services.flowise.normalizer import parse_flow
from app.utils.exceptions import TemplateImportError


# Flowise node type -> generated node kind, for re-exporting imported graphs
GENERATED_TYPE_MAPPING = {flowise: generated for generated, flowise in FLOWISE_TYPE_MAPPING.items()}

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_template_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"imported_{int(time.time() * 1000)}_{suffix}"


@dataclass
class ImportedTemplate:
    id: str
    name: str
    description: str
    type: TemplateType
    category: Optional[str]
    nodes: List[Dict[str, Any]]
    edges: List[Dict[str, Any]]
    viewport: Dict[str, Any]
    analysis: StructuralAnalysis
    zanai_mapping: ZanaiMapping
    chatbot_config: Any = None
    api_config: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type.value,
            "category": self.category,
            "nodes": self.nodes,
            "edges": self.edges,
            "viewport": self.viewport,
            "chatbotConfig": self.chatbot_config,
            "apiConfig": self.api_config,
            "analysis": self.analysis.to_dict(),
            "zanaiMapping": self.zanai_mapping.to_dict(),
        }


class FlowiseTemplateImporter:
    """Import Flowise templates from JSON objects or files."""

    async def import_from_file(self, file_path: Union[str, Path]) -> ImportedTemplate:
        """
        Import a template from a JSON file.

        Raises:
            TemplateImportError: If the file cannot be read, is not JSON, or
                does not describe a workflow
        """
        path = Path(file_path)
        logger.info(f"Importing Flowise template from file: {path}")
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
            template_data = json.loads(content)
        except (OSError, ValueError) as e:
            logger.error(f"Error reading template file {path}: {e}")
            raise TemplateImportError(f"could not read {path.name}", detail=str(e)) from e

        return self.import_from_object(template_data)

    def import_from_object(self, template_data: Any) -> ImportedTemplate:
        """Import a template from an already parsed JSON object."""
        nodes, edges, viewport = parse_flow(template_data)

        analysis = analyze(nodes, edges)
        zanai_mapping = generate_mapping(nodes, analysis)
        template_type, category = determine_template_type(nodes, analysis)

        template = ImportedTemplate(
            id=generate_template_id(),
            name=extract_template_name(nodes),
            description=extract_template_description(nodes),
            type=template_type,
            category=category,
            nodes=nodes,
            edges=edges,
            viewport=viewport,
            analysis=analysis,
            zanai_mapping=zanai_mapping,
            chatbot_config=template_data.get("chatbotConfig"),
            api_config=template_data.get("apiConfig"),
        )

        logger.info(
            f"Imported template '{template.name}': type={template.type.value}, "
            f"nodes={analysis.total_nodes}, edges={analysis.total_edges}, "
            f"complexity={analysis.complexity.value}, "
            f"suggested_agent_type={zanai_mapping.suggested_agent_type.value}"
        )
        return template

    @staticmethod
    def to_generated_workflow(template: ImportedTemplate) -> GeneratedWorkflow:
        """Turn an imported graph back into converter input, one node per Flowise node."""
        nodes = []
        for node in template.nodes:
            data = node["data"]
            settings = data.get("settings")
            inputs = data.get("inputs")
            if isinstance(settings, dict):
                config = dict(settings)
            elif isinstance(inputs, dict):
                config = dict(inputs)
            else:
                config = {}
            nodes.append(GeneratedNode(
                id=str(node["id"]),
                type=GENERATED_TYPE_MAPPING.get(node["type"], "CustomNode"),
                name=data.get("label") or data["name"],
                description=data.get("description") or "",
                config=config,
            ))

        edges = [
            GeneratedEdge(
                source=str(edge.get("source") or ""),
                target=str(edge.get("target") or ""),
                type=edge.get("type") or "default",
            )
            for edge in template.edges
        ]

        return GeneratedWorkflow(
            name=template.name,
            description=template.description,
            nodes=nodes,
            edges=edges,
            complexity=template.analysis.complexity.value,
        )


flowise_template_importer = FlowiseTemplateImporter()
