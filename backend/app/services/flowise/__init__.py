"""
Conversion between Zanai workflows and the Flowise node/edge format.
"""

from .analyzer import Complexity, Pattern, StructuralAnalysis, analyze, calculate_complexity_score
from .converter import FlowiseConverter
from .flow_data import dump_flow_data, load_flow_data
from .importer import FlowiseTemplateImporter, ImportedTemplate, flowise_template_importer
from .mapping import ComponentType, ZanaiMapping, generate_mapping
from .normalizer import normalize_edge, normalize_node, parse_flow

__all__ = [
    "Complexity",
    "Pattern",
    "StructuralAnalysis",
    "analyze",
    "calculate_complexity_score",
    "FlowiseConverter",
    "dump_flow_data",
    "load_flow_data",
    "FlowiseTemplateImporter",
    "ImportedTemplate",
    "flowise_template_importer",
    "ComponentType",
    "ZanaiMapping",
    "generate_mapping",
    "normalize_edge",
    "normalize_node",
    "parse_flow",
]
