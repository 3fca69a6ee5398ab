"""
Database models for the Zanai Flowise integration.
"""

from .agent import Agent
from .flowise_workflow import FlowiseWorkflow

__all__ = [
    "Agent",
    "FlowiseWorkflow",
]
