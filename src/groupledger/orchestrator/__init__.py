"""Orchestrator module."""
from .context import AppContext
from .models import InboundEvent
from .processor import PipelineCoordinator

__all__ = ["AppContext", "InboundEvent", "PipelineCoordinator"]
