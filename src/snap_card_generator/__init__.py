"""Snap Card Generator: photos in, collectible monster trading cards out."""

__version__ = "0.1.0"

from snap_card_generator.assembler import CardAssembler, GenerationPhase, PhaseState
from snap_card_generator.client import OpenAIClient
from snap_card_generator.models import AnalysisRecord, CardRecord, StatEntry
from snap_card_generator.prompts import PromptRegistry, TemplatePart

__all__ = [
    "AnalysisRecord",
    "CardAssembler",
    "CardRecord",
    "GenerationPhase",
    "OpenAIClient",
    "PhaseState",
    "PromptRegistry",
    "StatEntry",
    "TemplatePart",
]
