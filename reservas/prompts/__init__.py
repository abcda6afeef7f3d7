"""Prompt templates and builders for assistant interactions."""

from reservas.prompts.extraction import ExtractionPromptBuilder
from reservas.prompts.restaurant import RestaurantPromptBuilder

__all__ = [
    "ExtractionPromptBuilder",
    "RestaurantPromptBuilder",
]
